"""pyldgfem.assembly.load_vector"""
import logging

import numpy as np

from pyldgfem.fem.values import cell_values

__all__ = ["LoadAssembler"]

logger = logging.getLogger(__name__)


class LoadAssembler:
    """``F_i = ∫ f φ_i`` cell by cell; ``f`` takes an (nq, 2) array of points."""

    def __init__(self, dof_handler, quad_order):
        self.dh = dof_handler
        self.mesh = dof_handler.mesh
        self.quad_order = quad_order

    def element_load(self, cell, f):
        cv = cell_values(self.mesh, self.dh.ref, cell, self.quad_order)
        fq = np.broadcast_to(np.asarray(f(cv.points), dtype=float), cv.JxW.shape)
        return cv.values @ (fq * cv.JxW)

    def assemble(self, f):
        F = np.zeros(self.dh.n_dofs)
        for cell in self.mesh.cell_ids():
            F[self.dh.cell_dofs(cell)] += self.element_load(cell, f)
        logger.debug("Assembled load vector, |F|_2 = %.6e", np.linalg.norm(F))
        return F
