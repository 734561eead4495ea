"""pyldgfem.postprocess.errors
Mesh-dependent error norms of a discrete solution against an analytic one.

    |e|²_H2 = Σ_K ∫_K |D²u − H(u_h)|²  + Σ_F h⁻¹ ∫_F |[∇e]|² + h⁻³ ∫_F [e]²
    |e|²_H1 = Σ_K ∫_K |∇u − ∇u_h|²     + Σ_F h⁻¹ ∫_F [e]²
    |e|²_L2 = Σ_K ∫_K (u − u_h)²

On boundary faces the jump is the one-sided trace of ``e = u − u_h``. Every
interior face contributes once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pyldgfem.assembly.discrete_hessian import DiscreteHessianEngine
from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.errors import InvalidInputError
from pyldgfem.fem.values import cell_values, face_values, neighbor_face_values

logger = logging.getLogger(__name__)

HESSIAN_CHOICES = ("discrete", "broken")


@dataclass(frozen=True)
class ErrorNorms:
    h2: float
    h1: float
    l2: float

    def as_tuple(self):
        return self.h2, self.h1, self.l2


def convergence_rates(errors: Sequence[float], hs: Sequence[float]) -> np.ndarray:
    """Observed orders ``log(e_{i-1}/e_i) / log(h_{i-1}/h_i)`` between consecutive levels."""
    e = np.asarray(errors, dtype=float)
    h = np.asarray(hs, dtype=float)
    if e.shape != h.shape:
        raise InvalidInputError(f"Got {len(e)} errors for {len(h)} mesh sizes.")
    return np.log(e[:-1] / e[1:]) / np.log(h[:-1] / h[1:])


class ErrorEvaluator:
    def __init__(self, dof_handler: DGDofHandler, quad_order: int,
                 engine: DiscreteHessianEngine | None = None):
        self.dh = dof_handler
        self.mesh = dof_handler.mesh
        self.quad_order = quad_order
        if engine is not None and engine.quad_order != quad_order:
            raise InvalidInputError(f"Hessian engine integrates with {engine.quad_order} points "
                                    f"per direction, the evaluator with {quad_order}.")
        self.engine = engine

    def _hessian_engine(self) -> DiscreteHessianEngine:
        if self.engine is None:
            self.engine = DiscreteHessianEngine(self.dh, self.quad_order)
        return self.engine

    def evaluate(self, u_h: np.ndarray, exact, hessian: str = "discrete") -> ErrorNorms:
        """
        ``exact`` must provide ``value``, ``gradient`` and ``hessian`` on
        (nq, 2) point arrays, as ``AnalyticFunction`` does.

        ``hessian="discrete"`` compares D²u with the lifted discrete Hessian
        of ``u_h``; ``hessian="broken"`` with its elementwise Hessian.
        """
        if hessian not in HESSIAN_CHOICES:
            raise InvalidInputError(f"hessian must be one of {HESSIAN_CHOICES}, got {hessian!r}.")
        u_h = np.asarray(u_h, dtype=float)
        if u_h.shape != (self.dh.n_dofs,):
            raise InvalidInputError(f"Expected a vector of {self.dh.n_dofs} coefficients, got shape {u_h.shape}.")
        ref = self.dh.ref
        h2 = h1 = l2 = 0.0

        for cell in self.mesh.cell_ids():
            c = self.dh.cell_coefficients(u_h, cell)
            cv = cell_values(self.mesh, ref, cell, self.quad_order)
            W = cv.JxW
            if hessian == "discrete":
                H = self._hessian_engine().discrete_hessian_of(cell, u_h)
            else:
                H = np.einsum('i,iqrs->qrs', c, cv.hessians)
            e_hess = exact.hessian(cv.points) - H
            e_grad = exact.gradient(cv.points) - np.einsum('i,iqd->qd', c, cv.gradients)
            e_val = exact.value(cv.points) - c @ cv.values
            h2 += np.sum(np.einsum('qrs,qrs->q', e_hess, e_hess) * W)
            h1 += np.sum(np.einsum('qd,qd->q', e_grad, e_grad) * W)
            l2 += np.sum(e_val**2 * W)

            for f in range(self.mesh.n_faces(cell)):
                fv = face_values(self.mesh, ref, cell, f, self.quad_order)
                h = self.mesh.face_diameter(cell, f)
                g_jump = np.einsum('i,iqd->qd', c, fv.gradients)
                v_jump = c @ fv.values
                if self.mesh.at_boundary(cell, f):
                    g_jump = exact.gradient(fv.points) - g_jump
                    v_jump = exact.value(fv.points) - v_jump
                else:
                    nb = self.mesh.neighbor(cell, f)
                    if nb < cell:
                        continue
                    nv = neighbor_face_values(self.mesh, ref, fv, nb, self.mesh.neighbor_of_neighbor(cell, f))
                    cn = self.dh.cell_coefficients(u_h, nb)
                    g_jump = g_jump - np.einsum('j,jqd->qd', cn, nv.gradients)
                    v_jump = v_jump - cn @ nv.values
                g2 = np.einsum('qd,qd->q', g_jump, g_jump)
                h2 += np.sum((g2 / h + v_jump**2 / h**3) * fv.JxW)
                h1 += np.sum(v_jump**2 / h * fv.JxW)

        norms = ErrorNorms(float(np.sqrt(h2)), float(np.sqrt(h1)), float(np.sqrt(l2)))
        logger.info("Error in the broken H2 norm: %.6e", norms.h2)
        logger.info("Error in the broken H1 norm: %.6e", norms.h1)
        logger.info("Error in the L2 norm       : %.6e", norms.l2)
        return norms
