# dofhandler.py
"""
Degree-of-freedom numbering for fully discontinuous Lagrange spaces.

Every cell owns ``n_loc`` consecutive dofs; cell ``e`` holds
``[e*n_loc, (e+1)*n_loc)``. Nothing is shared across faces.
"""
from __future__ import annotations

from typing import Callable

import numpy as np
import scipy.sparse as sp

from pyldgfem.core.mesh import Mesh
from pyldgfem.fem import transform
from pyldgfem.fem.reference import get_reference


class DGDofHandler:
    def __init__(self, mesh: Mesh, fe_degree: int):
        self.mesh = mesh
        self.fe_degree = fe_degree
        self.ref = get_reference(mesh.element_type, fe_degree)
        self.n_loc = self.ref.n_loc
        self.total_dofs = self.n_loc * len(mesh.elements_list)

    @property
    def n_dofs(self) -> int:
        return self.total_dofs

    def cell_dofs(self, elem_id: int) -> np.ndarray:
        return np.arange(self.n_loc) + elem_id * self.n_loc

    def cell_coefficients(self, u: np.ndarray, elem_id: int) -> np.ndarray:
        return np.asarray(u)[self.cell_dofs(elem_id)]

    def sparsity_pattern(self) -> sp.csr_matrix:
        """
        Boolean pattern of the lifted operator.

        Each cell couples itself and all its face neighbours pairwise, which
        also covers the neighbour-1/neighbour-2 couplings through that cell.
        """
        rows, cols = [], []
        for eid in self.mesh.cell_ids():
            group = [eid] + [n for n in self.mesh.elements_list[eid].neighbors.values() if n is not None]
            dofs = np.concatenate([self.cell_dofs(e) for e in group])
            rr, cc = np.meshgrid(dofs, dofs, indexing='ij')
            rows.append(rr.ravel())
            cols.append(cc.ravel())
        rows = np.concatenate(rows)
        cols = np.concatenate(cols)
        pattern = sp.csr_matrix((np.ones(len(rows), dtype=bool), (rows, cols)),
                                shape=(self.total_dofs, self.total_dofs))
        pattern.sum_duplicates()
        return pattern

    def dof_coordinates(self) -> np.ndarray:
        """Physical position of every Lagrange node, (n_dofs, 2)."""
        coords = np.empty((self.total_dofs, 2))
        for eid in self.mesh.cell_ids():
            coords[self.cell_dofs(eid)] = [transform.x_mapping(self.mesh, eid, xi) for xi in self.ref.nodes]
        return coords

    def interpolate(self, func: Callable) -> np.ndarray:
        """Nodal interpolant of ``func`` (called with an (n, 2) point array)."""
        return np.asarray(func(self.dof_coordinates()), dtype=float).reshape(self.total_dofs)

    def __repr__(self):
        return f"<DGDofHandler degree={self.fe_degree} n_loc={self.n_loc} n_dofs={self.total_dofs}>"
