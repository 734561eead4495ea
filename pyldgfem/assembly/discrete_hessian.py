"""pyldgfem.assembly.discrete_hessian
Discrete Hessians of the basis functions seen by one cell.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from pyldgfem.assembly.lifting import LiftingOperator
from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.fem.values import CellValues
from pyldgfem.solvers.local_solver import LocalSolver

logger = logging.getLogger(__name__)


@dataclass
class DiscreteHessianTable:
    """
    Discrete Hessians at the quadrature points of ``cell``.

    ``cell_hessians[i]`` belongs to the cell's own basis function i;
    ``neighbor_hessians[f][j]`` to basis function j of the neighbour across
    local face f, or ``None`` when f lies on the boundary. All arrays are
    (n_loc, nq, d, d).
    """

    cell: int
    cell_hessians: np.ndarray
    neighbor_hessians: List[Optional[np.ndarray]]
    values: CellValues = field(repr=False)

    @property
    def JxW(self) -> np.ndarray:
        return self.values.JxW

    def interior_faces(self) -> List[int]:
        return [f for f, H in enumerate(self.neighbor_hessians) if H is not None]


class DiscreteHessianEngine:
    """
    Builds ``H_h(φ) = D²φ − r(φ) + b(φ)`` for every basis function whose
    discrete Hessian is nonzero on a cell.

    With ``cache=True`` tables are kept per cell so that assembly and error
    evaluation share the local solves.
    """

    def __init__(self, dof_handler: DGDofHandler, quad_order: int,
                 local_solver: LocalSolver | None = None, *, cache: bool = False):
        self.dh = dof_handler
        self.mesh = dof_handler.mesh
        self.quad_order = quad_order
        self.lifting = LiftingOperator(dof_handler, quad_order, local_solver)
        self.cache = cache
        self._tables: Dict[int, DiscreteHessianTable] = {}

    def compute(self, cell: int) -> DiscreteHessianTable:
        if self.cache and cell in self._tables:
            return self._tables[cell]

        data = self.lifting.cell_data(cell)
        cv, tau, mass = data.scalar, data.values, data.mass

        own = self.lifting.cell_lifts(cell, mass)
        H_cell = cv.hessians + np.einsum('mi,mqrs->iqrs', own.correction(), tau)

        H_nb: List[Optional[np.ndarray]] = []
        for f in range(self.mesh.n_faces(cell)):
            if self.mesh.at_boundary(cell, f):
                H_nb.append(None)
                continue
            lifts = self.lifting.face_lifts(cell, f, mass)
            H_nb.append(np.einsum('mi,mqrs->iqrs', lifts.correction(), tau))

        table = DiscreteHessianTable(cell, H_cell, H_nb, cv)
        logger.debug("Cell %d: discrete Hessians for %d own and %d neighbour faces",
                     cell, self.dh.n_loc, len(table.interior_faces()))
        if self.cache:
            self._tables[cell] = table
        return table

    def discrete_hessian_of(self, cell: int, u: np.ndarray) -> np.ndarray:
        """Discrete Hessian of the finite element function ``u`` at the cell's quadrature points."""
        table = self.compute(cell)
        H = np.einsum('i,iqrs->qrs', self.dh.cell_coefficients(u, cell), table.cell_hessians)
        for f in table.interior_faces():
            nb = self.mesh.neighbor(cell, f)
            H += np.einsum('j,jqrs->qrs', self.dh.cell_coefficients(u, nb), table.neighbor_hessians[f])
        return H

    def clear(self):
        self._tables.clear()
