"""pyldgfem.assembly.lifting
Local lifting operators of the LDG bi-Laplacian.

Two liftings correct the broken Hessian of a basis function φ:

* the *reconstruction* lift ``r`` of the gradient jump,
  ``∫_K r(φ):τ = Σ_F factor ∫_F (τ n)·∇φ``,
* the *value-jump* lift ``b`` of the value jump,
  ``∫_K b(φ):τ = Σ_F factor ∫_F (div τ · n) φ``,

with ``factor = 1`` on boundary faces and ``1/2`` on interior faces. Both are
represented in the lifting space of the cell, so each costs one solve against
the cell's lifting mass matrix.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.errors import InvalidInputError
from pyldgfem.fem.lifting import LiftingCellData, LiftingFaceData, LiftingSpace
from pyldgfem.fem.values import FaceValues, neighbor_face_values
from pyldgfem.solvers.local_solver import LocalSolver

logger = logging.getLogger(__name__)

BOUNDARY_FACTOR = 1.0
INTERIOR_FACTOR = 0.5


@dataclass(slots=True)
class LocalLifts:
    """Lift coefficients, one column per lifted basis function: (n_lift, n_loc)."""

    reconstruction: np.ndarray
    value_jump: np.ndarray

    def correction(self) -> np.ndarray:
        """Coefficients of ``b − r``, the term added to the broken Hessian."""
        return self.value_jump - self.reconstruction


class LiftingOperator:
    def __init__(self, dof_handler: DGDofHandler, quad_order: int,
                 local_solver: LocalSolver | None = None):
        self.dh = dof_handler
        self.mesh = dof_handler.mesh
        self.ref = dof_handler.ref
        self.quad_order = quad_order
        self.space = LiftingSpace(self.mesh.element_type, dof_handler.fe_degree, self.mesh.spatial_dim)
        self.solver = local_solver or LocalSolver()

    # ------------------------------------------------------------------
    # face right-hand sides
    # ------------------------------------------------------------------
    @staticmethod
    def rhs_reconstruction(tau: np.ndarray, normal: np.ndarray, gradients: np.ndarray,
                           JxW: np.ndarray, factor: float) -> np.ndarray:
        """``Σ_q factor (τ_m n)·∇φ_i w_q`` as an (n_lift, n_loc) array."""
        return factor * np.einsum('mqrs,s,iqr,q->mi', tau, normal, gradients, JxW)

    @staticmethod
    def rhs_value_jump(div_tau: np.ndarray, normal: np.ndarray, values: np.ndarray,
                       JxW: np.ndarray, factor: float) -> np.ndarray:
        """``Σ_q factor (div τ_m · n) φ_i w_q`` as an (n_lift, n_loc) array."""
        return factor * np.einsum('mqr,r,iq,q->mi', div_tau, normal, values, JxW)

    def _face_rhs(self, face: LiftingFaceData, trace: FaceValues, factor: float) -> Tuple[np.ndarray, np.ndarray]:
        # lifting basis lives on ``face.scalar.cell``; ``trace`` holds the lifted functions
        return (self.rhs_reconstruction(face.values, trace.normal, trace.gradients, face.JxW, factor),
                self.rhs_value_jump(face.divergence, trace.normal, trace.values, face.JxW, factor))

    def lift_traces(self, mass: np.ndarray, face: LiftingFaceData, values: np.ndarray,
                    gradients: np.ndarray, normal: np.ndarray, factor: float) -> LocalLifts:
        """
        Lift arbitrary traces given at the quadrature points of ``face``.

        ``values`` (n, nq) and ``gradients`` (n, nq, d) are the traces of n
        functions; ``normal`` is the normal they are jumped against.
        """
        fv = face.scalar
        trace = FaceValues(fv.cell, fv.local_face, fv.points, fv.JxW,
                           np.asarray(normal, dtype=float), np.asarray(values, dtype=float),
                           np.asarray(gradients, dtype=float))
        rhs_re, rhs_be = self._face_rhs(face, trace, factor)
        return LocalLifts(self.solver.solve_many(mass, rhs_re), self.solver.solve_many(mass, rhs_be))

    # ------------------------------------------------------------------
    # lifts of the cell's own basis and of its neighbours' bases
    # ------------------------------------------------------------------
    def cell_data(self, cell: int) -> LiftingCellData:
        return self.space.cell(self.mesh, cell, self.quad_order)

    def face_data(self, cell: int, local_face: int) -> LiftingFaceData:
        return self.space.face(self.mesh, cell, local_face, self.quad_order)

    def cell_mass(self, cell: int) -> np.ndarray:
        return self.cell_data(cell).mass

    def cell_lifts(self, cell: int, mass: np.ndarray | None = None) -> LocalLifts:
        """
        Lifts of the cell's own basis functions.

        The face contributions are accumulated first and solved once per
        basis function.
        """
        if mass is None:
            mass = self.cell_mass(cell)
        n = self.space.n_dofs
        rhs_re = np.zeros((n, self.dh.n_loc))
        rhs_be = np.zeros((n, self.dh.n_loc))
        for f in range(self.mesh.n_faces(cell)):
            face = self.face_data(cell, f)
            factor = BOUNDARY_FACTOR if self.mesh.at_boundary(cell, f) else INTERIOR_FACTOR
            re, be = self._face_rhs(face, face.scalar, factor)
            rhs_re += re
            rhs_be += be
        return LocalLifts(self.solver.solve_many(mass, rhs_re), self.solver.solve_many(mass, rhs_be))

    def face_lifts(self, cell: int, local_face: int, mass: np.ndarray | None = None) -> LocalLifts:
        """
        Lifts into the cell of the neighbour's basis functions across ``local_face``.

        The neighbour's basis is traced on the shared face at the cell's
        quadrature points and jumped against the neighbour's outward normal.
        """
        if self.mesh.at_boundary(cell, local_face):
            raise InvalidInputError(f"Face {local_face} of cell {cell} has no neighbour to lift from.")
        if mass is None:
            mass = self.cell_mass(cell)
        face = self.face_data(cell, local_face)
        nv = neighbor_face_values(self.mesh, self.ref, face.scalar,
                                  self.mesh.neighbor(cell, local_face),
                                  self.mesh.neighbor_of_neighbor(cell, local_face))
        rhs_re, rhs_be = self._face_rhs(face, nv, INTERIOR_FACTOR)
        return LocalLifts(self.solver.solve_many(mass, rhs_re), self.solver.solve_many(mass, rhs_be))
