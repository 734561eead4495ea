"""pyldgfem.fem.lifting
Tensor-valued discontinuous space used to represent lifting corrections.

The space is ``(Q_k)^{d x d}`` (or ``(P_k)^{d x d}`` on triangles): every
component of a d-by-d tensor is an independent copy of the scalar Lagrange
basis. Basis function ``m = (r*d + s)*n_scalar + a`` is ``ψ_a E_rs`` where
``E_rs`` is the unit tensor with a one in row r, column s. Its divergence
(row-wise, ``(div τ)_r = Σ_s ∂_s τ_rs``) is therefore ``∂_s ψ_a e_r``.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pyldgfem.fem.reference import get_reference
from pyldgfem.fem.values import CellValues, FaceValues, cell_values, face_values


@dataclass(slots=True)
class LiftingCellData:
    """Lifting basis and mass matrix of one cell, with the scalar values they were built from."""
    scalar: CellValues
    values: np.ndarray          # (n_lift, nq, d, d)
    mass: np.ndarray            # (n_lift, n_lift), SPD

    @property
    def JxW(self) -> np.ndarray:
        return self.scalar.JxW


@dataclass(slots=True)
class LiftingFaceData:
    """Lifting basis traced on one face of its cell."""
    scalar: FaceValues
    values: np.ndarray          # (n_lift, nq, d, d)
    divergence: np.ndarray      # (n_lift, nq, d)

    @property
    def JxW(self) -> np.ndarray:
        return self.scalar.JxW


class LiftingSpace:
    def __init__(self, element_type: str, degree: int, dim: int = 2):
        self.element_type = element_type
        self.degree = degree
        self.dim = dim
        self.ref = get_reference(element_type, degree)
        self.n_scalar = self.ref.n_loc
        self.n_dofs = dim * dim * self.n_scalar

    def values(self, psi: np.ndarray) -> np.ndarray:
        """Tensor basis values from scalar values ``psi`` (n_scalar, nq)."""
        d = self.dim
        out = np.zeros((d * d, self.n_scalar, psi.shape[1], d, d))
        for r in range(d):
            for s in range(d):
                out[r * d + s, :, :, r, s] = psi
        return out.reshape(self.n_dofs, psi.shape[1], d, d)

    def divergence(self, dpsi: np.ndarray) -> np.ndarray:
        """Row-wise divergence from scalar gradients ``dpsi`` (n_scalar, nq, d)."""
        d = self.dim
        out = np.zeros((d * d, self.n_scalar, dpsi.shape[1], d))
        for r in range(d):
            for s in range(d):
                out[r * d + s, :, :, r] = dpsi[:, :, s]
        return out.reshape(self.n_dofs, dpsi.shape[1], d)

    @staticmethod
    def mass_matrix(tau: np.ndarray, JxW: np.ndarray) -> np.ndarray:
        """M_mn = ∫ τ_m : τ_n."""
        return np.einsum('mqrs,nqrs,q->mn', tau, tau, JxW)

    def cell(self, mesh, elem_id: int, quad_order: int) -> LiftingCellData:
        cv: CellValues = cell_values(mesh, self.ref, elem_id, quad_order)
        tau = self.values(cv.values)
        return LiftingCellData(cv, tau, self.mass_matrix(tau, cv.JxW))

    def face(self, mesh, elem_id: int, local_face: int, quad_order: int) -> LiftingFaceData:
        fv: FaceValues = face_values(mesh, self.ref, elem_id, local_face, quad_order)
        return LiftingFaceData(fv, self.values(fv.values), self.divergence(fv.gradients))

    def __repr__(self):
        return (f"<LiftingSpace {self.element_type} degree={self.degree} "
                f"dim={self.dim} n_dofs={self.n_dofs}>")
