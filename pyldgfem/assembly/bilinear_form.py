"""pyldgfem.assembly.bilinear_form
Global matrix of the lifted LDG bi-Laplacian.

    A(u, v) = Σ_K ∫_K H_h(u) : H_h(v)
            + Σ_F γ₁/h_F ∫_F [∇u]·[∇v] + γ₀/h_F³ ∫_F [u][v]

The discrete Hessian of a basis function of cell K is supported on K and on
its face neighbours, so the consistency term of one cell couples the cell
with each neighbour and each neighbour with every other one.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import combinations
from typing import Callable, List, Optional

import numpy as np
import scipy.sparse as sp

from pyldgfem.assembly.discrete_hessian import DiscreteHessianEngine
from pyldgfem.assembly.scatter import TripletBuffer
from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.errors import InvalidInputError
from pyldgfem.fem.values import FaceValues, face_values, neighbor_face_values
from pyldgfem.solvers.local_solver import LocalSolver
from pyldgfem.solvers.parameters import LDGParameters

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PenaltyFaceBlock:
    """
    Penalty matrix of one face, signs of the jumps included.

    ``cn[i, j]`` couples test function i of the cell with trial function j of
    the neighbour. Only ``cc`` is set on boundary faces.
    """

    cc: np.ndarray
    cn: Optional[np.ndarray] = None
    nc: Optional[np.ndarray] = None
    nn: Optional[np.ndarray] = None


def _hessian_block(H_test: np.ndarray, H_trial: np.ndarray, JxW: np.ndarray) -> np.ndarray:
    """``B[i, j] = ∫ H_trial[j] : H_test[i]``."""
    return np.einsum('iqrs,jqrs,q->ij', H_test, H_trial, JxW)


class BilinearFormAssembler:
    def __init__(self, dof_handler: DGDofHandler, params: LDGParameters | None = None,
                 engine: DiscreteHessianEngine | None = None):
        self.dh = dof_handler
        self.mesh = dof_handler.mesh
        self.params = params or LDGParameters(fe_degree=dof_handler.fe_degree)
        self.quad_order = self.params.quad_order
        if engine is not None and engine.quad_order != self.quad_order:
            raise InvalidInputError(f"Hessian engine integrates with {engine.quad_order} points "
                                    f"per direction, the assembler with {self.quad_order}.")
        self.engine = engine or DiscreteHessianEngine(
            dof_handler, self.quad_order, LocalSolver(self.params.local_solver))

    # ------------------------------------------------------------------
    # per-cell kernels
    # ------------------------------------------------------------------
    def consistency_cell(self, cell: int) -> TripletBuffer:
        """``∫_K H_h(φ_j):H_h(φ_i)`` for every pair of basis functions living near ``cell``."""
        table = self.engine.compute(cell)
        W = table.JxW
        Hc = table.cell_hessians
        K = self.dh.cell_dofs(cell)
        buf = TripletBuffer()
        buf.add_block(K, K, _hessian_block(Hc, Hc, W))

        faces = table.interior_faces()
        for f in faces:
            N = self.dh.cell_dofs(self.mesh.neighbor(cell, f))
            Hn = table.neighbor_hessians[f]
            buf.add_block(K, N, _hessian_block(Hc, Hn, W))
            buf.add_block(N, K, _hessian_block(Hn, Hc, W))
            buf.add_block(N, N, _hessian_block(Hn, Hn, W))

        for f1, f2 in combinations(faces, 2):
            N1 = self.dh.cell_dofs(self.mesh.neighbor(cell, f1))
            N2 = self.dh.cell_dofs(self.mesh.neighbor(cell, f2))
            H1, H2 = table.neighbor_hessians[f1], table.neighbor_hessians[f2]
            buf.add_block(N1, N2, _hessian_block(H1, H2, W))
            buf.add_block(N2, N1, _hessian_block(H2, H1, W))
        return buf

    def _penalty_matrix(self, test: FaceValues, trial: FaceValues, h: float) -> np.ndarray:
        g1 = self.params.penalty_jump_grad
        g0 = self.params.penalty_jump_val
        W = test.JxW
        return (g1 / h * np.einsum('iqd,jqd,q->ij', test.gradients, trial.gradients, W)
                + g0 / h**3 * np.einsum('iq,jq,q->ij', test.values, trial.values, W))

    def penalty_face_block(self, cell: int, local_face: int) -> PenaltyFaceBlock:
        fv = face_values(self.mesh, self.dh.ref, cell, local_face, self.quad_order)
        h = self.mesh.face_diameter(cell, local_face)
        cc = self._penalty_matrix(fv, fv, h)
        if self.mesh.at_boundary(cell, local_face):
            return PenaltyFaceBlock(cc)
        nv = neighbor_face_values(self.mesh, self.dh.ref, fv,
                                  self.mesh.neighbor(cell, local_face),
                                  self.mesh.neighbor_of_neighbor(cell, local_face))
        return PenaltyFaceBlock(cc,
                                -self._penalty_matrix(fv, nv, h),
                                -self._penalty_matrix(nv, fv, h),
                                self._penalty_matrix(nv, nv, h))

    def penalty_cell(self, cell: int, *, visit_once: bool = True,
                     include_boundary: bool = True) -> TripletBuffer:
        """
        Penalty terms of the faces of ``cell``.

        With ``visit_once`` an interior face is assembled only from the cell
        with the smaller id; without it every interior face is counted twice.
        """
        K = self.dh.cell_dofs(cell)
        buf = TripletBuffer()
        for f in range(self.mesh.n_faces(cell)):
            if self.mesh.at_boundary(cell, f):
                if include_boundary:
                    buf.add_block(K, K, self.penalty_face_block(cell, f).cc)
                continue
            nb = self.mesh.neighbor(cell, f)
            if visit_once and nb < cell:
                continue
            N = self.dh.cell_dofs(nb)
            blk = self.penalty_face_block(cell, f)
            buf.add_block(K, K, blk.cc)
            buf.add_block(K, N, blk.cn)
            buf.add_block(N, K, blk.nc)
            buf.add_block(N, N, blk.nn)
        return buf

    # ------------------------------------------------------------------
    # global assembly
    # ------------------------------------------------------------------
    def _map_cells(self, kernel: Callable[[int], TripletBuffer],
                   n_workers: Optional[int]) -> sp.csr_matrix:
        if n_workers is None:
            n_workers = self.params.n_workers or 1
        cells = self.mesh.cell_ids()
        if n_workers > 1:
            with ThreadPoolExecutor(max_workers=n_workers) as pool:
                buffers: List[TripletBuffer] = list(pool.map(kernel, cells))
        else:
            buffers = [kernel(c) for c in cells]
        return TripletBuffer.merge(buffers).to_csr(self.dh.n_dofs)

    def assemble_consistency(self, n_workers: Optional[int] = None) -> sp.csr_matrix:
        return self._map_cells(self.consistency_cell, n_workers)

    def assemble_penalty(self, visit_once: bool = True, include_boundary: bool = True,
                         n_workers: Optional[int] = None) -> sp.csr_matrix:
        return self._map_cells(
            lambda c: self.penalty_cell(c, visit_once=visit_once, include_boundary=include_boundary),
            n_workers)

    def assemble(self, n_workers: Optional[int] = None) -> sp.csr_matrix:
        """Full system matrix; per-cell buffers are merged in cell order."""
        def kernel(cell):
            buf = self.consistency_cell(cell)
            buf.extend(self.penalty_cell(cell))
            return buf

        logger.info("Assembling the system matrix on %d cells (%d DoFs)",
                    len(self.mesh.cell_ids()), self.dh.n_dofs)
        A = self._map_cells(kernel, n_workers)
        logger.debug("System matrix has %d stored entries", A.nnz)
        return A
