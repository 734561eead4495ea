"""pyldgfem.assembly.scatter
COO triplet buffers for sparse global assembly.
"""
from __future__ import annotations

from typing import Iterable

import numpy as np
import scipy.sparse as sp


class TripletBuffer:
    """
    Collects ``(row, col, value)`` blocks; duplicates are summed on conversion.

    One buffer per cell task keeps threaded assembly free of shared state;
    merging the buffers in cell order gives the same matrix as a serial run.
    """

    def __init__(self):
        self.rows: list[np.ndarray] = []
        self.cols: list[np.ndarray] = []
        self.data: list[np.ndarray] = []

    def add_block(self, row_dofs: np.ndarray, col_dofs: np.ndarray, block: np.ndarray) -> None:
        rr, cc = np.meshgrid(row_dofs, col_dofs, indexing='ij')
        self.rows.append(rr.ravel())
        self.cols.append(cc.ravel())
        self.data.append(np.asarray(block, dtype=float).ravel())

    def extend(self, other: "TripletBuffer") -> None:
        self.rows.extend(other.rows)
        self.cols.extend(other.cols)
        self.data.extend(other.data)

    @classmethod
    def merge(cls, buffers: Iterable["TripletBuffer"]) -> "TripletBuffer":
        out = cls()
        for buf in buffers:
            out.extend(buf)
        return out

    def __len__(self):
        return sum(len(d) for d in self.data)

    def to_csr(self, n_dofs: int) -> sp.csr_matrix:
        if not self.data:
            return sp.csr_matrix((n_dofs, n_dofs))
        A = sp.csr_matrix((np.concatenate(self.data),
                           (np.concatenate(self.rows), np.concatenate(self.cols))),
                          shape=(n_dofs, n_dofs))
        A.sum_duplicates()
        return A
