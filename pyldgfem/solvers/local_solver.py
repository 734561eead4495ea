"""pyldgfem.solvers.local_solver
Conjugate-gradient solves against a lifting mass matrix.
"""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
import scipy.sparse.linalg as spla

from pyldgfem.errors import LocalSolveError
from pyldgfem.solvers.parameters import LocalSolverParameters

logger = logging.getLogger(__name__)


class LocalSolver:
    """
    Solves ``M x = b`` for the small SPD lifting mass matrix ``M``.

    Unpreconditioned CG to ``max(rtol*|b|, atol)``. Running out of iterations
    raises ``LocalSolveError``; the result is never returned inaccurate.
    ``last_iterations`` holds the CG iteration count of the latest solve.
    """

    def __init__(self, params: LocalSolverParameters | None = None):
        self.params = params or LocalSolverParameters()
        self.last_iterations = 0

    def _cg(self, M: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, int]:
        b = np.asarray(b, dtype=float)
        if not np.any(b):
            return np.zeros_like(b), 0
        p = self.params
        iterations = [0]

        def count(_xk):
            iterations[0] += 1

        x, info = spla.cg(M, b, rtol=p.rtol, atol=p.atol, maxiter=p.maxit, callback=count)
        if info != 0:
            raise LocalSolveError(info, np.linalg.norm(b - M @ x), p.maxit)
        return x, iterations[0]

    def solve(self, M: np.ndarray, b: np.ndarray) -> np.ndarray:
        x, self.last_iterations = self._cg(M, b)
        return x

    def solve_many(self, M: np.ndarray, B: np.ndarray) -> np.ndarray:
        """Column-wise solve of ``M X = B``."""
        B = np.asarray(B, dtype=float)
        X = np.empty_like(B)
        total = 0
        for j in range(B.shape[1]):
            X[:, j], n_it = self._cg(M, B[:, j])
            total += n_it
        logger.debug("Solved %d local lifting systems of size %d in %d CG iterations",
                     B.shape[1], M.shape[0], total)
        return X
