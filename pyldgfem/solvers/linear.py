"""pyldgfem.solvers.linear
Direct solve of the global system.
"""
from __future__ import annotations

import logging

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from pyldgfem.errors import InternalError, InvalidInputError
from pyldgfem.solvers.parameters import LinearSolverParameters

logger = logging.getLogger(__name__)


def solve_linear_system(A: sp.spmatrix, rhs: np.ndarray,
                        params: LinearSolverParameters | None = None) -> np.ndarray:
    lp = params or LinearSolverParameters()
    if lp.backend != "scipy":
        raise InvalidInputError(f"Unknown linear solver backend '{lp.backend}'.")
    if A.shape[0] != A.shape[1] or A.shape[0] != len(rhs):
        raise InvalidInputError(f"Incompatible system: matrix {A.shape}, rhs {np.shape(rhs)}.")
    kwargs = {} if lp.permc_spec is None else {"permc_spec": lp.permc_spec}
    u = spla.spsolve(sp.csc_matrix(A), rhs, **kwargs)
    if not np.all(np.isfinite(u)):
        raise InternalError("Direct solve produced non-finite values; the system matrix is singular.")
    logger.debug("Direct solve: relative residual %.3e",
                 np.linalg.norm(A @ u - rhs) / max(np.linalg.norm(rhs), 1e-300))
    return u
