"""pyldgfem.solvers.parameters
Settings dataclasses for the LDG solver stack.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from pyldgfem.errors import InvalidInputError


def _env_workers() -> Optional[int]:
    raw = os.getenv("PYLDGFEM_NUM_WORKERS", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidInputError(f"PYLDGFEM_NUM_WORKERS must be an integer, got {raw!r}.")


@dataclass
class LocalSolverParameters:
    """CG settings for the small SPD lifting systems."""

    rtol: float = 1e-12
    atol: float = 1e-12
    maxit: int = 1000                   # hitting this is a fatal internal error


@dataclass
class LinearSolverParameters:
    """Global sparse linear solver settings."""

    backend: str = "scipy"              # direct sparse LU (SuperLU / UMFPACK via scipy)
    permc_spec: Optional[str] = None


@dataclass
class LDGParameters:
    """Discretisation parameters of the lifted LDG bi-Laplacian."""

    fe_degree: int = 2
    penalty_jump_grad: float = 1.0      # γ₁, scales h⁻¹ [∇u]·[∇v]
    penalty_jump_val: float = 1.0       # γ₀, scales h⁻³ [u][v]
    quad_order: Optional[int] = None    # Gauss points per direction, default fe_degree + 1
    n_workers: Optional[int] = field(default_factory=_env_workers)
    local_solver: LocalSolverParameters = field(default_factory=LocalSolverParameters)
    linear_solver: LinearSolverParameters = field(default_factory=LinearSolverParameters)

    def __post_init__(self):
        if self.fe_degree < 1:
            raise InvalidInputError(f"fe_degree must be >= 1, got {self.fe_degree}.")
        if self.penalty_jump_grad < 0 or self.penalty_jump_val < 0:
            raise InvalidInputError("Penalty coefficients must be non-negative.")
        if self.quad_order is None:
            self.quad_order = self.fe_degree + 1
        if self.n_workers is not None and self.n_workers < 1:
            raise InvalidInputError(f"n_workers must be >= 1, got {self.n_workers}.")
