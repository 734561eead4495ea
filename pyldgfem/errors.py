"""pyldgfem.errors
Exception taxonomy.

Two families terminate a run: ``InvalidInputError`` when the caller asked
for something the code cannot do (unsupported dimension, element type,
degree, bad parameters) and ``InternalError`` when an invariant that holds
by construction was violated (a local SPD solve that did not converge).
"""
from __future__ import annotations


class PyLDGFEMError(Exception):
    """Base class for every error raised by pyldgfem."""


class InvalidInputError(PyLDGFEMError, ValueError):
    """A precondition on the inputs does not hold."""


class UnsupportedDimensionError(InvalidInputError):
    def __init__(self, dim, supported=(2, 3)):
        self.dim = dim
        self.supported = tuple(supported)
        super().__init__(f"Spatial dimension {dim} is not supported "
                         f"(supported: {', '.join(map(str, self.supported))}).")


class InternalError(PyLDGFEMError, RuntimeError):
    """An internal invariant was violated; indicates a defect, not bad luck."""


class LocalSolveError(InternalError):
    """The CG solve against a lifting mass matrix did not converge."""

    def __init__(self, info: int, residual: float, maxiter: int):
        self.info = int(info)
        self.residual = float(residual)
        self.maxiter = int(maxiter)
        super().__init__(
            f"Local lifting solve did not converge (info={self.info}, "
            f"residual={self.residual:.3e}, maxiter={self.maxiter}). The lifting "
            f"mass matrix is SPD by construction, so this points to a malformed "
            f"lifting space or degenerate cell geometry."
        )
