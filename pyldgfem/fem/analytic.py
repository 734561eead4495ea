# analytic.py
"""
Analytic scalar functions backed by SymPy.

An ``AnalyticFunction`` is built from a SymPy expression in the coordinate
symbols ``x0, x1, ...`` of a given dimension. Value, gradient and Hessian
are derived symbolically once and lambdified to NumPy; all three accept a
single point ``(d,)`` or a batch ``(..., d)``.
"""
import sympy as sp
import numpy as np

from pyldgfem.errors import InvalidInputError, UnsupportedDimensionError

_SUPPORTED_DIMS = (2, 3)


def coordinates(dim: int):
    """Coordinate symbols ``(x0, ..., x_{dim-1})``."""
    if dim not in _SUPPORTED_DIMS:
        raise UnsupportedDimensionError(dim, _SUPPORTED_DIMS)
    return sp.symbols(f"x0:{dim}", real=True)


def _lambdify(coords, expr):
    f = sp.lambdify(coords, expr, "numpy")
    # constants come back as Python scalars; broadcast them to the batch shape
    return lambda *X: np.broadcast_to(np.asarray(f(*X), dtype=float), np.shape(X[0]))


class AnalyticFunction:
    """
    Scalar function with value / gradient / Hessian evaluation.
    """

    def __init__(self, sympy_expr, dim: int = 2):
        self.dim = dim
        self.coords = coordinates(dim)
        self.sympy_expr = sp.sympify(sympy_expr)
        unknown = self.sympy_expr.free_symbols - set(self.coords)
        if unknown:
            raise InvalidInputError(f"Expression depends on non-coordinate symbols {sorted(map(str, unknown))}.")
        self._value = _lambdify(self.coords, self.sympy_expr)
        self._grad = [_lambdify(self.coords, sp.diff(self.sympy_expr, c)) for c in self.coords]
        self._hess = [[_lambdify(self.coords, sp.diff(self.sympy_expr, a, b)) for b in self.coords]
                      for a in self.coords]

    def _split(self, p):
        P = np.asarray(p, dtype=float)
        if P.shape[-1] != self.dim:
            raise InvalidInputError(f"Expected points with {self.dim} coordinates, got shape {P.shape}.")
        return [P[..., i] for i in range(self.dim)]

    def value(self, p):
        X = self._split(p)
        v = self._value(*X)
        return float(v) if v.ndim == 0 else np.array(v)

    def gradient(self, p):
        X = self._split(p)
        return np.stack([g(*X) for g in self._grad], axis=-1)

    def hessian(self, p):
        X = self._split(p)
        return np.stack([np.stack([h(*X) for h in row], axis=-1) for row in self._hess], axis=-2)

    def __call__(self, p):
        return self.value(p)

    def __repr__(self):
        return f"{type(self).__name__}(dim={self.dim}, expr={self.sympy_expr})"


def bilaplacian(expr, coords):
    """Δ²(expr) = Σ_a Σ_b ∂_aa ∂_bb expr."""
    lap = sum(sp.diff(expr, c, 2) for c in coords)
    return sp.expand(sum(sp.diff(lap, c, 2) for c in coords))


class ExactSolution(AnalyticFunction):
    """u(x) = Π_k (x_k (1 − x_k))², clamped (u = ∇u = 0) on the unit cube boundary."""

    def __init__(self, dim: int = 2):
        X = coordinates(dim)
        super().__init__(sp.Mul(*[(c * (1 - c))**2 for c in X]), dim)


class RightHandSide(AnalyticFunction):
    """f = Δ²u for the ``ExactSolution`` of the same dimension."""

    def __init__(self, dim: int = 2):
        X = coordinates(dim)
        super().__init__(bilaplacian(sp.Mul(*[(c * (1 - c))**2 for c in X]), X), dim)
