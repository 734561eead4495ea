from functools import lru_cache
import sympy as sp
import numpy as np


@lru_cache(maxsize=None)
def _lagrange_basis_1d(n: int, max_deriv_order: int):
    """Return 1D Lagrange basis + derivatives on [-1,1] as numpy-callable lambdas."""
    x = sp.symbols('x')
    nodes = [sp.Integer(-1)] if n == 0 else [sp.Rational(2 * i, n) - 1 for i in range(n + 1)]
    L = []
    dL = {k: [] for k in range(max_deriv_order + 1)}
    for i, xi in enumerate(nodes):
        Li = sp.Integer(1)
        for j, xj in enumerate(nodes):
            if i != j:
                Li *= (x - xj) / (xi - xj)
        Li = sp.expand(Li)
        L.append(sp.lambdify(x, Li, 'numpy'))
        for k in range(max_deriv_order + 1):
            dL[k].append(sp.lambdify(x, sp.diff(Li, x, k), 'numpy'))
    return np.array([float(v) for v in nodes]), L, dL


@lru_cache(maxsize=None)
def quad_qn(n: int, max_deriv_order: int = 2):
    """
    Tensor-product Lagrange Q_n on [-1,1]^2 with equispaced nodes.

    Returns ``(shape_fn, deriv_fns, nodes)`` where
      shape_fn(xi, eta)               -> ((n+1)^2,)
      deriv_fns[(ax, ay)](xi, eta)    -> ((n+1)^2,),  ax + ay <= max_deriv_order
      nodes                           -> ((n+1)^2, 2) reference node coordinates
    Stacking order is (eta outer, xi inner): index = j*(n+1) + i.
    """
    nodes1d, L, dL = _lagrange_basis_1d(n, max_deriv_order)

    def _eval_1d(fns, z):
        return np.array([f(z) for f in fns], dtype=float)

    def shape(xi, eta):
        return np.outer(_eval_1d(L, eta), _eval_1d(L, xi)).reshape(-1)

    derivs = {}
    for ax in range(max_deriv_order + 1):
        for ay in range(max_deriv_order + 1 - ax):
            def make(ax=ax, ay=ay):
                def d(xi, eta):
                    return np.outer(_eval_1d(dL[ay], eta), _eval_1d(dL[ax], xi)).reshape(-1)
                return d
            derivs[(ax, ay)] = make()

    nodes = np.array([[xi, eta] for eta in nodes1d for xi in nodes1d], dtype=float)
    return shape, derivs, nodes
