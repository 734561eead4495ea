from functools import lru_cache
import sympy as sp
import numpy as np


@lru_cache(maxsize=None)
def tri_pn(n: int, max_deriv_order: int = 2):
    """
    Lagrange P_n on the reference triangle (0,0)-(1,0)-(0,1).

    Args:
        n: Polynomial order of the element.
        max_deriv_order: Maximum total derivative order to compute.

    Returns:
        tuple: (shape_fn, deriv_fns, nodes)
            - shape_fn(xi, eta) -> (N,) shape function values.
            - deriv_fns[(alpha_xi, alpha_eta)](xi, eta) -> (N,) derivative values.
            - nodes: (N, 2) reference node coordinates, rows of constant eta
              with xi running fastest.
    """
    if n < 0:
        raise ValueError("Polynomial order n must be non-negative.")
    xi_sym, eta_sym = sp.symbols("xi eta")

    if n == 0:
        nodes_ref = [(sp.Rational(1, 3), sp.Rational(1, 3))]
        monomials = [sp.Integer(1)]
    else:
        nodes_ref = [(sp.Rational(i, n), sp.Rational(j, n))
                     for j in range(n + 1) for i in range(n + 1 - j)]
        monomials = [xi_sym**p * eta_sym**(d - p)
                     for d in range(n + 1) for p in range(d + 1)]

    # Vandermonde matrix V[node, monomial]; Lagrange coefficients are rows of V^{-T}
    V = sp.Matrix([[m.subs({xi_sym: a, eta_sym: b}) for m in monomials] for a, b in nodes_ref])
    coeffs = V.T.inv()
    basis = [sp.expand((coeffs.row(k) * sp.Matrix(monomials))[0, 0]) for k in range(len(nodes_ref))]

    def _vectorize(exprs):
        fns = [sp.lambdify((xi_sym, eta_sym), e, "numpy") for e in exprs]
        return lambda xi, eta: np.array([f(xi, eta) for f in fns], dtype=float)

    derivs = {}
    for a in range(max_deriv_order + 1):
        for b in range(max_deriv_order + 1 - a):
            derivs[(a, b)] = _vectorize([sp.diff(phi, xi_sym, a, eta_sym, b) for phi in basis])

    nodes = np.array([[float(a), float(b)] for a, b in nodes_ref], dtype=float)
    return derivs[(0, 0)], derivs, nodes
