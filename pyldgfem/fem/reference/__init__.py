# pyldgfem.fem.reference
"""
Order-agnostic reference-element factory.

A ``Ref`` evaluates a scalar Lagrange basis and its first and second
derivatives on the reference cell. Point evaluations are memoised, so the
arrays handed out are shared and must be treated as read-only.
"""
from functools import lru_cache
from importlib import import_module
import numpy as np

from pyldgfem.errors import InvalidInputError


def _q(x: float, ndp: int = 13) -> float:
    """Quantize a reference coordinate for cache keys (robust to tiny FP noise)."""
    return float(round(float(x), ndp))


class Ref:
    def __init__(self, element_type, degree, shape_lambda, deriv_lambdas, nodes):
        self.element_type = element_type
        self.degree = degree
        self.shape_lambda = shape_lambda
        self.deriv_lambdas = deriv_lambdas
        self.nodes = nodes

    @property
    def n_loc(self) -> int:
        return len(self.nodes)

    @lru_cache(maxsize=None)
    def shape(self, xi, eta):
        return self.shape_lambda(xi, eta).astype(float).ravel()

    @lru_cache(maxsize=None)
    def derivative(self, xi, eta, order_xi, order_eta):
        alpha = (order_xi, order_eta)
        if alpha not in self.deriv_lambdas:
            raise ValueError(f"Derivative order {alpha} not computed. "
                             f"Adjust max_deriv_order >= {order_xi + order_eta}.")
        return np.broadcast_to(self.deriv_lambdas[alpha](xi, eta), (self.n_loc,)).astype(float)

    @lru_cache(maxsize=None)
    def grad(self, xi, eta):
        return np.column_stack((self.derivative(xi, eta, 1, 0),
                                self.derivative(xi, eta, 0, 1)))

    @lru_cache(maxsize=None)
    def hess(self, xi, eta):
        d20 = self.derivative(xi, eta, 2, 0)
        d11 = self.derivative(xi, eta, 1, 1)
        d02 = self.derivative(xi, eta, 0, 2)
        H = np.empty((self.n_loc, 2, 2), dtype=float)
        H[:, 0, 0] = d20
        H[:, 0, 1] = d11
        H[:, 1, 0] = d11
        H[:, 1, 1] = d02
        return H

    def tabulate(self, points):
        """
        Values, gradients and Hessians at reference ``points`` (nq, 2).

        Returns arrays laid out basis-first: (n_loc, nq), (n_loc, nq, 2) and
        (n_loc, nq, 2, 2).
        """
        keys = [(_q(xi), _q(eta)) for xi, eta in np.asarray(points, dtype=float)]
        N = np.stack([self.shape(*k) for k in keys], axis=1)
        dN = np.stack([self.grad(*k) for k in keys], axis=1)
        d2N = np.stack([self.hess(*k) for k in keys], axis=1)
        return N, dN, d2N

    def __repr__(self):
        return f"<Ref {self.element_type} degree={self.degree} n_loc={self.n_loc}>"


@lru_cache(maxsize=None)
def get_reference(element_type: str, poly_order: int = 1, max_deriv_order: int = 2):
    if poly_order < 0:
        raise InvalidInputError(f"Polynomial order must be non-negative, got {poly_order}.")
    if element_type == "quad":
        shape_l, deriv_lambdas, nodes = import_module("pyldgfem.fem.reference.quad_qn").quad_qn(poly_order, max_deriv_order)
    elif element_type == "tri":
        shape_l, deriv_lambdas, nodes = import_module("pyldgfem.fem.reference.tri_pn").tri_pn(poly_order, max_deriv_order)
    else:
        raise InvalidInputError(f"Unsupported element type '{element_type}'.")
    return Ref(element_type, poly_order, shape_l, deriv_lambdas, nodes)
