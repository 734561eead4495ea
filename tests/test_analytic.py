import numpy as np
import pytest
import sympy as sp
from numpy.testing import assert_allclose

from pyldgfem.errors import InvalidInputError, UnsupportedDimensionError
from pyldgfem.fem.analytic import (AnalyticFunction, ExactSolution, RightHandSide,
                                   bilaplacian, coordinates)


def test_exact_solution_values():
    u = ExactSolution(2)
    assert np.isclose(u.value([0.5, 0.5]), 0.0625**2)
    assert u.value([0.0, 0.3]) == 0.0
    assert_allclose(u.gradient([0.0, 0.3]), 0.0)
    assert_allclose(u.gradient([1.0, 1.0]), 0.0)
    assert_allclose(u.gradient([0.5, 0.5]), 0.0, atol=1e-15)


def test_right_hand_side_at_centre():
    # Δ²(X²Y²) with X = x(1-x): 24 Y² + 2 (X²)''(Y²)'' + 24 X² = 1.5 + 2 + 1.5
    f = RightHandSide(2)
    assert np.isclose(f.value([0.5, 0.5]), 5.0)


def test_batch_shapes():
    u = ExactSolution(2)
    P = np.random.default_rng(1).random((4, 3, 2))
    assert u.value(P).shape == (4, 3)
    assert u.gradient(P).shape == (4, 3, 2)
    H = u.hessian(P)
    assert H.shape == (4, 3, 2, 2)
    assert_allclose(H, np.swapaxes(H, -1, -2))


def test_constant_expression_broadcasts():
    c = AnalyticFunction(sp.Integer(3), 2)
    assert_allclose(c.value(np.zeros((5, 2))), 3.0)
    assert_allclose(c.hessian(np.zeros((5, 2))), 0.0)


def test_three_dimensions():
    u = ExactSolution(3)
    assert np.isclose(u.value([0.5, 0.5, 0.5]), 0.0625**3)
    assert u.hessian([0.2, 0.4, 0.6]).shape == (3, 3)
    X = coordinates(3)
    assert sp.simplify(bilaplacian(u.sympy_expr, X) - RightHandSide(3).sympy_expr) == 0


def test_gradient_matches_finite_differences():
    u = ExactSolution(2)
    p = np.array([0.3, 0.7])
    eps = 1e-6
    fd = [(u.value(p + eps * e) - u.value(p - eps * e)) / (2 * eps) for e in np.eye(2)]
    assert_allclose(u.gradient(p), fd, rtol=1e-6)


@pytest.mark.parametrize("dim", [0, 1, 4])
def test_unsupported_dimension(dim):
    with pytest.raises(UnsupportedDimensionError) as excinfo:
        ExactSolution(dim)
    assert isinstance(excinfo.value, InvalidInputError)
    assert excinfo.value.dim == dim


def test_foreign_symbols_rejected():
    with pytest.raises(InvalidInputError):
        AnalyticFunction(sp.Symbol("t") * sp.Symbol("x0", real=True), 2)


def test_wrong_point_dimension():
    with pytest.raises(InvalidInputError):
        ExactSolution(2).value([0.1, 0.2, 0.3])
