import numpy as np
import pytest
from numpy.testing import assert_allclose

from pyldgfem.errors import InvalidInputError
from pyldgfem.fem.reference import get_reference

POINTS = {
    "quad": np.array([[-0.3, 0.7], [0.1, -0.9], [0.55, 0.25]]),
    "tri": np.array([[0.2, 0.3], [0.6, 0.1], [0.05, 0.9]]),
}


@pytest.mark.parametrize("element_type", ["quad", "tri"])
@pytest.mark.parametrize("degree", [1, 2, 3])
def test_partition_of_unity(element_type, degree):
    ref = get_reference(element_type, degree)
    N, dN, d2N = ref.tabulate(POINTS[element_type])
    assert_allclose(N.sum(axis=0), 1.0, atol=1e-12)
    assert_allclose(dN.sum(axis=0), 0.0, atol=1e-11)
    assert_allclose(d2N.sum(axis=0), 0.0, atol=1e-10)


@pytest.mark.parametrize("element_type, degree, n_loc", [("quad", 2, 9), ("tri", 2, 6), ("quad", 3, 16)])
def test_nodal_basis(element_type, degree, n_loc):
    ref = get_reference(element_type, degree)
    assert ref.n_loc == n_loc
    N, _, _ = ref.tabulate(ref.nodes)
    assert_allclose(N, np.eye(n_loc), atol=1e-12)


def test_hessian_is_symmetric():
    ref = get_reference("quad", 2)
    H = ref.hess(0.3, -0.2)
    assert_allclose(H, np.swapaxes(H, 1, 2))


def test_reproduces_quadratics():
    # Q2 interpolant of x^2 y is exact; its Hessian at any point is [[2y, 2x], [2x, 0]]
    ref = get_reference("quad", 2)
    coeff = ref.nodes[:, 0]**2 * ref.nodes[:, 1]
    xi, eta = 0.4, -0.6
    assert_allclose(np.einsum('i,irs->rs', coeff, ref.hess(xi, eta)),
                    [[2 * eta, 2 * xi], [2 * xi, 0.0]], atol=1e-12)


def test_unknown_element_raises():
    with pytest.raises(InvalidInputError):
        get_reference("hex", 1)
