# conftest.py
import matplotlib
import pytest

from pyldgfem.core.mesh import Mesh
from pyldgfem.utils.meshgen import structured_quad


@pytest.fixture(autouse=True)
def mpl_test_backend():
    """Switch to a non-interactive backend for all tests."""
    matplotlib.use('Agg')


@pytest.fixture
def quad_mesh():
    """``quad_mesh(n)`` -> unit square split into n x n bilinear cells."""
    def _make(n):
        nodes, elems, corners = structured_quad(1.0, 1.0, nx=n, ny=n)
        return Mesh(nodes, element_connectivity=elems,
                    elements_corner_nodes=corners, element_type="quad", poly_order=1)
    return _make
