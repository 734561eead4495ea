import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from pyldgfem.assembly.discrete_hessian import DiscreteHessianEngine
from pyldgfem.assembly.lifting import LiftingOperator
from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.core.mesh import Mesh
from pyldgfem.errors import InvalidInputError
from pyldgfem.utils.meshgen import structured_quad, unit_square

CENTRE = 4      # the only interior cell of a 3x3 grid


@pytest.fixture(scope="module")
def dh3():
    nodes, elems, corners = structured_quad(1.0, 1.0, nx=3, ny=3)
    mesh = Mesh(nodes, elems, corners, element_type="quad", poly_order=1)
    return DGDofHandler(mesh, 2)


@pytest.fixture(scope="module")
def engine(dh3):
    return DiscreteHessianEngine(dh3, 3)


class TestLiftingOperator:
    def test_zero_traces_lift_to_zero(self, dh3):
        op = LiftingOperator(dh3, 3)
        mass = op.cell_mass(CENTRE)
        face = op.face_data(CENTRE, 0)
        fv = face.scalar
        lifts = op.lift_traces(mass, face, np.zeros((5, fv.n_points)), np.zeros((5, fv.n_points, 2)),
                               fv.normal, 0.5)
        assert lifts.reconstruction.shape == (op.space.n_dofs, 5)
        assert not np.any(lifts.reconstruction)
        assert not np.any(lifts.value_jump)

    def test_lift_is_linear_in_the_trace(self, dh3):
        op = LiftingOperator(dh3, 3)
        mass = op.cell_mass(CENTRE)
        face = op.face_data(CENTRE, 1)
        fv = face.scalar
        one = op.lift_traces(mass, face, fv.values, fv.gradients, fv.normal, 0.5)
        two = op.lift_traces(mass, face, 2 * fv.values, 2 * fv.gradients, fv.normal, 0.5)
        for a, b in ((one.value_jump, two.value_jump), (one.reconstruction, two.reconstruction)):
            assert_allclose(b, 2 * a, atol=1e-9 * np.abs(a).max())

    def test_lifting_data_comes_from_the_space(self, dh3):
        op = LiftingOperator(dh3, 3)
        data = op.space.cell(dh3.mesh, CENTRE, 3)
        assert_allclose(op.cell_mass(CENTRE), data.mass)
        assert data.scalar.hessians.shape == (dh3.n_loc, 9, 2, 2)
        face = op.face_data(CENTRE, 2)
        assert (face.scalar.cell, face.scalar.local_face) == (CENTRE, 2)
        assert face.divergence.shape == (op.space.n_dofs, 3, 2)

    def test_boundary_face_has_no_neighbour_lift(self, dh3):
        op = LiftingOperator(dh3, 3)
        with pytest.raises(InvalidInputError):
            op.face_lifts(0, 0)

    def test_neighbour_lifts_cancel_own_lifts_on_constants(self, dh3):
        # the jump of the global constant vanishes face by face
        op = LiftingOperator(dh3, 3)
        mass = op.cell_mass(CENTRE)
        own = op.cell_lifts(CENTRE, mass)
        total_b = own.value_jump.sum(axis=1)
        for f in range(4):
            total_b += op.face_lifts(CENTRE, f, mass).value_jump.sum(axis=1)
        assert_allclose(total_b, 0.0, atol=1e-9 * np.abs(own.value_jump).max())


class TestDiscreteHessian:
    def test_table_layout(self, engine, dh3):
        table = engine.compute(CENTRE)
        assert table.cell_hessians.shape == (9, 9, 2, 2)
        assert table.interior_faces() == [0, 1, 2, 3]
        corner = engine.compute(0)
        assert corner.neighbor_hessians[0] is None
        assert corner.neighbor_hessians[3] is None
        assert corner.neighbor_hessians[1].shape == (9, 9, 2, 2)

    def test_constants_have_zero_hessian(self, engine, dh3):
        table = engine.compute(CENTRE)
        total = table.cell_hessians.sum(axis=0)
        for f in table.interior_faces():
            total += table.neighbor_hessians[f].sum(axis=0)
        assert_allclose(total, 0.0, atol=1e-9 * np.abs(table.cell_hessians).max())

    def test_linear_function(self, engine, dh3):
        u = dh3.interpolate(lambda X: 2.0 * X[:, 0] - 3.0 * X[:, 1] + 1.0)
        assert_allclose(engine.discrete_hessian_of(CENTRE, u), 0.0, atol=1e-7)

    def test_quadratic_function(self, engine, dh3):
        u = dh3.interpolate(lambda X: X[:, 0]**2 + X[:, 0] * X[:, 1])
        H = engine.discrete_hessian_of(CENTRE, u)
        assert_allclose(H, np.broadcast_to([[2.0, 1.0], [1.0, 0.0]], H.shape), atol=1e-7)

    def test_boundary_cells_see_the_clamped_boundary(self, engine, dh3):
        # u = 1 jumps against the zero boundary data
        H = engine.discrete_hessian_of(0, np.ones(dh3.n_dofs))
        assert np.abs(H).max() > 1.0

    def test_recomputation_is_identical(self, dh3):
        a = DiscreteHessianEngine(dh3, 3).compute(CENTRE)
        b = DiscreteHessianEngine(dh3, 3).compute(CENTRE)
        assert_array_equal(a.cell_hessians, b.cell_hessians)
        for Ha, Hb in zip(a.neighbor_hessians, b.neighbor_hessians):
            assert_array_equal(Ha, Hb)

    def test_cache(self, dh3):
        eng = DiscreteHessianEngine(dh3, 3, cache=True)
        assert eng.compute(1) is eng.compute(1)
        eng.clear()
        assert eng.compute(1) is not None


def test_quadratic_on_triangles():
    mesh = unit_square(2, "tri")
    dh = DGDofHandler(mesh, 2)
    engine = DiscreteHessianEngine(dh, 3)
    # triangles 10 and 11 split the interior quad (1, 1) of the 4x4 grid
    for cell in (10, 11):
        assert len(engine.compute(cell).interior_faces()) == 3
    u = dh.interpolate(lambda X: X[:, 1]**2 - X[:, 0] * X[:, 1])
    H = engine.discrete_hessian_of(10, u)
    assert_allclose(H, np.broadcast_to([[0.0, -1.0], [-1.0, 2.0]], H.shape), atol=1e-7)
