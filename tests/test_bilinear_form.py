import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from pyldgfem.assembly.bilinear_form import BilinearFormAssembler
from pyldgfem.assembly.discrete_hessian import DiscreteHessianEngine
from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.solvers.parameters import LDGParameters
from pyldgfem.utils.meshgen import unit_square


@pytest.fixture(scope="module")
def setup4():
    """4x4 quads, Q2, both penalties 1."""
    dh = DGDofHandler(unit_square(2), 2)
    params = LDGParameters(fe_degree=2)
    engine = DiscreteHessianEngine(dh, params.quad_order, cache=True)
    asm = BilinearFormAssembler(dh, params, engine=engine)
    return dh, engine, asm, asm.assemble()


def test_matrix_is_symmetric(setup4):
    _, _, _, A = setup4
    D = A.toarray()
    assert_allclose(D, D.T, atol=1e-10 * np.abs(D).max())


def test_pattern_within_sparsity_pattern(setup4):
    dh, _, _, A = setup4
    P = dh.sparsity_pattern().toarray()
    assert not np.any((A.toarray() != 0) & ~P)


def test_energy_of_constant(setup4):
    dh, engine, asm, A = setup4
    ones = np.ones(dh.n_dofs)
    energy = 0.0
    for cell in dh.mesh.cell_ids():
        H = engine.discrete_hessian_of(cell, ones)
        energy += np.sum(np.einsum('qrs,qrs->q', H, H) * engine.compute(cell).JxW)
    # boundary value penalty: gamma_0 / h^3 * |F| over 16 faces with h = 1/4
    energy += 16 * asm.params.penalty_jump_val / 0.25**2
    assert np.isclose(ones @ (A @ ones), energy, rtol=1e-8)


def test_constants_in_kernel_away_from_boundary(quad_mesh):
    # on a 5x5 grid the centre cell and all its neighbours are interior
    dh = DGDofHandler(quad_mesh(5), 2)
    A = BilinearFormAssembler(dh).assemble()
    r = A @ np.ones(dh.n_dofs)
    scale = abs(A).max()
    assert_allclose(r[dh.cell_dofs(12)], 0.0, atol=1e-8 * scale)
    # the corner cell does see the clamped boundary
    assert np.abs(r[dh.cell_dofs(0)]).max() > 1e-6 * scale


def test_visited_once_equals_halved_double_count(setup4):
    _, _, asm, _ = setup4
    once = asm.assemble_penalty(visit_once=True, include_boundary=False).toarray()
    twice = asm.assemble_penalty(visit_once=False, include_boundary=False).toarray()
    assert_allclose(0.5 * twice, once, atol=1e-12 * np.abs(once).max())


def test_full_matrix_is_sum_of_parts(setup4):
    _, _, asm, A = setup4
    B = asm.assemble_consistency() + asm.assemble_penalty()
    assert_allclose(A.toarray(), B.toarray(), atol=1e-12 * np.abs(A).max())


def test_parallel_equals_serial(setup4):
    _, _, asm, A = setup4
    A4 = asm.assemble(n_workers=4)
    assert_array_equal(A.toarray(), A4.toarray())


def test_assembly_is_idempotent(setup4):
    _, _, asm, A = setup4
    assert_array_equal(asm.assemble().toarray(), A.toarray())


def test_penalty_face_block(setup4):
    dh, _, asm, _ = setup4
    blk = asm.penalty_face_block(5, 1)
    assert_allclose(blk.nc, blk.cn.T)
    full = blk.cc + blk.cn + blk.nc + blk.nn
    assert abs(full.sum()) < 1e-10 * np.abs(blk.cc).max()
    boundary = asm.penalty_face_block(0, 0)
    assert boundary.cn is None and boundary.nn is None
    # sum of the value part: gamma_0 / h^3 * |F|
    assert np.isclose(boundary.cc.sum(), 1.0 / 0.25**2)


def test_positive_definite():
    dh = DGDofHandler(unit_square(1), 2)
    A = BilinearFormAssembler(dh, LDGParameters(fe_degree=2, penalty_jump_grad=0.5, penalty_jump_val=2.0)).assemble()
    assert np.linalg.eigvalsh(A.toarray()).min() > 0
