import pytest

from pyldgfem.errors import InvalidInputError
from pyldgfem.solvers.parameters import LDGParameters, LocalSolverParameters


def test_defaults(monkeypatch):
    monkeypatch.delenv("PYLDGFEM_NUM_WORKERS", raising=False)
    p = LDGParameters()
    assert p.fe_degree == 2
    assert p.quad_order == 3
    assert p.n_workers is None
    assert p.local_solver == LocalSolverParameters(rtol=1e-12, atol=1e-12, maxit=1000)


def test_quad_order_follows_degree():
    assert LDGParameters(fe_degree=3).quad_order == 4
    assert LDGParameters(fe_degree=3, quad_order=6).quad_order == 6


def test_workers_from_environment(monkeypatch):
    monkeypatch.setenv("PYLDGFEM_NUM_WORKERS", "3")
    assert LDGParameters().n_workers == 3
    monkeypatch.setenv("PYLDGFEM_NUM_WORKERS", "many")
    with pytest.raises(InvalidInputError):
        LDGParameters()


@pytest.mark.parametrize("kwargs", [dict(fe_degree=0), dict(penalty_jump_val=-1.0), dict(n_workers=0)])
def test_invalid(kwargs, monkeypatch):
    monkeypatch.delenv("PYLDGFEM_NUM_WORKERS", raising=False)
    with pytest.raises(InvalidInputError):
        LDGParameters(**kwargs)
