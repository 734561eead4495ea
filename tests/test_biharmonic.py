import importlib.util
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from pyldgfem.errors import InvalidInputError, UnsupportedDimensionError
from pyldgfem.solvers.biharmonic import BiLaplacianLDGLift, refinement_study
from pyldgfem.solvers.parameters import LDGParameters


def test_three_dimensions_rejected():
    with pytest.raises(UnsupportedDimensionError):
        BiLaplacianLDGLift(n_refinements=1, dim=3)


def test_single_run_is_symmetric():
    problem = BiLaplacianLDGLift(n_refinements=2, fe_degree=2)
    errors = problem.run()
    assert problem.mesh.n_elements == 16
    assert problem.dof_handler.n_dofs == 144
    assert errors.h2 > errors.h1 > errors.l2 > 0
    # u is symmetric in x <-> y, so is the discrete solution at mirrored nodes
    dh = problem.dof_handler
    X = dh.dof_coordinates()
    u = problem.solution
    n = 4
    for cell in problem.mesh.cell_ids():
        mirror = (cell % n) * n + cell // n
        lookup = {tuple(np.round(X[d, ::-1], 12)): u[d] for d in dh.cell_dofs(mirror)}
        for d in dh.cell_dofs(cell):
            assert np.isclose(lookup[tuple(np.round(X[d], 12))], u[d], rtol=1e-6, atol=1e-10)


def test_parallel_run_matches_serial():
    serial = BiLaplacianLDGLift(1, 2).run()
    threaded = BiLaplacianLDGLift(1, params=LDGParameters(fe_degree=2, n_workers=3)).run()
    assert serial == threaded


def test_convergence():
    study = refinement_study([2, 3, 4], fe_degree=2, penalty_jump_grad=1.0, penalty_jump_val=1.0)
    h2 = [lvl.errors.h2 for lvl in study["levels"]]
    l2 = [lvl.errors.l2 for lvl in study["levels"]]
    assert h2[0] > h2[1] > h2[2]
    assert l2[0] > l2[1] > l2[2]
    # the discrete-Hessian error approaches first order from below
    rates = study["rates"]["h2"]
    assert rates[1] > rates[0]
    assert rates[-1] > 0.8
    assert study["levels"][-1].n_cells == 256


def test_convergence_broken_hessian():
    study = refinement_study([2, 3, 4], fe_degree=2, hessian="broken")
    rates = study["rates"]["h2"]
    assert np.all(rates > 0.9)
    assert np.all(rates < 1.2)


def test_unknown_hessian_rejected_before_solving():
    with pytest.raises(InvalidInputError):
        BiLaplacianLDGLift(n_refinements=1, hessian="brokn")


def _load_example():
    path = Path(__file__).resolve().parents[1] / "examples" / "biharmonic_ldg.py"
    spec = importlib.util.spec_from_file_location("biharmonic_ldg", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_example_script_writes_table(tmp_path):
    example = _load_example()
    out = tmp_path / "table.csv"
    assert example.main(["--levels", "0", "1", "--degree", "1", "--csv", str(out)]) == 0
    table = pd.read_csv(out)
    assert list(table["cells"]) == [1, 4]
    assert np.isnan(table["rate H2"][0])


def test_example_script_reports_failure():
    example = _load_example()
    assert example.main(["--levels", "1", "--degree", "0"]) == 1
