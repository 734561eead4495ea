"""pyldgfem.solvers.biharmonic
Driver for the clamped bi-Laplacian on the unit square.

    Δ²u = f in Ω = (0, 1)²,    u = ∇u·n = 0 on ∂Ω

The boundary conditions enter weakly through the boundary lifts and the
boundary penalty terms. The manufactured solution is
``u = Π (x_k (1 − x_k))²`` and ``f`` its bi-Laplacian.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from pyldgfem.assembly.bilinear_form import BilinearFormAssembler
from pyldgfem.assembly.discrete_hessian import DiscreteHessianEngine
from pyldgfem.assembly.load_vector import LoadAssembler
from pyldgfem.core.dofhandler import DGDofHandler
from pyldgfem.errors import InvalidInputError, UnsupportedDimensionError
from pyldgfem.fem.analytic import ExactSolution, RightHandSide
from pyldgfem.postprocess.errors import HESSIAN_CHOICES, ErrorEvaluator, ErrorNorms, convergence_rates
from pyldgfem.solvers.linear import solve_linear_system
from pyldgfem.solvers.local_solver import LocalSolver
from pyldgfem.solvers.parameters import LDGParameters
from pyldgfem.utils.meshgen import unit_square

logger = logging.getLogger(__name__)

_SUPPORTED_DIMS = (2,)


class BiLaplacianLDGLift:
    """
    LDG discretisation with lifting operators.

    ``run()`` executes ``make_grid → setup_system → assemble_system →
    solve → compute_errors`` and returns the error norms.
    """

    def __init__(self, n_refinements: int = 3, fe_degree: int = 2,
                 penalty_jump_grad: float = 1.0, penalty_jump_val: float = 1.0,
                 element_type: str = "quad", dim: int = 2,
                 params: Optional[LDGParameters] = None,
                 hessian: str = "discrete"):
        if dim not in _SUPPORTED_DIMS:
            raise UnsupportedDimensionError(dim, _SUPPORTED_DIMS)
        if hessian not in HESSIAN_CHOICES:
            raise InvalidInputError(f"hessian must be one of {HESSIAN_CHOICES}, got {hessian!r}.")
        self.n_refinements = n_refinements
        self.element_type = element_type
        self.dim = dim
        self.hessian = hessian
        self.params = params or LDGParameters(fe_degree=fe_degree,
                                              penalty_jump_grad=penalty_jump_grad,
                                              penalty_jump_val=penalty_jump_val)
        self.exact = ExactSolution(dim)
        self.rhs_function = RightHandSide(dim)

        self.mesh = None
        self.dof_handler: Optional[DGDofHandler] = None
        self.engine: Optional[DiscreteHessianEngine] = None
        self.matrix = None
        self.rhs = None
        self.solution: Optional[np.ndarray] = None
        self.errors: Optional[ErrorNorms] = None

    @property
    def fe_degree(self) -> int:
        return self.params.fe_degree

    def make_grid(self):
        logger.info("Building the mesh............")
        self.mesh = unit_square(self.n_refinements, self.element_type)
        return self.mesh

    def setup_system(self):
        logger.info("Setting up the system........")
        self.dof_handler = DGDofHandler(self.mesh, self.fe_degree)
        self.engine = DiscreteHessianEngine(self.dof_handler, self.params.quad_order,
                                            LocalSolver(self.params.local_solver), cache=True)
        logger.info("Number of degrees of freedom: %d", self.dof_handler.n_dofs)
        self.rhs = np.zeros(self.dof_handler.n_dofs)
        self.solution = np.zeros(self.dof_handler.n_dofs)

    def assemble_matrix(self):
        assembler = BilinearFormAssembler(self.dof_handler, self.params, engine=self.engine)
        self.matrix = assembler.assemble()
        return self.matrix

    def assemble_rhs(self):
        self.rhs = LoadAssembler(self.dof_handler, self.params.quad_order).assemble(self.rhs_function.value)
        return self.rhs

    def assemble_system(self):
        logger.info("Assembling the system........")
        self.assemble_matrix()
        self.assemble_rhs()

    def solve(self):
        logger.info("Solving the system...........")
        self.solution = solve_linear_system(self.matrix, self.rhs, self.params.linear_solver)
        return self.solution

    def compute_errors(self) -> ErrorNorms:
        evaluator = ErrorEvaluator(self.dof_handler, self.params.quad_order, self.engine)
        self.errors = evaluator.evaluate(self.solution, self.exact, hessian=self.hessian)
        return self.errors

    def run(self) -> ErrorNorms:
        self.make_grid()
        self.setup_system()
        self.assemble_system()
        self.solve()
        errors = self.compute_errors()
        # tables are only needed while this level is alive
        self.engine.clear()
        return errors


@dataclass
class RefinementLevel:
    n_refinements: int
    n_cells: int
    n_dofs: int
    h: float
    errors: ErrorNorms


def refinement_study(levels: Sequence[int], fe_degree: int = 2,
                     penalty_jump_grad: float = 1.0, penalty_jump_val: float = 1.0,
                     element_type: str = "quad", **kwargs) -> Dict[str, object]:
    """
    Solve on each refinement level and report errors and observed rates.

    Returns ``{"levels": [RefinementLevel, ...], "rates": {"h2": ..., "h1": ..., "l2": ...}}``.
    """
    results: List[RefinementLevel] = []
    for n in levels:
        problem = BiLaplacianLDGLift(n, fe_degree, penalty_jump_grad, penalty_jump_val,
                                     element_type, **kwargs)
        errors = problem.run()
        results.append(RefinementLevel(n, problem.mesh.n_elements, problem.dof_handler.n_dofs,
                                       problem.mesh.max_diameter(), errors))
    hs = [r.h for r in results]
    rates = {name: convergence_rates([getattr(r.errors, name) for r in results], hs)
             for name in ("h2", "h1", "l2")}
    for i in range(1, len(results)):
        logger.info("Level %d: rates H2 %.2f  H1 %.2f  L2 %.2f", results[i].n_refinements,
                    rates["h2"][i - 1], rates["h1"][i - 1], rates["l2"][i - 1])
    return {"levels": results, "rates": rates}
