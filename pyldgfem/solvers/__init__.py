from .parameters import LDGParameters, LinearSolverParameters, LocalSolverParameters
from .local_solver import LocalSolver

__all__ = ["LDGParameters", "LinearSolverParameters", "LocalSolverParameters", "LocalSolver"]
