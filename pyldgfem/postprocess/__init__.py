from .errors import ErrorEvaluator, ErrorNorms, convergence_rates

__all__ = ["ErrorEvaluator", "ErrorNorms", "convergence_rates"]
