from .scatter import TripletBuffer
from .lifting import LiftingOperator, LocalLifts
from .discrete_hessian import DiscreteHessianEngine, DiscreteHessianTable
from .bilinear_form import BilinearFormAssembler, PenaltyFaceBlock
from .load_vector import LoadAssembler

__all__ = ["TripletBuffer", "LiftingOperator", "LocalLifts",
           "DiscreteHessianEngine", "DiscreteHessianTable",
           "BilinearFormAssembler", "PenaltyFaceBlock", "LoadAssembler"]
