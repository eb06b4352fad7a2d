# Domain Optimization Package
from .models import OptimizationResult, OptimizationStatus, OptimizerConfig, ParameterComparison
from .ports import ReviewHistorySource

__all__ = [
    "OptimizerConfig",
    "OptimizationResult",
    "OptimizationStatus",
    "ParameterComparison",
    "ReviewHistorySource",
]
