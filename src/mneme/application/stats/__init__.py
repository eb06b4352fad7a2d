# Application Stats Package
from .metrics_calculator import (
    CardMetrics,
    CurvePoint,
    HourlyBucket,
    MetricsCalculator,
    WorkloadDay,
    average_retrievability,
    forecast_workload,
    forgetting_curve,
    hourly_breakdown,
    true_retention,
)

__all__ = [
    "MetricsCalculator",
    "CardMetrics",
    "CurvePoint",
    "HourlyBucket",
    "WorkloadDay",
    "forgetting_curve",
    "average_retrievability",
    "true_retention",
    "hourly_breakdown",
    "forecast_workload",
]
