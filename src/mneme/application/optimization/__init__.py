# Application Optimization Package
from .loss import binary_cross_entropy, l2_penalty, rmse
from .optimizer import (
    clip_weights,
    compare_with_defaults,
    compute_loss,
    numerical_gradient,
    optimize,
    validate_weights,
)
from .preprocessing import (
    ReviewSequence,
    TrainingSample,
    build_sequences,
    build_training_set,
    replay,
)
from .service import PersonalizationOutcome, PersonalizationService

__all__ = [
    "binary_cross_entropy",
    "rmse",
    "l2_penalty",
    "optimize",
    "compute_loss",
    "numerical_gradient",
    "clip_weights",
    "validate_weights",
    "compare_with_defaults",
    "ReviewSequence",
    "TrainingSample",
    "build_sequences",
    "build_training_set",
    "replay",
    "PersonalizationService",
    "PersonalizationOutcome",
]
