from unittest.mock import MagicMock, patch

from mneme.application.optimization.service import PersonalizationService
from mneme.domain import constants as c
from mneme.domain.optimization.models import (
    OptimizationResult,
    OptimizationStatus,
    OptimizerConfig,
    ParameterComparison,
)
from mneme.domain.optimization.ports import ReviewHistorySource
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS


def _history(events):
    repo = MagicMock(spec=ReviewHistorySource)
    repo.load_reviews.return_value = events
    return repo


def _result(status, weights=c.DEFAULT_WEIGHTS):
    return OptimizationResult(
        weights=tuple(weights),
        loss=0.3,
        log_loss=0.3,
        rmse=0.2,
        sample_size=200,
        iterations=5,
        status=status,
    )


def test_sparse_history_keeps_current_parameters(synthetic_history):
    service = PersonalizationService(_history(synthetic_history[:10]))
    outcome = service.personalize()

    assert outcome.applied is False
    assert outcome.parameters is DEFAULT_PARAMETERS
    assert outcome.comparison is None
    assert outcome.result.status is OptimizationStatus.INSUFFICIENT_REVIEWS


@patch("mneme.application.optimization.service.compare_with_defaults")
@patch("mneme.application.optimization.service.optimize")
def test_applies_weights_that_improve_fit(mock_optimize, mock_compare):
    fitted = [w * 1.01 for w in c.DEFAULT_WEIGHTS]
    mock_optimize.return_value = _result(OptimizationStatus.CONVERGED, fitted)
    mock_compare.return_value = ParameterComparison(0.35, 0.30, 14.3)

    outcome = PersonalizationService(_history([])).personalize()

    assert outcome.applied is True
    assert outcome.parameters.w == tuple(fitted)
    assert outcome.parameters.request_retention == DEFAULT_PARAMETERS.request_retention


@patch("mneme.application.optimization.service.compare_with_defaults")
@patch("mneme.application.optimization.service.optimize")
def test_rejects_weights_that_do_not_improve(mock_optimize, mock_compare):
    mock_optimize.return_value = _result(OptimizationStatus.MAX_ITERATIONS)
    mock_compare.return_value = ParameterComparison(0.30, 0.31, -3.3)

    outcome = PersonalizationService(_history([])).personalize()

    assert outcome.applied is False
    assert outcome.parameters is DEFAULT_PARAMETERS
    assert outcome.comparison.optimized_loss == 0.31


@patch("mneme.application.optimization.service.optimize")
def test_cancelled_run_is_not_applied(mock_optimize):
    mock_optimize.return_value = _result(OptimizationStatus.CANCELLED)
    outcome = PersonalizationService(_history([])).personalize()
    assert outcome.applied is False


def test_end_to_end_on_synthetic_history(synthetic_history):
    config = OptimizerConfig(max_iterations=5)
    outcome = PersonalizationService(_history(synthetic_history), config).personalize()

    assert outcome.result.status.ran
    assert outcome.comparison is not None
    if outcome.applied:
        assert outcome.comparison.optimized_loss < outcome.comparison.default_loss
        assert outcome.parameters.w == outcome.result.weights


@patch("mneme.application.optimization.service.compare_with_defaults")
@patch("mneme.application.optimization.service.optimize")
def test_short_term_fit_is_compared_and_applied_with_short_term(mock_optimize, mock_compare):
    fitted = [w * 1.01 for w in c.DEFAULT_WEIGHTS]
    mock_optimize.return_value = _result(OptimizationStatus.CONVERGED, fitted)
    mock_compare.return_value = ParameterComparison(0.35, 0.30, 14.3)
    config = OptimizerConfig(enable_short_term=True)

    outcome = PersonalizationService(_history([]), config).personalize()

    assert mock_compare.call_args.kwargs["enable_short_term"] is True
    assert outcome.applied is True
    assert outcome.parameters.enable_short_term is True
    assert outcome.parameters.w == tuple(fitted)


@patch("mneme.application.optimization.service.compare_with_defaults")
@patch("mneme.application.optimization.service.optimize")
def test_rejected_short_term_fit_leaves_flag_alone(mock_optimize, mock_compare):
    mock_optimize.return_value = _result(OptimizationStatus.CONVERGED)
    mock_compare.return_value = ParameterComparison(0.30, 0.31, -3.3)
    config = OptimizerConfig(enable_short_term=True)

    outcome = PersonalizationService(_history([]), config).personalize()

    assert outcome.applied is False
    assert outcome.parameters.enable_short_term is False
