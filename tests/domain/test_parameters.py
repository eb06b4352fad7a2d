import json

import pytest
from pydantic import ValidationError

from mneme.domain import constants as c
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters


def test_defaults():
    params = SchedulerParameters()
    assert params.w == c.DEFAULT_WEIGHTS
    assert params.request_retention == 0.9
    assert params.maximum_interval == 36500
    assert params.learning_steps == (1.0, 10.0)
    assert params.relearning_steps == (10.0,)
    assert params.enable_fuzz is True
    assert params.enable_short_term is False


def test_factor_matches_decay():
    assert DEFAULT_PARAMETERS.factor == pytest.approx(19 / 81)


def test_parameters_are_frozen():
    with pytest.raises(ValidationError):
        DEFAULT_PARAMETERS.request_retention = 0.8  # type: ignore[misc]


@pytest.mark.parametrize(
    "overrides",
    [
        {"w": (1.0,) * 18},
        {"w": (float("nan"),) * 19},
        {"request_retention": 1.0},
        {"request_retention": 0.0},
        {"maximum_interval": 0},
        {"learning_steps": (-1.0,)},
        {"decay": 0.5},
    ],
)
def test_invalid_parameters_rejected(overrides):
    with pytest.raises(ValueError):
        SchedulerParameters(**overrides)


def test_with_weights_replaces_whole_vector():
    weights = [x * 1.1 for x in c.DEFAULT_WEIGHTS]
    updated = DEFAULT_PARAMETERS.with_weights(weights)
    assert updated.w == pytest.approx(tuple(weights))
    assert DEFAULT_PARAMETERS.w == c.DEFAULT_WEIGHTS
    assert updated.request_retention == DEFAULT_PARAMETERS.request_retention


def test_with_weights_pads_short_term_pair():
    updated = DEFAULT_PARAMETERS.with_weights(c.DEFAULT_WEIGHTS[:17])
    assert len(updated.w) == 19
    assert updated.w[17:] == c.DEFAULT_WEIGHTS[17:]


def test_json_uses_camel_case_and_round_trips():
    params = SchedulerParameters(request_retention=0.85, enable_fuzz=False)
    data = json.loads(params.to_json())
    assert data["requestRetention"] == 0.85
    assert data["enableFuzz"] is False
    assert "maximumInterval" in data
    assert SchedulerParameters.from_json(params.to_json()) == params


def test_accepts_snake_case_input():
    params = SchedulerParameters.model_validate({"request_retention": 0.8, "learningSteps": [5]})
    assert params.request_retention == 0.8
    assert params.learning_steps == (5.0,)
