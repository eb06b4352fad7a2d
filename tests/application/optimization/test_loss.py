import math

import pytest

from mneme.application.optimization.loss import binary_cross_entropy, l2_penalty, rmse


def test_binary_cross_entropy_known_value():
    loss = binary_cross_entropy([0.9, 0.2], [True, False])
    assert loss == pytest.approx(-(math.log(0.9) + math.log(0.8)) / 2)


def test_binary_cross_entropy_clamps_certain_misses():
    loss = binary_cross_entropy([1.0, 0.0], [False, True])
    assert math.isfinite(loss)
    assert loss == pytest.approx(-math.log(1e-10))


def test_binary_cross_entropy_empty():
    assert binary_cross_entropy([], []) == 0.0


def test_rmse():
    assert rmse([1.0, 0.0], [True, False]) == 0.0
    assert rmse([0.5, 0.5], [True, False]) == pytest.approx(0.5)
    assert rmse([], []) == 0.0


def test_l2_penalty():
    assert l2_penalty([1.0, 2.0, -2.0], 0.1) == pytest.approx(0.9)
    assert l2_penalty([5.0], 0.0) == 0.0
