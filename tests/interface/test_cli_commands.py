"""Tests for CLI commands: review, preview, curve, optimize, stats, params and config."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from mneme.domain.scheduling.models import Card, CardState
from mneme.domain.scheduling.parameters import SchedulerParameters
from mneme.infrastructure.adapters.card_files import save_card
from mneme.interface.cli import app

runner = CliRunner()

NOW = "2024-01-01T09:00:00+00:00"


@pytest.fixture(autouse=True)
def isolated_home(mock_home):
    return mock_home


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition" in result.stdout
    assert "review" in result.stdout
    assert "optimize" in result.stdout


# --- Review ---


def test_review_new_card_json(tmp_path):
    card_file = tmp_path / "kanji.json"
    result = runner.invoke(
        app, ["review", str(card_file), "--rating", "good", "--now", NOW, "--json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["card"]["state"] == "learning"
    assert data["card"]["card_id"] == "kanji"
    assert data["log"]["state"] == "new"
    assert not card_file.exists()


def test_review_write_persists_card(tmp_path):
    card_file = tmp_path / "kanji.json"
    result = runner.invoke(
        app, ["review", str(card_file), "-r", "4", "--now", NOW, "--write"]
    )

    assert result.exit_code == 0
    assert "new -> review" in result.stdout
    assert "Saved" in result.stdout
    saved = json.loads(card_file.read_text())
    assert saved["state"] == "review"
    assert saved["reps"] == 1


def test_review_invalid_rating(tmp_path):
    result = runner.invoke(app, ["review", str(tmp_path / "c.json"), "--rating", "perfect"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_review_card_without_offsets(tmp_path):
    card_file = tmp_path / "c.json"
    card_file.write_text(
        json.dumps(
            {
                "due": "2024-01-05T00:00:00",
                "state": "review",
                "difficulty": 5.0,
                "stability": 4.0,
                "last_review": "2024-01-01T00:00:00",
                "reps": 3,
            }
        )
    )
    result = runner.invoke(
        app, ["review", str(card_file), "-r", "good", "--now", "2024-01-06T00:00:00Z", "--json"]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["log"]["elapsed_days"] == pytest.approx(5.0)
    assert data["card"]["last_review"] == "2024-01-06T00:00:00+00:00"


def test_review_uses_params_file(tmp_path):
    params_file = tmp_path / "p.yaml"
    params_file.write_text("learningSteps: []\n")
    result = runner.invoke(
        app,
        [
            "review",
            str(tmp_path / "c.json"),
            "--rating",
            "again",
            "--now",
            NOW,
            "--params",
            str(params_file),
            "--json",
        ],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["card"]["state"] == "review"


# --- Preview ---


def _mature_card(path: Path) -> None:
    save_card(
        path,
        Card.from_dict(
            {
                "due": NOW,
                "state": "review",
                "difficulty": 5.0,
                "stability": 10.0,
                "last_review": "2023-12-27T09:00:00+00:00",
                "reps": 4,
                "card_id": "m",
            }
        ),
    )


def test_preview_json(tmp_path):
    card_file = tmp_path / "m.json"
    _mature_card(card_file)

    result = runner.invoke(app, ["preview", str(card_file), "--now", NOW, "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    intervals = data["intervals"]
    assert intervals["again"] < intervals["hard"] <= intervals["good"] <= intervals["easy"]
    assert 0 < data["retrievability"] < 1
    # Preview never writes
    assert json.loads(card_file.read_text())["state"] == "review"


def test_preview_text(tmp_path):
    card_file = tmp_path / "m.json"
    _mature_card(card_file)
    result = runner.invoke(app, ["preview", str(card_file), "--now", NOW])
    assert result.exit_code == 0
    assert "again" in result.stdout
    assert "10m" in result.stdout


# --- Curve ---


def test_curve_json():
    result = runner.invoke(
        app, ["curve", "--stability", "10", "--days", "20", "--points", "2", "--json"]
    )
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert len(data) == 3
    assert data[1]["retention"] == pytest.approx(90.0)


def test_curve_rejects_non_positive_stability():
    result = runner.invoke(app, ["curve", "--stability", "0"])
    assert result.exit_code == 1


# --- Optimize ---


def _write_history(path: Path, events) -> None:
    path.write_text("\n".join(json.dumps(e.to_dict()) for e in events) + "\n")


def test_optimize_sparse_history(tmp_path, synthetic_history):
    history = tmp_path / "h.jsonl"
    _write_history(history, synthetic_history[:20])

    result = runner.invoke(app, ["optimize", str(history), "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["status"] == "insufficient_reviews"
    assert data["iterations"] == 0
    assert data["applied"] is False


def test_optimize_writes_fitted_parameters(tmp_path, synthetic_history):
    history = tmp_path / "h.jsonl"
    out = tmp_path / "fitted.yaml"
    _write_history(history, synthetic_history)

    result = runner.invoke(
        app, ["optimize", str(history), "--max-iterations", "3", "--out", str(out)]
    )

    assert result.exit_code == 0
    assert "Status:" in result.stdout
    # Only written when the fitted weights beat the starting ones
    if out.exists():
        fitted = SchedulerParameters.model_validate(yaml.safe_load(out.read_text()))
        assert len(fitted.w) == 19


@patch("mneme.application.optimization.service.PersonalizationService.personalize")
def test_optimize_reports_not_enough_data(mock_personalize, tmp_path):
    history = tmp_path / "h.csv"
    history.write_text("cardId,rating,reviewedAt\n")
    outcome = MagicMock()
    outcome.result.status.value = "insufficient_reviews"
    outcome.result.status.ran = False
    outcome.result.sample_size = 0
    outcome.result.iterations = 0
    mock_personalize.return_value = outcome

    result = runner.invoke(app, ["optimize", str(history)])

    assert result.exit_code == 0
    assert "Not enough data" in result.stdout


def test_optimize_malformed_history(tmp_path):
    history = tmp_path / "h.jsonl"
    history.write_text('{"cardId": "a"}\n')
    result = runner.invoke(app, ["optimize", str(history)])
    assert result.exit_code == 1
    assert "line 1" in result.output


def test_optimize_unknown_format(tmp_path):
    result = runner.invoke(app, ["optimize", str(tmp_path / "h.txt")])
    assert result.exit_code == 1


# --- Stats ---


def test_stats_json(tmp_path):
    mature = tmp_path / "m.json"
    _mature_card(mature)
    fresh = tmp_path / "fresh.json"

    result = runner.invoke(
        app, ["stats", str(mature), str(fresh), "--now", NOW, "--forecast-days", "3", "--json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["total"] == 2
    assert data["by_state"][CardState.NEW.value] == 1
    assert data["by_state"][CardState.REVIEW.value] == 1
    assert len(data["forecast"]) == 3
    assert data["weak"] == []


# --- Params ---


def test_params_show_defaults():
    result = runner.invoke(app, ["params", "show"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["requestRetention"] == 0.9
    assert len(data["w"]) == 19


def test_params_show_file(tmp_path):
    path = tmp_path / "p.json"
    path.write_text(json.dumps({"requestRetention": 0.8}))
    result = runner.invoke(app, ["params", "show", str(path)])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["requestRetention"] == 0.8


def test_params_show_invalid_file(tmp_path):
    path = tmp_path / "p.json"
    path.write_text(json.dumps({"w": [1, 2, 3]}))
    result = runner.invoke(app, ["params", "show", str(path)])
    assert result.exit_code == 1


# --- Config ---


@patch("mneme.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config):
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "parameters_file": Path("/tmp/params.yaml"),
        "max_iterations": 500,
        "verbose": 0,
    }
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["parameters_file"] == str(Path("/tmp/params.yaml"))
    assert output_data["max_iterations"] == 500


def test_config_show_reads_environment(monkeypatch):
    monkeypatch.setenv("MNEME_MIN_REVIEWS", "12")
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["min_reviews"] == 12


def test_verbose_flag_is_accepted():
    result = runner.invoke(app, ["-vv", "params", "show"])
    assert result.exit_code == 0
