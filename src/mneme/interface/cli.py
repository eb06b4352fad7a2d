"""mneme CLI: review, preview and optimize commands plus config/params subgroups."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer

from mneme.application.config import resolve_config
from mneme.domain.scheduling.models import Rating
from mneme.domain.scheduling.parameters import SchedulerParameters

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mneme: spaced-repetition scheduler and parameter optimizer.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

params_app = typer.Typer(help="Inspect scheduler parameter files.", no_args_is_help=True)
app.add_typer(params_app, name="params")

config_app = typer.Typer(help="Manage mneme configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextmanager
def _user_errors() -> Iterator[None]:
    """Report bad input as a red one-liner and exit 1."""
    try:
        yield
    except (ValueError, OSError) as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _parse_now(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    now = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now


def _load_params(path: Path | None) -> SchedulerParameters:
    from mneme.infrastructure.adapters.parameter_store import ParameterStore

    path = path or resolve_config().parameters_file
    if path is None:
        from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS

        return DEFAULT_PARAMETERS
    return ParameterStore(path).load()


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for mneme."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    card_file: Annotated[
        Path, typer.Argument(help="Card JSON file. A missing file starts a new card.")
    ],
    rating: Annotated[str, typer.Option("--rating", "-r", help="again, hard, good, easy or 1-4.")],
    now: Annotated[str | None, typer.Option(help="Review time (ISO-8601), default now.")] = None,
    params_file: Annotated[
        Path | None, typer.Option("--params", help="Parameter file (JSON or YAML).")
    ] = None,
    write: Annotated[
        bool, typer.Option("--write", help="Save the updated card back to CARD_FILE.")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Review[/bold green] a card and show its next schedule."""
    from mneme.application.scheduling.scheduler import schedule_review
    from mneme.application.utils.formatting import format_interval
    from mneme.infrastructure.adapters.card_files import load_card, save_card

    with _user_errors():
        review_time = _parse_now(now)
        params = _load_params(params_file)
        card = load_card(card_file, review_time)
        result = schedule_review(card, Rating.parse(rating), review_time, params)
        if write:
            save_card(card_file, result.card)

    if json_output:
        payload = {"card": result.card.to_dict(), "log": result.log.to_dict()}
        typer.echo(json.dumps(payload, indent=2))
        return

    updated = result.card
    typer.echo(
        f"{result.log.state.value} -> {updated.state.value}"
        f"  due in {format_interval(updated.scheduled_days)} ({updated.due.isoformat()})"
    )
    typer.echo(
        f"Stability: {updated.stability:.2f}d  Difficulty: {updated.difficulty:.2f}"
        f"  Reps: {updated.reps}  Lapses: {updated.lapses}"
    )
    if result.log.difficulty_clamped or result.log.stability_clamped:
        typer.secho("Note: a bound was applied to the raw formula output.", fg="yellow")
    if write:
        typer.secho(f"Saved {card_file}", fg="green")


@app.command()
def preview(
    card_file: Annotated[Path, typer.Argument(help="Card JSON file.")],
    now: Annotated[str | None, typer.Option(help="Review time (ISO-8601), default now.")] = None,
    params_file: Annotated[
        Path | None, typer.Option("--params", help="Parameter file (JSON or YAML).")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the interval each rating would produce, without changing the card."""
    from mneme.application.scheduling.scheduler import current_retrievability, preview_intervals
    from mneme.application.utils.formatting import format_interval, format_interval_range
    from mneme.infrastructure.adapters.card_files import load_card

    with _user_errors():
        review_time = _parse_now(now)
        params = _load_params(params_file)
        card = load_card(card_file, review_time)
        intervals = preview_intervals(card, review_time, params)
        r = current_retrievability(card, review_time, params)

    if json_output:
        typer.echo(json.dumps({"retrievability": r, "intervals": intervals.to_dict()}, indent=2))
        return

    typer.echo(f"State: {card.state.value}  Retrievability: {r * 100:.1f}%")
    for rating in Rating:
        days = intervals.for_rating(rating)
        # Whole-day review intervals are the only ones that get fuzzed.
        if days >= 1 and float(days).is_integer():
            label = format_interval_range(int(days), params)
        else:
            label = format_interval(days)
        typer.echo(f"  {rating.name.lower():<6} {label}")


@app.command()
def curve(
    stability: Annotated[float, typer.Option("--stability", "-s", help="Stability in days.")],
    days: Annotated[float, typer.Option(help="Horizon in days.")] = 30,
    points: Annotated[int, typer.Option(help="Number of segments to sample.")] = 10,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Print the forgetting curve for a given stability."""
    from mneme.application.stats.metrics_calculator import forgetting_curve

    with _user_errors():
        if stability <= 0:
            raise ValueError(f"stability must be positive, got {stability}")
        samples = forgetting_curve(stability, days, points)

    if json_output:
        typer.echo(
            json.dumps([{"day": p.day, "retention": p.retention} for p in samples], indent=2)
        )
        return

    for p in samples:
        typer.echo(f"{p.day:8.2f}d  {p.retention:6.2f}%")


@app.command()
def optimize(
    history: Annotated[Path, typer.Argument(help="Review history (.json, .jsonl or .csv).")],
    out: Annotated[
        Path | None, typer.Option("--out", "-o", help="Write the fitted parameters here.")
    ] = None,
    params_file: Annotated[
        Path | None, typer.Option("--params", help="Starting parameter file.")
    ] = None,
    max_iterations: Annotated[int | None, typer.Option(help="Iteration cap.")] = None,
    learning_rate: Annotated[float | None, typer.Option(help="Initial step size.")] = None,
    min_reviews: Annotated[int | None, typer.Option(help="Minimum review count.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Fit[/bold green] the weight vector to a review history."""
    from mneme.application.optimization.service import PersonalizationService
    from mneme.infrastructure.adapters.history import open_review_history
    from mneme.infrastructure.adapters.parameter_store import ParameterStore

    with _user_errors():
        config = resolve_config(
            {
                "max_iterations": max_iterations,
                "learning_rate": learning_rate,
                "min_reviews": min_reviews,
            }
        )
        current = _load_params(params_file)
        service = PersonalizationService(open_review_history(history), config.optimizer_config())
        outcome = service.personalize(current)
        if out is not None and outcome.applied:
            ParameterStore(out).save(outcome.parameters)

    result = outcome.result
    if json_output:
        payload = result.to_dict()
        payload["applied"] = outcome.applied
        if outcome.comparison is not None:
            payload["comparison"] = {
                "default_loss": outcome.comparison.default_loss,
                "optimized_loss": outcome.comparison.optimized_loss,
                "improvement_percent": outcome.comparison.improvement_percent,
            }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Status: {result.status.value}")
    typer.echo(f"Samples: {result.sample_size}  Iterations: {result.iterations}")
    if not result.status.ran:
        typer.secho("Not enough data to personalize; keeping current parameters.", fg="yellow")
        return

    typer.echo(f"Log loss: {result.log_loss:.4f}  RMSE: {result.rmse:.4f}")
    if outcome.comparison is not None:
        typer.echo(
            f"Current: {outcome.comparison.default_loss:.4f}"
            f"  Fitted: {outcome.comparison.optimized_loss:.4f}"
            f"  ({outcome.comparison.improvement_percent:+.2f}%)"
        )
    if not outcome.applied:
        typer.secho("Fitted weights did not improve the fit; keeping current.", fg="yellow")
    elif out is not None:
        typer.secho(f"Saved fitted parameters to {out}", fg="green")
    else:
        typer.echo(json.dumps([round(w, 4) for w in result.weights]))


@app.command()
def stats(
    card_files: Annotated[list[Path], typer.Argument(help="Card JSON files.")],
    now: Annotated[str | None, typer.Option(help="Reference time (ISO-8601).")] = None,
    params_file: Annotated[
        Path | None, typer.Option("--params", help="Parameter file (JSON or YAML).")
    ] = None,
    forecast_days: Annotated[int, typer.Option(help="Days to forecast.")] = 7,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Summarize a set of cards and list the weak ones."""
    from mneme.application.stats.service import CardStatsService
    from mneme.infrastructure.adapters.card_files import load_card

    with _user_errors():
        ref_time = _parse_now(now)
        service = CardStatsService(_load_params(params_file))
        cards = [load_card(path, ref_time) for path in card_files]
        summary = service.summarize(cards, ref_time, forecast_days)
        weak = service.get_weak_cards(cards, ref_time)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "total": summary.total,
                    "by_state": summary.by_state,
                    "average_retrievability": summary.average_retrievability,
                    "due_now": summary.due_now,
                    "forecast": [
                        {"date": d.date, "new": d.new_cards, "reviews": d.reviews}
                        for d in summary.forecast
                    ],
                    "weak": [m.card_id for m in weak],
                },
                indent=2,
            )
        )
        return

    states = "  ".join(f"{k}: {v}" for k, v in summary.by_state.items())
    typer.echo(f"Cards: {summary.total}  ({states})")
    typer.echo(
        f"Average retrievability: {summary.average_retrievability * 100:.1f}%"
        f"  Due now: {summary.due_now}"
    )
    for day in summary.forecast:
        typer.echo(f"  {day.date}  {day.total}")
    if weak:
        typer.secho(f"Weak cards: {len(weak)}", fg="yellow")
        for m in weak:
            typer.echo(
                f"  {m.card_id}  S={m.stability:.2f}d  lapses={m.lapses}"
                f"  R={m.current_retrievability * 100:.1f}%"
            )


# ---------------------------------------------------------------------------
# Params subgroup
# ---------------------------------------------------------------------------


@params_app.command("show")
def params_show(
    path: Annotated[
        Path | None, typer.Argument(help="Parameter file. Defaults to config, then built-ins.")
    ] = None,
):
    """Display the resolved scheduler parameters."""
    with _user_errors():
        params = _load_params(path)
    typer.echo(params.to_json())


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()
