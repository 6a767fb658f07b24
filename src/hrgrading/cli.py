"""Typer CLI entrypoint for the grading engine."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict, dataclass, field, is_dataclass
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import BaseModel, ValidationError

from .container import create_container
from .logging import configure_logging
from .schemas.config import load_config_file
from .service import ActionResult, GradingService
from .store import InMemoryRecordStore, RecordStoreError, load_snapshot, save_snapshot

app = typer.Typer(help="Applicant grading and assignment CLI.")


@dataclass
class CLIState:
    store_path: Path
    cycle: Optional[str]
    settings: dict[str, Any] = field(default_factory=dict)
    store: InMemoryRecordStore | None = None

    def open(self) -> GradingService:
        try:
            self.store = load_snapshot(self.store_path)
        except RecordStoreError as exc:
            raise typer.BadParameter(str(exc), param_hint="store") from exc
        try:
            container = create_container(settings=self.settings, store=self.store)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="config") from exc
        return container.service()

    def require_cycle(self) -> str:
        if not self.cycle:
            raise typer.BadParameter(
                "A cycle is required (--cycle, HRGRADING_CYCLE or 'cycle' in the config).",
                param_hint="cycle",
            )
        return self.cycle

    def save(self) -> None:
        if self.store is not None:
            save_snapshot(self.store, self.store_path)


@app.callback()
def options(
    ctx: typer.Context,
    store: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, help="Record store JSON snapshot."
    ),
    cycle: Optional[str] = typer.Option(
        None, envvar="HRGRADING_CYCLE", help="Application cycle to operate on."
    ),
    config: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="YAML config path."
    ),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    log_json: bool = typer.Option(True, "--log-json/--log-console", help="Log as JSON or plain text."),
) -> None:
    """Global options shared by every command."""
    configure_logging(log_level, json_output=log_json)

    settings: dict[str, Any] = {}
    config_cycle: Optional[str] = None
    if config:
        try:
            app_config = load_config_file(config)
        except ValidationError as exc:
            raise typer.BadParameter(f"Invalid config: {exc}", param_hint="config") from exc
        settings = app_config.to_settings()
        config_cycle = app_config.cycle

    ctx.obj = CLIState(store_path=store, cycle=cycle or config_cycle, settings=settings)


@app.command()
def recalculate(ctx: typer.Context) -> None:
    """Recompute every applicant's total score."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.recalculate_scores(state.require_cycle()), save=True)


@app.command()
def categorize(ctx: typer.Context) -> None:
    """Split scored applicants into accept / discuss / reject tiers."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.categorize(state.require_cycle()), save=True)


@app.command("assign-written")
def assign_written(ctx: typer.Context) -> None:
    """Assign written graders to every applicant of a fresh cycle."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.assign_written(state.require_cycle()), save=True)


@app.command("fill-written")
def fill_written(ctx: typer.Context) -> None:
    """Top up applicants with fewer written graders than required."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.fill_written(state.require_cycle()), save=True)


@app.command("clear-written")
def clear_written(ctx: typer.Context) -> None:
    """Delete every unscored written slot of the cycle."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.clear_written(state.require_cycle()), save=True)


@app.command("set-written-graders")
def set_written_graders(
    ctx: typer.Context,
    applicant_id: str = typer.Argument(..., help="Applicant to reassign."),
    graders: List[str] = typer.Argument(..., help="Grader ids, one per required slot."),
) -> None:
    """Replace an applicant's written graders, keeping scored work."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.set_written_graders(applicant_id, graders), save=True)


@app.command("fill-interview")
def fill_interview(ctx: typer.Context) -> None:
    """Top up every interview round with fewer interviewers than required."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.fill_interview(state.require_cycle()), save=True)


@app.command("set-interviewers")
def set_interviewers(
    ctx: typer.Context,
    applicant_id: str = typer.Argument(..., help="Applicant to reassign."),
    graders: List[str] = typer.Argument(..., help="Interviewer ids for the round."),
    round_number: int = typer.Option(..., "--round", help="Interview round."),
) -> None:
    """Replace the interviewers of one applicant and round."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.set_interviewers(applicant_id, round_number, graders), save=True)


@app.command("grader-overview")
def grader_overview(
    ctx: typer.Context,
    grader_id: str = typer.Argument(..., help="Grader to inspect."),
) -> None:
    """List a grader's written and interview work with completion counts."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.grader_overview(state.require_cycle(), grader_id))


@app.command()
def decide(
    ctx: typer.Context,
    applicant_id: str = typer.Argument(..., help="Applicant being decided."),
    outcome: str = typer.Argument(..., help="accept or reject."),
    actor: str = typer.Option(..., help="Id of the deciding administrator."),
) -> None:
    """Record an accept / reject decision."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.record_decision(applicant_id, outcome, actor), save=True)


@app.command()
def export(
    ctx: typer.Context,
    status: Optional[List[str]] = typer.Option(None, help="Only export these statuses."),
    output_format: str = typer.Option("json", "--format", help="json or csv."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write to this file."),
) -> None:
    """Export per-applicant averages recomputed from raw grades."""
    if output_format not in {"json", "csv"}:
        raise typer.BadParameter("Format must be 'json' or 'csv'.", param_hint="format")
    state: CLIState = ctx.obj
    service = state.open()
    result = service.export_rows(state.require_cycle(), status or None)
    if not result.success:
        _fail(result)
    records = [row.to_record() for row in result.data or []]
    if output_format == "csv":
        _emit(_to_csv(records), output)
    else:
        _emit(json.dumps(records, ensure_ascii=False, indent=2), output)


@app.command()
def backup(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write to this file."),
) -> None:
    """Dump every record of the cycle."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.backup(state.require_cycle()), output=output)


@app.command()
def analytics(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write to this file."),
) -> None:
    """Summarize statuses, demographics, scores and grading progress."""
    state: CLIState = ctx.obj
    service = state.open()
    _finish(state, service.analytics(state.require_cycle()), output=output)


def _finish(
    state: CLIState,
    result: ActionResult,
    *,
    save: bool = False,
    output: Optional[Path] = None,
) -> None:
    # writes that landed before a failure are kept, so save either way
    if save:
        state.save()
    if not result.success:
        if result.data is not None:
            typer.echo(_dumps(result.data))
        _fail(result)
    _emit(_dumps(result.data), output)


def _fail(result: ActionResult) -> None:
    typer.echo(f"Error ({result.error_kind}): {result.error}", err=True)
    raise typer.Exit(code=1)


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Saved to {output}.")


def _dumps(data: Any) -> str:
    return json.dumps(_jsonable(data), default=_json_default, ensure_ascii=False, indent=2)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_csv(records: list[dict[str, Any]]) -> str:
    if not records:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(records[0]))
    writer.writeheader()
    writer.writerows(records)
    return buffer.getvalue()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
