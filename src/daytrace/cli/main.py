"""Typer CLI entrypoint and command definitions for daytrace."""

import datetime as dt
from pathlib import Path
from typing import Optional

import typer

from daytrace.core.defaults import DEFAULT_CONFIG_PATH, DEFAULT_DUMMY_EVENTS, DEFAULT_OUT_DIR

app = typer.Typer()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging"),
) -> None:
    """Reconstruct daily activity timelines from raw focus events."""
    from daytrace.core.logging import configure_logging

    configure_logging(verbose)


def _load_config(config_file: Optional[str]):
    from pydantic import ValidationError

    from daytrace.core.config import default_timeline_config, load_timeline_config

    if config_file is None:
        return default_timeline_config()
    path = Path(config_file)
    if not path.exists():
        typer.echo(f"Config file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        return load_timeline_config(path)
    except ValidationError as exc:
        typer.echo(f"Invalid config {path}: {exc.error_count()} error(s)", err=True)
        for err in exc.errors():
            loc = ".".join(str(p) for p in err["loc"])
            typer.echo(f"  {loc}: {err['msg']}", err=True)
        raise typer.Exit(code=1)


def _parse_now(now: Optional[str]) -> dt.datetime:
    if now is None:
        return dt.datetime.now(dt.timezone.utc)
    parsed = dt.datetime.fromisoformat(now)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=dt.timezone.utc)


# -- timeline -----------------------------------------------------------------
timeline_app = typer.Typer()
app.add_typer(timeline_app, name="timeline")


@timeline_app.command("build")
def timeline_build_cmd(
    events_file: Optional[str] = typer.Option(None, "--events", help="Path to an events JSON dump"),
    categories_file: Optional[str] = typer.Option(None, "--categories", help="Path to a categories JSON dump"),
    aw_export: Optional[str] = typer.Option(None, "--aw-export", help="Path to an ActivityWatch export JSON"),
    synthetic: bool = typer.Option(False, "--synthetic", help="Generate a dummy day instead of reading events"),
    date: Optional[str] = typer.Option(None, help="Day to render (YYYY-MM-DD); defaults to the first activity's day"),
    now: Optional[str] = typer.Option(None, help="Reference 'now' as ISO-8601; defaults to the current time"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Path to a timeline YAML config"),
    out_dir: str = typer.Option(DEFAULT_OUT_DIR, help="Output directory for the timeline JSON"),
) -> None:
    """Build the timeline of one day and write it as JSON."""
    from daytrace.adapters.activitywatch.client import parse_aw_export
    from daytrace.adapters.jsonfile import load_categories_json, load_events_json
    from daytrace.adapters.synthetic import generate_dummy_categories, generate_dummy_events
    from daytrace.report.export import export_timeline_json, timeline_fingerprint
    from daytrace.timeline.pipeline import build_day_timeline

    sources = [events_file is not None, aw_export is not None, synthetic]
    if sum(sources) != 1:
        typer.echo("Pass exactly one of --events, --aw-export or --synthetic.", err=True)
        raise typer.Exit(code=1)

    config = _load_config(config_file)
    reference_now = _parse_now(now)
    parsed_date = dt.date.fromisoformat(date) if date else None

    events: list = []
    categories: list = []
    if synthetic:
        day = parsed_date or reference_now.date()
        events = list(generate_dummy_events(day, n_events=DEFAULT_DUMMY_EVENTS))
        categories = list(generate_dummy_categories())
        parsed_date = day
    else:
        input_path = Path(events_file or aw_export)
        if not input_path.exists():
            typer.echo(f"File not found: {input_path}", err=True)
            raise typer.Exit(code=1)
        try:
            events = list(parse_aw_export(input_path) if aw_export else load_events_json(input_path))
        except ValueError as exc:
            typer.echo(f"Could not read {input_path}: {exc}", err=True)
            raise typer.Exit(code=1)

    if categories_file is not None:
        cat_path = Path(categories_file)
        if not cat_path.exists():
            typer.echo(f"File not found: {cat_path}", err=True)
            raise typer.Exit(code=1)
        try:
            categories = list(load_categories_json(cat_path))
        except ValueError as exc:
            typer.echo(f"Could not read {cat_path}: {exc}", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"Loaded {len(events)} events and {len(categories)} categories")

    result = build_day_timeline(
        events,
        categories,
        reference_now=reference_now,
        day=parsed_date,
        config=config,
    )
    typer.echo(
        f"Timeline for {result.day}: {len(result.segments)} segments, "
        f"{len(result.categories)} categories, {result.dropped_events} dropped events"
    )

    out_path = export_timeline_json(result, Path(out_dir) / f"timeline_{result.day.isoformat()}.json")
    typer.echo(f"Timeline written to {out_path}")
    typer.echo(f"Fingerprint: {timeline_fingerprint(result)}")


# -- report -------------------------------------------------------------------
report_app = typer.Typer()
app.add_typer(report_app, name="report")


def _fmt_minutes(ms: int) -> str:
    return f"{ms / 60_000:.1f} min"


@report_app.command("summary")
def report_summary_cmd(
    timeline_file: str = typer.Option(..., "--timeline-file", help="Path to timeline_<date>.json"),
    csv_dir: Optional[str] = typer.Option(None, "--csv-dir", help="Also write segments/categories CSV here"),
    parquet: Optional[str] = typer.Option(None, "--parquet", help="Also write the category rollup as Parquet"),
    top: int = typer.Option(5, help="Number of top applications to list"),
) -> None:
    """Print category totals and productivity metrics for a built timeline."""
    from daytrace.report.export import (
        export_categories_csv,
        export_categories_parquet,
        export_segments_csv,
        read_timeline_json,
    )
    from daytrace.report.usage import summarize_app_usage

    path = Path(timeline_file)
    if not path.exists():
        typer.echo(f"Timeline file not found: {path}", err=True)
        raise typer.Exit(code=1)

    result = read_timeline_json(path)
    metrics = result.metrics

    typer.echo(f"Summary for {result.day}")
    typer.echo(f"  Productive:    {_fmt_minutes(metrics.productive_ms)}")
    typer.echo(f"  Unproductive:  {_fmt_minutes(metrics.unproductive_ms)}")
    typer.echo(f"  Idle:          {_fmt_minutes(metrics.idle_ms)}")
    typer.echo(f"  Uncategorized: {_fmt_minutes(metrics.uncategorized_ms)}")
    typer.echo(f"  Session span:  {_fmt_minutes(metrics.session_span_ms)}")
    typer.echo(f"  Sessions:      {len(result.sessions)}")

    typer.echo("Categories:")
    for category in result.categories:
        flag = "+" if category.is_productive else "-"
        typer.echo(f"  {flag} {category.name}: {_fmt_minutes(category.total_duration_ms)}")

    apps = summarize_app_usage(result.blocks, limit=top)
    if apps:
        typer.echo("Top applications:")
        for usage in apps:
            typer.echo(f"  {usage.name}: {_fmt_minutes(usage.duration_ms)} ({usage.percentage:.1f}%)")

    if csv_dir is not None:
        out = Path(csv_dir)
        seg_path = export_segments_csv(result, out / f"segments_{result.day.isoformat()}.csv")
        cat_path = export_categories_csv(result, out / f"categories_{result.day.isoformat()}.csv")
        typer.echo(f"Segments CSV:   {seg_path}")
        typer.echo(f"Categories CSV: {cat_path}")

    if parquet is not None:
        pq_path = export_categories_parquet(result, Path(parquet))
        typer.echo(f"Categories Parquet: {pq_path}")


# -- config -------------------------------------------------------------------
config_app = typer.Typer()
app.add_typer(config_app, name="config")


@config_app.command("init")
def config_init_cmd(
    out: str = typer.Option(DEFAULT_CONFIG_PATH, "--out", help="Where to write the default config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default timeline config as YAML."""
    from daytrace.core.config import default_timeline_config, save_timeline_config

    path = Path(out)
    if path.exists() and not force:
        typer.echo(f"Config already exists: {path} (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    save_timeline_config(default_timeline_config(), path)
    typer.echo(f"Config written to {path}")


@config_app.command("show")
def config_show_cmd(
    config_file: Optional[str] = typer.Option(None, "--config", help="Path to a timeline YAML config"),
) -> None:
    """Print the effective timeline config."""
    config = _load_config(config_file)
    for key, value in config.model_dump(mode="json").items():
        typer.echo(f"{key}: {value}")


@config_app.command("validate")
def config_validate_cmd(
    config_file: str = typer.Option(..., "--config", help="Path to a timeline YAML config"),
) -> None:
    """Validate a timeline config file."""
    config = _load_config(config_file)
    typer.echo(
        f"Config OK: max_gap_ms={config.max_gap_ms}, "
        f"slot_width_minutes={config.slot_width_minutes}, timezone={config.timezone}"
    )


if __name__ == "__main__":
    app()
