"""CLI for pwscrub."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import orjson
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from pwscrub.config import load_settings
from pwscrub.constants import DEFAULT_CONFIG_CANDIDATES, PACKAGE_VERSION
from pwscrub.discovery import DefaultConfigProvider, resolve_artifact_paths
from pwscrub.engine.orchestrator import ScrubOptions, scrub_results
from pwscrub.engine.transformer import apply_rules
from pwscrub.errors import ScrubberError
from pwscrub.rules import RuleSet, build_rule_set, build_trace_rule_set, legacy_rules
from pwscrub.schemas.enums import OutcomeStatus
from pwscrub.schemas.report_models import ScrubReport

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="pwscrub removes sensitive data from Playwright reports and traces.",
)
console = Console()
_ERROR_RULES: RuleSet = legacy_rules()

_STATUS_STYLES = {
    OutcomeStatus.CHANGED: "green",
    OutcomeStatus.UNCHANGED: "dim",
    OutcomeStatus.SKIPPED: "yellow",
    OutcomeStatus.FAILED: "red",
}


@app.command()
def version() -> None:
    """Print the pwscrub version."""
    typer.echo(PACKAGE_VERSION)


@app.command("validate-config")
def validate_config(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to the Playwright config file."
    ),
    settings_path: Path | None = typer.Option(
        None, "--settings", help="Path to a pwscrub.yaml settings file."
    ),
) -> None:
    """Resolve artifact directories and count the active rules."""
    try:
        settings = load_settings(settings_path)
        rules = build_rule_set(settings, search_dir=Path.cwd())
        trace_rules = build_trace_rule_set(settings)
        config_path = _resolve_config_path(config)
        resolved = DefaultConfigProvider().load(config_path)
        paths = resolve_artifact_paths(resolved, config_path.parent)
    except ScrubberError as exc:
        console.print(f"[red]Configuration validation failed:[/red] {_redact(exc)}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Artifact Locations")
    table.add_column("Artifact")
    table.add_column("Directory")
    table.add_column("Exists")
    for kind, directory in paths.items():
        exists = "yes" if directory is not None and directory.is_dir() else "no"
        table.add_row(kind.value, str(directory) if directory else "-", exists)
    console.print(table)
    console.print(
        Panel.fit(
            f"config: [bold]{config_path}[/bold]\n"
            f"rules: [bold]{len(rules)}[/bold] "
            f"(+{len(trace_rules or ())} for traces) "
            f"(masking: {settings.locator.masking_strategy.value})",
            title="Scrubber Settings",
        )
    )


@app.command("scrub")
def scrub(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to the Playwright config file."
    ),
    settings_path: Path | None = typer.Option(
        None, "--settings", help="Path to a pwscrub.yaml settings file."
    ),
    rules_file: Path | None = typer.Option(
        None, "--rules", "-r", help="Additional rules file (JSON or YAML)."
    ),
    output_dir: Path | None = typer.Option(
        None, "--output", "-o", help="Write scrubbed copies here instead of in place."
    ),
    preserve: bool = typer.Option(
        False, "--preserve", "-p", help="Keep originals when writing to --output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every step."),
    masking: str | None = typer.Option(
        None, "--masking", help="Masking strategy: asterisks, placeholder or custom."
    ),
    custom_mask: str | None = typer.Option(
        None, "--custom-mask", help="Custom mask text (implies --masking custom)."
    ),
    sensitive_fields: list[str] | None = typer.Option(
        None, "--sensitive-field", help="Extra sensitive identifier; repeatable."
    ),
    legacy_only: bool = typer.Option(
        False, "--legacy-rules", help="Use only the shape-based legacy rules."
    ),
    report_json: Path | None = typer.Option(
        None, "--report-json", help="Write the run report as JSON."
    ),
) -> None:
    """Scrub the HTML report and traces produced by a Playwright config."""
    _configure_logging(verbose)
    try:
        settings = load_settings(
            settings_path,
            cli_overrides={
                "masking_strategy": masking,
                "custom_mask": custom_mask,
                "sensitive_fields": sensitive_fields or [],
                "rules_file": str(rules_file) if rules_file else None,
                "legacy_only": legacy_only,
            },
        )
        options = ScrubOptions(
            rules=build_rule_set(settings, search_dir=Path.cwd()),
            trace_rules=build_trace_rule_set(settings),
            output_dir=output_dir,
            preserve_originals=preserve,
            verbose=verbose,
        )
        report = scrub_results(_resolve_config_path(config), options, settings=settings)
    except ScrubberError as exc:
        console.print(f"[red]Scrub failed:[/red] {_redact(exc)}")
        raise typer.Exit(code=1) from exc

    if report_json is not None:
        try:
            _write_report(report, report_json)
        except OSError as exc:
            console.print(f"[red]Could not write report:[/red] {exc}")
            raise typer.Exit(code=1) from exc
    if verbose:
        _render_report(report)
    _render_summary(report)


def _resolve_config_path(config: Path | None) -> Path:
    if config is not None:
        return config
    for candidate in DEFAULT_CONFIG_CANDIDATES:
        path = Path(candidate)
        if path.is_file():
            return path
    return Path(DEFAULT_CONFIG_CANDIDATES[0])


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _redact(exc: Exception) -> str:
    return apply_rules(str(exc), _ERROR_RULES)


def _write_report(report: ScrubReport, path: Path) -> None:
    payload: dict[str, Any] = report.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))


def _render_report(report: ScrubReport) -> None:
    if not report.artifacts:
        return
    table = Table(title="Artifacts")
    table.add_column("Kind")
    table.add_column("Path")
    table.add_column("Status")
    table.add_column("Details")
    for outcome in report.artifacts:
        style = _STATUS_STYLES[outcome.status]
        table.add_row(
            outcome.kind.value,
            outcome.path,
            f"[{style}]{outcome.status.value}[/{style}]",
            outcome.message or "-",
        )
    console.print(table)


def _render_summary(report: ScrubReport) -> None:
    changed = report.count(OutcomeStatus.CHANGED)
    failed = report.count(OutcomeStatus.FAILED)
    colour = "yellow" if failed else "green"
    console.print(
        f"[{colour}]Scrub complete:[/{colour}] {changed} artifact(s) scrubbed, "
        f"{len(report.artifacts) - changed - failed} untouched, {failed} unreadable"
    )

