"""
Command line interface for the email handoff validation engine.

Validates handoff payloads stored as JSON files and audits final delivery
packages, for operators and for stage developers debugging their output.
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from handoff_validation import __version__
from handoff_validation.config.logging import configure_logging
from handoff_validation.config.settings import get_environment_info, get_settings
from handoff_validation.core.exceptions import HandoffEngineError
from handoff_validation.models.contracts import HandoffVariant
from handoff_validation.models.domain import HandoffValidationError, ValidationOutcome
from handoff_validation.pipeline.validation.handoff_validator import (
    HandoffValidator,
    missing_handoff_sections,
)
from handoff_validation.pipeline.validation.readiness_auditor import (
    PackageReadinessAuditor,
)
from handoff_validation.pipeline.validation.structural_validator import validate_structure
from handoff_validation.services.claude_corrector import ClaudeCorrector
from handoff_validation.services.validation_monitor import ValidationMonitor

console = Console()
logger = structlog.get_logger(__name__)

VARIANT_CHOICE = click.Choice([v.value for v in HandoffVariant])


def _load_payload(file_path: str) -> Any:
    with open(Path(file_path), encoding="utf-8") as f:
        return json.load(f)


def _errors_table(errors: list[HandoffValidationError]) -> Table:
    table = Table(title="Validation Errors")
    table.add_column("Field", style="cyan")
    table.add_column("Kind", style="yellow")
    table.add_column("Severity", style="red")
    table.add_column("Message")

    for error in errors:
        table.add_row(error.field, error.kind.value, error.severity.value, error.message)
    return table


def _print_outcome(outcome: ValidationOutcome) -> None:
    if outcome.valid:
        console.print(
            f"[green]✓ Handoff {outcome.variant.value} accepted[/green] "
            f"[dim]({outcome.duration_ms} ms)[/dim]"
        )
    else:
        console.print(
            f"[red]✗ Handoff {outcome.variant.value} rejected: "
            f"{len(outcome.errors)} error(s)[/red]"
        )
        console.print(_errors_table(outcome.errors))

    for warning in outcome.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

    if outcome.correction_suggestions and not outcome.valid:
        table = Table(title="Correction Suggestions")
        table.add_column("Field", style="cyan")
        table.add_column("Priority", style="magenta")
        table.add_column("Suggestion")
        for suggestion in outcome.correction_suggestions:
            table.add_row(suggestion.field, suggestion.priority.value, suggestion.suggestion)
        console.print(table)


async def _run_validation(
    raw: Any, variant: str, enable_correction: bool
) -> ValidationOutcome:
    settings = get_settings()

    corrector: Optional[ClaudeCorrector] = None
    if enable_correction and settings.correction.enabled and settings.claude.api_key:
        corrector = ClaudeCorrector(settings.claude)

    validator = HandoffValidator(
        settings, corrector=corrector, metrics_sink=ValidationMonitor()
    )
    try:
        return await validator.validate(raw, variant, enable_correction=enable_correction)
    finally:
        if corrector is not None:
            await corrector.close()


@click.group()
@click.version_option(version=__version__, prog_name="Email Handoff Validation")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """
    Email Handoff Validation CLI

    Validates payloads crossing the Content -> Design -> Quality -> Delivery
    boundaries and audits final delivery packages.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    settings = get_settings()
    monitoring = settings.monitoring
    if verbose:
        monitoring = monitoring.model_copy(update={"log_level": "DEBUG", "log_format": "text"})
    configure_logging(monitoring)


@cli.command()
@click.pass_context
def info(ctx):
    """Show application information and configuration"""
    try:
        console.print("[bold blue]Application Information[/bold blue]")

        info_data = get_environment_info()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan", no_wrap=True)
        table.add_column("Status", style="green")
        table.add_column("Details", style="dim")

        table.add_row("Application", info_data["app_name"], f"v{info_data['app_version']}")
        table.add_row("Environment", info_data["environment"], "")
        table.add_row(
            "Claude Corrector",
            "✓ Configured" if info_data["claude_configured"] else "✗ Not configured",
            info_data["claude_model"],
        )
        table.add_row(
            "Correction",
            "✓ Enabled" if info_data["correction_enabled"] else "✗ Disabled",
            "",
        )
        table.add_row(
            "Metrics",
            "✓ Enabled" if info_data["metrics_enabled"] else "✗ Disabled",
            "",
        )

        for name, value in info_data["thresholds"].items():
            table.add_row(name, str(value), "threshold")

        console.print(table)

        if ctx.obj["verbose"]:
            console.print("\n[bold]Full Configuration:[/bold]")
            console.print_json(json.dumps(info_data, indent=2))

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--variant", "-t", type=VARIANT_CHOICE, required=True, help="Handoff boundary")
@click.option("--no-correction", is_flag=True, help="Never call the external corrector")
def validate(file_path, variant, no_correction):
    """Validate a handoff payload stored in a JSON file"""
    try:
        raw = _load_payload(file_path)
        outcome = asyncio.run(_run_validation(raw, variant, not no_correction))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {file_path}: {e}[/red]")
        sys.exit(1)
    except HandoffEngineError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    _print_outcome(outcome)
    if not outcome.valid:
        sys.exit(1)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
@click.option("--variant", "-t", type=VARIANT_CHOICE, required=True, help="Handoff boundary")
def integrity(file_path, variant):
    """Quick precheck of provenance fields and required sections"""
    try:
        raw = _load_payload(file_path)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {file_path}: {e}[/red]")
        sys.exit(1)

    missing = missing_handoff_sections(raw, variant)
    if missing:
        console.print(f"[red]✗ Missing: {', '.join(missing)}[/red]")
        sys.exit(1)

    console.print(f"[green]✓ Handoff {variant} carries all required sections[/green]")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True))
def audit(file_path):
    """Audit a Quality -> Delivery payload for delivery readiness"""
    try:
        raw = _load_payload(file_path)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {file_path}: {e}[/red]")
        sys.exit(1)

    structural = validate_structure(raw, HandoffVariant.QUALITY_TO_DELIVERY)
    if not structural.passed:
        console.print("[red]✗ Payload is not a valid Quality -> Delivery handoff[/red]")
        console.print(_errors_table(structural.errors))
        sys.exit(1)

    auditor = PackageReadinessAuditor(get_settings().thresholds)
    report = auditor.is_ready_for_delivery(structural.payload)
    integrity_report = report.integrity

    table = Table(title="Package Integrity")
    table.add_column("Section", style="cyan")
    table.add_column("Size (KiB)", style="yellow", justify="right")
    table.add_row("HTML", f"{integrity_report.html_size_kb:.2f}")
    table.add_row("MJML", f"{integrity_report.mjml_size_kb:.2f}")
    table.add_row("Assets", f"{integrity_report.assets_size_kb:.2f}")
    table.add_row("Documentation", f"{integrity_report.documentation_size_kb:.2f}")
    table.add_row("Previews", f"{integrity_report.previews_size_kb:.2f}")
    table.add_row(
        f"Total ({integrity_report.total_files} files)",
        f"{integrity_report.total_size_kb:.2f} / {integrity_report.size_limit_kb:g}",
    )
    console.print(table)

    for blocker in report.blockers:
        console.print(f"[red]✗ {blocker}[/red]")
    for recommendation in report.recommendations:
        console.print(f"[yellow]→ {recommendation}[/yellow]")

    if report.ready:
        console.print(f"[green]✓ {report.summary}[/green]")
    else:
        console.print(f"[red]{report.summary}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli()
