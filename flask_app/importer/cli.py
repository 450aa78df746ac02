"""
CLI commands for running client and product imports from CSV exports.

Registered under ``flask importer`` when the importer is enabled.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from flask import current_app
from flask.cli import ScriptInfo, with_appcontext

from flask_app.importer.batch import read_csv_rows
from flask_app.importer.pipeline import (
    AnalysisReport,
    CommitResult,
    analyze_clients,
    analyze_products,
    commit_clients,
    commit_products,
)
from flask_app.utils.importer import is_importer_enabled

_FILE_ARGUMENT = click.argument("file_path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
_JSON_OPTION = click.option("--json", "as_json", is_flag=True, help="Emit the full report as JSON.")


@click.group(name="importer", invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    Bulk import commands for clients and products.

    Lists the available commands when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. Enable it to run importer CLI commands."
        )
    if ctx.invoked_subcommand is None:
        click.echo("Available importer commands:")
        for name in sorted(importer_cli.commands):
            click.echo(f"  - {name}")


def get_disabled_importer_group() -> click.Group:
    """
    Return a minimal command group that informs the operator the importer is disabled.
    """

    @click.group(name="importer", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _load_rows(file_path: Path) -> list[dict]:
    rows = read_csv_rows(file_path)
    if not rows:
        raise click.ClickException(f"{file_path} contains no data rows.")
    limit = current_app.config.get("IMPORTER_MAX_BATCH_ROWS")
    if limit and len(rows) > limit:
        raise click.ClickException(f"{file_path} has {len(rows)} rows; the limit is {limit}.")
    return rows


def _format_analysis(domain: str, report: AnalysisReport) -> str:
    lines = [f"{domain.capitalize()} analysis:"]
    width = max(len(name) for name in report.summary())
    for name, value in report.summary().items():
        lines.append(f"  {name.ljust(width)}: {value}")
    for key, names in report.extra_data.items():
        if names:
            lines.append(f"  {key.ljust(width)}: {', '.join(names)}")
    for item in report.conflicting:
        lines.append(f"  conflict: {item.conflict_reason}")
    for item in report.invalid:
        lines.append(f"  invalid : {'; '.join(item.errors)}")
    return "\n".join(lines)


def _format_commit(result: CommitResult) -> str:
    lines = [result.message()]
    for item in result.duplicates:
        lines.append(f"  duplicate: {item.record} ({item.reason})")
    for item in result.invalid:
        lines.append(f"  invalid  : {'; '.join(item.errors)}")
    return "\n".join(lines)


def _run_analysis(domain: str, analyze, file_path: Path, as_json: bool) -> AnalysisReport:
    report = analyze(_load_rows(file_path))
    if as_json:
        click.echo(json.dumps(report.to_dict(f"{domain.capitalize()} analysis completed."), default=str))
    else:
        click.echo(_format_analysis(domain, report))
    return report


def _run_migration(domain: str, analyze, commit, file_path: Path, as_json: bool) -> None:
    report = analyze(_load_rows(file_path))
    new_records = [dict(item.record) for item in report.new]
    if not new_records:
        payload = {"analysis": report.summary(), "commit": None}
        if as_json:
            click.echo(json.dumps(payload))
        else:
            click.echo(_format_analysis(domain, report))
            click.echo("Nothing to migrate: no new records.")
        return

    result = commit(new_records)
    if as_json:
        click.echo(json.dumps({"analysis": report.summary(), "commit": result.to_dict()}, default=str))
    else:
        click.echo(_format_analysis(domain, report))
        click.echo(_format_commit(result))


@importer_cli.command("analyze-clients")
@_FILE_ARGUMENT
@_JSON_OPTION
@with_appcontext
def analyze_clients_command(file_path: Path, as_json: bool):
    """Classify the clients in FILE_PATH without writing anything."""
    _run_analysis("clients", analyze_clients, file_path, as_json)


@importer_cli.command("migrate-clients")
@_FILE_ARGUMENT
@_JSON_OPTION
@with_appcontext
def migrate_clients_command(file_path: Path, as_json: bool):
    """Analyze FILE_PATH and create every new client in one go."""
    _run_migration("clients", analyze_clients, commit_clients, file_path, as_json)


@importer_cli.command("analyze-products")
@_FILE_ARGUMENT
@_JSON_OPTION
@with_appcontext
def analyze_products_command(file_path: Path, as_json: bool):
    """Classify the products in FILE_PATH; missing laboratories and categories are created."""
    _run_analysis("products", analyze_products, file_path, as_json)


@importer_cli.command("migrate-products")
@_FILE_ARGUMENT
@_JSON_OPTION
@with_appcontext
def migrate_products_command(file_path: Path, as_json: bool):
    """Analyze FILE_PATH and create every new product in one go."""
    _run_migration("products", analyze_products, commit_products, file_path, as_json)
