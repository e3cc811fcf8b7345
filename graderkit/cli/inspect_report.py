"""Console viewer for plugin replies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from graderkit.plugins import BUILTIN_PLUGINS, get_plugin
from graderkit.runtime.bootstrap import resolve_runner_config
from graderkit.runtime.plugin import INVALID_CONFIG_MESSAGE
from graderkit.runtime.protocol import NO_CRITERIA_NOTE, FailureReport, Report, encode_failure, parse_report

app = typer.Typer(help="Run plugins and inspect their replies.")
console = Console()


def _payload(report: Report) -> dict:
    return {**report.model_dump(), "passed": report.passed, "fulfillment": report.fulfillment}


def render_report(report: Report) -> None:
    if isinstance(report, FailureReport):
        console.print("[bold red]Status:[/bold red] error")
        console.print(escape(report.error))
        return

    status_style = "green" if report.passed else "red"
    console.print(f"[bold]Status:[/bold] [{status_style}]{'passed' if report.passed else 'failed'}[/{status_style}]")
    console.print(f"[bold]Fulfillment:[/bold] {report.fulfillment} %")
    if report.output_file:
        console.print(f"[bold]Output:[/bold] {escape(report.output_file)}")
    if not report.criteria:
        console.print(f"[dim]{NO_CRITERIA_NOTE}[/dim]")
        return

    table = Table("Criterion", "Passed", "Fulfillment", "Details", title="Criteria")
    for criterion in report.criteria:
        table.add_row(
            escape(criterion.name),
            "yes" if criterion.passed else "no",
            f"{criterion.fulfillment} %",
            escape(criterion.details),
            style=None if criterion.passed else "yellow",
        )
    console.print(table)


def _emit(report: Report, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(_payload(report), indent=2, ensure_ascii=False))
    else:
        render_report(report)


@app.command()
def run(
    plugin: str = typer.Argument(..., help=f"Plugin name ({', '.join(sorted(BUILTIN_PLUGINS))})."),
    archive: Optional[Path] = typer.Argument(None, help="Submission zip archive."),
    params: Optional[List[str]] = typer.Argument(None, help="Plugin-specific arguments."),
    config: Optional[Path] = typer.Option(None, "--config", help="Runner config YAML."),
    save: Optional[Path] = typer.Option(None, "--save", help="Write the raw reply to this file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    try:
        plugin_cls = get_plugin(plugin)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0]), param_hint="PLUGIN") from exc
    argv = [str(archive)] if archive is not None else []
    argv.extend(params or [])
    try:
        runner_config = resolve_runner_config(config)
    except (OSError, ValueError) as exc:
        reply = encode_failure(f"{INVALID_CONFIG_MESSAGE}: {exc}")
    else:
        reply = plugin_cls(runner_config).run(argv)
    if save is not None:
        save.write_text(reply + "\n", encoding="utf-8")
    _emit(parse_report(reply), as_json)


@app.command()
def show(
    report_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved plugin reply."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    try:
        report = parse_report(report_file.read_text(encoding="utf-8"))
    except ValueError as exc:
        console.print(f"[red]Invalid plugin reply:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    _emit(report, as_json)


__all__ = ["app", "render_report"]


if __name__ == "__main__":
    app()
