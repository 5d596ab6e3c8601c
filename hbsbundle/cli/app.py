"""Main CLI application."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from ..config.loader import coerce_task, load_tasks
from ..core.errors import HbsBundleError
from ..core.models import TaskOptions
from ..discovery.classifier import discover
from ..orchestration import runner
from .parsers import parse_amd, parse_task

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="hbsbundle",
    help="Precompile Handlebars templates into a single JavaScript module.",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


@app.command()
def build(
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="YAML file with task options (a task, a list, or a 'tasks' list).",
            metavar="FILE",
        ),
    ] = None,
    tasks: Annotated[
        list[str],
        typer.Option(
            "--task",
            help="Precompile INPUT_DIR into OUTPUT_FILE. Repeatable.",
            metavar="INPUT_DIR=OUTPUT_FILE",
        ),
    ] = [],
    output_dir: Annotated[
        Optional[str],
        typer.Option("--output-dir", help="Directory for output files.", metavar="DIR"),
    ] = None,
    namespace: Annotated[
        Optional[str],
        typer.Option("--namespace", help="Namespace path (default: JST).", metavar="PATH"),
    ] = None,
    no_namespace: Annotated[
        bool,
        typer.Option("--no-namespace", help="Do not assign templates to a namespace."),
    ] = False,
    amd: Annotated[
        list[str],
        typer.Option(
            "--amd",
            help="Wrap in AMD define(); 'true' for handlebars or dependency names. Repeatable.",
            metavar="DEP",
        ),
    ] = [],
    commonjs: Annotated[
        bool, typer.Option("--commonjs", help="Wrap in a CommonJS module.")
    ] = False,
    node: Annotated[
        bool, typer.Option("--node", help="Add the Node.js export shim.")
    ] = False,
    recursive: Annotated[
        bool, typer.Option("--recursive", "-r", help="Scan sub-directories.")
    ] = False,
    wrap_scope: Annotated[
        Optional[str],
        typer.Option(
            "--wrap-scope",
            help="Wrap the whole output ('output') or each template ('fragment').",
            metavar="SCOPE",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Precompile template directories into JavaScript bundles."""
    _configure_logging(verbose)
    logger.debug("Starting hbsbundle")

    if namespace is not None and no_namespace:
        raise typer.BadParameter("--namespace and --no-namespace are exclusive")

    overrides: dict[str, Any] = {}
    if output_dir is not None:
        overrides["output_dir"] = output_dir
    if namespace is not None:
        overrides["namespace"] = namespace
    if no_namespace:
        overrides["namespace"] = False
    if amd:
        overrides["amd"] = parse_amd(amd)
    if commonjs:
        overrides["commonjs"] = True
    if node:
        overrides["node"] = True
    if recursive:
        overrides["recursive"] = True
    if wrap_scope is not None:
        overrides["wrap_scope"] = wrap_scope

    try:
        options = [
            coerce_task({"input_dir": input_dir, "output_file": output_file, **overrides})
            for input_dir, output_file in map(parse_task, tasks)
        ]
        if config is not None:
            options = [
                _with_overrides(task, overrides) for task in load_tasks(config)
            ] + options
        if not options:
            options = [coerce_task(overrides)]

        logger.debug(f"Config: {len(options)} task(s)")
        reports = runner.build(options)
    except HbsBundleError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    for report in reports:
        skipped = f", {len(report.skipped)} skipped" if report.skipped else ""
        typer.echo(f"{report.output_path}: {report.compiled} template(s){skipped}")


def _with_overrides(task: TaskOptions, overrides: dict[str, Any]) -> TaskOptions:
    if not overrides:
        return task
    merged = task.model_dump(exclude_unset=True)
    merged.update(overrides)
    return coerce_task(merged)


@app.command()
def scan(
    input_dir: Annotated[Path, typer.Argument(help="Template directory to inspect.")],
    recursive: Annotated[
        bool, typer.Option("--recursive", "-r", help="Scan sub-directories.")
    ] = False,
    partial_regex: Annotated[
        str,
        typer.Option("--partial-regex", help="Pattern marking partial file names."),
    ] = "^_",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """List the templates and partials a build would compile."""
    _configure_logging(verbose)
    try:
        options = coerce_task(
            {"input_dir": input_dir, "recursive": recursive, "partial_regex": partial_regex}
        )
        templates = asyncio.run(discover(options))
    except HbsBundleError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    for template in templates:
        kind = "partial" if template.is_partial else "template"
        typer.echo(f"{kind}\t{template.base_name}\t{template.relative}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
