"""scopecov run command - measure a Python script."""

from __future__ import annotations

import json
import runpy
import sys
from pathlib import Path
from typing import Any

import click

from scopecov.config.loader import load_config
from scopecov.core.errors import ConfigError
from scopecov.core.logging import configure_logging, get_logger, set_run_id
from scopecov.coverage.collector import Collector
from scopecov.coverage.driver import TraceDriver
from scopecov.coverage.stack import SessionStack

log = get_logger("cli.run")


def _exit_code(exc: SystemExit) -> int:
    if exc.code is None:
        return 0
    if isinstance(exc.code, int):
        return exc.code
    return 1


def run_script(collector: Collector, script: Path, args: tuple[str, ...]) -> int:
    """Run ``script`` as __main__ under ``collector``. Returns its exit code."""
    script = script.resolve()
    saved_argv = sys.argv[:]
    saved_path = sys.path[:]
    sys.argv = [str(script), *args]
    sys.path.insert(0, str(script.parent))
    code = 0
    try:
        with collector.measure():
            try:
                runpy.run_path(str(script), run_name="__main__")
            except SystemExit as exc:
                code = _exit_code(exc)
    finally:
        sys.argv = saved_argv
        sys.path[:] = saved_path
    return code


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "-p",
    "--path",
    "paths",
    multiple=True,
    type=click.Path(path_type=Path),
    help="File or directory to track (repeatable). Default: config paths.",
)
@click.option("--include", default=None, help="Glob tracked file names must match.")
@click.option("-x", "--exclude", multiple=True, help="Glob removing tracked files (repeatable).")
@click.option(
    "--base",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory reported paths are relative to. Default: current directory.",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file used instead of .scopecov.yaml.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the JSON result to a file instead of stdout.",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    script: Path,
    args: tuple[str, ...],
    paths: tuple[Path, ...],
    include: str | None,
    exclude: tuple[str, ...],
    base: Path | None,
    config_file: Path | None,
    output: Path | None,
) -> None:
    """Run SCRIPT under line coverage and print coverage and metrics as JSON.

    Arguments after SCRIPT are passed to it.
    """
    try:
        config = load_config(config_file=config_file)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if not (ctx.obj or {}).get("verbose"):
        configure_logging(config=config.logging)

    update: dict[str, Any] = {}
    if paths:
        update["paths"] = [str(p) for p in paths]
    if include is not None:
        update["include"] = include
    if exclude:
        update["exclude"] = [*config.collector.exclude, *exclude]
    if base is not None:
        update["base"] = str(base)
    collector_config = config.collector.model_copy(update=update)

    set_run_id()
    collector = Collector.from_config(
        collector_config, driver=TraceDriver(), stack=SessionStack()
    )
    log.info("run_started", script=str(script), files=len(collector.files))
    code = run_script(collector, script, args)

    payload = {
        "coverage": collector.export(),
        "metrics": collector.metrics().to_dict(),
    }
    text = json.dumps(payload, indent=2)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n")
    else:
        click.echo(text)
    log.info("run_finished", script=str(script), exit_code=code)
    if code:
        ctx.exit(code)
