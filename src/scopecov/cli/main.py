"""scopecov CLI - scopecov command."""

import click

from scopecov.cli.run import run_command
from scopecov.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="scopecov")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """scopecov - nested-scope line coverage and per-function metrics."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(run_command, name="run")


if __name__ == "__main__":
    cli()
