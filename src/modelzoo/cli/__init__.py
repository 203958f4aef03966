"""modelzoo CLI.

Command-line interface for opening, inspecting and running model archives.
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from modelzoo import __version__

console = Console()

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbose: int) -> None:
    level = _LOG_LEVELS.get(verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose > 1)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="modelzoo")
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vv for debug)",
)
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option("--quiet", is_flag=True, help="Minimal output")
@click.pass_context
def cli(ctx, verbose, json, quiet):
    """Model Zoo - open, inspect and run pretrained model archives.

    \b
    Examples:
      modelzoo info denoise.zip
      modelzoo predict denoise.zip noisy.tif --axes yx -o denoised.tif
      modelzoo run denoise.zip
      modelzoo plugins
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose)


def get_context(ctx):
    """Create (once) the modelzoo Context for this invocation."""
    from modelzoo.context import Context

    if ctx.obj.get("context") is None:
        ctx.obj["context"] = Context()
    return ctx.obj["context"]


def register_commands() -> None:
    """Attach all subcommands to the cli group."""
    from modelzoo.cli.commands import config
    from modelzoo.cli.commands import info
    from modelzoo.cli.commands import plugins
    from modelzoo.cli.commands import predict

    cli.add_command(info.info)
    cli.add_command(predict.predict)
    cli.add_command(predict.run)
    cli.add_command(plugins.plugins)
    cli.add_command(config.config)


def main():
    """Entry point for the CLI."""
    register_commands()
    cli(obj={})


if __name__ == "__main__":
    main()
