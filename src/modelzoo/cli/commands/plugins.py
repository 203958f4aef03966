"""List registered prediction plugins and commands."""

import json

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command()
@click.pass_context
def plugins(ctx):
    """List prediction plugins and prediction commands.

    A model archive is run by the plugin whose name equals its source.
    """
    from modelzoo.cli import get_context
    from modelzoo.commands.prediction import SingleImagePredictionCommand
    from modelzoo.prediction import SingleImagePrediction

    json_output = ctx.obj.get("json", False)
    plugin_service = get_context(ctx).plugin_service

    rows = []
    for kind, plugin_type in (("prediction", SingleImagePrediction), ("command", SingleImagePredictionCommand)):
        for plugin_info in plugin_service.get_plugins_of_type(plugin_type):
            rows.append(
                {
                    "kind": kind,
                    "name": plugin_info.name,
                    "class": plugin_info.class_name,
                    "origin": plugin_info.origin,
                }
            )

    if json_output:
        click.echo(json.dumps({"plugins": rows}, indent=2))
        return

    table = Table(title=f"Plugins ({len(rows)} registered)")
    table.add_column("Kind", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Class", style="white")
    table.add_column("Origin", style="dim")
    for row in rows:
        table.add_row(row["kind"], row["name"], row["class"], row["origin"])
    console.print(table)
