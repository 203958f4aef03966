"""Show the description of a model archive."""

import json

import click
from rich.console import Console
from rich.table import Table

from modelzoo.exceptions import ModelZooError

console = Console()


@click.command()
@click.argument("archive", type=click.Path(exists=True))
@click.pass_context
def info(ctx, archive):
    """Show name, source, tensors and weights of a model archive.

    \b
    Examples:
      modelzoo info denoise.zip
      modelzoo --json info ./unpacked-model/
    """
    from modelzoo.cli import get_context

    json_output = ctx.obj.get("json", False)

    try:
        trained_model = get_context(ctx).model_zoo.open(archive)
    except (ModelZooError, OSError) as e:
        if json_output:
            click.echo(json.dumps({"status": "error", "error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)

    spec = trained_model.specification

    if json_output:
        click.echo(json.dumps(spec.to_dict(), indent=2))
        return

    console.print(f"\n[bold cyan]{spec.name}[/bold cyan]")
    if spec.description:
        console.print(f"[dim]{spec.description}[/dim]")
    console.print(f"  Source: {spec.source or '[dim]default[/dim]'}")
    if spec.authors:
        console.print(f"  Authors: {', '.join(spec.authors)}")
    console.print(f"  Archive: {trained_model.source}")

    table = Table(title="Tensors")
    table.add_column("Kind", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Axes", style="yellow")
    table.add_column("Type", style="white")
    table.add_column("Processing", style="magenta")
    for tensor in spec.inputs:
        steps = ", ".join(s.name for s in tensor.preprocessing) or "-"
        table.add_row("input", tensor.name, tensor.axes, tensor.data_type, steps)
    for tensor in spec.outputs:
        steps = ", ".join(s.name for s in tensor.postprocessing) or "-"
        table.add_row("output", tensor.name, tensor.axes, tensor.data_type, steps)
    console.print(table)

    if spec.weights:
        weights_table = Table(title="Weights")
        weights_table.add_column("Format", style="cyan")
        weights_table.add_column("File", style="white")
        for weights_id, weights in spec.weights.items():
            weights_table.add_row(weights_id, weights.source)
        console.print(weights_table)
    else:
        console.print("[yellow]No weights listed.[/yellow]")
