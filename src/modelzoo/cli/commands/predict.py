"""Prediction commands."""

import json
from pathlib import Path

import click
from rich.console import Console

from modelzoo.exceptions import ModelZooError

console = Console()


def _fail(ctx, error, json_output):
    if json_output:
        click.echo(json.dumps({"status": "error", "error": str(error)}))
    else:
        console.print(f"[red]Error:[/red] {error}")
    ctx.exit(1)


@click.command()
@click.argument("archive", type=click.Path(exists=True))
@click.argument("image", type=click.Path(exists=True, path_type=Path))
@click.option("--axes", "-a", required=True, help="Axes of the input image (e.g. yx, zyx, yxc)")
@click.option("--output", "-o", required=True, type=click.Path(path_type=Path), help="Output file (.npy, .tif, .png)")
@click.option("--batch-size", type=int, help="Samples per backend call")
@click.option("--tiles", "number_of_tiles", type=int, help="Number of tiles")
@click.option("--tiling/--no-tiling", default=None, help="Enable or disable tiling")
@click.option("--cache-dir", type=click.Path(path_type=Path), help="Where weights are unpacked")
@click.pass_context
def predict(ctx, archive, image, axes, output, batch_size, number_of_tiles, tiling, cache_dir):
    """Run a model archive on an image file.

    \b
    Examples:
      modelzoo predict denoise.zip noisy.tif --axes yx -o denoised.tif
      modelzoo predict nuclei.zip stack.npy -a zyx -o labels.npy --tiles 4
    """
    from modelzoo.cli import get_context
    from modelzoo.imageio import NUMPY_SUFFIXES, PIL_SUFFIXES, read_image, write_image
    from modelzoo.prediction import PredictionOptions

    json_output = ctx.obj.get("json", False)
    quiet = ctx.obj.get("quiet", False)

    if output.suffix.lower() not in NUMPY_SUFFIXES | PIL_SUFFIXES:
        _fail(ctx, f"Unsupported output format: {output.suffix or output.name}", json_output)

    try:
        context = get_context(ctx)
        zoo = context.model_zoo
        trained_model = zoo.open(archive)

        options = PredictionOptions.options(context.settings)
        if batch_size is not None:
            options = options.batch_size(batch_size)
        if number_of_tiles is not None:
            options = options.number_of_tiles(number_of_tiles)
        if tiling is not None:
            options = options.tiling_enabled(tiling)
        if cache_dir is not None:
            options = options.cache_directory(cache_dir)

        data = read_image(image)
        if not quiet and not json_output:
            with console.status(f"[bold blue]Predicting with {trained_model.name}...[/bold blue]"):
                result = zoo.predict(trained_model, data, axes, options)
        else:
            result = zoo.predict(trained_model, data, axes, options)

        if result is None:
            _fail(
                ctx,
                f"No prediction plugin for model source '{trained_model.specification.source}'",
                json_output,
            )

        write_image(output, result)
    except (ModelZooError, OSError, ValueError, TypeError) as e:
        _fail(ctx, e, json_output)

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "success",
                    "model": trained_model.name,
                    "output": str(output),
                    "shape": list(result.shape),
                    "dtype": str(result.dtype),
                },
                indent=2,
            )
        )
    elif quiet:
        click.echo(str(output))
    else:
        console.print(f"\n[green]✓[/green] Predicted [cyan]{image.name}[/cyan] with {trained_model.name}")
        console.print(f"  Shape: {result.shape} ({result.dtype})")
        console.print(f"  Output: {output}")


@click.command()
@click.argument("archive", type=click.Path(exists=True))
@click.pass_context
def run(ctx, archive):
    """Run the prediction command registered for an archive's source.

    Missing inputs (image, axes, output ...) are asked for interactively.

    \b
    Examples:
      modelzoo run denoise.zip
    """
    from modelzoo.cli import get_context

    json_output = ctx.obj.get("json", False)

    try:
        zoo = get_context(ctx).model_zoo
        module = zoo.predict_interactive(zoo.open(archive))
    except (ModelZooError, OSError, ValueError, TypeError) as e:
        _fail(ctx, e, json_output)

    if module is None:
        ctx.exit(1)

    output_path = module.outputs.get("output_path")
    if json_output:
        click.echo(json.dumps({"status": "success", "output": str(output_path)}))
    else:
        console.print(f"\n[green]✓[/green] Wrote {output_path}")
