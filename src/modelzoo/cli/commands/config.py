"""Configuration management commands."""

import json

import click
from rich.console import Console
from rich.syntax import Syntax

from modelzoo.exceptions import ConfigurationError
from modelzoo.settings import DEFAULT_CONFIG, PROJECT_CONFIG, USER_CONFIG, find_config_file, load_settings

console = Console()


@click.group()
def config():
    """Manage configuration settings.

    \b
    Examples:
      # Show effective configuration
      modelzoo config show

      # Write a project configuration file
      modelzoo config init
    """
    pass


@config.command()
@click.option("--user", is_flag=True, help="Write ~/.modelzoo/config.yaml instead of the project file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init(ctx, user, force):
    """Initialize a configuration file."""
    json_output = ctx.obj.get("json", False)
    config_file = USER_CONFIG if user else PROJECT_CONFIG

    if config_file.exists() and not force:
        console.print(f"[yellow]⚠[/yellow] {config_file} already exists")
        if not click.confirm("Overwrite?"):
            ctx.exit(0)

    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(DEFAULT_CONFIG)

    if json_output:
        click.echo(json.dumps({"status": "success", "config_file": str(config_file)}))
    else:
        console.print(f"\n[green]✓[/green] Configuration initialized: {config_file}")


@config.command()
@click.pass_context
def show(ctx):
    """Show the effective configuration."""
    json_output = ctx.obj.get("json", False)
    config_file = find_config_file()

    try:
        settings = load_settings(config_file)
    except ConfigurationError as e:
        if json_output:
            click.echo(json.dumps({"valid": False, "error": str(e)}))
        else:
            console.print(f"[bold red]❌ Error:[/bold red] {e}")
        ctx.exit(1)

    values = settings.model_dump(mode="json")
    if json_output:
        click.echo(json.dumps({"config_file": str(config_file) if config_file else None, "settings": values}))
        return

    source = config_file or "[dim]defaults (no config file)[/dim]"
    console.print(f"\n[bold]Configuration:[/bold] {source}\n")
    if config_file is not None:
        console.print(Syntax(config_file.read_text(), "yaml", theme="monokai", line_numbers=True))
    for key, value in values.items():
        console.print(f"  {key}: [cyan]{value}[/cyan]")
