"""Actionforce CLI entry point."""

import logging

import structlog
import typer
from rich.console import Console

from actionforce.api.cli.commands import dispatch

app = typer.Typer(
    name="actionforce",
    help="Actionforce - execute commands embedded in language model output",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.command("dispatch")(dispatch.dispatch)
app.command("scan")(dispatch.scan)


def configure_logging(debug: bool) -> None:
    """Route structlog through a level filter (WARNING, or DEBUG with --debug)."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


@app.callback()
def main(
    ctx: typer.Context,
    profile: str = typer.Option("dev", "--profile", "-p", help="Configuration profile"),
    config_dir: str = typer.Option("configs", "--config-dir", help="Directory of profile YAML files"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Actionforce CLI."""
    configure_logging(debug)
    # Store global options in context for subcommands
    ctx.obj = {"profile": profile, "config_dir": config_dir, "debug": debug}


@app.command()
def version():
    """Show Actionforce version."""
    from actionforce import __version__

    console.print(f"[bold blue]Actionforce[/bold blue] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
