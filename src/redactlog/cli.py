"""Command line tools for redactlog configurations.

Commands:
    validate    Check a configuration file and list every problem
    sample      Log sample messages through a configuration's transports
"""

from __future__ import annotations

import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import LoggingConfig
from .errors import ConfigError
from .levels import LEVELS
from .logger import LoggerManager
from .source import config_from_env, load_config_file
from .transports import TransportType

console = Console(emoji=False)


@click.group()
@click.version_option(version=__version__, prog_name="redactlog")
def cli():
    """redactlog - check and try out logging configurations."""
    # Environment variables such as REDACTLOG_CONFIG may come from .env
    load_dotenv()


def _load(config_file: str | None) -> LoggingConfig:
    tree = load_config_file(config_file) if config_file else config_from_env()
    return LoggingConfig.from_dict(tree)


def _print_issues(error: ConfigError) -> None:
    console.print(f"[red]✗ {escape(error.message)}[/red]")
    for issue in error.issues:
        where = f"{escape(issue.where)}: " if issue.where else ""
        console.print(f"  [yellow]{issue.code}[/yellow] {where}{escape(issue.message)}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def validate(config_file: str):
    """Validate a configuration file."""
    try:
        config = _load(config_file)
    except ConfigError as e:
        _print_issues(e)
        sys.exit(1)

    console.print("[green]✓ Configuration is valid[/green]")
    console.print(
        f"  Defaults: level={config.defaults.level} "
        f"transport={', '.join(config.defaults.transport)}"
    )

    table = Table(title="Transports")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Format")
    table.add_column("Sensitive")
    table.add_column("Limit")
    table.add_column("Members / Path")
    for t in config.transports:
        limit = LEVELS[t.level_limit].name if t.level_limit is not None else "-"
        detail = ", ".join(t.members) if t.is_group else (t.path or "")
        table.add_row(
            t.name,
            t.type.value,
            t.format.value if t.format else "-",
            "-" if t.is_group else ("shown" if t.show_sensitive else "redacted"),
            limit,
            detail,
        )
    console.print(table)
    console.print(f"  Modules: {len(config.modules)}")


@cli.command()
@click.argument("config_file", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--module", "-m", default="sample", help="Module name to log as")
@click.option("--method", default="run", help="Method name to log as")
@click.option("--path", "http_path", default="/items", help="Path for the HTTP-style logger")
def sample(config_file: str | None, module: str, method: str, http_path: str):
    """Log sample messages at every level through the configured transports.

    Without CONFIG_FILE the configuration comes from the environment.
    Stream transports are bound to standard output.
    """
    try:
        config = _load(config_file)
    except ConfigError as e:
        _print_issues(e)
        sys.exit(1)

    manager = LoggerManager(config, console=console)
    for transport in config.transports:
        if transport.type is TransportType.STREAM:
            manager.register_stream(transport.name, sys.stdout)

    plain = manager.get_logger(module, method)
    http = manager.get_logger(module, "GET", http_path)

    for level in LEVELS:
        for logger in (plain, http):
            emit = getattr(logger, level.name)
            emit("plain %s message with %d%% done", level.name, 50)
            emit("card %<%s%> was charged", "4111-1111-1111-1111")
            emit("password follows%>", "hunter2")
            emit("%<whole line is sensitive: %s", "secret")
            emit("trailing arguments", True, None, 3.5, len)


def main():
    """Entry point for the redactlog command."""
    cli()


if __name__ == "__main__":
    main()
