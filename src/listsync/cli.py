"""Root CLI group for listsync with global flags and command registration."""

from __future__ import annotations

import click

from listsync import __version__
from listsync.commands import register_commands
from listsync.commands._context import AppContext
from listsync.config.settings import ConfigError, ListsyncSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="listsync")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with timing spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--sync", is_flag=True, help="Deliver store commands synchronously.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    sync: bool,
) -> None:
    """listsync — reorder and move items between synced lists."""
    try:
        settings = ListsyncSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
            sync=sync,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
