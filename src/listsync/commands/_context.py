"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The workspace is created lazily so ``--help`` and
``--version`` never touch the store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from listsync.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from listsync.config.settings import ListsyncSettings
    from listsync.infrastructure.workspace import Workspace
    from listsync.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: ListsyncSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from listsync.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from listsync.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        """The workspace (created lazily on first access)."""
        if self._workspace is None:
            from listsync.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
            self._workspace.init_event_bus()
            click.get_current_context().call_on_close(self._workspace.close)
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        Success goes to stdout (warnings to stderr outside JSON mode);
        failure goes to stderr with exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output and result.op != "replay":
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
