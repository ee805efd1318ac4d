#!/usr/bin/env python3
"""jail CLI - Sandboxed dev environments via containers."""
from typing import Optional

import typer

from jail.cli_jail_commands import register_jail_commands
from jail.cli_support import console, setup_file_logging
from jail.core.logger import set_verbose

app = typer.Typer(
    name="jail",
    help="""jail - Sandboxed dev environments via containers

Each jail is a workspace directory plus one Podman/Docker container.

Quick start:
  jail clone https://github.com/owner/repo   # Clone and enter
  jail list                                  # See your jails
  jail enter repo -p 3000                    # Re-enter, exposing a port
  jail remove repo                           # Throw it away
""",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks on error."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    ctx.obj = {"verbose": verbose}
    set_verbose(verbose)
    if log_file:
        setup_file_logging(log_file=log_file, verbose=verbose)


register_jail_commands(app, console)

if __name__ == "__main__":
    app()
