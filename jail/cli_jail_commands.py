"""Jail lifecycle CLI commands."""
from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jail.cli_support import get_lifecycle, handle_cli_error, print_success
from jail.core.errors import JailError
from jail.models import ContainerState

PORT_HELP = "Port to expose (repeatable). Adding a port to an existing jail recreates its container."


def _verbose(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("verbose"))


def register_jail_commands(app: typer.Typer, console: Console) -> None:
    """Attach jail commands to the main CLI."""

    @app.command("clone")
    def clone_command(
        ctx: typer.Context,
        source: str = typer.Argument(..., help="Git URL or local path to clone."),
        name: Optional[str] = typer.Option(None, "--name", "-n", help="Jail name (default: derived from source)."),
        ports: Optional[List[int]] = typer.Option(None, "--port", "-p", min=1, max=65535, help=PORT_HELP),
    ) -> None:
        """Clone a git repository or local path into a sandboxed environment."""
        try:
            get_lifecycle().clone(source, name=name, ports=ports or [])
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))

    @app.command("create")
    def create_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name for the jail."),
        ports: Optional[List[int]] = typer.Option(None, "--port", "-p", min=1, max=65535, help=PORT_HELP),
    ) -> None:
        """Create an empty jail."""
        try:
            get_lifecycle().create(name, ports=ports or [])
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))

    @app.command("list")
    def list_command(ctx: typer.Context) -> None:
        """List all jails."""
        try:
            listings = get_lifecycle().list_jails()
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))
            return

        if not listings:
            console.print("No jails found.")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Source", style="dim")
        table.add_column("Status")

        for listing in listings:
            if listing.is_corrupt:
                table.add_row(escape(listing.name), "", "")
                continue
            style = "green" if listing.state is ContainerState.RUNNING else "yellow"
            table.add_row(
                escape(listing.name),
                escape(listing.source),
                f"[{style}]{listing.state.value}[/{style}]",
            )

        console.print(table)

    def _enter(ctx: typer.Context, name: Optional[str], ports: Optional[List[int]]) -> None:
        try:
            get_lifecycle().enter(name, new_ports=ports or [])
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))

    @app.command("enter")
    def enter_command(
        ctx: typer.Context,
        name: Optional[str] = typer.Argument(None, help="Name or filter (interactive selection if several match)."),
        ports: Optional[List[int]] = typer.Option(None, "--port", "-p", min=1, max=65535, help=PORT_HELP),
    ) -> None:
        """Enter a jail's shell."""
        _enter(ctx, name, ports)

    @app.command("start", hidden=True)
    def start_command(
        ctx: typer.Context,
        name: Optional[str] = typer.Argument(None, help="Name or filter."),
        ports: Optional[List[int]] = typer.Option(None, "--port", "-p", min=1, max=65535, help=PORT_HELP),
    ) -> None:
        """Alias for enter."""
        _enter(ctx, name, ports)

    def _remove(ctx: typer.Context, name: Optional[str]) -> None:
        try:
            get_lifecycle().remove(name)
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))

    @app.command("remove")
    def remove_command(
        ctx: typer.Context,
        name: Optional[str] = typer.Argument(None, help="Name or filter (interactive selection if several match)."),
    ) -> None:
        """Remove a jail and its container."""
        _remove(ctx, name)

    @app.command("rm", hidden=True)
    def rm_command(
        ctx: typer.Context,
        name: Optional[str] = typer.Argument(None, help="Name or filter."),
    ) -> None:
        """Alias for remove."""
        _remove(ctx, name)

    @app.command("code")
    def code_command(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="Name of the jail."),
    ) -> None:
        """Open VSCode attached to a jail's container."""
        try:
            get_lifecycle().code(name)
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))

    @app.command("status")
    def status_command(ctx: typer.Context) -> None:
        """Check container runtime health."""
        try:
            report = get_lifecycle().status()
        except JailError as e:
            handle_cli_error(e, console, _verbose(ctx))
            return

        console.print("[bold]Runtime Status[/bold]\n")
        for engine in report.engines:
            style = {"available": "green", "not installed": "dim"}.get(engine.label, "yellow")
            suffix = " ✓" if engine.available else ""
            console.print(f"  {engine.runtime.command.capitalize()}: [{style}]{engine.label}{suffix}[/{style}]")
            hint = report.start_hint(engine)
            if hint:
                console.print(f"    Run '[cyan]{hint}[/cyan]' to start")

        console.print()
        if report.active is None:
            console.print("  [red bold]No container runtime available![/red bold]")
            if report.error:
                console.print(f"  [dim]{escape(report.error)}[/dim]")
            return

        console.print(f"  Active runtime: [green bold]{report.active}[/green bold]")
        console.print()
        if report.image_present:
            print_success(console, f"Base image ({report.image}): exists", prefix="  ✓")
        else:
            console.print(
                f"  Base image ({report.image}): [yellow]not built (will build on first use)[/yellow]"
            )
