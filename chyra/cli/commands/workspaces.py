"""
FILE: chyra/cli/commands/workspaces.py
PURPOSE: Workspace commands (add, ls, rename, rm, invite, join, members, role, kick)
"""

import json

import typer
from rich.table import Table

from ..main import console, current_user, error_console, print_plain, workspace_app
from ...core import service
from ...core.exceptions import ChyraError, InvalidInputError, NotAuthorizedError


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(..., help="Workspace name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a workspace (you become its admin).

    Example:
        chyra workspace add "Acme"
    """
    user_id = current_user()
    try:
        workspace = service.create_workspace(user_id, name)

        if json_output:
            print_plain(workspace.to_json())
        elif raw:
            print_plain(f"{workspace.id}: {workspace.name} {workspace.invite_code}")
        else:
            console.print(
                f"[green]✓[/green] Created workspace [bold]{workspace.id}[/bold]: {workspace.name} "
                f"[dim](invite code {workspace.invite_code})[/dim]"
            )

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("ls")
def workspace_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List the workspaces you belong to.
    """
    user_id = current_user()
    try:
        workspaces = service.list_workspaces(user_id)

        if json_output:
            print_plain(json.dumps([w.to_document() for w in workspaces], indent=2))
        elif raw:
            for workspace in workspaces:
                print_plain(f"{workspace.id}: {workspace.name}")
        else:
            if not workspaces:
                console.print("[dim]No workspaces found[/dim]")
                return

            table = Table(title="Workspaces")
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Name", style="white")
            table.add_column("Role", style="magenta")
            table.add_column("Invite", style="dim")

            for workspace in workspaces:
                is_admin = workspace.admin_id == user_id
                table.add_row(
                    workspace.id,
                    workspace.name,
                    "admin" if is_admin else "member",
                    workspace.invite_code if is_admin else "",
                )

            console.print(table)
            console.print(f"\n[dim]Total: {len(workspaces)} workspace(s)[/dim]")

    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("rename")
def workspace_rename(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a workspace (admins only)."""
    user_id = current_user()
    try:
        workspace = service.rename_workspace(user_id, workspace_id, name)
        console.print(f"[green]✓[/green] Renamed workspace {workspace.id} to {workspace.name}")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("rm")
def workspace_rm(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
):
    """
    Delete a workspace with all its projects and tasks (admins only).
    """
    user_id = current_user()
    try:
        if not yes:
            confirmed = typer.confirm(
                f"Delete workspace {workspace_id} and everything in it?", default=False
            )
            if not confirmed:
                console.print("[dim]Cancelled[/dim]")
                return

        service.delete_workspace(user_id, workspace_id)
        console.print(f"[red]✗[/red] Deleted workspace {workspace_id}")

    except NotAuthorizedError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("invite")
def workspace_invite(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """Regenerate the invite code of a workspace (admins only)."""
    user_id = current_user()
    try:
        workspace = service.regenerate_invite_code(user_id, workspace_id)
        if raw:
            print_plain(workspace.invite_code)
        else:
            console.print(f"New invite code: [bold]{workspace.invite_code}[/bold]")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("join")
def workspace_join(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    invite_code: str = typer.Argument(..., help="Invite code"),
):
    """
    Join a workspace with its invite code.

    Example:
        chyra workspace join 3f2a9c1b7d4e K7Q2ZP
    """
    user_id = current_user()
    try:
        service.join_workspace(user_id, workspace_id, invite_code)
        console.print(f"[green]✓[/green] Joined workspace {workspace_id}")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("members")
def workspace_members(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List the members of a workspace."""
    user_id = current_user()
    try:
        members = service.list_members(user_id, workspace_id)

        if json_output:
            print_plain(json.dumps([m.to_document() for m in members], indent=2))
            return

        table = Table(title="Members")
        table.add_column("Member", style="cyan", no_wrap=True)
        table.add_column("User", style="white")
        table.add_column("Role", style="magenta")
        for member in members:
            table.add_row(member.id, member.user_id, member.role)
        console.print(table)

    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("role")
def workspace_role(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    member_id: str = typer.Argument(..., help="Member ID (see 'workspace members')"),
    role: str = typer.Argument(..., help="ADMIN or MEMBER"),
):
    """Change a member's role (admins only)."""
    user_id = current_user()
    try:
        member = service.set_member_role(user_id, workspace_id, member_id, role)
        console.print(f"[green]✓[/green] {member.user_id} is now {member.role}")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@workspace_app.command("kick")
def workspace_kick(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    member_id: str = typer.Argument(..., help="Member ID (see 'workspace members')"),
):
    """Remove a member from a workspace (admins only)."""
    user_id = current_user()
    try:
        service.remove_member(user_id, workspace_id, member_id)
        console.print(f"[red]✗[/red] Removed member {member_id}")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
