"""
FILE: chyra/cli/commands/projects.py
PURPOSE: Project management commands (project add, ls, edit, rm)
"""

import json
from typing import Optional

import typer
from rich.table import Table

from ..main import console, current_user, error_console, print_plain, project_app
from ...core import service
from ...core.exceptions import (
    ChyraError,
    InvalidInputError,
    NotAuthorizedError,
    ProjectNotFoundError,
)


@project_app.command("add")
def project_add(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    name: str = typer.Argument(..., help="Project name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Project description"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new project in a workspace.

    Example:
        chyra project add 3f2a9c1b7d4e "Website"
        chyra project add 3f2a9c1b7d4e "Mobile" --json
    """
    user_id = current_user()
    try:
        project = service.create_project(user_id, workspace_id, name, description)

        if json_output:
            print_plain(project.to_json())
        elif raw:
            print_plain(f"{project.id}: {project.name}")
        else:
            console.print(f"[green]✓[/green] Created project {project.id}: {project.name}")

    except (InvalidInputError, NotAuthorizedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@project_app.command("ls")
def project_ls(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List the projects of a workspace.

    Example:
        chyra project ls 3f2a9c1b7d4e
        chyra project ls 3f2a9c1b7d4e --json
    """
    user_id = current_user()
    try:
        projects = service.list_projects(user_id, workspace_id)

        if json_output:
            print_plain(json.dumps([p.to_document() for p in projects], indent=2))

        elif raw:
            for project in projects:
                print_plain(f"{project.id}: {project.name}")

        else:
            if not projects:
                console.print("[dim]No projects found[/dim]")
                return

            table = Table(title="Projects")
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Name", style="white")
            table.add_column("Created", style="dim")

            for project in projects:
                # Format created_at as just the date if available
                created_display = project.created_at.split("T")[0] if project.created_at else ""
                table.add_row(project.id, project.name, created_display)

            console.print(table)
            console.print(f"\n[dim]Total: {len(projects)} project(s)[/dim]")

    except NotAuthorizedError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@project_app.command("edit")
def project_edit(
    project_id: str = typer.Argument(..., help="Project ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description ('' clears)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Rename a project or change its description (admins only).

    Example:
        chyra project edit 9b1c2d3e4f5a --name "Website v2"
    """
    user_id = current_user()
    try:
        project = service.update_project(user_id, project_id, name=name, description=description)
        if json_output:
            print_plain(project.to_json())
        else:
            console.print(f"[green]✓[/green] Updated project {project.id}: {project.name}")
    except ChyraError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@project_app.command("rm")
def project_rm(
    project_id: str = typer.Argument(..., help="Project ID to delete"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
):
    """
    Delete a project and its tasks permanently (admins only).

    Example:
        chyra project rm 9b1c2d3e4f5a --yes
    """
    user_id = current_user()
    try:
        if not yes:
            confirmed = typer.confirm(f"Delete project {project_id} and its tasks?", default=False)
            if not confirmed:
                console.print("[dim]Cancelled[/dim]")
                return

        service.delete_project(user_id, project_id)
        console.print(f"[red]✗[/red] Deleted project {project_id}")

    except (ProjectNotFoundError, NotAuthorizedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except ChyraError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
