"""CLI interface for the random student picker."""

from __future__ import annotations

import logging
from typing import NoReturn, Optional

import typer

from picker_app.config import PickerConfig, build_store, load_config, save_config
from store.repository import PickerStore
from ui.formatting import format_time, relative

app = typer.Typer(help="Random Student Picker CLI")


def _store(ctx: typer.Context) -> PickerStore:
    return ctx.obj


def _fail(message: str) -> NoReturn:
    typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to picker YAML config"
    ),
) -> None:
    """Manage class rosters and pick students."""
    if ctx.invoked_subcommand == "init-config":
        return
    try:
        config = load_config(config_path) if config_path else PickerConfig()
    except FileNotFoundError as e:
        _fail(f"Config file not found: {e}")
    except ValueError as e:
        _fail(f"Invalid config: {e}")

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = build_store(config)


@app.command()
def init_config(
    path: str = typer.Argument(..., help="Where to write the YAML config"),
    db_path: str = typer.Option("data/picker.db", help="SQLite file holding the roster"),
    policy: str = typer.Option("cycle_limited", help="Selection policy (fair or cycle_limited)"),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible picks"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a starter config file."""
    try:
        config = PickerConfig(db_path=db_path, policy=policy, seed=seed)
        written = save_config(config, path, overwrite=force)
    except FileExistsError as e:
        _fail(f"{e} (use --force to overwrite)")
    except ValueError as e:
        _fail(f"Invalid config: {e}")
    typer.secho(f"✅ Config written to {written}", fg=typer.colors.GREEN)


@app.command()
def groups(ctx: typer.Context) -> None:
    """List all groups; the current one is starred."""
    store = _store(ctx)
    current = store.current_group()
    for group in store.all_groups():
        marker = "*" if current is not None and group.id == current.id else " "
        typer.echo(
            f"{marker} {group.title}  [{group.id}]  "
            f"students: {len(group.students)} | cycles: {group.cycles}"
        )


@app.command()
def group_create(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Group title"),
    cycles: int = typer.Option(1, help="Picks per student before the cycle resets"),
    use: bool = typer.Option(False, "--use", help="Make the new group current"),
) -> None:
    """Create a new group."""
    store = _store(ctx)
    group = store.create_group(title, cycles)
    if use:
        store.set_current_group(group.id)
    typer.secho(f"✅ Created group {group.title} [{group.id}]", fg=typer.colors.GREEN)


@app.command()
def group_use(
    ctx: typer.Context,
    group_id: str = typer.Argument(..., help="Group ID to make current"),
) -> None:
    """Switch the current group."""
    if not _store(ctx).set_current_group(group_id):
        _fail(f"Group not found: {group_id}")
    typer.secho(f"✅ Current group: {group_id}", fg=typer.colors.GREEN)


@app.command()
def group_rename(
    ctx: typer.Context,
    group_id: str = typer.Argument(..., help="Group ID"),
    title: str = typer.Argument(..., help="New title"),
) -> None:
    """Rename a group."""
    if not _store(ctx).rename_group(group_id, title):
        _fail(f"Group not found: {group_id}")
    typer.secho("✅ Group renamed", fg=typer.colors.GREEN)


@app.command()
def group_copy(
    ctx: typer.Context,
    source_id: str = typer.Argument(..., help="Group ID to copy"),
    title: str = typer.Argument(..., help="Title for the copy"),
) -> None:
    """Copy a group's roster and cycle setting into a new group."""
    group = _store(ctx).copy_group(source_id, title)
    if group is None:
        _fail(f"Group not found: {source_id}")
    typer.secho(f"✅ Copied to {group.title} [{group.id}]", fg=typer.colors.GREEN)


@app.command()
def group_delete(
    ctx: typer.Context,
    group_id: str = typer.Argument(..., help="Group ID to delete"),
) -> None:
    """Delete a group (the last group cannot be deleted)."""
    if not _store(ctx).delete_group(group_id):
        _fail(f"Cannot delete group {group_id} (unknown or last remaining group)")
    typer.secho("✅ Group deleted", fg=typer.colors.GREEN)


@app.command()
def cycles(
    ctx: typer.Context,
    value: Optional[int] = typer.Argument(None, help="New cycle cap for the current group"),
) -> None:
    """Show or set the current group's cycle cap."""
    store = _store(ctx)
    if value is None:
        typer.echo(str(store.current_cycles()))
        return
    group = store.current_group()
    if group is None or not store.set_cycles(group.id, value):
        _fail("No current group")
    typer.secho(f"✅ Cycles set to {store.current_cycles()}", fg=typer.colors.GREEN)


@app.command()
def add(
    ctx: typer.Context,
    names: list[str] = typer.Argument(..., help="Student names to add"),
) -> None:
    """Add students to the current group."""
    store = _store(ctx)
    for name in names:
        student = store.add_student(name)
        if student is None:
            _fail("No current group")
        typer.echo(f"  + {student.name} [{student.id}]")


@app.command()
def remove(
    ctx: typer.Context,
    student_id: str = typer.Argument(..., help="Student ID to remove"),
) -> None:
    """Remove a student from the current group; their history is kept."""
    if not _store(ctx).delete_student(student_id):
        _fail(f"Student not found: {student_id}")
    typer.secho("✅ Student removed", fg=typer.colors.GREEN)


@app.command()
def rename(
    ctx: typer.Context,
    student_id: str = typer.Argument(..., help="Student ID"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a student, updating their past history entries."""
    if not _store(ctx).rename_student(student_id, name):
        _fail(f"Student not found: {student_id}")
    typer.secho("✅ Student renamed", fg=typer.colors.GREEN)


@app.command()
def roster(ctx: typer.Context) -> None:
    """List students in the current group with their pick counts."""
    students = _store(ctx).students()
    if not students:
        typer.secho("No students.", fg=typer.colors.YELLOW)
        return
    for student in students:
        last = relative(student.picks[-1]) if student.picks else "never"
        typer.echo(f"  {student.name}  [{student.id}]  picks: {student.pick_count} | last: {last}")


@app.command()
def history(
    ctx: typer.Context,
    limit: int = typer.Option(20, help="Show at most this many recent picks"),
) -> None:
    """Show recent picks in the current group, newest first."""
    entries = _store(ctx).history()
    if not entries:
        typer.secho("No picks yet.", fg=typer.colors.YELLOW)
        return
    for entry in reversed(entries[-limit:]):
        typer.echo(f"  {format_time(entry.timestamp)}  ({relative(entry.timestamp)})  {entry.name}")


@app.command()
def pick(ctx: typer.Context) -> None:
    """Pick the next student with the configured policy."""
    entry = _store(ctx).pick()
    if entry is None:
        _fail("No students to pick from")
    typer.secho(f"🎯 {entry.name}", fg=typer.colors.GREEN, bold=True)


@app.command()
def reset_counts(ctx: typer.Context) -> None:
    """Clear pick counts and history, keeping the roster."""
    if not _store(ctx).reset_counts():
        _fail("No current group")
    typer.secho("✅ Counts reset", fg=typer.colors.GREEN)


@app.command()
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove every student and all history from the current group."""
    if not yes:
        typer.confirm("Remove all students and history from the current group?", abort=True)
    if not _store(ctx).clear_all():
        _fail("No current group")
    typer.secho("✅ Group cleared", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
