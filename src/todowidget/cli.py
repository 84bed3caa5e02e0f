"""
Command Line Interface for the desktop todo widget.

Drives the same TaskStore and settings document the widget uses, so tasks
can be managed from a terminal while the widget is closed.
"""

import click
from pathlib import Path
from .version import VERSION
from .data import SettingsStore
from .models import MultiTask, TaskType, Theme, WidgetSettings
from .presenter import format_relative, subtask_progress, task_count_label
from .recovery import WidgetError
from .store import TaskStore


def _task_store(ctx) -> TaskStore:
    return TaskStore(ctx.obj["settings"])


def _resolve(ctx, store: TaskStore, position: int):
    """Map a 1-based list position to a task, or exit with an error."""
    tasks = store.tasks
    if position < 1 or position > len(tasks):
        click.echo(f"❌ No task #{position}")
        ctx.exit(1)
    return tasks[position - 1]


def _resolve_multi(ctx, store: TaskStore, position: int) -> MultiTask:
    task = _resolve(ctx, store, position)
    if not isinstance(task, MultiTask):
        click.echo(f"❌ Task #{position} is a simple task and has no subtasks")
        ctx.exit(1)
    return task


def _checkbox(item) -> str:
    return "[x]" if item.completed else "[ ]"


@click.group()
@click.version_option(version=VERSION, prog_name="todowidget")
@click.option('--store', 'store_path', type=click.Path(dir_okay=False, path_type=Path),
              envvar='TODOWIDGET_STORE', help='Path of the store document (default: data dir)')
@click.pass_context
def main(ctx, store_path):
    """
    Desktop Todo Widget - manage the widget's task list from the terminal.

    Tasks are addressed by their position in `list` output, starting at 1.
    """
    ctx.obj = {"settings": SettingsStore(store_path)}


@main.command()
@click.option('--multi', is_flag=True, help='Create a task with subtasks')
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def add(ctx, multi, text):
    """Add a new task at the top of the list."""
    store = _task_store(ctx)
    task = store.add_task(" ".join(text), TaskType.MULTI if multi else TaskType.SIMPLE)
    if task is None:
        click.echo("❌ Task text cannot be empty")
        ctx.exit(1)
    click.echo(f"✅ Added: {task.text}")


@main.command(name='list')
@click.option('--all', 'show_all', is_flag=True, help='Show subtasks of collapsed tasks too')
@click.pass_context
def list_tasks(ctx, show_all):
    """Show the task list, newest first."""
    store = _task_store(ctx)
    tasks = store.tasks
    click.echo(f"📋 {task_count_label(tasks)}")
    if not tasks:
        click.echo("📭 No tasks yet")
        return

    for position, task in enumerate(tasks, start=1):
        line = f"{position:>3}. {_checkbox(task)} {task.text}"
        if isinstance(task, MultiTask):
            line += f"  ({subtask_progress(task)}) {'▾' if task.expanded else '▸'}"
        click.echo(f"{line}  · {format_relative(task.created_at)}")
        if isinstance(task, MultiTask) and (task.expanded or show_all):
            for index, subtask in enumerate(task.subtasks, start=1):
                click.echo(f"       {index}. {_checkbox(subtask)} {subtask.text}")


@main.command()
@click.argument('position', type=int)
@click.pass_context
def done(ctx, position):
    """Toggle completion of a task."""
    store = _task_store(ctx)
    task = store.toggle_task(_resolve(ctx, store, position).id)
    click.echo(f"{'✅ Completed' if task.completed else '↩️  Reopened'}: {task.text}")


@main.command()
@click.argument('position', type=int)
@click.pass_context
def rm(ctx, position):
    """Delete a task."""
    store = _task_store(ctx)
    task = _resolve(ctx, store, position)
    store.delete_task(task.id)
    click.echo(f"🗑️  Deleted: {task.text}")


@main.command()
@click.argument('position', type=int)
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def edit(ctx, position, text):
    """Replace the text of a task."""
    store = _task_store(ctx)
    edited = store.edit_task_text(_resolve(ctx, store, position).id, " ".join(text))
    if edited is None:
        click.echo("↩️  Edit cancelled (empty text)")
        return
    click.echo(f"✏️  Updated: {edited.text}")


@main.command()
@click.argument('position', type=int)
@click.pass_context
def expand(ctx, position):
    """Show or hide the subtasks of a task in `list`."""
    store = _task_store(ctx)
    task = store.toggle_subtasks(_resolve_multi(ctx, store, position).id)
    click.echo(f"{'▾ Expanded' if task.expanded else '▸ Collapsed'}: {task.text}")


@main.command()
@click.argument('position', type=int)
@click.argument('target', type=int)
@click.pass_context
def move(ctx, position, target):
    """Move a task to the position of another task."""
    store = _task_store(ctx)
    dragged = _resolve(ctx, store, position)
    dropped_on = _resolve(ctx, store, target)
    if store.reorder_task(dragged.id, dropped_on.id):
        click.echo(f"↕️  Moved: {dragged.text} -> #{target}")
    else:
        click.echo("📦 Nothing to move")


@main.command()
@click.pass_context
def clear(ctx):
    """Remove all completed tasks."""
    removed = _task_store(ctx).clear_completed()
    if removed:
        click.echo(f"✅ Removed {removed} completed task(s)")
    else:
        click.echo("📦 No completed tasks")


@main.group()
def sub():
    """Manage the subtasks of a multi task."""
    pass


@sub.command(name='add')
@click.argument('position', type=int)
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def sub_add(ctx, position, text):
    """Append a subtask."""
    store = _task_store(ctx)
    subtask = store.add_subtask(_resolve_multi(ctx, store, position).id, " ".join(text))
    if subtask is None:
        click.echo("❌ Subtask text cannot be empty")
        ctx.exit(1)
    click.echo(f"✅ Added subtask: {subtask.text}")


def _subtask_index(ctx, task: MultiTask, number: int) -> int:
    index = number - 1
    if task.subtask_at(index) is None:
        click.echo(f"❌ No subtask #{number}")
        ctx.exit(1)
    return index


@sub.command(name='done')
@click.argument('position', type=int)
@click.argument('number', type=int)
@click.pass_context
def sub_done(ctx, position, number):
    """Toggle completion of a subtask."""
    store = _task_store(ctx)
    task = _resolve_multi(ctx, store, position)
    subtask = store.toggle_subtask(task.id, _subtask_index(ctx, task, number))
    click.echo(f"{'✅ Completed' if subtask.completed else '↩️  Reopened'}: {subtask.text}")


@sub.command(name='rm')
@click.argument('position', type=int)
@click.argument('number', type=int)
@click.pass_context
def sub_rm(ctx, position, number):
    """Delete a subtask."""
    store = _task_store(ctx)
    task = _resolve_multi(ctx, store, position)
    index = _subtask_index(ctx, task, number)
    text = task.subtasks[index].text
    store.delete_subtask(task.id, index)
    click.echo(f"🗑️  Deleted subtask: {text}")


@sub.command(name='edit')
@click.argument('position', type=int)
@click.argument('number', type=int)
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def sub_edit(ctx, position, number, text):
    """Replace the text of a subtask."""
    store = _task_store(ctx)
    task = _resolve_multi(ctx, store, position)
    edited = store.edit_task_text(task.id, " ".join(text), _subtask_index(ctx, task, number))
    if edited is None:
        click.echo("↩️  Edit cancelled (empty text)")
        return
    click.echo(f"✏️  Updated subtask: {edited.text}")


@sub.command(name='move')
@click.argument('position', type=int)
@click.argument('number', type=int)
@click.argument('target', type=int)
@click.pass_context
def sub_move(ctx, position, number, target):
    """Move a subtask to another position within the same task."""
    store = _task_store(ctx)
    task = _resolve_multi(ctx, store, position)
    if store.reorder_subtask(task.id, number - 1, target - 1):
        click.echo(f"↕️  Moved subtask #{number} -> #{target}")
    else:
        click.echo("📦 Nothing to move")


@main.command()
@click.pass_context
def theme(ctx):
    """Switch between the dark and light theme."""
    settings = ctx.obj["settings"]
    try:
        current = Theme(settings.get_value("theme", Theme.DARK.value))
    except ValueError:
        current = Theme.DARK
    new_theme = current.toggled()
    settings.set_value("theme", new_theme.value)
    click.echo(f"🎨 Theme: {new_theme.value}")


@main.command()
@click.argument('value', type=click.IntRange(0, 100))
@click.pass_context
def opacity(ctx, value):
    """Set the background opacity (0-100)."""
    ctx.obj["settings"].set_value("opacity", value)
    click.echo(f"🔆 Opacity: {value}%")


@main.command()
@click.pass_context
def top(ctx):
    """Toggle keeping the widget above other windows."""
    settings = ctx.obj["settings"]
    flag = not settings.get_value("alwaysOnTop", True)
    settings.set_value("alwaysOnTop", flag)
    click.echo(f"📌 Always on top: {'on' if flag else 'off'}")


@main.command()
@click.pass_context
def status(ctx):
    """Show the store location, task counts and current settings."""
    settings = ctx.obj["settings"]
    store = _task_store(ctx)
    click.echo("🔧 Desktop Todo Widget")
    click.echo(f"📦 Version: {VERSION}")
    click.echo(f"📍 Store: {settings.path}")
    click.echo(f"📋 Tasks: {task_count_label(store.tasks)}")
    click.echo("")

    document = settings.as_dict()
    document.pop("tasks", None)
    try:
        current = WidgetSettings.model_validate(document)
    except ValueError as e:
        click.echo(f"⚠️  Warning: settings do not validate: {e}")
        return
    click.echo("⚙️  Settings:")
    for line in current.to_yaml().splitlines():
        click.echo(f"   {line}")


@main.command()
@click.confirmation_option(prompt='Are you sure you want to clear all data? This action cannot be undone.')
@click.pass_context
def reset(ctx):
    """Clear all tasks and restore default settings."""
    try:
        ctx.obj["settings"].reset()
    except WidgetError as e:
        click.echo(f"❌ Failed to clear data: {e}")
        ctx.exit(1)
    click.echo("✅ All data has been cleared")


if __name__ == "__main__":
    main()
