"""Display helpers shared by every presentation layer."""
import html
from datetime import datetime, timezone
from typing import Iterable, Optional

from todowidget.models import MultiTask, TodoItem

def escape_text(text: str) -> str:
    """Escape user text for markup; task text is never interpreted."""
    return html.escape(text, quote=True)

def task_count_label(tasks: Iterable[TodoItem]) -> str:
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    if total == 0:
        return "0 tasks"
    if completed == 0:
        return f"{total} {'task' if total == 1 else 'tasks'}"
    return f"{total - completed} of {total} remaining"

def subtask_progress(task: MultiTask) -> str:
    done = sum(1 for s in task.subtasks if s.completed)
    return f"{done}/{len(task.subtasks)}"

def format_relative(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Short age of a timestamp: 'just now', '5m ago', '3h ago', '2d ago', then the date."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    minutes = int((now - timestamp).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return timestamp.astimezone().strftime("%x")
