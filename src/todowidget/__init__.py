"""
Desktop Todo Widget - a small hierarchical task list for an always-on-top desktop widget.

This package provides the widget's core:
TaskStore (tasks → subtasks), the per-window VisibilityController and the
command surface a presentation layer drives them through.
"""

from .version import VERSION, APP_SCHEMA_VERSION
from .models import (
    TaskType,
    Theme,
    Subtask,
    SimpleTask,
    MultiTask,
    WindowBounds,
    WidgetSettings,
)
from .data import SettingsStore
from .store import TaskStore
from .visibility import VisibilityController, WindowState, RecoveryListener, AsyncioScheduler
from .commands import WidgetCommands, NotificationChannel

__version__ = VERSION

__all__ = [
    "VERSION",
    "APP_SCHEMA_VERSION",
    "TaskType",
    "Theme",
    "Subtask",
    "SimpleTask",
    "MultiTask",
    "WindowBounds",
    "WidgetSettings",
    "SettingsStore",
    "TaskStore",
    "VisibilityController",
    "WindowState",
    "RecoveryListener",
    "AsyncioScheduler",
    "WidgetCommands",
    "NotificationChannel",
]
