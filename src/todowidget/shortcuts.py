from typing import Dict, Optional, Protocol, Tuple

from todowidget.appearance import Appearance
from todowidget.commands import WidgetCommands
from todowidget.logs import get_logger
from todowidget.store import TaskStore

log = get_logger("shortcuts")

FOCUS_INPUT = "focus-input"
CLEAR_INPUT = "clear-input"
MINIMIZE = "minimize"
CLEAR_COMPLETED = "clear-completed"
TOGGLE_THEME = "toggle-theme"

# (lower-cased key, shift held) -> action, all with Ctrl or Cmd held
MODIFIED_SHORTCUTS: Dict[Tuple[str, bool], str] = {
    ("n", False): FOCUS_INPUT,
    ("c", True): CLEAR_COMPLETED,
    ("t", False): TOGGLE_THEME,
}

class TaskInput(Protocol):
    @property
    def text(self) -> str: ...
    def clear(self) -> None: ...
    def focus(self) -> None: ...

class ShortcutDispatcher:
    """Keyboard shortcuts of the main surface."""

    def __init__(self, store: TaskStore, appearance: Appearance, commands: WidgetCommands, task_input: TaskInput):
        self.store = store
        self.appearance = appearance
        self.commands = commands
        self.task_input = task_input

    def dispatch(self, key: str, ctrl: bool = False, meta: bool = False, shift: bool = False) -> Optional[str]:
        """Run the action bound to a key press; returns its name, or None if unbound."""
        if key == "Escape":
            action = CLEAR_INPUT if self.task_input.text else MINIMIZE
        elif ctrl or meta:
            action = MODIFIED_SHORTCUTS.get((key.lower(), shift))
        else:
            action = None

        if action is None:
            return None
        log.debug(f"Shortcut {key!r} -> {action}")

        if action == FOCUS_INPUT:
            self.task_input.focus()
        elif action == CLEAR_INPUT:
            self.task_input.clear()
        elif action == MINIMIZE:
            self.commands.minimize()
        elif action == CLEAR_COMPLETED:
            self.store.clear_completed()
        elif action == TOGGLE_THEME:
            self.appearance.toggle_theme()
        return action
