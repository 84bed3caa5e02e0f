"""
Edit-mode and drag-and-drop sessions between a presentation layer and the TaskStore.

Neither session renders anything. A presenter forwards clicks, key presses
and drag events here, and redraws from the store's observer callback or
from the ``on_render`` hook passed in.
"""
from typing import Any, Callable, Optional

from todowidget.logs import get_logger
from todowidget.models import MultiTask
from todowidget.store import TaskStore

log = get_logger("interaction")

class EditSession:
    """Tracks edit mode and the task or subtask currently open in the inline editor."""

    def __init__(self, store: TaskStore, on_render: Optional[Callable[[], None]] = None):
        self.store = store
        self.on_render = on_render
        self.edit_mode = False
        self.editing_task_id: Optional[str] = None
        self.editing_subtask_index: Optional[int] = None

    @property
    def is_editing(self) -> bool:
        return self.editing_task_id is not None

    def enter(self) -> None:
        self.edit_mode = True
        self._clear_target()

    def exit(self) -> None:
        self.edit_mode = False
        self._clear_target()

    def toggle(self) -> bool:
        if self.edit_mode:
            self.exit()
        else:
            self.enter()
        return self.edit_mode

    def _clear_target(self) -> None:
        self.editing_task_id = None
        self.editing_subtask_index = None

    def click(self, task_id: Any, subtask_index: Optional[int] = None):
        """Route a click on a task or subtask: edit it in edit mode, toggle it otherwise."""
        if self.edit_mode:
            return self.select(task_id, subtask_index)
        if subtask_index is not None:
            return self.store.toggle_subtask(task_id, subtask_index)
        return self.store.toggle_task(task_id)

    def select(self, task_id: Any, subtask_index: Optional[int] = None) -> Optional[str]:
        """Open the editor on a task or subtask; returns the text to seed it with."""
        if not self.edit_mode:
            return None
        task = self.store.get_task(task_id)
        if task is None:
            return None

        if subtask_index is not None:
            subtask = task.subtask_at(subtask_index) if isinstance(task, MultiTask) else None
            if subtask is None:
                return None
            seed = subtask.text
        else:
            seed = task.text

        self.editing_task_id = task.id
        self.editing_subtask_index = subtask_index
        log.debug(f"Editing task={task.id} subtask={subtask_index}")
        return seed

    def commit(self, text: str) -> bool:
        """Save the editor contents (confirm key or focus loss); blank text cancels instead."""
        if not self.is_editing:
            return False
        if not (text or "").strip():
            self.cancel()
            return False
        edited = self.store.edit_task_text(self.editing_task_id, text, self.editing_subtask_index)
        self.exit()
        return edited is not None

    def cancel(self) -> None:
        """Discard the edit and redraw the unchanged list."""
        self.exit()
        if self.on_render is not None:
            self.on_render()

class DragSession:
    """Drag-to-reorder state for tasks and for subtasks within one parent."""

    def __init__(self, store: TaskStore, edit_session: Optional[EditSession] = None):
        self.store = store
        self.edit_session = edit_session
        self.dragged_task_id: Optional[str] = None
        self.dragged_subtask_index: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.dragged_task_id is not None

    def _edit_mode(self) -> bool:
        return self.edit_session is not None and self.edit_session.edit_mode

    def start_task(self, task_id: Any) -> bool:
        """Begin dragging a task; refused while edit mode is on."""
        if self._edit_mode() or self.store.get_task(task_id) is None:
            return False
        self.dragged_task_id = str(task_id)
        self.dragged_subtask_index = None
        return True

    def start_subtask(self, task_id: Any, index: int) -> bool:
        if self._edit_mode():
            return False
        task = self.store.get_task(task_id)
        if not isinstance(task, MultiTask) or task.subtask_at(index) is None:
            return False
        self.dragged_task_id = str(task_id)
        self.dragged_subtask_index = index
        return True

    def drop_on_task(self, target_id: Any) -> bool:
        if not self.active or self.dragged_subtask_index is not None:
            return False
        moved = self.store.reorder_task(self.dragged_task_id, target_id)
        self.end()
        return moved

    def drop_on_subtask(self, task_id: Any, index: int) -> bool:
        if not self.active or self.dragged_subtask_index is None:
            return False
        moved = self.store.reorder_subtask(self.dragged_task_id, self.dragged_subtask_index, index, target_task_id=task_id)
        self.end()
        return moved

    def end(self) -> None:
        self.dragged_task_id = None
        self.dragged_subtask_index = None
