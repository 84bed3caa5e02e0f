"""
TaskStore - sole owner of the widget's task list.

All reads and writes of task state go through this module. Each successful
mutation is one atomic transition: the in-memory list changes, the full list
is written to the settings store under the ``tasks`` key, and every observer
is called with the new list. Rejected input (empty text, unknown ids, out of
range indices, subtask operations on simple tasks) is a silent no-op.
"""
from datetime import datetime
from typing import Any, Callable, List, Optional, Protocol, Union

from pydantic import ValidationError

from todowidget.logs import get_logger
from todowidget.models import MultiTask, SimpleTask, Subtask, TaskType, dump_tasks, load_task, new_id, utcnow
from todowidget.ordering import move_element
from todowidget.recovery import WidgetError

log = get_logger("store")

TASKS_KEY = "tasks"

AnyTask = Union[SimpleTask, MultiTask]
Observer = Callable[[List[AnyTask]], None]

class KeyValueStore(Protocol):
    def get_value(self, key: str, default: Any = None) -> Any: ...

    def set_value(self, key: str, value: Any) -> None: ...

# Persistence errors a store port may raise; all are logged and survived.
PERSISTENCE_ERRORS = (WidgetError, OSError, ValueError)

class TaskStore:
    """Ordered, newest-first collection of tasks with nested subtasks."""

    def __init__(self, settings: KeyValueStore, clock: Optional[Callable[[], datetime]] = None):
        self._settings = settings
        self._clock = clock or utcnow
        self._tasks: List[AnyTask] = []
        self._observers: List[Observer] = []
        self.reload()

    # ---- observers ----

    def subscribe(self, observer: Observer) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self) -> None:
        snapshot = list(self._tasks)
        for observer in list(self._observers):
            observer(snapshot)

    # ---- persistence ----

    def reload(self) -> None:
        """Rehydrate the list from the settings store, dropping entries that fail validation."""
        try:
            raw = self._settings.get_value(TASKS_KEY, [])
        except PERSISTENCE_ERRORS as e:
            log.error(f"Error loading tasks: {e}")
            raw = []

        if not isinstance(raw, list):
            log.warning(f"Stored tasks are not a list ({type(raw).__name__}), starting empty")
            raw = []

        tasks = []
        for entry in raw:
            try:
                tasks.append(load_task(entry))
            except ValidationError as e:
                log.warning(f"Skipping invalid stored task: {e.error_count()} error(s)")
        self._tasks = tasks
        log.debug(f"Loaded {len(tasks)} task(s)")
        self._notify()

    def _commit(self) -> None:
        try:
            self._settings.set_value(TASKS_KEY, dump_tasks(self._tasks))
        except PERSISTENCE_ERRORS as e:
            # Best effort: the in-memory list stays authoritative
            log.error(f"Error saving tasks: {e}")
        self._notify()

    # ---- lookups ----

    @property
    def tasks(self) -> List[AnyTask]:
        return list(self._tasks)

    def get_task(self, task_id: Any) -> Optional[AnyTask]:
        key = str(task_id)
        return next((t for t in self._tasks if t.id == key), None)

    def _index_of(self, task_id: Any) -> int:
        key = str(task_id)
        return next((i for i, t in enumerate(self._tasks) if t.id == key), -1)

    def _get_multi(self, task_id: Any) -> Optional[MultiTask]:
        task = self.get_task(task_id)
        return task if isinstance(task, MultiTask) else None

    def remaining_count(self) -> int:
        return sum(1 for t in self._tasks if not t.completed)

    def has_completed(self) -> bool:
        return any(t.completed for t in self._tasks)

    def _fresh_id(self, now: datetime) -> str:
        used = {t.id for t in self._tasks}
        for task in self._tasks:
            if isinstance(task, MultiTask):
                used.update(s.id for s in task.subtasks)
        candidate = new_id(now)
        while candidate in used:
            candidate = new_id(now)
        return candidate

    # ---- task operations ----

    def add_task(self, text: str, task_type: Union[TaskType, str] = TaskType.SIMPLE) -> Optional[AnyTask]:
        """Prepend a new task; returns it, or None when the text is blank."""
        text = (text or "").strip()
        if not text:
            return None
        try:
            task_type = TaskType(task_type)
        except ValueError:
            log.debug(f"Rejected unknown task type {task_type!r}")
            return None

        now = self._clock()
        if task_type is TaskType.MULTI:
            task = MultiTask(id=self._fresh_id(now), text=text, created_at=now)
        else:
            task = SimpleTask(id=self._fresh_id(now), text=text, created_at=now)

        self._tasks.insert(0, task)
        log.debug(f"Task added id={task.id} type={task.type}")
        self._commit()
        return task

    def toggle_task(self, task_id: Any) -> Optional[AnyTask]:
        task = self.get_task(task_id)
        if task is None:
            return None
        task.mark_completed(not task.completed, self._clock())
        self._commit()
        return task

    def delete_task(self, task_id: Any) -> bool:
        index = self._index_of(task_id)
        if index < 0:
            return False
        del self._tasks[index]
        log.debug(f"Task deleted id={task_id}")
        self._commit()
        return True

    def edit_task_text(self, task_id: Any, new_text: str, subtask_index: Optional[int] = None) -> Optional[Union[AnyTask, Subtask]]:
        """
        Replace the text of a task, or of one of its subtasks when subtask_index is given.

        Blank text is treated as a cancelled edit. A subtask index on a simple
        task, or outside the subtask list, is rejected.
        """
        new_text = (new_text or "").strip()
        if not new_text:
            return None
        task = self.get_task(task_id)
        if task is None:
            return None

        if subtask_index is not None:
            if not isinstance(task, MultiTask):
                return None
            target = task.subtask_at(subtask_index)
            if target is None:
                return None
        else:
            target = task

        target.text = new_text
        self._commit()
        return target

    def clear_completed(self) -> int:
        """Remove completed top-level tasks; returns how many were removed."""
        remaining = [t for t in self._tasks if not t.completed]
        removed = len(self._tasks) - len(remaining)
        if removed == 0:
            return 0
        self._tasks = remaining
        log.debug(f"Cleared {removed} completed task(s)")
        self._commit()
        return removed

    def reorder_task(self, dragged_id: Any, target_id: Any) -> bool:
        """Move the dragged task into the target's position, shifting the others."""
        if str(dragged_id) == str(target_id):
            return False
        from_index = self._index_of(dragged_id)
        to_index = self._index_of(target_id)
        if from_index < 0 or to_index < 0:
            return False
        if not move_element(self._tasks, from_index, to_index):
            return False
        self._commit()
        return True

    # ---- subtask operations ----

    def toggle_subtasks(self, task_id: Any) -> Optional[MultiTask]:
        task = self._get_multi(task_id)
        if task is None:
            return None
        task.expanded = not task.expanded
        self._commit()
        return task

    def add_subtask(self, task_id: Any, text: str) -> Optional[Subtask]:
        text = (text or "").strip()
        if not text:
            return None
        task = self._get_multi(task_id)
        if task is None:
            return None
        now = self._clock()
        subtask = Subtask(id=self._fresh_id(now), text=text, created_at=now)
        task.subtasks.append(subtask)
        self._commit()
        return subtask

    def toggle_subtask(self, task_id: Any, index: int) -> Optional[Subtask]:
        task = self._get_multi(task_id)
        subtask = task.subtask_at(index) if task is not None else None
        if subtask is None:
            return None
        subtask.mark_completed(not subtask.completed, self._clock())
        self._commit()
        return subtask

    def delete_subtask(self, task_id: Any, index: int) -> bool:
        task = self._get_multi(task_id)
        if task is None or task.subtask_at(index) is None:
            return False
        del task.subtasks[index]
        self._commit()
        return True

    def reorder_subtask(self, task_id: Any, from_index: int, to_index: int, target_task_id: Any = None) -> bool:
        """
        Move a subtask within its parent's list.

        target_task_id is the parent of the drop target when known; a drop on
        another task's subtask is rejected.
        """
        if target_task_id is not None and str(target_task_id) != str(task_id):
            return False
        task = self._get_multi(task_id)
        if task is None:
            return False
        if not move_element(task.subtasks, from_index, to_index):
            return False
        self._commit()
        return True
