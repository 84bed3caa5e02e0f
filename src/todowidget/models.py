from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4
import yaml

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def new_id(now: Optional[datetime] = None) -> str:
    """Build a task id from the creation time in milliseconds plus a random tie-break."""
    now = now or utcnow()
    return f"{int(now.timestamp() * 1000)}-{uuid4().hex[:8]}"

class TaskType(Enum):
    SIMPLE = "simple"
    MULTI = "multi"

class Theme(Enum):
    DARK = "dark"
    LIGHT = "light"

    def toggled(self) -> 'Theme':
        return Theme.LIGHT if self is Theme.DARK else Theme.DARK

class BaseYAMLModel(BaseModel):
    """Pydantic model that persists with its camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_document(), default_flow_style=False, sort_keys=False, allow_unicode=True)

class TodoItem(BaseModel):
    """Fields and completion rules shared by tasks and subtasks."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str = Field(
        description="Time based unique identifier",
        json_schema_extra={"type": ["string", "number"]},
    )
    text: str = Field(description="User entered text, escaped on display")
    completed: bool = Field(default=False, description="Whether the item is done")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt", description="When the item was completed")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt", description="When the item was created")

    @field_validator('id', mode='before')
    @classmethod
    def coerce_legacy_id(cls, v):
        # Older stores used numeric ids (Date.now() + Math.random())
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError("text must not be empty")
        return v

    @model_validator(mode='after')
    def validate_completion(self):
        if self.completed != (self.completed_at is not None):
            raise ValueError("completedAt must be set exactly when completed is true")
        return self

    def mark_completed(self, completed: bool, now: Optional[datetime] = None) -> None:
        """Set the completion flag and its timestamp together."""
        self.completed = completed
        self.completed_at = (now or utcnow()) if completed else None

class Subtask(TodoItem):
    """A checklist entry owned by exactly one MultiTask."""

class SimpleTask(TodoItem):
    """A single top-level to-do item."""

    type: Literal["simple"] = "simple"

class MultiTask(TodoItem):
    """A top-level to-do item with its own ordered subtasks."""

    type: Literal["multi"] = "multi"
    subtasks: List[Subtask] = Field(default_factory=list, description="Ordered list of subtasks")
    expanded: bool = Field(default=False, description="Whether the subtasks are shown")

    def subtask_at(self, index: int) -> Optional[Subtask]:
        """Return the subtask at index, or None when out of range (negative indices included)."""
        if not isinstance(index, int) or index < 0 or index >= len(self.subtasks):
            return None
        return self.subtasks[index]

Task = Annotated[Union[SimpleTask, MultiTask], Field(discriminator="type")]

TASK_ADAPTER = TypeAdapter(Task)
TASK_LIST_ADAPTER = TypeAdapter(List[Task])

def load_task(raw: Any) -> Union[SimpleTask, MultiTask]:
    return TASK_ADAPTER.validate_python(raw)

def dump_tasks(tasks: List[Union[SimpleTask, MultiTask]]) -> List[Dict[str, Any]]:
    return TASK_LIST_ADAPTER.dump_python(tasks, mode="json", by_alias=True)

class WindowBounds(BaseModel):
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    x: int
    y: int

class WidgetSettings(BaseYAMLModel):
    """Persisted widget settings and their defaults."""

    window_bounds: WindowBounds = Field(
        default_factory=lambda: WindowBounds(width=320, height=480, x=100, y=100),
        alias="windowBounds",
        description="Last known main window geometry",
    )
    always_on_top: bool = Field(default=True, alias="alwaysOnTop", description="Keep the main window above others")
    theme: Theme = Field(default=Theme.DARK, description="Colour theme shared by both windows")
    opacity: int = Field(default=80, ge=0, le=100, description="Background opacity in percent")
    start_with_system: bool = Field(default=False, alias="startWithSystem", description="Register with OS auto-start")
    minimize_to_tray: bool = Field(default=False, alias="minimizeToTray", description="Stored preference only")

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        return cls().to_document()

    @classmethod
    def key_schemas(cls) -> Dict[str, Dict[str, Any]]:
        """JSON schema for each persisted key, including the task list envelope."""
        full = cls.model_json_schema(by_alias=True)
        defs = full.get("$defs")
        schemas = {}
        for key, schema in full["properties"].items():
            schemas[key] = dict(schema, **({"$defs": defs} if defs else {}))
        # Individual tasks are validated by the models themselves so one bad
        # entry does not discard the whole list.
        schemas["tasks"] = {"type": "array", "items": {"type": "object"}}
        schemas["schemaVersion"] = {"type": "string"}
        return schemas
