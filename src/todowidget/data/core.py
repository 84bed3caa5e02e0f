"""
SettingsStore - the persisted key/value document behind the widget.

This module provides the concrete store both windows read settings from and
the task list is snapshotted into. Every write replaces the whole document
atomically; reads never touch the disk after the initial load.
"""
import copy
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from todowidget.recovery import CorruptionError, WidgetError
from todowidget.logs import get_logger
from todowidget.models import WidgetSettings
from todowidget.version import APP_SCHEMA_VERSION
from .io import atomic_write, data_type_for, load_document
from .validate import SCHEMA_VERSION_KEY, check_schema_version, validate_document, validate_value

log = get_logger("data")

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "todowidget" / "data"
STORE_FILENAME = "store.yml"

def data_dir() -> Path:
    """The data directory, overridable with TODOWIDGET_DATA_DIR."""
    override = os.getenv("TODOWIDGET_DATA_DIR")
    return Path(override).expanduser() if override else DEFAULT_DATA_DIR

def default_store_path() -> Path:
    return data_dir() / STORE_FILENAME

class SettingsStore:
    """
    File-backed key/value store with defaults.

    Values are plain YAML/JSON data (dicts, lists, strings, numbers). Callers
    always receive copies, mutating a returned value never changes the store.

    Read failures at startup are logged and the store starts from defaults;
    a corrupt file is moved aside first so it is not overwritten. Write
    failures raise FileOperationError or FatalError to the caller, the
    in-memory value is kept either way.
    """

    def __init__(self, path: Union[Path, str, None] = None, defaults: Optional[Mapping[str, Any]] = None):
        self.path = Path(path) if path is not None else default_store_path()
        self._defaults: Dict[str, Any] = dict(defaults) if defaults is not None else WidgetSettings.defaults()
        self._data: Dict[str, Any] = copy.deepcopy(self._defaults)
        self._data.update(self._load())
        log.info(f"SettingsStore ready path={self.path} keys={len(self._data)}")

    def _load(self) -> Dict[str, Any]:
        try:
            document = load_document(self.path)
        except CorruptionError as e:
            log.error(f"Store file is corrupt, starting from defaults: {e}")
            self._quarantine()
            return {}
        except WidgetError as e:
            log.error(f"Error loading store, starting from defaults: {e}")
            return {}

        if document is None:
            log.debug(f"No store file at {self.path}, using defaults")
            return {}

        check_schema_version(document)
        return validate_document(document)

    def _quarantine(self):
        target = self.path.with_name(self.path.name + ".corrupt")
        try:
            os.replace(self.path, target)
            log.warning(f"Moved corrupt store to {target}")
        except OSError as e:
            log.warning(f"Could not move corrupt store aside: {e}")

    def _save(self):
        document = dict(self._data)
        document[SCHEMA_VERSION_KEY] = APP_SCHEMA_VERSION
        atomic_write(data_type_for(self.path), self.path, document, create_dirs=True)

    @property
    def defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self._defaults)

    def get_value(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default if the key is unset."""
        if key in self._data:
            return copy.deepcopy(self._data[key])
        return default

    def set_value(self, key: str, value: Any) -> None:
        """Store value under key and write the full document."""
        if not validate_value(key, value):
            raise ValueError(f"Invalid value for '{key}': {value!r}")
        self._data[key] = copy.deepcopy(value)
        self._save()

    def update(self, values: Mapping[str, Any]) -> None:
        """Store several values with a single write."""
        for key, value in values.items():
            if not validate_value(key, value):
                raise ValueError(f"Invalid value for '{key}': {value!r}")
        self._data.update(copy.deepcopy(dict(values)))
        self._save()

    def has(self, key: str) -> bool:
        return key in self._data

    def clear(self) -> None:
        """Remove every key, defaults included, and write the empty document."""
        self._data = {}
        self._save()

    def reset(self) -> None:
        """Wipe the store and restore the default settings."""
        self._data = copy.deepcopy(self._defaults)
        self._save()
        log.info("Store reset to defaults")

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)
