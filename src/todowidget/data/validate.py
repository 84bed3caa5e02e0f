from typing import Any, Dict, Optional
from jsonschema import validate, ValidationError, SchemaError
from packaging.version import InvalidVersion, Version

from todowidget.logs import get_logger
from todowidget.models import WidgetSettings
from todowidget.version import APP_SCHEMA_VERSION

log = get_logger("data.validate")

SCHEMA_VERSION_KEY = "schemaVersion"

_KEY_SCHEMAS: Optional[Dict[str, Dict[str, Any]]] = None

def key_schemas() -> Dict[str, Dict[str, Any]]:
    """Per-key JSON schemas, generated once from the pydantic models."""
    global _KEY_SCHEMAS
    if _KEY_SCHEMAS is None:
        _KEY_SCHEMAS = WidgetSettings.key_schemas()
    return _KEY_SCHEMAS

def validate_value(key: str, value: Any) -> bool:
    """
    Validates a single stored value against the schema for its key.

    Keys without a schema are accepted as-is, the store is a general
    key/value document.

    Returns:
        True if the value is valid, False otherwise.
    """
    schema = key_schemas().get(key)
    if schema is None:
        return True
    try:
        validate(instance=value, schema=schema)
        return True
    except ValidationError as e:
        log.warning(f"Stored value for '{key}' FAILED validation: {e.message}")
        return False
    except SchemaError as e:
        log.error(f"Schema for '{key}' is invalid: {e.message}")
        return False

def validate_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of document with every invalid key removed.

    Dropped keys fall back to their defaults in the store, a corrupt
    opacity never takes the task list down with it.
    """
    cleaned = {}
    for key, value in document.items():
        if validate_value(key, value):
            cleaned[key] = value
        else:
            log.warning(f"Discarding invalid stored key '{key}', default will be used")
    return cleaned

def check_schema_version(document: Dict[str, Any]) -> Optional[str]:
    """
    Compare the document's schema stamp with the application's.

    Returns:
        The stamped version, or None if the document carries none or it cannot be parsed.
    """
    stamp = document.get(SCHEMA_VERSION_KEY)
    if stamp is None:
        log.debug("Document has no schema version stamp")
        return None
    try:
        stored = Version(str(stamp))
    except InvalidVersion:
        log.warning(f"Ignoring unparsable schema version '{stamp}'")
        return None
    if stored > Version(APP_SCHEMA_VERSION):
        log.warning(f"Data was written by a newer schema ({stamp} > {APP_SCHEMA_VERSION}); unknown keys are kept as-is")
    elif stored < Version(APP_SCHEMA_VERSION):
        log.info(f"Data schema {stamp} will be stamped {APP_SCHEMA_VERSION} on next save")
    return str(stamp)
