"""Unit tests for the persisted settings store and its file I/O."""

import json
import pytest
import yaml
from unittest.mock import patch

from todowidget.data import DATA_JSON, DATA_YAML, SettingsStore, atomic_write, data_dir, default_store_path, load_document
from todowidget.data.validate import check_schema_version, validate_document, validate_value
from todowidget.recovery import CorruptionError, FatalError, FileOperationError
from todowidget.version import APP_SCHEMA_VERSION


class TestFileIO:
    """Test atomic writes and document loading."""

    def test_load_missing_file(self, tmp_path):
        """A missing file loads as None."""
        assert load_document(tmp_path / "store.yml") is None

    def test_load_empty_file(self, tmp_path):
        """An empty file is an empty document."""
        path = tmp_path / "store.yml"
        path.write_text("")
        assert load_document(path) == {}

    def test_load_syntax_error(self, tmp_path):
        """Unparsable YAML and JSON raise CorruptionError."""
        yml = tmp_path / "store.yml"
        yml.write_text("tasks: [unclosed\n")
        with pytest.raises(CorruptionError, match="Syntax error"):
            load_document(yml)

        js = tmp_path / "store.json"
        js.write_text("{not json")
        with pytest.raises(CorruptionError, match="Syntax error"):
            load_document(js)

    def test_load_non_mapping(self, tmp_path):
        """A document must be a mapping."""
        path = tmp_path / "store.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(CorruptionError, match="invalid data structure"):
            load_document(path)

    def test_atomic_write_yaml_and_json(self, tmp_path):
        """Both formats are written and leave no temp files behind."""
        atomic_write(DATA_YAML, tmp_path / "a.yml", {"opacity": 50})
        atomic_write(DATA_JSON, tmp_path / "b.json", {"opacity": 60})
        assert yaml.safe_load((tmp_path / "a.yml").read_text()) == {"opacity": 50}
        assert json.loads((tmp_path / "b.json").read_text()) == {"opacity": 60}
        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.yml", "b.json"]

    def test_atomic_write_unserializable(self, tmp_path):
        """Data that cannot be serialized is fatal and leaves nothing behind."""
        with pytest.raises(FatalError, match="serialization failed"):
            atomic_write(DATA_YAML, tmp_path / "a.yml", {"bad": object()})
        assert list(tmp_path.iterdir()) == []

    def test_atomic_write_unsupported_format(self, tmp_path):
        with pytest.raises(FatalError, match="Unsupported"):
            atomic_write(99, tmp_path / "a.yml", {})
        assert list(tmp_path.iterdir()) == []

    def test_atomic_write_keeps_old_file_on_failure(self, tmp_path):
        """A failed replace leaves the previous snapshot intact."""
        path = tmp_path / "a.yml"
        atomic_write(DATA_YAML, path, {"opacity": 50})
        with patch("todowidget.data.io.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(FileOperationError, match="disk full"):
                atomic_write(DATA_YAML, path, {"opacity": 10})
        assert yaml.safe_load(path.read_text()) == {"opacity": 50}
        assert [p.name for p in tmp_path.iterdir()] == ["a.yml"]

    def test_create_dirs(self, tmp_path):
        """Missing parent directories are created on request."""
        path = tmp_path / "nested" / "deeper" / "store.yml"
        atomic_write(DATA_YAML, path, {"theme": "light"}, create_dirs=True)
        assert path.exists()


class TestValidation:
    """Test per-key validation and the schema version stamp."""

    def test_validate_value(self):
        assert validate_value("opacity", 55)
        assert not validate_value("opacity", 150)
        assert not validate_value("theme", "blue")
        assert validate_value("theme", "light")
        assert validate_value("windowBounds", {"width": 10, "height": 10, "x": -5, "y": 0})
        assert not validate_value("windowBounds", {"width": 10})
        assert validate_value("tasks", [{"id": "1"}])
        assert not validate_value("tasks", "oops")

    def test_unknown_keys_accepted(self):
        """The store is a general key/value document."""
        assert validate_value("somethingElse", {"any": "thing"})

    def test_validate_document_drops_only_bad_keys(self):
        cleaned = validate_document({"opacity": "loud", "theme": "light", "tasks": []})
        assert cleaned == {"theme": "light", "tasks": []}

    def test_check_schema_version(self):
        assert check_schema_version({}) is None
        assert check_schema_version({"schemaVersion": "not a version"}) is None
        assert check_schema_version({"schemaVersion": "0.9.0"}) == "0.9.0"
        assert check_schema_version({"schemaVersion": "9.0.0"}) == "9.0.0"


class TestSettingsStore:
    """Test the file-backed key/value store."""

    def test_defaults_on_first_run(self, tmp_path):
        """A missing file starts from defaults and writes nothing."""
        store = SettingsStore(tmp_path / "store.yml")
        assert store.get_value("opacity") == 80
        assert store.get_value("theme") == "dark"
        assert store.get_value("tasks") is None
        assert store.get_value("tasks", []) == []
        assert not (tmp_path / "store.yml").exists()

    def test_default_path(self, tmp_path):
        """The data directory follows TODOWIDGET_DATA_DIR."""
        assert data_dir() == tmp_path / "data"
        assert default_store_path() == tmp_path / "data" / "store.yml"
        assert SettingsStore().path == tmp_path / "data" / "store.yml"

    def test_set_value_persists(self, tmp_path):
        """Values survive a new store instance and the file is stamped."""
        path = tmp_path / "store.yml"
        SettingsStore(path).set_value("opacity", 40)
        document = yaml.safe_load(path.read_text())
        assert document["opacity"] == 40
        assert document["schemaVersion"] == APP_SCHEMA_VERSION
        assert SettingsStore(path).get_value("opacity") == 40

    def test_json_store(self, tmp_path):
        """A .json path is written as JSON."""
        path = tmp_path / "store.json"
        SettingsStore(path).set_value("theme", "light")
        assert json.loads(path.read_text())["theme"] == "light"
        assert SettingsStore(path).get_value("theme") == "light"

    def test_invalid_value_rejected(self, tmp_path):
        """set_value refuses values that fail their schema."""
        store = SettingsStore(tmp_path / "store.yml")
        with pytest.raises(ValueError, match="Invalid value for 'opacity'"):
            store.set_value("opacity", 150)
        assert store.get_value("opacity") == 80
        assert not (tmp_path / "store.yml").exists()

    def test_update_writes_once(self, tmp_path):
        store = SettingsStore(tmp_path / "store.yml")
        with patch("todowidget.data.core.atomic_write") as write:
            store.update({"opacity": 30, "theme": "light"})
        assert write.call_count == 1
        assert store.get_value("opacity") == 30
        assert store.get_value("theme") == "light"

    def test_values_are_copies(self, tmp_path):
        """Mutating a returned value does not change the store."""
        store = SettingsStore(tmp_path / "store.yml")
        bounds = store.get_value("windowBounds")
        bounds["width"] = 1
        assert store.get_value("windowBounds")["width"] == 320
        store.defaults["opacity"] = 0
        assert store.defaults["opacity"] == 80

    def test_corrupt_file_quarantined(self, tmp_path):
        """A corrupt file is moved aside and defaults are used."""
        path = tmp_path / "store.yml"
        path.write_text("tasks: [unclosed\n")
        store = SettingsStore(path)
        assert store.get_value("opacity") == 80
        assert not path.exists()
        assert (tmp_path / "store.yml.corrupt").read_text() == "tasks: [unclosed\n"

    def test_non_mapping_quarantined(self, tmp_path):
        path = tmp_path / "store.yml"
        path.write_text("- a\n")
        SettingsStore(path)
        assert (tmp_path / "store.yml.corrupt").exists()

    def test_invalid_key_falls_back_to_default(self, tmp_path):
        """One bad key does not take the other keys down."""
        path = tmp_path / "store.yml"
        path.write_text(yaml.safe_dump({"opacity": "loud", "theme": "light", "tasks": [{"id": "1"}]}))
        store = SettingsStore(path)
        assert store.get_value("opacity") == 80
        assert store.get_value("theme") == "light"
        assert store.get_value("tasks") == [{"id": "1"}]

    def test_write_failure_keeps_memory(self, tmp_path):
        """An unwritable location raises but the value stays in memory."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = SettingsStore(blocker / "store.yml")
        with pytest.raises(FileOperationError):
            store.set_value("opacity", 20)
        assert store.get_value("opacity") == 20

    def test_clear_and_reset(self, tmp_path):
        """clear empties the store, reset restores defaults."""
        path = tmp_path / "store.yml"
        store = SettingsStore(path)
        store.set_value("tasks", [{"id": "1"}])
        store.clear()
        assert store.as_dict() == {}
        assert not store.has("opacity")
        store.reset()
        assert store.get_value("opacity") == 80
        assert not store.has("tasks")
        assert "tasks" not in yaml.safe_load(path.read_text())

    def test_no_temp_files_left(self, tmp_path):
        store = SettingsStore(tmp_path / "store.yml")
        for opacity in range(0, 100, 10):
            store.set_value("opacity", opacity)
        assert [p.name for p in tmp_path.iterdir()] == ["store.yml"]
