import pytest

from todowidget.commands import NotificationChannel, WidgetCommands
from todowidget.store import TaskStore
from todowidget.visibility import VisibilityController

from fakes import FakeClock, FakePlatform, ManualScheduler, MemorySettings, WindowFactory


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.local/share store."""
    monkeypatch.setenv("TODOWIDGET_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("TODOWIDGET_STORE", raising=False)


@pytest.fixture()
def settings():
    return MemorySettings()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(settings, clock):
    return TaskStore(settings, clock=clock)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def main_factory():
    return WindowFactory()


@pytest.fixture()
def main_controller(main_factory, scheduler, settings):
    controller = VisibilityController("main", main_factory, scheduler, settings=settings)
    controller.ensure_window()
    return controller


@pytest.fixture()
def settings_controller(scheduler):
    return VisibilityController("settings", WindowFactory(), scheduler, persist_bounds=False)


@pytest.fixture()
def platform():
    return FakePlatform()


@pytest.fixture()
def commands(settings, main_controller, settings_controller, platform):
    return WidgetCommands(settings, main_controller, settings_controller, platform, NotificationChannel())
