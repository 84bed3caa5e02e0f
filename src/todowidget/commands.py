"""
Command surface shared by the main and settings surfaces.

Commands are transport agnostic: a toolkit adapter, an IPC bridge or the
CLI calls these methods directly. OS services (screen geometry, login-item
registration, relaunch) come in through the ``Platform`` protocol.
"""
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from todowidget.logs import get_logger
from todowidget.models import Theme
from todowidget.recovery import WidgetError
from todowidget.visibility import VisibilityController

log = get_logger("commands")

OPACITY_UPDATED = "opacity-updated"
THEME_UPDATED = "theme-updated"

class Platform(Protocol):
    def work_area(self) -> Tuple[int, int]: ...
    def set_login_item(self, enabled: bool) -> None: ...
    def relaunch(self) -> None: ...

class NotificationChannel:
    """Named push notifications from one surface to the other."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, name: str, listener: Callable[[Any], None]) -> None:
        self._listeners[name].append(listener)

    def remove_all_listeners(self, name: str) -> None:
        self._listeners.pop(name, None)

    def publish(self, name: str, payload: Any) -> int:
        """Deliver payload to every listener of name; returns the number reached."""
        listeners = list(self._listeners.get(name, ()))
        for listener in listeners:
            listener(payload)
        log.debug(f"Published {name}={payload!r} to {len(listeners)} listener(s)")
        return len(listeners)

class WidgetCommands:
    """The operations the presentation layer may invoke."""

    def __init__(
        self,
        settings: Any,
        main: VisibilityController,
        settings_window: VisibilityController,
        platform: Platform,
        channel: Optional[NotificationChannel] = None,
    ):
        self.settings = settings
        self.main = main
        self.settings_window = settings_window
        self.platform = platform
        self.channel = channel or NotificationChannel()

    # ---- key/value ----

    def get_value(self, key: str, default: Any = None) -> Any:
        try:
            return self.settings.get_value(key, default)
        except WidgetError as e:
            log.error(f"Error reading '{key}': {e}")
            return default

    def set_value(self, key: str, value: Any) -> bool:
        try:
            self.settings.set_value(key, value)
            return True
        except ValueError as e:
            log.warning(f"Rejected value for '{key}': {e}")
        except WidgetError as e:
            log.error(f"Error saving '{key}': {e}")
        return False

    # ---- window commands ----

    def toggle_always_on_top(self) -> bool:
        flag = not self.main.is_always_on_top()
        self.main.set_always_on_top(flag)
        self.set_value("alwaysOnTop", flag)
        return flag

    def set_always_on_top(self, flag: bool) -> None:
        self.main.set_always_on_top(bool(flag))

    def minimize(self) -> None:
        self.main.minimize()

    def close(self) -> None:
        self.main.close()

    def get_screen_work_area(self) -> Tuple[int, int]:
        return self.platform.work_area()

    def navigate_to_settings(self) -> None:
        self.settings_window.reveal()

    def navigate_to_main(self) -> None:
        self.settings_window.destroy()
        self.main.reveal()

    # ---- behaviour settings ----

    def set_start_with_system(self, flag: bool) -> None:
        self.platform.set_login_item(bool(flag))

    def set_minimize_to_tray(self, flag: bool) -> None:
        self.set_value("minimizeToTray", bool(flag))

    def sync_login_item(self) -> None:
        """Mirror the stored startWithSystem flag to the OS at startup."""
        self.platform.set_login_item(bool(self.get_value("startWithSystem", False)))

    # ---- data ----

    def clear_all_data(self) -> None:
        """Wipe the store and restore default settings. Errors propagate to the caller."""
        self.settings.reset()
        log.warning("All data cleared")

    def restart_app(self) -> None:
        self.platform.relaunch()

    # ---- cross-window notifications ----

    def notify_opacity_change(self, opacity: int) -> None:
        if self.main.is_alive():
            self.channel.publish(OPACITY_UPDATED, opacity)

    def notify_theme_change(self, theme: Theme) -> None:
        if self.main.is_alive():
            self.channel.publish(THEME_UPDATED, Theme(theme).value)
