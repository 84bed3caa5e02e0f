"""
Surface state for the main widget and the settings panel.

Both surfaces read their settings once at startup, fall back to defaults if
the store cannot be read, and talk to each other only through the
notification channel.
"""
from typing import Any, Callable, Optional, Tuple

from todowidget.commands import OPACITY_UPDATED, THEME_UPDATED, WidgetCommands
from todowidget.logs import get_logger
from todowidget.models import Theme
from todowidget.recovery import WidgetError

log = get_logger("appearance")

DEFAULT_OPACITY = 80
CLEAR_CONFIRM_MESSAGE = "Are you sure you want to clear all data? This action cannot be undone."
CLEAR_DONE_MESSAGE = "All data has been cleared. The app will now restart."
CLEAR_FAILED_MESSAGE = "Failed to clear data. Please try again."

def coerce_theme(value: Any, default: Theme = Theme.DARK) -> Theme:
    try:
        return Theme(value)
    except ValueError:
        log.warning(f"Unknown theme {value!r}, using {default.value}")
        return default

def coerce_opacity(value: Any, default: int = DEFAULT_OPACITY) -> int:
    try:
        return max(0, min(100, int(value)))
    except (TypeError, ValueError):
        log.warning(f"Invalid opacity {value!r}, using {default}")
        return default

def background_rgba(theme: Theme, opacity: int) -> Tuple[int, int, int, float]:
    """Surface background: white for light, black for dark, at 90% of the chosen opacity."""
    alpha = round(opacity / 100 * 0.9, 3)
    if theme is Theme.LIGHT:
        return (255, 255, 255, alpha)
    return (0, 0, 0, alpha)

def css_rgba(rgba: Tuple[int, int, int, float]) -> str:
    r, g, b, a = rgba
    return f"rgba({r}, {g}, {b}, {a})"

class Appearance:
    """Theme, opacity and always-on-top state of the main surface."""

    def __init__(self, commands: WidgetCommands, on_change: Optional[Callable[['Appearance'], None]] = None):
        self.commands = commands
        self.on_change = on_change
        self.theme = Theme.DARK
        self.opacity = DEFAULT_OPACITY
        self.always_on_top = True

    def load(self) -> 'Appearance':
        self.theme = coerce_theme(self.commands.get_value("theme", Theme.DARK.value))
        self.opacity = coerce_opacity(self.commands.get_value("opacity", DEFAULT_OPACITY))
        self.always_on_top = bool(self.commands.get_value("alwaysOnTop", True))
        return self

    def listen(self) -> None:
        """Follow opacity and theme changes pushed by the settings surface."""
        self.commands.channel.subscribe(OPACITY_UPDATED, self._on_opacity_updated)
        self.commands.channel.subscribe(THEME_UPDATED, self._on_theme_updated)

    def stop_listening(self) -> None:
        self.commands.channel.remove_all_listeners(OPACITY_UPDATED)
        self.commands.channel.remove_all_listeners(THEME_UPDATED)

    def _on_opacity_updated(self, opacity: Any) -> None:
        self.opacity = coerce_opacity(opacity, self.opacity)
        self._changed()

    def _on_theme_updated(self, theme: Any) -> None:
        self.theme = coerce_theme(theme, self.theme)
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def toggle_theme(self) -> Theme:
        self.theme = self.theme.toggled()
        self.commands.set_value("theme", self.theme.value)
        self._changed()
        return self.theme

    def toggle_always_on_top(self) -> bool:
        self.always_on_top = self.commands.toggle_always_on_top()
        self._changed()
        return self.always_on_top

    def background(self) -> str:
        return css_rgba(background_rgba(self.theme, self.opacity))

class SettingsPanel:
    """State and actions of the settings surface."""

    def __init__(self, commands: WidgetCommands):
        self.commands = commands
        self.opacity = DEFAULT_OPACITY
        self.theme = Theme.DARK
        self.always_on_top = True
        self.start_with_system = False
        self.minimize_to_tray = False

    def load(self) -> 'SettingsPanel':
        get = self.commands.get_value
        self.opacity = coerce_opacity(get("opacity", DEFAULT_OPACITY))
        self.theme = coerce_theme(get("theme", Theme.DARK.value))
        self.always_on_top = bool(get("alwaysOnTop", True))
        self.start_with_system = bool(get("startWithSystem", False))
        self.minimize_to_tray = bool(get("minimizeToTray", False))
        return self

    def preview_opacity(self, value: Any) -> int:
        """Slider drag: update the local preview without saving."""
        self.opacity = coerce_opacity(value, self.opacity)
        return self.opacity

    def set_opacity(self, value: Any) -> int:
        """Slider release: save and push the new opacity to the main surface."""
        self.preview_opacity(value)
        self.commands.set_value("opacity", self.opacity)
        self.commands.notify_opacity_change(self.opacity)
        return self.opacity

    def set_theme(self, theme: Any) -> Theme:
        self.theme = coerce_theme(theme, self.theme)
        self.commands.set_value("theme", self.theme.value)
        self.commands.notify_theme_change(self.theme)
        return self.theme

    def set_always_on_top(self, flag: bool) -> None:
        self.always_on_top = bool(flag)
        self.commands.set_value("alwaysOnTop", self.always_on_top)
        self.commands.set_always_on_top(self.always_on_top)

    def set_start_with_system(self, flag: bool) -> None:
        self.start_with_system = bool(flag)
        self.commands.set_value("startWithSystem", self.start_with_system)
        self.commands.set_start_with_system(self.start_with_system)

    def set_minimize_to_tray(self, flag: bool) -> None:
        self.minimize_to_tray = bool(flag)
        self.commands.set_minimize_to_tray(self.minimize_to_tray)

    def background(self) -> str:
        return css_rgba(background_rgba(self.theme, self.opacity))

    def clear_all_data(self, confirm: Callable[[str], bool], alert: Callable[[str], None]) -> bool:
        """
        Destructive reset: ask first, then wipe and restart.

        This is the one failure the user is told about; any other persistence
        error is only logged.
        """
        if not confirm(CLEAR_CONFIRM_MESSAGE):
            return False
        try:
            self.commands.clear_all_data()
        except (WidgetError, OSError) as e:
            log.error(f"Error clearing data: {e}")
            alert(CLEAR_FAILED_MESSAGE)
            return False
        alert(CLEAR_DONE_MESSAGE)
        self.commands.restart_app()
        return True
