"""
Window visibility state machine for the widget's top-level windows.

The widget behaves like a tray-resident tool rather than a quit-on-close
app. Close and minimize requests are intercepted, taskbar presence follows
visibility, and an unexpected hide (a desktop-manager "show desktop"
gesture hides every window) is undone by a delayed recovery check unless
the user minimized the window on purpose.

Toolkit adapters implement ``NativeWindow`` and forward native events to
``handle_close``, ``handle_minimize``, ``handle_hide`` and ``handle_show``.
"""
import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from pydantic import ValidationError

from todowidget.logs import get_logger
from todowidget.models import WindowBounds
from todowidget.recovery import WidgetError

log = get_logger("visibility")

BOUNDS_KEY = "windowBounds"
RECOVERY_DELAY = 0.1

class WindowState(Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"
    MINIMIZED = "minimized"

class RecoveryListener(Enum):
    ENABLED = "enabled"    # a hide will arm a recovery check
    ARMED = "armed"        # a check is scheduled and still current
    DISABLED = "disabled"  # deliberate minimize, hides are left alone

class NativeWindow(Protocol):
    def set_event_handler(self, handler: 'VisibilityController') -> None: ...
    def is_destroyed(self) -> bool: ...
    def is_visible(self) -> bool: ...
    def is_minimized(self) -> bool: ...
    def show(self) -> None: ...
    def hide(self) -> None: ...
    def focus(self) -> None: ...
    def restore(self) -> None: ...
    def close(self) -> None: ...
    def destroy(self) -> None: ...
    def set_skip_taskbar(self, skip: bool) -> None: ...
    def get_bounds(self) -> Dict[str, int]: ...
    def set_bounds(self, bounds: Dict[str, int]) -> None: ...
    def is_always_on_top(self) -> bool: ...
    def set_always_on_top(self, flag: bool) -> None: ...

class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Any: ...

class AsyncioScheduler:
    """Runs callbacks on the asyncio event loop driving the UI."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

class VisibilityController:
    """Visibility, taskbar and recovery state of one top-level window."""

    def __init__(
        self,
        name: str,
        window_factory: Callable[[], NativeWindow],
        scheduler: Scheduler,
        settings: Any = None,
        persist_bounds: bool = True,
        recovery_delay: float = RECOVERY_DELAY,
    ):
        self.name = name
        self._factory = window_factory
        self._scheduler = scheduler
        self._settings = settings
        self.persist_bounds = persist_bounds and settings is not None
        self.recovery_delay = recovery_delay

        self.window: Optional[NativeWindow] = None
        self.state = WindowState.HIDDEN
        self.skip_taskbar = False
        self.recovery = RecoveryListener.ENABLED

    # ---- liveness ----

    def is_alive(self) -> bool:
        return self.window is not None and not self.window.is_destroyed()

    def ensure_window(self) -> NativeWindow:
        """Return the live window, creating a new one if it is missing or destroyed."""
        if not self.is_alive():
            log.info(f"Creating {self.name} window")
            self.window = self._factory()
            self.window.set_event_handler(self)
            self.state = self._native_state()
            self.skip_taskbar = False
        return self.window

    def _native_state(self) -> WindowState:
        if self.window.is_minimized():
            return WindowState.MINIMIZED
        return WindowState.VISIBLE if self.window.is_visible() else WindowState.HIDDEN

    # ---- native events ----

    def handle_close(self) -> bool:
        """
        Native close request. Returns True: the close must be prevented.

        The window is kept alive with its content intact and only drops out
        of the taskbar.
        """
        if not self.is_alive():
            return False
        self._save_bounds()
        self.window.set_skip_taskbar(True)
        self.skip_taskbar = True
        self.state = WindowState.HIDDEN
        log.debug(f"{self.name}: close intercepted, window kept resident")
        return True

    def handle_minimize(self) -> bool:
        """
        Native minimize request. Returns True: the native minimize must be prevented.

        Minimizing a frameless transparent window is unreliable, so it is
        hidden instead and the recovery check stays off until the next show.
        """
        if not self.is_alive():
            return False
        self.recovery = RecoveryListener.DISABLED
        self.window.hide()
        return True

    def handle_hide(self) -> None:
        if not self.is_alive():
            return
        self.state = WindowState.HIDDEN
        self.window.set_skip_taskbar(True)
        self.skip_taskbar = True
        self._save_bounds()

        if self.recovery is not RecoveryListener.DISABLED:
            self.recovery = RecoveryListener.ARMED
            self._scheduler.call_later(self.recovery_delay, self._recover)

    def handle_show(self) -> None:
        if not self.is_alive():
            return
        self.state = WindowState.VISIBLE
        self.window.set_skip_taskbar(False)
        self.skip_taskbar = False
        # Supersedes any armed check
        self.recovery = RecoveryListener.ENABLED

    def _recover(self) -> None:
        if self.recovery is not RecoveryListener.ARMED:
            return
        self.recovery = RecoveryListener.ENABLED
        if not self.is_alive() or self.window.is_visible():
            return
        log.info(f"{self.name}: window hidden externally, restoring")
        bounds = self.saved_bounds()
        if bounds is not None:
            self.window.set_bounds(bounds)
        self.window.show()

    # ---- bounds ----

    def _save_bounds(self) -> None:
        if not self.persist_bounds:
            return
        try:
            bounds = WindowBounds.model_validate(self.window.get_bounds())
            self._settings.set_value(BOUNDS_KEY, bounds.model_dump())
        except (WidgetError, OSError, ValueError) as e:
            log.error(f"{self.name}: could not save window bounds: {e}")

    def saved_bounds(self) -> Optional[Dict[str, int]]:
        if self._settings is None:
            return None
        try:
            return WindowBounds.model_validate(self._settings.get_value(BOUNDS_KEY)).model_dump()
        except ValidationError:
            log.warning(f"{self.name}: stored window bounds are invalid")
            return None
        except (WidgetError, OSError) as e:
            log.error(f"{self.name}: could not read window bounds: {e}")
            return None

    # ---- commands ----

    def minimize(self) -> None:
        """Minimize command from the window chrome or the Escape shortcut."""
        window = self.ensure_window()
        self.recovery = RecoveryListener.DISABLED
        window.hide()

    def close(self) -> None:
        """Close command; the native close is routed back through handle_close."""
        self.ensure_window().close()

    def reveal(self) -> None:
        """Bring the window back from any state (tray menu, navigation)."""
        window = self.ensure_window()
        if window.is_minimized():
            window.restore()
        window.show()
        window.focus()

    def toggle(self) -> None:
        """Tray click: hide a visible window, reveal a hidden one."""
        if self.is_alive() and self.window.is_visible():
            self.recovery = RecoveryListener.DISABLED
            self.window.hide()
        else:
            self.reveal()

    def destroy(self) -> None:
        if self.is_alive():
            self.window.destroy()
        self.window = None
        self.state = WindowState.HIDDEN

    def is_always_on_top(self) -> bool:
        return self.ensure_window().is_always_on_top()

    def set_always_on_top(self, flag: bool) -> None:
        self.ensure_window().set_always_on_top(flag)
