"""Portable keyboard source built on a pynput listener.

pynput reports presses and releases only, so modifier keys are turned into
FlagsChanged events and the held modifiers are rendered as a macOS-layout
flag bitmask. The listener runs on its own thread; events are handed to the
thread blocked in run() through a FIFO queue.
"""

import queue
from typing import Callable, Optional

from keymon.errors import KeymonError, PermissionDeniedError
from keymon.event_source import EventSource
from keymon.key_event import EventKind, KeyEvent
from keymon.modifiers import ModifierState, is_modifier

# Seconds between stop checks while waiting for the next event
POLL_INTERVAL_S = 0.2


def key_name(key) -> Optional[str]:
    """Name of a special key (``shift_r``, ``esc``...), or None for character keys."""
    return getattr(key, "name", None)


def key_vk(key) -> int:
    """Platform virtual key code of a pynput key, 0 when unknown."""
    vk = getattr(key, "vk", None)
    if vk is None:
        value = getattr(key, "value", None)
        vk = getattr(value, "vk", None)
    return int(vk) if vk is not None else 0


class PynputEventSource(EventSource):
    """Global keyboard source for any platform pynput supports."""

    def __init__(self, listener_factory: Optional[Callable[..., object]] = None):
        super().__init__()
        self._listener_factory = listener_factory
        self._listener = None
        self._queue: "queue.Queue[KeyEvent]" = queue.Queue()
        self.modifiers = ModifierState()

    def _check_permission(self) -> None:
        if self._listener_factory is not None:
            return
        try:
            # pynput picks its backend at import time and fails without a display server
            from pynput import keyboard
        except ImportError as e:
            raise PermissionDeniedError(f"keyboard backend unavailable: {e}") from e
        self._listener_factory = keyboard.Listener

    def _install(self) -> None:
        self._listener = self._listener_factory(
            on_press=self._on_press,
            on_release=self._on_release,
        )
        self._listener.daemon = True
        self._listener.start()
        self._listener.wait()
        # The macOS listener returns right after becoming ready when its tap
        # cannot be created; the X listener dies when the display refuses it
        if not self._listener.is_alive():
            self._listener = None
            raise PermissionDeniedError("keyboard listener exited during startup")
        # Only the macOS listener reports accessibility trust
        if not getattr(self._listener, "IS_TRUSTED", True):
            self._listener.stop()
            self._listener = None
            raise PermissionDeniedError(
                "this process is not trusted to monitor keyboard input"
            )

    def _on_press(self, key, injected=False):
        name = key_name(key)
        if is_modifier(name):
            flags = self.modifiers.press(name)
            self._queue.put(KeyEvent(EventKind.FLAGS_CHANGED, key_vk(key), flags))
        else:
            self._queue.put(KeyEvent(EventKind.KEY_DOWN, key_vk(key), self.modifiers.flags))

    def _on_release(self, key, injected=False):
        name = key_name(key)
        if is_modifier(name):
            # Caps lock changes state on press only
            flags = self.modifiers.release(name)
            if name != "caps_lock":
                self._queue.put(KeyEvent(EventKind.FLAGS_CHANGED, key_vk(key), flags))
        else:
            self._queue.put(KeyEvent(EventKind.KEY_UP, key_vk(key), self.modifiers.flags))

    def run(self) -> None:
        if self._listener is None:
            raise RuntimeError("subscribe() must succeed before run()")
        try:
            while not self.is_stopped():
                try:
                    event = self._queue.get(timeout=POLL_INTERVAL_S)
                except queue.Empty:
                    if not self._listener.is_alive():
                        raise KeymonError("keyboard listener stopped unexpectedly")
                    continue
                self._deliver(event)
        finally:
            self._teardown()

    def _teardown(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        if self.subscription is not None:
            self.subscription.cancel()
        self.modifiers.reset()
