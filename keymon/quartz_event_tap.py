import sys

from ApplicationServices import AXIsProcessTrusted
from Quartz import (
    CFMachPortCreateRunLoopSource,
    CFMachPortInvalidate,
    CFRunLoopAddSource,
    CFRunLoopGetCurrent,
    CFRunLoopRemoveSource,
    CFRunLoopRunInMode,
    CGEventGetFlags,
    CGEventGetIntegerValueField,
    CGEventMaskBit,
    CGEventTapCreate,
    CGEventTapEnable,
    CGEventTapIsEnabled,
    kCFRunLoopDefaultMode,
    kCGAnnotatedSessionEventTap,
    kCGEventTapDisabledByTimeout,
    kCGEventTapDisabledByUserInput,
    kCGEventTapOptionListenOnly,
    kCGHeadInsertEventTap,
    kCGKeyboardEventKeycode,
    kCGSessionEventTap,
)

try:
    from Quartz import CGPreflightListenEventAccess
except ImportError:  # macOS < 10.15 has no Input Monitoring privacy setting
    CGPreflightListenEventAccess = None

from keymon.errors import PermissionDeniedError
from keymon.event_source import EventSource
from keymon.key_event import EventKind, KeyEvent

# Seconds per CFRunLoop slice; bounds how long stop() and Ctrl+C take to land
RUN_SLICE_S = 0.5


class QuartzEventTap(EventSource):
    """Global keyboard source backed by a listen-only Quartz CGEvent tap.

    The tap's run loop source is attached to the run loop of the thread that
    calls run(), so the handler is invoked on that thread.
    """

    def __init__(self):
        super().__init__()
        self._tap = None
        self._runloop_source = None

    def _check_permission(self) -> None:
        listen_ok = bool(CGPreflightListenEventAccess()) if CGPreflightListenEventAccess else False
        if not (listen_ok or AXIsProcessTrusted()):
            raise PermissionDeniedError(
                "this process is not allowed to monitor keyboard input"
            )

    def _event_mask(self) -> int:
        mask = 0
        for kind in self.subscription.kinds:
            mask |= CGEventMaskBit(kind.value)
        return mask

    def _install(self) -> None:
        mask = self._event_mask()
        self._tap = CGEventTapCreate(
            kCGSessionEventTap,
            kCGHeadInsertEventTap,
            kCGEventTapOptionListenOnly,
            mask,
            self._event_callback,
            None,
        )
        if not self._tap:
            # Fallback to annotated session tap
            self._tap = CGEventTapCreate(
                kCGAnnotatedSessionEventTap,
                kCGHeadInsertEventTap,
                kCGEventTapOptionListenOnly,
                mask,
                self._event_callback,
                None,
            )
        if not self._tap:
            raise PermissionDeniedError("could not create a keyboard event tap")

        self._runloop_source = CFMachPortCreateRunLoopSource(None, self._tap, 0)

    def _event_callback(self, proxy, type_, event, refcon):
        # The system disables slow or interrupted taps; switch it back on
        if type_ in (kCGEventTapDisabledByTimeout, kCGEventTapDisabledByUserInput):
            if self._tap:
                CGEventTapEnable(self._tap, True)
            return event

        key_event = KeyEvent(
            kind=EventKind.from_raw(type_),
            key_code=CGEventGetIntegerValueField(event, kCGKeyboardEventKeycode),
            flags=CGEventGetFlags(event),
        )
        self._deliver(key_event)
        return event

    def run(self) -> None:
        if self._runloop_source is None:
            raise RuntimeError("subscribe() must succeed before run()")

        loop = CFRunLoopGetCurrent()
        CFRunLoopAddSource(loop, self._runloop_source, kCFRunLoopDefaultMode)
        CGEventTapEnable(self._tap, True)
        try:
            while not self.is_stopped():
                CFRunLoopRunInMode(kCFRunLoopDefaultMode, RUN_SLICE_S, False)
                if self._tap and not CGEventTapIsEnabled(self._tap):
                    CGEventTapEnable(self._tap, True)
                    print("🔄 Re-enabled event tap", file=sys.stderr)
        finally:
            self._teardown(loop)

    def _teardown(self, loop) -> None:
        if self._tap:
            CGEventTapEnable(self._tap, False)
        if self._runloop_source is not None:
            CFRunLoopRemoveSource(loop, self._runloop_source, kCFRunLoopDefaultMode)
        if self._tap:
            CFMachPortInvalidate(self._tap)
        if self.subscription is not None:
            self.subscription.cancel()
        self._tap = None
        self._runloop_source = None
