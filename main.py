#!/usr/bin/env python3
"""
Keyboard event monitor
Prints every key-down, key-up and modifier change seen anywhere on the system,
with its raw key code and modifier flags, to check that a physical key really
delivers events before it is remapped to a gamepad button.
"""

import argparse
import os
import signal
import sys
from typing import Optional, TextIO

from dotenv import load_dotenv

from keymon.errors import ConfigError, KeymonError, PermissionDeniedError
from keymon.event_source import EventSource
from keymon.formatter import EventLogger
from keymon.key_event import ALL_KINDS

BANNER = (
    "Monitoring keyboard events. Press Ctrl+C to stop.",
    "Press Right Control on your physical keyboard, then press RB on gamepad.",
)

BACKENDS = ("auto", "quartz", "pynput")

EXIT_OK = 0
EXIT_PERMISSION_DENIED = 1
EXIT_CONFIG_ERROR = 2
EXIT_SOURCE_FAILED = 3


def resolve_backend(name: Optional[str], platform: str = sys.platform) -> str:
    """Turn a KEYMON_BACKEND value into a concrete backend name."""
    backend = (name or "auto").strip().lower()
    if backend not in BACKENDS:
        raise ConfigError(
            f"unknown backend {name!r} (expected one of: {', '.join(BACKENDS)})"
        )
    if backend == "auto":
        return "quartz" if platform == "darwin" else "pynput"
    return backend


def create_event_source(backend: str) -> EventSource:
    """Instantiate the event source for a resolved backend name."""
    if backend == "quartz":
        try:
            from keymon.quartz_event_tap import QuartzEventTap
        except ImportError as e:
            raise ConfigError(f"quartz backend needs macOS with pyobjc installed ({e})") from e
        return QuartzEventTap()
    if backend == "pynput":
        from keymon.pynput_source import PynputEventSource
        return PynputEventSource()
    raise ConfigError(f"unknown backend {backend!r}")


def run_monitor(source: EventSource, stream: Optional[TextIO] = None) -> int:
    """Print the banner, subscribe the logger and block until interrupted."""
    out = stream if stream is not None else sys.stdout
    for line in BANNER:
        print(line, file=out, flush=True)

    try:
        source.subscribe(ALL_KINDS, EventLogger(out))
    except PermissionDeniedError as e:
        print(f"❌ Permission denied: {e}", file=sys.stderr)
        print(
            "Grant this terminal access under System Settings > Privacy & Security > "
            "Input Monitoring (or Accessibility), then run again.",
            file=sys.stderr,
        )
        return EXIT_PERMISSION_DENIED

    def _handle_sigterm(signum, _frame):
        print(f"\n⚠️  Signal {signum} received - stopping...", file=sys.stderr)
        source.stop()

    previous = None
    try:
        previous = signal.signal(signal.SIGTERM, _handle_sigterm)
    except ValueError:
        # Not on the main thread; only Ctrl+C in the main thread can stop us then
        pass

    try:
        source.run()
    except KeyboardInterrupt:
        print("\n⚠️ Exiting...", file=sys.stderr)
    except KeymonError as e:
        print(f"❌ Event source failed: {e}", file=sys.stderr)
        return EXIT_SOURCE_FAILED
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
    return EXIT_OK


def main(argv=None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="keymon",
        description="Print raw global keyboard events (key code and modifier flags)",
        epilog="Set KEYMON_BACKEND to auto, quartz or pynput to choose the event source.",
    )
    parser.parse_args(argv)

    try:
        source = create_event_source(resolve_backend(os.getenv("KEYMON_BACKEND")))
    except ConfigError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    return run_monitor(source)


if __name__ == "__main__":
    sys.exit(main())
