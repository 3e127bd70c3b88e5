import sys
from typing import TextIO, Optional

from keymon.key_event import KeyEvent


def format_event(event: KeyEvent) -> str:
    """Render an event as ``[<label>] keyCode=0x<hex> flags=0x<hex>``."""
    return f"[{event.label}] keyCode=0x{event.key_code:x} flags=0x{event.flags:x}"


class EventLogger:
    """Event handler that writes one line per event and flushes immediately."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def __call__(self, event: KeyEvent) -> None:
        # Resolve stdout lazily so a replaced sys.stdout (e.g. under capture) is honoured
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(format_event(event) + "\n")
        stream.flush()
