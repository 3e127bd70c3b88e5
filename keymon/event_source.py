import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, Optional

from keymon.key_event import EventKind, KeyEvent

Handler = Callable[[KeyEvent], None]


@dataclass
class Subscription:
    """A handler registered for a set of event kinds."""
    kinds: FrozenSet[EventKind]
    handler: Handler
    active: bool = field(default=True)

    def wants(self, event: KeyEvent) -> bool:
        if not self.active:
            return False
        # Raw (unrecognized) kinds pass through whenever the source delivers them
        if isinstance(event.kind, EventKind):
            return event.kind in self.kinds
        return True

    def cancel(self) -> None:
        self.active = False


class EventSource(ABC):
    """
    Global keyboard event source.

    Subclasses bridge an OS input hook into ``_deliver``; ``run`` blocks the
    calling thread, which is the only thread the handler is ever invoked on.
    """

    def __init__(self):
        self.subscription: Optional[Subscription] = None
        self._stop = threading.Event()

    def subscribe(self, kinds: Iterable[EventKind], handler: Handler) -> Subscription:
        """
        Register a handler for the given kinds.

        Raises:
            PermissionDeniedError: if the process may not observe global input
        """
        self._check_permission()
        self.subscription = Subscription(frozenset(kinds), handler)
        self._install()
        return self.subscription

    @abstractmethod
    def _check_permission(self) -> None:
        """Raise PermissionDeniedError when global input cannot be observed."""

    @abstractmethod
    def _install(self) -> None:
        """Attach to the OS hook for ``self.subscription``."""

    @abstractmethod
    def run(self) -> None:
        """Block, delivering events until stop() is called."""

    def stop(self) -> None:
        self._stop.set()

    def is_stopped(self) -> bool:
        return self._stop.is_set()

    def _deliver(self, event: KeyEvent) -> None:
        sub = self.subscription
        if sub is None or not sub.wants(event):
            return
        try:
            sub.handler(event)
        except BrokenPipeError:
            # Reader went away (e.g. piped into head); nothing left to write to
            self.stop()
        except Exception as e:
            print(f"⚠️ Handler error: {e}", file=sys.stderr)
