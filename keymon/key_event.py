from dataclasses import dataclass
from enum import Enum
from typing import Union


class EventKind(Enum):
    """Keyboard event kinds, valued with their Quartz CGEventType codes."""
    KEY_DOWN = 10
    KEY_UP = 11
    FLAGS_CHANGED = 12

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_raw(cls, raw: int) -> Union["EventKind", int]:
        """Map a native event type code to a member, or return it unchanged if unknown."""
        try:
            return cls(raw)
        except ValueError:
            return int(raw)


_LABELS = {
    EventKind.KEY_DOWN: "KeyDown",
    EventKind.KEY_UP: "KeyUp",
    EventKind.FLAGS_CHANGED: "FlagsChanged",
}

ALL_KINDS = frozenset(EventKind)


@dataclass(frozen=True)
class KeyEvent:
    """One observed keyboard notification."""
    kind: Union[EventKind, int]
    key_code: int = 0
    flags: int = 0

    @property
    def label(self) -> str:
        if isinstance(self.kind, EventKind):
            return self.kind.label
        # Unrecognized kinds keep their raw code, in decimal
        return f"Other({self.kind})"
