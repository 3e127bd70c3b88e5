from typing import Dict, Optional, Set, Tuple

# macOS NSEventModifierFlags / CGEventFlags layout
FLAG_NON_COALESCED = 0x100
FLAG_CAPS_LOCK = 0x10000
FLAG_SHIFT = 0x20000
FLAG_CONTROL = 0x40000
FLAG_OPTION = 0x80000
FLAG_COMMAND = 0x100000

# Device-dependent side bits (IOKit NX_DEVICE*KEYMASK)
FLAG_LEFT_CONTROL = 0x1
FLAG_LEFT_SHIFT = 0x2
FLAG_RIGHT_SHIFT = 0x4
FLAG_LEFT_COMMAND = 0x8
FLAG_RIGHT_COMMAND = 0x10
FLAG_LEFT_OPTION = 0x20
FLAG_RIGHT_OPTION = 0x40
FLAG_RIGHT_CONTROL = 0x2000

# pynput key name -> (generic flag, side flag). Bare names are the left key,
# which is how pynput reports the left modifier on macOS.
MODIFIER_KEYS: Dict[str, Tuple[int, int]] = {
    "shift": (FLAG_SHIFT, FLAG_LEFT_SHIFT),
    "shift_l": (FLAG_SHIFT, FLAG_LEFT_SHIFT),
    "shift_r": (FLAG_SHIFT, FLAG_RIGHT_SHIFT),
    "ctrl": (FLAG_CONTROL, FLAG_LEFT_CONTROL),
    "ctrl_l": (FLAG_CONTROL, FLAG_LEFT_CONTROL),
    "ctrl_r": (FLAG_CONTROL, FLAG_RIGHT_CONTROL),
    "alt": (FLAG_OPTION, FLAG_LEFT_OPTION),
    "alt_l": (FLAG_OPTION, FLAG_LEFT_OPTION),
    "alt_r": (FLAG_OPTION, FLAG_RIGHT_OPTION),
    "alt_gr": (FLAG_OPTION, FLAG_RIGHT_OPTION),
    "cmd": (FLAG_COMMAND, FLAG_LEFT_COMMAND),
    "cmd_l": (FLAG_COMMAND, FLAG_LEFT_COMMAND),
    "cmd_r": (FLAG_COMMAND, FLAG_RIGHT_COMMAND),
}

CAPS_LOCK = "caps_lock"


def is_modifier(name: Optional[str]) -> bool:
    return name in MODIFIER_KEYS or name == CAPS_LOCK


class ModifierState:
    """
    Tracks held modifier keys from press/release pairs and renders them as a
    macOS-layout flag bitmask.
    """

    def __init__(self):
        self._held: Set[str] = set()
        self._caps_lock = False

    def press(self, name: str) -> int:
        if name == CAPS_LOCK:
            self._caps_lock = not self._caps_lock
        elif name in MODIFIER_KEYS:
            self._held.add(name)
        return self.flags

    def release(self, name: str) -> int:
        self._held.discard(name)
        return self.flags

    def reset(self) -> None:
        self._held.clear()
        self._caps_lock = False

    @property
    def flags(self) -> int:
        value = FLAG_NON_COALESCED
        for name in self._held:
            generic, side = MODIFIER_KEYS[name]
            value |= generic | side
        if self._caps_lock:
            value |= FLAG_CAPS_LOCK
        return value
