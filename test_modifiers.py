from keymon.modifiers import (
    FLAG_CAPS_LOCK,
    FLAG_COMMAND,
    FLAG_CONTROL,
    FLAG_LEFT_COMMAND,
    FLAG_LEFT_SHIFT,
    FLAG_NON_COALESCED,
    FLAG_OPTION,
    FLAG_RIGHT_CONTROL,
    FLAG_RIGHT_OPTION,
    FLAG_RIGHT_SHIFT,
    FLAG_SHIFT,
    ModifierState,
    is_modifier,
)


def test_idle_state_carries_only_non_coalesced_bit():
    assert ModifierState().flags == FLAG_NON_COALESCED


def test_left_command_matches_macos_value():
    state = ModifierState()
    assert state.press("cmd") == 0x100108
    assert state.release("cmd") == 0x100


def test_right_control():
    state = ModifierState()
    assert state.press("ctrl_r") == FLAG_NON_COALESCED | FLAG_CONTROL | FLAG_RIGHT_CONTROL


def test_generic_bit_held_while_either_side_down():
    state = ModifierState()
    state.press("shift_l")
    state.press("shift_r")
    assert state.flags == FLAG_NON_COALESCED | FLAG_SHIFT | FLAG_LEFT_SHIFT | FLAG_RIGHT_SHIFT
    state.release("shift_l")
    assert state.flags == FLAG_NON_COALESCED | FLAG_SHIFT | FLAG_RIGHT_SHIFT
    state.release("shift_r")
    assert state.flags == FLAG_NON_COALESCED


def test_combined_modifiers():
    state = ModifierState()
    state.press("alt_gr")
    state.press("cmd_l")
    assert state.flags == (
        FLAG_NON_COALESCED | FLAG_OPTION | FLAG_RIGHT_OPTION | FLAG_COMMAND | FLAG_LEFT_COMMAND
    )


def test_caps_lock_toggles_on_press():
    state = ModifierState()
    state.press("caps_lock")
    state.release("caps_lock")
    assert state.flags & FLAG_CAPS_LOCK
    state.press("caps_lock")
    assert not state.flags & FLAG_CAPS_LOCK


def test_release_of_unheld_key_is_harmless():
    state = ModifierState()
    assert state.release("ctrl") == FLAG_NON_COALESCED


def test_reset():
    state = ModifierState()
    state.press("shift")
    state.press("caps_lock")
    state.reset()
    assert state.flags == FLAG_NON_COALESCED


def test_is_modifier():
    assert is_modifier("shift_r")
    assert is_modifier("caps_lock")
    assert not is_modifier("esc")
    assert not is_modifier(None)
