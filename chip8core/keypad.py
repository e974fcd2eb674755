"""CHIP-8 hex keypad input."""

import operator

import numpy as np

from chip8core.state import EmulatorState
from chip8core.constants import NUM_KEYS
from chip8core.errors import InvalidKeyIndex


def validate_key(key) -> int:
    """Return key as an int, raising InvalidKeyIndex unless it is 0-15.

    Any integer-like scalar is accepted (Python, numpy or concrete JAX
    integers); booleans are not keys.
    """
    if isinstance(key, (bool, np.bool_)) or getattr(key, "dtype", None) == np.bool_:
        raise InvalidKeyIndex(key)
    try:
        index = operator.index(key)
    except TypeError:
        raise InvalidKeyIndex(key) from None
    if not 0 <= index < NUM_KEYS:
        raise InvalidKeyIndex(key)
    return index


def set_key(state: EmulatorState, key, pressed: bool) -> EmulatorState:
    """Set the level of one key."""
    key = validate_key(key)
    return state.replace(keypad=state.keypad.at[key].set(pressed))


def press_key(state: EmulatorState, key) -> EmulatorState:
    return set_key(state, key, True)


def release_key(state: EmulatorState, key) -> EmulatorState:
    return set_key(state, key, False)
