"""
CHIP-8 hexadecimal keypad.

Sixteen level-triggered keys, 0x0-0xF. The host sets and clears them
between steps; the interpreter only reads them.
"""

import logging
from typing import Dict, Any, Optional, Sequence

import numpy as np

from ...common.interfaces import InputDevice
from ...common.exceptions import InvalidKeyError
from ...constants import NUM_KEYS

logger = logging.getLogger("Chip8Emulator.Keypad")

class Chip8Keypad(InputDevice):
    """Current up/down state of the 16 keys."""

    def __init__(self):
        self.keys = np.zeros(NUM_KEYS, dtype=bool)

    def reset(self) -> None:
        """Release all keys."""
        self.keys.fill(False)

    @staticmethod
    def _check_key(key: int) -> int:
        if isinstance(key, bool) or not isinstance(key, (int, np.integer)):
            raise InvalidKeyError(key)
        if not 0 <= key < NUM_KEYS:
            raise InvalidKeyError(key)
        return int(key)

    def press(self, key: int) -> None:
        key = self._check_key(key)
        self.keys[key] = True
        logger.debug(f"Key {key:X} pressed")

    def release(self, key: int) -> None:
        key = self._check_key(key)
        self.keys[key] = False
        logger.debug(f"Key {key:X} released")

    def set_state(self, states: Sequence[bool]) -> None:
        """
        Replace the state of all keys at once.

        Args:
            states: Exactly 16 booleans, index = key number
        """
        states = np.asarray(states, dtype=bool)
        if states.shape != (NUM_KEYS,):
            raise ValueError(f"Expected {NUM_KEYS} key states, got shape {states.shape}")
        self.keys[:] = states

    def is_pressed(self, key: int) -> bool:
        return bool(self.keys[self._check_key(key)])

    def first_pressed(self) -> Optional[int]:
        pressed = np.flatnonzero(self.keys)
        if pressed.size == 0:
            return None
        return int(pressed[0])

    def get_state(self) -> Dict[str, Any]:
        return {
            "pressed": [int(k) for k in np.flatnonzero(self.keys)],
        }
