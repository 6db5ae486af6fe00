"""
Configuration presets for supported CHIP-8 machine variants.
"""

from .constants import (
    MEMORY_SIZE, FONTSET_START, PROGRAM_START, DISPLAY_WIDTH,
    DISPLAY_HEIGHT, STACK_DEPTH, NUM_KEYS
)

SYSTEM_CONFIGS = {
    "chip8": {
        "description": "CHIP-8 interpreter with conventional quirks",
        "memory_map": {
            "interpreter": {"start": 0x000, "end": PROGRAM_START - 1},
            "fontset": {"start": FONTSET_START, "end": FONTSET_START + 0x4F},
            "program": {"start": PROGRAM_START, "end": MEMORY_SIZE - 1},
        },
        "memory_size": MEMORY_SIZE,
        "resolution": (DISPLAY_WIDTH, DISPLAY_HEIGHT),
        "stack_depth": STACK_DEPTH,
        "num_keys": NUM_KEYS,
        "timer_frequency_hz": 60,
        "steps_per_frame": 10,
        "quirks": {
            "sprite_edge": "clip",
            "jump_offset": "standard",
        },
    },
    "chip8-reference": {
        "description": "Reproduces the arithmetic of the reference interpreter",
        "memory_map": {
            "interpreter": {"start": 0x000, "end": PROGRAM_START - 1},
            "fontset": {"start": FONTSET_START, "end": FONTSET_START + 0x4F},
            "program": {"start": PROGRAM_START, "end": MEMORY_SIZE - 1},
        },
        "memory_size": MEMORY_SIZE,
        "resolution": (DISPLAY_WIDTH, DISPLAY_HEIGHT),
        "stack_depth": STACK_DEPTH,
        "num_keys": NUM_KEYS,
        "timer_frequency_hz": 60,
        # The reference host ran one instruction per 60 Hz redraw
        "steps_per_frame": 1,
        "quirks": {
            "sprite_edge": "clip",
            "jump_offset": "legacy",
        },
    },
}
