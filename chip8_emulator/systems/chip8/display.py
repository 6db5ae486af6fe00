"""
CHIP-8 display emulation.

The display is a 64x32 monochrome framebuffer stored one byte per pixel
(0x00 off, 0xFF on). Sprites are XOR-composited: each set sprite bit
toggles the pixel under it, and turning a lit pixel off is reported as a
collision.

The sprite origin always wraps to the screen. What happens to the rest of
the sprite at the right and bottom edges is selected by the edge mode:
``clip`` drops the pixels that fall off the screen, ``wrap`` brings them
back on the opposite side.
"""

import logging
from typing import Dict, Any

import numpy as np

from ...common.interfaces import VideoProcessor
from ...common.exceptions import ConfigurationError
from ...constants import (
    DISPLAY_WIDTH, DISPLAY_HEIGHT, PIXEL_ON, PIXEL_OFF, SPRITE_EDGE_MODES
)

logger = logging.getLogger("Chip8Emulator.Display")

class Chip8Display(VideoProcessor):
    """
    64x32 XOR framebuffer.
    """

    def __init__(self, edge_mode: str = "clip",
                 width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        """
        Initialize the display.

        Args:
            edge_mode: Sprite edge policy ('clip' or 'wrap')
            width: Display width in pixels
            height: Display height in pixels
        """
        if edge_mode not in SPRITE_EDGE_MODES:
            raise ConfigurationError(
                f"Invalid sprite edge mode: {edge_mode}. "
                f"Valid options: {', '.join(SPRITE_EDGE_MODES)}"
            )

        self.edge_mode = edge_mode
        self.width = width
        self.height = height
        self.frame_buffer = np.full((height, width), PIXEL_OFF, dtype=np.uint8)

        # Statistics
        self.sprites_drawn = 0
        self.collisions = 0

        logger.debug(f"Display initialized: {width}x{height}, edge mode '{edge_mode}'")

    def reset(self) -> None:
        """Clear the screen and statistics."""
        self.clear()
        self.sprites_drawn = 0
        self.collisions = 0

    def clear(self) -> None:
        """Turn every pixel off."""
        self.frame_buffer.fill(PIXEL_OFF)

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """
        XOR a sprite onto the framebuffer.

        Each byte of ``rows`` is one 8-pixel row, most significant bit
        leftmost.

        Args:
            x: Horizontal position (wrapped to the screen width)
            y: Vertical position (wrapped to the screen height)
            rows: Sprite bytes, one per row

        Returns:
            True if any lit pixel was turned off
        """
        x0 = x % self.width
        y0 = y % self.height

        sprite = np.unpackbits(
            np.frombuffer(bytes(rows), dtype=np.uint8)
        ).reshape(len(rows), 8).astype(bool)

        ys = y0 + np.arange(sprite.shape[0])
        xs = x0 + np.arange(8)

        if self.edge_mode == "wrap":
            ys %= self.height
            xs %= self.width
        else:
            ys = ys[ys < self.height]
            xs = xs[xs < self.width]
            sprite = sprite[:len(ys), :len(xs)]

        region = np.ix_(ys, xs)
        current = self.frame_buffer[region]

        collision = bool(np.any(sprite & (current == PIXEL_ON)))
        self.frame_buffer[region] = np.where(sprite, current ^ PIXEL_ON, current)

        self.sprites_drawn += 1
        if collision:
            self.collisions += 1

        return collision

    def get_frame_buffer(self) -> np.ndarray:
        """
        Get a read-only snapshot of the framebuffer.

        The snapshot is a copy, so later drawing does not change it and
        writes to it never reach the machine.

        Returns:
            Array of shape (height, width), dtype uint8, values 0x00/0xFF
        """
        snapshot = self.frame_buffer.copy()
        snapshot.flags.writeable = False
        return snapshot

    def get_pixel(self, x: int, y: int) -> bool:
        """Return True if the pixel at (x, y) is lit."""
        return bool(self.frame_buffer[y, x] == PIXEL_ON)

    def get_state(self) -> Dict[str, Any]:
        """
        Get display state.

        Returns:
            Dictionary with display state
        """
        return {
            "width": self.width,
            "height": self.height,
            "edge_mode": self.edge_mode,
            "pixels_on": int(np.count_nonzero(self.frame_buffer)),
            "sprites_drawn": self.sprites_drawn,
            "collisions": self.collisions,
        }
