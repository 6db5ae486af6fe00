"""
Framebuffer rendering for headless hosts.
"""
import numpy as np
from matplotlib.figure import Figure
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import ListedColormap
import logging
import os
from typing import Tuple

from ..constants import PIXEL_ON

logger = logging.getLogger("Chip8Emulator.Visualizer")

# Colours used by the reference host window (RGBA)
PIXEL_OFF_COLOR = (0x48 / 255, 0xB2 / 255, 0xE8 / 255, 1.0)
PIXEL_ON_COLOR = (0x5E / 255, 0x48 / 255, 0xE8 / 255, 1.0)

class FrameVisualizer:
    """
    Renders a CHIP-8 framebuffer as text or as an image file.
    """

    def __init__(self, scale: int = 10, on_char: str = "#", off_char: str = "."):
        """
        Initialize the visualizer.

        Args:
            scale: Image pixels per CHIP-8 pixel
            on_char: Character for lit pixels in text output
            off_char: Character for dark pixels in text output
        """
        self.scale = scale
        self.on_char = on_char
        self.off_char = off_char
        self.color_map = ListedColormap([PIXEL_OFF_COLOR, PIXEL_ON_COLOR])

    def to_ascii(self, frame_buffer: np.ndarray) -> str:
        """
        Render the framebuffer as lines of text, one line per row.

        Args:
            frame_buffer: (height, width) array of 0x00/0xFF pixels

        Returns:
            Multi-line string
        """
        lit = np.asarray(frame_buffer) == PIXEL_ON
        return "\n".join(
            "".join(self.on_char if pixel else self.off_char for pixel in row)
            for row in lit
        )

    def save_frame(self, frame_buffer: np.ndarray, filename: str, dpi: int = 100) -> str:
        """
        Write the framebuffer to an image file.

        Args:
            frame_buffer: (height, width) array of 0x00/0xFF pixels
            filename: Output path; format follows the extension
            dpi: Output resolution

        Returns:
            The path written
        """
        lit = (np.asarray(frame_buffer) == PIXEL_ON).astype(np.uint8)
        height, width = lit.shape
        figsize: Tuple[float, float] = (width * self.scale / dpi, height * self.scale / dpi)

        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Agg canvas; the pyplot backend is left alone
        fig = Figure(figsize=figsize, dpi=dpi)
        FigureCanvasAgg(fig)
        ax = fig.add_axes([0, 0, 1, 1])
        ax.imshow(lit, cmap=self.color_map, vmin=0, vmax=1, interpolation="nearest")
        ax.set_axis_off()
        fig.savefig(filename, dpi=dpi)

        logger.info(f"Saved frame to {filename}")
        return filename
