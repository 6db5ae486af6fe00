"""
Tests for the CHIP-8 display.
"""
import unittest
import numpy as np
from chip8_emulator.systems.chip8.display import Chip8Display
from chip8_emulator.common.exceptions import ConfigurationError
from chip8_emulator.constants import PIXEL_ON, PIXEL_OFF

class TestChip8Display(unittest.TestCase):
    """
    Test cases for sprite compositing and edge handling.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.display = Chip8Display()

    def test_initial_state(self):
        """Test that the screen starts dark with the expected shape."""
        frame = self.display.get_frame_buffer()
        self.assertEqual(frame.shape, (32, 64))
        self.assertEqual(frame.dtype, np.uint8)
        self.assertFalse(frame.any())

    def test_draw_row_msb_leftmost(self):
        """Test that the most significant bit is the leftmost pixel."""
        collision = self.display.draw_sprite(0, 0, b"\x81")
        self.assertFalse(collision)
        row = self.display.get_frame_buffer()[0, :8]
        np.testing.assert_array_equal(
            row, [PIXEL_ON, 0, 0, 0, 0, 0, 0, PIXEL_ON]
        )

    def test_xor_and_collision(self):
        """Test that redrawing erases the sprite and reports a collision."""
        self.display.draw_sprite(10, 5, b"\xF0\x90")
        self.assertTrue(self.display.get_pixel(10, 5))

        collision = self.display.draw_sprite(10, 5, b"\xF0\x90")
        self.assertTrue(collision)
        self.assertFalse(self.display.get_frame_buffer().any())

    def test_partial_overlap_collision(self):
        """Test that one overlapping pixel is enough for a collision."""
        self.display.draw_sprite(0, 0, b"\x80")
        collision = self.display.draw_sprite(0, 0, b"\xC0")
        self.assertTrue(collision)
        self.assertFalse(self.display.get_pixel(0, 0))
        self.assertTrue(self.display.get_pixel(1, 0))

    def test_no_collision_when_only_lighting_pixels(self):
        """Test that drawing onto dark pixels reports no collision."""
        self.display.draw_sprite(0, 0, b"\x80")
        self.assertFalse(self.display.draw_sprite(1, 0, b"\x80"))

    def test_origin_wraps(self):
        """Test that the sprite origin wraps modulo the screen size."""
        self.display.draw_sprite(64 + 3, 32 + 2, b"\x80")
        self.assertTrue(self.display.get_pixel(3, 2))

    def test_clip_edge(self):
        """Test that clip mode drops pixels past the right and bottom edges."""
        self.display.draw_sprite(60, 30, b"\xFF\xFF\xFF")
        frame = self.display.get_frame_buffer()
        self.assertEqual(int(np.count_nonzero(frame)), 4 * 2)
        self.assertTrue(frame[30:32, 60:64].all())
        self.assertFalse(frame[0, :].any())
        self.assertFalse(frame[:, 0].any())

    def test_wrap_edge(self):
        """Test that wrap mode brings pixels back on the opposite side."""
        display = Chip8Display(edge_mode="wrap")
        display.draw_sprite(60, 30, b"\xFF\xFF\xFF")
        frame = display.get_frame_buffer()
        self.assertEqual(int(np.count_nonzero(frame)), 8 * 3)
        self.assertTrue(frame[0, 0:4].all())
        self.assertTrue(frame[31, 60:64].all())

    def test_empty_sprite(self):
        """Test that a zero-height sprite draws nothing."""
        self.assertFalse(self.display.draw_sprite(0, 0, b""))
        self.assertFalse(self.display.get_frame_buffer().any())

    def test_clear(self):
        """Test that clear turns every pixel off."""
        self.display.draw_sprite(0, 0, b"\xFF" * 15)
        self.display.clear()
        self.assertTrue((self.display.get_frame_buffer() == PIXEL_OFF).all())

    def test_frame_buffer_is_read_only(self):
        """Test that writes to the returned snapshot never reach the display."""
        frame = self.display.get_frame_buffer()
        with self.assertRaises(ValueError):
            frame[0, 0] = PIXEL_ON

    def test_invalid_edge_mode(self):
        """Test that unknown edge modes are rejected."""
        with self.assertRaises(ConfigurationError):
            Chip8Display(edge_mode="bounce")

    def test_state(self):
        """Test display statistics."""
        self.display.draw_sprite(0, 0, b"\x80")
        self.display.draw_sprite(0, 0, b"\x80")
        state = self.display.get_state()
        self.assertEqual(state["sprites_drawn"], 2)
        self.assertEqual(state["collisions"], 1)
        self.assertEqual(state["pixels_on"], 0)

if __name__ == '__main__':
    unittest.main()
