"""
CHIP-8 Emulator

An interpreter for the CHIP-8 virtual machine: 4 KB of memory, sixteen
8-bit registers, a 64x32 XOR framebuffer and a 16-key hexadecimal keypad.
The machine is driven step by step by a host that supplies key states and
reads back the framebuffer.
"""

__version__ = "0.1.0"

from .systems.chip8.chip8_system import Chip8System
