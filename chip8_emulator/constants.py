"""
Global constants for the CHIP-8 emulator.
"""

# Memory layout
MEMORY_SIZE = 4096
FONTSET_START = 0x50
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

# Register file
NUM_REGISTERS = 16
FLAG_REGISTER = 0xF
STACK_DEPTH = 16

# Display
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
PIXEL_OFF = 0x00
PIXEL_ON = 0xFF

# Input
NUM_KEYS = 16

# Built-in hexadecimal font, 5 bytes per glyph
GLYPH_SIZE = 5
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

# Quirk options
SPRITE_EDGE_MODES = ['clip', 'wrap']
JUMP_OFFSET_MODES = ['standard', 'legacy']

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Host keyboard to keypad mapping
#
#   Keypad       Keyboard
#   1 2 3 C      1 2 3 4
#   4 5 6 D      Q W E R
#   7 8 9 E  =>  A S D F
#   A 0 B F      Z X C V
KEYBOARD_LAYOUT = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}

# File extensions accepted by the command-line runner
ROM_EXTENSIONS = ['.ch8', '.c8', '.rom', '.bin']
