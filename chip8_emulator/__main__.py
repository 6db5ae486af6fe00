"""
Main entry point for the CHIP-8 emulator package.

This module allows the package to be run as a module using:
python -m chip8_emulator [args]
"""

import sys

from chip8_emulator.main import main

if __name__ == "__main__":
    sys.exit(main())
