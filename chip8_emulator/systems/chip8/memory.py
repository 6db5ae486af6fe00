"""
CHIP-8 memory system implementation.

The CHIP-8 address space is a flat 4 KB of RAM:
- 0x000-0x1FF reserved for the interpreter (the font glyphs live at 0x050)
- 0x200-0xFFF program and data

Every access is bounds-checked. Out-of-range addresses raise
AddressOutOfRangeError instead of wrapping or growing the buffer, and
block operations check the whole range before touching a single byte.
"""

import logging
from typing import Dict, Any, Iterable

from ...common.interfaces import Memory
from ...common.exceptions import AddressOutOfRangeError, InvalidProgramSizeError
from ...constants import MEMORY_SIZE, FONTSET, FONTSET_START, PROGRAM_START

logger = logging.getLogger("Chip8Emulator.Memory")

class Chip8Memory(Memory):
    """
    Emulates the CHIP-8 4 KB address space.
    """

    def __init__(self, size: int = MEMORY_SIZE):
        """
        Initialize the memory system.

        Args:
            size: Number of addressable bytes
        """
        self.size = size
        self.ram = bytearray(size)

        # Last loaded program
        self.rom_size = 0
        self.rom_offset = PROGRAM_START

        logger.debug(f"CHIP-8 memory initialized ({size} bytes)")

    def reset(self) -> None:
        """Zero all of memory."""
        self.ram = bytearray(self.size)
        self.rom_size = 0
        self.rom_offset = PROGRAM_START

    def check_range(self, address: int, length: int = 1) -> None:
        """
        Ensure ``length`` bytes starting at ``address`` are addressable.

        Raises:
            AddressOutOfRangeError: If any byte of the range is outside memory
        """
        if address < 0 or length < 0 or address + length > self.size:
            raise AddressOutOfRangeError(address, length)

    def read(self, address: int) -> int:
        """
        Read a byte from the specified address.

        Args:
            address: Memory address

        Returns:
            Byte value at address
        """
        self.check_range(address)
        return self.ram[address]

    def write(self, address: int, value: int) -> None:
        """
        Write a byte to the specified address.

        Args:
            address: Memory address
            value: Byte value (truncated to 8 bits)
        """
        self.check_range(address)
        self.ram[address] = value & 0xFF

    def read16(self, address: int) -> int:
        """Read a big-endian 16-bit word."""
        self.check_range(address, 2)
        return (self.ram[address] << 8) | self.ram[address + 1]

    def read_block(self, address: int, length: int) -> bytes:
        """Read ``length`` consecutive bytes."""
        self.check_range(address, length)
        return bytes(self.ram[address:address + length])

    def write_block(self, address: int, data: Iterable[int]) -> None:
        """Write consecutive bytes starting at ``address``."""
        data = bytes(data)
        self.check_range(address, len(data))
        self.ram[address:address + len(data)] = data

    def load_fontset(self) -> None:
        """Write the built-in hexadecimal glyphs at FONTSET_START."""
        self.write_block(FONTSET_START, FONTSET)
        logger.debug(f"Fontset loaded at ${FONTSET_START:03X}")

    def load_rom(self, rom_data: bytes, offset: int = PROGRAM_START) -> None:
        """
        Load program bytes into memory.

        Nothing is written if the program does not fit.

        Args:
            rom_data: Program bytes
            offset: Load address

        Raises:
            InvalidProgramSizeError: If the program exceeds the space
                between ``offset`` and the end of memory
        """
        rom_data = bytes(rom_data)
        if offset < 0 or offset > self.size or offset + len(rom_data) > self.size:
            capacity = max(self.size - offset, 0) if offset >= 0 else 0
            raise InvalidProgramSizeError(len(rom_data), offset, capacity)

        self.ram[offset:offset + len(rom_data)] = rom_data
        self.rom_size = len(rom_data)
        self.rom_offset = offset

        logger.info(f"Loaded {len(rom_data)} bytes at ${offset:03X}")

    def get_state(self) -> Dict[str, Any]:
        """
        Get memory state summary.

        Returns:
            Dictionary with memory state
        """
        return {
            "size": self.size,
            "rom_offset": self.rom_offset,
            "rom_size": self.rom_size,
        }
