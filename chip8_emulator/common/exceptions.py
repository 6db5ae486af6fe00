"""
Exception hierarchy for the CHIP-8 emulator.

Machine faults are raised by the interpreter when an instruction would
touch state outside the machine (memory past 0xFFF, a seventeenth
nested call, a return with an empty stack). They are recoverable: the
faulting instruction leaves the machine untouched and the host decides
whether to reset, halt or carry on.
"""

from typing import Optional


class Chip8Error(Exception):
    """Base class for all emulator errors."""


class ConfigurationError(Chip8Error):
    """Raised for invalid configuration values."""


class ProgramLoadError(Chip8Error):
    """Raised when a program cannot be placed in memory."""


class InvalidProgramSizeError(ProgramLoadError):
    """Program does not fit between its load offset and the end of memory."""

    def __init__(self, size: int, offset: int, capacity: int):
        self.size = size
        self.offset = offset
        self.capacity = capacity
        super().__init__(
            f"Program of {size} bytes does not fit at ${offset:03X} "
            f"({capacity} bytes available)"
        )


class InvalidKeyError(Chip8Error, ValueError):
    """Raised for key indices outside 0x0-0xF."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Invalid key: {key!r} (expected 0x0-0xF)")


class MachineFault(Chip8Error):
    """
    Base class for faults raised while executing an instruction.

    Attributes:
        pc: Address of the faulting instruction (None outside of step())
        opcode: The faulting opcode (None outside of step())
    """

    def __init__(self, message: str, pc: Optional[int] = None,
                 opcode: Optional[int] = None):
        self.pc = pc
        self.opcode = opcode
        super().__init__(message)

    def __str__(self):
        message = super().__str__()
        if self.pc is not None and self.opcode is not None:
            return f"{message} (opcode ${self.opcode:04X} at ${self.pc:03X})"
        return message


class StackOverflowError(MachineFault):
    """CALL with all stack slots in use."""


class StackUnderflowError(MachineFault):
    """RET with no matching CALL."""


class AddressOutOfRangeError(MachineFault):
    """An instruction addressed memory outside 0x000-0xFFF."""

    def __init__(self, address: int, length: int = 1, **kwargs):
        self.address = address
        self.length = length
        if length > 1:
            message = f"Address range ${address:03X}+{length} is out of range"
        else:
            message = f"Address ${address:03X} is out of range"
        super().__init__(message, **kwargs)
