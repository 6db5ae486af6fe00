"""
CHIP-8 instruction decoder.

Every CHIP-8 instruction is a big-endian 16-bit word. Decoding splits the
word into its operand fields and classifies it into one of the 35
operations by its high nibble, with a secondary lookup on the low nibble
(``8xyN``) or low byte (``0nnn``, ``ExNN``, ``FxNN``) for the families
that share a high nibble. Decoding is pure: it never touches machine
state, so it can be tested independently of execution.
"""

from enum import Enum
from typing import NamedTuple


class Operation(Enum):
    """CHIP-8 operations, valued by their assembler mnemonic."""
    SYS = "SYS addr"
    CLS = "CLS"
    RET = "RET"
    JP = "JP addr"
    CALL = "CALL addr"
    SE_BYTE = "SE Vx, byte"
    SNE_BYTE = "SNE Vx, byte"
    SE_REG = "SE Vx, Vy"
    LD_BYTE = "LD Vx, byte"
    ADD_BYTE = "ADD Vx, byte"
    LD_REG = "LD Vx, Vy"
    OR = "OR Vx, Vy"
    AND = "AND Vx, Vy"
    XOR = "XOR Vx, Vy"
    ADD_REG = "ADD Vx, Vy"
    SUB = "SUB Vx, Vy"
    SHR = "SHR Vx"
    SUBN = "SUBN Vx, Vy"
    SHL = "SHL Vx"
    SNE_REG = "SNE Vx, Vy"
    LD_I = "LD I, addr"
    JP_V0 = "JP V0, addr"
    RND = "RND Vx, byte"
    DRW = "DRW Vx, Vy, nibble"
    SKP = "SKP Vx"
    SKNP = "SKNP Vx"
    LD_VX_DT = "LD Vx, DT"
    LD_VX_K = "LD Vx, K"
    LD_DT_VX = "LD DT, Vx"
    LD_ST_VX = "LD ST, Vx"
    ADD_I = "ADD I, Vx"
    LD_F = "LD F, Vx"
    LD_B = "LD B, Vx"
    LD_MEM_VX = "LD [I], Vx"
    LD_VX_MEM = "LD Vx, [I]"
    UNKNOWN = "???"


class Instruction(NamedTuple):
    """A decoded opcode and its operand fields."""
    opcode: int
    operation: Operation
    x: int
    y: int
    n: int
    kk: int
    nnn: int


# High nibble -> operation, for families without a secondary lookup
_PRIMARY = {
    0x1: Operation.JP,
    0x2: Operation.CALL,
    0x3: Operation.SE_BYTE,
    0x4: Operation.SNE_BYTE,
    0x5: Operation.SE_REG,
    0x6: Operation.LD_BYTE,
    0x7: Operation.ADD_BYTE,
    0x9: Operation.SNE_REG,
    0xA: Operation.LD_I,
    0xB: Operation.JP_V0,
    0xC: Operation.RND,
    0xD: Operation.DRW,
}

# 0nnn family, keyed by the full opcode
_SYSTEM = {
    0x00E0: Operation.CLS,
    0x00EE: Operation.RET,
}

# 8xyN family, keyed by the low nibble
_ALU = {
    0x0: Operation.LD_REG,
    0x1: Operation.OR,
    0x2: Operation.AND,
    0x3: Operation.XOR,
    0x4: Operation.ADD_REG,
    0x5: Operation.SUB,
    0x6: Operation.SHR,
    0x7: Operation.SUBN,
    0xE: Operation.SHL,
}

# ExNN family, keyed by the low byte
_KEY = {
    0x9E: Operation.SKP,
    0xA1: Operation.SKNP,
}

# FxNN family, keyed by the low byte
_MISC = {
    0x07: Operation.LD_VX_DT,
    0x0A: Operation.LD_VX_K,
    0x15: Operation.LD_DT_VX,
    0x18: Operation.LD_ST_VX,
    0x1E: Operation.ADD_I,
    0x29: Operation.LD_F,
    0x33: Operation.LD_B,
    0x55: Operation.LD_MEM_VX,
    0x65: Operation.LD_VX_MEM,
}


def classify(opcode: int) -> Operation:
    """
    Classify a 16-bit opcode into an operation.

    Args:
        opcode: Instruction word (0x0000-0xFFFF)

    Returns:
        The matching Operation, or Operation.UNKNOWN
    """
    family = (opcode >> 12) & 0xF

    if family == 0x0:
        return _SYSTEM.get(opcode, Operation.SYS)
    if family == 0x8:
        return _ALU.get(opcode & 0xF, Operation.UNKNOWN)
    if family == 0xE:
        return _KEY.get(opcode & 0xFF, Operation.UNKNOWN)
    if family == 0xF:
        return _MISC.get(opcode & 0xFF, Operation.UNKNOWN)
    return _PRIMARY[family]


def decode(opcode: int) -> Instruction:
    """
    Decode a 16-bit opcode into an Instruction.

    Args:
        opcode: Instruction word (0x0000-0xFFFF)

    Returns:
        Decoded instruction with all operand fields extracted
    """
    opcode &= 0xFFFF
    return Instruction(
        opcode=opcode,
        operation=classify(opcode),
        x=(opcode >> 8) & 0xF,
        y=(opcode >> 4) & 0xF,
        n=opcode & 0xF,
        kk=opcode & 0xFF,
        nnn=opcode & 0xFFF,
    )
