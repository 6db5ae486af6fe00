"""
CHIP-8 interpreter CPU.

The CHIP-8 "CPU" is the register file and instruction set of the original
COSMAC VIP interpreter: sixteen 8-bit registers V0-VF (VF doubles as the
carry/borrow/collision flag), a 16-bit index register I, a program counter,
a 16-level call stack and two 8-bit countdown timers. Every instruction is
two bytes wide.

The program counter is advanced past the fetched instruction before it
executes, so jumps, calls and skips simply overwrite or bump it. Handlers
validate every address and stack slot they will touch before changing any
state; a MachineFault therefore leaves the machine exactly as it was
before the faulting instruction.
"""

import logging
import typing as t

import numpy as np

from ...common.interfaces import CPU, Memory, VideoProcessor, InputDevice
from ...common.exceptions import (
    ConfigurationError, MachineFault, StackOverflowError, StackUnderflowError
)
from ...constants import (
    NUM_REGISTERS, FLAG_REGISTER, STACK_DEPTH, PROGRAM_START, FONTSET_START,
    GLYPH_SIZE, JUMP_OFFSET_MODES
)
from .decoder import Operation, Instruction, decode

logger = logging.getLogger("Chip8Emulator.CPU")

class Chip8CPU(CPU):
    """
    Emulates the CHIP-8 interpreter's register file and instruction set.
    """

    def __init__(self, jump_offset: str = "standard",
                 rng: t.Optional[np.random.Generator] = None):
        """
        Initialize the CPU.

        Args:
            jump_offset: Bnnn arithmetic ('standard' or 'legacy')
            rng: Random generator for RND (a fresh unseeded one if None)
        """
        if jump_offset not in JUMP_OFFSET_MODES:
            raise ConfigurationError(
                f"Invalid jump offset mode: {jump_offset}. "
                f"Valid options: {', '.join(JUMP_OFFSET_MODES)}"
            )

        # Registers
        self.V = bytearray(NUM_REGISTERS)  # V0-VF
        self.I = 0x000  # Index register
        self.PC = PROGRAM_START  # Program counter
        self.SP = 0  # Stack pointer (number of occupied slots)
        self.stack = [0] * STACK_DEPTH

        # Timers
        self.delay_timer = 0
        self.sound_timer = 0

        # Cycle counting
        self.cycles = 0

        # Connected components
        self.memory = None
        self.display = None
        self.keypad = None

        self.jump_offset = jump_offset
        self.rng = rng if rng is not None else np.random.default_rng()

        self._build_instruction_table()

        logger.debug("CHIP-8 CPU initialized")

    def _build_instruction_table(self):
        """Build the operation -> handler lookup table."""
        self.instructions = {
            Operation.SYS: self._sys,
            Operation.CLS: self._cls,
            Operation.RET: self._ret,
            Operation.JP: self._jp,
            Operation.CALL: self._call,
            Operation.SE_BYTE: self._se_byte,
            Operation.SNE_BYTE: self._sne_byte,
            Operation.SE_REG: self._se_reg,
            Operation.LD_BYTE: self._ld_byte,
            Operation.ADD_BYTE: self._add_byte,
            Operation.LD_REG: self._ld_reg,
            Operation.OR: self._or,
            Operation.AND: self._and,
            Operation.XOR: self._xor,
            Operation.ADD_REG: self._add_reg,
            Operation.SUB: self._sub,
            Operation.SHR: self._shr,
            Operation.SUBN: self._subn,
            Operation.SHL: self._shl,
            Operation.SNE_REG: self._sne_reg,
            Operation.LD_I: self._ld_i,
            Operation.JP_V0: self._jp_v0,
            Operation.RND: self._rnd,
            Operation.DRW: self._drw,
            Operation.SKP: self._skp,
            Operation.SKNP: self._sknp,
            Operation.LD_VX_DT: self._ld_vx_dt,
            Operation.LD_VX_K: self._ld_vx_k,
            Operation.LD_DT_VX: self._ld_dt_vx,
            Operation.LD_ST_VX: self._ld_st_vx,
            Operation.ADD_I: self._add_i,
            Operation.LD_F: self._ld_f,
            Operation.LD_B: self._ld_b,
            Operation.LD_MEM_VX: self._ld_mem_vx,
            Operation.LD_VX_MEM: self._ld_vx_mem,
        }

    def set_memory(self, memory: Memory) -> None:
        """
        Connect the CPU to a memory system.

        Args:
            memory: Memory implementation
        """
        self.memory = memory

    def connect_display(self, display: VideoProcessor) -> None:
        """Connect the framebuffer used by CLS and DRW."""
        self.display = display

    def connect_keypad(self, keypad: InputDevice) -> None:
        """Connect the keypad used by SKP, SKNP and LD Vx, K."""
        self.keypad = keypad

    def reset(self) -> None:
        """Reset the CPU to its initial state."""
        self.V = bytearray(NUM_REGISTERS)
        self.I = 0x000
        self.PC = PROGRAM_START
        self.SP = 0
        self.stack = [0] * STACK_DEPTH
        self.delay_timer = 0
        self.sound_timer = 0
        self.cycles = 0

        logger.debug(f"CPU reset. PC set to ${self.PC:03X}")

    def fetch(self) -> int:
        """Read the opcode at PC."""
        return self.memory.read16(self.PC)

    def step(self) -> int:
        """
        Execute one instruction and return the number of cycles used.

        Returns:
            Number of cycles used by the instruction (always 1)

        Raises:
            MachineFault: The instruction touched state outside the machine.
                PC is left pointing at the faulting instruction.
        """
        if not self.memory:
            raise RuntimeError("CPU has no memory attached")

        pc = self.PC
        try:
            opcode = self.fetch()
        except MachineFault as fault:
            fault.pc = pc
            raise

        # Advance past the instruction before executing it
        self.PC = pc + 2

        instruction = decode(opcode)
        handler = self.instructions.get(instruction.operation)

        if handler is None:
            # Unrecognized opcodes are ignored
            logger.debug(f"Unknown opcode ${opcode:04X} at ${pc:03X}")
        else:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"${pc:03X}: {opcode:04X} {instruction.operation.value}")
            try:
                handler(instruction)
            except MachineFault as fault:
                self.PC = pc
                fault.pc = pc
                fault.opcode = opcode
                raise

        self.cycles += 1
        return 1

    def tick_timers(self) -> None:
        """Count both timers down by one, stopping at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def get_state(self) -> dict:
        """
        Get the current CPU state.

        Returns:
            Dictionary with CPU state
        """
        state = {f"V{i:X}": value for i, value in enumerate(self.V)}
        state.update({
            "I": self.I,
            "PC": self.PC,
            "SP": self.SP,
            "stack": self.stack[:self.SP],
            "DT": self.delay_timer,
            "ST": self.sound_timer,
            "cycles": self.cycles,
        })
        return state

    # Stack

    def stack_push(self, address: int) -> None:
        """Push a return address."""
        if self.SP >= STACK_DEPTH:
            raise StackOverflowError(f"Call stack overflow (depth {STACK_DEPTH})")
        self.stack[self.SP] = address
        self.SP += 1

    def stack_pull(self) -> int:
        """Pop a return address."""
        if self.SP == 0:
            raise StackUnderflowError("Return with empty call stack")
        self.SP -= 1
        return self.stack[self.SP]

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.PC += 2

    # Instruction implementations

    def _sys(self, ins: Instruction) -> None:
        # Machine code routines are not supported; ignored
        pass

    def _cls(self, ins: Instruction) -> None:
        self.display.clear()

    def _ret(self, ins: Instruction) -> None:
        self.PC = self.stack_pull()

    def _jp(self, ins: Instruction) -> None:
        self.PC = ins.nnn

    def _call(self, ins: Instruction) -> None:
        self.stack_push(self.PC)
        self.PC = ins.nnn

    def _se_byte(self, ins: Instruction) -> None:
        self._skip_if(self.V[ins.x] == ins.kk)

    def _sne_byte(self, ins: Instruction) -> None:
        self._skip_if(self.V[ins.x] != ins.kk)

    def _se_reg(self, ins: Instruction) -> None:
        self._skip_if(self.V[ins.x] == self.V[ins.y])

    def _sne_reg(self, ins: Instruction) -> None:
        self._skip_if(self.V[ins.x] != self.V[ins.y])

    def _ld_byte(self, ins: Instruction) -> None:
        self.V[ins.x] = ins.kk

    def _add_byte(self, ins: Instruction) -> None:
        # No carry flag
        self.V[ins.x] = (self.V[ins.x] + ins.kk) & 0xFF

    def _ld_reg(self, ins: Instruction) -> None:
        self.V[ins.x] = self.V[ins.y]

    def _or(self, ins: Instruction) -> None:
        self.V[ins.x] |= self.V[ins.y]

    def _and(self, ins: Instruction) -> None:
        self.V[ins.x] &= self.V[ins.y]

    def _xor(self, ins: Instruction) -> None:
        self.V[ins.x] ^= self.V[ins.y]

    # The flag is written after the result, so VF holds the flag when x is F

    def _add_reg(self, ins: Instruction) -> None:
        total = self.V[ins.x] + self.V[ins.y]
        self.V[ins.x] = total & 0xFF
        self.V[FLAG_REGISTER] = 1 if total > 0xFF else 0

    def _sub(self, ins: Instruction) -> None:
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vx - vy) & 0xFF
        self.V[FLAG_REGISTER] = 1 if vx >= vy else 0

    def _shr(self, ins: Instruction) -> None:
        vx = self.V[ins.x]
        self.V[ins.x] = vx >> 1
        self.V[FLAG_REGISTER] = vx & 0x01

    def _subn(self, ins: Instruction) -> None:
        vx, vy = self.V[ins.x], self.V[ins.y]
        self.V[ins.x] = (vy - vx) & 0xFF
        self.V[FLAG_REGISTER] = 1 if vy >= vx else 0

    def _shl(self, ins: Instruction) -> None:
        vx = self.V[ins.x]
        self.V[ins.x] = (vx << 1) & 0xFF
        self.V[FLAG_REGISTER] = (vx >> 7) & 0x01

    def _ld_i(self, ins: Instruction) -> None:
        self.I = ins.nnn

    def _jp_v0(self, ins: Instruction) -> None:
        if self.jump_offset == "legacy":
            target = (self.V[0] + (ins.nnn & 0xFF)) & 0xFF
        else:
            target = self.V[0] + ins.nnn
        self.memory.check_range(target, 2)
        self.PC = target

    def _rnd(self, ins: Instruction) -> None:
        self.V[ins.x] = int(self.rng.integers(0, 256)) & ins.kk

    def _drw(self, ins: Instruction) -> None:
        rows = self.memory.read_block(self.I, ins.n)
        collision = self.display.draw_sprite(self.V[ins.x], self.V[ins.y], rows)
        self.V[FLAG_REGISTER] = 1 if collision else 0

    def _skp(self, ins: Instruction) -> None:
        self._skip_if(self.keypad.is_pressed(self.V[ins.x] & 0xF))

    def _sknp(self, ins: Instruction) -> None:
        self._skip_if(not self.keypad.is_pressed(self.V[ins.x] & 0xF))

    def _ld_vx_dt(self, ins: Instruction) -> None:
        self.V[ins.x] = self.delay_timer

    def _ld_vx_k(self, ins: Instruction) -> None:
        key = self.keypad.first_pressed()
        if key is None:
            # Execute this instruction again on the next step
            self.PC -= 2
        else:
            self.V[ins.x] = key

    def _ld_dt_vx(self, ins: Instruction) -> None:
        self.delay_timer = self.V[ins.x]

    def _ld_st_vx(self, ins: Instruction) -> None:
        self.sound_timer = self.V[ins.x]

    def _add_i(self, ins: Instruction) -> None:
        # No overflow flag
        self.I = (self.I + self.V[ins.x]) & 0xFFFF

    def _ld_f(self, ins: Instruction) -> None:
        self.I = FONTSET_START + GLYPH_SIZE * (self.V[ins.x] & 0xF)

    def _ld_b(self, ins: Instruction) -> None:
        value = self.V[ins.x]
        self.memory.write_block(self.I, (value // 100, (value // 10) % 10, value % 10))

    def _ld_mem_vx(self, ins: Instruction) -> None:
        self.memory.write_block(self.I, self.V[:ins.x + 1])

    def _ld_vx_mem(self, ins: Instruction) -> None:
        self.V[:ins.x + 1] = self.memory.read_block(self.I, ins.x + 1)
