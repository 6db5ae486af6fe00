"""
CHIP-8 system implementation.

This module ties the CPU, memory, display and keypad into a complete
machine. The host drives it: it loads a program, calls step() (or
run_frame()) at whatever rate it likes, sets keys between steps and
reads the framebuffer and sound timer back. The machine never looks at
the wall clock.
"""

import logging
import os
from typing import Dict, Optional, Any, Sequence

import numpy as np

from ...common.interfaces import System
from ...common.exceptions import MachineFault, ProgramLoadError, ConfigurationError
from ...constants import PROGRAM_START
from ...system_configs import SYSTEM_CONFIGS
from .cpu import Chip8CPU
from .memory import Chip8Memory
from .display import Chip8Display
from .keypad import Chip8Keypad

logger = logging.getLogger("Chip8Emulator.System")

class Chip8System(System):
    """
    Complete CHIP-8 machine.

    The host only talks to this class. Internal state is exposed through
    read-only properties; the framebuffer is handed out as a read-only
    array and keys can only be set, never read back through the input API.

    Usage:
        machine = Chip8System.initialize()
        machine.load_program(rom_bytes)
        while running:
            machine.set_keys(host_keys)
            machine.step()
            draw(machine.framebuffer)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 error_handler=None):
        """
        Initialize the CHIP-8 system.

        Args:
            config: Machine configuration. Recognised keys: 'system',
                'sprite_edge', 'jump_offset', 'steps_per_frame',
                'tick_on_step', 'rng_seed'. Missing keys come from the
                selected system preset.
            error_handler: Optional ErrorHandler that machine faults and
                load failures are reported to
        """
        config = dict(config or {})
        system = config.get("system", "chip8")
        if system not in SYSTEM_CONFIGS:
            raise ConfigurationError(f"Unknown system type: {system}")
        preset = SYSTEM_CONFIGS[system]

        self.config = {
            "system": system,
            "sprite_edge": config.get("sprite_edge", preset["quirks"]["sprite_edge"]),
            "jump_offset": config.get("jump_offset", preset["quirks"]["jump_offset"]),
            "steps_per_frame": config.get("steps_per_frame", preset["steps_per_frame"]),
            "tick_on_step": config.get("tick_on_step", True),
            "rng_seed": config.get("rng_seed"),
        }
        steps = self.config["steps_per_frame"]
        if isinstance(steps, bool) or not isinstance(steps, int) or steps < 1:
            raise ConfigurationError(f"Invalid steps_per_frame: {steps}. Must be a positive integer")
        if not isinstance(self.config["tick_on_step"], bool):
            raise ConfigurationError(f"Invalid tick_on_step: {self.config['tick_on_step']}. Must be a boolean")

        self.error_handler = error_handler

        # Create and connect components
        self.memory = Chip8Memory(preset["memory_size"])
        self.display = Chip8Display(edge_mode=self.config["sprite_edge"])
        self.keypad = Chip8Keypad()
        self.cpu = Chip8CPU(
            jump_offset=self.config["jump_offset"],
            rng=np.random.default_rng(self.config["rng_seed"]),
        )

        self.cpu.set_memory(self.memory)
        self.cpu.connect_display(self.display)
        self.cpu.connect_keypad(self.keypad)

        self.steps_per_frame = self.config["steps_per_frame"]
        self.tick_on_step = self.config["tick_on_step"]

        # System state
        self.frame_count = 0
        self.last_fault = None

        # Program information
        self.rom_loaded = False
        self.rom_name = ""
        self._program = b""
        self._program_offset = PROGRAM_START

        self.reset()

        logger.info(f"CHIP-8 system initialized ({self.config['system']})")

    @classmethod
    def initialize(cls, config: Optional[Dict[str, Any]] = None,
                   error_handler=None) -> 'Chip8System':
        """Create a machine with cleared state and the font loaded."""
        return cls(config, error_handler=error_handler)

    def reset(self) -> None:
        """
        Reset the machine to power-on state.

        The font is reloaded and, if a program was loaded, so is the program.
        """
        self.memory.reset()
        self.memory.load_fontset()
        self.display.reset()
        self.keypad.reset()
        self.cpu.reset()

        if self.rom_loaded:
            self.memory.load_rom(self._program, self._program_offset)

        self.frame_count = 0
        self.last_fault = None

        logger.debug("System reset")

    def load_program(self, data: bytes, offset: int = PROGRAM_START) -> None:
        """
        Copy program bytes into memory.

        Args:
            data: Program bytes
            offset: Load address

        Raises:
            InvalidProgramSizeError: If the program does not fit; memory is
                left unchanged
        """
        data = bytes(data)
        try:
            self.memory.load_rom(data, offset)
        except ProgramLoadError as e:
            self._report(e)
            raise

        self._program = data
        self._program_offset = offset
        self.rom_loaded = True

    def load_rom(self, rom_path: str) -> None:
        """
        Load a CHIP-8 program file.

        Args:
            rom_path: Path to ROM file
        """
        with open(rom_path, 'rb') as f:
            rom_data = f.read()

        self.load_program(rom_data)
        self.rom_name = os.path.basename(rom_path)

        logger.info(f"Loaded ROM: {self.rom_name} ({len(rom_data)} bytes)")

    def step(self) -> None:
        """
        Run one fetch-decode-execute cycle, then count the timers down.

        Raises:
            MachineFault: The instruction faulted. The program counter still
                points at it and no timer was decremented.
        """
        try:
            self.cpu.step()
        except MachineFault as fault:
            self.last_fault = fault
            self._report(fault, {"pc": fault.pc, "opcode": fault.opcode})
            raise

        if self.tick_on_step:
            self.cpu.tick_timers()

    def tick_timers(self) -> None:
        """Count both timers down once, for hosts that pace timers separately."""
        self.cpu.tick_timers()

    def run_frame(self) -> Dict[str, Any]:
        """
        Run the machine for one frame.

        Executes ``steps_per_frame`` steps. When timers are not tied to
        steps they are decremented once per frame instead.

        Returns:
            System state at the end of the frame
        """
        for _ in range(self.steps_per_frame):
            self.step()

        if not self.tick_on_step:
            self.cpu.tick_timers()

        self.frame_count += 1
        return self.get_system_state()

    def _report(self, exception: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        if self.error_handler is not None:
            self.error_handler.log_exception(exception, context=context)
        else:
            logger.error(str(exception))

    # Host input

    def press_key(self, key: int) -> None:
        """Hold a keypad key (0x0-0xF) down."""
        self.keypad.press(key)

    def release_key(self, key: int) -> None:
        """Release a keypad key (0x0-0xF)."""
        self.keypad.release(key)

    def set_keys(self, states: Sequence[bool]) -> None:
        """Set all 16 key states at once."""
        self.keypad.set_state(states)

    # Host output

    @property
    def framebuffer(self) -> np.ndarray:
        """Read-only (32, 64) uint8 snapshot of the screen, 0x00 off / 0xFF on."""
        return self.display.get_frame_buffer()

    @property
    def sound_timer(self) -> int:
        return self.cpu.sound_timer

    @property
    def delay_timer(self) -> int:
        return self.cpu.delay_timer

    @property
    def sound_active(self) -> bool:
        """True while the host should sound a tone."""
        return self.cpu.sound_timer > 0

    # Inspection

    @property
    def registers(self) -> bytes:
        return bytes(self.cpu.V)

    @property
    def program_counter(self) -> int:
        return self.cpu.PC

    @property
    def index_register(self) -> int:
        return self.cpu.I

    @property
    def stack_pointer(self) -> int:
        return self.cpu.SP

    @property
    def cycle_count(self) -> int:
        return self.cpu.cycles

    def get_system_state(self) -> Dict[str, Any]:
        """
        Get the current system state.

        Returns:
            Dictionary with system state
        """
        return {
            "cycle_count": self.cpu.cycles,
            "frame_count": self.frame_count,
            "system": self.config["system"],
            "rom_name": self.rom_name,
            "cpu_state": self.cpu.get_state(),
            "memory_state": self.memory.get_state(),
            "display_state": self.display.get_state(),
            "keypad_state": self.keypad.get_state(),
            "sound_active": self.sound_active,
            "last_fault": str(self.last_fault) if self.last_fault else None,
        }
