"""
Main entry point for the CHIP-8 emulator.

This module provides a headless command-line runner: it loads a ROM, holds
a fixed set of keys down, runs a number of frames and reports the final
machine state, optionally rendering the screen as text or as an image.
"""

import argparse
import logging
import os
import time
import sys
from typing import List, Optional

from .constants import KEYBOARD_LAYOUT, NUM_KEYS, SPRITE_EDGE_MODES, JUMP_OFFSET_MODES, LOG_LEVELS, ROM_EXTENSIONS
from .system_configs import SYSTEM_CONFIGS
from .common.exceptions import Chip8Error, MachineFault, InvalidKeyError, ProgramLoadError
from .common.visualizer import FrameVisualizer
from .systems.chip8.chip8_system import Chip8System
from .utils.config_manager import ConfigManager
from .utils.error_handler import ErrorHandler

logger = logging.getLogger("Chip8Emulator")

def parse_key(token: str) -> int:
    """
    Translate a command-line key name to a keypad index.

    Accepts a host keyboard key from the QWERTY layout ('1', 'q', ...) or
    a keypad digit written in hex with a 0x prefix ('0xA').
    """
    token = token.strip().lower()
    if token.startswith("0x"):
        try:
            key = int(token, 16)
        except ValueError:
            raise InvalidKeyError(token) from None
        if not 0 <= key < NUM_KEYS:
            raise InvalidKeyError(token)
        return key
    if token in KEYBOARD_LAYOUT:
        return KEYBOARD_LAYOUT[token]
    raise InvalidKeyError(token)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless CHIP-8 emulator")
    parser.add_argument('rom', type=str, help='Path to ROM file')
    parser.add_argument('--system', type=str, choices=list(SYSTEM_CONFIGS.keys()),
                       help='Machine preset')
    parser.add_argument('--config', type=str, help='Path to JSON or YAML configuration file')
    parser.add_argument('--frames', type=int, default=60, help='Number of frames to run')
    parser.add_argument('--steps-per-frame', type=int, help='Instructions executed per frame')
    parser.add_argument('--seed', type=int, help='Seed for the random number generator')
    parser.add_argument('--keys', type=str, default='',
                       help='Comma-separated keys held down for the whole run (e.g. "q,w" or "0xA")')
    parser.add_argument('--sprite-edge', type=str, choices=SPRITE_EDGE_MODES,
                       help='Sprite pixels past the screen edge are clipped or wrapped')
    parser.add_argument('--jump-offset', type=str, choices=JUMP_OFFSET_MODES,
                       help='Bnnn arithmetic')
    parser.add_argument('--no-tick-on-step', action='store_true',
                       help='Decrement timers once per frame instead of once per instruction')
    parser.add_argument('--ascii', action='store_true', help='Print the final screen as text')
    parser.add_argument('--save-frame', type=str, help='Write the final screen to an image file')
    parser.add_argument('--error-report', type=str, help='Write reported errors to a JSON file')
    parser.add_argument('--log-level', type=str, choices=LOG_LEVELS, help='Logging level')
    parser.add_argument('--log-file', type=str, help='Path to log file')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the emulator.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    error_handler = ErrorHandler(log_file=args.log_file, console_level=logging.WARNING)

    # Layer configuration: defaults, file, command line
    config = ConfigManager()
    try:
        if args.config:
            config.load_config(args.config)
        overrides = {
            "system": args.system,
            "quirks.sprite_edge": args.sprite_edge,
            "quirks.jump_offset": args.jump_offset,
            "execution.steps_per_frame": args.steps_per_frame,
            "random.seed": args.seed,
            "logging.level": args.log_level,
        }
        for key, value in overrides.items():
            if value is not None:
                config.set(key, value)
        if args.no_tick_on_step:
            config.set("timers.tick_on_step", False)
        if args.frames < 0:
            raise ValueError(f"Invalid frame count: {args.frames}")
        held_keys = [parse_key(k) for k in args.keys.split(',') if k.strip()]
    except (Chip8Error, ValueError) as e:
        error_handler.log_exception(e)
        return 2

    log_level = logging.DEBUG if args.debug else getattr(logging, config.get("logging.level"))
    error_handler.set_log_levels(log_level, log_level if args.debug else None)
    if config.get("logging.file") and not args.log_file:
        error_handler.set_log_file(config.get("logging.file"))

    _, ext = os.path.splitext(args.rom)
    if ext.lower() not in ROM_EXTENSIONS:
        logger.warning(f"Unrecognised ROM extension: {ext or '(none)'}")

    machine_config = config.build_machine_config()

    print("=" * 80)
    print("  CHIP-8 Emulator")
    print(f"  System: {machine_config['system']}")
    print(f"  ROM: {args.rom}")
    print(f"  Frames: {args.frames} x {machine_config['steps_per_frame']} steps")
    print("=" * 80)

    load_failed = False
    try:
        machine = Chip8System.initialize(machine_config, error_handler=error_handler)
        machine.load_rom(args.rom)
    except ProgramLoadError:
        # Already reported by the machine
        load_failed = True
    except (Chip8Error, OSError) as e:
        error_handler.log_exception(e, message=f"Error loading ROM: {e}")
        load_failed = True

    if load_failed:
        if args.error_report:
            error_handler.export_error_report(args.error_report)
        return 1

    for key in held_keys:
        machine.press_key(key)

    start_time = time.time()
    status = 0
    try:
        for _ in range(args.frames):
            machine.run_frame()
    except MachineFault:
        # Already reported by the machine
        status = 1
    execution_time = time.time() - start_time

    visualizer = FrameVisualizer()
    if args.ascii:
        print(visualizer.to_ascii(machine.framebuffer))

    if args.save_frame:
        try:
            visualizer.save_frame(machine.framebuffer, args.save_frame)
        except OSError as e:
            error_handler.log_exception(e, message=f"Error saving frame: {e}")
            status = 1

    if args.error_report:
        error_handler.export_error_report(args.error_report)

    state = machine.get_system_state()
    cpu_state = state["cpu_state"]
    cycles_per_second = machine.cycle_count / execution_time if execution_time > 0 else 0

    print("\nRun Summary:")
    print(f"Frames run: {machine.frame_count}")
    print(f"Instructions executed: {machine.cycle_count}")
    print(f"PC: ${cpu_state['PC']:03X}  I: ${cpu_state['I']:03X}  SP: {cpu_state['SP']}")
    print("Registers: " + " ".join(f"V{i:X}={v:02X}" for i, v in enumerate(machine.registers)))
    print(f"Delay timer: {machine.delay_timer}  Sound timer: {machine.sound_timer}")
    print(f"Pixels lit: {state['display_state']['pixels_on']}")
    if state["last_fault"]:
        print(f"Fault: {state['last_fault']}")
    print(f"Execution time: {execution_time:.2f} seconds")
    print(f"Performance: {cycles_per_second:.2f} instructions/second")

    return status

if __name__ == "__main__":
    sys.exit(main())
