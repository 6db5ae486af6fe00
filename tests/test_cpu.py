"""
Tests for CHIP-8 instruction execution.

Each test assembles a short program, loads it at 0x200 and steps the
machine through it.
"""
import struct
import unittest
from unittest import mock

import numpy as np

from chip8_emulator.systems.chip8.chip8_system import Chip8System
from chip8_emulator.systems.chip8.cpu import Chip8CPU
from chip8_emulator.common.exceptions import ConfigurationError
from chip8_emulator.constants import FONTSET_START, PROGRAM_START

def assemble(*words):
    """Pack instruction words big-endian."""
    return struct.pack(f">{len(words)}H", *words)

class CPUTestCase(unittest.TestCase):
    """Base class with a helper that loads and runs a program."""

    config = None

    def run_program(self, *words, steps=None, config=None):
        machine = Chip8System(config if config is not None else self.config)
        machine.load_program(assemble(*words))
        for _ in range(len(words) if steps is None else steps):
            machine.step()
        return machine

class TestFlowControl(CPUTestCase):
    """
    Test cases for jumps, calls, returns and skips.
    """

    def test_jump(self):
        """Test 1nnn."""
        machine = self.run_program(0x1345, steps=1)
        self.assertEqual(machine.program_counter, 0x345)

    def test_call_and_return(self):
        """Test that 2nnn then 00EE returns to the instruction after the call."""
        machine = Chip8System()
        program = bytearray(assemble(0x2300))
        program.extend(bytes(0x300 - PROGRAM_START - len(program)))
        program.extend(assemble(0x00EE))
        machine.load_program(bytes(program))

        machine.step()
        self.assertEqual(machine.program_counter, 0x300)
        self.assertEqual(machine.stack_pointer, 1)

        machine.step()
        self.assertEqual(machine.program_counter, PROGRAM_START + 2)
        self.assertEqual(machine.stack_pointer, 0)

    def test_skip_if_equal_byte(self):
        """Test 3xkk taken and not taken."""
        machine = self.run_program(0x6A12, 0x3A12)
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)
        machine = self.run_program(0x6A12, 0x3A13)
        self.assertEqual(machine.program_counter, PROGRAM_START + 4)

    def test_skip_if_not_equal_byte(self):
        """Test 4xkk taken and not taken."""
        machine = self.run_program(0x6A12, 0x4A13)
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)
        machine = self.run_program(0x6A12, 0x4A12)
        self.assertEqual(machine.program_counter, PROGRAM_START + 4)

    def test_skip_on_registers(self):
        """Test 5xy0 and 9xy0."""
        machine = self.run_program(0x6105, 0x6205, 0x5120)
        self.assertEqual(machine.program_counter, PROGRAM_START + 8)
        machine = self.run_program(0x6105, 0x6206, 0x5120)
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)
        machine = self.run_program(0x6105, 0x6206, 0x9120)
        self.assertEqual(machine.program_counter, PROGRAM_START + 8)
        machine = self.run_program(0x6105, 0x6205, 0x9120)
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)

    def test_jump_with_offset(self):
        """Test Bnnn with full-width addition."""
        machine = self.run_program(0x60FF, 0xB300)
        self.assertEqual(machine.program_counter, 0x3FF)

    def test_jump_with_offset_legacy(self):
        """Test Bnnn with the reference's 8-bit arithmetic."""
        machine = self.run_program(0x6010, 0xB3F8, config={"jump_offset": "legacy"})
        self.assertEqual(machine.program_counter, (0x10 + 0xF8) & 0xFF)

    def test_unknown_and_sys_are_no_ops(self):
        """Test that unknown opcodes and 0nnn only advance PC."""
        machine = self.run_program(0x0123, 0x8AB9, 0xE000, 0xF0FF)
        self.assertEqual(machine.program_counter, PROGRAM_START + 8)
        self.assertEqual(machine.registers, bytes(16))

class TestArithmetic(CPUTestCase):
    """
    Test cases for the register and ALU instructions.
    """

    def test_load_and_add_byte(self):
        """Test 6xkk and 7xkk wraparound without a flag."""
        machine = self.run_program(0x6AF0, 0x7A20)
        self.assertEqual(machine.registers[0xA], 0x10)
        self.assertEqual(machine.registers[0xF], 0)

    def test_logic(self):
        """Test 8xy0-8xy3."""
        machine = self.run_program(0x6133, 0x620F, 0x8310, 0x8121)
        self.assertEqual(machine.registers[3], 0x33)
        self.assertEqual(machine.registers[1], 0x33 | 0x0F)
        machine = self.run_program(0x6133, 0x620F, 0x8122)
        self.assertEqual(machine.registers[1], 0x33 & 0x0F)
        machine = self.run_program(0x6133, 0x620F, 0x8123)
        self.assertEqual(machine.registers[1], 0x33 ^ 0x0F)

    def test_add_with_carry(self):
        """Test 8xy4 for all operand pairs on a grid."""
        for vx in range(0, 256, 17):
            for vy in range(0, 256, 15):
                with self.subTest(vx=vx, vy=vy):
                    machine = self.run_program(0x6100 | vx, 0x6200 | vy, 0x8124)
                    self.assertEqual(machine.registers[1], (vx + vy) % 256)
                    self.assertEqual(machine.registers[0xF], 1 if vx + vy > 255 else 0)

    def test_subtract_with_borrow(self):
        """Test 8xy5 for all operand pairs on a grid."""
        for vx in range(0, 256, 17):
            for vy in range(0, 256, 15):
                with self.subTest(vx=vx, vy=vy):
                    machine = self.run_program(0x6100 | vx, 0x6200 | vy, 0x8125)
                    self.assertEqual(machine.registers[1], (vx - vy) % 256)
                    self.assertEqual(machine.registers[0xF], 1 if vx >= vy else 0)

    def test_subtract_equal_operands(self):
        """Test that equal operands set the no-borrow flag."""
        machine = self.run_program(0x6142, 0x6242, 0x8125)
        self.assertEqual(machine.registers[1], 0)
        self.assertEqual(machine.registers[0xF], 1)

    def test_reverse_subtract(self):
        """Test 8xy7."""
        machine = self.run_program(0x6110, 0x6230, 0x8127)
        self.assertEqual(machine.registers[1], 0x20)
        self.assertEqual(machine.registers[0xF], 1)
        machine = self.run_program(0x6130, 0x6210, 0x8127)
        self.assertEqual(machine.registers[1], 0xE0)
        self.assertEqual(machine.registers[0xF], 0)

    def test_shift_right(self):
        """Test that 8xy6 shifts out the low bit of Vx."""
        machine = self.run_program(0x6105, 0x8106)
        self.assertEqual(machine.registers[1], 0x02)
        self.assertEqual(machine.registers[0xF], 1)
        machine = self.run_program(0x6104, 0x8106)
        self.assertEqual(machine.registers[1], 0x02)
        self.assertEqual(machine.registers[0xF], 0)

    def test_shift_left(self):
        """Test that 8xyE shifts out the high bit of Vx."""
        machine = self.run_program(0x6181, 0x810E)
        self.assertEqual(machine.registers[1], 0x02)
        self.assertEqual(machine.registers[0xF], 1)
        machine = self.run_program(0x6141, 0x810E)
        self.assertEqual(machine.registers[1], 0x82)
        self.assertEqual(machine.registers[0xF], 0)

    def test_flag_register_as_operand(self):
        """Test that the flag wins when VF is the destination."""
        machine = self.run_program(0x6FFF, 0x6101, 0x8F14)
        self.assertEqual(machine.registers[0xF], 1)

    def test_random_with_zero_mask(self):
        """Test that Cx00 always yields zero."""
        machine = Chip8System()
        machine.load_program(assemble(*([0xC300] * 50)))
        for _ in range(50):
            machine.step()
            self.assertEqual(machine.registers[3], 0)

    def test_random_mask(self):
        """Test that Cxkk only keeps bits of the mask."""
        machine = Chip8System({"rng_seed": 7})
        machine.load_program(assemble(*([0xC30F] * 50)))
        for _ in range(50):
            machine.step()
            self.assertEqual(machine.registers[3] & 0xF0, 0)

    def test_random_is_seeded(self):
        """Test that the same seed gives the same random bytes."""
        values = []
        for _ in range(2):
            machine = Chip8System({"rng_seed": 42})
            machine.load_program(assemble(*([0xC3FF] * 4)))
            run = []
            for _ in range(4):
                machine.step()
                run.append(machine.registers[3])
            values.append(run)
        self.assertEqual(values[0], values[1])

    def test_random_uses_generator(self):
        """Test that RND draws from the CPU's generator."""
        rng = mock.Mock()
        rng.integers.return_value = np.int64(0xAB)
        machine = Chip8System()
        machine.cpu.rng = rng
        machine.load_program(assemble(0xC3F0))
        machine.step()
        self.assertEqual(machine.registers[3], 0xA0)
        rng.integers.assert_called_with(0, 256)

    def test_invalid_jump_offset_mode(self):
        """Test that unknown Bnnn modes are rejected."""
        with self.assertRaises(ConfigurationError):
            Chip8CPU(jump_offset="sideways")

class TestIndexAndMemory(CPUTestCase):
    """
    Test cases for the index register and memory transfer instructions.
    """

    def test_load_index(self):
        """Test Annn."""
        machine = self.run_program(0xA123)
        self.assertEqual(machine.index_register, 0x123)

    def test_add_index(self):
        """Test Fx1E without a flag."""
        machine = self.run_program(0xAFFF, 0x6102, 0xF11E)
        self.assertEqual(machine.index_register, 0x1001)
        self.assertEqual(machine.registers[0xF], 0)

    def test_font_address(self):
        """Test Fx29 for every digit."""
        for digit in range(16):
            with self.subTest(digit=digit):
                machine = self.run_program(0x6100 | digit, 0xF129)
                self.assertEqual(machine.index_register, FONTSET_START + 5 * digit)

    def test_font_address_uses_low_nibble(self):
        """Test that Fx29 only uses the low nibble of Vx."""
        machine = self.run_program(0x61AB, 0xF129)
        self.assertEqual(machine.index_register, FONTSET_START + 5 * 0xB)

    def test_bcd(self):
        """Test Fx33 digit decomposition."""
        for value, digits in ((254, b"\x02\x05\x04"), (7, b"\x00\x00\x07"), (100, b"\x01\x00\x00")):
            with self.subTest(value=value):
                machine = self.run_program(0xA400, 0x6100 | value, 0xF133)
                self.assertEqual(machine.memory.read_block(0x400, 3), digits)

    def test_store_load_round_trip(self):
        """Test that Fx55 then Fx65 restores V0..Vx exactly."""
        setup = [0x6000 | (i << 8) | (0x10 + i * 3) for i in range(6)]
        clear = [0x6000 | (i << 8) for i in range(6)]
        machine = self.run_program(0xA500, *setup, 0xF555, *clear, 0xF565)
        self.assertEqual(machine.registers[:6], bytes(0x10 + i * 3 for i in range(6)))
        self.assertEqual(machine.index_register, 0x500)

    def test_store_is_inclusive(self):
        """Test that Fx55 writes exactly x + 1 bytes."""
        machine = self.run_program(0xA500, 0x6011, 0x6122, 0x6233, 0xF155)
        self.assertEqual(machine.memory.read_block(0x500, 3), b"\x11\x22\x00")

class TestTimersAndKeys(CPUTestCase):
    """
    Test cases for timer and keypad instructions.
    """

    def test_delay_timer_round_trip(self):
        """Test Fx15 then Fx07 after the timer has ticked."""
        machine = self.run_program(0x6105, 0xF115, 0xF207)
        # Set on step 2 and decremented after steps 2 and 3
        self.assertEqual(machine.registers[2], 4)
        self.assertEqual(machine.delay_timer, 3)

    def test_sound_timer(self):
        """Test Fx18 and the sound flag."""
        machine = self.run_program(0x6102, 0xF118)
        self.assertEqual(machine.sound_timer, 1)
        self.assertTrue(machine.sound_active)

    def test_skip_if_key(self):
        """Test Ex9E and ExA1 against the held key."""
        machine = Chip8System()
        machine.load_program(assemble(0x6107, 0xE19E))
        machine.press_key(0x7)
        machine.step()
        machine.step()
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)

        machine = Chip8System()
        machine.load_program(assemble(0x6107, 0xE1A1))
        machine.step()
        machine.step()
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)

        machine = Chip8System()
        machine.load_program(assemble(0x6107, 0xE1A1))
        machine.press_key(0x7)
        machine.step()
        machine.step()
        self.assertEqual(machine.program_counter, PROGRAM_START + 4)

    def test_skip_if_key_uses_low_nibble(self):
        """Test that key numbers above 0xF use their low nibble."""
        machine = Chip8System()
        machine.load_program(assemble(0x61F3, 0xE19E))
        machine.press_key(0x3)
        machine.step()
        machine.step()
        self.assertEqual(machine.program_counter, PROGRAM_START + 6)

if __name__ == '__main__':
    unittest.main()
