"""
Chip8 VM tests: instruction semantics, quirks and fault handling.

Each test writes an opcode at PC and runs one step(), so fetch, decode
and execute are all exercised together.
"""

import random

import pytest

from chip8vm.config import Config, FONT_START, ROM_START, SUPER_CHIP, CHIP48
from chip8vm.errors import InvalidFontDataError
from chip8vm.vm import Chip8

from conftest import load_program


def sprite_rows(vm, x, y, width, height):
    return [
        "".join(str(vm.display.get_pixel(x + c, y + r)) for c in range(width))
        for r in range(height)
    ]


class TestFetch:
    def test_fetch_advances_pc(self, vm):
        vm.load_rom(bytes([0x00, 0xE0, 0xA2, 0x2A]))
        assert vm.fetch() == 0x00E0
        assert vm.fetch() == 0xA22A
        assert vm.registers.get_pc() == 0x204

    def test_fetch_past_end_of_memory_faults(self, vm):
        vm.registers.set_pc(0xFFF)
        fault = vm.step()
        assert fault.kind == "OutOfBoundsWrite"


class TestFlowControl:
    def test_clear_screen(self, vm, run_op):
        vm.display.set_pixel(1, 1, 1)
        assert run_op(0x00E0) is None
        assert vm.display.get_pixel(1, 1) == 0

    def test_jump(self, vm, run_op):
        run_op(0x1345)
        assert vm.registers.get_pc() == 0x345

    def test_call_and_return(self, vm, run_op):
        run_op(0x22D4)
        assert vm.registers.get_pc() == 0x2D4
        assert vm.registers.stack_peek() == 0x202
        run_op(0x00EE)
        assert vm.registers.get_pc() == 0x202
        assert vm.registers.stack_length() == 0

    def test_jump_plus_v0(self, vm, run_op):
        vm.registers.set_register(0, 4)
        vm.registers.set_register(3, 2)
        run_op(0xB300)
        assert vm.registers.get_pc() == 0x304

    def test_jump_plus_vx_on_super_chip(self, run_op, vm):
        vm.configure(Config(implementation=SUPER_CHIP))
        vm.registers.set_register(0, 4)
        vm.registers.set_register(3, 2)
        run_op(0xB300)
        assert vm.registers.get_pc() == 0x302


class TestSkips:
    def test_skip_if_equal_immediate(self, vm, run_op):
        vm.registers.set_register(2, 0x01)
        run_op(0x3201)
        assert vm.registers.get_pc() == 0x204

    def test_no_skip_if_not_equal_immediate(self, vm, run_op):
        vm.registers.set_register(2, 0xAF)
        run_op(0x3201)
        assert vm.registers.get_pc() == 0x202

    def test_skip_if_not_equal_immediate(self, vm, run_op):
        vm.registers.set_register(2, 0xAF)
        run_op(0x4201)
        assert vm.registers.get_pc() == 0x204

    def test_register_compares(self, vm, run_op):
        vm.registers.set_register(1, 9)
        vm.registers.set_register(2, 9)
        run_op(0x5120)
        assert vm.registers.get_pc() == 0x204
        run_op(0x9120)
        assert vm.registers.get_pc() == 0x206


class TestArithmetic:
    def test_load_immediate(self, vm, run_op):
        run_op(0x6A42)
        assert vm.registers.get_register(0xA) == 0x42

    def test_add_immediate_wraps_without_flag(self, vm, run_op):
        vm.registers.set_register(0, 0xFF)
        vm.registers.set_register(0xF, 5)
        run_op(0x7002)
        assert vm.registers.get_register(0) == 0x01
        assert vm.registers.get_register(0xF) == 5

    def test_copy(self, vm, run_op):
        vm.registers.set_register(0, 30)
        vm.registers.set_register(1, 33)
        run_op(0x8010)
        assert vm.registers.get_register(0) == 33
        assert vm.registers.get_register(1) == 33

    def test_logic(self, vm, run_op):
        V = vm.registers
        V.set_register(0, 0b1100)
        V.set_register(1, 0b1010)
        run_op(0x8011)
        assert V.get_register(0) == 0b1110
        V.set_register(0, 0b1100)
        run_op(0x8012)
        assert V.get_register(0) == 0b1000
        V.set_register(0, 0b1100)
        run_op(0x8013)
        assert V.get_register(0) == 0b0110

    def test_add_without_carry(self, vm, run_op):
        vm.registers.set_register(0, 30)
        vm.registers.set_register(1, 33)
        run_op(0x8014)
        assert vm.registers.get_register(0) == 63
        assert vm.registers.get_register(1) == 33
        assert vm.registers.get_register(0xF) == 0

    def test_add_with_carry(self, vm, run_op):
        vm.registers.set_register(0, 0xFF)
        vm.registers.set_register(1, 0xFF)
        run_op(0x8014)
        assert vm.registers.get_register(0) == 0xFE
        assert vm.registers.get_register(0xF) == 1

    def test_flag_wins_when_vf_is_target(self, vm, run_op):
        vm.registers.set_register(0xF, 0xFF)
        vm.registers.set_register(1, 0x01)
        run_op(0x8F14)
        assert vm.registers.get_register(0xF) == 1

    @pytest.mark.parametrize("vx, vy, result, flag", [
        (10, 3, 7, 1),
        (5, 5, 0, 1),
        (3, 5, 0xFE, 0),
    ])
    def test_subtract(self, vm, run_op, vx, vy, result, flag):
        vm.registers.set_register(0, vx)
        vm.registers.set_register(1, vy)
        run_op(0x8015)
        assert vm.registers.get_register(0) == result
        assert vm.registers.get_register(0xF) == flag

    def test_subtract_reversed(self, vm, run_op):
        vm.registers.set_register(0, 3)
        vm.registers.set_register(1, 5)
        run_op(0x8017)
        assert vm.registers.get_register(0) == 2
        assert vm.registers.get_register(0xF) == 1

    def test_random_is_masked(self, vm, run_op):
        for _ in range(200):
            run_op(0xC0F0)
            value = vm.registers.get_register(0)
            assert value % 16 == 0
            assert 0 <= value <= 240

    def test_random_uses_injected_source(self):
        a = Chip8(rng=random.Random(7))
        b = Chip8(rng=random.Random(7))
        for machine in (a, b):
            load_program(machine, 0xC0FF)
            machine.step()
        assert a.registers.get_register(0) == b.registers.get_register(0)


class TestShiftQuirks:
    def test_cosmac_vip_shifts_vy(self, vm, run_op):
        vm.registers.set_register(0, 0)
        vm.registers.set_register(1, 0b10000001)
        run_op(0x8016)
        assert vm.registers.get_register(0) == 0b01000000
        assert vm.registers.get_register(0xF) == 1
        run_op(0x801E)
        assert vm.registers.get_register(0) == 0b00000010
        assert vm.registers.get_register(0xF) == 1

    @pytest.mark.parametrize("implementation", [SUPER_CHIP, CHIP48])
    def test_later_interpreters_shift_vx(self, implementation):
        vm = Chip8(Config(implementation=implementation))
        vm.registers.set_register(0, 0x03)
        vm.registers.set_register(1, 0xF0)
        load_program(vm, 0x8016, 0x800E)
        vm.step()
        assert vm.registers.get_register(0) == 0x01
        assert vm.registers.get_register(0xF) == 1
        vm.step()
        assert vm.registers.get_register(0) == 0x02
        assert vm.registers.get_register(0xF) == 0


class TestDraw:
    def place_glyph_zero(self, vm):
        vm.registers.set_register(0, 3)
        vm.registers.set_register(1, 2)
        vm.registers.set_register_i(FONT_START)

    def test_draw_font_zero(self, vm, run_op):
        self.place_glyph_zero(vm)
        run_op(0xD015)
        assert sprite_rows(vm, 3, 2, 5, 5) == ["11110", "10010", "10010", "10010", "11110"]
        assert vm.registers.get_register(0xF) == 0

    def test_redraw_erases_and_sets_collision(self, vm, run_op):
        self.place_glyph_zero(vm)
        run_op(0xD015)
        run_op(0xD015)
        assert sprite_rows(vm, 3, 2, 5, 5) == ["00000"] * 5
        assert vm.registers.get_register(0xF) == 1

    def test_height_limits_rows(self, vm, run_op):
        self.place_glyph_zero(vm)
        run_op(0xD012)
        assert sprite_rows(vm, 3, 2, 5, 5) == ["11110", "10010", "00000", "00000", "00000"]

    def test_start_position_wraps(self, vm, run_op):
        vm.registers.set_register(0, 64 + 6)
        vm.registers.set_register(1, 32 + 1)
        vm.registers.set_register_i(FONT_START)
        run_op(0xD011)
        assert sprite_rows(vm, 6, 1, 5, 1) == ["11110"]

    def test_sprite_clipped_at_edge(self, vm, run_op):
        vm.registers.set_register(0, 62)
        vm.registers.set_register(1, 0)
        vm.registers.set_register_i(FONT_START)
        run_op(0xD011)
        assert vm.display.get_pixel(62, 0) == 1
        assert vm.display.get_pixel(63, 0) == 1
        assert vm.display.get_pixel(0, 0) == 0


class TestKeys:
    def test_skip_if_pressed(self, vm, run_op):
        vm.registers.set_register(1, 5)
        vm.keypad.press(5)
        run_op(0xE19E)
        assert vm.registers.get_pc() == 0x204

    def test_no_skip_if_not_pressed(self, vm, run_op):
        vm.registers.set_register(1, 5)
        run_op(0xE19E)
        assert vm.registers.get_pc() == 0x202

    def test_skip_if_not_pressed(self, vm, run_op):
        vm.registers.set_register(1, 5)
        run_op(0xE1A1)
        assert vm.registers.get_pc() == 0x204

    def test_wait_stalls_until_release(self, vm):
        load_program(vm, 0xF30A)
        vm.keypad.press(4)
        assert vm.step() is None
        assert vm.registers.get_pc() == ROM_START
        vm.step()
        assert vm.registers.get_pc() == ROM_START
        vm.keypad.release(4)
        vm.step()
        assert vm.registers.get_register(3) == 4
        assert vm.registers.get_pc() == ROM_START + 2

    def test_wait_ignores_release_from_before(self, vm):
        load_program(vm, 0xF30A)
        vm.keypad.press(9)
        vm.keypad.release(9)
        vm.step()
        assert vm.registers.get_pc() == ROM_START


class TestTimersAndIndex:
    def test_timer_registers(self, vm, run_op):
        vm.registers.set_register(2, 42)
        run_op(0xF215)
        run_op(0xF218)
        assert vm.timers.get_delay_timer() == 42
        assert vm.timers.get_sound_timer() == 42
        vm.timers.decrement_timers()
        run_op(0xF507)
        assert vm.registers.get_register(5) == 41

    def test_add_to_index(self, vm, run_op):
        vm.registers.set_register_i(0x100)
        vm.registers.set_register(0, 0x10)
        run_op(0xF01E)
        assert vm.registers.get_register_i() == 0x110

    def test_add_to_index_overflow_on_cosmac_vip(self, vm, run_op):
        vm.registers.set_register_i(0xFFF)
        vm.registers.set_register(0, 1)
        vm.registers.set_register(0xF, 7)
        run_op(0xF01E)
        assert vm.registers.get_register_i() == 1
        assert vm.registers.get_register(0xF) == 7

    def test_add_to_index_overflow_sets_vf_on_super_chip(self, vm, run_op):
        vm.configure(Config(implementation=SUPER_CHIP))
        vm.registers.set_register_i(0xFFF)
        vm.registers.set_register(0, 1)
        run_op(0xF01E)
        assert vm.registers.get_register_i() == 1
        assert vm.registers.get_register(0xF) == 1
        run_op(0xF01E)
        assert vm.registers.get_register_i() == 2
        assert vm.registers.get_register(0xF) == 0

    def test_font_address(self, vm, run_op):
        vm.registers.set_register(0, 0xA)
        run_op(0xF029)
        assert vm.registers.get_register_i() == FONT_START + 0xA * 5
        vm.registers.set_register(0, 0x1B)
        run_op(0xF029)
        assert vm.registers.get_register_i() == FONT_START + 0xB * 5


class TestMemoryOps:
    @pytest.mark.parametrize("value, digits", [(146, [1, 4, 6]), (0, [0, 0, 0]), (255, [2, 5, 5])])
    def test_bcd(self, vm, run_op, value, digits):
        vm.registers.set_register(0, value)
        vm.registers.set_register_i(0x300)
        run_op(0xF033)
        assert list(vm.memory.read_block(0x300, 3)) == digits

    def test_store_and_load(self, vm, run_op):
        for i in range(4):
            vm.registers.set_register(i, 0x10 + i)
        vm.registers.set_register(4, 0x99)
        vm.registers.set_register_i(0x400)
        run_op(0xF355)
        assert list(vm.memory.read_block(0x400, 5)) == [0x10, 0x11, 0x12, 0x13, 0]
        assert vm.registers.get_register_i() == 0x400

        for i in range(5):
            vm.registers.set_register(i, 0)
        run_op(0xF365)
        assert [vm.registers.get_register(i) for i in range(5)] == [0x10, 0x11, 0x12, 0x13, 0]

    def test_store_past_end_faults(self, vm, run_op):
        vm.registers.set_register_i(0xFFE)
        fault = run_op(0xF255)
        assert fault.kind == "OutOfBoundsWrite"
        assert fault.value == 0xFFE


class TestFaults:
    def test_unknown_opcode(self, vm, run_op):
        fault = run_op(0xFFFF)
        assert fault.kind == "UnknownOpcode"
        assert fault.value == 0xFFFF
        assert "0xFFFF" in fault.message

    def test_fault_is_latched(self, vm, run_op):
        first = run_op(0x800F)
        pc = vm.registers.get_pc()
        assert vm.step() == first
        assert vm.registers.get_pc() == pc

    def test_stack_overflow(self, vm):
        load_program(vm, 0x2200)
        fault = vm.run(20)
        assert fault.kind == "StackOverflow"
        assert vm.cycle_count == 16

    def test_stack_underflow(self, vm, run_op):
        assert run_op(0x00EE).kind == "StackUnderflow"

    def test_invalid_font_raises_at_load(self, vm):
        with pytest.raises(InvalidFontDataError):
            vm.load_font([0x100] * 80)

    def test_run_returns_none_without_fault(self, vm):
        load_program(vm, 0x1200)
        assert vm.run(50) is None
        assert vm.cycle_count == 50


class TestReset:
    def test_reset_restores_power_on_state(self, vm):
        vm.load_rom(bytes([0x12, 0x00]))
        vm.memory.write(0x300, [0xAB])
        vm.registers.set_register(3, 9)
        vm.registers.stack_push(0x222)
        vm.display.set_pixel(0, 0, 1)
        vm.timers.set_delay_timer(10)
        vm.step()
        vm.reset()
        assert vm.memory.read(0x300) == 0
        assert vm.memory.read_block(ROM_START, 2) == bytes([0x12, 0x00])
        assert vm.memory.read(FONT_START) == 0xF0
        assert vm.registers.get_register(3) == 0
        assert vm.registers.stack_length() == 0
        assert vm.registers.get_pc() == ROM_START
        assert vm.display.get_pixel(0, 0) == 0
        assert vm.timers.get_delay_timer() == 0
        assert vm.cycle_count == 0
        assert vm.fault is None

    def test_machines_are_independent(self):
        a, b = Chip8(), Chip8()
        a.registers.set_register(0, 1)
        a.display.set_pixel(0, 0, 1)
        assert b.registers.get_register(0) == 0
        assert b.display.get_pixel(0, 0) == 0
