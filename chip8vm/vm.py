# CHIP-8 virtual machine.
# CPU - Cowgod's CHIP-8 Technical reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
# The Chip8 object owns every piece of machine state (memory, registers, stack,
# display, timers, keypad) and runs one fetch-decode-execute cycle per step().
# Nothing here knows about windows, terminals or wall-clock time; the scheduler
# and the front ends drive it from outside.

import random

from .config import Config, FONTSET, FONT_START, FONT_GLYPH_SIZE
from .decoder import Op, decode
from .display import Display
from .errors import Chip8Error, fault_from_error
from .keypad import Keypad
from .log import log
from .memory import Memory
from .registers import Registers
from .timers import Timers


class Chip8:
    def __init__(self, config=None, rng=None):
        self.config = config or Config()
        self.random = rng or random.Random()

        # ---- Machine state ----
        self.memory = Memory()
        self.registers = Registers()
        self.timers = Timers()
        self.display = Display()
        self.keypad = Keypad()

        self.rom = None
        self.fault = None
        self.waiting_for_key = False
        self.cycle_count = 0

        # Op -> handler. Building it here means a missing handler fails at
        # construction instead of in the middle of a game.
        self.handlers = {op: getattr(self, "op_" + op.name) for op in Op}

        self.load_font()

    def configure(self, config):
        self.config = config

    # ---- Loading ----
    def load_font(self, data=FONTSET):
        self.memory.store_font(data)

    def load_rom(self, data):
        data = bytes(data)
        self.memory.store_rom(data)
        self.rom = data

    def reset(self):
        """Power-cycle: wipe all state, then put the font and the last ROM back."""
        self.memory.reset()
        self.registers.reset()
        self.timers.reset()
        self.display.clear()
        self.keypad.reset()
        self.fault = None
        self.waiting_for_key = False
        self.cycle_count = 0
        self.load_font()
        if self.rom is not None:
            self.memory.store_rom(self.rom)

    # ---- Cycle ----
    def fetch(self):
        pc = self.registers.get_pc()
        opcode = ((self.memory.read(pc) << 8) | self.memory.read(pc + 1)) & 0xFFFF
        self.registers.advance_pc(2)
        return opcode

    def execute(self, instruction):
        self.handlers[instruction.op](instruction)

    def step(self):
        """Run one instruction.

        Returns None on success, or a Fault describing why the machine
        stopped. A faulted machine stays faulted until reset().
        """
        if self.fault is not None:
            return self.fault
        try:
            self.execute(decode(self.fetch()))
        except Chip8Error as e:
            self.fault = fault_from_error(e)
            log("Emulation error:", self.fault.message)
            return self.fault
        self.cycle_count += 1
        return None

    def run(self, cycles):
        for _ in range(cycles):
            fault = self.step()
            if fault is not None:
                return fault
        return None

    # ---- Opcode handlers ----
    # Each handler gets the decoded Instruction. PC already points at the
    # next instruction when a handler runs.

    # 00E0 - Clear the display
    def op_CLS(self, ins):
        self.display.clear()
        log("Clear the display (all pixels turned off)")

    # 00EE - Return from subroutine
    def op_RET(self, ins):
        addr = self.registers.stack_pop()
        self.registers.set_pc(addr)
        log("Return to", hex(addr))

    # 1nnn - Jump to address nnn
    def op_JP(self, ins):
        self.registers.set_pc(ins.nnn)
        log("Jump to address", hex(ins.nnn))

    # 2nnn - Call subroutine at nnn
    def op_CALL(self, ins):
        self.registers.stack_push(self.registers.get_pc())
        self.registers.set_pc(ins.nnn)
        log("Call subroutine at", hex(ins.nnn))

    def _skip_if(self, condition):
        if condition:
            self.registers.advance_pc(2)

    # 3xkk - Skip next instruction if Vx == kk
    def op_SE_VX_KK(self, ins):
        self._skip_if(self.registers.V[ins.x] == ins.kk)

    # 4xkk - Skip next instruction if Vx != kk
    def op_SNE_VX_KK(self, ins):
        self._skip_if(self.registers.V[ins.x] != ins.kk)

    # 5xy0 - Skip next instruction if Vx == Vy
    def op_SE_VX_VY(self, ins):
        V = self.registers.V
        self._skip_if(V[ins.x] == V[ins.y])

    # 9xy0 - Skip next instruction if Vx != Vy
    def op_SNE_VX_VY(self, ins):
        V = self.registers.V
        self._skip_if(V[ins.x] != V[ins.y])

    # 6xkk - Set Vx = kk
    def op_LD_VX_KK(self, ins):
        self.registers.set_register(ins.x, ins.kk)
        log(f"Set V{ins.x:X} = {ins.kk}")

    # 7xkk - Vx = Vx + kk, VF untouched
    def op_ADD_VX_KK(self, ins):
        self.registers.set_register(ins.x, (self.registers.V[ins.x] + ins.kk) & 0xFF)
        log(f"Add {ins.kk} to V{ins.x:X}: {self.registers.V[ins.x]}")

    # ---- 8xy_ : register to register ----
    # Where VF is an output it is written last, so the flag wins if x == F.

    def op_LD_VX_VY(self, ins):
        self.registers.set_register(ins.x, self.registers.V[ins.y])

    def op_OR(self, ins):
        V = self.registers.V
        self.registers.set_register(ins.x, V[ins.x] | V[ins.y])

    def op_AND(self, ins):
        V = self.registers.V
        self.registers.set_register(ins.x, V[ins.x] & V[ins.y])

    def op_XOR(self, ins):
        V = self.registers.V
        self.registers.set_register(ins.x, V[ins.x] ^ V[ins.y])

    def op_ADD(self, ins):
        V = self.registers.V
        total = V[ins.x] + V[ins.y]
        self.registers.set_register(ins.x, total & 0xFF)
        self.registers.set_register(0xF, 1 if total > 0xFF else 0)
        log(f"Add V{ins.y:X} to V{ins.x:X}: result {V[ins.x]}, carry={V[0xF]}")

    # VF = NOT borrow
    def op_SUB(self, ins):
        V = self.registers.V
        vx, vy = V[ins.x], V[ins.y]
        self.registers.set_register(ins.x, (vx - vy) & 0xFF)
        self.registers.set_register(0xF, 1 if vx >= vy else 0)

    def op_SUBN(self, ins):
        V = self.registers.V
        vx, vy = V[ins.x], V[ins.y]
        self.registers.set_register(ins.x, (vy - vx) & 0xFF)
        self.registers.set_register(0xF, 1 if vy >= vx else 0)

    def _shift_source(self, ins):
        return self.registers.V[ins.y if self.config.shift_uses_vy else ins.x]

    def op_SHR(self, ins):
        value = self._shift_source(ins)
        self.registers.set_register(ins.x, value >> 1)
        self.registers.set_register(0xF, value & 1)

    def op_SHL(self, ins):
        value = self._shift_source(ins)
        self.registers.set_register(ins.x, (value << 1) & 0xFF)
        self.registers.set_register(0xF, (value >> 7) & 1)

    # Annn - Set I = nnn
    def op_LD_I(self, ins):
        self.registers.set_register_i(ins.nnn)
        log(f"Set I = {ins.nnn:03X}")

    # Bnnn - Jump to nnn + V0 (nnn + Vx on SUPER-CHIP/CHIP48)
    def op_JP_V0(self, ins):
        reg = ins.x if self.config.jump_uses_vx else 0
        self.registers.set_pc(ins.nnn + self.registers.V[reg])
        log(f"Jump to address V{reg:X} + {ins.nnn:03X} = {self.registers.pc:03X}")

    # Cxkk - Vx = random byte AND kk
    def op_RND(self, ins):
        self.registers.set_register(ins.x, self.random.getrandbits(8) & ins.kk)

    # Dxyn - Draw n rows of sprite data from I at (Vx, Vy), VF = collision
    def op_DRW(self, ins):
        V = self.registers.V
        x = V[ins.x] & 63
        y = V[ins.y] & 31
        rows = self.memory.read_block(self.registers.I, ins.n)
        collision = self.display.draw_sprite(x, y, rows)
        self.registers.set_register(0xF, 1 if collision else 0)
        log(f"Drew sprite at ({x}, {y}), collision={V[0xF]}")

    # Ex9E - Skip next instruction if key Vx is pressed
    def op_SKP(self, ins):
        self._skip_if(self.keypad.is_pressed(self.registers.V[ins.x] & 0xF))

    # ExA1 - Skip next instruction if key Vx is not pressed
    def op_SKNP(self, ins):
        self._skip_if(not self.keypad.is_pressed(self.registers.V[ins.x] & 0xF))

    # Fx07 - Vx = delay timer
    def op_LD_VX_DT(self, ins):
        self.registers.set_register(ins.x, self.timers.get_delay_timer())

    # Fx0A - Wait for a key to be pressed and released, store it in Vx.
    # Stalls by stepping PC back so this instruction runs again next cycle.
    def op_WAITKEY(self, ins):
        if not self.waiting_for_key:
            self.waiting_for_key = True
            self.keypad.begin_wait()
        key = self.keypad.take_released()
        if key is None:
            self.registers.set_pc(self.registers.get_pc() - 2)
            return
        self.waiting_for_key = False
        self.registers.set_register(ins.x, key)
        log(f"Key {key:X} -> V{ins.x:X}")

    # Fx15 - delay timer = Vx
    def op_LD_DT_VX(self, ins):
        self.timers.set_delay_timer(self.registers.V[ins.x])

    # Fx18 - sound timer = Vx
    def op_LD_ST_VX(self, ins):
        self.timers.set_sound_timer(self.registers.V[ins.x])

    # Fx1E - I = I + Vx. Past 0xFFF, I becomes 1.
    def op_ADD_I_VX(self, ins):
        total = self.registers.I + self.registers.V[ins.x]
        overflow = total > 0xFFF
        self.registers.set_register_i(1 if overflow else total)
        if self.config.index_overflow_sets_vf:
            self.registers.set_register(0xF, 1 if overflow else 0)

    # Fx29 - I = address of the font glyph for the low nibble of Vx
    def op_FONT(self, ins):
        digit = self.registers.V[ins.x] & 0xF
        self.registers.set_register_i(FONT_START + digit * FONT_GLYPH_SIZE)

    # Fx33 - Store hundreds, tens and ones of Vx at I, I+1, I+2
    def op_BCD(self, ins):
        val = self.registers.V[ins.x]
        self.memory.write(self.registers.I, [val // 100, (val // 10) % 10, val % 10])

    # Fx55 - Store V0..Vx at I (I itself is left alone)
    def op_STORE(self, ins):
        self.memory.write(self.registers.I, self.registers.V[:ins.x + 1])

    # Fx65 - Load V0..Vx from I
    def op_LOAD(self, ins):
        data = self.memory.read_block(self.registers.I, ins.x + 1)
        for i, b in enumerate(data):
            self.registers.set_register(i, b)
