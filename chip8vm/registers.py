# Registers - 16 general purpose 8-bit registers (V0-VF), VF doubling as the
# carry/borrow/collision flag. I is the memory pointer, PC the program counter.
# Stack - 16 return addresses for subroutine calls.

import numpy as np

from .config import NUM_REGISTERS, ROM_START, STACK_DEPTH
from .errors import StackOverflowError, StackUnderflowError

ADDRESS_MASK = 0xFFF


class Registers:
    def __init__(self):
        self.V = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = ROM_START
        self.stack = np.zeros(STACK_DEPTH, dtype=np.uint16)
        self.sp = 0

    def reset(self):
        self.V[:] = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = ROM_START
        self.stack[:] = 0
        self.sp = 0

    # ---- V0-VF ----
    # plain list indexing would accept -1 as VF, so check the range ourselves
    def _check_index(self, x):
        if not 0 <= x < NUM_REGISTERS:
            raise IndexError(f"No register V{x}")

    def get_register(self, x):
        self._check_index(x)
        return self.V[x]

    def set_register(self, x, value):
        self._check_index(x)
        self.V[x] = int(value) & 0xFF

    # ---- I ----
    def get_register_i(self):
        return self.I

    def set_register_i(self, value):
        self.I = int(value) & ADDRESS_MASK

    # ---- PC ----
    def get_pc(self):
        return self.pc

    def set_pc(self, address):
        self.pc = int(address) & ADDRESS_MASK

    def advance_pc(self, amount=2):
        self.set_pc(self.pc + amount)

    # ---- Stack ----
    def stack_push(self, address):
        if self.sp >= STACK_DEPTH:
            raise StackOverflowError(address)
        self.stack[self.sp] = address
        self.sp += 1

    def stack_pop(self):
        if self.sp == 0:
            raise StackUnderflowError()
        self.sp -= 1
        return int(self.stack[self.sp])

    def stack_peek(self):
        if self.sp == 0:
            return None
        return int(self.stack[self.sp - 1])

    def stack_length(self):
        return self.sp
