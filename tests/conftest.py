import os
import random
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chip8vm.config import Config, ROM_START
from chip8vm.vm import Chip8


@pytest.fixture
def vm():
    return Chip8(Config(), rng=random.Random(1234))


def load_program(machine, *opcodes, at=ROM_START):
    data = []
    for opcode in opcodes:
        data += [opcode >> 8, opcode & 0xFF]
    machine.memory.write(at, data)
    machine.registers.set_pc(at)


@pytest.fixture
def run_op(vm):
    """Place one opcode at PC and execute it, returning the step result."""
    def _run(opcode):
        pc = vm.registers.get_pc()
        vm.memory.write(pc, [opcode >> 8, opcode & 0xFF])
        return vm.step()
    return _run
