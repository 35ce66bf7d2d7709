# Opcode decoding.
# Every CHIP-8 instruction is 2 bytes. We split it into 4 nibbles and match it
# against a (mask, pattern) table; the result is an Instruction naming the
# operation plus every operand field, ready for the VM to execute.
#
#   nnn - lowest 12 bits (address)
#   kk  - lowest 8 bits (byte), also written NN
#   n   - lowest 4 bits
#   x   - second nibble (register VX)
#   y   - third nibble (register VY)

from collections import namedtuple
from enum import Enum

from .errors import UnknownOpcodeError


def nibble_opcode(opcode):
    return [
        (opcode & 0xF000) >> 12,
        (opcode & 0x0F00) >> 8,
        (opcode & 0x00F0) >> 4,
        opcode & 0x000F,
    ]


class Op(Enum):
    CLS = "00E0"
    RET = "00EE"
    JP = "1nnn"
    CALL = "2nnn"
    SE_VX_KK = "3xkk"
    SNE_VX_KK = "4xkk"
    SE_VX_VY = "5xy0"
    LD_VX_KK = "6xkk"
    ADD_VX_KK = "7xkk"
    LD_VX_VY = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_VX_VY = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    WAITKEY = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I_VX = "Fx1E"
    FONT = "Fx29"
    BCD = "Fx33"
    STORE = "Fx55"
    LOAD = "Fx65"


Instruction = namedtuple("Instruction", ["op", "opcode", "x", "y", "n", "kk", "nnn"])

# dispatch table, first match wins
OPCODES = [
    (0xFFFF, 0x00E0, Op.CLS),
    (0xFFFF, 0x00EE, Op.RET),

    (0xF000, 0x1000, Op.JP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SE_VX_KK),
    (0xF000, 0x4000, Op.SNE_VX_KK),
    (0xF00F, 0x5000, Op.SE_VX_VY),
    (0xF000, 0x6000, Op.LD_VX_KK),
    (0xF000, 0x7000, Op.ADD_VX_KK),

    (0xF00F, 0x8000, Op.LD_VX_VY),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHR),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHL),

    (0xF00F, 0x9000, Op.SNE_VX_VY),
    (0xF000, 0xA000, Op.LD_I),
    (0xF000, 0xB000, Op.JP_V0),
    (0xF000, 0xC000, Op.RND),
    (0xF000, 0xD000, Op.DRW),

    (0xF0FF, 0xE09E, Op.SKP),
    (0xF0FF, 0xE0A1, Op.SKNP),

    (0xF0FF, 0xF007, Op.LD_VX_DT),
    (0xF0FF, 0xF00A, Op.WAITKEY),
    (0xF0FF, 0xF015, Op.LD_DT_VX),
    (0xF0FF, 0xF018, Op.LD_ST_VX),
    (0xF0FF, 0xF01E, Op.ADD_I_VX),
    (0xF0FF, 0xF029, Op.FONT),
    (0xF0FF, 0xF033, Op.BCD),
    (0xF0FF, 0xF055, Op.STORE),
    (0xF0FF, 0xF065, Op.LOAD),
]


def decode(opcode):
    """Turn a 16-bit opcode into an Instruction.

    Raises UnknownOpcodeError when nothing in OPCODES matches, which also
    covers 0nnn machine-code calls: there is no machine code to call.
    """
    opcode &= 0xFFFF
    for mask, pattern, op in OPCODES:
        if (opcode & mask) == pattern:
            _, x, y, n = nibble_opcode(opcode)
            return Instruction(op, opcode, x, y, n, opcode & 0xFF, opcode & 0x0FFF)
    raise UnknownOpcodeError(opcode)
