"""CHIP-8 virtual machine with pyglet and terminal front ends."""

from .config import Config
from .decoder import Op, Instruction, decode, nibble_opcode
from .errors import (
    Chip8Error, UnknownOpcodeError, StackOverflowError, StackUnderflowError,
    MemoryOutOfBoundsError, InvalidFontDataError, RomLoadError, ConfigError, Fault,
)
from .scheduler import Scheduler
from .vm import Chip8

__version__ = "0.1.0"
