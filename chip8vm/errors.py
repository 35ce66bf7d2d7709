# CHIP-8 error taxonomy.
# Every error that can stop the machine derives from Chip8Error and carries
# a short kind name plus the value that caused it (opcode, address, ...).

from collections import namedtuple


class Chip8Error(Exception):
    kind = "Chip8Error"

    def __init__(self, message, value=None):
        super().__init__(message)
        self.value = value


class UnknownOpcodeError(Chip8Error):
    kind = "UnknownOpcode"

    def __init__(self, opcode):
        super().__init__(f"Unknown opcode 0x{opcode & 0xFFFF:04X}", opcode)
        self.opcode = opcode


class StackOverflowError(Chip8Error):
    kind = "StackOverflow"

    def __init__(self, address=None):
        super().__init__("Stack overflow", address)


class StackUnderflowError(Chip8Error):
    kind = "StackUnderflow"

    def __init__(self):
        super().__init__("Stack underflow")


class MemoryOutOfBoundsError(Chip8Error):
    kind = "OutOfBoundsWrite"

    def __init__(self, address, length=1):
        super().__init__(
            f"Memory access out of bounds: 0x{address:X} (+{length} bytes)", address)
        self.address = address
        self.length = length


class InvalidFontDataError(Chip8Error):
    kind = "InvalidFontData"

    def __init__(self, value, position):
        super().__init__(f"Invalid font byte {value!r} at position {position}", value)
        self.position = position


class RomLoadError(Chip8Error):
    kind = "RomLoad"

    def __init__(self, path, reason):
        super().__init__(f"Could not load ROM {path}: {reason}", path)
        self.path = path


class ConfigError(ValueError):
    pass


# What Chip8.step() hands back instead of raising.
Fault = namedtuple("Fault", ["kind", "value", "message"])


def fault_from_error(error):
    return Fault(error.kind, error.value, str(error))
