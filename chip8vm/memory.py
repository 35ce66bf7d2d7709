# CHIP-8 memory: 4096 bytes, flat.
# 0x000-0x1FF was the interpreter on the original machines; we only keep the
# font there (at 0x050). Programs are loaded at 0x200.

from .config import MEMORY_SIZE, FONT_START, ROM_START
from .errors import MemoryOutOfBoundsError, InvalidFontDataError
from .log import log


class Memory:
    def __init__(self, size=MEMORY_SIZE):
        self.size = size
        self._mem = bytearray(size)

    def _check(self, address, length):
        if address < 0 or address + length > self.size:
            raise MemoryOutOfBoundsError(address, length)

    def read(self, address):
        self._check(address, 1)
        return self._mem[address]

    def read_block(self, address, length):
        self._check(address, length)
        return bytes(self._mem[address:address + length])

    def write(self, address, data):
        """Write a sequence of byte values starting at address.

        Fails with MemoryOutOfBoundsError before touching anything if the
        block would run past the end of memory.
        """
        data = [b & 0xFF for b in data]
        self._check(address, len(data))
        self._mem[address:address + len(data)] = bytes(data)

    def store_font(self, data):
        for position, b in enumerate(data):
            if not isinstance(b, int) or not 0 <= b <= 0xFF:
                raise InvalidFontDataError(b, position)
        self.write(FONT_START, data)
        log(f"Font stored at 0x{FONT_START:03X} ({len(data)} bytes)")

    def store_rom(self, data):
        self.write(ROM_START, data)
        log(f"ROM stored at 0x{ROM_START:03X} ({len(data)} bytes)")

    def reset(self):
        self._mem[:] = bytes(self.size)
