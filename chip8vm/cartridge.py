# read ROM binary from disk

from .config import MAX_ROM_SIZE
from .errors import RomLoadError
from .log import log


def read_rom(path):
    log("Loading ROM:", path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise RomLoadError(path, e.strerror or str(e)) from e
    if not data:
        raise RomLoadError(path, "file is empty")
    if len(data) > MAX_ROM_SIZE:
        raise RomLoadError(path, f"{len(data)} bytes does not fit in {MAX_ROM_SIZE} bytes of program memory")
    return data
