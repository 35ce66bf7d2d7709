# Terminal front end: text renderer, raw keyboard scanner and bell.
# Useful over ssh or anywhere pyglet cannot open a window.

import os
import sys
import time

import numpy as np

from .config import KEY_LAYOUT
from .log import log

PX_ON = "█"
PX_OFF = "·"
ESCAPE = 0x1B

# cursor home / clear screen
HOME = "\x1b[H"
CLEAR = "\x1b[2J"


def _skip_escape_sequence(data, i):
    """Return the index just past an escape sequence whose ESC ended at i.

    Arrow and function keys arrive as ESC [ ... or ESC O ..., ended by a byte
    in 0x40-0x7E. Any other follower is an Alt+key pair of two bytes.
    """
    if data[i] not in b"[O":
        return i + 1
    i += 1
    while i < len(data):
        if 0x40 <= data[i] <= 0x7E:
            return i + 1
        i += 1
    return i


class TerminalRenderer:
    def __init__(self, display, stream=None):
        self.display = display
        self.stream = stream or sys.stdout

    def frame_text(self):
        rows = np.where(self.display.view(), PX_ON, PX_OFF)
        return "\r\n".join("".join(row) for row in rows)

    def clear(self):
        self.stream.write(CLEAR + HOME)
        self.stream.flush()

    def render(self):
        # only redraw when needed
        if not self.display.dirty:
            return
        self.stream.write(HOME + self.frame_text() + "\r\n")
        self.stream.flush()
        self.display.dirty = False


class TerminalKeypad:
    """Feeds terminal keystrokes into a Keypad.

    A terminal only reports key presses, never releases, so every keystroke
    counts as the key being held for `hold` seconds. A lone Escape asks to
    exit; escape sequences such as arrow keys are skipped.
    """

    def __init__(self, keypad, on_exit=None, stream=None, hold=0.1, clock=time.monotonic):
        self.keypad = keypad
        self.on_exit = on_exit
        self.stream = stream or sys.stdin
        self.hold = hold
        self.clock = clock
        self.held = {}
        self._fd = None
        self._old_settings = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()

    def open(self):
        import termios
        import tty
        self._fd = self.stream.fileno()
        if os.isatty(self._fd):
            self._old_settings = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)

    def close(self):
        if self._old_settings is not None:
            import termios
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)
            self._old_settings = None

    def _read_available(self):
        import select
        if self._fd is None:
            return b""
        ready, _, _ = select.select([self._fd], [], [], 0)
        if not ready:
            return b""
        return os.read(self._fd, 64)

    def poll(self):
        now = self.clock()
        for key, until in list(self.held.items()):
            if now >= until:
                self.keypad.release(key)
                del self.held[key]
        self.feed(self._read_available(), now)

    def feed(self, data, now=None):
        """Apply raw terminal bytes as if they had just been typed."""
        now = self.clock() if now is None else now
        i = 0
        while i < len(data):
            byte = data[i]
            i += 1
            if byte == ESCAPE:
                if i == len(data):
                    log("Escape pressed, exiting")
                    if self.on_exit is not None:
                        self.on_exit()
                else:
                    i = _skip_escape_sequence(data, i)
                continue
            key = KEY_LAYOUT.get(chr(byte).lower())
            if key is None:
                continue
            self.keypad.press(key)
            self.held[key] = now + self.hold


class TerminalBell:
    def __init__(self, stream=None, cooldown=0.25, clock=time.monotonic):
        self.stream = stream or sys.stdout
        self.cooldown = cooldown
        self.clock = clock
        self._last = None

    def beep(self):
        now = self.clock()
        if self._last is not None and now - self._last < self.cooldown:
            return
        self._last = now
        self.stream.write("\a")
        self.stream.flush()
