# Input - 16 key hex pad. Front ends call press()/release(); the VM reads the
# state for EX9E/EXA1 and waits on a release for FX0A.

import numpy as np

from .config import NUM_KEYS


class Keypad:
    def __init__(self):
        self.keys = np.zeros(NUM_KEYS, dtype=np.uint8)
        self._released = None

    def press(self, key):
        self.keys[key & 0xF] = 1

    def release(self, key):
        key &= 0xF
        if self.keys[key]:
            self._released = key
        self.keys[key] = 0

    def is_pressed(self, key):
        return bool(self.keys[key & 0xF])

    # FX0A completes on the release of a key, so a key already held (or
    # released) before the wait started must not count.
    def begin_wait(self):
        self._released = None

    def take_released(self):
        key = self._released
        self._released = None
        return key

    def reset(self):
        self.keys[:] = 0
        self._released = None
