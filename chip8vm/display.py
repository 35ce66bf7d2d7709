# Display - 64x32 framebuffer, one byte per pixel (0 or 1), addressed x + y*64.
# Sprites are XOR-ed on; a pixel going from on to off is a collision.

import numpy as np

from .config import WIDTH, HEIGHT


class Display:
    def __init__(self, width=WIDTH, height=HEIGHT):
        self.width = width
        self.height = height
        self.vram = np.zeros(width * height, dtype=np.uint8)
        # set whenever the picture changes, renderers clear it after presenting
        self.dirty = True

    def clear(self):
        self.vram[:] = 0
        self.dirty = True

    def _index(self, x, y):
        return x + y * self.width

    def get_pixel(self, x, y):
        return int(self.vram[self._index(x, y)])

    def set_pixel(self, x, y, bit):
        self.vram[self._index(x, y)] = 1 if bit else 0
        self.dirty = True

    def draw_sprite(self, x, y, rows):
        """XOR an 8-pixel-wide sprite onto the screen with its top left at (x, y).

        Rows and columns that fall off the right or bottom edge are clipped,
        not wrapped. Returns True if any pixel was turned off.
        """
        collision = False
        span = min(8, self.width - x)
        for row, sprite in enumerate(rows):
            py = y + row
            if py >= self.height:
                break
            if sprite == 0:
                continue
            bits = np.unpackbits(np.array([sprite], dtype=np.uint8))[:span]
            base = self._index(x, py)
            target = self.vram[base:base + span]
            if np.any(target & bits):
                collision = True
            target ^= bits
        self.dirty = True
        return collision

    def view(self):
        """Read-only (height, width) view of the framebuffer for renderers."""
        frame = self.vram.reshape(self.height, self.width).view()
        frame.flags.writeable = False
        return frame
