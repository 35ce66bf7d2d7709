# pyglet front end.
# The window is both the renderer and the input scanner for the scheduler:
# render() draws the framebuffer, poll() pumps pyglet's events so key presses
# reach the keypad. We subclass pyglet.window.Window and override whatever
# handlers we need.

import random

import numpy as np
import pyglet
from pyglet.window import key
from pyglet.media import synthesis

from .config import WIDTH, HEIGHT, SCALE, KEY_LAYOUT
from .log import log, toggle_logging


def _symbol(name):
    # pyglet names the digit keys _1, _2, ...
    return getattr(key, "_" + name if name.isdigit() else name.upper())


# Key mapping - physical keyboard keys to CHIP-8 keypad
keymap = {_symbol(name): code for name, code in KEY_LAYOUT.items()}


class Chip8Window(pyglet.window.Window):
    def __init__(self, vm, scale=SCALE, on_exit=None, show_stats=False, caption="CHIP-8 Emulator"):
        super().__init__(WIDTH * scale, HEIGHT * scale, caption=caption, resizable=False, vsync=False)
        self.vm = vm
        self.scale = scale
        self.on_exit = on_exit
        self.show_stats = show_stats
        # anything with fps / cps attributes, normally the scheduler
        self.stats_source = None

        # Pre-allocated small framebuffer (64x32 RGBA), upscaled with numpy.repeat
        self._small_framebuf = np.zeros((HEIGHT, WIDTH, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            self.width,
            self.height,
            'RGBA',
            bytes(self.width * self.height * 4)
        )

        # Labels for HUD
        self.fps_label = pyglet.text.Label(
            "FPS: 0", font_size=12, x=5, y=self.height - 15,
            anchor_x='left', anchor_y='center', color=(255, 255, 255, 255))
        self.cps_label = pyglet.text.Label(
            "Cycles/s: 0", font_size=12, x=5, y=self.height - 30,
            anchor_x='left', anchor_y='center', color=(255, 255, 255, 255))

    # ---- Scheduler collaborators ----
    def poll(self):
        pyglet.clock.tick()  # lets media players report end of stream
        self.dispatch_events()

    def render(self):
        self.switch_to()
        self.dispatch_event('on_draw')
        self.flip()

    def _request_exit(self):
        if self.on_exit is not None:
            self.on_exit()

    # ---- Drawing ----
    def on_draw(self):
        self.clear()

        # pyglet's origin is bottom left, CHIP-8's is top left
        frame = self.vm.display.view()[::-1]
        self._small_framebuf[..., :3] = (frame * 255)[..., None]
        if self.scale != 1:
            scaled = np.repeat(np.repeat(self._small_framebuf, self.scale, axis=0), self.scale, axis=1)
        else:
            scaled = self._small_framebuf

        # updates existing image without creating new object
        self.image.set_data('RGBA', self.width * 4, scaled.tobytes())
        self.image.blit(0, 0)
        self.vm.display.dirty = False

        if self.show_stats and self.stats_source is not None:
            self.fps_label.text = f"FPS: {self.stats_source.fps:.1f}"
            self.cps_label.text = f"Cycles/s: {self.stats_source.cps}"
            self.fps_label.draw()
            self.cps_label.draw()

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self._request_exit()
        elif symbol == key.F1:
            toggle_logging()
        elif symbol in keymap:
            self.vm.keypad.press(keymap[symbol])

    def on_key_release(self, symbol, modifiers):
        if symbol in keymap:
            self.vm.keypad.release(keymap[symbol])

    def on_close(self):
        log("Window closed")
        self._request_exit()


class PygletBuzzer:
    """Sine-wave beep. A new beep never starts while one is still playing."""

    def __init__(self, frequency=440, duration=0.2, pitch_variation=15):
        self.frequency = frequency
        self.duration = duration
        self.pitch_variation = pitch_variation
        self.sound_playing = False

    def beep(self):
        if self.sound_playing:
            return
        freq = self.frequency + random.randint(-self.pitch_variation, self.pitch_variation)
        wave = synthesis.Sine(duration=self.duration, frequency=freq, sample_rate=44100)

        player = pyglet.media.Player()
        player.queue(wave)
        player.play()
        self.sound_playing = True

        # Ensure the sound stops after the requested duration
        def on_eos():
            self.sound_playing = False
            player.delete()

        player.on_eos = on_eos
