# Delay and sound timers. Both count down once per frame (60Hz by default)
# until they reach 0. The scheduler beeps while the sound timer is non-zero.


def _clamp(value):
    return max(0, min(255, int(value)))


class Timers:
    def __init__(self):
        self.delay = 0
        self.sound = 0

    def decrement_timers(self):
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    def set_delay_timer(self, value):
        self.delay = _clamp(value)

    def set_sound_timer(self, value):
        self.sound = _clamp(value)

    def get_delay_timer(self):
        return self.delay

    def get_sound_timer(self):
        return self.sound

    def reset(self):
        self.delay = 0
        self.sound = 0
