# CHIP-8 machine constants and run-time configuration.
# Memory - 4096 bytes holding the interpreter area, fonts and the loaded ROM.
# Display - 64x32 pixels, each either on or off.
# Timers - delay and sound, both counting down at 60Hz.

from dataclasses import dataclass

from .errors import ConfigError

# ---- Machine layout ----
MEMORY_SIZE = 4096
FONT_START = 0x050
ROM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - ROM_START
STACK_DEPTH = 16
NUM_REGISTERS = 16
NUM_KEYS = 16

WIDTH, HEIGHT = 64, 32
SCALE = 10

# ---- Rates ----
CPU_HZ = 700
TIMER_HZ = 60
IDLE_SLEEP = 0.001

# set fonts (binary pixel patterns)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
]  # notice 80 bytes
FONT_GLYPH_SIZE = 5

# Physical key -> CHIP-8 keypad. The left block of a QWERTY keyboard
# stands in for the 4x4 hex pad:
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
KEY_LAYOUT = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}

# ---- Implementations ----
COSMAC_VIP = "COSMAC VIP"
SUPER_CHIP = "SUPER-CHIP"
CHIP48 = "CHIP48"
IMPLEMENTATIONS = (COSMAC_VIP, SUPER_CHIP, CHIP48)


@dataclass
class Config:
    """Run-time options for one VM.

    implementation selects the quirks of the base instruction set:

    - shift (8XY6/8XYE): the VIP shifts VY into VX, later interpreters shift VX in place.
    - jump (BNNN): SUPER-CHIP and CHIP48 add VX (X being the high nibble of NNN) instead of V0.
    - index overflow (FX1E): SUPER-CHIP and CHIP48 report overflow past 0xFFF in VF.
    """
    implementation: str = COSMAC_VIP
    cycles_per_second: int = CPU_HZ
    frame_rate: int = TIMER_HZ
    idle_sleep: float = IDLE_SLEEP

    def __post_init__(self):
        if self.implementation not in IMPLEMENTATIONS:
            raise ConfigError(
                f"implementation must be one of {', '.join(IMPLEMENTATIONS)}, not {self.implementation!r}")
        if self.cycles_per_second <= 0:
            raise ConfigError(f"cycles_per_second must be positive, got {self.cycles_per_second}")
        if self.frame_rate <= 0:
            raise ConfigError(f"frame_rate must be positive, got {self.frame_rate}")
        if self.idle_sleep < 0:
            raise ConfigError(f"idle_sleep cannot be negative, got {self.idle_sleep}")

    @property
    def shift_uses_vy(self):
        return self.implementation == COSMAC_VIP

    @property
    def jump_uses_vx(self):
        return self.implementation != COSMAC_VIP

    @property
    def index_overflow_sets_vf(self):
        return self.implementation != COSMAC_VIP
