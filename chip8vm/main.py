# ---- Entry point ----

import argparse
import sys

from .cartridge import read_rom
from .config import Config, IMPLEMENTATIONS, COSMAC_VIP, CPU_HZ, TIMER_HZ, SCALE
from .errors import ConfigError, Chip8Error
from .log import set_logging
from .scheduler import Scheduler
from .terminal import TerminalRenderer, TerminalKeypad, TerminalBell
from .vm import Chip8


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="chip8vm", description="Run a CHIP-8 program.")
    parser.add_argument("rom", help="path to the program image (.ch8)")
    parser.add_argument("-i", "--implementation", choices=IMPLEMENTATIONS, default=COSMAC_VIP,
                        help="which interpreter's quirks to follow (default: %(default)s)")
    parser.add_argument("--cps", type=int, default=CPU_HZ, help="instructions per second (default: %(default)s)")
    parser.add_argument("--fps", type=int, default=TIMER_HZ, help="frames per second (default: %(default)s)")
    parser.add_argument("--scale", type=int, default=SCALE, help="window pixels per CHIP-8 pixel")
    parser.add_argument("-t", "--terminal", action="store_true", help="draw in the terminal instead of a window")
    parser.add_argument("--stats", action="store_true", help="show FPS and cycles/s in the window")
    parser.add_argument("--log", action="store_true", help="log every instruction to stderr")
    return parser.parse_args(argv)


def run_terminal(vm, config):
    renderer = TerminalRenderer(vm.display)
    scanner = TerminalKeypad(vm.keypad)
    scheduler = Scheduler(vm, renderer, scanner, TerminalBell(), config)
    scanner.on_exit = scheduler.cancel
    with scanner:
        return scheduler.run()


def run_window(vm, config, scale, show_stats):
    from .window import Chip8Window, PygletBuzzer

    window = Chip8Window(vm, scale=scale, show_stats=show_stats)
    scheduler = Scheduler(vm, window, window, PygletBuzzer(), config)
    window.on_exit = scheduler.cancel
    window.stats_source = scheduler
    try:
        return scheduler.run()
    finally:
        window.close()


def main(argv=None):
    args = parse_args(argv)
    set_logging(args.log)

    try:
        config = Config(implementation=args.implementation,
                        cycles_per_second=args.cps,
                        frame_rate=args.fps)
    except ConfigError as e:
        print("Invalid configuration:", e, file=sys.stderr)
        return 2

    try:
        vm = Chip8(config)
        vm.load_rom(read_rom(args.rom))
    except Chip8Error as e:
        print(e, file=sys.stderr)
        return 1

    try:
        if args.terminal:
            fault = run_terminal(vm, config)
        else:
            fault = run_window(vm, config, args.scale, args.stats)
    except KeyboardInterrupt:
        return 130

    if fault is not None:
        print("Emulation error:", fault.message, file=sys.stderr)
        return 1
    return 0
