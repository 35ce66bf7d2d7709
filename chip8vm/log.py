# Switchable log output. Off by default so the hot loop stays quiet;
# F1 in the window (or --log on the command line) flips it.

import sys

logs_on = False


def log(*args):
    if logs_on:
        print(*args, file=sys.stderr)


def set_logging(on):
    global logs_on
    logs_on = bool(on)


def toggle_logging():
    set_logging(not logs_on)
    print("logsOn:", logs_on, file=sys.stderr)
    return logs_on
