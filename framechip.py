#!/usr/bin/env python3

__author__ = "Gregory Maynard-Hoare"
__copyright__ = "Copyright (C) 2024 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"
__version__ = "1.0.0"

from argparse import ArgumentParser
from fchip import main
from fchip.constants import DEFAULT_KEYMAP


def parse_args(argv=None):
    parser = ArgumentParser()
    parser.add_argument("filename", help="ROM to execute (normally ending in .ch8 or .c8)")
    parser.add_argument(
        "-c", "--clock_speed", type=int,
        help="set the CPU speed in operations/second (default 1000, 0 = uncapped up to the per-frame limit)"
    )
    parser.add_argument(
        "-r", "--renderer", choices=["pygame", "null"],
        help="set the rendering, input, and audio systems (pygame by default if available, otherwise null)"
    )
    parser.add_argument(
        "-s", "--scale", type=int,
        help="set the window width in PyGame mode (default 512)"
    )
    parser.add_argument(
        "-m", "--mute", type=int, choices=[0, 1], default=0,
        help="mute the emulated audio.  0 = unmuted (default), 1 = muted"
    )
    parser.add_argument(
        "-k", "--keymap", default=DEFAULT_KEYMAP,
        help="redefine the 16 PyGame keyscan codes.  Separate each decimal with a comma"
    )
    parser.add_argument(
        "-n", "--max_frames", type=int, default=0,
        help="stop after this many frames (default 0 = run until the window is closed)"
    )
    parser.add_argument(
        "--seed", type=int,
        help="seed the random number generator, for repeatable runs"
    )
    parser.add_argument(
        "-b", "--breakpoints",
        help="stop with a debug trap when the program counter reaches any of these hex addresses, e.g. 200,2A4"
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", default=False,
        help="enable live debug output of every instruction executed.  Slows CPU execution"
    )
    return parser.parse_args(argv)  # Can call sys.exit(2) if args are incorrect


if __name__ == "__main__":
    args = vars(parse_args())
    # It is possible to start the emulator from a GUI by calling this with a dictionary
    main(args)
