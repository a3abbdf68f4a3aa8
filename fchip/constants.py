#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

# App identification
APP_NAME = "FrameChip Emulator"
APP_VERSION = "1.0.0"
APP_COPYRIGHT = "Copyright (C) 2022 Gregory Maynard-Hoare, licensed under GNU Affero General Public License v3.0"
APP_INTRO = "{} V{} -- ".format(APP_NAME, APP_VERSION)

# Memory map
MEM_SIZE = 0x1000   # 4K addressable
ROM_BASE = 0x200    # Everything below here belongs to the interpreter (fonts only, in our case)
FONT_BASE = 0x000
OPCODE_SIZE = 2
STACK_SIZE = 16

# Display
VID_WIDTH = 64
VID_HEIGHT = 32

# Timing.  One frame gives the CPU this many microseconds to spend on instructions.
FRAME_FREQ = 60.0
FRAME_INTERVAL = 1.0 / FRAME_FREQ
FRAME_TIME = 16666
DEFAULT_CLOCK_SPEED = 1000  # Instructions per second (0 = uncapped)
MAX_OPS_PER_FRAME = 4096    # Upper bound, whatever the clock speed, so a frame always returns

# Hexadecimal digit sprites, 5 bytes each
FONT_SET = bytes((
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
))
FONT_CHAR_SIZE = 5

# Default mappings for keys 0-F, later populated into a dictionary.  These are PyGame keyscan codes, laid out as the
# usual 4x4 block on a QWERTY keyboard:
#   1 2 3 4      1 2 3 C
#   Q W E R  ->  4 5 6 D
#   A S D F      7 8 9 E
#   Z X C V      A 0 B F
DEFAULT_KEYMAP = "120,49,50,51,113,119,101,97,115,100,122,99,52,114,102,118"
