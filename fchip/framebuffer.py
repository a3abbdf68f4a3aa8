#!/usr/bin/env python3

"""
Framebuffer Emulator

Programs for this system cannot write directly into video RAM.  Instead,
sprites are drawn onto the screen using XOR, one pixel at a time.  Any pixel
that was set, but gets unset by the XOR, is reported back as a collision.

Pixels are held unpacked (one byte each) in a private RAM bank so the drawing
routine stays simple.  The host only ever sees a packed copy: 2048 bits, row
by row, with the leftmost pixel of each group of 8 in the most significant bit.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import VID_WIDTH, VID_HEIGHT
from .ram import RAM


class Framebuffer:
    def __init__(self, vid_width=VID_WIDTH, vid_height=VID_HEIGHT):
        self.vid_width = vid_width
        self.vid_height = vid_height
        self.vid_size = vid_width * vid_height
        self.plane = RAM(self.vid_size)

    def clear(self):
        self.plane.clear()

    def xor_pixel(self, x, y):
        # Returns True on collision.  Positions always wrap around both edges.
        vram_loc = (y % self.vid_height) * self.vid_width + (x % self.vid_width)
        pixel = self.plane.read(vram_loc)
        self.plane.write(vram_loc, pixel ^ 1)
        return pixel != 0

    def get_pixel(self, x, y):
        return self.plane.read((y % self.vid_height) * self.vid_width + (x % self.vid_width))

    def get_packed(self):
        mem = self.plane.mem
        packed = bytearray(self.vid_size // 8)

        for byte_num in range(len(packed)):
            byte = 0

            for pixel in mem[byte_num * 8:byte_num * 8 + 8]:
                byte = (byte << 1) | pixel

            packed[byte_num] = byte

        return bytes(packed)

    def get_vid_size(self):
        return self.vid_width, self.vid_height
