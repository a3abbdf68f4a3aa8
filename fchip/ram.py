#!/usr/bin/env python3

"""
RAM Emulator

A single flat bank of memory, sized once at construction.  Supports reading
and writing of blocks of memory or individual bytes, and zeroing of blocks.

The CPU masks any addresses derived from the index register before they get
here, so an overflow here means something else has gone wrong (usually a ROM
that doesn't fit).
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .errors import ChipError


class RAMError(ChipError):
    pass


class RAM:
    def __init__(self, mem_size):
        self.mem = memoryview(bytearray(mem_size))
        self.mem_top = mem_size - 1
        self.mem_size = mem_size

    def read(self, location):
        return self.mem[location]

    def read_block(self, location, size=1):
        return self.mem[location:location + size]

    def write(self, location, byte):
        self.check_overflow(location)
        self.mem[location] = byte

    def write_block(self, location, block):
        block_top = location + len(block)
        self.check_overflow(block_top - 1)
        self.mem[location:block_top] = block

    def check_overflow(self, location):
        if location > self.mem_top:
            raise RAMError("Memory overflow at 0x{:04x}".format(location))

    def zero_block(self, offset, size):
        block_top = offset + size
        self.check_overflow(block_top - 1)
        self.mem[offset:block_top] = bytes(size)

    def clear(self):
        self.zero_block(0, self.mem_size)
