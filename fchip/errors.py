#!/usr/bin/env python3

"""
Emulation Errors

Every condition here is fatal to the running machine.  Once one is raised, the
CPU state is undefined, and the CPU should be reconstructed (or at least reset)
before driving it again.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class ChipError(Exception):
    pass


class InvalidOperationError(ChipError):
    def __init__(self, message, opcode=None):
        super().__init__(message)
        self.opcode = opcode

    @property
    def opcode_bytes(self):
        if self.opcode is None:
            return None

        return self.opcode.to_bytes(2, "big")


class RomTooLargeError(ChipError):
    def __init__(self, size, limit):
        super().__init__("ROM is {} bytes, but only {} bytes are available".format(size, limit))
        self.size = size
        self.limit = limit


class PCOutOfBoundsError(ChipError):
    def __init__(self, message, address):
        super().__init__(message)
        self.address = address


class DebugTrapError(ChipError):
    def __init__(self, message, address):
        super().__init__(message)
        self.address = address
