#!/usr/bin/env python3

"""
Stack Emulator

The call stack is not part of addressable memory, and the running program has
no way to read the stack pointer, so a list is all we need.  The stack pointer
is simply the number of items held (0 = empty).

Overflowing or underflowing the stack is treated as an invalid operation.  The
CPU fills in the offending opcode as the error passes through it.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .errors import InvalidOperationError


class StackError(InvalidOperationError):
    pass


class Stack:
    def __init__(self, size):
        self.items = []
        self.size = size

    @property
    def sp(self):
        return len(self.items)

    def push(self, item):
        if len(self.items) >= self.size:
            raise StackError("Stack overflow")

        self.items.append(item)

    def pop(self):
        try:
            return self.items.pop()
        except IndexError:
            raise StackError("Stack underflow") from None

    def clear(self):
        self.items.clear()

    def get_items(self):
        # For debugging
        return self.items
