#!/usr/bin/env python3

"""
CPU Debugger

If live output is enabled, this will print information before each
instruction executed:
    * All 16 of the [V] registers, starting with most significant (Vf) and
      reducing to least significant (V0)
    * I  - Index register
    * DT - Delay timer
    * ST - Sound timer
    * PC - Program counter
    * OP - OpCode number
    * IN - Decoded instruction

If a crash occurs, all of the above will be included in the error, with the
addition of the stack contents and the time budget left in the frame.

Breakpoints can also be set.  When the program counter lands on one, the CPU
stops with a debug trap before fetching the instruction there.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class Debugger:
    def __init__(self):
        self.live = False
        self.breakpoints = set()

    def debug(self, cpu, instruction, verbose=False):
        debug_str = (
            "V: 0x" + ("{:02x}" * 16) + " I: 0x{:04x} DT: 0x{:02x} ST: 0x{:02x} PC: 0x{:03x} OP: 0x{:04x} IN: {}"
        ).format(
            *[cpu.v[reg_num] for reg_num in range(15, -1, -1)] +
            [cpu.i, cpu.dt, cpu.st, cpu.debug_pc, cpu.opcode, instruction]
        )

        if verbose:
            stack_items = cpu.stack.get_items()
            stack_str = (" 0x{:03x}" * len(stack_items)).format(*stack_items)
            debug_str += "\nStack:{}".format(stack_str or " (Empty)")
            debug_str += "\nTime budget: {}us".format(cpu.time_budget)

        return debug_str

    def set_live(self, enabled):
        self.live = enabled

    def is_live(self):
        return self.live

    def add_breakpoint(self, address):
        self.breakpoints.add(address)

    def clear_breakpoints(self):
        self.breakpoints.clear()

    def has_breakpoints(self):
        return bool(self.breakpoints)

    def is_breakpoint(self, address):
        return address in self.breakpoints

    def output(self, cpu, instruction):
        print(self.debug(cpu, instruction))
