#!/usr/bin/env python3

"""
CPU Emulator (CHIP-8)

Like a real computer, this is where most of the processing happens.

The CPU does not keep time by itself.  The host calls frame() once per display
refresh, handing over a snapshot of the keypad.  Each frame adds a fixed number
of microseconds to the CPU's time budget, and instructions are executed (each
costing one tick) for as long as there is budget left.  Whatever is left over,
positive or negative, is carried into the next frame.  The delay and sound
timers count down once per frame, no matter how many instructions ran.

Waiting for a keypress (Fx0A) is held as state rather than as a loop.  While
waiting, frame() only looks for a pressed key and returns straight away.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from random import Random
from .constants import (
    APP_INTRO, MEM_SIZE, ROM_BASE, FONT_BASE, FONT_SET, FONT_CHAR_SIZE, OPCODE_SIZE, STACK_SIZE, FRAME_TIME,
    DEFAULT_CLOCK_SPEED, MAX_OPS_PER_FRAME
)
from .debugger import Debugger
from .errors import InvalidOperationError, RomTooLargeError, PCOutOfBoundsError, DebugTrapError
from .framebuffer import Framebuffer
from .ram import RAM
from .stack import Stack, StackError

CPU_ENDIAN = "big"     # CHIP-8 is big-endian
ADDR_MASK = 0xFFF      # Addresses derived from the index register wrap within 4K
I_MASK = 0xFFFF        # The index register itself is 16 bits wide
NUM_KEYS = 0x10
FONT_TOP = FONT_BASE + len(FONT_SET)  # Programs may not write below here


class CPU:
    def __init__(self, debugger=None, clock_speed=None, frame_time=FRAME_TIME, max_ops=MAX_OPS_PER_FRAME, seed=None):
        self.debugger = Debugger() if debugger is None else debugger
        self.live_debug = self.debugger.is_live()
        self.rng = Random(seed)

        if clock_speed is None:
            clock_speed = DEFAULT_CLOCK_SPEED

        # A zero-cost tick (clock speed 0) leaves only the per-frame cap to stop execution
        self.tick = 0 if clock_speed <= 0 else 1000000 // clock_speed
        self.frame_time = frame_time
        self.max_ops = max_ops

        self.ram = RAM(MEM_SIZE)
        self.stack = Stack(STACK_SIZE)
        self.framebuffer = Framebuffer()

        # Define instruction pointers.
        # n = Nibble
        # kk = Byte
        # nnn = address
        # x/y = register (0-15)
        self.instructions = {
            # Initial lookup for instructions' first nibble
            0x0: self._0nnn,  # Alias for bitmask 0xFFFF
            0x1: self._1nnn,
            0x2: self._2nnn,
            0x3: self._3xkk,
            0x4: self._4xkk,
            0x5: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0x6: self._6xkk,
            0x7: self._7xkk,
            0x8: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0x9: self._5nnn_8nnn_9nnn,  # Alias for bitmask 0xF00F
            0xA: self._Annn,
            0xB: self._Bnnn,
            0xC: self._Cxkk,
            0xD: self._Dxyn,
            0xE: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            0xF: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            # Instructions beginning with nibble 0x0, bitmask 0xFFFF (i.e., exact match)
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            # Instructions beginning with nibble 0x5/0x8/0x9, bitmask 0xF00F
            0x5000: self._5xy0,
            0x8000: self._8xy0,
            0x8001: self._8xy1,
            0x8002: self._8xy2,
            0x8003: self._8xy3,
            0x8004: self._8xy4,
            0x8005: self._8xy5,
            0x8006: self._8xy6,
            0x8007: self._8xy7,
            0x800E: self._8xyE,
            0x9000: self._9xy0,
            # Instructions beginning with nibble 0xE/0xF, bitmask 0xF0FF
            0xE09E: self._Ex9E,
            0xE0A1: self._ExA1,
            0xF007: self._Fx07,
            0xF00A: self._Fx0A,
            0xF015: self._Fx15,
            0xF018: self._Fx18,
            0xF01E: self._Fx1E,
            0xF029: self._Fx29,
            0xF033: self._Fx33,
            0xF055: self._Fx55,
            0xF065: self._Fx65
        }

        self.reset()

    def reset(self):
        # Wipe memory and write the system font into the interpreter area
        self.ram.clear()
        self.ram.write_block(FONT_BASE, FONT_SET)

        # Initialise registers
        self.v = memoryview(bytearray(16))  # Vf doubles as the carry/borrow/collision flag
        self.i = 0                          # Index register
        self.stack.clear()

        # Initialise timers
        self.dt = 0  # Delay timer
        self.st = 0  # Sound timer

        # Initialise program counter and current opcode
        self.pc = ROM_BASE
        self.debug_pc = ROM_BASE
        self.opcode = 0

        self.framebuffer.clear()

        # Input-related vars
        self.keys = [False] * NUM_KEYS
        self.awaiting_keypress = False
        self.key_register = 0

        # Microseconds left to spend on instructions.  Can go negative, and is carried between frames.
        self.time_budget = 0
        self.perf_counter_ops = 0

        # Breakpoints are picked up here, so the lookup is skipped entirely when there are none
        self.check_breakpoints = self.debugger.has_breakpoints()

    def load_rom(self, data):
        limit = MEM_SIZE - ROM_BASE

        if len(data) > limit:
            raise RomTooLargeError(len(data), limit)

        # Zero the program area first so reloading never leaves part of an older ROM behind
        self.ram.zero_block(ROM_BASE, limit)
        self.ram.write_block(ROM_BASE, data)

    @property
    def tone(self):
        return self.st > 0

    def get_display(self):
        return self.framebuffer.get_packed()

    def frame(self, keys):
        if len(keys) != NUM_KEYS:
            raise ValueError("Expected {} key states, got {}".format(NUM_KEYS, len(keys)))

        # Take a copy, so the caller is free to reuse its own list
        self.keys = [bool(key) for key in keys]

        if self.awaiting_keypress:
            # Nothing else happens in a frame spent waiting, not even the timers
            self._check_keypress()
            return self.get_display(), self.tone

        if self.dt > 0:
            self.dt -= 1

        if self.st > 0:
            self.st -= 1

        self.time_budget += self.frame_time
        ops = 0

        while self.time_budget > 0:
            if ops >= self.max_ops:
                # The ROM is running flat out (or the clock is uncapped).  Drop the rest so it can't snowball.
                self.time_budget = 0
                break

            self.step()
            ops += 1

            if self.awaiting_keypress:
                # Waiting for a key costs nothing
                break

            self.time_budget -= self.tick

        self.perf_counter_ops += ops
        return self.get_display(), self.tone

    def _check_keypress(self):
        # Lowest key number wins if several are held
        for key_num, pressed in enumerate(self.keys):
            if pressed:
                self.v[self.key_register] = key_num
                self.awaiting_keypress = False
                return

    def step(self):
        pc = self.pc
        self.debug_pc = pc  # Do this all the time in case there is a crash

        if pc & 1 or pc > MEM_SIZE - OPCODE_SIZE:
            raise PCOutOfBoundsError(
                self._halt_message("Program counter 0x{:04x} is outside of addressable memory.".format(pc)), pc
            )

        if self.check_breakpoints and self.debugger.is_breakpoint(pc):
            raise DebugTrapError(self._halt_message("Breakpoint reached at address 0x{:03x}.".format(pc)), pc)

        self.opcode = self.fetch()
        self.inc_pc()  # Program counter updates after fetch, but before execute

        try:
            self.decode_exec()
        except StackError as err:
            raise StackError(
                self._halt_message(
                    "{} on opcode 0x{:04x} at address 0x{:03x}.".format(err, self.opcode, self.debug_pc)
                ),
                self.opcode
            ) from None

    def fetch(self):
        return int.from_bytes(self.ram.read_block(self.pc, OPCODE_SIZE), CPU_ENDIAN, signed=False)

    def _call_masked_instruction(self, masked_opcode):
        instruction = self.instructions.get(masked_opcode)

        if instruction is None:
            self._opcode_unsupported()

        instruction()

    def decode_exec(self):
        self._call_masked_instruction((0xF000 & self.opcode) >> 12)

    def inc_pc(self):
        self.pc += OPCODE_SIZE

    # References to Vx, Vy, byte and addr are always in the same opcode position throughout all instructions, so avoid
    # excessive code duplication.  These are recalculated each time.
    @property
    def vx(self):
        return (self.opcode & 0xF00) >> 8

    @property
    def vy(self):
        return (self.opcode & 0xF0) >> 4

    @property
    def addr(self):
        return self.opcode & 0xFFF

    @property
    def byte(self):
        return self.opcode & 0xFF

    @property
    def nibble(self):
        return self.opcode & 0xF

    def _halt_message(self, reason):
        return "Emulation halted.\n\n{}Debug info:\n{}\n\n{}".format(
            APP_INTRO, self.debugger.debug(self, "???", verbose=True), reason
        )

    def _opcode_unsupported(self):
        raise InvalidOperationError(
            self._halt_message(
                "Opcode 0x{:04x} at address 0x{:03x} is not a CHIP-8 instruction.".format(self.opcode, self.debug_pc)
            ),
            self.opcode
        ) from None

    def debug(self, instruction):
        self.debugger.output(self, instruction)

    def _0nnn(self):
        opcode = self.opcode

        if opcode < 0x10:
            # Opcodes 0x0 - 0xF are used internally for indexing, and 0nnn (SYS) is not supported
            self._opcode_unsupported()

        self._call_masked_instruction(opcode)

    def _5nnn_8nnn_9nnn(self):
        self._call_masked_instruction(self.opcode & 0xF00F)

    def _Ennn_Fnnn(self):
        self._call_masked_instruction(self.opcode & 0xF0FF)

    def _00E0(self):  # CLS
        if self.live_debug:
            self.debug("CLS")

        self.framebuffer.clear()

    def _00EE(self):  # RET
        if self.live_debug:
            self.debug("RET")

        self.pc = self.stack.pop()

    def _1nnn(self):  # JP addr
        if self.live_debug:
            self.debug("JP 0x{:03x}".format(self.addr))

        self.pc = self.addr

    def _2nnn(self):  # CALL addr
        if self.live_debug:
            self.debug("CALL 0x{:03x}".format(self.addr))

        self.stack.push(self.pc)  # Already pointing at the next instruction
        self.pc = self.addr

    def _skip(self):
        self.inc_pc()

    def _3xkk(self):  # SE Vx, byte
        if self.live_debug:
            self.debug("SE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] == self.byte:
            self._skip()

    def _4xkk(self):  # SNE Vx, byte
        if self.live_debug:
            self.debug("SNE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] != self.byte:
            self._skip()

    def _5xy0(self):  # SE Vx, Vy
        if self.live_debug:
            self.debug("SE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] == self.v[self.vy]:
            self._skip()

    def _6xkk(self):  # LD Vx, byte
        if self.live_debug:
            self.debug("LD V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        self.v[self.vx] = self.byte

    def _7xkk(self):  # ADD Vx, byte
        vx = self.vx
        byte = self.byte

        if self.live_debug:
            self.debug("ADD V{:01x}, 0x{:02x}".format(vx, byte))

        # No carry flag for this one
        self.v[vx] = (self.v[vx] + byte) & 0xFF

    def _8xy0(self):  # LD Vx, Vy
        if self.live_debug:
            self.debug("LD V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] = self.v[self.vy]

    def _8xy1(self):  # OR Vx, Vy
        if self.live_debug:
            self.debug("OR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] |= self.v[self.vy]

    def _8xy2(self):  # AND Vx, Vy
        if self.live_debug:
            self.debug("AND V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] &= self.v[self.vy]

    def _8xy3(self):  # XOR Vx, Vy
        if self.live_debug:
            self.debug("XOR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] ^= self.v[self.vy]

    # From here on, Vf is always written last.  If Vf was also the destination, the flag wins.

    def _8xy4(self):  # ADD Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("ADD V{:01x}, V{:01x}".format(vx, vy))

        val = self.v[vx] + self.v[vy]
        self.v[vx] = val & 0xFF
        self.v[0xF] = int(val > 0xFF)  # Vf is set when carrying

    def _post_8xy5_8xy7(self, minuend, subtrahend):  # Post-SUB/SUBN
        self.v[self.vx] = (minuend - subtrahend) & 0xFF
        self.v[0xF] = int(minuend > subtrahend)  # Vf is set when NOT borrowing

    def _8xy5(self):  # SUB Vx, Vy
        if self.live_debug:
            self.debug("SUB V{:01x}, V{:01x}".format(self.vx, self.vy))

        self._post_8xy5_8xy7(self.v[self.vx], self.v[self.vy])

    def _8xy6(self):  # SHR Vx
        if self.live_debug:
            self.debug("SHR V{:01x}".format(self.vx))

        val = self.v[self.vx]
        self.v[self.vx] = val >> 1
        self.v[0xF] = val & 1  # The bit shifted out

    def _8xy7(self):  # SUBN Vx, Vy
        if self.live_debug:
            self.debug("SUBN V{:01x}, V{:01x}".format(self.vx, self.vy))

        self._post_8xy5_8xy7(self.v[self.vy], self.v[self.vx])

    def _8xyE(self):  # SHL Vx
        if self.live_debug:
            self.debug("SHL V{:01x}".format(self.vx))

        val = self.v[self.vx]
        self.v[self.vx] = (val << 1) & 0xFF
        self.v[0xF] = val >> 7  # The bit shifted out

    def _9xy0(self):  # SNE Vx, Vy
        if self.live_debug:
            self.debug("SNE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] != self.v[self.vy]:
            self._skip()

    def _Annn(self):  # LD I, addr
        if self.live_debug:
            self.debug("LD I, 0x{:03x}".format(self.addr))

        self.i = self.addr

    def _Bnnn(self):  # JP V0, addr
        if self.live_debug:
            self.debug("JP V0, 0x{:03x}".format(self.addr))

        # Not masked.  Jumping off the end of memory is caught on the next fetch.
        self.pc = self.v[0] + self.addr

    def _Cxkk(self):  # RND Vx, byte
        if self.live_debug:
            self.debug("RND V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        # The ANDing here is intentional.  This is not a random number between 0 and 'byte' inclusive.
        self.v[self.vx] = self.rng.randint(0, 0xFF) & self.byte

    def _Dxyn(self):  # DRW Vx, Vy, nibble
        height = self.nibble

        if self.live_debug:
            self.debug("DRW V{:01x}, V{:01x}, 0x{:01x}".format(self.vx, self.vy, height))

        # Sprites are always 8 pixels wide, and wrap around both edges of the screen
        vx_pos = self.v[self.vx]
        vy_pos = self.v[self.vy]
        framebuffer = self.framebuffer
        i = self.i
        collided = False
        self.v[0xF] = 0

        for y in range(height):
            spr_data = self.ram.read((i + y) & ADDR_MASK)

            for x in range(8):
                if spr_data & (0x80 >> x):
                    if framebuffer.xor_pixel(vx_pos + x, vy_pos + y):
                        # Don't stop drawing.  Set the flag, and never unset it for this sprite.
                        collided = True

        self.v[0xF] = int(collided)

    def _Ex9E(self):  # SKP Vx
        if self.live_debug:
            self.debug("SKP V{:01x}".format(self.vx))

        # Only the low nibble selects a key
        if self.keys[self.v[self.vx] & 0xF]:
            self._skip()

    def _ExA1(self):  # SKNP Vx
        if self.live_debug:
            self.debug("SKNP V{:01x}".format(self.vx))

        if not self.keys[self.v[self.vx] & 0xF]:
            self._skip()

    def _Fx07(self):  # LD Vx, DT
        if self.live_debug:
            self.debug("LD V{:01x}, DT".format(self.vx))

        self.v[self.vx] = self.dt

    def _Fx0A(self):  # LD Vx, K
        if self.live_debug:
            self.debug("LD V{:01x}, K".format(self.vx))

        # The program counter has already moved on.  The key is picked up at the start of a later frame.
        self.awaiting_keypress = True
        self.key_register = self.vx

    def _Fx15(self):  # LD DT, Vx
        if self.live_debug:
            self.debug("LD DT, V{:01x}".format(self.vx))

        self.dt = self.v[self.vx]

    def _Fx18(self):  # LD ST, Vx
        if self.live_debug:
            self.debug("LD ST, V{:01x}".format(self.vx))

        self.st = self.v[self.vx]

    def _Fx1E(self):  # ADD I, Vx
        if self.live_debug:
            self.debug("ADD I, V{:01x}".format(self.vx))

        val = self.i + self.v[self.vx]
        self.i = val & I_MASK
        self.v[0xF] = int(val > ADDR_MASK)

    def _Fx29(self):  # LD F, Vx
        if self.live_debug:
            self.debug("LD F, V{:01x}".format(self.vx))

        self.i = FONT_BASE + FONT_CHAR_SIZE * (self.v[self.vx] & 0xF)

    def _check_font_write(self, locations):
        # The system font is read-only to programs.  Check every target first, so nothing is half-written.
        for location in locations:
            if location < FONT_TOP:
                raise InvalidOperationError(
                    self._halt_message(
                        "Opcode 0x{:04x} at address 0x{:03x} tried to write to the system font at 0x{:03x}.".format(
                            self.opcode, self.debug_pc, location
                        )
                    ),
                    self.opcode
                )

    def _Fx33(self):  # LD B, Vx
        if self.live_debug:
            self.debug("LD B, V{:01x}".format(self.vx))

        val = self.v[self.vx]
        locations = [(self.i + offset) & ADDR_MASK for offset in range(3)]
        self._check_font_write(locations)
        self.ram.write(locations[0], val // 100)          # Most-significant digit
        self.ram.write(locations[1], (val // 10) % 10)    # Middle digit
        self.ram.write(locations[2], val % 10)            # Least-significant digit

    def _Fx55(self):  # LD [I], Vx
        if self.live_debug:
            self.debug("LD [I], V{:01x}".format(self.vx))

        # V0 to Vx inclusive.  I is left alone.
        locations = [(self.i + reg) & ADDR_MASK for reg in range(self.vx + 1)]
        self._check_font_write(locations)

        for reg, location in enumerate(locations):
            self.ram.write(location, self.v[reg])

    def _Fx65(self):  # LD Vx, [I]
        if self.live_debug:
            self.debug("LD V{:01x}, [I]".format(self.vx))

        i = self.i

        for reg in range(self.vx + 1):
            self.v[reg] = self.ram.read((i + reg) & ADDR_MASK)
