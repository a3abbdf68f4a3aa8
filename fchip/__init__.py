#!/usr/bin/env python3

"""
Main Startup Module

Simply call main(args) to start the emulator, replacing args with a dictionary
of options.  This can be done via the Terminal or GUI.

All options must be supplied.  Defaults can be specified with a 'None'.

The CPU has no clock of its own.  run() is the host's frame loop: once every
1/60th of a second it polls the inputs, drives one CPU frame with a snapshot of
the keypad, and pushes the resulting bitmap and tone out to the renderer and
audio plugins.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from time import perf_counter, sleep
from .constants import APP_INTRO, APP_COPYRIGHT, APP_NAME, FRAME_INTERVAL
from .cpu import CPU
from .debugger import Debugger
from .hostio import Loader


class StartupError(Exception):
    pass


def parse_breakpoints(breakpoints):
    # Comma-separated hex addresses, e.g. "200,2A4"
    if not breakpoints:
        return []

    try:
        return [int(address, 16) for address in breakpoints.split(",")]
    except ValueError:
        raise StartupError("Breakpoints must be hexadecimal addresses, separated with commas.") from None


def report_perf(renderer, fps=0, ops=0):
    renderer.set_title("{} - {} FPS, {} OPS".format(APP_NAME, fps, ops))


def run(cpu, renderer, inputs, audio, max_frames=0, interval=FRAME_INTERVAL):
    # Returns the number of frames run.  max_frames of 0 runs until the inputs ask to quit.
    frames = 0
    perf_counter_fps = 0
    next_perf_report_time = 0
    next_frame_time = perf_counter()

    while not max_frames or frames < max_frames:
        this_time = perf_counter()

        # Performance counters
        if this_time >= next_perf_report_time:
            next_perf_report_time = int(this_time) + 1.0
            report_perf(renderer, perf_counter_fps, cpu.perf_counter_ops)
            cpu.perf_counter_ops = 0
            perf_counter_fps = 0

        if inputs.process_messages():
            break

        bitmap, tone = cpu.frame(inputs.get_keys())
        renderer.draw(bitmap)
        audio.enable_buzzer(tone)
        frames += 1
        perf_counter_fps += 1

        # Wait for the next frame.  If we've fallen behind, don't try to catch up.
        next_frame_time += interval
        delay = next_frame_time - perf_counter()

        if delay > 0:
            sleep(delay)
        else:
            next_frame_time = perf_counter()

    return frames


def main(args):
    print("".join((APP_INTRO, APP_COPYRIGHT)))

    opt_renderer = args["renderer"]
    auto_select_renderer = opt_renderer is None  # If necessary, try PyGame first, then fall back to no display
    mute_audio = args["mute"]

    # flake8: noqa: F401
    if auto_select_renderer or opt_renderer == "pygame":
        # pylint: disable=unused-import, import-outside-toplevel, raise-missing-from
        try:
            import pygame
        except ImportError:
            if auto_select_renderer:
                opt_renderer = "null"
            else:
                raise StartupError(
                    "PyGame does not appear to be installed."
                )
        else:
            opt_renderer = "pygame"
            from .inputs.i_pygame import Inputs
            from .renderers.r_pygame import Renderer

            if mute_audio:
                from .audio.a_null import Audio
            else:
                from .audio.a_pygame import Audio

    if opt_renderer == "null":
        # pylint: disable=import-outside-toplevel
        from .inputs.i_null import Inputs
        from .renderers.r_null import Renderer
        from .audio.a_null import Audio

    # Set up debugger and live output if necessary
    debugger = Debugger()
    debugger.set_live(args["debug"])

    for address in parse_breakpoints(args["breakpoints"]):
        debugger.add_breakpoint(address)

    # Create a new CPU, and write the ROM binary into its RAM
    cpu = CPU(debugger, clock_speed=args["clock_speed"], seed=args["seed"])
    cpu.load_rom(Loader().load_binary(args["filename"]))

    renderer = Renderer(scale=args["scale"])
    inputs = Inputs(args["keymap"])
    audio = Audio()

    try:
        return run(cpu, renderer, inputs, audio, max_frames=args["max_frames"])
    finally:
        # The loop has ended, so shut down the host frameworks.  __del__ cannot be relied upon when using PyPy
        audio.shutdown()
        inputs.shutdown()
        renderer.shutdown()
