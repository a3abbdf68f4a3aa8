#!/usr/bin/env python3

"""
PyGame Audio Plugin

The emulated buzzer only has an 'on' and an 'off' state.  Here, that becomes a
single period of square wave, looped by PyGame / SDL for as long as the sound
timer is running.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .a_null import Audio as AudioBase

PLAYBACK_FREQUENCY = 44100.0
TONE_FREQUENCY = 440.0
DEFAULT_VOLUME = 0.1


class Audio(AudioBase):
    def __init__(self, frequency=TONE_FREQUENCY):
        super().__init__()
        pygame.mixer.pre_init(int(PLAYBACK_FREQUENCY), size=8, channels=1, buffer=512, allowedchanges=0)
        pygame.mixer.init()

        # One full period: high for the first half, low for the second
        period = int(PLAYBACK_FREQUENCY / frequency)
        half_period = period // 2
        self.wave_buffer = bytearray(b"\xFF" * half_period + b"\x00" * (period - half_period))
        self.sound = pygame.mixer.Sound(buffer=self.wave_buffer)
        self.sound.set_volume(DEFAULT_VOLUME)

    def enable_buzzer(self, enabled):
        # If the buzzer is already sounding, it won't be restarted
        if enabled and not self.buzzer_enabled:
            self.sound.play(-1)
        elif not enabled and self.buzzer_enabled:
            self.sound.stop()

        super().enable_buzzer(enabled)

    def shutdown(self):
        self.sound.stop()
        pygame.mixer.quit()
        super().shutdown()
