#!/usr/bin/env python3

"""
PyGame Renderer Plugin

Draws the packed monochrome bitmap onto an SDL window surface via PyGame.  The
surface is allocated at the emulated resolution, and the contents are then
stretched (using 'Nearest Neighbour' translation) to fit the window itself.
This means we never draw the same pixel more than once.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .r_null import Renderer as RendererBase
from ..constants import APP_NAME

BACKGROUND_RGB = b"\x22\x22\x22"
FOREGROUND_RGB = b"\xDD\xDD\xDD"


class Renderer(RendererBase):
    def __init__(self, scale=None, **kwargs):
        if scale is None:
            scale = 512  # Default window width if not supplied

        super().__init__(scale)
        pygame.display.init()
        self.set_title(APP_NAME)
        self.scaled_size = (scale, scale // 2)
        self.display_surface = pygame.display.set_mode(self.scaled_size)
        self.rgb_buffer = memoryview(bytearray(BACKGROUND_RGB * (self.width * self.height)))

        # Force a refresh now, so the window isn't left showing garbage before the first frame
        self.refresh_display()

    def draw(self, bitmap):
        content_changed = super().draw(bitmap)

        if content_changed:
            # Unpack the bitmap into the offscreen RGB buffer, 8 pixels per byte, most significant bit first
            rgb_buffer = self.rgb_buffer
            rgb_location = 0

            for byte in bitmap:
                for bit in range(7, -1, -1):
                    rgb_buffer[rgb_location:rgb_location + 3] = FOREGROUND_RGB if (byte >> bit) & 1 else BACKGROUND_RGB
                    rgb_location += 3

        # Repaint every frame, even if nothing changed, in case the window was covered or exposed
        self.refresh_display()
        return content_changed

    def refresh_display(self):
        # Blit the bytearray straight to the surface, rather than setting pixels one by one
        render_surface = pygame.image.frombuffer(self.rgb_buffer, (self.width, self.height), "RGB")
        scaled_win = pygame.transform.scale(render_surface, self.scaled_size)
        self.display_surface.blit(scaled_win, (0, 0))
        pygame.display.flip()

    def set_title(self, title):
        super().set_title(title)
        pygame.display.set_caption(title)

    def shutdown(self):
        # PyGame currently segfaults if display.quit is called via __del__
        pygame.display.quit()
        super().shutdown()
