#!/usr/bin/env python3

"""
Null Renderer Plugin

This serves as a base class for other rendering plugins.

It can be used on its own to run a ROM headless.  The last bitmap handed over
is kept, which is handy for tests.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from ..constants import VID_WIDTH, VID_HEIGHT


class Renderer:
    def __init__(self, scale=None, **kwargs):  # pylint: disable=unused-argument
        self.scale = 1 if scale is None else scale
        self.width = VID_WIDTH
        self.height = VID_HEIGHT
        self.bitmap = bytes(VID_WIDTH * VID_HEIGHT // 8)
        self.title = ""

    def draw(self, bitmap):
        # Report whether anything changed since the last frame, so plugins can skip redrawing the buffer
        if bitmap == self.bitmap:
            return False

        self.bitmap = bitmap
        return True

    def refresh_display(self):
        pass

    def set_title(self, title):
        self.title = title

    def shutdown(self):
        pass
