#!/usr/bin/env python3
# Copyright (C) 2026 Alex Stoyanov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with this program.
# If not, see <https://www.gnu.org/licenses/>.

from __future__ import annotations

import math
from dataclasses import replace

from ..core.models import DocRect, RawRect

# PDF points per CSS pixel (72 dpi / 96 dpi).
PDF_SCALE = 72 / 96

# Tolerance for coordinate comparisons
COORDINATE_EPSILON = 0.01


def to_doc_space(rect: RawRect, scale: float = PDF_SCALE) -> DocRect:
    return DocRect(
        x=rect.left * scale,
        y=rect.top * scale,
        width=rect.width * scale,
        height=rect.height * scale,
        flipped_y=(rect.viewport_height - rect.bottom) * scale,
    )


def infer_page_index(rect: RawRect) -> int:
    if rect.viewport_height <= 0:
        return 0
    return max(0, math.floor((rect.top + COORDINATE_EPSILON) / rect.viewport_height))


def rebase_to_page(rect: RawRect, page_index: int) -> RawRect:
    if page_index <= 0:
        return rect
    return replace(rect, top=rect.top - page_index * rect.viewport_height)


def px_to_pt(value: float, scale: float = PDF_SCALE) -> float:
    return value * scale


def pt_to_px(value: float, scale: float = PDF_SCALE) -> float:
    return value / scale


def top_down_y(page_height: float, y: float, height: float = 0.0) -> float:
    """Convert a bottom-left ordinate to the top-left one used by fpdf2 and PyMuPDF."""
    return page_height - y - height
