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

"""Content cursor and page breaking for flowing layouts.

The controller owns a single write cursor measured in PDF points from the
bottom of the page. Callers ask whether a block fits (``will_overflow``), let
the controller break the page when it does not (``handle_overflow``), draw the
block and then ``advance`` past it exactly once.

Header, footer and page-number stamps are registered when a page is created,
but their text is produced when the document is serialized, so ``{total}``
always reflects the final page count.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from ..core.models import DocRect
from .document import FormDocument
from .spec import BandSpec, Margins, PageLayoutConfig

FlowPhase = Literal["idle", "on-page", "finalizing"]

# Baseline distance of band text from the page margin.
BAND_TEXT_INSET = 10.0


@dataclass
class ContentFlowState:
    cursor_y: float = 0.0
    remaining_height: float = 0.0
    page_number: int = 0
    total_pages_estimate: int = 0
    overflowed: bool = False
    page_index: int | None = None


class ContentFlowController:
    def __init__(self, document: FormDocument, layout: PageLayoutConfig | None = None) -> None:
        self.document = document
        self.layout = layout or PageLayoutConfig()
        self.state = ContentFlowState()
        self.phase: FlowPhase = "idle"
        # Cursor and remaining height of every page that is not current.
        self._parked: dict[int, tuple[float, float]] = {}

    @property
    def page_index(self) -> int:
        if self.state.page_index is None:
            raise RuntimeError("no active page; call new_page() first")
        return self.state.page_index

    @property
    def cursor_y(self) -> float:
        return self.state.cursor_y

    @property
    def min_y(self) -> float:
        return self.layout.content_bottom

    def new_page(self) -> int:
        self._require_open()
        index = self.document.add_page(self.layout.width, self.layout.height)
        self._stamp(index)
        self._park()
        self._enter(index)
        self.state.total_pages_estimate = self.document.page_count
        self.phase = "on-page"
        return index

    def adopt_pages(self) -> int:
        """Take over pages that already exist in the document (rendered mode)."""
        self._require_open()
        count = self.document.page_count
        if count == 0:
            raise ValueError("document has no pages to adopt")
        for index in range(count):
            self._stamp(index)
        self._parked.clear()
        self._enter(0)
        self.state.total_pages_estimate = count
        self.phase = "on-page"
        return count

    def will_overflow(self, element_height: float, at_y: float | None = None) -> bool:
        y = self.state.cursor_y if at_y is None else at_y
        return y - element_height < self.min_y

    def handle_overflow(self, element_height: float) -> bool:
        if not self.will_overflow(element_height):
            return False
        if not (self.layout.auto_page_break and self.layout.paginated):
            self.state.overflowed = True
            return False
        self.new_page()
        if self.will_overflow(element_height):
            # Taller than a whole content area; it lands here and spills.
            self.state.overflowed = True
        return True

    def advance(self, delta_y: float) -> None:
        self.state.cursor_y -= delta_y
        self.state.remaining_height -= delta_y
        if self.state.remaining_height < 0:
            self.state.overflowed = True

    def navigate_to_page(self, page_number: int) -> bool:
        if 1 <= page_number <= self.document.page_count:
            self.set_current_page(page_number - 1)
            return True
        return False

    def set_current_page(self, page_index: int) -> None:
        if page_index < 0 or page_index >= self.document.page_count:
            raise IndexError(f"page index {page_index} out of range")
        self._park()
        layout = self.layout
        cursor, remaining = self._parked.pop(
            page_index, (layout.content_top, layout.content_height)
        )
        self.state.page_index = page_index
        self.state.page_number = page_index + 1
        self.state.cursor_y = cursor
        self.state.remaining_height = remaining
        if self.phase == "idle":
            self.phase = "on-page"

    def content_area(self) -> DocRect:
        layout = self.layout
        return DocRect(
            x=layout.margins.left,
            y=layout.content_bottom,
            width=layout.content_width,
            height=layout.content_height,
        )

    def page_margins(self) -> Margins:
        return self.layout.margins

    def snapshot(self) -> ContentFlowState:
        return replace(self.state)

    def config_warnings(self) -> list[str]:
        return self.layout.validate()

    def finalize(self) -> int:
        self.phase = "finalizing"
        self.state.total_pages_estimate = self.document.page_count
        return self.document.page_count

    def _require_open(self) -> None:
        if self.phase == "finalizing":
            raise RuntimeError("content flow is finalized; no more pages can be added")

    def _park(self) -> None:
        if self.state.page_index is not None:
            self._parked[self.state.page_index] = (
                self.state.cursor_y,
                self.state.remaining_height,
            )

    def _enter(self, index: int) -> None:
        self.state.page_index = index
        self.state.page_number = index + 1
        self.state.cursor_y = self.layout.content_top
        self.state.remaining_height = self.layout.content_height

    def _stamp(self, index: int) -> None:
        layout = self.layout
        width, height = self.document.page_size(index)
        if layout.header.enabled:
            top = height - layout.margins.top - BAND_TEXT_INSET
            self._stamp_band(index, layout.header, width, top)
        if layout.footer.enabled:
            self._stamp_band(index, layout.footer, width, layout.margins.bottom + BAND_TEXT_INSET)

        numbering = layout.numbering
        if not numbering.enabled or index + 1 < numbering.start_page:
            return
        position = numbering.position
        if position.startswith("top"):
            y = height - layout.margins.top - BAND_TEXT_INSET
        else:
            y = layout.margins.bottom + BAND_TEXT_INSET
        if position.endswith("left"):
            x, anchor = layout.margins.left, "left"
        elif position.endswith("right"):
            x, anchor = width - layout.margins.right, "right"
        else:
            x, anchor = width / 2, "center"
        self.document.draw_text(
            index,
            numbering.text,
            x,
            y,
            size=numbering.font_size,
            color=numbering.color,
            anchor=anchor,
        )

    def _stamp_band(self, index: int, band: BandSpec, page_width: float, y: float) -> None:
        margins = self.layout.margins
        if band.alignment == "left":
            x = margins.left
        elif band.alignment == "right":
            x = page_width - margins.right
        else:
            x = page_width / 2
        self.document.draw_text(
            index,
            band.text,
            x,
            y,
            size=band.font_size,
            color=band.color,
            anchor=band.alignment,
        )
