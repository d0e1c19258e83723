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
from collections.abc import Sequence
from dataclasses import dataclass

from ..core.models import RGB
from .flow import ContentFlowController
from .styles import DEFAULT_RESOLVER

CELL_PADDING = 5.0
HEADER_FONT_SIZE = 10.0
CELL_FONT_SIZE = 9.0
SECTION_HEIGHT = 40.0

_HEADER_COLOR: RGB = DEFAULT_RESOLVER.color("gray-800") or (0.0, 0.0, 0.0)
_CELL_COLOR: RGB = DEFAULT_RESOLVER.color("gray-700") or (0.0, 0.0, 0.0)
_SECTION_TEXT_COLOR: RGB = DEFAULT_RESOLVER.color("gray-600") or (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class TableFragment:
    """Rows ``[start, stop)`` of the grid drawn on one page.

    ``repeats_header`` fragments draw the header row above their own rows, so
    they hold one row fewer than the page capacity.
    """

    start: int
    stop: int
    repeats_header: bool = False
    breaks_before: bool = False

    @property
    def row_count(self) -> int:
        return self.stop - self.start

    @property
    def drawn_rows(self) -> int:
        return self.row_count + (1 if self.repeats_header else 0)


@dataclass(frozen=True)
class TableSplitPlan:
    fragments: tuple[TableFragment, ...]
    degraded: bool = False

    def covered_rows(self) -> list[int]:
        return [row for fragment in self.fragments for row in range(fragment.start, fragment.stop)]


@dataclass(frozen=True)
class TableGrid:
    """A ``rows`` x ``columns`` grid; with headers, row 0 is the header row."""

    rows: int
    columns: int
    cell_width: float
    cell_height: float
    headers: tuple[str, ...] = ()
    data: tuple[tuple[str, ...], ...] = ()
    x: float | None = None
    border_color: RGB = (0.0, 0.0, 0.0)
    border_width: float = 1.0

    @property
    def width(self) -> float:
        return self.columns * self.cell_width

    @property
    def height(self) -> float:
        return self.rows * self.cell_height

    def cell_text(self, row: int, column: int) -> str | None:
        if self.headers:
            if row == 0:
                return self.headers[column] if column < len(self.headers) else None
            row -= 1
        if row >= len(self.data) or column >= len(self.data[row]):
            return None
        return self.data[row][column]


def plan_split(
    rows: int,
    cell_height: float,
    first_capacity: float,
    page_capacity: float,
    *,
    has_header: bool = False,
) -> TableSplitPlan:
    """Cut ``rows`` into per-page fragments.

    ``first_capacity`` is the height left on the current page and
    ``page_capacity`` the content height of a fresh page. When a fresh page
    cannot hold a single row (plus the repeated header), one row per page is
    forced and the plan is marked ``degraded``.
    """
    if cell_height <= 0:
        raise ValueError("cell_height must be positive")
    if rows <= 0:
        return TableSplitPlan(fragments=())
    if rows * cell_height <= first_capacity:
        return TableSplitPlan(fragments=(TableFragment(0, rows),))

    minimum = 2 if has_header else 1
    per_page = math.floor(page_capacity / cell_height)
    degraded = per_page < minimum
    if degraded:
        per_page = minimum

    capacity = max(0, math.floor(first_capacity / cell_height))
    breaks_before = False
    if capacity < minimum:
        capacity = per_page
        breaks_before = True

    fragments: list[TableFragment] = []
    start = 0
    while start < rows:
        repeats = has_header and start > 0
        stop = min(rows, start + capacity - (1 if repeats else 0))
        fragments.append(TableFragment(start, stop, repeats, breaks_before))
        start = stop
        capacity = per_page
        breaks_before = True
    return TableSplitPlan(fragments=tuple(fragments), degraded=degraded)


class TableSplitter:
    def __init__(self, controller: ContentFlowController) -> None:
        self.controller = controller
        self.warnings: list[str] = []

    def split(self, grid: TableGrid) -> TableSplitPlan:
        controller = self.controller
        if not (controller.layout.auto_page_break and controller.layout.paginated):
            if controller.will_overflow(grid.height):
                controller.state.overflowed = True
            return TableSplitPlan(fragments=(TableFragment(0, grid.rows),) if grid.rows else ())
        plan = plan_split(
            grid.rows,
            grid.cell_height,
            controller.state.remaining_height,
            controller.layout.content_height,
            has_header=bool(grid.headers),
        )
        if plan.degraded:
            self.warnings.append(
                f"table cell height {grid.cell_height:.2f}pt does not fit the content area; "
                "placing one row per page"
            )
        return plan

    def draw(self, grid: TableGrid) -> TableSplitPlan:
        plan = self.split(grid)
        for fragment in plan.fragments:
            if fragment.breaks_before:
                self.controller.new_page()
            self._draw_fragment(grid, fragment)
        return plan

    def section(
        self,
        title: str,
        description: str = "",
        *,
        x: float | None = None,
        width: float | None = None,
    ) -> None:
        controller = self.controller
        controller.handle_overflow(SECTION_HEIGHT)
        document = controller.document
        page = controller.page_index
        left = controller.layout.margins.left if x is None else x
        band_width = controller.layout.content_width if width is None else width
        top = controller.cursor_y
        document.draw_rect(
            page,
            left,
            top - SECTION_HEIGHT,
            band_width,
            SECTION_HEIGHT - 5,
            border_color=(0.8, 0.8, 0.8),
            fill_color=(0.95, 0.95, 0.95),
        )
        document.draw_text(
            page, title, left + 10, top - 15, size=14, color=_HEADER_COLOR, bold=True
        )
        if description:
            document.draw_text(
                page, description, left + 10, top - 30, size=10, color=_SECTION_TEXT_COLOR
            )
        controller.advance(SECTION_HEIGHT)

    def _draw_fragment(self, grid: TableGrid, fragment: TableFragment) -> None:
        controller = self.controller
        document = controller.document
        page = controller.page_index
        left = controller.layout.margins.left if grid.x is None else grid.x
        top = controller.cursor_y
        height = fragment.drawn_rows * grid.cell_height
        bottom = top - height

        document.draw_rect(
            page,
            left,
            bottom,
            grid.width,
            height,
            border_color=grid.border_color,
            border_width=grid.border_width,
        )
        for column in range(1, grid.columns):
            line_x = left + column * grid.cell_width
            document.draw_line(page, line_x, bottom, line_x, top, color=grid.border_color)
        for row in range(1, fragment.drawn_rows):
            line_y = top - row * grid.cell_height
            document.draw_line(
                page, left, line_y, left + grid.width, line_y, color=grid.border_color
            )

        rows: Sequence[int] = range(fragment.start, fragment.stop)
        if fragment.repeats_header:
            rows = [0, *rows]
        for slot, row in enumerate(rows):
            is_header = bool(grid.headers) and row == 0
            size = HEADER_FONT_SIZE if is_header else CELL_FONT_SIZE
            baseline = top - slot * grid.cell_height - grid.cell_height / 2 - size / 3
            for column in range(grid.columns):
                text = grid.cell_text(row, column)
                if not text:
                    continue
                document.draw_text(
                    page,
                    text,
                    left + column * grid.cell_width + CELL_PADDING,
                    baseline,
                    size=size,
                    color=_HEADER_COLOR if is_header else _CELL_COLOR,
                    bold=is_header,
                )
        controller.advance(height)
