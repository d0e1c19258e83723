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

from collections.abc import Mapping
from dataclasses import dataclass, field

import fitz

from acroflow.core.models import RawRect
from acroflow.render.html_to_pdf import PageSetup

# =============================================================================
# Documents
# =============================================================================


def blank_pdf(pages: int = 1, *, width: float = 595.28, height: float = 841.89) -> bytes:
    with fitz.open() as doc:
        for _ in range(pages):
            doc.new_page(width=width, height=height)
        return doc.tobytes()


def widget_map(pdf: bytes) -> dict[str, list[tuple[int, fitz.Widget]]]:
    """Widgets grouped by field name, each paired with its page index."""
    found: dict[str, list[tuple[int, fitz.Widget]]] = {}
    with fitz.open(stream=pdf, filetype="pdf") as doc:
        for page in doc:
            for widget in page.widgets() or []:
                found.setdefault(widget.field_name, []).append((page.number, widget))
    return found


def page_texts(pdf: bytes) -> list[str]:
    with fitz.open(stream=pdf, filetype="pdf") as doc:
        return [page.get_text() for page in doc]


def png_bytes(width: int = 4, height: int = 4) -> bytes:
    pixmap = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), False)
    pixmap.clear_with(200)
    return pixmap.tobytes("png")


# =============================================================================
# Renderer
# =============================================================================


@dataclass
class FakeRenderer:
    """Renderer that produces ``pages`` blank pages and answers selector queries from a table."""

    pages: int = 1
    rects: Mapping[str, RawRect] = field(default_factory=dict)
    queried: list[str] = field(default_factory=list)
    released: int = 0
    last_setup: PageSetup | None = None

    async def render(self, markup: str, styles: str | None, setup: PageSetup) -> str:
        self.last_setup = setup
        return markup

    async def query_rect(self, handle: str, selector: str) -> RawRect | None:
        self.queried.append(selector)
        return self.rects.get(selector)

    async def export_pages(self, handle: str) -> bytes:
        assert self.last_setup is not None
        return blank_pdf(self.pages, width=self.last_setup.width, height=self.last_setup.height)

    async def release(self, handle: str) -> None:
        self.released += 1
