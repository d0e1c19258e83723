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

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Literal

from ..core.models import RGB

BandContent = str | Callable[[int, int], str]
BandAlignment = Literal["left", "center", "right"]
NumberPosition = Literal[
    "top-left",
    "top-center",
    "top-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
]

# Page sizes in PDF points (width, height), portrait.
PAPER_SIZES_PT: dict[str, tuple[float, float]] = {
    "A3": (841.89, 1190.55),
    "A4": (595.28, 841.89),
    "A5": (419.53, 595.28),
    "LEGAL": (612.0, 1008.0),
    "LETTER": (612.0, 792.0),
    "TABLOID": (792.0, 1224.0),
}

DEFAULT_PAGE_WIDTH_PT, DEFAULT_PAGE_HEIGHT_PT = PAPER_SIZES_PT["A4"]


@dataclass(frozen=True)
class Margins:
    top: float = 50.0
    bottom: float = 50.0
    left: float = 50.0
    right: float = 50.0


@dataclass(frozen=True)
class BandSpec:
    enabled: bool = False
    height: float = 30.0
    content: BandContent = ""
    font_size: float = 12.0
    color: RGB = (0.0, 0.0, 0.0)
    alignment: BandAlignment = "center"

    def text(self, page_number: int, total_pages: int) -> str:
        if callable(self.content):
            return self.content(page_number, total_pages)
        return self.content or ""


@dataclass(frozen=True)
class PageNumberingSpec:
    enabled: bool = True
    position: NumberPosition = "bottom-center"
    format: str = "Page {current} of {total}"
    start_page: int = 1
    font_size: float = 10.0
    color: RGB = (0.3, 0.3, 0.3)

    def text(self, page_number: int, total_pages: int) -> str:
        return self.format.replace("{current}", str(page_number)).replace(
            "{total}", str(total_pages)
        )


@dataclass(frozen=True)
class PageLayoutConfig:
    """Per-session page geometry.

    ``header`` and ``footer`` heights reserve bands at the top and bottom of the
    content area even when the band text is disabled. Bands plus margins taller
    than the page leave a negative content height; that is a configuration error
    which is reported, not corrected.
    """

    width: float = DEFAULT_PAGE_WIDTH_PT
    height: float = DEFAULT_PAGE_HEIGHT_PT
    margins: Margins = field(default_factory=Margins)
    header: BandSpec = field(default_factory=BandSpec)
    footer: BandSpec = field(default_factory=BandSpec)
    numbering: PageNumberingSpec = field(default_factory=PageNumberingSpec)
    auto_page_break: bool = True
    paginated: bool = True

    @property
    def header_height(self) -> float:
        return self.header.height

    @property
    def footer_height(self) -> float:
        return self.footer.height

    @property
    def content_height(self) -> float:
        return (
            self.height
            - self.margins.top
            - self.margins.bottom
            - self.header.height
            - self.footer.height
        )

    @property
    def content_top(self) -> float:
        return self.height - self.margins.top - self.header.height

    @property
    def content_bottom(self) -> float:
        return self.margins.bottom + self.footer.height

    @property
    def content_width(self) -> float:
        return self.width - self.margins.left - self.margins.right

    @classmethod
    def for_paper(cls, paper: str, *, landscape: bool = False, **overrides) -> "PageLayoutConfig":
        key = paper.strip().upper()
        if key not in PAPER_SIZES_PT:
            raise ValueError(f"unknown paper size: {paper}")
        width, height = PAPER_SIZES_PT[key]
        if landscape:
            width, height = height, width
        return cls(width=width, height=height, **overrides)

    @classmethod
    def fixed(cls, **overrides) -> "PageLayoutConfig":
        """Layout for pages produced by the browser: no breaks, no stamped chrome."""
        base = cls(
            numbering=PageNumberingSpec(enabled=False),
            auto_page_break=False,
            paginated=False,
        )
        return replace(base, **overrides) if overrides else base

    def validate(self) -> list[str]:
        warnings: list[str] = []
        if self.width <= 0 or self.height <= 0:
            warnings.append(f"page size must be positive, got {self.width}x{self.height}")
        if self.content_height <= 0:
            warnings.append(
                "margins plus header/footer bands leave no content height "
                f"({self.content_height:.2f}pt); content will overflow"
            )
        if self.content_width <= 0:
            warnings.append(
                f"left/right margins leave no content width ({self.content_width:.2f}pt)"
            )
        return warnings


@dataclass(frozen=True)
class FormTheme:
    primary_color: RGB = (0.2, 0.4, 0.8)
    secondary_color: RGB = (0.5, 0.5, 0.5)
    error_color: RGB = (0.8, 0.2, 0.2)
    success_color: RGB = (0.2, 0.8, 0.2)
    warning_color: RGB = (0.8, 0.6, 0.2)
    font_family: str = "Helvetica"
    font_size: float = 12.0
    border_radius: float = 4.0
    field_spacing: float = 25.0
    label_position: Literal["top", "left", "right", "inline"] = "top"


@dataclass(frozen=True)
class GeneratorOptions:
    tailwind_cdn: str = "https://cdn.tailwindcss.com"
    default_font_size: float = 12.0
    default_border_width: float = 1.0
    default_border_color: RGB = (0.8, 0.8, 0.8)
    default_width: float = 200.0
    default_height: float = 20.0
    checkbox_size: float = 15.0
    radio_spacing: float = 25.0
    signature_height: float = 50.0
    settle_ms: int = 500
