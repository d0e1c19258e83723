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

"""Decide where each field lands: explicit rectangle, selector box or skip."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, Protocol

from ..core.models import (
    SKIP_INVALID_PAGE,
    SKIP_NO_POSITION,
    SKIP_SELECTOR_NOT_FOUND,
    CheckboxFieldSpec,
    DocRect,
    FieldSpec,
    Placed,
    Placement,
    RawRect,
    Skipped,
)
from .geometry import PDF_SCALE, infer_page_index, rebase_to_page, to_doc_space
from .spec import GeneratorOptions


class RectQuery(Protocol):
    async def query_rect(self, handle: Any, selector: str) -> RawRect | None: ...


def needs_query(spec: FieldSpec) -> bool:
    return spec.position is None and bool(spec.selector)


async def query_all(
    renderer: RectQuery,
    handle: Any,
    specs: Sequence[FieldSpec],
) -> dict[str, RawRect | None]:
    """Run every selector lookup concurrently; all finish before placement."""
    selectors = sorted({spec.selector for spec in specs if needs_query(spec) and spec.selector})
    rects = await asyncio.gather(*(renderer.query_rect(handle, selector) for selector in selectors))
    return dict(zip(selectors, rects))


class PlacementResolver:
    def __init__(
        self,
        page_count: int,
        *,
        options: GeneratorOptions | None = None,
        scale: float = PDF_SCALE,
    ) -> None:
        self.page_count = page_count
        self.options = options or GeneratorOptions()
        self.scale = scale

    def default_size(self, spec: FieldSpec) -> tuple[float, float]:
        options = self.options
        if isinstance(spec, CheckboxFieldSpec):
            size = spec.size or options.checkbox_size
            return size, size
        if spec.kind == "signature":
            return options.default_width, options.signature_height
        return options.default_width, options.default_height

    def resolve(self, spec: FieldSpec, raw: RawRect | None = None) -> Placement:
        inferred_page: int | None = None
        from_selector = False
        if spec.position is not None:
            rect = spec.position
        elif spec.selector:
            if raw is None:
                return Skipped(spec, SKIP_SELECTOR_NOT_FOUND)
            inferred_page = infer_page_index(raw)
            rect = to_doc_space(rebase_to_page(raw, inferred_page), self.scale)
            from_selector = True
        else:
            return Skipped(spec, SKIP_NO_POSITION)

        rect = self._sized(spec, rect.moved(spec.offset_x, spec.offset_y))

        if spec.page_index is not None:
            page_index = spec.page_index
        elif inferred_page is not None:
            page_index = inferred_page
        else:
            page_index = 0
        if page_index < 0 or page_index >= self.page_count:
            return Skipped(spec, SKIP_INVALID_PAGE)
        return Placed(spec=spec, rect=rect, page_index=page_index, from_selector=from_selector)

    def resolve_all(
        self,
        specs: Sequence[FieldSpec],
        rects: Mapping[str, RawRect | None],
    ) -> list[Placement]:
        return [
            self.resolve(spec, rects.get(spec.selector) if spec.selector else None)
            for spec in specs
        ]

    def _sized(self, spec: FieldSpec, rect: DocRect) -> DocRect:
        default_width, default_height = self.default_size(spec)
        width = _override(spec.width, rect.width, default_width)
        height = _override(spec.height, rect.height, default_height)
        return replace(rect, width=width, height=height)


def _override(explicit: float | None, measured: float, default: float) -> float:
    if explicit is not None:
        return explicit
    return measured if measured > 0 else default
