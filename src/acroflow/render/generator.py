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

"""Rendered-mode pipeline: markup -> browser pages -> fields overlaid -> bytes."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..core.models import (
    AnyFieldSpec,
    DocumentMetadata,
    GenerationResult,
    Skipped,
    SkippedField,
)
from .compose import FieldComposer
from .document import FormDocument
from .flow import ContentFlowController
from .html_to_pdf import PageSetup, RenderEngine, Renderer
from .placement import PlacementResolver, query_all
from .spec import GeneratorOptions, PageLayoutConfig
from .styles import StyleResolver


@dataclass(frozen=True)
class GenerateRequest:
    content: str
    fields: tuple[AnyFieldSpec, ...] = ()
    custom_css: str | None = None
    metadata: DocumentMetadata | None = None
    paper: str = "A4"
    landscape: bool = False
    layout: PageLayoutConfig | None = None
    output_path: str | None = None
    # Bake widgets into page content; the result has no fillable fields.
    flatten: bool = False

    def page_layout(self) -> PageLayoutConfig:
        if self.layout is not None:
            return self.layout
        paper = PageLayoutConfig.for_paper(self.paper, landscape=self.landscape)
        return PageLayoutConfig.fixed(width=paper.width, height=paper.height)


class FormGenerator:
    def __init__(
        self,
        renderer: Renderer,
        options: GeneratorOptions | None = None,
        *,
        resolver: StyleResolver | None = None,
    ) -> None:
        self.renderer = renderer
        self.options = options or GeneratorOptions()
        self.composer = FieldComposer(self.options, resolver)

    async def generate(self, request: GenerateRequest) -> GenerationResult:
        layout = request.page_layout()
        setup = PageSetup(width=layout.width, height=layout.height)

        handle = await self.renderer.render(request.content, request.custom_css, setup)
        try:
            rects = await query_all(self.renderer, handle, request.fields)
            base_pdf = await self.renderer.export_pages(handle)
        finally:
            await self.renderer.release(handle)

        document = FormDocument.from_pdf(base_pdf)
        controller = ContentFlowController(document, layout)
        controller.adopt_pages()
        warnings = controller.config_warnings()

        placement = PlacementResolver(document.page_count, options=self.options)
        skipped: list[SkippedField] = []
        placed = 0
        for result in placement.resolve_all(request.fields, rects):
            if isinstance(result, Skipped):
                skipped.append(SkippedField(name=result.spec.name, reason=result.reason))
                warnings.append(f"field {result.spec.name!r} skipped: {result.reason}")
                continue
            self.composer.apply(document, result)
            placed += 1

        if request.metadata is not None:
            document.set_metadata(request.metadata)
        page_count = controller.finalize()
        data = await asyncio.to_thread(document.serialize, flatten=request.flatten)
        if request.output_path:
            await asyncio.to_thread(write_output, request.output_path, data)

        return GenerationResult(
            data=data,
            page_count=page_count,
            field_count=placed,
            skipped_fields=tuple(skipped),
            warnings=tuple(warnings),
            path=request.output_path,
        )

    async def generate_batch(self, requests: Sequence[GenerateRequest]) -> list[GenerationResult]:
        # One at a time; each call holds a browser page until it is serialized.
        results: list[GenerationResult] = []
        for request in requests:
            results.append(await self.generate(request))
        return results


async def generate_pdf(
    request: GenerateRequest,
    options: GeneratorOptions | None = None,
    *,
    resolver: StyleResolver | None = None,
) -> GenerationResult:
    options = options or GeneratorOptions()
    async with RenderEngine(options) as engine:
        return await FormGenerator(engine, options, resolver=resolver).generate(request)


def write_output(path: str, data: bytes) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
