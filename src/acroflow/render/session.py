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

"""Flowing layout: pages are created on demand as content is appended.

A session owns everything mutable for one document (content cursor, field
registry, validation rules, conditional visibility) so independent sessions
never share state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, replace

from ..core.models import (
    SKIP_NO_POSITION,
    SKIP_SELECTOR_NOT_FOUND,
    RGB,
    DocRect,
    DocumentMetadata,
    FieldSpec,
    GenerationResult,
    Placed,
    Placement,
    RadioFieldSpec,
    Skipped,
    SkippedField,
)
from ..core.validation import ValidationRule, ValidationRules
from .compose import FieldComposer, radio_bounds, shift_radio
from .document import FieldHandle, FormDocument
from .flow import ContentFlowController
from .generator import GenerateRequest, write_output
from .placement import PlacementResolver
from .spec import FormTheme, GeneratorOptions, PageLayoutConfig
from .styles import StyleResolver
from .tables import TableGrid, TableSplitPlan, TableSplitter


@dataclass(frozen=True)
class ConditionalRule:
    """Show (or hide) ``field`` while ``depends_on`` equals ``value``."""

    field: str
    depends_on: str
    value: object
    show: bool = True


class FlowSession:
    def __init__(
        self,
        layout: PageLayoutConfig | None = None,
        *,
        options: GeneratorOptions | None = None,
        theme: FormTheme | None = None,
        resolver: StyleResolver | None = None,
    ) -> None:
        self.options = options or GeneratorOptions()
        self.theme = theme or FormTheme()
        self.document = FormDocument.blank()
        self.controller = ContentFlowController(self.document, layout)
        self.composer = FieldComposer(self.options, resolver)
        self.tables = TableSplitter(self.controller)
        self.rules = ValidationRules()
        self.conditions: dict[str, ConditionalRule] = {}
        self.skipped: list[SkippedField] = []
        self.field_count = 0
        self.controller.new_page()

    @property
    def layout(self) -> PageLayoutConfig:
        return self.controller.layout

    @property
    def fields(self) -> Mapping[str, FieldHandle]:
        return self.document.fields

    def add_field(self, spec: FieldSpec, *, auto_page_break: bool = True) -> Placement:
        """Place one field, breaking the page first when it would not fit.

        Fields without a position land at the cursor, left-aligned to the
        content area. Fields pinned to a page with ``page_index`` do not move
        the cursor. Selectors have nothing to resolve against here and are
        skipped.
        """
        if spec.position is None and spec.selector:
            return self._skip(Skipped(spec, SKIP_SELECTOR_NOT_FOUND))

        resolver = PlacementResolver(self.document.page_count, options=self.options)
        if spec.page_index is not None:
            if spec.position is None:
                return self._skip(Skipped(spec, SKIP_NO_POSITION))
            result = resolver.resolve(spec)
            if isinstance(result, Skipped):
                return self._skip(result)
            return self._place(result)

        width, height = resolver.default_size(spec)
        width = spec.width if spec.width is not None else width
        height = spec.height if spec.height is not None else height
        controller = self.controller
        if spec.position is not None:
            rect = replace(
                spec.position,
                width=spec.position.width or width,
                height=spec.position.height or height,
            )
        else:
            rect = DocRect(
                x=self.layout.margins.left,
                y=controller.cursor_y - height,
                width=width,
                height=height,
            )
        rect = rect.moved(spec.offset_x, spec.offset_y)

        if isinstance(spec, RadioFieldSpec):
            options = self.composer.radio_rects(spec, rect)
            block = radio_bounds(options)
            if options and auto_page_break:
                # The lowest box, not the block height, decides whether the group fits.
                reach = controller.cursor_y - min(option.y for option in options)
                if controller.handle_overflow(reach):
                    top = max(option.y + option.height for option in options)
                    options = shift_radio(options, controller.cursor_y - top)
                    rect = replace(rect, y=options[0].y)
                else:
                    block = reach
        else:
            block = rect.height
            if auto_page_break and controller.handle_overflow(block):
                rect = replace(rect, y=controller.cursor_y - rect.height)

        placed = self._place(Placed(spec=spec, rect=rect, page_index=controller.page_index))
        if auto_page_break:
            controller.advance(block + self.theme.field_spacing)
        return placed

    def draw_text(
        self,
        text: str,
        x: float | None = None,
        y: float | None = None,
        *,
        size: float | None = None,
        color: RGB | None = None,
        classes: str = "",
        auto_page_break: bool = True,
        line_height: float | None = None,
        font: str | None = None,
    ) -> None:
        styles = self.composer.resolver.resolve(classes)
        size = size or styles.font_size or self.theme.font_size
        color = color or styles.text_color or (0.0, 0.0, 0.0)
        line_height = line_height or size * 1.2
        controller = self.controller
        left = self.layout.margins.left if x is None else x
        baseline = controller.cursor_y - size if y is None else y
        lines = text.split("\n")
        for line in lines:
            if auto_page_break and controller.handle_overflow(line_height):
                baseline = controller.cursor_y - size
            controller.document.draw_text(
                controller.page_index,
                line,
                left,
                baseline,
                size=size,
                color=color,
                bold=styles.font_weight == "bold",
                italic=styles.font_style == "italic",
                underline=styles.text_decoration == "underline",
                font=font,
            )
            baseline -= line_height
            if auto_page_break:
                controller.advance(line_height)

    def draw_rect(
        self,
        width: float,
        height: float,
        x: float | None = None,
        y: float | None = None,
        *,
        border_color: RGB | None = None,
        fill_color: RGB | None = None,
        border_width: float | None = None,
        classes: str = "",
        auto_page_break: bool = True,
    ) -> None:
        styles = self.composer.resolver.resolve(classes)
        controller = self.controller
        bottom = controller.cursor_y - height if y is None else y
        if auto_page_break and controller.handle_overflow(height):
            bottom = controller.cursor_y - height
        controller.document.draw_rect(
            controller.page_index,
            self.layout.margins.left if x is None else x,
            bottom,
            width,
            height,
            border_color=border_color or styles.border_color or (0.0, 0.0, 0.0),
            fill_color=fill_color or styles.background_color,
            border_width=border_width if border_width is not None else (styles.border_width or 1.0),
            radius=styles.border_radius or 0.0,
            opacity=styles.opacity,
        )
        if auto_page_break:
            controller.advance(height)

    def draw_image(
        self,
        source: str | bytes,
        width: float,
        height: float,
        x: float | None = None,
        y: float | None = None,
        *,
        auto_page_break: bool = True,
    ) -> None:
        controller = self.controller
        bottom = controller.cursor_y - height if y is None else y
        if auto_page_break and controller.handle_overflow(height):
            bottom = controller.cursor_y - height
        controller.document.draw_image(
            controller.page_index,
            source,
            self.layout.margins.left if x is None else x,
            bottom,
            width,
            height,
        )
        if auto_page_break:
            controller.advance(height)

    def add_table(self, grid: TableGrid) -> TableSplitPlan:
        return self.tables.draw(grid)

    def add_section(self, title: str, description: str = "", *, width: float | None = None) -> None:
        self.tables.section(title, description, width=width)

    def add_spacing(self, height: float) -> None:
        self.controller.advance(height)

    def page_break(self) -> int:
        return self.controller.new_page()

    def set_field_validation(self, name: str, *rules: ValidationRule) -> None:
        self.rules.add(name, *rules)

    def set_conditional_logic(self, rule: ConditionalRule) -> None:
        self.conditions[rule.field] = rule

    def field_visibility(self, data: Mapping[str, object]) -> dict[str, bool]:
        visibility: dict[str, bool] = {}
        for name in self.document.fields:
            rule = self.conditions.get(name)
            if rule is None:
                visibility[name] = True
                continue
            matched = data.get(rule.depends_on) == rule.value
            visibility[name] = matched if rule.show else not matched
        return visibility

    def finish(
        self, metadata: DocumentMetadata | None = None, *, flatten: bool = False
    ) -> GenerationResult:
        if metadata is not None:
            self.document.set_metadata(metadata)
        page_count = self.controller.finalize()
        data = self.document.serialize(flatten=flatten)
        return GenerationResult(
            data=data,
            page_count=page_count,
            field_count=self.field_count,
            skipped_fields=tuple(self.skipped),
            warnings=tuple(self.warnings()),
        )

    async def finish_async(
        self, metadata: DocumentMetadata | None = None, *, flatten: bool = False
    ) -> GenerationResult:
        return await asyncio.to_thread(self.finish, metadata, flatten=flatten)

    def warnings(self) -> list[str]:
        warnings = self.controller.config_warnings()
        warnings.extend(self.tables.warnings)
        if self.controller.state.overflowed:
            warnings.append("content overflowed the printable area of at least one page")
        warnings.extend(f"field {item.name!r} skipped: {item.reason}" for item in self.skipped)
        return warnings

    def _place(self, placed: Placed) -> Placed:
        self.composer.apply(self.document, placed)
        self.field_count += 1
        return placed

    def _skip(self, skipped: Skipped) -> Skipped:
        self.skipped.append(SkippedField(name=skipped.spec.name, reason=skipped.reason))
        return skipped


def generate_flowing(
    request: GenerateRequest,
    options: GeneratorOptions | None = None,
    *,
    resolver: StyleResolver | None = None,
) -> GenerationResult:
    """Build a document from plain-text paragraphs followed by the request's fields."""
    layout = request.layout or PageLayoutConfig.for_paper(
        request.paper, landscape=request.landscape
    )
    session = FlowSession(layout, options=options, resolver=resolver)
    for paragraph in request.content.split("\n\n"):
        text = paragraph.strip()
        if not text:
            continue
        session.draw_text(text)
        session.add_spacing(session.theme.font_size)
    for spec in request.fields:
        session.add_field(spec)
    result = session.finish(request.metadata, flatten=request.flatten)
    if request.output_path:
        write_output(request.output_path, result.data)
        result = replace(result, path=request.output_path)
    return result
