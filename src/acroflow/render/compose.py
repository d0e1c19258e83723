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

"""Per-kind widget geometry and appearance.

Attribute precedence is explicit field value, then utility-class tokens, then
generator defaults.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import replace

from ..core.models import (
    RGB,
    ButtonFieldSpec,
    CheckboxFieldSpec,
    DocRect,
    DropdownFieldSpec,
    FieldSpec,
    ListboxFieldSpec,
    Placed,
    RadioFieldSpec,
    TextFieldSpec,
)
from .document import FieldHandle, FormDocument, WidgetPlacement, WidgetStyle
from .spec import GeneratorOptions
from .styles import DEFAULT_RESOLVER, StyleResolver

SIGNATURE_LABEL = "Signature:"
_SIGNATURE_BORDER: RGB = (0.5, 0.5, 0.5)
_SIGNATURE_LINE: RGB = (0.8, 0.8, 0.8)
_SIGNATURE_MARK: RGB = (0.7, 0.7, 0.7)
_LABEL_COLOR: RGB = (0.21, 0.21, 0.21)


def normalize_rgb(color: Sequence[float]) -> RGB:
    """Accept 0-1 or 0-255 channels; a channel above 1 is scaled, then clamped."""
    if len(color) != 3:
        raise ValueError(f"RGB color must have 3 channels, got {len(color)}")
    r, g, b = (_clamp(c / 255 if c > 1 else c) for c in color)
    return (r, g, b)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def radio_bounds(options: Sequence[DocRect]) -> float:
    if not options:
        return 0.0
    return max(rect.y + rect.height for rect in options) - min(rect.y for rect in options)


def shift_radio(options: Sequence[DocRect], delta: float) -> list[DocRect]:
    return [rect.moved(dy=delta) for rect in options]


def button_script(spec: ButtonFieldSpec) -> str | None:
    if spec.action == "reset":
        return "this.resetForm();"
    if spec.action == "submit":
        if spec.script:
            return f"this.submitForm({json.dumps(spec.script)});"
        return "this.submitForm();"
    return spec.script or None


class FieldComposer:
    def __init__(
        self,
        options: GeneratorOptions | None = None,
        resolver: StyleResolver | None = None,
    ) -> None:
        self.options = options or GeneratorOptions()
        self.resolver = resolver or DEFAULT_RESOLVER

    def compose(self, spec: FieldSpec) -> WidgetStyle:
        tokens = self.resolver.resolve(spec.classes)
        options = self.options
        font_size = _first(spec.font_size, tokens.font_size, options.default_font_size)
        border_width = _first(spec.border_width, tokens.border_width, options.default_border_width)
        border_color = _first(
            _normalized(spec.border_color), tokens.border_color, options.default_border_color
        )
        background = _first(_normalized(spec.background_color), tokens.background_color)
        text_color = _first(_normalized(spec.font_color), tokens.text_color)
        alignment = spec.alignment if isinstance(spec, TextFieldSpec) else None
        return WidgetStyle(
            font_size=font_size,
            border_width=border_width,
            border_color=border_color,
            background_color=background,
            text_color=text_color,
            alignment=alignment or tokens.text_align,
        )

    def radio_rects(self, spec: RadioFieldSpec, rect: DocRect) -> list[DocRect]:
        """One box per option, stacked downwards from ``rect`` at a fixed pitch."""
        size = spec.size or self.options.checkbox_size
        spacing = spec.spacing if spec.spacing is not None else self.options.radio_spacing
        return [
            DocRect(x=rect.x, y=rect.y - index * spacing, width=size, height=size)
            for index in range(len(spec.options))
        ]

    def apply(self, document: FormDocument, placed: Placed) -> FieldHandle:
        spec = placed.spec
        style = self.compose(spec)
        rect = replace(placed.rect, y=placed.pdf_y, flipped_y=None)
        handle = document.create_field(spec.name, spec.kind)
        page = placed.page_index

        if isinstance(spec, RadioFieldSpec):
            self._apply_radio(document, handle, spec, page, rect, style)
            return handle

        placement = WidgetPlacement(
            handle=handle, page_index=page, rect=rect, style=style, required=spec.required
        )
        if isinstance(spec, TextFieldSpec):
            placement = replace(
                placement,
                value=spec.default_value,
                max_length=spec.max_length,
                multiline=spec.multiline,
                password=spec.password,
            )
        elif isinstance(spec, CheckboxFieldSpec):
            placement = replace(placement, value=spec.default_value)
        elif isinstance(spec, DropdownFieldSpec):
            placement = replace(
                placement,
                value=spec.default_value,
                choices=spec.options,
                editable=spec.editable,
            )
        elif isinstance(spec, ListboxFieldSpec):
            placement = replace(
                placement,
                value=spec.default_values[0] if spec.default_values else None,
                choices=spec.options,
                selected=spec.default_values,
                multiselect=spec.multiselect,
                sort=spec.sort,
            )
        elif isinstance(spec, ButtonFieldSpec):
            placement = replace(placement, caption=spec.label, script=button_script(spec))
        elif spec.kind == "signature":
            self._draw_signature_chrome(document, page, rect)
        document.place_field(placement)
        return handle

    def _apply_radio(
        self,
        document: FormDocument,
        handle: FieldHandle,
        spec: RadioFieldSpec,
        page: int,
        rect: DocRect,
        style: WidgetStyle,
    ) -> None:
        for option, box in zip(spec.options, self.radio_rects(spec, rect)):
            document.place_field(
                WidgetPlacement(
                    handle=handle,
                    page_index=page,
                    rect=box,
                    style=style,
                    value=option.value == spec.default_value,
                    export_value=option.value,
                    required=spec.required,
                )
            )
            if option.label:
                document.draw_text(
                    page,
                    option.label,
                    box.x + box.width + 5,
                    box.y + box.height / 4,
                    size=style.font_size,
                    color=style.text_color or (0.0, 0.0, 0.0),
                )

    def _draw_signature_chrome(self, document: FormDocument, page: int, rect: DocRect) -> None:
        document.draw_rect(
            page,
            rect.x,
            rect.y,
            rect.width,
            rect.height,
            border_color=_SIGNATURE_BORDER,
        )
        document.draw_text(
            page, SIGNATURE_LABEL, rect.x, rect.y + rect.height + 5, size=10, color=_LABEL_COLOR
        )
        document.draw_line(
            page,
            rect.x + 5,
            rect.y + 5,
            rect.x + rect.width - 5,
            rect.y + 5,
            color=_SIGNATURE_LINE,
        )
        document.draw_text(
            page,
            "X",
            rect.x + rect.width - 20,
            rect.y + 10,
            size=16,
            color=_SIGNATURE_MARK,
            bold=True,
        )


def _normalized(color: Sequence[float] | None) -> RGB | None:
    return None if color is None else normalize_rgb(color)


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None
