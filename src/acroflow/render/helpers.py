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

"""Building blocks for common form layouts on top of a ``FlowSession``."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from ..core.models import (
    RGB,
    ButtonFieldSpec,
    CheckboxFieldSpec,
    DocRect,
    DropdownFieldSpec,
    FieldSpec,
    Placement,
    RadioFieldSpec,
    RadioOption,
    SignatureFieldSpec,
    TextFieldSpec,
)
from ..core.validation import NUMBER_PATTERN, ValidationRule, date_pattern
from .session import FlowSession

LABEL_FONT_SIZE = 11.0
COLUMN_SPACING = 20.0
_LABEL_COLOR: RGB = (0.21, 0.21, 0.21)
_REQUIRED_COLOR: RGB = (0.8, 0.2, 0.2)
_INPUT_CLASSES = (
    "bg-white",
    "border",
    "border-gray-300",
    "text-gray-900",
    "text-sm",
    "rounded",
    "p-2",
)

_NON_WORD_RE = re.compile(r"[^a-z0-9\s]")
_SPACE_RE = re.compile(r"\s+")

FormItemKind = Literal["text", "checkbox", "radio", "dropdown", "section"]
FormFieldKind = Literal["text", "number", "checkbox", "dropdown", "button"]


def generate_field_name(label: str) -> str:
    name = _NON_WORD_RE.sub("", label.lower())
    name = _SPACE_RE.sub("_", name)
    return name.strip("_")


def column_layout(
    page_width: float, columns: int, margin: float = 40.0
) -> tuple[float, list[float]]:
    """Return the column width and the x of every column."""
    if columns <= 0:
        raise ValueError("columns must be positive")
    available = page_width - 2 * margin
    width = (available - (columns - 1) * COLUMN_SPACING) / columns
    return width, [margin + index * (width + COLUMN_SPACING) for index in range(columns)]


def grid_layout(
    start_x: float,
    start_y: float,
    item_width: float,
    item_height: float,
    columns: int,
    count: int,
    *,
    spacing: float = 10.0,
) -> list[tuple[float, float]]:
    if columns <= 0:
        raise ValueError("columns must be positive")
    return [
        (
            start_x + (index % columns) * (item_width + spacing),
            start_y - (index // columns) * (item_height + spacing),
        )
        for index in range(count)
    ]


def add_field_label(
    session: FlowSession,
    text: str,
    x: float,
    y: float,
    *,
    required: bool = False,
    label_spacing: float = 20.0,
) -> None:
    page = session.controller.page_index
    document = session.document
    label_y = y + label_spacing
    document.draw_text(page, text, x, label_y, size=LABEL_FONT_SIZE, color=_LABEL_COLOR)
    if required:
        width = document.text_width(text, LABEL_FONT_SIZE)
        document.draw_text(
            page,
            "*",
            x + width + 2,
            label_y,
            size=LABEL_FONT_SIZE,
            color=_REQUIRED_COLOR,
            bold=True,
        )


def date_field(
    session: FlowSession,
    name: str,
    *,
    date_format: str = "MM/DD/YYYY",
    earliest: str | None = None,
    latest: str | None = None,
    position: DocRect | None = None,
    default_value: str | None = None,
    required: bool = False,
    auto_page_break: bool = True,
) -> Placement:
    placement = session.add_field(
        TextFieldSpec(
            name=name,
            position=position,
            default_value=default_value,
            required=required,
            classes=_INPUT_CLASSES,
        ),
        auto_page_break=auto_page_break,
    )
    session.set_field_validation(
        name,
        ValidationRule(
            kind="pattern",
            value=date_pattern(date_format),
            message=f"Date must be in format: {date_format}",
        ),
    )
    if earliest is not None or latest is not None:
        session.set_field_validation(
            name,
            ValidationRule(
                kind="date_range",
                message="Date is outside allowed range",
                date_format=date_format,
                earliest=earliest,
                latest=latest,
            ),
        )
    return placement


def number_field(
    session: FlowSession,
    name: str,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
    position: DocRect | None = None,
    default_value: str | None = None,
    required: bool = False,
    auto_page_break: bool = True,
) -> Placement:
    placement = session.add_field(
        TextFieldSpec(
            name=name,
            position=position,
            default_value=default_value,
            required=required,
            alignment="right",
            classes=_INPUT_CLASSES,
        ),
        auto_page_break=auto_page_break,
    )
    session.set_field_validation(
        name, ValidationRule(kind="pattern", value=NUMBER_PATTERN, message="Must be a valid number")
    )
    if minimum is not None or maximum is not None:
        low = "-inf" if minimum is None else f"{minimum:g}"
        high = "inf" if maximum is None else f"{maximum:g}"
        session.set_field_validation(
            name,
            ValidationRule(
                kind="number_range",
                message=f"Number must be between {low} and {high}",
                minimum=minimum,
                maximum=maximum,
            ),
        )
    return placement


def signature_block(
    session: FlowSession,
    name: str,
    *,
    position: DocRect | None = None,
    width: float | None = None,
    required: bool = False,
) -> Placement:
    # Room for the "Signature:" caption drawn above the box.
    session.controller.handle_overflow(session.options.signature_height + 20)
    placement = session.add_field(
        SignatureFieldSpec(name=name, position=position, width=width, required=required)
    )
    if required:
        session.set_field_validation(
            name, ValidationRule(kind="required", message="Signature is required")
        )
    return placement


@dataclass(frozen=True)
class FormItem:
    kind: FormItemKind
    label: str | None = None
    name: str | None = None
    required: bool = False
    options: tuple[str, ...] = ()
    description: str = ""

    @property
    def field_name(self) -> str | None:
        if self.name:
            return self.name
        return generate_field_name(self.label) if self.label else None


@dataclass(frozen=True)
class AutoFlowSettings:
    field_height: float = 25.0
    label_spacing: float = 20.0
    field_spacing: float = 30.0
    field_width: float = 300.0
    top_gap: float = 50.0
    indent: float = 20.0


def auto_flow_form(
    session: FlowSession,
    items: Sequence[FormItem],
    settings: AutoFlowSettings | None = None,
) -> list[str]:
    """Lay out labelled fields top to bottom from the cursor, breaking pages as needed.

    Returns the labels of items that had no usable field name.
    """
    settings = settings or AutoFlowSettings()
    controller = session.controller
    left = controller.content_area().x + settings.indent
    step = settings.field_height + settings.label_spacing + settings.field_spacing
    skipped: list[str] = []

    controller.advance(settings.top_gap)
    for item in items:
        if item.kind == "section":
            if item.label:
                session.tables.section(item.label, item.description, x=left - 10, width=400)
            continue

        block = step
        if item.kind == "radio" and len(item.options) > 1:
            block += (len(item.options) - 1) * session.options.radio_spacing
        if controller.handle_overflow(block):
            controller.advance(settings.top_gap)
        y = controller.cursor_y

        if item.label:
            add_field_label(
                session,
                item.label,
                left,
                y - settings.label_spacing,
                required=item.required,
                label_spacing=0,
            )

        name = item.field_name
        field_y = y - settings.label_spacing - settings.field_height
        spec: FieldSpec | None = None
        if not name:
            skipped.append(item.label or item.kind)
        elif item.kind == "text":
            spec = TextFieldSpec(
                name=name,
                position=DocRect(left, field_y, settings.field_width, settings.field_height),
                required=item.required,
            )
        elif item.kind == "checkbox":
            spec = CheckboxFieldSpec(
                name=name, position=DocRect(left, field_y, 15, 15), required=item.required
            )
        elif item.kind == "radio":
            spec = RadioFieldSpec(
                name=name,
                position=DocRect(left, field_y, 15, 15),
                options=tuple(RadioOption(value=option, label=option) for option in item.options),
                required=item.required,
            )
        elif item.kind == "dropdown":
            spec = DropdownFieldSpec(
                name=name,
                position=DocRect(left, field_y, settings.field_width, settings.field_height),
                options=item.options,
                required=item.required,
            )
        if spec is not None:
            session.add_field(spec, auto_page_break=False)
        controller.advance(block)
    return skipped


def form_field(
    session: FlowSession,
    kind: FormFieldKind,
    name: str,
    x: float,
    y: float,
    width: float,
    *,
    label: str | None = None,
    height: float = 25.0,
    required: bool = False,
    label_spacing: float = 20.0,
    options: tuple[str, ...] = (),
    button_label: str = "",
) -> float:
    """Add one labelled field with its top at ``y``; return the y for the next one."""
    if label:
        add_field_label(session, label, x, y, required=required, label_spacing=0)
        y -= label_spacing
    rect = DocRect(x, y - height, width, height)

    if kind == "number":
        number_field(session, name, position=rect, required=required, auto_page_break=False)
    else:
        spec: FieldSpec
        if kind == "text":
            spec = TextFieldSpec(name=name, position=rect, required=required)
        elif kind == "checkbox":
            box_width = width if width < 20 else 15.0
            box_height = height if height < 20 else 15.0
            box = DocRect(x, y - box_height, box_width, box_height)
            spec = CheckboxFieldSpec(name=name, position=box, required=required)
        elif kind == "dropdown":
            spec = DropdownFieldSpec(name=name, position=rect, options=options, required=required)
        else:
            spec = ButtonFieldSpec(name=name, position=rect, label=button_label or label or name)
        session.add_field(spec, auto_page_break=False)
    return y - height - 10
