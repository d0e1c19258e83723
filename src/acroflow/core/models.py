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

from dataclasses import dataclass, field, replace
from typing import ClassVar, Literal, Union

FieldKind = Literal[
    "text", "checkbox", "radio", "dropdown", "listbox", "button", "signature"
]
Alignment = Literal["left", "center", "right"]
ButtonAction = Literal["submit", "reset", "javascript"]
SkipReason = Literal["selector-not-found", "invalid-page", "no-position"]

RGB = tuple[float, float, float]

SKIP_SELECTOR_NOT_FOUND: SkipReason = "selector-not-found"
SKIP_INVALID_PAGE: SkipReason = "invalid-page"
SKIP_NO_POSITION: SkipReason = "no-position"

FIELD_KINDS: frozenset[str] = frozenset(
    {"text", "checkbox", "radio", "dropdown", "listbox", "button", "signature"}
)


@dataclass(frozen=True)
class RawRect:
    """Element box as reported by the browser: origin top-left, Y down, CSS pixels."""

    left: float
    top: float
    width: float
    height: float
    viewport_height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class DocRect:
    """Rectangle in PDF points, origin bottom-left, Y up."""

    x: float
    y: float
    width: float
    height: float
    flipped_y: float | None = None

    def moved(self, dx: float = 0.0, dy: float = 0.0) -> "DocRect":
        flipped = None if self.flipped_y is None else self.flipped_y + dy
        return replace(self, x=self.x + dx, y=self.y + dy, flipped_y=flipped)


@dataclass(frozen=True)
class RadioOption:
    value: str
    label: str | None = None


@dataclass(frozen=True)
class FieldSpec:
    kind: ClassVar[FieldKind]

    name: str
    selector: str | None = None
    position: DocRect | None = None
    page_index: int | None = None
    offset_x: float = 0.0
    offset_y: float = 0.0
    width: float | None = None
    height: float | None = None
    border_width: float | None = None
    background_color: RGB | None = None
    border_color: RGB | None = None
    font_color: RGB | None = None
    font_size: float | None = None
    required: bool = False
    classes: tuple[str, ...] = ()


@dataclass(frozen=True)
class TextFieldSpec(FieldSpec):
    kind: ClassVar[FieldKind] = "text"

    default_value: str | None = None
    multiline: bool = False
    max_length: int | None = None
    password: bool = False
    alignment: Alignment | None = None


@dataclass(frozen=True)
class CheckboxFieldSpec(FieldSpec):
    kind: ClassVar[FieldKind] = "checkbox"

    default_value: bool = False
    size: float | None = None


@dataclass(frozen=True)
class RadioFieldSpec(FieldSpec):
    kind: ClassVar[FieldKind] = "radio"

    options: tuple[RadioOption, ...] = ()
    default_value: str | None = None
    spacing: float | None = None
    size: float | None = None


@dataclass(frozen=True)
class DropdownFieldSpec(FieldSpec):
    kind: ClassVar[FieldKind] = "dropdown"

    options: tuple[str, ...] = ()
    default_value: str | None = None
    editable: bool = False


@dataclass(frozen=True)
class ListboxFieldSpec(FieldSpec):
    """Scrolling option list; with ``multiselect`` every default value is selected."""

    kind: ClassVar[FieldKind] = "listbox"

    options: tuple[str, ...] = ()
    default_values: tuple[str, ...] = ()
    multiselect: bool = False
    sort: bool = False


@dataclass(frozen=True)
class ButtonFieldSpec(FieldSpec):
    kind: ClassVar[FieldKind] = "button"

    label: str = ""
    action: ButtonAction | None = None
    script: str | None = None


@dataclass(frozen=True)
class SignatureFieldSpec(FieldSpec):
    kind: ClassVar[FieldKind] = "signature"


AnyFieldSpec = Union[
    TextFieldSpec,
    CheckboxFieldSpec,
    RadioFieldSpec,
    DropdownFieldSpec,
    ListboxFieldSpec,
    ButtonFieldSpec,
    SignatureFieldSpec,
]

FIELD_SPEC_TYPES: dict[str, type[FieldSpec]] = {
    "text": TextFieldSpec,
    "checkbox": CheckboxFieldSpec,
    "radio": RadioFieldSpec,
    "dropdown": DropdownFieldSpec,
    "listbox": ListboxFieldSpec,
    "button": ButtonFieldSpec,
    "signature": SignatureFieldSpec,
}


@dataclass(frozen=True)
class Placed:
    spec: FieldSpec
    rect: DocRect
    page_index: int
    from_selector: bool = False

    @property
    def pdf_y(self) -> float:
        """Bottom edge used for drawing; selector boxes carry a flipped ordinate."""
        if self.from_selector and self.rect.flipped_y is not None:
            return self.rect.flipped_y
        return self.rect.y


@dataclass(frozen=True)
class Skipped:
    spec: FieldSpec
    reason: SkipReason


Placement = Union[Placed, Skipped]


@dataclass(frozen=True)
class SkippedField:
    name: str
    reason: str


@dataclass(frozen=True)
class GenerationResult:
    data: bytes
    page_count: int
    field_count: int
    skipped_fields: tuple[SkippedField, ...] = ()
    warnings: tuple[str, ...] = ()
    path: str | None = None


@dataclass(frozen=True)
class DocumentMetadata:
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: tuple[str, ...] = field(default_factory=tuple)
    creator: str | None = None
    producer: str | None = None

    def to_fitz(self) -> dict[str, str]:
        values = {
            "title": self.title,
            "author": self.author,
            "subject": self.subject,
            "keywords": ", ".join(self.keywords) if self.keywords else None,
            "creator": self.creator,
            "producer": self.producer,
        }
        return {key: value for key, value in values.items() if value}
