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

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

import fitz

from ..core.errors import DocumentError
from .document import select_options

_OFF_STATES = frozenset({"", "Off", "false", "False"})
_TEXT_TYPES = frozenset(
    {fitz.PDF_WIDGET_TYPE_TEXT, fitz.PDF_WIDGET_TYPE_COMBOBOX, fitz.PDF_WIDGET_TYPE_LISTBOX}
)
_PDF_STRING_RE = re.compile(r"\((?:[^()\\]|\\.)*\)|<[0-9A-Fa-f]*>")


@dataclass(frozen=True)
class FillResult:
    data: bytes
    filled: tuple[str, ...]
    missing: tuple[str, ...]


def _open(pdf: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=pdf, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise DocumentError(f"unable to open PDF: {exc}") from exc


def _widgets(doc: fitz.Document) -> Iterator[fitz.Widget]:
    for page in doc:
        yield from page.widgets() or []


def _is_on(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return value is not None and str(value) not in _OFF_STATES


def fill_form(pdf: bytes, data: Mapping[str, object]) -> FillResult:
    """Set field values by name; names with no matching widget are reported.

    A list of strings selects several options of a multi-select list box.
    """
    doc = _open(pdf)
    try:
        filled: set[str] = set()
        for widget in _widgets(doc):
            name = widget.field_name
            if name not in data:
                continue
            value = data[name]
            if widget.field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
                widget.field_value = _is_on(value)
            elif widget.field_type == fitz.PDF_WIDGET_TYPE_RADIOBUTTON:
                widget.field_value = widget.field_label == str(value)
            elif widget.field_type == fitz.PDF_WIDGET_TYPE_LISTBOX and isinstance(value, list):
                _select(doc, widget, [str(item) for item in value])
                filled.add(name)
                continue
            elif widget.field_type in _TEXT_TYPES:
                widget.field_value = "" if value is None else str(value)
            else:
                continue
            widget.update()
            filled.add(name)
        missing = tuple(name for name in data if name not in filled)
        return FillResult(
            data=doc.tobytes(garbage=3, deflate=True),
            filled=tuple(sorted(filled)),
            missing=missing,
        )
    except (RuntimeError, ValueError) as exc:
        raise DocumentError(f"unable to fill form: {exc}") from exc
    finally:
        doc.close()


def extract_form_data(pdf: bytes) -> dict[str, object]:
    """Read every field value.

    Text and choice fields come back as ``str``, checkboxes as ``bool`` and radio
    groups as the value of the selected option (empty when none is selected).
    A list box with more than one selected option comes back as a ``list``.
    """
    doc = _open(pdf)
    try:
        values: dict[str, object] = {}
        for widget in _widgets(doc):
            name = widget.field_name
            if not name:
                continue
            if widget.field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
                values[name] = _is_on(widget.field_value)
            elif widget.field_type == fitz.PDF_WIDGET_TYPE_RADIOBUTTON:
                if _is_on(widget.field_value):
                    values[name] = widget.field_label or str(widget.field_value)
                else:
                    values.setdefault(name, "")
            elif widget.field_type == fitz.PDF_WIDGET_TYPE_LISTBOX:
                selected = _selection(doc, widget)
                values[name] = selected if len(selected) > 1 else widget.field_value or ""
            elif widget.field_type in _TEXT_TYPES:
                values[name] = widget.field_value or ""
        return values
    finally:
        doc.close()


def _select(doc: fitz.Document, widget: fitz.Widget, values: list[str]) -> None:
    widget.field_value = values[0] if values else ""
    widget.update()
    if len(values) > 1:
        select_options(doc, widget, values)


def _selection(doc: fitz.Document, widget: fitz.Widget) -> list[str]:
    kind, raw = doc.xref_get_key(widget.xref, "V")
    if kind != "array":
        return []
    return [_decode_pdf_string(token) for token in _PDF_STRING_RE.findall(raw)]


def _decode_pdf_string(token: str) -> str:
    if token.startswith("<"):
        data = bytes.fromhex(token[1:-1])
        if data.startswith(b"\xfe\xff"):
            return data[2:].decode("utf-16-be")
        return data.decode("latin-1")
    return re.sub(r"\\(.)", r"\1", token[1:-1])
