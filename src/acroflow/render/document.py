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

"""PDF assembly: fpdf2 draws the page layer, PyMuPDF adds AcroForm widgets.

All coordinates accepted here are PDF points with the origin at the bottom-left
of the page. Drawing operations are recorded per page and replayed when the
document is serialized, so text that depends on the final page count (``Page 3
of 7``) is resolved only once that count is known.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import fitz
from fpdf import FPDF
from fpdf.errors import FPDFException

from ..core.errors import DocumentError, DuplicateFieldError
from ..core.models import RGB, Alignment, DocRect, DocumentMetadata, FieldKind
from .geometry import top_down_y

TextSource = str | Callable[[int, int], str]

_FONT_FAMILY = "Helvetica"
_WIDGET_FONT = "Helv"
# Core PDF fonts every viewer ships; no font file is embedded for these.
STANDARD_FONTS: dict[str, str] = {
    "helvetica": "Helvetica",
    "times": "Times",
    "timesroman": "Times",
    "courier": "Courier",
    "symbol": "Symbol",
    "zapfdingbats": "ZapfDingbats",
}
_QUADDING: dict[str, int] = {"left": 0, "center": 1, "right": 2}

_WIDGET_TYPES: dict[str, int] = {
    "text": fitz.PDF_WIDGET_TYPE_TEXT,
    "checkbox": fitz.PDF_WIDGET_TYPE_CHECKBOX,
    "radio": fitz.PDF_WIDGET_TYPE_RADIOBUTTON,
    "dropdown": fitz.PDF_WIDGET_TYPE_COMBOBOX,
    "listbox": fitz.PDF_WIDGET_TYPE_LISTBOX,
    "button": fitz.PDF_WIDGET_TYPE_BUTTON,
    "signature": fitz.PDF_WIDGET_TYPE_TEXT,
}


@dataclass(frozen=True)
class FieldHandle:
    name: str
    kind: FieldKind


@dataclass(frozen=True)
class WidgetStyle:
    font_size: float
    border_width: float
    border_color: RGB | None = None
    background_color: RGB | None = None
    text_color: RGB | None = None
    alignment: Alignment | None = None


@dataclass(frozen=True)
class WidgetPlacement:
    handle: FieldHandle
    page_index: int
    rect: DocRect
    style: WidgetStyle
    value: str | bool | None = None
    choices: tuple[str, ...] = ()
    caption: str | None = None
    script: str | None = None
    # Radio option value, stored as the widget's alternate name.
    export_value: str | None = None
    max_length: int | None = None
    multiline: bool = False
    password: bool = False
    editable: bool = False
    # List boxes: every selected option, and the list flags.
    selected: tuple[str, ...] = ()
    multiselect: bool = False
    sort: bool = False
    required: bool = False


@dataclass(frozen=True)
class TextOp:
    text: TextSource
    x: float
    y: float
    size: float = 12.0
    color: RGB = (0.0, 0.0, 0.0)
    bold: bool = False
    italic: bool = False
    underline: bool = False
    font: str = _FONT_FAMILY
    # x is the left edge, the centre or the right edge of the rendered string.
    anchor: Alignment = "left"


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    border_color: RGB | None = None
    fill_color: RGB | None = None
    border_width: float = 1.0
    radius: float = 0.0
    opacity: float | None = None


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: RGB = (0.0, 0.0, 0.0)
    width: float = 1.0


@dataclass(frozen=True)
class ImageOp:
    # A file path or the encoded image bytes.
    source: str | bytes
    x: float
    y: float
    width: float
    height: float


DrawOp = TextOp | RectOp | LineOp | ImageOp


@dataclass
class _Page:
    width: float
    height: float
    ops: list[DrawOp] = field(default_factory=list)


class FormDocument:
    def __init__(
        self,
        *,
        base_pdf: bytes | None = None,
        page_sizes: list[tuple[float, float]] | None = None,
    ) -> None:
        self._base_pdf = base_pdf
        self._pages: list[_Page] = [_Page(width=w, height=h) for w, h in page_sizes or []]
        self._base_page_count = len(self._pages) if base_pdf is not None else 0
        self._fields: dict[str, FieldHandle] = {}
        self._widgets: list[WidgetPlacement] = []
        self._metadata: DocumentMetadata | None = None
        # (family, style, path) of every font file registered with embed_font.
        self._fonts: list[tuple[str, str, str]] = []
        self._metrics = FPDF(unit="pt")

    @classmethod
    def blank(cls) -> "FormDocument":
        return cls()

    @classmethod
    def from_pdf(cls, data: bytes) -> "FormDocument":
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                sizes = [(page.rect.width, page.rect.height) for page in doc]
        except (RuntimeError, ValueError) as exc:
            raise DocumentError(f"unable to read rendered PDF: {exc}") from exc
        if not sizes:
            raise DocumentError("rendered PDF has no pages")
        return cls(base_pdf=data, page_sizes=sizes)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def fields(self) -> Mapping[str, FieldHandle]:
        return dict(self._fields)

    @property
    def widgets(self) -> tuple[WidgetPlacement, ...]:
        return tuple(self._widgets)

    def page_size(self, page_index: int) -> tuple[float, float]:
        page = self._page(page_index)
        return page.width, page.height

    def page_ops(self, page_index: int) -> tuple[DrawOp, ...]:
        return tuple(self._page(page_index).ops)

    def add_page(self, width: float, height: float) -> int:
        self._pages.append(_Page(width=width, height=height))
        return len(self._pages) - 1

    def create_field(self, name: str, kind: FieldKind) -> FieldHandle:
        if not name:
            raise ValueError("field name must be a non-empty string")
        if name in self._fields:
            raise DuplicateFieldError(name)
        handle = FieldHandle(name=name, kind=kind)
        self._fields[name] = handle
        return handle

    def place_field(self, placement: WidgetPlacement) -> None:
        if placement.handle.name not in self._fields:
            raise ValueError(f"field {placement.handle.name!r} was not created")
        self._page(placement.page_index)
        self._widgets.append(placement)

    def draw_text(
        self,
        page_index: int,
        text: TextSource,
        x: float,
        y: float,
        *,
        size: float = 12.0,
        color: RGB = (0.0, 0.0, 0.0),
        bold: bool = False,
        italic: bool = False,
        underline: bool = False,
        anchor: Alignment = "left",
        font: str | None = None,
    ) -> None:
        self._page(page_index).ops.append(
            TextOp(
                text=text,
                x=x,
                y=y,
                size=size,
                color=color,
                bold=bold,
                italic=italic,
                underline=underline,
                font=font or _FONT_FAMILY,
                anchor=anchor,
            )
        )

    def draw_rect(
        self,
        page_index: int,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        border_color: RGB | None = (0.0, 0.0, 0.0),
        fill_color: RGB | None = None,
        border_width: float = 1.0,
        radius: float = 0.0,
        opacity: float | None = None,
    ) -> None:
        self._page(page_index).ops.append(
            RectOp(
                x=x,
                y=y,
                width=width,
                height=height,
                border_color=border_color,
                fill_color=fill_color,
                border_width=border_width,
                radius=radius,
                opacity=opacity,
            )
        )

    def draw_line(
        self,
        page_index: int,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        color: RGB = (0.0, 0.0, 0.0),
        width: float = 1.0,
    ) -> None:
        self._page(page_index).ops.append(
            LineOp(x1=x1, y1=y1, x2=x2, y2=y2, color=color, width=width)
        )

    def draw_image(
        self,
        page_index: int,
        source: str | bytes,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """Place a PNG or JPEG image; ``(x, y)`` is its bottom-left corner."""
        if width <= 0 or height <= 0:
            raise ValueError("image width and height must be positive")
        if not source:
            raise ValueError("image source must not be empty")
        self._page(page_index).ops.append(
            ImageOp(source=source, x=x, y=y, width=width, height=height)
        )

    def embed_font(self, family: str, path: str | Path, *, style: str = "") -> str:
        """Register a TrueType font file; draw with it by passing ``font=family``."""
        if not family:
            raise ValueError("font family must be a non-empty string")
        fname = str(path)
        try:
            self._metrics.add_font(family, style=style, fname=fname)
        except (OSError, FPDFException) as exc:
            raise DocumentError(f"unable to load font {fname}: {exc}") from exc
        self._fonts.append((family, style, fname))
        return family

    def embed_standard_font(self, name: str) -> str:
        family = STANDARD_FONTS.get(name.replace(" ", "").lower())
        if family is None:
            raise ValueError(f"unknown standard font: {name}")
        return family

    def text_width(
        self, text: str, size: float, *, bold: bool = False, font: str = _FONT_FAMILY
    ) -> float:
        self._metrics.set_font(font, style="B" if bold else "", size=size)
        return self._metrics.get_string_width(text)

    def set_metadata(self, metadata: DocumentMetadata) -> None:
        self._metadata = metadata

    def serialize(self, *, flatten: bool = False) -> bytes:
        """Write the PDF; ``flatten`` bakes every widget into static page content."""
        if not self._pages:
            raise DocumentError("document has no pages")
        try:
            layer = self._render_layer()
            if self._base_pdf is None:
                doc = fitz.open(stream=layer, filetype="pdf")
            else:
                doc = self._merge_layer(layer)
            try:
                for placement in self._widgets:
                    _add_widget(doc, placement, self._pages[placement.page_index].height)
                if self._metadata is not None:
                    _apply_metadata(doc, self._metadata)
                if flatten:
                    doc.bake(annots=True, widgets=True)
                return doc.tobytes(garbage=3, deflate=True)
            finally:
                doc.close()
        except (FPDFException, OSError) as exc:
            raise DocumentError(f"unable to draw page layer: {exc}") from exc
        except (RuntimeError, ValueError) as exc:
            raise DocumentError(f"unable to serialize PDF: {exc}") from exc

    def _page(self, page_index: int) -> _Page:
        if page_index < 0 or page_index >= len(self._pages):
            raise IndexError(f"page index {page_index} out of range (0..{len(self._pages) - 1})")
        return self._pages[page_index]

    def _render_layer(self) -> bytes:
        first = self._pages[0]
        pdf = FPDF(unit="pt", format=(first.width, first.height))
        pdf.set_auto_page_break(False)
        pdf.set_margins(0, 0, 0)
        for family, style, fname in self._fonts:
            pdf.add_font(family, style=style, fname=fname)
        total = len(self._pages)
        for index, page in enumerate(self._pages):
            pdf.add_page(format=(page.width, page.height))
            for op in page.ops:
                _replay(pdf, op, page.height, page_number=index + 1, total_pages=total)
        return bytes(pdf.output())

    def _merge_layer(self, layer: bytes) -> fitz.Document:
        doc = fitz.open(stream=self._base_pdf, filetype="pdf")
        for page in self._pages[self._base_page_count :]:
            doc.new_page(width=page.width, height=page.height)
        if not any(page.ops for page in self._pages):
            return doc
        with fitz.open(stream=layer, filetype="pdf") as overlay:
            for index, page in enumerate(self._pages):
                if index < self._base_page_count and not page.ops:
                    continue
                target = doc[index]
                target.show_pdf_page(target.rect, overlay, index, overlay=True)
        return doc


def _replay(
    pdf: FPDF,
    op: DrawOp,
    page_height: float,
    *,
    page_number: int,
    total_pages: int,
) -> None:
    if isinstance(op, TextOp):
        text = op.text(page_number, total_pages) if callable(op.text) else op.text
        if not text:
            return
        style = "".join(
            flag for flag, on in (("B", op.bold), ("I", op.italic), ("U", op.underline)) if on
        )
        pdf.set_font(op.font, style=style, size=op.size)
        pdf.set_text_color(*_rgb255(op.color))
        x = op.x
        if op.anchor != "left":
            width = pdf.get_string_width(text)
            x -= width / 2 if op.anchor == "center" else width
        pdf.text(x, top_down_y(page_height, op.y), text)
        return
    if isinstance(op, LineOp):
        pdf.set_draw_color(*_rgb255(op.color))
        pdf.set_line_width(op.width)
        pdf.line(op.x1, top_down_y(page_height, op.y1), op.x2, top_down_y(page_height, op.y2))
        return
    if isinstance(op, ImageOp):
        _place_image(pdf, op, top_down_y(page_height, op.y, op.height))
        return

    stroke = op.border_color is not None and op.border_width > 0
    fill = op.fill_color is not None
    if not stroke and not fill:
        return
    style = ("D" if stroke else "") + ("F" if fill else "")
    if stroke:
        pdf.set_draw_color(*_rgb255(cast(RGB, op.border_color)))
        pdf.set_line_width(op.border_width)
    if fill:
        pdf.set_fill_color(*_rgb255(cast(RGB, op.fill_color)))
    kwargs: dict[str, Any] = {}
    radius = min(op.radius, op.width / 2, op.height / 2)
    if radius > 0:
        kwargs = {"round_corners": True, "corner_radius": radius}
    top = top_down_y(page_height, op.y, op.height)
    if op.opacity is not None and op.opacity < 1:
        with pdf.local_context(fill_opacity=op.opacity, stroke_opacity=op.opacity):
            pdf.rect(op.x, top, op.width, op.height, style=style, **kwargs)
    else:
        pdf.rect(op.x, top, op.width, op.height, style=style, **kwargs)


def _place_image(pdf: FPDF, op: ImageOp, top: float) -> None:
    if isinstance(op.source, str):
        pdf.image(op.source, x=op.x, y=top, w=op.width, h=op.height)
        return
    with tempfile.NamedTemporaryFile(delete=False, suffix=".img") as handle:
        handle.write(op.source)
        temp_path = handle.name
    try:
        pdf.image(temp_path, x=op.x, y=top, w=op.width, h=op.height)
    finally:
        Path(temp_path).unlink(missing_ok=True)


def _rgb255(color: RGB) -> tuple[int, int, int]:
    r, g, b = color
    return (round(r * 255), round(g * 255), round(b * 255))


def _widget_rect(rect: DocRect, page_height: float) -> fitz.Rect:
    top = top_down_y(page_height, rect.y, rect.height)
    return fitz.Rect(rect.x, top, rect.x + rect.width, top + rect.height)


def _add_widget(doc: fitz.Document, placement: WidgetPlacement, page_height: float) -> None:
    kind = placement.handle.kind
    style = placement.style
    widget = fitz.Widget()
    widget.field_type = _WIDGET_TYPES[kind]
    widget.field_name = placement.handle.name
    widget.rect = _widget_rect(placement.rect, page_height)
    widget.text_font = _WIDGET_FONT
    widget.text_fontsize = style.font_size
    widget.border_width = style.border_width
    widget.text_color = style.text_color or (0.0, 0.0, 0.0)
    if style.border_color is not None:
        widget.border_color = style.border_color
    if style.background_color is not None:
        widget.fill_color = style.background_color

    flags = 0
    if placement.required:
        flags |= fitz.PDF_FIELD_IS_REQUIRED
    if kind in ("text", "signature"):
        widget.field_value = str(placement.value or "")
        if placement.max_length:
            widget.text_maxlen = placement.max_length
        if placement.multiline:
            flags |= fitz.PDF_TX_FIELD_IS_MULTILINE
        if placement.password:
            flags |= fitz.PDF_TX_FIELD_IS_PASSWORD
    elif kind in ("checkbox", "radio"):
        # The on state can only be set once the widget exists in the document.
        widget.field_value = False
        if placement.export_value is not None:
            widget.field_label = placement.export_value
    elif kind == "dropdown":
        widget.choice_values = list(placement.choices)
        if placement.value:
            widget.field_value = str(placement.value)
        if placement.editable:
            flags |= fitz.PDF_CH_FIELD_IS_EDIT
    elif kind == "listbox":
        widget.choice_values = list(placement.choices)
        if placement.selected:
            widget.field_value = placement.selected[0]
        if placement.multiselect:
            flags |= fitz.PDF_CH_FIELD_IS_MULTI_SELECT
        if placement.sort:
            flags |= fitz.PDF_CH_FIELD_IS_SORT
    elif kind == "button":
        widget.button_caption = placement.caption or ""
        if placement.script:
            widget.script = placement.script
    widget.field_flags = flags

    annot = doc[placement.page_index].add_widget(widget)
    if kind in ("checkbox", "radio") and placement.value:
        annot.field_value = True
        annot.update()
    if kind == "listbox" and placement.multiselect and len(placement.selected) > 1:
        select_options(doc, annot, placement.selected)
    if style.alignment is not None and kind in ("text", "signature", "dropdown"):
        doc.xref_set_key(annot.xref, "Q", str(_QUADDING[style.alignment]))


def select_options(doc: fitz.Document, widget: fitz.Widget, values: Sequence[str]) -> None:
    """Write a multi-value selection straight into the field's ``/V`` array."""
    array = "".join(fitz.get_pdf_str(value) for value in values)
    doc.xref_set_key(widget.xref, "V", f"[{array}]")


def _apply_metadata(doc: fitz.Document, metadata: DocumentMetadata) -> None:
    current = {
        key: value
        for key, value in (doc.metadata or {}).items()
        if key in {"title", "author", "subject", "keywords", "creator", "producer"} and value
    }
    current.update(metadata.to_fitz())
    doc.set_metadata(current)
