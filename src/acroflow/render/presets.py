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


"""Ready-made requests: a themed contact form and an invoice with computed totals.

Both render their markup from the packaged Jinja templates and place every
field by a ``.field-<name>`` class selector, so they run in rendered mode.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from ..core.models import (
    AnyFieldSpec,
    ButtonFieldSpec,
    CheckboxFieldSpec,
    DocumentMetadata,
    DropdownFieldSpec,
    SignatureFieldSpec,
    TextFieldSpec,
)
from .generator import GenerateRequest
from .templating import render_template

PresetTheme = Literal["blue", "green", "purple", "red"]
TemplateFieldType = Literal["text", "email", "phone", "select", "textarea", "checkbox"]

CREATOR = "acroflow"
PAYMENT_METHODS = ("Bank Transfer", "Credit Card", "PayPal", "Cash")

_GRADIENTS: dict[str, str] = {
    "blue": "from-blue-500 to-blue-700",
    "green": "from-green-500 to-green-700",
    "purple": "from-purple-500 to-purple-700",
    "red": "from-red-500 to-red-700",
}


@dataclass(frozen=True)
class TemplateField:
    label: str
    name: str
    type: TemplateFieldType = "text"
    required: bool = False
    # Choices of a "select" field.
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class InvoiceItem:
    description: str
    quantity: float
    price: float

    @property
    def total(self) -> float:
        return self.quantity * self.price


@dataclass(frozen=True)
class InvoiceData:
    company_name: str
    client_name: str
    items: tuple[InvoiceItem, ...] = ()
    invoice_number: str | None = None
    date: str | None = None
    due_date: str | None = None
    company_address: str | None = None
    client_address: str | None = None
    # Percentage, e.g. 20 for 20%.
    tax: float | None = None
    currency: str = "€"

    @property
    def subtotal(self) -> float:
        return sum(item.total for item in self.items)

    @property
    def tax_amount(self) -> float:
        return self.subtotal * self.tax / 100 if self.tax else 0.0

    @property
    def total(self) -> float:
        return self.subtotal + self.tax_amount


def form_template(
    title: str,
    fields: Sequence[TemplateField],
    *,
    description: str | None = None,
    theme: PresetTheme = "blue",
    submit_label: str | None = None,
) -> GenerateRequest:
    if theme not in _GRADIENTS:
        raise ValueError(f"unknown theme: {theme}")
    names = [item.name for item in fields]
    if len(set(names)) != len(names):
        raise ValueError("template field names must be unique")
    content = render_template(
        "form.html.j2",
        {
            "title": title,
            "description": description,
            "gradient": _GRADIENTS[theme],
            "fields": list(fields),
            "submit_label": submit_label or "Submit Form",
        },
    )
    specs: list[AnyFieldSpec] = [_form_field(item) for item in fields]
    specs.append(
        ButtonFieldSpec(
            name="submitBtn",
            selector=".field-submit",
            label=submit_label or "SUBMIT",
            action="submit",
            border_width=0,
        )
    )
    return GenerateRequest(
        content=content,
        fields=tuple(specs),
        metadata=DocumentMetadata(title=title, subject="Form", creator=CREATOR),
    )


def _form_field(item: TemplateField) -> AnyFieldSpec:
    selector = f".field-{item.name}"
    if item.type == "checkbox":
        return CheckboxFieldSpec(
            name=item.name,
            selector=selector,
            required=item.required,
            font_size=12,
            border_width=0,
            size=16,
            offset_x=1,
            offset_y=1,
        )
    if item.type == "select":
        return DropdownFieldSpec(
            name=item.name,
            selector=selector,
            required=item.required,
            font_size=12,
            border_width=0,
            options=item.options,
            offset_x=10,
            offset_y=-5,
        )
    return TextFieldSpec(
        name=item.name,
        selector=selector,
        required=item.required,
        font_size=12,
        border_width=0,
        multiline=item.type == "textarea",
        height=80 if item.type == "textarea" else None,
        offset_x=10,
        offset_y=-5,
    )


def invoice_template(data: InvoiceData) -> GenerateRequest:
    content = render_template(
        "invoice.html.j2",
        {
            "invoice": data,
            "currency": data.currency,
            "date": data.date or datetime.date.today().isoformat(),
        },
    )
    fields: tuple[AnyFieldSpec, ...] = (
        TextFieldSpec(
            name="invoiceNumber",
            selector=".field-invoice-number",
            default_value=data.invoice_number,
            font_size=14,
            border_width=0,
        ),
        TextFieldSpec(
            name="clientName",
            selector=".field-client-name",
            default_value=data.client_name,
            required=True,
            font_size=12,
            border_width=0,
        ),
        TextFieldSpec(
            name="clientAddress",
            selector=".field-client-address",
            default_value=data.client_address,
            multiline=True,
            font_size=11,
            border_width=0,
            height=60,
        ),
        DropdownFieldSpec(
            name="paymentMethod",
            selector=".field-payment-method",
            options=PAYMENT_METHODS,
            default_value=PAYMENT_METHODS[0],
            font_size=11,
            border_width=1,
        ),
        SignatureFieldSpec(
            name="signature",
            selector=".field-signature",
            height=60,
            border_width=1,
        ),
        CheckboxFieldSpec(name="isPaid", selector=".field-paid", size=16),
    )
    return GenerateRequest(
        content=content,
        fields=fields,
        metadata=DocumentMetadata(
            title=f"Invoice {data.invoice_number or ''}".strip(),
            author=data.company_name,
            subject="Invoice",
            creator=CREATOR,
        ),
        paper="A4",
    )
