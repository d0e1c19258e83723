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
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from .models import (
    ButtonFieldSpec,
    DropdownFieldSpec,
    FieldSpec,
    ListboxFieldSpec,
    RadioFieldSpec,
    TextFieldSpec,
)

PAPER_FORMATS = frozenset({"A3", "A4", "A5", "LEGAL", "LETTER", "TABLOID"})
DANGEROUS_TAGS = ("<script", "<iframe", "<object", "<embed")

DATE_PATTERNS: dict[str, str] = {
    "MM/DD/YYYY": r"^(0[1-9]|1[0-2])/(0[1-9]|[12][0-9]|3[01])/\d{4}$",
    "DD/MM/YYYY": r"^(0[1-9]|[12][0-9]|3[01])/(0[1-9]|1[0-2])/\d{4}$",
    "YYYY-MM-DD": r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])$",
    "MM-DD-YYYY": r"^(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])-\d{4}$",
}
_DATE_FORMATS: dict[str, str] = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "MM-DD-YYYY": "%m-%d-%Y",
}
NUMBER_PATTERN = r"^-?\d*\.?\d*$"

RuleKind = Literal["required", "min_length", "max_length", "pattern", "number_range", "date_range"]


def date_pattern(fmt: str) -> str:
    """Regex for a date format; unknown formats fall back to MM/DD/YYYY."""
    return DATE_PATTERNS.get(fmt, DATE_PATTERNS["MM/DD/YYYY"])


def is_blank(value: object) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass(frozen=True)
class ValidationRule:
    kind: RuleKind
    value: Any = None
    message: str = ""
    minimum: float | None = None
    maximum: float | None = None
    date_format: str = "MM/DD/YYYY"
    earliest: str | None = None
    latest: str | None = None

    def check(self, value: object) -> bool:
        if self.kind == "required":
            return not is_blank(value)
        if is_blank(value):
            # Only "required" rejects an empty value.
            return True
        text = str(value)
        if self.kind == "min_length":
            return len(text) >= int(self.value)
        if self.kind == "max_length":
            return len(text) <= int(self.value)
        if self.kind == "pattern":
            return re.search(str(self.value), text) is not None
        if self.kind == "number_range":
            return self._in_number_range(text)
        if self.kind == "date_range":
            return self._in_date_range(text)
        raise ValueError(f"unknown validation rule: {self.kind}")

    def _in_number_range(self, text: str) -> bool:
        try:
            number = float(text)
        except ValueError:
            return False
        if self.minimum is not None and number < self.minimum:
            return False
        return self.maximum is None or number <= self.maximum

    def _in_date_range(self, text: str) -> bool:
        fmt = _DATE_FORMATS.get(self.date_format, _DATE_FORMATS["MM/DD/YYYY"])
        try:
            moment = datetime.strptime(text, fmt)
        except ValueError:
            return False
        # Bounds use the same format as the value.
        if self.earliest is not None and moment < datetime.strptime(self.earliest, fmt):
            return False
        return self.latest is None or moment <= datetime.strptime(self.latest, fmt)


class ValidationRules:
    """Per-session registry of value rules keyed by field name."""

    def __init__(self) -> None:
        self._rules: dict[str, list[ValidationRule]] = {}

    def add(self, field_name: str, *rules: ValidationRule) -> None:
        self._rules.setdefault(field_name, []).extend(rules)

    def rules_for(self, field_name: str) -> tuple[ValidationRule, ...]:
        return tuple(self._rules.get(field_name, ()))

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._rules

    def check_values(self, data: Mapping[str, object]) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        for name, rules in self._rules.items():
            value = data.get(name)
            failed = [
                rule.message or f"{name} failed {rule.kind}"
                for rule in rules
                if not rule.check(value)
            ]
            if failed:
                errors[name] = failed
        return errors


def validate_required_fields(data: Mapping[str, object], names: Iterable[str]) -> list[str]:
    """Return the names whose value is missing or blank."""
    return [name for name in names if is_blank(data.get(name))]


def validate_content(content: object) -> list[str]:
    if not isinstance(content, str) or not content.strip():
        return ["content is required and must be a non-empty string"]
    lowered = content.lower()
    return [
        f"content contains a potentially dangerous tag: {tag}>"
        for tag in DANGEROUS_TAGS
        if tag in lowered
    ]


def validate_field(spec: FieldSpec, *, require_position: bool = True) -> list[str]:
    errors: list[str] = []
    label = f"field {spec.name!r}" if spec.name else "field"
    if not spec.name:
        errors.append("field name must be a non-empty string")
    if require_position and spec.selector is None and spec.position is None:
        errors.append(f"{label} requires a selector or a position")
    if spec.selector is not None and spec.position is not None:
        errors.append(f"{label} must not set both selector and position")
    if spec.page_index is not None and spec.page_index < 0:
        errors.append(f"{label} page_index must be >= 0")
    if isinstance(spec, TextFieldSpec) and spec.max_length is not None and spec.max_length <= 0:
        errors.append(f"{label} max_length must be positive")
    choice_kinds = (RadioFieldSpec, DropdownFieldSpec, ListboxFieldSpec)
    if isinstance(spec, choice_kinds) and not spec.options:
        errors.append(f"{label} requires at least one option")
    if isinstance(spec, ButtonFieldSpec) and not spec.label:
        errors.append(f"{label} requires a label")
    return errors


def validate_request(
    content: object,
    fields: Sequence[FieldSpec],
    *,
    paper: str | None = None,
    flowing: bool = False,
) -> list[str]:
    """Collect every problem in a generation request; an empty list means valid.

    ``flowing`` requests place fields without a selector or position at the
    content cursor, so that check is skipped for them.
    """
    errors = [] if flowing else validate_content(content)
    seen: set[str] = set()
    for spec in fields:
        errors.extend(validate_field(spec, require_position=not flowing))
        if spec.name in seen:
            errors.append(f"duplicate field name: {spec.name}")
        seen.add(spec.name)
    if paper is not None and paper.strip().upper() not in PAPER_FORMATS:
        errors.append(f"unknown paper format: {paper}")
    return errors
