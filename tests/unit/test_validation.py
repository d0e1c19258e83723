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


import unittest

from acroflow.core.models import (
    ButtonFieldSpec,
    DocRect,
    DropdownFieldSpec,
    ListboxFieldSpec,
    RadioFieldSpec,
    TextFieldSpec,
)
from acroflow.core.validation import (
    ValidationRule,
    ValidationRules,
    date_pattern,
    is_blank,
    validate_content,
    validate_field,
    validate_request,
    validate_required_fields,
)


class TestRules(unittest.TestCase):
    def test_blank_values(self) -> None:
        for value in (None, False, "", "   "):
            self.assertTrue(is_blank(value))
        for value in ("x", 0, True):
            self.assertFalse(is_blank(value))

    def test_only_required_rejects_empty(self) -> None:
        self.assertFalse(ValidationRule(kind="required").check(""))
        self.assertTrue(ValidationRule(kind="min_length", value=3).check(""))
        self.assertFalse(ValidationRule(kind="min_length", value=3).check("ab"))
        self.assertTrue(ValidationRule(kind="max_length", value=3).check("abc"))

    def test_unknown_date_format_falls_back(self) -> None:
        self.assertEqual(date_pattern("nonsense"), date_pattern("MM/DD/YYYY"))

    def test_registry_reports_default_messages(self) -> None:
        rules = ValidationRules()
        rules.add("code", ValidationRule(kind="pattern", value=r"^\d+$"))
        self.assertIn("code", rules)
        self.assertEqual(rules.check_values({"code": "12a"}), {"code": ["code failed pattern"]})

    def test_unknown_rule_kind(self) -> None:
        with self.assertRaises(ValueError):
            ValidationRule(kind="bogus").check("x")  # type: ignore[arg-type]

    def test_required_fields(self) -> None:
        data = {"a": "x", "b": " ", "c": None}
        self.assertEqual(validate_required_fields(data, ["a", "b", "c", "d"]), ["b", "c", "d"])


class TestRequestValidation(unittest.TestCase):
    def test_content(self) -> None:
        self.assertEqual(validate_content("<p>hi</p>"), [])
        self.assertEqual(len(validate_content("")), 1)
        self.assertEqual(len(validate_content(None)), 1)
        errors = validate_content("<p>x</p><SCRIPT>alert(1)</SCRIPT>")
        self.assertEqual(errors, ["content contains a potentially dangerous tag: <script>"])

    def test_field_rules(self) -> None:
        self.assertEqual(
            validate_field(TextFieldSpec(name="a")), ["field 'a' requires a selector or a position"]
        )
        both = TextFieldSpec(name="b", selector="#b", position=DocRect(0, 0, 10, 10))
        self.assertEqual(
            validate_field(both), ["field 'b' must not set both selector and position"]
        )
        self.assertEqual(
            validate_field(RadioFieldSpec(name="r", selector="#r")),
            ["field 'r' requires at least one option"],
        )
        self.assertEqual(
            validate_field(DropdownFieldSpec(name="d"), require_position=False),
            ["field 'd' requires at least one option"],
        )
        self.assertEqual(
            validate_field(ListboxFieldSpec(name="l"), require_position=False),
            ["field 'l' requires at least one option"],
        )
        self.assertEqual(
            validate_field(ButtonFieldSpec(name="go", selector="#go")),
            ["field 'go' requires a label"],
        )
        bad_length = TextFieldSpec(name="t", selector="#t", max_length=0)
        self.assertEqual(validate_field(bad_length), ["field 't' max_length must be positive"])

    def test_request(self) -> None:
        fields = (TextFieldSpec(name="a", selector="#a"), TextFieldSpec(name="a", selector="#b"))
        errors = validate_request("<p>x</p>", fields, paper="B5")
        self.assertEqual(errors, ["duplicate field name: a", "unknown paper format: B5"])

    def test_flowing_request_skips_content_and_position(self) -> None:
        self.assertEqual(validate_request("", (TextFieldSpec(name="a"),), flowing=True), [])


if __name__ == "__main__":
    unittest.main()
