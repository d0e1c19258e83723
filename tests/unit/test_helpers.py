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

from acroflow.core.models import DocRect, Placed
from acroflow.render.helpers import (
    AutoFlowSettings,
    FormItem,
    add_field_label,
    auto_flow_form,
    column_layout,
    date_field,
    form_field,
    generate_field_name,
    grid_layout,
    number_field,
    signature_block,
)
from acroflow.render.session import FlowSession


class TestLayoutMath(unittest.TestCase):
    def test_generate_field_name(self) -> None:
        self.assertEqual(generate_field_name("First Name!"), "first_name")
        self.assertEqual(generate_field_name("  E-mail   address "), "email_address")

    def test_column_layout(self) -> None:
        self.assertEqual(column_layout(600, 2, 40), (250, [40, 310]))
        with self.assertRaises(ValueError):
            column_layout(600, 0)

    def test_grid_layout(self) -> None:
        self.assertEqual(
            grid_layout(0, 100, 50, 20, 2, 3),
            [(0, 100), (60, 100), (0, 70)],
        )


class TestFieldHelpers(unittest.TestCase):
    def test_date_field_registers_rules(self) -> None:
        session = FlowSession()
        date_field(session, "dob", date_format="YYYY-MM-DD", earliest="2000-01-01")
        self.assertEqual(len(session.rules.rules_for("dob")), 2)
        errors = session.rules.check_values({"dob": "01/02/2020"})
        self.assertIn("Date must be in format: YYYY-MM-DD", errors["dob"])
        errors = session.rules.check_values({"dob": "1999-12-31"})
        self.assertEqual(errors["dob"], ["Date is outside allowed range"])
        self.assertEqual(session.rules.check_values({"dob": "2001-05-05"}), {})

    def test_number_field_range(self) -> None:
        session = FlowSession()
        number_field(session, "qty", minimum=0, maximum=10)
        self.assertEqual(
            session.rules.check_values({"qty": "11"}),
            {"qty": ["Number must be between 0 and 10"]},
        )
        self.assertIn("Must be a valid number", session.rules.check_values({"qty": "x"})["qty"])
        self.assertEqual(session.rules.check_values({"qty": "4.5"}), {})

    def test_signature_block(self) -> None:
        session = FlowSession()
        placed = signature_block(session, "sig", required=True)
        assert isinstance(placed, Placed)
        self.assertEqual(placed.rect.height, 50)
        self.assertEqual(session.rules.rules_for("sig")[0].kind, "required")
        self.assertEqual(session.document.fields["sig"].kind, "signature")

    def test_form_field_returns_next_y(self) -> None:
        session = FlowSession()
        next_y = form_field(session, "text", "city", 50, 700, 200, label="City", required=True)
        self.assertEqual(next_y, 645)
        widget = session.document.widgets[0]
        self.assertEqual(widget.rect, DocRect(50, 655, 200, 25))

    def test_form_field_checkbox_uses_small_box(self) -> None:
        session = FlowSession()
        form_field(session, "checkbox", "agree", 50, 700, 200)
        rect = session.document.widgets[0].rect
        self.assertEqual((rect.width, rect.height), (15, 15))
        self.assertEqual(rect.y, 685)

    def test_add_field_label_draws_text(self) -> None:
        session = FlowSession()
        before = len(session.document.page_ops(0))
        add_field_label(session, "Name", 50, 600, required=True)
        self.assertEqual(len(session.document.page_ops(0)), before + 2)


class TestAutoFlowForm(unittest.TestCase):
    def test_items_flow_and_unnamed_are_skipped(self) -> None:
        session = FlowSession()
        items = [
            FormItem(kind="section", label="Contact", description="How to reach you"),
            FormItem(kind="text", label="Full Name", required=True),
            FormItem(kind="radio", label="Plan", options=("Basic", "Pro")),
            FormItem(kind="checkbox"),
        ]
        skipped = auto_flow_form(session, items)
        self.assertEqual(skipped, ["checkbox"])
        self.assertEqual(set(session.fields), {"full_name", "plan"})

    def test_long_forms_break_pages(self) -> None:
        session = FlowSession()
        items = [FormItem(kind="text", label=f"Question {index}") for index in range(20)]
        auto_flow_form(session, items, AutoFlowSettings(field_spacing=40))
        self.assertGreater(session.document.page_count, 1)
        self.assertEqual(len(session.fields), 20)


if __name__ == "__main__":
    unittest.main()
