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


import tempfile
import unittest
from pathlib import Path

from test_support import page_texts, png_bytes, widget_map

from acroflow.core.models import (
    CheckboxFieldSpec,
    DocRect,
    Placed,
    RadioFieldSpec,
    RadioOption,
    Skipped,
    TextFieldSpec,
)
from acroflow.core.validation import ValidationRule
from acroflow.render.document import ImageOp
from acroflow.render.forms import extract_form_data
from acroflow.render.generator import GenerateRequest
from acroflow.render.session import ConditionalRule, FlowSession, generate_flowing
from acroflow.render.spec import PageLayoutConfig
from acroflow.render.tables import TableGrid

_TOP = 841.89 - 50 - 30


class TestFlowSession(unittest.TestCase):
    def test_fields_stack_from_the_cursor(self) -> None:
        session = FlowSession()
        first = session.add_field(TextFieldSpec(name="first"))
        second = session.add_field(TextFieldSpec(name="second", height=30))
        assert isinstance(first, Placed) and isinstance(second, Placed)
        self.assertEqual(first.rect.x, 50)
        self.assertAlmostEqual(first.rect.y, _TOP - 20)
        self.assertAlmostEqual(second.rect.y, _TOP - 20 - 25 - 30)
        self.assertAlmostEqual(session.controller.cursor_y, _TOP - 20 - 25 - 30 - 25)

    def test_overflowing_fields_move_to_new_pages(self) -> None:
        session = FlowSession()
        results = [session.add_field(TextFieldSpec(name=f"f{index}")) for index in range(40)]
        self.assertGreaterEqual(session.document.page_count, 3)
        pages = [result.page_index for result in results if isinstance(result, Placed)]
        self.assertEqual(pages, sorted(pages))
        self.assertEqual(pages[-1], session.document.page_count - 1)
        self.assertEqual(session.field_count, 40)
        for result in results:
            assert isinstance(result, Placed)
            self.assertGreaterEqual(result.rect.y, session.layout.content_bottom)

    def test_radio_group_keeps_spacing_across_break(self) -> None:
        session = FlowSession()
        session.add_spacing(650)
        spec = RadioFieldSpec(
            name="plan",
            options=(RadioOption("a", "A"), RadioOption("b", "B"), RadioOption("c", "C")),
        )
        result = session.add_field(spec)
        assert isinstance(result, Placed)
        self.assertEqual(result.page_index, 1)
        boxes = [widget.rect for widget in session.document.widgets]
        self.assertEqual([widget.page_index for widget in session.document.widgets], [1, 1, 1])
        self.assertAlmostEqual(boxes[0].y + boxes[0].height, _TOP)
        self.assertAlmostEqual(boxes[0].y - boxes[1].y, 25)
        self.assertAlmostEqual(boxes[1].y - boxes[2].y, 25)

    def test_radio_group_never_reaches_into_the_footer(self) -> None:
        session = FlowSession()
        # Leaves room for the block height but not for the gap above the first box.
        session.add_spacing(_TOP - session.layout.content_bottom - 67)
        spec = RadioFieldSpec(
            name="plan",
            options=(RadioOption("a", "A"), RadioOption("b", "B"), RadioOption("c", "C")),
        )
        result = session.add_field(spec)
        assert isinstance(result, Placed)
        self.assertEqual(result.page_index, 1)
        for widget in session.document.widgets:
            self.assertGreaterEqual(widget.rect.y, session.layout.content_bottom)

    def test_radio_group_that_fits_stays_on_the_page(self) -> None:
        session = FlowSession()
        session.add_spacing(_TOP - session.layout.content_bottom - 75)
        spec = RadioFieldSpec(name="plan", options=(RadioOption("a"), RadioOption("b")))
        result = session.add_field(spec)
        assert isinstance(result, Placed)
        self.assertEqual(result.page_index, 0)
        lowest = min(widget.rect.y for widget in session.document.widgets)
        self.assertGreaterEqual(lowest, session.layout.content_bottom)
        self.assertAlmostEqual(
            session.controller.cursor_y, session.layout.content_bottom + 75 - 45 - 25
        )

    def test_returning_to_a_page_continues_below_its_content(self) -> None:
        session = FlowSession()
        first = session.add_field(TextFieldSpec(name="a"))
        self.assertTrue(session.controller.navigate_to_page(1))
        second = session.add_field(TextFieldSpec(name="b"))
        assert isinstance(first, Placed) and isinstance(second, Placed)
        self.assertAlmostEqual(second.rect.y, first.rect.y - 20 - 25)

    def test_radio_default_survives_serialization(self) -> None:
        session = FlowSession()
        session.add_field(
            RadioFieldSpec(
                name="size",
                options=(RadioOption("s", "S"), RadioOption("m", "M"), RadioOption("l", "L")),
                default_value="m",
            )
        )
        session.add_field(CheckboxFieldSpec(name="subscribe", default_value=True))
        values = extract_form_data(session.finish().data)
        self.assertEqual(values["size"], "m")
        self.assertIs(values["subscribe"], True)

    def test_unplaceable_fields_are_skipped(self) -> None:
        session = FlowSession()
        by_selector = session.add_field(TextFieldSpec(name="a", selector="#a"))
        pinned = session.add_field(TextFieldSpec(name="b", page_index=0))
        bad_page = session.add_field(
            TextFieldSpec(name="c", position=DocRect(10, 10, 50, 20), page_index=4)
        )
        assert isinstance(by_selector, Skipped)
        assert isinstance(pinned, Skipped)
        assert isinstance(bad_page, Skipped)
        self.assertEqual(by_selector.reason, "selector-not-found")
        self.assertEqual(pinned.reason, "no-position")
        self.assertEqual(bad_page.reason, "invalid-page")
        self.assertEqual(session.field_count, 0)
        self.assertEqual(len(session.warnings()), 3)

    def test_pinned_fields_do_not_move_the_cursor(self) -> None:
        session = FlowSession()
        start = session.controller.cursor_y
        result = session.add_field(
            CheckboxFieldSpec(name="box", position=DocRect(400, 500, 0, 0), page_index=0)
        )
        assert isinstance(result, Placed)
        self.assertEqual((result.rect.width, result.rect.height), (15, 15))
        self.assertEqual(session.controller.cursor_y, start)

    def test_multiline_text_breaks_pages(self) -> None:
        session = FlowSession()
        session.draw_text("\n".join(f"line {index}" for index in range(80)), size=12)
        self.assertEqual(session.document.page_count, 2)
        texts = page_texts(session.finish().data)
        self.assertIn("line 0", texts[0])
        self.assertIn("line 79", texts[1])

    def test_table_and_section(self) -> None:
        session = FlowSession()
        session.add_section("Orders", "Recent orders")
        plan = session.add_table(
            TableGrid(rows=40, columns=2, cell_width=120, cell_height=20, headers=("Id", "Total"))
        )
        self.assertEqual(plan.covered_rows(), list(range(40)))
        self.assertEqual(session.document.page_count, 2)

    def test_page_break_and_rect(self) -> None:
        session = FlowSession()
        self.assertEqual(session.page_break(), 1)
        start = session.controller.cursor_y
        session.draw_rect(200, 40, classes="bg-gray-100 border-2")
        self.assertAlmostEqual(session.controller.cursor_y, start - 40)

    def test_image_breaks_the_page_when_it_does_not_fit(self) -> None:
        session = FlowSession()
        session.add_spacing(600)
        session.draw_image(png_bytes(), 120, 90)
        self.assertEqual(session.document.page_count, 2)
        self.assertAlmostEqual(session.controller.cursor_y, _TOP - 90)
        [op] = [op for op in session.document.page_ops(1) if isinstance(op, ImageOp)]
        self.assertAlmostEqual(op.y, _TOP - 90)

    def test_validation_and_conditions(self) -> None:
        session = FlowSession()
        session.add_field(TextFieldSpec(name="plan"))
        session.add_field(TextFieldSpec(name="company"))
        session.set_field_validation("company", ValidationRule(kind="required", message="needed"))
        session.set_conditional_logic(
            ConditionalRule(field="company", depends_on="plan", value="team")
        )
        self.assertEqual(session.rules.check_values({"plan": "team"}), {"company": ["needed"]})
        self.assertEqual(
            session.field_visibility({"plan": "solo"}), {"plan": True, "company": False}
        )
        self.assertEqual(session.field_visibility({"plan": "team"})["company"], True)

    def test_sessions_are_independent(self) -> None:
        one = FlowSession()
        two = FlowSession()
        one.add_field(TextFieldSpec(name="shared"))
        result = two.add_field(TextFieldSpec(name="shared"))
        self.assertIsInstance(result, Placed)
        self.assertEqual(list(two.fields), ["shared"])

    def test_fixed_layout_reports_overflow(self) -> None:
        session = FlowSession(PageLayoutConfig(auto_page_break=False))
        for index in range(40):
            session.add_field(TextFieldSpec(name=f"f{index}"))
        self.assertEqual(session.document.page_count, 1)
        self.assertTrue(any("overflowed" in warning for warning in session.warnings()))

    def test_finish_serializes(self) -> None:
        session = FlowSession()
        session.add_field(TextFieldSpec(name="email"))
        result = session.finish()
        self.assertEqual(result.page_count, 1)
        self.assertEqual(result.field_count, 1)
        self.assertIn("email", widget_map(result.data))


class TestGenerateFlowing(unittest.TestCase):
    def test_paragraphs_then_fields(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "flow.pdf"
            request = GenerateRequest(
                content="Welcome aboard.\n\nPlease fill in every field.",
                fields=(TextFieldSpec(name="name"), CheckboxFieldSpec(name="agree")),
                output_path=str(target),
            )
            result = generate_flowing(request)
            self.assertTrue(target.exists())
        self.assertEqual(result.path, str(target))
        self.assertEqual(result.field_count, 2)
        self.assertIn("Welcome aboard.", page_texts(result.data)[0])
        self.assertEqual(set(widget_map(result.data)), {"name", "agree"})


class TestFinishAsync(unittest.IsolatedAsyncioTestCase):
    async def test_finish_async(self) -> None:
        session = FlowSession()
        session.add_field(TextFieldSpec(name="a"))
        result = await session.finish_async()
        self.assertTrue(result.data.startswith(b"%PDF"))


if __name__ == "__main__":
    unittest.main()
