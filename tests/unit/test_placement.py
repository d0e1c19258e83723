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

from test_support import FakeRenderer

from acroflow.core.models import (
    CheckboxFieldSpec,
    DocRect,
    Placed,
    RawRect,
    SignatureFieldSpec,
    Skipped,
    TextFieldSpec,
)
from acroflow.render.placement import PlacementResolver, needs_query, query_all


class TestPlacementResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = PlacementResolver(2)

    def test_explicit_position_with_default_size(self) -> None:
        result = self.resolver.resolve(TextFieldSpec(name="a", position=DocRect(10, 20, 0, 0)))
        assert isinstance(result, Placed)
        self.assertEqual(result.rect, DocRect(10, 20, 200, 20))
        self.assertEqual(result.page_index, 0)
        self.assertFalse(result.from_selector)

    def test_size_overrides_win(self) -> None:
        spec = TextFieldSpec(name="a", position=DocRect(0, 0, 120, 30), width=80)
        result = self.resolver.resolve(spec)
        assert isinstance(result, Placed)
        self.assertEqual((result.rect.width, result.rect.height), (80, 30))

    def test_kind_defaults(self) -> None:
        self.assertEqual(self.resolver.default_size(CheckboxFieldSpec(name="c")), (15, 15))
        self.assertEqual(self.resolver.default_size(CheckboxFieldSpec(name="c", size=11)), (11, 11))
        self.assertEqual(self.resolver.default_size(SignatureFieldSpec(name="s")), (200, 50))

    def test_selector_rect_is_reconciled(self) -> None:
        raw = RawRect(left=100, top=50, width=200, height=30, viewport_height=800)
        result = self.resolver.resolve(TextFieldSpec(name="a", selector="#a"), raw)
        assert isinstance(result, Placed)
        self.assertTrue(result.from_selector)
        self.assertAlmostEqual(result.rect.x, 75)
        self.assertAlmostEqual(result.rect.width, 150)
        self.assertAlmostEqual(result.pdf_y, 540)

    def test_selector_page_is_inferred(self) -> None:
        raw = RawRect(left=0, top=850, width=100, height=20, viewport_height=800)
        result = self.resolver.resolve(TextFieldSpec(name="a", selector="#a"), raw)
        assert isinstance(result, Placed)
        self.assertEqual(result.page_index, 1)
        # Page-local: 50px from the top of the second page.
        self.assertAlmostEqual(result.rect.y, 37.5)
        self.assertAlmostEqual(result.pdf_y, (800 - 70) * 0.75)

    def test_offsets_move_every_ordinate(self) -> None:
        raw = RawRect(left=100, top=50, width=200, height=30, viewport_height=800)
        spec = TextFieldSpec(name="a", selector="#a", offset_x=5, offset_y=-5)
        result = self.resolver.resolve(spec, raw)
        assert isinstance(result, Placed)
        self.assertAlmostEqual(result.rect.x, 80)
        self.assertAlmostEqual(result.rect.y, 32.5)
        self.assertAlmostEqual(result.pdf_y, 535)

    def test_skip_reasons(self) -> None:
        cases = (
            (TextFieldSpec(name="a", selector="#missing"), "selector-not-found"),
            (TextFieldSpec(name="b", position=DocRect(0, 0, 1, 1), page_index=5), "invalid-page"),
            (TextFieldSpec(name="c", position=DocRect(0, 0, 1, 1), page_index=-1), "invalid-page"),
            (TextFieldSpec(name="d"), "no-position"),
        )
        for spec, reason in cases:
            with self.subTest(name=spec.name):
                result = self.resolver.resolve(spec)
                assert isinstance(result, Skipped)
                self.assertEqual(result.reason, reason)

    def test_resolve_all_keeps_input_order(self) -> None:
        specs = [
            TextFieldSpec(name="b", selector="#b"),
            TextFieldSpec(name="a", position=DocRect(0, 0, 10, 10)),
            TextFieldSpec(name="c", selector="#c"),
        ]
        rects = {"#b": RawRect(0, 0, 10, 10, 800), "#c": None}
        results = self.resolver.resolve_all(specs, rects)
        self.assertEqual([result.spec.name for result in results], ["b", "a", "c"])
        self.assertEqual([type(result) for result in results], [Placed, Placed, Skipped])


class TestQueryAll(unittest.IsolatedAsyncioTestCase):
    async def test_queries_each_selector_once(self) -> None:
        renderer = FakeRenderer(rects={"#a": RawRect(0, 0, 10, 10, 800)})
        specs = [
            TextFieldSpec(name="one", selector="#a"),
            TextFieldSpec(name="two", selector="#a"),
            TextFieldSpec(name="three", selector="#b"),
            TextFieldSpec(name="four", selector="#c", position=DocRect(0, 0, 1, 1)),
        ]
        rects = await query_all(renderer, "handle", specs)
        self.assertEqual(sorted(renderer.queried), ["#a", "#b"])
        self.assertIsNotNone(rects["#a"])
        self.assertIsNone(rects["#b"])
        self.assertNotIn("#c", rects)

    def test_needs_query(self) -> None:
        self.assertTrue(needs_query(TextFieldSpec(name="a", selector="#a")))
        self.assertFalse(needs_query(TextFieldSpec(name="a")))
        self.assertFalse(
            needs_query(TextFieldSpec(name="a", selector="#a", position=DocRect(0, 0, 1, 1)))
        )


if __name__ == "__main__":
    unittest.main()
