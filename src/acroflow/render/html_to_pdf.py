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

import html as html_lib
from dataclasses import dataclass
from typing import Any, Protocol

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from ..core.errors import RenderError
from ..core.models import RawRect
from .geometry import pt_to_px
from .spec import GeneratorOptions

_RECT_SCRIPT = """
(selector) => {
  const element = document.querySelector(selector);
  if (!element) {
    return null;
  }
  const box = element.getBoundingClientRect();
  return {
    left: box.left + window.scrollX,
    top: box.top + window.scrollY,
    width: box.width,
    height: box.height,
  };
}
"""


@dataclass(frozen=True)
class PageSetup:
    """Paper size of the rendered pages in PDF points."""

    width: float
    height: float

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": round(pt_to_px(self.width)), "height": round(pt_to_px(self.height))}


@dataclass
class RenderHandle:
    page: Page
    setup: PageSetup


class Renderer(Protocol):
    async def render(self, markup: str, styles: str | None, setup: PageSetup) -> Any: ...

    async def query_rect(self, handle: Any, selector: str) -> RawRect | None: ...

    async def export_pages(self, handle: Any) -> bytes: ...

    async def release(self, handle: Any) -> None: ...


def wrap_html(
    markup: str,
    styles: str | None = None,
    *,
    title: str = "",
    options: GeneratorOptions | None = None,
) -> str:
    """Wrap a markup fragment in a page that loads the utility-class stylesheet.

    Full documents (anything starting with ``<!doctype`` or ``<html``) are
    passed through untouched.
    """
    stripped = markup.lstrip().lower()
    if stripped.startswith("<!doctype") or stripped.startswith("<html"):
        return markup
    options = options or GeneratorOptions()
    style_block = f"\n    <style>\n{styles}\n    </style>" if styles else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "  <head>\n"
        '    <meta charset="UTF-8">\n'
        f"    <title>{html_lib.escape(title)}</title>\n"
        f'    <script src="{options.tailwind_cdn}"></script>'
        f"{style_block}\n"
        "  </head>\n"
        "  <body>\n"
        f"{markup}\n"
        "  </body>\n"
        "</html>\n"
    )


class RenderEngine:
    """One headless Chromium shared by every generation call.

    ``start()`` must run before the first render and ``close()`` exactly once
    afterwards; ``async with`` does both. Each ``render`` opens its own browser
    page, so concurrent calls do not share DOM state.
    """

    def __init__(
        self,
        options: GeneratorOptions | None = None,
        *,
        launch_options: dict[str, Any] | None = None,
    ) -> None:
        self.options = options or GeneratorOptions()
        self._launch_options = dict(launch_options or {})
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def start(self) -> None:
        if self._browser is not None:
            return
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(**self._launch_options)
        except PlaywrightError as exc:
            await self.close()
            raise RenderError(f"unable to start browser: {exc}") from exc

    async def close(self) -> None:
        browser = self._browser
        playwright = self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()

    async def __aenter__(self) -> "RenderEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def render(self, markup: str, styles: str | None, setup: PageSetup) -> RenderHandle:
        if self._browser is None:
            raise RenderError("render engine is not started")
        try:
            page = await self._browser.new_page(viewport=setup.viewport)
        except PlaywrightError as exc:
            raise RenderError(f"unable to open browser page: {exc}") from exc
        try:
            html = wrap_html(markup, styles, options=self.options)
            await page.set_content(html, wait_until="networkidle")
            if self.options.settle_ms > 0:
                await page.wait_for_timeout(self.options.settle_ms)
            await page.emulate_media(media="print")
        except PlaywrightError as exc:
            await page.close()
            raise RenderError(f"unable to render markup: {exc}") from exc
        return RenderHandle(page=page, setup=setup)

    async def query_rect(self, handle: RenderHandle, selector: str) -> RawRect | None:
        try:
            box = await handle.page.evaluate(_RECT_SCRIPT, selector)
        except PlaywrightError as exc:
            raise RenderError(f"selector query failed for {selector!r}: {exc}") from exc
        if box is None:
            return None
        return RawRect(
            left=float(box["left"]),
            top=float(box["top"]),
            width=float(box["width"]),
            height=float(box["height"]),
            viewport_height=float(handle.setup.viewport["height"]),
        )

    async def export_pages(self, handle: RenderHandle) -> bytes:
        try:
            return await handle.page.pdf(
                width=f"{handle.setup.width / 72:.4f}in",
                height=f"{handle.setup.height / 72:.4f}in",
                print_background=True,
                margin={"top": "0mm", "right": "0mm", "bottom": "0mm", "left": "0mm"},
            )
        except PlaywrightError as exc:
            raise RenderError(f"unable to export rendered pages: {exc}") from exc

    async def release(self, handle: RenderHandle) -> None:
        try:
            await handle.page.close()
        except PlaywrightError as exc:
            raise RenderError(f"unable to close browser page: {exc}") from exc
