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

"""Utility-class tokens ("bg-blue-500 text-sm p-4") mapped to concrete style values."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Literal

from ..core.models import RGB

SPACING_UNIT_PT = 3.0
SPACING_STEPS = 96

_RGB_FUNC_RE = re.compile(r"rgb\((\d+),\s*(\d+),\s*(\d+)\)")

BUILTIN_COLORS: dict[str, RGB] = {
    "black": (0.0, 0.0, 0.0),
    "white": (1.0, 1.0, 1.0),
    "gray-50": (0.98, 0.98, 0.98),
    "gray-100": (0.96, 0.96, 0.96),
    "gray-200": (0.9, 0.9, 0.9),
    "gray-300": (0.83, 0.83, 0.83),
    "gray-400": (0.62, 0.62, 0.62),
    "gray-500": (0.42, 0.42, 0.42),
    "gray-600": (0.29, 0.29, 0.29),
    "gray-700": (0.21, 0.21, 0.21),
    "gray-800": (0.12, 0.12, 0.12),
    "gray-900": (0.06, 0.06, 0.06),
    "red-50": (0.99, 0.95, 0.95),
    "red-100": (0.99, 0.88, 0.88),
    "red-200": (0.99, 0.73, 0.73),
    "red-300": (0.99, 0.48, 0.48),
    "red-400": (0.97, 0.33, 0.33),
    "red-500": (0.94, 0.2, 0.2),
    "red-600": (0.86, 0.12, 0.12),
    "red-700": (0.73, 0.08, 0.08),
    "red-800": (0.6, 0.06, 0.06),
    "red-900": (0.5, 0.05, 0.05),
    "blue-50": (0.94, 0.97, 1.0),
    "blue-100": (0.86, 0.93, 0.99),
    "blue-200": (0.75, 0.87, 0.99),
    "blue-300": (0.57, 0.77, 0.97),
    "blue-400": (0.37, 0.65, 0.95),
    "blue-500": (0.23, 0.52, 0.91),
    "blue-600": (0.15, 0.39, 0.85),
    "blue-700": (0.11, 0.31, 0.71),
    "blue-800": (0.11, 0.25, 0.57),
    "blue-900": (0.11, 0.21, 0.46),
    "green-50": (0.94, 0.99, 0.96),
    "green-100": (0.86, 0.98, 0.9),
    "green-200": (0.73, 0.96, 0.81),
    "green-300": (0.52, 0.91, 0.65),
    "green-400": (0.29, 0.83, 0.47),
    "green-500": (0.13, 0.72, 0.33),
    "green-600": (0.09, 0.59, 0.26),
    "green-700": (0.08, 0.47, 0.21),
    "green-800": (0.08, 0.37, 0.17),
    "green-900": (0.08, 0.31, 0.15),
    "yellow-50": (0.99, 0.99, 0.94),
    "yellow-100": (0.99, 0.97, 0.83),
    "yellow-200": (0.99, 0.94, 0.62),
    "yellow-300": (0.99, 0.88, 0.36),
    "yellow-400": (0.98, 0.8, 0.14),
    "yellow-500": (0.93, 0.69, 0.05),
    "yellow-600": (0.79, 0.53, 0.02),
    "yellow-700": (0.63, 0.38, 0.04),
    "yellow-800": (0.52, 0.31, 0.07),
    "yellow-900": (0.44, 0.25, 0.08),
    "purple-50": (0.98, 0.97, 0.99),
    "purple-100": (0.95, 0.92, 0.98),
    "purple-200": (0.91, 0.84, 0.96),
    "purple-300": (0.84, 0.7, 0.93),
    "purple-400": (0.75, 0.51, 0.88),
    "purple-500": (0.66, 0.33, 0.82),
    "purple-600": (0.57, 0.21, 0.74),
    "purple-700": (0.48, 0.15, 0.62),
    "purple-800": (0.4, 0.13, 0.51),
    "purple-900": (0.33, 0.11, 0.42),
}


def _builtin_sizes() -> dict[str, float]:
    sizes: dict[str, float] = {
        "text-xs": 10,
        "text-sm": 12,
        "text-base": 14,
        "text-lg": 16,
        "text-xl": 18,
        "text-2xl": 22,
        "text-3xl": 28,
        "text-4xl": 36,
        "text-5xl": 48,
        "text-6xl": 60,
        "text-7xl": 72,
        "text-8xl": 96,
        "text-9xl": 128,
        "border": 1,
        "border-0": 0,
        "border-2": 2,
        "border-4": 4,
        "border-8": 8,
        "rounded-none": 0,
        "rounded-sm": 2,
        "rounded": 4,
        "rounded-md": 6,
        "rounded-lg": 8,
        "rounded-xl": 12,
        "rounded-2xl": 16,
        "rounded-3xl": 24,
        "rounded-full": 9999,
    }
    for step in range(SPACING_STEPS + 1):
        value = step * SPACING_UNIT_PT
        for prefix in ("p", "pt", "pr", "pb", "pl", "px", "py"):
            sizes[f"{prefix}-{step}"] = value
        for prefix in ("m", "mt", "mr", "mb", "ml", "mx", "my"):
            sizes[f"{prefix}-{step}"] = value
    return sizes


BUILTIN_SIZES: dict[str, float] = _builtin_sizes()

_TEXT_ALIGN: dict[str, Literal["left", "center", "right"]] = {
    "text-left": "left",
    "text-center": "center",
    "text-right": "right",
}
_FONT_WEIGHT: dict[str, Literal["normal", "bold"]] = {
    "font-normal": "normal",
    "font-bold": "bold",
}
_FONT_STYLE: dict[str, Literal["normal", "italic"]] = {
    "italic": "italic",
    "not-italic": "normal",
}
_TEXT_DECORATION: dict[str, Literal["none", "underline", "line-through"]] = {
    "underline": "underline",
    "line-through": "line-through",
    "no-underline": "none",
}

# Side prefixes are checked before the all-sides prefix.
_SIDE_PREFIXES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("t-", ("top",)),
    ("r-", ("right",)),
    ("b-", ("bottom",)),
    ("l-", ("left",)),
    ("x-", ("left", "right")),
    ("y-", ("top", "bottom")),
)


@dataclass(frozen=True)
class Spacing:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> "Spacing":
        return cls(top=value, right=value, bottom=value, left=value)


@dataclass(frozen=True)
class StyleProperties:
    background_color: RGB | None = None
    border_color: RGB | None = None
    text_color: RGB | None = None
    font_size: float | None = None
    border_width: float | None = None
    border_radius: float | None = None
    padding: Spacing | None = None
    margin: Spacing | None = None
    text_align: Literal["left", "center", "right"] | None = None
    font_weight: Literal["normal", "bold"] | None = None
    font_style: Literal["normal", "italic"] | None = None
    text_decoration: Literal["none", "underline", "line-through"] | None = None
    opacity: float | None = None


class StyleResolver:
    """Resolve utility tokens left to right; the last match per category wins.

    Registered colors and sizes share the lookup tables with the built-ins, so a
    registration only overrides a built-in of the same name.
    """

    def __init__(self) -> None:
        self._colors: dict[str, RGB] = dict(BUILTIN_COLORS)
        self._sizes: dict[str, float] = dict(BUILTIN_SIZES)

    def register_color(self, name: str, r: float, g: float, b: float) -> None:
        self._colors[name] = (r / 255, g / 255, b / 255)

    def register_size(self, name: str, value: float) -> None:
        self._sizes[name] = float(value)

    def color(self, name: str) -> RGB | None:
        return self._colors.get(name)

    def size(self, token: str) -> float | None:
        return self._sizes.get(token)

    def resolve(self, tokens: str | Iterable[str]) -> StyleProperties:
        if isinstance(tokens, str):
            tokens = tokens.split()
        styles = StyleProperties()
        for token in tokens:
            if token:
                styles = self._apply(styles, token)
        return styles

    def _apply(self, styles: StyleProperties, token: str) -> StyleProperties:
        sized = token in self._sizes
        updates: dict[str, object] = {}

        if token.startswith("bg-"):
            color = self._colors.get(token[3:])
            if color is not None:
                updates["background_color"] = color

        if token.startswith("text-"):
            if sized:
                updates["font_size"] = self._sizes[token]
            else:
                color = self._colors.get(token[5:])
                if color is not None:
                    updates["text_color"] = color

        if token.startswith("border"):
            if sized:
                updates["border_width"] = self._sizes[token]
            elif token.startswith("border-"):
                color = self._colors.get(token[7:])
                if color is not None:
                    updates["border_color"] = color

        if token.startswith("rounded") and sized:
            updates["border_radius"] = self._sizes[token]

        if token in _TEXT_ALIGN:
            updates["text_align"] = _TEXT_ALIGN[token]
        if token in _FONT_WEIGHT:
            updates["font_weight"] = _FONT_WEIGHT[token]
        if token in _FONT_STYLE:
            updates["font_style"] = _FONT_STYLE[token]
        if token in _TEXT_DECORATION:
            updates["text_decoration"] = _TEXT_DECORATION[token]

        if sized and token.startswith("p"):
            padding = _apply_spacing(styles.padding, "p", token, self._sizes[token])
            if padding is not None:
                updates["padding"] = padding
        if sized and token.startswith("m"):
            margin = _apply_spacing(styles.margin, "m", token, self._sizes[token])
            if margin is not None:
                updates["margin"] = margin

        if token.startswith("opacity-") and token[8:].isdigit():
            updates["opacity"] = int(token[8:]) / 100

        if not updates:
            return styles
        return replace(styles, **updates)


def _apply_spacing(
    current: Spacing | None,
    prefix: str,
    token: str,
    value: float,
) -> Spacing | None:
    base = current or Spacing()
    for suffix, sides in _SIDE_PREFIXES:
        if token.startswith(prefix + suffix):
            return replace(base, **{side: value for side in sides})
    if token.startswith(prefix + "-"):
        return Spacing.uniform(value)
    return None


def parse_hex_color(value: str) -> RGB:
    cleaned = value.strip().lstrip("#")
    if len(cleaned) == 3:
        cleaned = "".join(ch * 2 for ch in cleaned)
    if len(cleaned) != 6:
        raise ValueError(f"invalid hex color: {value!r}")
    try:
        channels = [int(cleaned[idx : idx + 2], 16) for idx in (0, 2, 4)]
    except ValueError:
        raise ValueError(f"invalid hex color: {value!r}") from None
    return (channels[0] / 255, channels[1] / 255, channels[2] / 255)


def parse_rgb_color(value: str) -> RGB:
    match = _RGB_FUNC_RE.search(value)
    if match is None:
        return (0.0, 0.0, 0.0)
    r, g, b = (int(part) / 255 for part in match.groups())
    return (r, g, b)


DEFAULT_RESOLVER = StyleResolver()
