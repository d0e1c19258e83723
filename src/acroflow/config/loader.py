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

import dataclasses
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, cast

from ..core.models import (
    FIELD_SPEC_TYPES,
    RGB,
    AnyFieldSpec,
    DocRect,
    DocumentMetadata,
    RadioOption,
)
from ..render.compose import normalize_rgb
from ..render.generator import GenerateRequest
from ..render.spec import (
    PAPER_SIZES_PT,
    BandAlignment,
    BandSpec,
    GeneratorOptions,
    Margins,
    NumberPosition,
    PageLayoutConfig,
    PageNumberingSpec,
)
from ..render.styles import StyleResolver, parse_hex_color

JobMode = Literal["rendered", "flowing"]

_BAND_ALIGNMENTS = ("left", "center", "right")
_NUMBER_POSITIONS = (
    "top-left",
    "top-center",
    "top-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
)
_BUTTON_ACTIONS = ("submit", "reset", "javascript")
_COLOR_KEYS = ("background_color", "border_color", "font_color")
_FLOAT_KEYS = (
    "offset_x",
    "offset_y",
    "width",
    "height",
    "border_width",
    "font_size",
    "size",
    "spacing",
)


@dataclass(frozen=True)
class GenerationJob:
    request: GenerateRequest
    mode: JobMode = "rendered"
    options: GeneratorOptions = field(default_factory=GeneratorOptions)
    resolver: StyleResolver = field(default_factory=StyleResolver)
    source: Path | None = None

    @property
    def flowing(self) -> bool:
        return self.mode == "flowing"


def load_job(path: str | Path) -> GenerationJob:
    """Load a TOML job file; relative paths inside it resolve against its directory."""
    job_path = Path(path).expanduser()
    data = _load_toml(job_path)
    return parse_job(data, base_dir=job_path.parent, source=job_path)


def parse_job(
    data: dict[str, object],
    *,
    base_dir: Path | None = None,
    source: Path | None = None,
) -> GenerationJob:
    base_dir = base_dir or Path.cwd()
    document_cfg = _get_dict(data, "document")
    mode = _parse_choice(
        document_cfg.get("mode"), field="document.mode", choices=("rendered", "flowing")
    )
    job_mode = cast(JobMode, mode or "rendered")

    page_cfg = _get_dict(data, "page")
    paper = _parse_optional_str(page_cfg.get("size"), field="page.size") or "A4"
    if paper.upper() not in PAPER_SIZES_PT:
        raise ValueError(f"page.size must be one of {', '.join(sorted(PAPER_SIZES_PT))}")
    landscape = _parse_bool(page_cfg.get("landscape"), field="page.landscape", default=False)

    request = GenerateRequest(
        content=_read_text_source(document_cfg, "content", "content_path", base_dir=base_dir)
        or "",
        fields=parse_fields(data.get("fields")),
        custom_css=_read_text_source(document_cfg, "custom_css", "css_path", base_dir=base_dir),
        metadata=_parse_metadata(_get_dict(data, "metadata")),
        paper=paper.upper(),
        landscape=landscape,
        layout=_parse_layout(data, paper=paper, landscape=landscape, flowing=job_mode == "flowing"),
        output_path=_parse_optional_path(document_cfg.get("output"), "document.output", base_dir),
        flatten=_parse_bool(document_cfg.get("flatten"), field="document.flatten", default=False),
    )
    options = _parse_generator_options(_get_dict(data, "generator"), document_cfg)
    return GenerationJob(
        request=request,
        mode=job_mode,
        options=options,
        resolver=_parse_styles(_get_dict(data, "styles")),
        source=source,
    )


def parse_fields(value: object) -> tuple[AnyFieldSpec, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError("fields must be an array of tables")
    return tuple(_parse_field(item, index) for index, item in enumerate(value))


def parse_color(value: object, *, field: str) -> RGB | None:
    """Accept ``"#rrggbb"``, ``"#rgb"`` or a three-element list, scaled and clamped per channel."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return parse_hex_color(value)
        except ValueError as exc:
            raise ValueError(f"{field}: {exc}") from exc
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return normalize_rgb([_parse_float(item, field=field) for item in value])
    raise ValueError(f"{field} must be a hex string or a list of three numbers")


def _parse_field(item: object, index: int) -> AnyFieldSpec:
    prefix = f"fields[{index}]"
    if not isinstance(item, dict):
        raise ValueError(f"{prefix} must be a table")
    kind = _parse_choice(item.get("kind"), field=f"{prefix}.kind", choices=tuple(FIELD_SPEC_TYPES))
    if kind is None:
        raise ValueError(f"{prefix}.kind is required")
    spec_type = FIELD_SPEC_TYPES[kind]
    allowed = {spec_field.name for spec_field in dataclasses.fields(spec_type)}

    kwargs: dict[str, object] = {}
    for key, value in item.items():
        if key == "kind":
            continue
        if key not in allowed:
            raise ValueError(f"{prefix}.{key} is not supported for {kind} fields")
        kwargs[key] = _parse_field_value(kind, key, value, field=f"{prefix}.{key}")
    if not kwargs.get("name"):
        raise ValueError(f"{prefix}.name is required")
    return cast(AnyFieldSpec, spec_type(**kwargs))


def _parse_field_value(kind: str, key: str, value: object, *, field: str) -> object:
    if key in ("name", "script", "label"):
        return _parse_required_str(value, field=field)
    if key == "selector":
        return _parse_optional_str(value, field=field)
    if key == "position":
        return _parse_position(value, field=field)
    if key in ("page_index", "max_length"):
        return _parse_int_strict(value, field=field)
    if key in _FLOAT_KEYS:
        return _parse_float(value, field=field)
    if key in _COLOR_KEYS:
        return parse_color(value, field=field)
    if key in ("required", "multiline", "password", "editable", "multiselect", "sort"):
        return _parse_bool(value, field=field, default=False)
    if key == "classes":
        return _parse_classes(value, field=field)
    if key == "alignment":
        return _parse_choice(value, field=field, choices=_BAND_ALIGNMENTS)
    if key == "action":
        return _parse_choice(value, field=field, choices=_BUTTON_ACTIONS)
    if key == "options":
        if kind == "radio":
            return _parse_radio_options(value, field=field)
        if kind == "listbox":
            return tuple(option.value for option in _parse_radio_options(value, field=field))
        return tuple(_parse_str_list(value, field=field))
    if key == "default_value":
        if kind == "checkbox":
            return _parse_bool(value, field=field, default=False)
        return _parse_optional_str(value, field=field)
    if key == "default_values":
        return tuple(_parse_str_list(value, field=field))
    raise ValueError(f"{field} is not supported")


def _parse_position(value: object, *, field: str) -> DocRect:
    if isinstance(value, list):
        if len(value) != 4:
            raise ValueError(f"{field} must be [x, y, width, height]")
        x, y, width, height = (_parse_float(item, field=field) for item in value)
        return DocRect(x=x, y=y, width=width, height=height)
    if isinstance(value, dict):
        return DocRect(
            x=_parse_float(value.get("x", 0), field=f"{field}.x"),
            y=_parse_float(value.get("y", 0), field=f"{field}.y"),
            width=_parse_float(value.get("width", 0), field=f"{field}.width"),
            height=_parse_float(value.get("height", 0), field=f"{field}.height"),
        )
    raise ValueError(f"{field} must be [x, y, width, height] or a table")


def _parse_radio_options(value: object, *, field: str) -> tuple[RadioOption, ...]:
    if not isinstance(value, list):
        raise ValueError(f"{field} must be a list")
    options: list[RadioOption] = []
    for index, item in enumerate(value):
        if isinstance(item, str):
            options.append(RadioOption(value=item, label=item))
        elif isinstance(item, dict):
            option_value = _parse_required_str(item.get("value"), field=f"{field}[{index}].value")
            label = _parse_optional_str(item.get("label"), field=f"{field}[{index}].label")
            options.append(RadioOption(value=option_value, label=label))
        else:
            raise ValueError(f"{field}[{index}] must be a string or a table")
    return tuple(options)


def _parse_classes(value: object, *, field: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split())
    return tuple(_parse_str_list(value, field=field))


def _parse_layout(
    data: dict[str, object],
    *,
    paper: str,
    landscape: bool,
    flowing: bool,
) -> PageLayoutConfig | None:
    page_cfg = _get_dict(data, "page")
    layout_cfg = _get_dict(data, "layout")
    if not flowing and not layout_cfg and not _has_page_geometry(page_cfg):
        return None

    paper_layout = PageLayoutConfig.for_paper(paper, landscape=landscape)
    base = PageLayoutConfig() if flowing else PageLayoutConfig.fixed()
    margins_cfg = _get_dict(page_cfg, "margins")
    defaults = base.margins
    margins = Margins(
        top=_parse_float(margins_cfg.get("top", defaults.top), field="page.margins.top"),
        bottom=_parse_float(
            margins_cfg.get("bottom", defaults.bottom), field="page.margins.bottom"
        ),
        left=_parse_float(margins_cfg.get("left", defaults.left), field="page.margins.left"),
        right=_parse_float(margins_cfg.get("right", defaults.right), field="page.margins.right"),
    )
    return dataclasses.replace(
        base,
        width=_parse_float(page_cfg.get("width", paper_layout.width), field="page.width"),
        height=_parse_float(page_cfg.get("height", paper_layout.height), field="page.height"),
        margins=margins,
        header=_parse_band(_get_dict(layout_cfg, "header"), "layout.header", base.header),
        footer=_parse_band(_get_dict(layout_cfg, "footer"), "layout.footer", base.footer),
        numbering=_parse_numbering(_get_dict(layout_cfg, "numbering"), base.numbering),
        auto_page_break=_parse_bool(
            layout_cfg.get("auto_page_break"),
            field="layout.auto_page_break",
            default=base.auto_page_break,
        ),
        paginated=_parse_bool(
            layout_cfg.get("paginated"), field="layout.paginated", default=base.paginated
        ),
    )


def _has_page_geometry(cfg: dict[str, object]) -> bool:
    return any(key in cfg for key in ("width", "height", "margins"))


def _parse_band(cfg: dict[str, object], prefix: str, default: BandSpec) -> BandSpec:
    if not cfg:
        return default
    alignment = _parse_choice(
        cfg.get("alignment"), field=f"{prefix}.alignment", choices=_BAND_ALIGNMENTS
    )
    content = _parse_optional_str(cfg.get("content"), field=f"{prefix}.content")
    return BandSpec(
        enabled=_parse_bool(cfg.get("enabled"), field=f"{prefix}.enabled", default=bool(content)),
        height=_parse_float(cfg.get("height", default.height), field=f"{prefix}.height"),
        content=content or "",
        font_size=_parse_float(
            cfg.get("font_size", default.font_size), field=f"{prefix}.font_size"
        ),
        color=parse_color(cfg.get("color"), field=f"{prefix}.color") or default.color,
        alignment=cast(BandAlignment, alignment or default.alignment),
    )


def _parse_numbering(cfg: dict[str, object], default: PageNumberingSpec) -> PageNumberingSpec:
    if not cfg:
        return default
    position = _parse_choice(
        cfg.get("position"), field="layout.numbering.position", choices=_NUMBER_POSITIONS
    )
    start_page = _parse_int_strict(
        cfg.get("start_page", default.start_page), field="layout.numbering.start_page"
    )
    if start_page < 1:
        raise ValueError("layout.numbering.start_page must be a positive integer")
    return PageNumberingSpec(
        enabled=_parse_bool(cfg.get("enabled"), field="layout.numbering.enabled", default=True),
        position=cast(NumberPosition, position or default.position),
        format=_parse_optional_str(cfg.get("format"), field="layout.numbering.format")
        or default.format,
        start_page=start_page,
        font_size=_parse_float(
            cfg.get("font_size", default.font_size), field="layout.numbering.font_size"
        ),
        color=parse_color(cfg.get("color"), field="layout.numbering.color") or default.color,
    )


def _parse_metadata(cfg: dict[str, object]) -> DocumentMetadata | None:
    if not cfg:
        return None
    keywords = cfg.get("keywords")
    if isinstance(keywords, str):
        keyword_list = [part.strip() for part in keywords.split(",") if part.strip()]
    else:
        keyword_list = _parse_str_list(keywords, field="metadata.keywords") if keywords else []
    return DocumentMetadata(
        title=_parse_optional_str(cfg.get("title"), field="metadata.title"),
        author=_parse_optional_str(cfg.get("author"), field="metadata.author"),
        subject=_parse_optional_str(cfg.get("subject"), field="metadata.subject"),
        keywords=tuple(keyword_list),
        creator=_parse_optional_str(cfg.get("creator"), field="metadata.creator"),
        producer=_parse_optional_str(cfg.get("producer"), field="metadata.producer"),
    )


def _parse_generator_options(
    cfg: dict[str, object], document_cfg: dict[str, object]
) -> GeneratorOptions:
    defaults = GeneratorOptions()
    settle_ms = _parse_int_strict(
        document_cfg.get("wait_ms", cfg.get("settle_ms", defaults.settle_ms)),
        field="document.wait_ms",
    )
    if settle_ms < 0:
        raise ValueError("document.wait_ms must not be negative")
    values: dict[str, object] = {"settle_ms": settle_ms}
    for key in (
        "default_font_size",
        "default_border_width",
        "default_width",
        "default_height",
        "checkbox_size",
        "radio_spacing",
        "signature_height",
    ):
        if key in cfg:
            number = _parse_float(cfg[key], field=f"generator.{key}")
            if number <= 0:
                raise ValueError(f"generator.{key} must be positive")
            values[key] = number
    tailwind_cdn = _parse_optional_str(cfg.get("tailwind_cdn"), field="generator.tailwind_cdn")
    if tailwind_cdn is not None:
        values["tailwind_cdn"] = tailwind_cdn
    border_color = parse_color(
        cfg.get("default_border_color"), field="generator.default_border_color"
    )
    if border_color is not None:
        values["default_border_color"] = border_color
    return dataclasses.replace(defaults, **values)


def _parse_styles(cfg: dict[str, object]) -> StyleResolver:
    resolver = StyleResolver()
    for name, value in _get_dict(cfg, "colors").items():
        color = parse_color(value, field=f"styles.colors.{name}")
        if color is not None:
            resolver.register_color(name, color[0] * 255, color[1] * 255, color[2] * 255)
    for name, value in _get_dict(cfg, "sizes").items():
        resolver.register_size(name, _parse_float(value, field=f"styles.sizes.{name}"))
    return resolver


def _read_text_source(
    cfg: dict[str, object],
    inline_key: str,
    path_key: str,
    *,
    base_dir: Path,
) -> str | None:
    inline = cfg.get(inline_key)
    path_value = cfg.get(path_key)
    if inline is not None and path_value is not None:
        raise ValueError(f"use either document.{inline_key} or document.{path_key}, not both")
    if inline is not None:
        if not isinstance(inline, str):
            raise ValueError(f"document.{inline_key} must be a string")
        return inline
    path = _parse_optional_path(path_value, f"document.{path_key}", base_dir)
    if path is None:
        return None
    return Path(path).read_text(encoding="utf-8")


def _parse_optional_path(value: object, field: str, base_dir: Path) -> str | None:
    text = _parse_optional_str(value, field=field)
    if text is None:
        return None
    path = Path(text).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return str(path)


def _load_toml(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_dict(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if isinstance(value, dict):
        return value
    return {}


def _parse_choice(value: object, *, field: str, choices: tuple[str, ...]) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be one of {', '.join(choices)}")
    normalized = value.strip().lower()
    if not normalized:
        return None
    if normalized not in choices:
        raise ValueError(f"{field} must be one of {', '.join(choices)}")
    return normalized


def _parse_required_str(value: object, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value


def _parse_optional_str(value: object, *, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    normalized = value.strip()
    return normalized or None


def _parse_str_list(value: object, *, field: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{field} must be a list of strings")
    return list(value)


def _parse_bool(value: object, *, field: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{field} must be a boolean")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        raise ValueError(f"{field} must be a boolean")
    raise ValueError(f"{field} must be a boolean")


def _parse_float(value: object, *, field: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ValueError(f"{field} must be a number") from exc
    raise ValueError(f"{field} must be a number")


def _parse_int_strict(value: object, *, field: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field} must be an integer")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError(f"{field} must be an integer")
        try:
            return int(text)
        except ValueError as exc:
            raise ValueError(f"{field} must be an integer") from exc
    raise ValueError(f"{field} must be an integer")
