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

import json
from pathlib import Path

import typer

from ...render.forms import fill_form
from ..core.common import _ctx_value, _run_cli
from ..core.log import _warn
from ..ui import console

_FILL_HELP = (
    "Fill the form fields of a PDF from a JSON object.\n\n"
    "Keys are field names. Checkboxes take booleans, radio groups take the\n"
    "option value, everything else is written as text.\n\n"
    "Examples:\n"
    "  acroflow fill form.pdf data.json -o filled.pdf\n"
)


def register(app: typer.Typer) -> None:
    app.command(help=_FILL_HELP)(fill)


def fill(
    ctx: typer.Context,
    pdf: Path = typer.Argument(..., help="Fillable PDF.", exists=True, dir_okay=False),
    data: Path = typer.Argument(..., help="JSON object with field values.", exists=True),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output PDF path (defaults to <pdf>-filled.pdf).",
        rich_help_panel="Outputs",
    ),
) -> None:
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        values = json.loads(data.read_text(encoding="utf-8"))
        if not isinstance(values, dict):
            raise ValueError(f"{data} must contain a JSON object")
        result = fill_form(pdf.read_bytes(), values)
        for name in result.missing:
            _warn(f"no field named {name!r}", quiet=quiet_value)
        output_path = output or pdf.with_name(f"{pdf.stem}-filled.pdf")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(result.data)
        if not quiet_value:
            console.print(f"Filled {len(result.filled)} field(s): {output_path}")

    _run_cli(_run, debug=debug_value)
