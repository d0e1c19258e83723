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

from pathlib import Path

import typer

from ...render.forms import extract_form_data
from ..core.common import _ctx_value, _run_cli
from ..ui import build_kv_table, console

_EXTRACT_HELP = (
    "Print the current field values of a PDF form.\n\n"
    "Examples:\n"
    "  acroflow extract filled.pdf\n"
    "  acroflow extract filled.pdf --json > values.json\n"
)


def register(app: typer.Typer) -> None:
    app.command(help=_EXTRACT_HELP)(extract)


def extract(
    ctx: typer.Context,
    pdf: Path = typer.Argument(..., help="PDF form.", exists=True, dir_okay=False),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print values as a JSON object.",
        rich_help_panel="Outputs",
    ),
) -> None:
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        values = extract_form_data(pdf.read_bytes())
        if as_json:
            console.print_json(data=values)
            return
        rows = [(name, _display(value)) for name, value in sorted(values.items())]
        console.print(build_kv_table(rows, title=pdf.name))

    _run_cli(_run, debug=debug_value)


def _display(value: object) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)
