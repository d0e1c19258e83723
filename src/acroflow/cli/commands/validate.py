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

from ...config import load_job
from ...core.validation import validate_request
from ..core.common import _ctx_value, _run_cli
from ..ui import build_kv_table, console, console_err

_VALIDATE_HELP = (
    "Check a TOML job file without rendering it.\n\n"
    "Reports every problem found (missing content, dangerous tags, duplicate or\n"
    "incomplete fields, unknown paper size) and exits with code 2 if there are any.\n\n"
    "Examples:\n"
    "  acroflow validate job.toml\n"
)


def register(app: typer.Typer) -> None:
    app.command(help=_VALIDATE_HELP)(validate)


def validate(
    ctx: typer.Context,
    job: Path = typer.Argument(..., help="TOML job file.", exists=True, dir_okay=False),
) -> None:
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> int:
        loaded = load_job(job)
        request = loaded.request
        errors = validate_request(
            request.content, request.fields, paper=request.paper, flowing=loaded.flowing
        )
        for error in errors:
            console_err.print(f"[red]Error:[/red] {error}")
        if errors:
            return 2
        if not quiet_value:
            rows = [
                ("Job", str(job)),
                ("Mode", loaded.mode),
                ("Paper", f"{request.paper}{' landscape' if request.landscape else ''}"),
                ("Fields", str(len(request.fields))),
            ]
            console.print(build_kv_table(rows, title="Valid"))
        return 0

    _run_cli(_run, debug=debug_value)
