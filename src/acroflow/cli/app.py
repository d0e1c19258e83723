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

import typer

from . import command_registry
from .core.common import _get_version
from .ui import configure_ui, console, console_err

app = typer.Typer(add_completion=False, help="Acroflow: fillable PDF forms from HTML.")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"acroflow {_get_version()}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show tracebacks instead of one-line errors.",
        rich_help_panel="Debug",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Hide non-error output.",
        rich_help_panel="Global",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output.",
        rich_help_panel="Accessibility",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
        rich_help_panel="Info",
    ),
) -> None:
    _ = version
    configure_ui(no_color=no_color)
    ctx.ensure_object(dict)
    ctx.obj.update({"debug": debug, "quiet": quiet, "no_color": no_color})
    if ctx.invoked_subcommand is None:
        console_err.print(
            "[red]Error:[/red] No subcommand provided. "
            "Run `acroflow --help` for available commands."
        )
        raise typer.Exit(code=2)


command_registry.register(app)


def main() -> None:
    app()
