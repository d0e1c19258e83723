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

import asyncio
from dataclasses import replace
from pathlib import Path

import typer

from ...config import GenerationJob, load_job
from ...core.models import GenerationResult
from ...core.validation import validate_request
from ...render.generator import generate_pdf
from ...render.session import generate_flowing
from ...render.spec import PageLayoutConfig
from ..core.common import _ctx_value, _run_cli
from ..core.log import _warn
from ..ui import build_kv_table, console, console_err, status

_GENERATE_HELP = (
    "Generate a fillable PDF from a TOML job file.\n\n"
    "Examples:\n"
    "  acroflow generate job.toml -o form.pdf\n"
    "  acroflow generate job.toml --paper letter --landscape\n"
    "  acroflow generate job.toml --flatten -o print.pdf\n"
)


def register(app: typer.Typer) -> None:
    app.command(help=_GENERATE_HELP)(generate)


def generate(
    ctx: typer.Context,
    job: Path = typer.Argument(..., help="TOML job file.", exists=True, dir_okay=False),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output PDF path (defaults to document.output, then <job>.pdf).",
        rich_help_panel="Outputs",
    ),
    paper: str | None = typer.Option(
        None,
        "--paper",
        help="Paper size override (A3/A4/A5/Letter/Legal/Tabloid).",
        rich_help_panel="Layout",
    ),
    landscape: bool | None = typer.Option(
        None,
        "--landscape/--portrait",
        help="Page orientation override.",
        rich_help_panel="Layout",
    ),
    flatten: bool = typer.Option(
        False,
        "--flatten",
        help="Bake fields into page content (no fillable fields remain).",
        rich_help_panel="Outputs",
    ),
) -> None:
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> int:
        loaded = _with_overrides(
            load_job(job), output=output, paper=paper, landscape=landscape, flatten=flatten
        )
        request = loaded.request
        if request.output_path is None:
            request = replace(request, output_path=str(job.with_suffix(".pdf")))
            loaded = replace(loaded, request=request)
        errors = validate_request(
            request.content, request.fields, paper=request.paper, flowing=loaded.flowing
        )
        if errors:
            for error in errors:
                console_err.print(f"[red]Error:[/red] {error}")
            return 2
        with status("Generating form...", quiet=quiet_value):
            result = run_job(loaded)
        for warning in result.warnings:
            _warn(warning, quiet=quiet_value)
        if not quiet_value:
            console.print(build_kv_table(_summary_rows(result), title="Generated"))
        return 0

    _run_cli(_run, debug=debug_value)


def run_job(job: GenerationJob) -> GenerationResult:
    if job.flowing:
        return generate_flowing(job.request, job.options, resolver=job.resolver)
    return asyncio.run(generate_pdf(job.request, job.options, resolver=job.resolver))


def _with_overrides(
    job: GenerationJob,
    *,
    output: Path | None,
    paper: str | None,
    landscape: bool | None,
    flatten: bool = False,
) -> GenerationJob:
    request = job.request
    if flatten:
        request = replace(request, flatten=True)
    if output is not None:
        request = replace(request, output_path=str(output))
    if paper is not None or landscape is not None:
        request = replace(
            request,
            paper=(paper or request.paper).strip().upper(),
            landscape=request.landscape if landscape is None else landscape,
        )
        if request.layout is not None:
            sized = PageLayoutConfig.for_paper(request.paper, landscape=request.landscape)
            layout = replace(request.layout, width=sized.width, height=sized.height)
            request = replace(request, layout=layout)
    return replace(job, request=request)


def _summary_rows(result: GenerationResult) -> list[tuple[str, str]]:
    rows = [
        ("Output", result.path or "-"),
        ("Pages", str(result.page_count)),
        ("Fields", str(result.field_count)),
    ]
    if result.skipped_fields:
        skipped = ", ".join(f"{item.name} ({item.reason})" for item in result.skipped_fields)
        rows.append(("Skipped", skipped))
    return rows
