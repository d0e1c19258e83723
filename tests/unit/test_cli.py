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


import contextlib
import json
import re
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from typer.testing import CliRunner

from acroflow.cli import app
from acroflow.core.models import CheckboxFieldSpec, GenerationResult, SkippedField, TextFieldSpec
from acroflow.render.forms import extract_form_data
from acroflow.render.session import FlowSession

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")

_VALID_JOB = """
[document]
content = "<form><input id='name'></form>"

[[fields]]
kind = "text"
name = "name"
selector = "#name"
"""

_FLOWING_JOB = """
[document]
mode = "flowing"
content = "Hello"

[page]
margins = { top = 40 }

[[fields]]
kind = "text"
name = "name"
"""


def _strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def _no_status(*_args, **_kwargs):
    return contextlib.nullcontext()


class TestCliRoot(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()

    def test_help_and_version(self) -> None:
        result = self.runner.invoke(app, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("generate", "validate", "fill", "extract"):
            self.assertIn(command, result.output)
        result = self.runner.invoke(app, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("acroflow", _strip_ansi(result.output))

    def test_no_subcommand(self) -> None:
        result = self.runner.invoke(app, [])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("acroflow --help", _strip_ansi(result.output))


class TestCliJobs(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _job(self, text: str) -> Path:
        path = self.root / "job.toml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_validate_reports_errors(self) -> None:
        job = self._job('[[fields]]\nkind = "text"\nname = "a"\n')
        result = self.runner.invoke(app, ["validate", str(job)])
        self.assertEqual(result.exit_code, 2)
        output = _strip_ansi(result.output)
        self.assertIn("content is required", output)
        self.assertIn("requires a selector or a position", output)

    def test_validate_ok(self) -> None:
        result = self.runner.invoke(app, ["validate", str(self._job(_VALID_JOB))])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Valid", _strip_ansi(result.output))

    def test_validate_bad_toml_value(self) -> None:
        job = self._job('[document]\nmode = "draft"\n')
        result = self.runner.invoke(app, ["validate", str(job)])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("document.mode", _strip_ansi(result.output))

    def test_generate_defaults_output_next_to_job(self) -> None:
        job = self._job(_VALID_JOB)
        fake = GenerationResult(
            data=b"%PDF",
            page_count=1,
            field_count=0,
            skipped_fields=(SkippedField(name="name", reason="selector-not-found"),),
            warnings=("field 'name' skipped: selector-not-found",),
            path=str(job.with_suffix(".pdf")),
        )
        with (
            mock.patch("acroflow.cli.commands.generate.run_job", return_value=fake) as run_job,
            mock.patch("acroflow.cli.commands.generate.status", _no_status),
        ):
            result = self.runner.invoke(app, ["generate", str(job)])
        self.assertEqual(result.exit_code, 0)
        loaded = run_job.call_args.args[0]
        self.assertEqual(loaded.request.output_path, str(job.with_suffix(".pdf")))
        output = _strip_ansi(result.output)
        self.assertIn("Warning:", output)
        self.assertIn("selector-not-found", output)
        self.assertIn("Pages", output)

    def test_generate_overrides_resize_layout(self) -> None:
        job = self._job(_FLOWING_JOB)
        fake = GenerationResult(data=b"%PDF", page_count=1, field_count=1)
        target = self.root / "out.pdf"
        with (
            mock.patch("acroflow.cli.commands.generate.run_job", return_value=fake) as run_job,
            mock.patch("acroflow.cli.commands.generate.status", _no_status),
        ):
            result = self.runner.invoke(
                app,
                [
                    "--quiet",
                    "generate",
                    str(job),
                    "-o",
                    str(target),
                    "--paper",
                    "letter",
                    "--landscape",
                ],
            )
        self.assertEqual(result.exit_code, 0)
        loaded = run_job.call_args.args[0]
        self.assertTrue(loaded.flowing)
        request = loaded.request
        self.assertEqual(request.output_path, str(target))
        self.assertEqual(request.paper, "LETTER")
        self.assertEqual((request.layout.width, request.layout.height), (792.0, 612.0))
        self.assertEqual(request.layout.margins.top, 40)

    def test_generate_flatten_override(self) -> None:
        job = self._job(_VALID_JOB)
        fake = GenerationResult(data=b"%PDF", page_count=1, field_count=1)
        with (
            mock.patch("acroflow.cli.commands.generate.run_job", return_value=fake) as run_job,
            mock.patch("acroflow.cli.commands.generate.status", _no_status),
        ):
            result = self.runner.invoke(app, ["--quiet", "generate", str(job), "--flatten"])
        self.assertEqual(result.exit_code, 0)
        self.assertTrue(run_job.call_args.args[0].request.flatten)

    def test_generate_rejects_invalid_job(self) -> None:
        job = self._job('[document]\ncontent = "<script>x</script>"\n')
        with mock.patch("acroflow.cli.commands.generate.run_job") as run_job:
            result = self.runner.invoke(app, ["generate", str(job)])
        self.assertEqual(result.exit_code, 2)
        run_job.assert_not_called()
        self.assertIn("dangerous tag", _strip_ansi(result.output))

    def test_generate_flowing_end_to_end(self) -> None:
        job = self._job(_FLOWING_JOB)
        with mock.patch("acroflow.cli.commands.generate.status", _no_status):
            result = self.runner.invoke(app, ["--quiet", "generate", str(job)])
        self.assertEqual(result.exit_code, 0)
        written = job.with_suffix(".pdf")
        self.assertTrue(written.exists())
        self.assertEqual(extract_form_data(written.read_bytes()), {"name": ""})


class TestCliForms(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        session = FlowSession()
        session.add_field(TextFieldSpec(name="name"))
        session.add_field(CheckboxFieldSpec(name="agree"))
        self.pdf = self.root / "form.pdf"
        self.pdf.write_bytes(session.finish().data)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_fill_writes_default_output(self) -> None:
        data = self.root / "data.json"
        data.write_text(json.dumps({"name": "Ada", "agree": True, "extra": 1}), encoding="utf-8")
        result = self.runner.invoke(app, ["fill", str(self.pdf), str(data)])
        self.assertEqual(result.exit_code, 0)
        output = _strip_ansi(result.output)
        self.assertIn("no field named 'extra'", output)
        self.assertIn("Filled 2 field(s)", output)
        filled = self.root / "form-filled.pdf"
        self.assertEqual(extract_form_data(filled.read_bytes()), {"name": "Ada", "agree": True})

    def test_fill_requires_object(self) -> None:
        data = self.root / "data.json"
        data.write_text("[1, 2]", encoding="utf-8")
        result = self.runner.invoke(app, ["fill", str(self.pdf), str(data)])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("must contain a JSON object", _strip_ansi(result.output))

    def test_extract_json(self) -> None:
        result = self.runner.invoke(app, ["extract", str(self.pdf), "--json"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(_strip_ansi(result.output)), {"name": "", "agree": False})

    def test_extract_table(self) -> None:
        result = self.runner.invoke(app, ["extract", str(self.pdf)])
        self.assertEqual(result.exit_code, 0)
        output = _strip_ansi(result.output)
        self.assertIn("agree", output)
        self.assertIn("no", output)


if __name__ == "__main__":
    unittest.main()
