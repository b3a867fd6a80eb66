"""Tests for the cbgen command line."""

import re

import click
import pytest
from click.testing import CliRunner

from codebrowser import __version__
from codebrowser.cli import cli, main, split_compile_args
from codebrowser.generator.exceptions import CompilationDatabaseError
from codebrowser.utils.error_handler import handle_exceptions
from codebrowser.utils.exit_codes import ExitCodes
from conftest import RecordingProcessor


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def processor(tmp_path, monkeypatch):
    """Route every run through a recording processor, with state under tmp_path."""
    monkeypatch.chdir(tmp_path)
    recording = RecordingProcessor()
    monkeypatch.setattr("codebrowser.generator.runner.load_processor", lambda spec=None: recording)
    return recording


def test_split_compile_args():
    assert split_compile_args(["generate", "a.c"]) == (["generate", "a.c"], None)
    assert split_compile_args(["generate", "a.c", "--", "-DX", "--", "y"]) == (
        ["generate", "a.c"],
        ["-DX", "--", "y"],
    )
    assert split_compile_args(["generate", "--"]) == (["generate"], [])


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_is_ascii(runner):
    result = runner.invoke(cli, ["generate", "--help"])
    assert result.exit_code == 0
    result.output.encode("ascii")


def test_generate(runner, processor, compile_db, source_tree, tmp_path):
    out = tmp_path / "html"
    result = runner.invoke(
        cli,
        ["generate", "-b", str(compile_db), "-o", str(out), "-p", f"app:{source_tree}", "-a"],
    )
    assert result.exit_code == ExitCodes.SUCCESS, result.output
    assert len(processor.jobs) == 2
    assert (out / "fileIndex").exists()
    assert (tmp_path / ".codebrowser" / "codebrowser.log").exists()


def test_output_is_required(runner, processor, compile_db):
    result = runner.invoke(cli, ["generate", "-b", str(compile_db), "-a"])
    assert result.exit_code == 2
    assert "--output" in result.output


@pytest.mark.parametrize(
    "args",
    [
        # No compilation database at all
        ["-p", "app:/src", "/src/a.cc"],
        # Both -a and explicit sources
        ["-b", "BUILD", "-p", "app:/src", "-a", "/src/a.cc"],
        # No project and not a directory
        ["-b", "BUILD", "/src/a.cc"],
        # Malformed project spec
        ["-b", "BUILD", "-p", "app", "-a"],
    ],
)
def test_configuration_errors(runner, processor, compile_db, tmp_path, args):
    args = [str(compile_db) if arg == "BUILD" else arg for arg in args]
    result = runner.invoke(cli, ["generate", "-o", str(tmp_path / "html"), *args])
    assert result.exit_code == ExitCodes.CONFIGURATION_ERROR
    assert "ERROR" in result.output
    assert processor.jobs == []


def test_failed_units_set_the_exit_code(runner, processor, compile_db, source_tree, tmp_path):
    processor.fail.add(f"{source_tree}/a.cc")
    result = runner.invoke(
        cli,
        ["generate", "-b", str(compile_db), "-o", str(tmp_path / "html"), "-p", f"app:{source_tree}", "-a", "--quiet"],
    )
    assert result.exit_code == ExitCodes.UNITS_FAILED


def test_summary_table(runner, processor, compile_db, source_tree, tmp_path):
    processor.fail.add(f"{source_tree}/a.cc")
    result = runner.invoke(
        cli,
        ["generate", "-b", str(compile_db), "-o", str(tmp_path / "html"), "-p", f"app:{source_tree}", "-a"],
    )
    assert result.exit_code == ExitCodes.UNITS_FAILED
    assert "Generation summary" in result.output
    assert re.search(r"processed\W+1\b", result.output)
    assert re.search(r"failed\W+1\b", result.output)


def test_main_passes_inline_compile_command(processor, source_tree, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "generate",
                "-o",
                str(tmp_path / "html"),
                "-p",
                f"app:{source_tree}",
                "--quiet",
                str(source_tree / "m.cc"),
                "--",
                "-DINLINE",
            ]
        )
    assert excinfo.value.code == 0
    (job,) = processor.jobs
    assert job.command_tokens[0] == "clang-tool"
    assert "-DINLINE" in job.command_tokens


class TestHandleExceptions:
    """Crashes are logged with their traceback; expected errors are not."""

    @staticmethod
    def make_command(error):
        @click.command()
        @handle_exceptions
        def boom():
            raise error

        return boom

    def test_crash_is_written_to_the_error_log(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(self.make_command(RuntimeError("kaput")))

        assert result.exit_code == 1
        assert "RuntimeError: kaput" in result.output
        log = (tmp_path / ".codebrowser" / "error.log").read_text(encoding="utf-8")
        assert "Traceback" in log
        assert "kaput" in log

    def test_generator_errors_are_reported_plainly(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(self.make_command(CompilationDatabaseError("no database")))

        assert result.exit_code == 1
        assert "no database" in result.output
        assert not (tmp_path / ".codebrowser" / "error.log").exists()
