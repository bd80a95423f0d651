import os

import pytest

from toba.runner import (
    CommandError,
    ExecRunner,
    NoopRunner,
    format_command_error,
    with_working_dir_env,
)


def _shell_quote(value):
    return "'" + value.replace("'", "'\\''") + "'"


def test_capture_output_uses_working_directory(tmp_path):
    output = ExecRunner().capture_output(str(tmp_path), "pwd")
    assert os.path.realpath(output.strip()) == os.path.realpath(str(tmp_path))


def test_capture_output_does_not_use_shell_by_default():
    output = ExecRunner().capture_output("", "printf", "%s", "$HOME")
    assert output == "$HOME"


def test_run_supports_explicit_shell_commands(tmp_path):
    target = tmp_path / "shell.txt"
    ExecRunner().run("", "bash", "-lc", "printf '%s' \"$HOME\" > " + _shell_quote(str(target)))
    content = target.read_text().strip()
    assert content != "$HOME"
    assert len(content) > 0


def test_run_captures_command_output_in_errors():
    with pytest.raises(CommandError) as excinfo:
        ExecRunner().run(
            "", "bash", "-lc",
            "printf 'stdout-message\\n'; printf 'stderr-message\\n' >&2; exit 1",
        )
    assert "stderr-message" in str(excinfo.value)
    assert excinfo.value.returncode == 1


def test_capture_output_failure_carries_stderr():
    with pytest.raises(CommandError) as excinfo:
        ExecRunner().capture_output("", "bash", "-c", "echo out; echo err >&2; exit 3")
    assert excinfo.value.output == "err\n"
    assert excinfo.value.returncode == 3


def test_capture_output_failure_falls_back_to_stdout():
    with pytest.raises(CommandError) as excinfo:
        ExecRunner().capture_output("", "bash", "-c", "echo out; exit 2")
    assert excinfo.value.output == "out\n"


def test_missing_program_raises_command_error():
    with pytest.raises(CommandError) as excinfo:
        ExecRunner().run("", "binary-that-does-not-exist-toba")
    assert "binary-that-does-not-exist-toba" in str(excinfo.value)


def test_format_command_error_prefers_stderr():
    error = format_command_error("/work", "git", ["status"], 1, "out", "  err  ")
    assert str(error).endswith("\nerr")
    assert "/work" in str(error)
    assert error.command == "git status"


def test_format_command_error_without_output_has_single_line():
    error = format_command_error("/work", "git", ["status"], 1, "  ", "")
    assert "\n" not in str(error)
    assert error.output == ""


def test_with_working_dir_env_sets_pwd_without_touching_environ():
    before = os.environ.get("PWD")
    env = with_working_dir_env("/some/dir")
    assert env["PWD"] == "/some/dir"
    assert os.environ.get("PWD") == before


def test_noop_runner_returns_empty_output():
    runner = NoopRunner()
    assert runner.run("/x", "anything", "arg") is None
    assert runner.capture_output("/x", "anything") == ""