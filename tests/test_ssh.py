import io
import os
import shlex
import shutil

import pytest

from toba.context import ConsoleLogger, ProjectConfig, new_context
from toba.runner import CommandError
from toba.ssh import (
    SSHTarget,
    capture_ssh_command,
    copy_remote_file,
    make_temp_dir,
    normalize_source_url,
    parse_ssh_target,
    path_base,
    remote_preparation_script,
    remote_script,
    run_ssh_command,
    shell_quote,
)

TARGET = SSHTarget(user_host="user@192.168.0.1", port="22")


class RecordingRunner:
    def __init__(self, output="", error=None, write_local=False):
        self.output = output
        self.error = error
        self.write_local = write_local
        self.commands = []

    def run(self, dir, cmd, *args):
        self.commands.append((dir, cmd, args))
        if self.write_local:
            with open(args[-1], "w") as handle:
                handle.write("partial")
        if self.error is not None:
            raise self.error

    def capture_output(self, dir, cmd, *args):
        self.commands.append((dir, cmd, args))
        if self.error is not None:
            raise self.error
        return self.output


def make_ctx(tmp_path, runner):
    return new_context(
        str(tmp_path), ProjectConfig(name="demo"), ConsoleLogger(io.StringIO()), runner
    )


def test_parse_ssh_target_splits_user_host_and_port():
    target = parse_ssh_target("  user@192.168.0.1 -p 22  ")
    assert target == SSHTarget(user_host="user@192.168.0.1", port="22")


@pytest.mark.parametrize(
    "raw", ["bad-target", "user@host", "user@host -p abc", "user@host -p 22 extra", ""]
)
def test_parse_ssh_target_rejects_bad_values(raw):
    with pytest.raises(ValueError, match="expected format: user@host -p port"):
        parse_ssh_target(raw)


@pytest.mark.parametrize("value", ["plain", "it's", "a b", "''", "$HOME", "x'y'z"])
def test_shell_quote_round_trips_through_shell_parsing(value):
    assert shlex.split(shell_quote(value)) == [value]


def test_remote_script_without_dir_returns_script():
    assert remote_script("   ", "ls -la") == "ls -la"


def test_remote_script_with_dir_changes_directory_first():
    result = remote_script("www/example.com", "ls")
    assert result == "cd " + shell_quote("www/example.com") + " && ls"


def test_remote_preparation_script_contents():
    script = remote_preparation_script(
        "www/example.com",
        "www/example.com/run.sql",
        "www/example.com/run-plugins.zip",
        "www/example.com/run-uploads.zip",
        "www/example.com/run-home.txt",
    )
    for fragment in [
        "set -eu",
        "__TOBA_REMOTE_ROOT_MISSING__",
        "trap cleanup_on_error EXIT",
        "cd 'www/example.com'",
        "wp84 option get home > 'run-home.txt' & pid_source=$!",
        "wp84 db export 'run.sql' >/dev/null & pid_db=$!",
        "zip -r -q ../'run-plugins.zip' plugins",
        "zip -r -q -0 ../'run-uploads.zip'",
        "-i 'uploads/*'",
        'wait "$pid_uploads"',
    ]:
        assert fragment in script
    assert script.endswith("cat 'run-home.txt'")


def test_normalize_source_url_uses_last_url_line():
    raw = "\x1b[32;1mSuccess:\x1b[0m Exported to 'starter.sql'.\nhttps://starter.example.test\n"
    assert normalize_source_url(raw) == "https://starter.example.test"


def test_normalize_source_url_rejects_missing_host():
    with pytest.raises(ValueError, match="invalid remote WordPress home URL"):
        normalize_source_url("not a url\n\n")


def test_path_base():
    assert path_base("/srv/site/run-plugins.zip") == "run-plugins.zip"
    assert path_base("www/example.com/") == "example.com"
    assert path_base("") == "."


def test_make_temp_dir_creates_directory():
    path = make_temp_dir()
    try:
        assert os.path.isdir(path)
        assert os.path.basename(path).startswith("toba-starter-")
    finally:
        shutil.rmtree(path)


def test_capture_ssh_command_trims_output_and_builds_command(tmp_path):
    runner = RecordingRunner(output="  https://starter.example.test \n")
    ctx = make_ctx(tmp_path, runner)

    output = capture_ssh_command(ctx, TARGET, "", "echo hi")

    assert output == "https://starter.example.test"
    assert runner.commands == [("", "ssh", ("-p", "22", "user@192.168.0.1", "echo hi"))]


def test_capture_ssh_command_includes_captured_output_in_error(tmp_path):
    failure = CommandError("exit status 42", command="ssh", dir="", output="__TOBA_REMOTE_ROOT_MISSING__\n")
    ctx = make_ctx(tmp_path, RecordingRunner(error=failure))

    with pytest.raises(CommandError) as excinfo:
        capture_ssh_command(ctx, TARGET, "", "true")

    message = str(excinfo.value)
    assert "SSH command failed on user@192.168.0.1:22" in message
    assert "__TOBA_REMOTE_ROOT_MISSING__" in message


def test_run_ssh_command_uses_remote_dir(tmp_path):
    runner = RecordingRunner()
    ctx = make_ctx(tmp_path, runner)

    run_ssh_command(ctx, TARGET, "www/example.com", "rm -f a")

    assert runner.commands[0][2][-1] == remote_script("www/example.com", "rm -f a")


def test_run_ssh_command_wraps_failure(tmp_path):
    ctx = make_ctx(tmp_path, RecordingRunner(error=PermissionError("denied")))

    with pytest.raises(CommandError, match="SSH command failed on user@192.168.0.1:22: denied"):
        run_ssh_command(ctx, TARGET, "", "true")


def test_copy_remote_file_creates_parent_directory(tmp_path):
    runner = RecordingRunner()
    ctx = make_ctx(tmp_path, runner)
    local = tmp_path / "downloads" / "db" / "starter.sql"

    copy_remote_file(ctx, TARGET, "www/starter.sql", str(local))

    assert local.parent.is_dir()
    assert runner.commands == [
        ("", "scp", ("-P", "22", "user@192.168.0.1:www/starter.sql", str(local)))
    ]


def test_copy_remote_file_removes_partial_file_on_failure(tmp_path):
    runner = RecordingRunner(error=OSError("closed"), write_local=True)
    ctx = make_ctx(tmp_path, runner)
    local = tmp_path / "uploads" / "starter-uploads.zip"

    with pytest.raises(CommandError, match="failed to download starter file from user@192.168.0.1:22"):
        copy_remote_file(ctx, TARGET, "www/starter-uploads.zip", str(local))

    assert not local.exists()