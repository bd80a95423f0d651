"""Command runners that launch external programs or pretend to."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass, field


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status {returncode}"


class CommandError(Exception):
    """Raised when an external command cannot start or exits unsuccessfully."""

    def __init__(
        self,
        message: str,
        *,
        command: str,
        dir: str,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.dir = dir
        self.returncode = returncode
        self.output = output


def format_command_error(
    dir: str,
    cmd: str,
    args,
    returncode: int,
    stdout: str,
    stderr: str,
) -> CommandError:
    """Build a failure error naming the command, directory and captured output."""
    command_line = " ".join([cmd, *args])
    output = stderr.strip() or stdout.strip()
    message = f"command {_quote(command_line)} failed in {dir}: {_describe_exit(returncode)}"
    if output:
        message += "\n" + output
    return CommandError(
        message,
        command=command_line,
        dir=dir,
        returncode=returncode,
        output=output,
    )


def with_working_dir_env(dir: str) -> dict[str, str]:
    """Return a copy of the environment with PWD set to dir."""
    env = dict(os.environ)
    env["PWD"] = dir
    return env


def _execute(dir: str, cmd: str, args) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            [cmd, *args],
            cwd=dir or None,
            env=with_working_dir_env(dir),
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        command_line = " ".join([cmd, *args])
        raise CommandError(
            f"command {_quote(command_line)} failed in {dir}: {exc}",
            command=command_line,
            dir=dir,
        ) from exc


class ExecRunner:
    """Runs programs directly, without a shell, capturing their output."""

    def run(self, dir: str, cmd: str, *args: str) -> None:
        """Run cmd in dir; raise CommandError carrying its output on failure."""
        completed = _execute(dir, cmd, args)
        if completed.returncode != 0:
            raise format_command_error(
                dir, cmd, args, completed.returncode, completed.stdout, completed.stderr
            )

    def capture_output(self, dir: str, cmd: str, *args: str) -> str:
        """Run cmd in dir and return its stdout.

        On failure a CommandError is raised whose ``output`` holds stderr,
        or stdout when stderr is empty.
        """
        completed = _execute(dir, cmd, args)
        if completed.returncode != 0:
            command_line = " ".join([cmd, *args])
            raise CommandError(
                f"command {_quote(command_line)} failed in {dir}: "
                f"{_describe_exit(completed.returncode)}",
                command=command_line,
                dir=dir,
                returncode=completed.returncode,
                output=completed.stderr or completed.stdout,
            )
        return completed.stdout


@dataclass
class NoopRunner:
    """Accepts every command without running it, keeping a record of each one."""

    calls: list[tuple[str, str, tuple[str, ...]]] = field(default_factory=list)

    def run(self, dir: str, cmd: str, *args: str) -> None:
        """Record the command and report success."""
        self.calls.append((dir, cmd, tuple(args)))

    def capture_output(self, dir: str, cmd: str, *args: str) -> str:
        """Record the command and return an empty output."""
        self.calls.append((dir, cmd, tuple(args)))
        return ""