"""SSH helpers and remote shell scripts for fetching starter data."""

from __future__ import annotations

import json
import os
import re
import tempfile
from dataclasses import dataclass
from urllib.parse import urlsplit

from toba.runner import CommandError

_SSH_TARGET_PATTERN = re.compile(r"([^\s@]+@\S+)\s+-p\s+([0-9]+)\Z", re.ASCII)
_MAX_PORT_DIGITS_VALUE = 2**63 - 1
ROOT_MISSING_MARKER = "__TOBA_REMOTE_ROOT_MISSING__"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass(frozen=True)
class SSHTarget:
    """A ``user@host`` destination and its port."""

    user_host: str
    port: str

    def __str__(self) -> str:
        return f"{self.user_host}:{self.port}"


def parse_ssh_target(raw: str) -> SSHTarget:
    """Parse ``user@host -p port``; raise ValueError on any other form."""
    match = _SSH_TARGET_PATTERN.match(raw.strip())
    if match is None:
        raise ValueError(
            f"invalid TOBA_SSH_TARGET {_quote(raw)}; expected format: user@host -p port "
            "(example: user@192.168.0.1 -p 22)"
        )
    if int(match.group(2)) > _MAX_PORT_DIGITS_VALUE:
        raise ValueError(
            f"invalid TOBA_SSH_TARGET {_quote(raw)}; expected numeric port in format: "
            "user@host -p port"
        )
    return SSHTarget(user_host=match.group(1), port=match.group(2))


def shell_quote(value: str) -> str:
    """Quote value as a single-quoted shell word."""
    return "'" + value.replace("'", "'\\''") + "'"


def remote_script(remote_dir: str, script: str) -> str:
    """Prefix script with a change into remote_dir when one is given."""
    if not remote_dir.strip():
        return script
    return "cd " + shell_quote(remote_dir) + " && " + script


def _ssh_command_error(target: SSHTarget, err: BaseException, output: str = "") -> CommandError:
    detail = output.strip()
    message = f"SSH command failed on {target}: {err}"
    if detail:
        message += "\n" + detail
    return CommandError(message, command="ssh", dir="", output=detail)


def run_ssh_command(ctx, target: SSHTarget, remote_dir: str, script: str) -> None:
    """Run script on the SSH host; raise CommandError on failure."""
    try:
        ctx.runner.run(
            "", "ssh", "-p", target.port, target.user_host, remote_script(remote_dir, script)
        )
    except Exception as exc:
        raise _ssh_command_error(target, exc) from exc


def capture_ssh_command(ctx, target: SSHTarget, remote_dir: str, script: str) -> str:
    """Run script on the SSH host and return its trimmed stdout."""
    try:
        output = ctx.runner.capture_output(
            "", "ssh", "-p", target.port, target.user_host, remote_script(remote_dir, script)
        )
    except Exception as exc:
        raise _ssh_command_error(target, exc, getattr(exc, "output", "") or "") from exc
    return output.strip()


def copy_remote_file(ctx, target: SSHTarget, remote_path: str, local_path: str) -> None:
    """Download one remote file with scp, removing any partial file on failure."""
    os.makedirs(os.path.dirname(local_path) or ".", exist_ok=True)
    try:
        ctx.runner.run(
            "", "scp", "-P", target.port, f"{target.user_host}:{remote_path}", local_path
        )
    except Exception as exc:
        try:
            os.remove(local_path)
        except OSError:
            pass
        raise CommandError(
            f"failed to download starter file from {target}: {exc}",
            command="scp",
            dir="",
        ) from exc


def remote_preparation_script(
    remote_wordpress_root: str,
    remote_database: str,
    remote_plugins: str,
    remote_uploads: str,
    remote_source_url: str,
) -> str:
    """Build the shell script that exports the database and zips plugins and uploads."""
    all_files = " ".join(
        shell_quote(path)
        for path in (remote_database, remote_plugins, remote_uploads, remote_source_url)
    )
    source_name = shell_quote(path_base(remote_source_url))
    return "; ".join(
        [
            "set -eu",
            "if [ ! -d " + shell_quote(remote_wordpress_root) + " ]; then printf '%s\\n' "
            + shell_quote(ROOT_MISSING_MARKER) + "; exit 42; fi",
            'cleanup_on_error() { status=$?; if [ "$status" -ne 0 ]; then rm -f '
            + all_files + '; fi; exit "$status"; }',
            "cleanup_on_signal() { rm -f " + all_files + "; exit 130; }",
            "trap cleanup_on_error EXIT",
            "trap cleanup_on_signal HUP INT TERM",
            "cd " + shell_quote(remote_wordpress_root),
            "wp84 option get home > " + source_name + " & pid_source=$!",
            "wp84 db export " + shell_quote(path_base(remote_database))
            + " >/dev/null & pid_db=$!",
            "(cd wp-content && zip -r -q ../" + shell_quote(path_base(remote_plugins))
            + " plugins) & pid_plugins=$!",
            "(cd wp-content && zip -r -q -0 ../" + shell_quote(path_base(remote_uploads))
            + " . -i " + shell_quote("uploads/*") + ") & pid_uploads=$!",
            'wait "$pid_source"',
            'wait "$pid_db"',
            'wait "$pid_plugins"',
            'wait "$pid_uploads"',
            "cat " + source_name,
        ]
    )


def normalize_source_url(raw: str) -> str:
    """Return the last line of raw that is a URL with a scheme and host."""
    for line in reversed(raw.split("\n")):
        candidate = line.strip()
        if not candidate:
            continue
        try:
            parsed = urlsplit(candidate)
        except ValueError:
            continue
        if not parsed.scheme or not parsed.netloc:
            continue
        return parsed.geturl()
    raise ValueError(f"invalid remote WordPress home URL: {raw}")


def make_temp_dir() -> str:
    """Create a temporary directory for prepared starter assets."""
    return tempfile.mkdtemp(prefix="toba-starter-")


def path_base(path: str) -> str:
    """Return the last element of path, ignoring trailing separators."""
    if path == "":
        return "."
    stripped = path.rstrip(os.sep)
    if stripped == "":
        return os.sep
    return os.path.basename(stripped)