"""Checks that the external tools the workflow needs are installed."""

from __future__ import annotations

import shutil
from dataclasses import dataclass


@dataclass(frozen=True)
class Check:
    """One required external program."""

    name: str
    binary: str


@dataclass(frozen=True)
class Result:
    """Outcome of one check; error is None when the program was found."""

    check: Check
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def full_workflow_checks() -> list[Check]:
    """Return the programs the full create workflow needs, in order."""
    return [
        Check("Git", "git"),
        Check("Node", "node"),
        Check("NPM", "npm"),
        Check("Lando", "lando"),
        Check("Docker", "docker"),
        Check("SSH", "ssh"),
        Check("SCP", "scp"),
        Check("Zip", "zip"),
    ]


def check_binary(name: str) -> None:
    """Raise FileNotFoundError when name cannot be found in PATH."""
    if shutil.which(name) is None:
        raise FileNotFoundError(f"{name} is not installed or not in PATH")


def run_checks(checks) -> list[Result]:
    """Run every check and return one result per check."""
    results = []
    for check in checks:
        try:
            check_binary(check.binary)
        except FileNotFoundError as exc:
            results.append(Result(check, exc))
        else:
            results.append(Result(check))
    return results