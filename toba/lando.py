"""Control of the local Lando environment."""

from __future__ import annotations

from toba.pipeline import CodedError


def start(runner, project_dir: str) -> None:
    """Run ``lando start`` quietly in project_dir.

    Raises CodedError with code LANDO_START_FAILED when the command fails.
    """
    try:
        runner.capture_output(project_dir, "lando", "start")
    except Exception as exc:
        raise CodedError("LANDO_START_FAILED", "lando start failed", exc) from exc