"""Pipeline steps for project setup, tool checks, starter data and the Lando app."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from typing import Callable, Optional

from toba import lando, sourcedata
from toba.doctor import full_workflow_checks, run_checks
from toba.sourcedata import BackupSelection


class ProjectDirExistsError(FileExistsError):
    """Raised when the project directory to be created is already present."""

    def __init__(self, path: str) -> None:
        super().__init__(f"project directory already exists: {path}")
        self.path = path


class ClearImportedCachesStep:
    """Removes imported wp-content caches and flushes the WordPress cache."""

    def name(self) -> str:
        return "Clear imported caches"

    def run(self, ctx) -> None:
        cache_dir = os.path.join(ctx.paths.wp_content, "cache")

        if ctx.dry_run:
            ctx.logger.info("Would remove: " + cache_dir)
            ctx.logger.info("Would run: lando wp cache flush")
            return

        _remove_all(cache_dir)

        ctx.logger.info("Running: lando wp cache flush")
        ctx.runner.run(ctx.paths.root, "lando", "wp", "cache", "flush")


def _remove_all(path: str) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except NotADirectoryError:
        os.remove(path)


class DoctorStep:
    """Checks that every external tool of the full workflow is in PATH."""

    def name(self) -> str:
        return "Doctor check"

    def run(self, ctx) -> None:
        missing = []
        for result in run_checks(full_workflow_checks()):
            ctx.logger.info("Checking " + result.check.name)
            if result.error is not None:
                ctx.logger.warning(f"{result.check.name} not installed")
                missing.append(result.check.binary)
                continue
            ctx.logger.success(result.check.name + " installed")

        if missing:
            raise RuntimeError(
                "missing tools for full create workflow: [" + " ".join(missing) + "]"
            )


class StartLandoStep:
    """Starts the local Lando app."""

    def name(self) -> str:
        return "Start Lando"

    def run(self, ctx) -> None:
        if ctx.dry_run:
            ctx.logger.info("Would run: lando start")
            return
        lando.start(ctx.runner, ctx.paths.root)


@dataclass
class PrepareStarterDataStep:
    """Selects a local backup folder or the SSH source and prepares starter data.

    ``scan`` inspects an existing project directory and returns its backups.
    """

    scan: Optional[Callable[[str], BackupSelection]] = None

    def name(self) -> str:
        return "Prepare starter data"

    def run(self, ctx) -> None:
        sourcedata.prepare(ctx, self.scan)


class ProjectDirStep:
    """Creates the project directory tree or reuses a local backup folder."""

    def name(self) -> str:
        return "Project directory setup"

    def run(self, ctx) -> None:
        if ctx.use_existing_project_dir:
            _prepare_existing_project_dir(ctx)
            return

        if os.path.exists(ctx.paths.root):
            raise ProjectDirExistsError(ctx.paths.root)

        for directory in (ctx.paths.root, ctx.paths.app_dir, ctx.paths.config_dir):
            if ctx.dry_run:
                ctx.logger.info("Would create: " + directory)
                continue
            os.makedirs(directory, exist_ok=True)
            if directory == ctx.paths.root:
                ctx.project_created = True
            ctx.logger.info("Created: " + directory)


def _prepare_existing_project_dir(ctx) -> None:
    markers = existing_project_markers(ctx.paths.root)
    if markers:
        raise FileExistsError(
            "project directory already contains generated project markers: "
            + ", ".join(markers)
        )

    for directory in (ctx.paths.app_dir, ctx.paths.config_dir):
        if ctx.dry_run:
            ctx.logger.info("Would create: " + directory)
            continue
        os.makedirs(directory, exist_ok=True)
        ctx.logger.info("Created: " + directory)


def existing_project_markers(root: str) -> list[str]:
    """Return generated files or directories under root that make reuse unsafe."""
    markers = []
    for name in (".lando.yml", "app", "config"):
        try:
            os.stat(os.path.join(root, name))
        except FileNotFoundError:
            continue
        markers.append(name)
    return markers