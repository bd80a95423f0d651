"""Shared state handed to every step of the create workflow."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any, TextIO

from toba.runner import ExecRunner


@dataclass
class ProjectConfig:
    """Settings for one project being created."""

    name: str = ""
    php_version: str = ""
    domain: str = ""
    database: str = ""
    dry_run: bool = False
    ssh_target: str = ""
    remote_wordpress_root: str = ""
    starter_repo: str = ""


@dataclass
class StarterData:
    """Prepared backup assets and where they came from."""

    mode: str = ""
    temp_dir: str = ""
    database_path: str = ""
    plugins_paths: list[str] = field(default_factory=list)
    uploads_paths: list[str] = field(default_factory=list)
    others_paths: list[str] = field(default_factory=list)
    theme_paths: list[str] = field(default_factory=list)
    source_url: str = ""


@dataclass(frozen=True)
class ProjectPaths:
    """Filesystem layout of a project."""

    base_dir: str
    root: str
    app_dir: str
    config_dir: str
    wp_content: str
    plugins: str
    themes: str
    database_sql: str

    @classmethod
    def from_base(cls, base_dir: str, name: str) -> "ProjectPaths":
        """Derive every project path from the base directory and project name."""
        root = os.path.join(base_dir, name)
        app_dir = os.path.join(root, "app")
        wp_content = os.path.join(app_dir, "wp-content")
        return cls(
            base_dir=base_dir,
            root=root,
            app_dir=app_dir,
            config_dir=os.path.join(root, "config"),
            wp_content=wp_content,
            plugins=os.path.join(wp_content, "plugins"),
            themes=os.path.join(wp_content, "themes"),
            database_sql=os.path.join(app_dir, "database.sql"),
        )


@dataclass
class ConsoleLogger:
    """Writes workflow messages as plain lines to a text stream."""

    stream: TextIO | None = None

    def _write(self, text: str) -> None:
        print(text, file=self.stream or sys.stdout, flush=True)

    def step(self, message: str) -> None:
        self._write(f"==> {message}")

    def info(self, message: str) -> None:
        self._write(f"    {message}")

    def prompt(self, message: str) -> None:
        self._write(f"?   {message}")

    def success(self, message: str) -> None:
        self._write(f"[ok] {message}")

    def warning(self, message: str) -> None:
        self._write(f"[warning] {message}")

    def error(self, message: str) -> None:
        self._write(f"[error] {message}")

    def error_code(self, code: str, message: str) -> None:
        self._write(f"[error {code}] {message}")


@dataclass
class Context:
    """Mutable workflow state shared by all pipeline steps."""

    config: ProjectConfig
    logger: Any
    runner: Any
    paths: ProjectPaths
    dry_run: bool = False
    starter_data: StarterData = field(default_factory=StarterData)
    use_existing_project_dir: bool = False
    project_created: bool = False


def new_context(base_dir: str, config: ProjectConfig, logger=None, runner=None) -> Context:
    """Build a context, using a console logger and a real runner when none is given."""
    return Context(
        config=config,
        dry_run=config.dry_run,
        logger=logger if logger is not None else ConsoleLogger(sys.stdout),
        runner=runner if runner is not None else ExecRunner(),
        paths=ProjectPaths.from_base(base_dir, config.name),
    )