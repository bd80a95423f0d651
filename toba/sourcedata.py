"""Selection and preparation of starter data from a local backup or an SSH host."""

from __future__ import annotations

import os
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

from toba.context import StarterData
from toba.ssh import (
    ROOT_MISSING_MARKER,
    SSHTarget,
    capture_ssh_command,
    copy_remote_file,
    make_temp_dir,
    normalize_source_url,
    parse_ssh_target,
    path_base,
    remote_preparation_script,
    run_ssh_command,
    shell_quote,
)

MODE_LOCAL = "local"
MODE_REMOTE = "remote"


class SourceDataError(Exception):
    """Raised when starter data cannot be selected, validated or fetched."""


@dataclass
class BackupSelection:
    """Backup files found in a local project directory, grouped by category."""

    database: str = ""
    plugins: list[str] = field(default_factory=list)
    uploads: list[str] = field(default_factory=list)
    others: list[str] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)

    def has_recognized_files(self) -> bool:
        """Return True when at least one backup file was recognised."""
        return bool(self.database or self.plugins or self.uploads or self.others or self.themes)

    def validate_local_project_set(self) -> None:
        """Raise SourceDataError naming every required category that is missing."""
        required = (
            ("database", bool(self.database)),
            ("plugins", bool(self.plugins)),
            ("uploads", bool(self.uploads)),
            ("themes", bool(self.themes)),
        )
        missing = [label for label, present in required if not present]
        if missing:
            raise SourceDataError("missing required backup files: " + ", ".join(missing))


@dataclass(frozen=True)
class RemoteDownload:
    """One remote file to copy to a local path."""

    name: str
    remote_path: str
    local_path: str


@dataclass
class RemoteArtifacts:
    """Remote and local paths used during one SSH starter-data run."""

    remote_wordpress_root: str
    remote_database: str
    remote_plugins: str
    remote_uploads: str
    remote_source_url: str
    local_database: str
    local_plugins: str
    local_uploads: str
    created_remote_artifacts: bool = False

    @classmethod
    def create(cls, temp_dir: str, remote_wordpress_root: str) -> "RemoteArtifacts":
        """Build uniquely named remote artifacts and their local download targets."""
        run_prefix = f"toba-create-{int(time.time())}-{os.getpid()}"
        remote_database = os.path.join(remote_wordpress_root, run_prefix + ".sql")
        remote_plugins = os.path.join(remote_wordpress_root, run_prefix + "-plugins.zip")
        remote_uploads = os.path.join(remote_wordpress_root, run_prefix + "-uploads.zip")
        remote_source_url = os.path.join(remote_wordpress_root, run_prefix + "-home.txt")
        return cls(
            remote_wordpress_root=remote_wordpress_root,
            remote_database=remote_database,
            remote_plugins=remote_plugins,
            remote_uploads=remote_uploads,
            remote_source_url=remote_source_url,
            local_database=os.path.join(temp_dir, "database", path_base(remote_database)),
            local_plugins=os.path.join(temp_dir, "plugins", path_base(remote_plugins)),
            local_uploads=os.path.join(temp_dir, "uploads", path_base(remote_uploads)),
        )

    def downloads(self) -> list[RemoteDownload]:
        """Return the database, plugins and uploads files to copy back locally."""
        return [
            RemoteDownload("database", self.remote_database, self.local_database),
            RemoteDownload("plugins", self.remote_plugins, self.local_plugins),
            RemoteDownload("uploads", self.remote_uploads, self.local_uploads),
        ]

    def _remote_names(self) -> list[str]:
        return [
            path_base(self.remote_database),
            path_base(self.remote_plugins),
            path_base(self.remote_uploads),
            path_base(self.remote_source_url),
        ]


def cleanup_remote_artifacts(ctx, target: SSHTarget, artifacts: Optional[RemoteArtifacts]) -> None:
    """Remove prepared files from the SSH host, warning instead of raising on failure."""
    if artifacts is None or not artifacts.created_remote_artifacts:
        return

    names = artifacts._remote_names()
    script = "rm -f " + " ".join(shell_quote(name) for name in names)
    try:
        run_ssh_command(ctx, target, artifacts.remote_wordpress_root, script)
    except Exception as exc:
        ctx.logger.warning(
            f"Failed to clean remote starter artifacts on {target.user_host}:{target.port}. "
            f"Remove manually if needed: {', '.join(names)}. Error: {exc}"
        )


def download_remote_files(ctx, target: SSHTarget, downloads) -> None:
    """Copy every download concurrently; raise SourceDataError for the first failure."""
    downloads = list(downloads)
    if not downloads:
        return

    def fetch(download: RemoteDownload) -> Optional[SourceDataError]:
        try:
            copy_remote_file(ctx, target, download.remote_path, download.local_path)
        except Exception as exc:
            error = SourceDataError(
                f"failed to download starter {download.name} over SSH: {exc}"
            )
            error.__cause__ = exc
            return error
        return None

    with ThreadPoolExecutor(max_workers=len(downloads)) as pool:
        errors = list(pool.map(fetch, downloads))

    for error in errors:
        if error is not None:
            raise error


def prepare_local(ctx, selection: BackupSelection) -> None:
    """Use the backups found in the existing project directory as starter data."""
    root = ctx.paths.root
    if not selection.has_recognized_files():
        raise SourceDataError(
            f"project directory {root} exists but contains no recognizable Updraft backup files"
        )
    try:
        selection.validate_local_project_set()
    except Exception as exc:
        raise SourceDataError(f"local project backup in {root} is incomplete: {exc}") from exc

    ctx.use_existing_project_dir = True
    ctx.logger.info("Using local project backup folder: " + root)
    ctx.starter_data = StarterData(
        mode=MODE_LOCAL,
        database_path=selection.database,
        plugins_paths=list(selection.plugins),
        uploads_paths=list(selection.uploads),
        others_paths=list(selection.others),
        theme_paths=list(selection.themes),
    )


def prepare_remote(ctx) -> None:
    """Export starter data on the SSH host and download it to a temporary directory."""
    target = parse_ssh_target(ctx.config.ssh_target)
    remote_root = ctx.config.remote_wordpress_root.strip()

    ctx.logger.info("No local project backup folder found; using SSH starter data")

    if ctx.dry_run:
        temp_dir = os.path.join(tempfile.gettempdir(), "toba-starter-dry-run")
        ctx.starter_data = StarterData(
            mode=MODE_REMOTE,
            temp_dir=temp_dir,
            database_path=os.path.join(temp_dir, "remote", "starter.sql"),
            plugins_paths=[os.path.join(temp_dir, "plugins", "starter-plugins.zip")],
            uploads_paths=[os.path.join(temp_dir, "uploads", "starter-uploads.zip")],
            source_url="https://remote.example.test",
        )
        ctx.logger.info("Would fetch starter data over SSH from " + ctx.config.ssh_target)
        return

    temp_dir = make_temp_dir()
    ctx.starter_data.temp_dir = temp_dir

    artifacts = RemoteArtifacts.create(temp_dir, remote_root)
    try:
        ctx.logger.info("Preparing starter files on SSH host " + ctx.config.ssh_target)
        script = remote_preparation_script(
            artifacts.remote_wordpress_root,
            artifacts.remote_database,
            artifacts.remote_plugins,
            artifacts.remote_uploads,
            artifacts.remote_source_url,
        )
        try:
            raw_url = capture_ssh_command(ctx, target, "", script)
        except Exception as exc:
            if ROOT_MISSING_MARKER in str(exc):
                raise SourceDataError(
                    f'remote WordPress root "{remote_root}" does not exist on '
                    f"{target.user_host}:{target.port}; update TOBA_REMOTE_WORDPRESS_ROOT "
                    "in the global config or pass --remote-wordpress-root"
                ) from exc
            raise SourceDataError(
                f"failed to prepare remote starter files on "
                f"{target.user_host}:{target.port}: {exc}"
            ) from exc

        artifacts.created_remote_artifacts = True
        source_url = normalize_source_url(raw_url)

        ctx.logger.info("Downloading starter database over SSH")
        ctx.logger.info("Downloading starter plugins over SSH")
        ctx.logger.info("Downloading starter uploads over SSH")
        download_remote_files(ctx, target, artifacts.downloads())

        ctx.starter_data = StarterData(
            mode=MODE_REMOTE,
            temp_dir=temp_dir,
            database_path=artifacts.local_database,
            plugins_paths=[artifacts.local_plugins],
            uploads_paths=[artifacts.local_uploads],
            source_url=source_url,
        )
    finally:
        cleanup_remote_artifacts(ctx, target, artifacts)


def prepare(ctx, scan: Optional[Callable[[str], BackupSelection]] = None) -> None:
    """Choose local backups or the SSH fallback and fill ctx.starter_data.

    ``scan`` inspects an existing project directory and returns its backups.
    """
    if ctx.starter_data.mode == MODE_REMOTE:
        prepare_remote(ctx)
        return

    root = ctx.paths.root
    try:
        is_dir = os.path.isdir(root)
        os.stat(root)
    except FileNotFoundError:
        if not ctx.config.ssh_target.strip():
            raise SourceDataError(
                "SSH starter source is not configured; set TOBA_SSH_TARGET in the global "
                "config or pass --ssh-target"
            ) from None
        if not ctx.config.remote_wordpress_root.strip():
            raise SourceDataError(
                "SSH starter source is missing the remote WordPress root; set "
                "TOBA_REMOTE_WORDPRESS_ROOT in the global config or pass "
                "--remote-wordpress-root"
            ) from None
        prepare_remote(ctx)
        return

    if not is_dir:
        raise SourceDataError(f"project path exists and is not a directory: {root}")
    if scan is None:
        raise SourceDataError(f"no backup scanner is available for project directory {root}")
    try:
        selection = scan(root)
    except Exception as exc:
        raise SourceDataError(f"local project backup in {root} is invalid: {exc}") from exc
    prepare_local(ctx, selection)