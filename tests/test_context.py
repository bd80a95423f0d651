import io
import os

from toba.context import (
    ConsoleLogger,
    ProjectConfig,
    ProjectPaths,
    StarterData,
    new_context,
)
from toba.runner import ExecRunner, NoopRunner


def test_paths_are_derived_from_base_and_name(tmp_path):
    paths = ProjectPaths.from_base(str(tmp_path), "demo")
    assert paths.root == os.path.join(str(tmp_path), "demo")
    assert paths.base_dir == str(tmp_path)
    assert os.path.relpath(paths.database_sql, paths.root) == os.path.join("app", "database.sql")
    assert os.path.dirname(paths.app_dir) == paths.root
    assert os.path.dirname(paths.config_dir) == paths.root
    assert os.path.dirname(paths.wp_content) == paths.app_dir
    assert os.path.dirname(paths.plugins) == paths.wp_content
    assert os.path.dirname(paths.themes) == paths.wp_content


def test_new_context_keeps_given_logger_and_runner(tmp_path):
    logger = ConsoleLogger(io.StringIO())
    runner = NoopRunner()
    config = ProjectConfig(name="demo", dry_run=True)
    ctx = new_context(str(tmp_path), config, logger, runner)
    assert ctx.logger is logger
    assert ctx.runner is runner
    assert ctx.dry_run is True
    assert ctx.config is config
    assert ctx.paths == ProjectPaths.from_base(str(tmp_path), "demo")


def test_new_context_substitutes_defaults(tmp_path):
    ctx = new_context(str(tmp_path), ProjectConfig(name="demo"), None, None)
    assert isinstance(ctx.runner, ExecRunner)
    assert isinstance(ctx.logger, ConsoleLogger)
    assert ctx.dry_run is False
    assert ctx.use_existing_project_dir is False
    assert ctx.project_created is False
    assert ctx.starter_data == StarterData()


def test_starter_data_lists_are_independent():
    first = StarterData()
    second = StarterData()
    first.plugins_paths.append("a.zip")
    assert second.plugins_paths == []


def test_console_logger_writes_each_message_on_its_own_line():
    stream = io.StringIO()
    logger = ConsoleLogger(stream)
    logger.step("step-one")
    logger.info("info-two")
    logger.success("done-three")
    logger.warning("warn-four")
    logger.error("fail-five")
    logger.error_code("CODE_X", "fail-six")
    lines = stream.getvalue().splitlines()
    assert len(lines) == 6
    for line, text in zip(
        lines, ["step-one", "info-two", "done-three", "warn-four", "fail-five", "fail-six"]
    ):
        assert text in line
    assert "CODE_X" in lines[5]