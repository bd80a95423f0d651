import sys

import pytest

from toba.doctor import Check, check_binary, full_workflow_checks, run_checks


def test_full_workflow_checks_include_ssh_and_zip_tools():
    binaries = {check.binary for check in full_workflow_checks()}
    for required in ("ssh", "scp", "zip"):
        assert required in binaries


def test_full_workflow_checks_order_starts_with_git():
    checks = full_workflow_checks()
    assert checks[0] == Check("Git", "git")
    assert len(checks) == 8


def test_run_checks_returns_result_per_check():
    results = run_checks([Check(name="Missing", binary="binary-that-does-not-exist-toba")])
    assert len(results) == 1
    assert results[0].check.binary == "binary-that-does-not-exist-toba"
    assert results[0].error is not None
    assert results[0].ok is False


def test_run_checks_finds_present_binary():
    results = run_checks([Check("Python", sys.executable)])
    assert results[0].error is None
    assert results[0].ok is True


def test_check_binary_reports_missing_program():
    with pytest.raises(FileNotFoundError) as excinfo:
        check_binary("binary-that-does-not-exist-toba")
    assert str(excinfo.value) == "binary-that-does-not-exist-toba is not installed or not in PATH"