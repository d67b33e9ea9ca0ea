"""Wall-clock category suites, selected with --storage, --database and --api."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


@pytest.mark.category("storage")
def test_storage_suite(run_category):
    report = run_category("storage")

    assert len(report.passed) == 5


@pytest.mark.category("database")
def test_database_suite(run_category):
    report = run_category("database")

    assert len(report.passed) == 5


@pytest.mark.category("api")
def test_api_suite(run_category):
    report = run_category("api")

    assert len(report.passed) == 6
