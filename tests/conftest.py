"""Pytest configuration and fixtures for the load-test summary tests."""

import pytest

from loadtest.config import LoadTestSettings
from loadtest.storage import ResultStore

from .k6_lines import metric_declaration, point


@pytest.fixture
def settings(tmp_path) -> LoadTestSettings:
    return LoadTestSettings(
        results_dir=tmp_path / "results",
        scripts_dir=tmp_path / "scripts",
        k6_binary="k6-not-installed-for-tests",
    )


@pytest.fixture
def store(settings: LoadTestSettings) -> ResultStore:
    result_store = ResultStore(results_dir=settings.results_dir, scripts_dir=settings.scripts_dir)
    result_store.ensure_dirs()
    return result_store


@pytest.fixture
def sample_lines() -> list[str]:
    """A small run: 4 requests over 10 seconds, one failed check, one HTTP 500.

    Durations 10/20/30/40 ms, waiting 4/6 ms.
    """
    t0 = "2026-01-15T10:00:00Z"
    t1 = "2026-01-15T10:00:05Z"
    t2 = "2026-01-15T10:00:10Z"
    return [
        metric_declaration("http_reqs"),
        point("http_reqs", 1, t0, status="200"),
        point("http_req_duration", 10, t0, status="200"),
        point("http_req_waiting", 4, t0, status="200"),
        point("http_req_failed", 0, t0, status="200"),
        point("custom_http_req_failed", 0, t0),
        point("checks", 1, t0),
        point("http_reqs", 1, t1, status="200"),
        point("http_req_duration", 20, t1, status="200"),
        point("http_req_waiting", 6, t1, status="200"),
        point("custom_http_req_failed", 0, t1),
        point("http_reqs", 1, t1, status="200"),
        point("http_req_duration", 30, t1, status="200"),
        point("custom_http_req_failed", 0, t1),
        point("http_reqs", 1, t2, status="500"),
        point("http_req_duration", 40, t2, status="500"),
        point("http_req_failed", 1, t2, status="500"),
        point("custom_http_req_failed", 1, t2),
        point("checks", 0, t2),
    ]
