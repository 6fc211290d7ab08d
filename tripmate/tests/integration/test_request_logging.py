"""
Request logging: one INFO line per request through app.logger.
"""

from __future__ import annotations

import logging

import pytest


@pytest.fixture
def app_log(app, caplog):
    caplog.set_level(logging.INFO, logger=app.logger.name)
    return caplog


def _request_lines(caplog) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == "tripmate.app"]


def test_completed_request_is_logged_with_status(client, app_log):
    client.get("/api/v1/trips/does-not-exist")

    lines = _request_lines(app_log)
    assert len(lines) == 1
    assert lines[0].startswith("GET /api/v1/trips/does-not-exist 404 ")
    assert lines[0].endswith("ms")


def test_preflight_is_not_logged(client, app_log):
    client.options("/api/v1/trips")

    assert _request_lines(app_log) == []
