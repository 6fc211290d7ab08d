"""
middleware/request_logging.py — One log line per completed request.

Logged after the response is built: method, path, status code and duration
in milliseconds. CORS preflights are skipped.

Strict responsibility boundary:
  - Observes requests only. Never alters the response or raises.
"""

from __future__ import annotations

import time

from flask import Flask, g, request

SKIP_LOG_METHODS = {"OPTIONS"}


def register_request_logging(app: Flask) -> None:
    """Attaches before/after request hooks that log through app.logger."""

    @app.before_request
    def start_timer() -> None:
        g.request_started_at = time.perf_counter()

    @app.after_request
    def log_request(response):
        if request.method in SKIP_LOG_METHODS:
            return response

        started_at = g.get("request_started_at")
        duration_ms = (
            round((time.perf_counter() - started_at) * 1000)
            if started_at is not None else None
        )
        app.logger.info(
            "%s %s %s %sms",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
        )
        return response
