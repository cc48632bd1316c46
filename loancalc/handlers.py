"""HTTP routes of the loan calculator and the request-logging middleware."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from flask import Flask, Response, g, request

from loancalc.service import ExecuteRequest, LoanError, Service

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def _error(message: str, status: int) -> Response:
    """Plain-text error response whose body is a small JSON object."""
    return Response(
        '{"error":"' + message + '"}\n',
        status=status,
        content_type="text/plain; charset=utf-8",
        headers={"X-Content-Type-Options": "nosniff"},
    )


def _json_response(payload: Any) -> Response:
    try:
        body = json.dumps(payload, allow_nan=False)
    except ValueError:
        return _error("failed to encode data", 500)
    return Response(body + "\n", status=200, content_type="application/json")


def _decode_request(raw: bytes) -> ExecuteRequest:
    """Decode the first JSON value of a request body into an ExecuteRequest."""
    text = raw.decode("utf-8").lstrip()
    data, _ = _decoder.raw_decode(text)
    if data is None:
        return ExecuteRequest()
    return ExecuteRequest.from_dict(data)


def install_logger(app: Flask) -> None:
    """Log the status code and duration of every request the app serves."""

    @app.before_request
    def _start_timer() -> None:
        g._loancalc_started = time.perf_counter_ns()

    @app.after_request
    def _log_request(response: Response) -> Response:
        started = g.pop("_loancalc_started", None)
        elapsed = time.perf_counter_ns() - started if started is not None else 0
        logger.info(
            "status_code: %d, duration: %d ns", response.status_code, elapsed
        )
        return response


def register_routes(app: Flask, service: Service) -> None:
    """Attach the logger and the /execute and /cache routes to ``app``."""
    install_logger(app)

    def execute() -> Response:
        try:
            loan_request = _decode_request(request.get_data())
        except ValueError:
            return _error("invalid request", 400)
        try:
            response, _ = service.execute(loan_request)
        except LoanError as exc:
            return _error(str(exc), 400)
        return _json_response({"result": response.to_dict()})

    def get_cache() -> Response:
        items = service.get_all()
        if not items:
            return _error("empty cache", 400)
        return _json_response([item.to_dict() for item in items])

    app.add_url_rule("/execute", "execute", execute, methods=["POST"])
    app.add_url_rule("/cache", "get_cache", get_cache, methods=["GET"])


def create_app(service: Service | None = None) -> Flask:
    """Build a Flask application serving ``service``."""
    app = Flask(__name__)
    register_routes(app, service if service is not None else Service())
    return app