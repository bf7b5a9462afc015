"""
Observability Middleware

Request timing, span enrichment and one structured log line per relief
API request. Failed commands are tagged with their problem type so traces
can be filtered by domain error.
"""

import time
import logging
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

logger = logging.getLogger(__name__)

SKIPPED_PATHS = ('/api/healthz',)


def _problem_type(response):
    """Short problem type of an error response, if it carries one."""
    if response.status_code < 400 or not response.is_json:
        return None
    body = response.get_json(silent=True) or {}
    problem = body.get('type') if isinstance(body, dict) else None
    return problem.rsplit('/', 1)[-1] if problem else None


def add_observability_middleware(app: Flask):
    """Instrument the Flask app and log every relief command."""
    FlaskInstrumentor().instrument_app(app, excluded_urls=','.join(SKIPPED_PATHS))

    @app.before_request
    def start_request_timer():
        g.start_time = time.time()
        g.trace_id = None

        span = trace.get_current_span()
        if span.is_recording():
            g.trace_id = format(span.get_span_context().trace_id, "032x")
            span.set_attribute("relief.endpoint", request.endpoint or "")

    @app.after_request
    def record_request(response):
        duration_ms = round((time.time() - g.get('start_time', time.time())) * 1000, 2)
        user_context = g.get('user_context')
        problem = _problem_type(response)

        span = trace.get_current_span()
        if span.is_recording():
            if user_context is not None:
                span.set_attributes({"user.id": user_context.user_id, "user.role": str(user_context.role)})
            if problem:
                span.set_attribute("relief.problem_type", problem)

        if request.path not in SKIPPED_PATHS:
            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                f"{request.method} {request.path} -> {response.status_code}",
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "user_id": user_context.user_id if user_context is not None else None,
                    "problem_type": problem,
                    "trace_id": g.get('trace_id')
                }
            )

        if g.get('trace_id'):
            response.headers['X-Trace-Id'] = g.trace_id

        return response
