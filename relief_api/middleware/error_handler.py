# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Maps relief errors and HTTP errors to problem documents.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Any, Tuple
from opentelemetry import trace
from pydantic import ValidationError as PydanticValidationError
import logging

from ..domain.errors import ReliefError, PersistenceError, ValidationError
from ..services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

HTTP_ERROR_TYPES = {
    400: ("bad-request", "Bad Request"),
    401: ("authentication-required", "Authentication Required"),
    403: ("insufficient-permissions", "Insufficient Permissions"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    409: ("resource-conflict", "Resource Conflict"),
    415: ("unsupported-media-type", "Unsupported Media Type"),
    422: ("validation-error", "Validation Error"),
}


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(ReliefError)
        def handle_relief_error(error: ReliefError):
            return self.handle_relief_error(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            return self.handle_http_error(error)

        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def handle_relief_error(self, error: ReliefError) -> Tuple[Any, int]:
        """
        Render a domain or persistence error.

        Args:
            error: Relief error carrying status code and problem type

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.relief_error") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            log = logger.error if isinstance(error, PersistenceError) and error.status_code >= 500 else logger.warning
            log(
                f"Command failed: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            error_response = self.hal_formatter.format_error(
                error.error_type,
                error.title,
                error.status_code,
                error.message,
                request.path,
                validation_errors=error.errors if isinstance(error, ValidationError) else None,
                details=error.details
            )
            return jsonify(error_response), error.status_code

    def handle_http_error(self, error: HTTPException) -> Tuple[Any, int]:
        """Handle werkzeug HTTP errors (routing, method, body parsing)."""
        status = error.code or 500
        if status >= 500:
            return self.handle_unexpected_error(error)

        error_type, title = HTTP_ERROR_TYPES.get(status, ("client-error", error.name))
        detail = str(error.description) if error.description else title

        logger.warning(
            f"Client error: {title}",
            extra={
                "error_type": error_type,
                "status_code": status,
                "detail": detail,
                "path": request.path,
                "method": request.method,
                "ip_address": request.remote_addr
            }
        )

        error_response = self.hal_formatter.format_error(error_type, title, status, detail, request.path)
        return jsonify(error_response), status

    def handle_unexpected_error(self, error: Exception) -> Tuple[Any, int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details in production
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            return jsonify(self.hal_formatter.format_server_error(detail, request.path)), 500


def request_validation_error(hal_formatter: HalFormatter):
    """
    Build the flask-openapi3 callback for body, path and query validation errors.

    Malformed requests get the same problem document as domain validation errors.
    """
    def callback(error: PydanticValidationError):
        errors = []
        for item in error.errors():
            field = '.'.join(str(loc) for loc in item.get('loc', ()))
            errors.append(f"{field}: {item.get('msg')}" if field else item.get('msg'))

        logger.warning(
            "Request validation failed",
            extra={"path": request.path, "method": request.method, "validation_errors": errors}
        )
        error_response = hal_formatter.format_error(
            ValidationError.error_type,
            ValidationError.title,
            ValidationError.status_code,
            f"Invalid request: {'; '.join(errors)}",
            request.path,
            validation_errors=errors
        )
        response = jsonify(error_response)
        response.status_code = ValidationError.status_code
        return response

    return callback
