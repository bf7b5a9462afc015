# SPDX-License-Identifier: Apache-2.0

"""
Relief coordination API - Flask application factory.

Initializes the OpenAPI application, chooses the persistence backend, wires
the workflow managers onto the app and registers every blueprint.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import jsonify
from flask_openapi3 import Info, OpenAPI, Tag

from . import __version__
from .config import load_config
from .domain.errors import PersistenceError
from .middleware.auth import AuthMiddleware
from .middleware.error_handler import ErrorHandlerMiddleware, request_validation_error
from .observability.config import setup_observability
from .observability.middleware import add_observability_middleware
from .routes import register_blueprints
from .services.auth import AuthService
from .services.dashboard import DashboardService
from .services.field_reports import FieldReportService
from .services.fundraiser_ledger import FundraiserLedger
from .services.hal import HalFormatter
from .services.memory import InMemoryRepository
from .services.mongodb import MongoRepository
from .services.profiles import ProfileService
from .services.repository import Repository
from .services.request_lifecycle import RequestLifecycleManager
from .services.resource_ledger import ResourceLedger
from .services.volunteer_calls import VolunteerCallManager
from .services.volunteers import VolunteerService

logger = logging.getLogger(__name__)

info = Info(
    title="Relief Coordination API",
    version=__version__,
    description="Disaster-relief workflow engine with HAL affordances"
)

tags = [
    Tag(name="Health", description="System health and status")
]


def _build_repository(config: Dict[str, Any]) -> Repository:
    if config['REPOSITORY_BACKEND'] == 'memory':
        logger.warning("Using in-memory repository; data is lost on restart")
        return InMemoryRepository()
    return MongoRepository(config['MONGODB_URI'], config['MONGODB_DATABASE'])


def create_app(config_overrides: Optional[Dict[str, Any]] = None,
               repository: Optional[Repository] = None) -> OpenAPI:
    """
    Create the relief API application.

    Args:
        config_overrides: Settings applied on top of the environment configuration
        repository: Persistence backend to use instead of the configured one

    Returns:
        Configured flask-openapi3 application
    """
    config = load_config()
    if config_overrides:
        config.update(config_overrides)

    setup_observability(
        environment=config['ENVIRONMENT'],
        otel_enabled=config['OTEL_ENABLED'],
        service_version=config['SERVICE_VERSION']
    )

    hal_formatter = HalFormatter(config['BASE_URL'])

    app = OpenAPI(
        __name__,
        info=info,
        doc_ui=config['DOCS_ENABLED'],
        validation_error_status=400,
        validation_error_callback=request_validation_error(hal_formatter)
    )
    app.config.update(config)

    if config['OTEL_ENABLED']:
        add_observability_middleware(app)

    if repository is None:
        repository = _build_repository(config)

    try:
        repository.create_indexes()
    except PersistenceError as e:
        # Health check reports the backend as unhealthy until it is reachable
        logger.error(f"Index creation failed: {e.message}", extra={'error_type': e.error_type})

    auth_service = AuthService(config['JWT_SECRET'], config['JWT_ACCESS_TOKEN_EXPIRES'])

    # Make services available to routes
    app.repository = repository
    app.auth_service = auth_service
    app.auth_middleware = AuthMiddleware(auth_service)
    app.hal_formatter = hal_formatter
    app.request_manager = RequestLifecycleManager(repository)
    app.call_manager = VolunteerCallManager(repository)
    app.resource_ledger = ResourceLedger(repository)
    app.fundraiser_ledger = FundraiserLedger(repository)
    app.volunteer_service = VolunteerService(repository)
    app.profile_service = ProfileService(repository)
    app.report_service = FieldReportService(repository)
    app.dashboard_service = DashboardService(repository)

    ErrorHandlerMiddleware(app, hal_formatter)
    register_blueprints(app)

    @app.get('/api/healthz', tags=tags)
    def health_check():
        """Service and persistence backend health."""
        health_data = {
            "status": "healthy",
            "service": "relief-api",
            "version": __version__,
            "environment": app.config['ENVIRONMENT'],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": app.repository.health_check()
        }

        status_code = 200
        if health_data["database"].get("status") != "healthy":
            health_data["status"] = "unhealthy"
            status_code = 503

        health_data["_links"] = {
            "self": hal_formatter.builder.link_builder.build_self_link("/api/healthz").model_dump(exclude_none=True)
        }
        return jsonify(health_data), status_code

    logger.info(
        "Relief API initialized",
        extra={'environment': config['ENVIRONMENT'], 'backend': type(repository).__name__}
    )
    return app


if __name__ == '__main__':
    # Development server
    application = create_app()
    application.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=application.config['DEBUG']
    )
