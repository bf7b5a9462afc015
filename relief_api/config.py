# SPDX-License-Identifier: Apache-2.0

"""
Environment configuration for the relief coordination API.
"""

import os
from typing import Any, Dict

BACKENDS = ('mongodb', 'memory')


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> Dict[str, Any]:
    """Read application settings from environment variables."""
    environment = os.getenv('ENVIRONMENT', 'development')

    config = {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'DOCS_ENABLED': _flag('DOCS_ENABLED', 'true'),

        # Security configuration
        'JWT_SECRET': os.getenv('JWT_SECRET'),
        'JWT_ACCESS_TOKEN_EXPIRES': int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '900')),  # 15 minutes

        # Database configuration
        'REPOSITORY_BACKEND': os.getenv('REPOSITORY_BACKEND', 'mongodb').lower(),
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/relief_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'relief_dev'),

        # Feature flags
        'OTEL_ENABLED': _flag('OTEL_ENABLED', 'true'),
        'SERVICE_VERSION': os.getenv('SERVICE_VERSION', '1.0.0'),

        # API configuration
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),
    }

    if config['REPOSITORY_BACKEND'] not in BACKENDS:
        raise ValueError(
            f"REPOSITORY_BACKEND must be one of {', '.join(BACKENDS)}, got {config['REPOSITORY_BACKEND']}"
        )

    return config
