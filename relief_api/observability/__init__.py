"""
Observability package - OpenTelemetry tracing and structured logging setup.
"""
