"""Observability helpers for the metadata service.

Request IDs + structlog contextvars for JSON access logs, plus an in-memory
metrics snapshot that can be exposed on ``/metrics`` for local debugging.
"""
