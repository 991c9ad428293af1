"""Shared enums for the shortlinks service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "StoreBackend", "TargetRejection", "IncrementStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    REJECTED = "rejected"
    CONFLICT = "conflict"
    EXHAUSTED = "exhausted"
    NOT_FOUND = "not_found"
    ERROR = "error"


class IncrementStatus(StrEnum):
    """Outcome of a background access-count increment."""

    SUCCESS = "success"
    RETRIED = "retried"
    FAILED = "failed"
    DROPPED = "dropped"


class StoreBackend(StrEnum):
    """Available LinkStore implementations."""

    SQL = "sql"
    REDIS = "redis"
    MEMORY = "memory"


class TargetRejection(StrEnum):
    """Reasons a target address is refused."""

    EMPTY = "empty"
    MALFORMED = "malformed"
    SCHEME_NOT_ALLOWED = "scheme_not_allowed"
    LOOPBACK_HOST = "loopback_host"
    PRIVATE_NETWORK = "private_network"
