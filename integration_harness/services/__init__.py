"""Simulated external services."""

from .base import ExternalService
from .mock import MockService
from .registry import (
    DEFAULT_PROFILES,
    ServiceProfile,
    build_service,
    get_service_factory,
    list_services,
    load_service_profiles,
    register_service,
)

__all__ = [
    "DEFAULT_PROFILES",
    "ExternalService",
    "MockService",
    "ServiceProfile",
    "build_service",
    "get_service_factory",
    "list_services",
    "load_service_profiles",
    "register_service",
]
