"""Service registry and built-in service profiles."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ServiceNotFoundError
from ..utils.config import HarnessSettings
from ..utils.timing import Clock, RandomSource
from .base import ExternalService
from .mock import MockService


class ServiceProfile(BaseModel):
    """Static characteristics of one simulated dependency."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    name: str
    latency: float = Field(ge=0)
    failure_probability: float = Field(ge=0.0, le=1.0)


DEFAULT_PROFILES: dict[str, ServiceProfile] = {
    "storage": ServiceProfile(
        category="storage", name="S3-like Storage", latency=0.1, failure_probability=0.01
    ),
    "database": ServiceProfile(
        category="database", name="Database", latency=0.05, failure_probability=0.02
    ),
    "api": ServiceProfile(
        category="api", name="External API", latency=0.2, failure_probability=0.05
    ),
}

ServiceFactory = Callable[..., ExternalService]

# Service registry - register new service implementations here
_SERVICE_REGISTRY: dict[str, ServiceFactory] = {}


def register_service(kind: str, factory: ServiceFactory) -> None:
    """
    Register a service implementation.

    Args:
        kind: Unique identifier for the implementation (e.g. "mock")
        factory: Callable accepting the MockService constructor arguments
    """
    _SERVICE_REGISTRY[kind] = factory


def get_service_factory(kind: str) -> ServiceFactory:
    """
    Get a service factory by kind.

    Raises:
        ServiceNotFoundError: If the kind is not registered
    """
    if kind not in _SERVICE_REGISTRY:
        available = sorted(_SERVICE_REGISTRY.keys())
        available_display = ", ".join(available) if available else "none"
        raise ServiceNotFoundError(
            f"Service kind '{kind}' is not registered. Available kinds: {available_display}."
        )
    return _SERVICE_REGISTRY[kind]


def list_services() -> list[str]:
    """Return list of registered service kinds."""
    return list(_SERVICE_REGISTRY.keys())


def load_service_profiles(settings: HarnessSettings) -> list[tuple[ServiceProfile, str]]:
    """Return every built-in profile paired with its descriptive type label."""

    return [
        (profile, settings.type_label(category))
        for category, profile in DEFAULT_PROFILES.items()
    ]


def build_service(
    profile: ServiceProfile,
    *,
    kind: str = "mock",
    clock: Clock | None = None,
    rng: RandomSource | None = None,
    failures_enabled: bool = True,
) -> ExternalService:
    """Instantiate a fresh service for ``profile`` using the registered implementation."""

    factory = get_service_factory(kind)
    return factory(
        profile.name,
        profile.latency,
        profile.failure_probability,
        clock=clock,
        rng=rng,
        failures_enabled=failures_enabled,
    )


register_service("mock", MockService)
