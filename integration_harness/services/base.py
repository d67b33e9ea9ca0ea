"""Base service abstract class for all external dependency stand-ins."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ExternalService(ABC):
    """
    Abstract base class for any external service (object storage, database, API).

    Scenarios only talk to this interface, so a network-backed client can be
    dropped in next to the in-memory mock without touching the runner.
    """

    name: str

    @abstractmethod
    def connect(self) -> None:
        """
        Establish a connection to the service.

        Raises:
            ServiceConnectionError: If the connection attempt fails
        """
        pass

    @abstractmethod
    def ping(self) -> None:
        """
        Run a lightweight health check.

        Raises:
            HealthCheckError: If the service does not respond
        """
        pass

    @abstractmethod
    def get_data(self, key: str) -> str:
        """
        Return the value stored under ``key``.

        Raises:
            TransientError: On a simulated or transient failure
            NotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    def put_data(self, key: str, value: str) -> None:
        """Insert or overwrite ``key``."""
        pass

    @abstractmethod
    def list_keys(self) -> set[str]:
        """Return every key currently held by the service."""
        pass
