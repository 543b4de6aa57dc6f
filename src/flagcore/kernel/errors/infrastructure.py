"""Infrastructure errors – storage I/O and serialisation failures."""

from __future__ import annotations

from typing import Any

from flagcore.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a flag rule violation."""

    default_code = "infrastructure_error"


class StorageError(InfrastructureError):
    """A storage backend could not be read or written."""

    default_code = "storage_error"

    def __init__(
        self,
        location: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Storage at '{location}' is unavailable", **kwargs)
        self.location = location


class SerializationError(InfrastructureError):
    """Failed to serialise or deserialise a stored payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


__all__ = ["InfrastructureError", "SerializationError", "StorageError"]
