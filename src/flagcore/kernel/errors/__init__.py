"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError          (domain.py)
    │   ├── InvariantViolationError
    │   ├── ValidationError
    │   └── CircularDependencyError
    ├── ApplicationError     (application.py)
    └── InfrastructureError  (infrastructure.py)
        ├── StorageError
        └── SerializationError
"""

from flagcore.kernel.errors.application import ApplicationError
from flagcore.kernel.errors.base import BaseError
from flagcore.kernel.errors.domain import (
    CircularDependencyError,
    DomainError,
    InvariantViolationError,
    ValidationError,
)
from flagcore.kernel.errors.infrastructure import (
    InfrastructureError,
    SerializationError,
    StorageError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "CircularDependencyError",
    "DomainError",
    "InfrastructureError",
    "InvariantViolationError",
    "SerializationError",
    "StorageError",
    "ValidationError",
]
