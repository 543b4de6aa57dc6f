"""Domain errors – flag definition and evaluation rule violations."""

from __future__ import annotations

from typing import Any, Sequence

from flagcore.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a flag rule or invariant is violated."""

    default_code = "domain_error"


class InvariantViolationError(DomainError):
    """A flag definition reached a pipeline stage it does not qualify for."""

    default_code = "invariant_violation"


class ValidationError(DomainError):
    """A flag definition does not meet validation rules.

    ``errors`` holds one human-readable message per failed check.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[str] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class CircularDependencyError(DomainError):
    """A flag was revisited while its own dependencies were being resolved.

    ``cycle`` lists the flag ids from the first visit to the revisit, both
    ends included (``["a", "b", "a"]``).
    """

    default_code = "circular_dependency"

    def __init__(self, cycle: Sequence[str], **kwargs: Any) -> None:
        super().__init__(
            "Circular dependency: " + " -> ".join(cycle),
            detail={"cycle": list(cycle)},
            **kwargs,
        )
        self.cycle: list[str] = list(cycle)


__all__ = [
    "CircularDependencyError",
    "DomainError",
    "InvariantViolationError",
    "ValidationError",
]
