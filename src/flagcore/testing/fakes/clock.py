"""Testing fakes – frozen clock plus override expiry helpers."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from flagcore.application.feature_flags.models import FlagOverride
from flagcore.kernel.time import FrozenClock

FAKE_EPOCH = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def FakeClock(start: datetime | None = None) -> FrozenClock:
    """Return a ``FrozenClock`` pinned to *start* (default 2026-01-01 12:00 UTC)."""
    return FrozenClock(start or FAKE_EPOCH)


def expiring_override(
    clock: FrozenClock,
    flag_id: str,
    value: Any,
    *,
    variant_id: str | None = None,
    reason: str = "",
    **delta: int | float,
) -> FlagOverride:
    """Build an override that expires *delta* after the clock's current time.

    Negative deltas give an override that is already expired::

        stale = expiring_override(clock, "dark-mode", False, hours=-1)
    """
    return FlagOverride(
        flag_id=flag_id,
        value=value,
        variant_id=variant_id,
        expires_at=clock.now() + timedelta(**delta),
        reason=reason,
    )


__all__ = ["FAKE_EPOCH", "FakeClock", "expiring_override"]
