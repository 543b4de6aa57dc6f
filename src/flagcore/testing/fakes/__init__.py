"""Testing fakes – in-memory doubles for flagcore ports."""
from flagcore.kernel.time import FrozenClock
from flagcore.testing.fakes.clock import FAKE_EPOCH, FakeClock, expiring_override
from flagcore.testing.fakes.events import RecordingListener
from flagcore.testing.fakes.feature_flags import FakeFeatureFlagProvider

__all__ = [
    "FAKE_EPOCH",
    "FakeClock",
    "FakeFeatureFlagProvider",
    "FrozenClock",
    "RecordingListener",
    "expiring_override",
]
