"""Testing fakes – RecordingListener."""
from __future__ import annotations

from flagcore.application.feature_flags.events import FlagEvent, FlagEventKind


class RecordingListener:
    """Flag event listener that keeps every event it receives.

    Usage::

        recorder = RecordingListener()
        manager.subscribe(FlagEventKind.FLAG_ADDED, recorder)
        manager.add_flag(flag)
        assert recorder.kinds == [FlagEventKind.FLAG_ADDED]
    """

    def __init__(self) -> None:
        self._events: list[FlagEvent] = []

    def __call__(self, event: FlagEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[FlagEvent]:
        return list(self._events)

    @property
    def kinds(self) -> list[FlagEventKind]:
        return [e.kind for e in self._events]

    def of_kind(self, kind: FlagEventKind) -> list[FlagEvent]:
        return [e for e in self._events if e.kind == kind]

    def clear(self) -> None:
        self._events.clear()


__all__ = ["RecordingListener"]
