"""Kernel time – clock port and implementations."""
from flagcore.kernel.time.clock import Clock, FrozenClock, SystemClock

__all__ = ["Clock", "FrozenClock", "SystemClock"]
