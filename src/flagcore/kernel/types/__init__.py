"""Kernel value types."""
from flagcore.kernel.types.option import Nothing, Option, Some

__all__ = ["Nothing", "Option", "Some"]
