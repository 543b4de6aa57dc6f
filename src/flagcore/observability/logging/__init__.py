"""Observability – structured logging helpers."""
from flagcore.observability.logging.factory import JsonLoggerFactory
from flagcore.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
