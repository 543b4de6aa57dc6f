"""Application storage – key/value persistence for overrides and context."""
from flagcore.application.storage.file import FileStorageAdapter
from flagcore.application.storage.memory import InMemoryStorageAdapter
from flagcore.application.storage.port import StorageAdapter

__all__ = ["FileStorageAdapter", "InMemoryStorageAdapter", "StorageAdapter"]
