from abc import ABC, abstractmethod
from datetime import datetime


class StorageError(Exception):
    """Base class for storage backend failures."""


class TemporaryUrlNotSupported(StorageError):
    """The backend cannot issue signed, time-limited URLs."""


class StorageBackend(ABC):
    @abstractmethod
    def temporary_url(self, path: str, expires_at: datetime) -> str:
        """Return a signed URL for ``path`` that stops working at ``expires_at``."""
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the backend is reachable and its container exists."""
        raise NotImplementedError
