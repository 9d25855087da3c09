from datetime import datetime
from pathlib import Path

from shared.storage.base import StorageBackend, TemporaryUrlNotSupported


class LocalStorage(StorageBackend):
    """Filesystem backend for development. Cannot sign URLs."""

    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        p = (self.root / key).resolve()
        if self.root.resolve() not in p.parents:
            raise ValueError(f"key escapes storage root: {key}")
        return p

    def put_object(self, key: str, data: bytes, content_type: str = "application/octet-stream"):
        p = self._resolve(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    def object_exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def ping(self) -> bool:
        return self.root.is_dir()

    def temporary_url(self, path: str, expires_at: datetime) -> str:
        raise TemporaryUrlNotSupported("local storage cannot issue temporary URLs")
