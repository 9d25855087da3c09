from shared.config.settings import Settings, settings as _default_settings
from shared.storage.base import StorageBackend


def build_storage(cfg: Settings | None = None) -> StorageBackend:
    """Return the storage backend selected by ``STORAGE_DRIVER``."""
    cfg = cfg or _default_settings
    driver = (cfg.storage_driver or "s3").lower()
    if driver == "s3":
        from shared.storage.s3 import Storage
        return Storage(cfg)
    if driver == "local":
        from shared.storage.local import LocalStorage
        return LocalStorage(cfg.local_storage_root)
    raise ValueError(f"unknown storage driver: {cfg.storage_driver}")
