"""
Issue short-lived download links for supplier price exports.

The handler never touches the record and never rewrites the URL: it checks
readiness, names the file after the last segment of its storage key, and
asks the backend for a link that expires one hour from now.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from structlog import get_logger

from shared.storage.base import StorageBackend

DOWNLOAD_URL_TTL = timedelta(hours=1)

log = get_logger()


class ExportNotFound(LookupError):
    """No downloadable file exists for the export yet."""


@dataclass(frozen=True)
class DownloadLink:
    url: str
    filename: str

    def as_payload(self) -> dict:
        return {"data": {"name": self.filename, "url": self.url}}


def export_filename(path: str) -> str:
    """Final segment of a storage key: ``a/b/price.xlsx`` -> ``price.xlsx``."""
    return path.rstrip("/").rsplit("/", 1)[-1]


def download(record, storage: StorageBackend, *, now: Optional[datetime] = None) -> DownloadLink:
    if not record.is_ready or not record.path:
        raise ExportNotFound("export file is not ready")

    expires_at = (now or datetime.now(timezone.utc)) + DOWNLOAD_URL_TTL
    url = storage.temporary_url(record.path, expires_at)
    filename = export_filename(record.path)
    log.info("export_download_link_issued", export_id=getattr(record, "id", None),
             path=record.path, expires_at=expires_at.isoformat())
    return DownloadLink(url=url, filename=filename)
