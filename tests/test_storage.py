from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from shared.config.settings import Settings
from shared.storage.base import TemporaryUrlNotSupported
from shared.storage.factory import build_storage
from shared.storage.local import LocalStorage
from shared.storage.s3 import Storage, _seconds_until


def _cfg(**kw):
    base = dict(
        s3_endpoint_url="http://minio:9000",
        s3_access_key="AKIDEXAMPLE",
        s3_secret_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        s3_region="us-east-1",
        s3_bucket="price-exports",
    )
    base.update(kw)
    return Settings(**base)


def test_public_endpoint_presign_is_offline_sigv4():
    s = Storage(_cfg(s3_public_endpoint_url="https://files.example.com"))
    url = s.temporary_url("price-export/price-2025.xlsx", datetime.now(timezone.utc) + timedelta(hours=1))
    u = urlparse(url)
    assert u.scheme == "https"
    assert u.netloc == "files.example.com"
    assert u.path == "/price-exports/price-export/price-2025.xlsx"
    q = parse_qs(u.query)
    assert q["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert q["X-Amz-Expires"] == ["3600"]
    assert q["X-Amz-SignedHeaders"] == ["host"]
    assert q["X-Amz-Credential"][0].startswith("AKIDEXAMPLE/")
    assert len(q["X-Amz-Signature"][0]) == 64


def test_offline_presign_is_deterministic_for_fixed_clock():
    s = Storage(_cfg())
    now = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
    a = s._offline_presign("GET", "a/b.xlsx", 3600, "http://localhost:9000", now=now)
    b = s._offline_presign("GET", "a/b.xlsx", 3600, "http://localhost:9000", now=now)
    c = s._offline_presign("GET", "a/c.xlsx", 3600, "http://localhost:9000", now=now)
    assert a == b
    assert parse_qs(urlparse(a).query)["X-Amz-Date"] == ["20250115T120000Z"]
    assert parse_qs(urlparse(a).query)["X-Amz-Signature"] != parse_qs(urlparse(c).query)["X-Amz-Signature"]


def test_client_presign_used_without_public_endpoint(monkeypatch):
    s = Storage(_cfg())
    seen = {}

    def fake_presign(bucket_name, object_name, expires):
        seen.update(bucket=bucket_name, key=object_name, expires=expires)
        return "http://minio:9000/price-exports/a/b.xlsx?X-Amz-Signature=x"

    monkeypatch.setattr(s.client, "presigned_get_object", fake_presign)
    url = s.temporary_url("a/b.xlsx", datetime.now(timezone.utc) + timedelta(hours=1))
    assert url == "http://minio:9000/price-exports/a/b.xlsx?X-Amz-Signature=x"
    assert seen["bucket"] == "price-exports"
    assert seen["key"] == "a/b.xlsx"
    assert seen["expires"] == timedelta(seconds=3600)


def test_seconds_until_bounds():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert _seconds_until(now + timedelta(hours=1), now=now) == 3600
    # naive datetimes are read as UTC
    assert _seconds_until(datetime(2025, 1, 1, 0, 10), now=now) == 600
    with pytest.raises(ValueError):
        _seconds_until(now - timedelta(seconds=5), now=now)
    with pytest.raises(ValueError):
        _seconds_until(now + timedelta(days=8), now=now)


def test_local_storage_cannot_sign(tmp_path):
    s = LocalStorage(str(tmp_path))
    s.put_object("price-export/a.xlsx", b"data")
    assert s.object_exists("price-export/a.xlsx")
    assert s.ping() is True
    with pytest.raises(TemporaryUrlNotSupported):
        s.temporary_url("price-export/a.xlsx", datetime.now(timezone.utc) + timedelta(hours=1))


def test_local_storage_rejects_escaping_keys(tmp_path):
    s = LocalStorage(str(tmp_path / "root"))
    with pytest.raises(ValueError):
        s.put_object("../outside.xlsx", b"x")


def test_factory_selects_driver(tmp_path):
    assert isinstance(build_storage(_cfg(storage_driver="s3")), Storage)
    local = build_storage(_cfg(storage_driver="local", local_storage_root=str(tmp_path)))
    assert isinstance(local, LocalStorage)
    with pytest.raises(ValueError):
        build_storage(_cfg(storage_driver="ftp"))


class _BucketClient:
    def __init__(self, exists):
        self.exists = exists
        self.made = []

    def bucket_exists(self, bucket_name):
        return self.exists

    def make_bucket(self, bucket_name):
        self.made.append(bucket_name)


def test_ping_reports_bucket_presence():
    s = Storage(_cfg())
    s.client = _BucketClient(exists=True)
    assert s.ping() is True
    s.client = _BucketClient(exists=False)
    assert s.ping() is False


def test_ensure_bucket_creates_only_when_missing():
    s = Storage(_cfg())
    s.client = _BucketClient(exists=False)
    s.ensure_bucket()
    assert s.client.made == ["price-exports"]

    s.client = _BucketClient(exists=True)
    s.ensure_bucket()
    assert s.client.made == []


def test_object_exists_maps_s3_error_to_false():
    from minio.error import S3Error

    class StatClient:
        def __init__(self, present):
            self.present = present

        def stat_object(self, bucket_name, object_name):
            if object_name not in self.present:
                # Skip S3Error.__init__; its signature differs between minio releases
                raise S3Error.__new__(S3Error)
            return object()

    s = Storage(_cfg())
    s.client = StatClient({"price-export/a.xlsx"})
    assert s.object_exists("price-export/a.xlsx") is True
    assert s.object_exists("price-export/missing.xlsx") is False
