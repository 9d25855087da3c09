import hashlib
import hmac
import io
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse, quote, urlencode

from minio import Minio
from minio.error import S3Error

from shared.config.settings import Settings, settings as _default_settings
from shared.storage.base import StorageBackend

# SigV4 query signing rejects anything longer than a week
MAX_PRESIGN_SECONDS = 7 * 24 * 3600


def _seconds_until(expires_at: datetime, now: datetime | None = None) -> int:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    seconds = int(round((expires_at - now).total_seconds()))
    if seconds < 1:
        raise ValueError("expires_at must be in the future")
    if seconds > MAX_PRESIGN_SECONDS:
        raise ValueError("expires_at must be within 7 days")
    return seconds


class Storage(StorageBackend):
    def __init__(self, cfg: Settings | None = None):
        cfg = cfg or _default_settings
        self.bucket = cfg.s3_bucket
        self.region = cfg.s3_region
        self.access_key = cfg.s3_access_key
        self.secret_key = cfg.s3_secret_key
        self.public_endpoint = cfg.s3_public_endpoint_url
        endpoint = cfg.s3_endpoint_url.replace("http://", "").replace("https://", "")
        # Passing region avoids a bucket-location lookup when presigning
        self.client = Minio(
            endpoint=endpoint,
            access_key=cfg.s3_access_key,
            secret_key=cfg.s3_secret_key,
            secure=bool(cfg.s3_secure),
            region=cfg.s3_region,
        )

    def ensure_bucket(self):
        if not self.client.bucket_exists(bucket_name=self.bucket):
            self.client.make_bucket(bucket_name=self.bucket)

    def ping(self) -> bool:
        return bool(self.client.bucket_exists(bucket_name=self.bucket))

    def put_object(self, key: str, data: bytes, content_type: str = "application/octet-stream"):
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    def object_exists(self, key: str) -> bool:
        try:
            self.client.stat_object(bucket_name=self.bucket, object_name=key)
            return True
        except S3Error:
            return False

    def temporary_url(self, path: str, expires_at: datetime) -> str:
        """Return a presigned GET URL for ``path`` valid until ``expires_at``.

        When a public endpoint is configured the URL is signed offline against
        it, so links handed to browsers never point at the internal host.
        """
        expiry = _seconds_until(expires_at)
        if self.public_endpoint:
            return self._offline_presign("GET", path, expiry, self.public_endpoint)
        return self.client.presigned_get_object(
            bucket_name=self.bucket,
            object_name=path,
            expires=timedelta(seconds=expiry),
        )

    # --- Offline SigV4 presign for public endpoint ---
    def _offline_presign(self, method: str, key: str, expiry: int, public_endpoint: str,
                         now: datetime | None = None) -> str:
        if not self.access_key or not self.secret_key:
            raise RuntimeError("Missing S3 access/secret for signing")

        now = now or datetime.now(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")

        # Path-style addressing
        tu = urlparse(public_endpoint)
        scheme = tu.scheme or "http"
        host = tu.netloc or tu.path
        canonical_uri = "/" + quote(self.bucket) + "/" + quote(key, safe="/")

        credential_scope = f"{date_stamp}/{self.region}/s3/aws4_request"
        q = {
            "X-Amz-Algorithm": "AWS4-HMAC-SHA256",
            "X-Amz-Credential": f"{self.access_key}/{credential_scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(int(expiry)),
            "X-Amz-SignedHeaders": "host",
        }

        def enc(v: str) -> str:
            return quote(v, safe="-_.~")

        canonical_query = "&".join(f"{enc(k)}={enc(q[k])}" for k in sorted(q))
        canonical_request = "\n".join([
            method,
            canonical_uri,
            canonical_query,
            f"host:{host}\n",
            "host",
            "UNSIGNED-PAYLOAD",
        ])
        string_to_sign = "\n".join([
            "AWS4-HMAC-SHA256",
            amz_date,
            credential_scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ])

        def _hmac(key: bytes, msg: str) -> bytes:
            return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

        k_date = _hmac(("AWS4" + self.secret_key).encode("utf-8"), date_stamp)
        k_region = _hmac(k_date, self.region)
        k_service = _hmac(k_region, "s3")
        k_signing = _hmac(k_service, "aws4_request")
        q["X-Amz-Signature"] = hmac.new(k_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
        return f"{scheme}://{host}{canonical_uri}?{urlencode(q)}"
