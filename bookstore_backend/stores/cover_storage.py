"""
Cover image storage on S3

The API never handles cover bytes. Clients upload and download directly
against S3 using presigned URLs scoped to a single object key.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from botocore.exceptions import ClientError

from bookstore_backend.config import (
    COVERS_FOLDER,
    READ_URL_EXPIRY_SECONDS,
    UPLOAD_URL_EXPIRY_SECONDS,
)

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

UPLOAD_PERMISSIONS = frozenset({"create", "write"})
READ_PERMISSIONS = frozenset({"read"})


@dataclass(frozen=True)
class SignedUrl:
    """A presigned URL and the grant it carries."""

    url: str
    blob_name: str
    method: str
    permissions: frozenset[str]
    starts_on: datetime
    expires_on: datetime

    @property
    def expires_in(self) -> int:
        return int((self.expires_on - self.starts_on).total_seconds())


def sanitize_filename(filename: str) -> str:
    """Strip everything except ASCII letters, digits, hyphens and dots."""
    return _UNSAFE_CHARS.sub("", filename)


def build_blob_name(filename: str, issued_at: datetime) -> str:
    """
    Build the object key for a cover upload.

    Args:
        filename: Client-supplied filename (sanitized here)
        issued_at: Issuance time; its epoch milliseconds keep repeated
            filenames from colliding

    Returns:
        str: Key of the form ``covers/<milliseconds>-<safe-name>``

    Raises:
        ValueError: If nothing is left of the filename after sanitizing
    """
    safe_name = sanitize_filename(filename)
    if not safe_name:
        raise ValueError(f"Filename {filename!r} has no usable characters")
    millis = (issued_at - _EPOCH) // timedelta(milliseconds=1)
    return f"{COVERS_FOLDER}/{millis}-{safe_name}"


class CoverStorage:
    def __init__(
        self,
        s3_client: "S3Client",
        bucket: str,
        region: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.s3_client = s3_client
        self.bucket = bucket
        self.region = region
        self.clock = clock or (lambda: datetime.now(UTC))

    def ensure_container_exists(self) -> bool:
        """
        Create the covers bucket if it does not exist.

        Returns:
            bool: True if the bucket was created, False if it already existed

        Raises:
            ClientError: For any failure other than the bucket being absent
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket)
            return False
        except ClientError as e:
            if e.response["Error"]["Code"] not in _MISSING_BUCKET_CODES:  # type: ignore[typeddict-item]
                raise

        params: dict = {"Bucket": self.bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        self.s3_client.create_bucket(**params)
        logger.info(f"Created cover bucket: {self.bucket}")
        return True

    def _sign(self, client_method: str, http_method: str, blob_name: str,
              permissions: frozenset[str], expires_in: int, starts_on: datetime) -> SignedUrl:
        url = self.s3_client.generate_presigned_url(
            client_method,
            Params={"Bucket": self.bucket, "Key": blob_name},
            ExpiresIn=expires_in,
            HttpMethod=http_method,
        )
        return SignedUrl(
            url=url,
            blob_name=blob_name,
            method=http_method,
            permissions=permissions,
            starts_on=starts_on,
            expires_on=starts_on + timedelta(seconds=expires_in),
        )

    def issue_upload_url(self, filename: str) -> SignedUrl:
        """
        Presign a PUT for a new cover object.

        The grant is create+write on exactly one key and lasts five minutes.

        Raises:
            ValueError: If the sanitized filename is empty
        """
        issued_at = self.clock()
        blob_name = build_blob_name(filename, issued_at)
        logger.info(f"Generating presigned PUT URL for: {blob_name}")
        return self._sign(
            "put_object", "PUT", blob_name, UPLOAD_PERMISSIONS, UPLOAD_URL_EXPIRY_SECONDS,
            issued_at,
        )

    def issue_read_url(self, blob_name: str) -> SignedUrl:
        """Presign a read-only GET for an existing cover, valid for ten minutes."""
        logger.info(f"Generating presigned GET URL for: {blob_name}")
        return self._sign(
            "get_object", "GET", blob_name, READ_PERMISSIONS, READ_URL_EXPIRY_SECONDS,
            self.clock(),
        )
