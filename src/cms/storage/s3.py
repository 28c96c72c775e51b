"""S3-compatible object storage (AWS S3, Cloudflare R2, MinIO)."""

import mimetypes
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from cms.errors import ConfigurationError, NotFoundError, StorageUnavailableError
from cms.storage.base import (
    FileEntry,
    StorageProvider,
    decode_text,
    is_listable,
    join_path,
    sort_entries,
)

logger = structlog.get_logger()

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in NOT_FOUND_CODES


def r2_endpoint(account_id: str) -> str:
    return f"https://{account_id}.r2.cloudflarestorage.com"


class S3Storage(StorageProvider):
    """Stores content and uploads as objects in a single bucket.

    Content lives under ``content_prefix`` and uploads under
    ``uploads_prefix``. Directories are key prefixes, listed with a ``/``
    delimiter.
    """

    name = "s3"

    def __init__(
        self,
        bucket: str,
        access_key_id: str = "",
        secret_access_key: str = "",
        account_id: str = "",
        endpoint_url: str = "",
        public_url: str = "",
        region: str = "auto",
        content_prefix: str = "content",
        uploads_prefix: str = "uploads",
        client: Any = None,
    ) -> None:
        """Initialize object storage.

        Args:
            bucket: Bucket name.
            access_key_id: Access key.
            secret_access_key: Secret key.
            account_id: R2 account id, used when no endpoint is given.
            endpoint_url: S3-compatible endpoint URL.
            public_url: Public base URL that serves the bucket.
            region: Bucket region.
            content_prefix: Key prefix for markdown content.
            uploads_prefix: Key prefix for uploads.
            client: Preconfigured boto3 S3 client, mainly for tests.

        Raises:
            ConfigurationError: If the bucket or endpoint cannot be determined.
        """
        if not bucket:
            raise ConfigurationError("CMS_S3_BUCKET must be set")

        self.bucket = bucket
        self.endpoint_url = endpoint_url or (r2_endpoint(account_id) if account_id else "")
        self.public_url = public_url.rstrip("/")
        self.content_prefix = content_prefix.strip("/")
        self.uploads_prefix = uploads_prefix.strip("/")

        if client is None:
            if not self.endpoint_url:
                raise ConfigurationError(
                    "CMS_S3_ENDPOINT_URL or CMS_S3_ACCOUNT_ID must be set"
                )
            client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
        self._client = client

    def _key(self, file_path: str) -> str:
        return join_path(self.content_prefix, file_path)

    def _unavailable(self, action: str, file_path: str, error: Exception) -> StorageUnavailableError:
        logger.error("s3_request_failed", action=action, path=file_path, error=str(error))
        return StorageUnavailableError(f"Object storage {action} failed: {error}", file_path)

    def object_url(self, key: str) -> str:
        """Absolute URL for an object key."""
        if self.public_url:
            return f"{self.public_url}/{key}"
        return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"

    def read_file(self, file_path: str) -> str:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self._key(file_path))
            body = response["Body"].read()
        except ClientError as e:
            if _is_not_found(e):
                raise NotFoundError(file_path) from e
            raise self._unavailable("read", file_path, e) from e
        except BotoCoreError as e:
            raise self._unavailable("read", file_path, e) from e
        return decode_text(body, file_path)

    def write_file(self, file_path: str, content: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=self._key(file_path),
                Body=content.encode("utf-8"),
                ContentType="text/markdown; charset=utf-8",
            )
        except (BotoCoreError, ClientError) as e:
            raise self._unavailable("write", file_path, e) from e

    def delete_file(self, file_path: str) -> None:
        key = self._key(file_path)
        # DeleteObject succeeds for missing keys, so check first.
        if not self.exists(file_path):
            raise NotFoundError(file_path)
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise self._unavailable("delete", file_path, e) from e

    def list_files(self, directory: str) -> list[FileEntry]:
        prefix = join_path(self._key(directory), "") if directory else f"{self.content_prefix}/"
        entries: list[FileEntry] = []

        try:
            paginator = self._client.get_paginator("list_objects_v2")
            pages = paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter="/")
            for page in pages:
                for common in page.get("CommonPrefixes", []):
                    name = common["Prefix"][len(prefix):].rstrip("/")
                    if name:
                        entries.append(
                            FileEntry(path=join_path(directory, name), name=name, type="directory")
                        )
                for obj in page.get("Contents", []):
                    name = obj["Key"][len(prefix):]
                    if name and "/" not in name:
                        entries.append(
                            FileEntry(path=join_path(directory, name), name=name, type="file")
                        )
        except (BotoCoreError, ClientError) as e:
            logger.warning("s3_list_failed", directory=directory, error=str(e))
            return []

        return sort_entries([e for e in entries if is_listable(e)])

    def exists(self, file_path: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=self._key(file_path))
        except (BotoCoreError, ClientError) as e:
            logger.debug("s3_exists_false", path=file_path, error=str(e))
            return False
        return True

    def upload_file(self, file_path: str, data: bytes) -> str:
        key = join_path(self.uploads_prefix, file_path)
        content_type, _ = mimetypes.guess_type(file_path)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise self._unavailable("upload", file_path, e) from e
        logger.info("s3_file_uploaded", key=key, size=len(data))
        return self.object_url(key)

    def check(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"Bucket {self.bucket} unreachable: {e}") from e
