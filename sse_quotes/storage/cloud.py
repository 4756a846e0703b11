import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from sse_quotes.exceptions import StorageError
from sse_quotes.logger import log_function
from .base import BaseStorage


logger = logging.getLogger("sse_quotes.storage")

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}
ALREADY_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", "") or "")


class CloudStorage(BaseStorage):
    """A client for S3 (or any S3-compatible endpoint)."""

    def __init__(
        self,
        region: str = "eu-west-1",
        endpoint: Optional[str] = None,
        client: Any = None,
    ):
        self.region = region
        self.endpoint = endpoint.rstrip("/") if endpoint else None

        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name=region,
                endpoint_url=self.endpoint,
            )
        self.client = client

        self._ready_buckets: set[str] = set()
        self._bucket_locks: dict[str, asyncio.Lock] = {}

    def public_url(self, bucket: str, key: str) -> str:
        """Constructs the absolute URL of an object in cloud storage.

        Args:
            bucket (str): The bucket name.
            key (str): The object key.

        Return:
            str: Path-style URL for custom endpoints, virtual-hosted AWS URL otherwise.
        """
        if self.endpoint:
            return f"{self.endpoint}/{bucket}/{key}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{key}"

    @log_function(logger_name="sse_quotes.storage", log_args=True, log_result=True)
    async def exists_at(self, bucket: str, key: str) -> bool:
        """
        Check if an object exists in cloud storage.

        Only a "not found" answer counts as absent; permission or network
        errors are raised, never read as a cache miss.
        """

        def _head() -> bool:
            try:
                self.client.head_object(Bucket=bucket, Key=key)
            except ClientError as e:
                if _error_code(e) in NOT_FOUND_CODES:
                    return False
                raise
            return True

        try:
            return await asyncio.to_thread(_head)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"Existence check failed for s3://{bucket}/{key}: {e}",
                bucket=bucket,
                key=key,
            ) from e

    async def ensure_bucket(self, bucket: str) -> None:
        """Creates the bucket if it is missing; safe to call from concurrent episodes."""
        if bucket in self._ready_buckets:
            return

        lock = self._bucket_locks.setdefault(bucket, asyncio.Lock())
        async with lock:
            if bucket in self._ready_buckets:
                return

            def _head_or_create() -> None:
                try:
                    self.client.head_bucket(Bucket=bucket)
                    return
                except ClientError as e:
                    if _error_code(e) not in NOT_FOUND_CODES:
                        raise

                logger.info(f"Bucket {bucket} not found, creating it")
                params: dict[str, Any] = {"Bucket": bucket}
                if self.region and self.region != "us-east-1":
                    params["CreateBucketConfiguration"] = {
                        "LocationConstraint": self.region
                    }
                try:
                    self.client.create_bucket(**params)
                except ClientError as e:
                    # Another process won the create race
                    if _error_code(e) not in ALREADY_EXISTS_CODES:
                        raise

            try:
                await asyncio.to_thread(_head_or_create)
            except (ClientError, BotoCoreError) as e:
                raise StorageError(
                    f"Failed to ensure bucket {bucket!r}: {e}", bucket=bucket
                ) from e

            self._ready_buckets.add(bucket)

    @log_function(logger_name="sse_quotes.storage", log_args=True)
    async def upload_file(
        self,
        bucket: str,
        key: str,
        path: Path,
        *,
        public: bool = False,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Uploads a local file to cloud storage and returns its URL."""
        extra_args = {"ContentType": content_type}
        if public:
            extra_args["ACL"] = "public-read"

        try:
            await asyncio.to_thread(
                self.client.upload_file,
                str(path),
                bucket,
                key,
                ExtraArgs=extra_args,
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise StorageError(
                f"Upload of {path} to s3://{bucket}/{key} failed: {e}",
                bucket=bucket,
                key=key,
            ) from e

        return self.public_url(bucket, key)

    @log_function(logger_name="sse_quotes.storage", log_args=True)
    async def upload_text(self, bucket: str, key: str, text: str) -> str:
        """Uploads text as a private object and returns its URL."""
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=bucket,
                Key=key,
                Body=text.encode("utf-8"),
                ContentType="text/plain; charset=utf-8",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"Upload to s3://{bucket}/{key} failed: {e}", bucket=bucket, key=key
            ) from e

        return self.public_url(bucket, key)
