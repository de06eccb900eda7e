"""Cloudflare R2 storage service.

Wraps the S3-compatible R2 API for the two buckets the pipeline touches:
the clip library (listed and downloaded) and the rendered-videos bucket
(uploaded to and presigned).
"""

import logging
import mimetypes
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional, Union

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class R2Storage:
    """Cloudflare R2 object storage for a single bucket.

    Uses boto3 with the S3-compatible API. Every method is blocking; async
    callers wrap them in ``asyncio.to_thread``.
    """

    def __init__(
        self,
        endpoint: Optional[str],
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        bucket_name: str,
        public_url: Optional[str] = None,
        client=None,
    ):
        """Initialize R2 storage.

        Args:
            endpoint: R2 endpoint URL (https://<account>.r2.cloudflarestorage.com)
            access_key_id: R2 API access key ID
            secret_access_key: R2 API secret access key
            bucket_name: R2 bucket name
            public_url: Optional public URL base for files (CDN URL)
            client: Pre-built S3 client, mainly for tests
        """
        self.bucket_name = bucket_name
        self.public_url = public_url

        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name="auto",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
        )

        logger.info(f"[R2] Storage initialized for bucket: {bucket_name}")

    def upload_file(
        self,
        key: str,
        data: Union[bytes, Path, BinaryIO],
        content_type: Optional[str] = None,
    ) -> str:
        """Upload a file to R2.

        Args:
            key: Object key (path in bucket)
            data: File data as bytes, a local path, or a file-like object
            content_type: MIME type (auto-detected from the key if not provided)

        Returns:
            Public URL if configured, otherwise an s3:// URL
        """
        if content_type is None:
            content_type, _ = mimetypes.guess_type(key)
            content_type = content_type or "application/octet-stream"

        extra_args = {"ContentType": content_type}

        try:
            if isinstance(data, Path):
                with data.open("rb") as fh:
                    self._client.upload_fileobj(fh, self.bucket_name, key, ExtraArgs=extra_args)
            else:
                if isinstance(data, bytes):
                    data = BytesIO(data)
                self._client.upload_fileobj(data, self.bucket_name, key, ExtraArgs=extra_args)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[R2] Failed to upload {key}: {e}")
            raise

        logger.info(f"[R2] Uploaded {key} to {self.bucket_name}")

        if self.public_url:
            return f"{self.public_url.rstrip('/')}/{key}"
        return f"s3://{self.bucket_name}/{key}"

    def download_to_path(self, key: str, path: Path) -> Path:
        """Download an object straight to a local file.

        Raises:
            FileNotFoundError: If the key does not exist
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._client.download_file(self.bucket_name, key, str(path))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise FileNotFoundError(f"File not found: {key}") from e
            logger.error(f"[R2] Failed to download {key}: {e}")
            raise

        logger.debug(f"[R2] Downloaded {key} to {path}")
        return path

    def list_keys(self, prefix: str = "") -> list[str]:
        """List every key under ``prefix``, following continuation tokens.

        Returns:
            Keys in the order the bucket enumerates them
        """
        keys: list[str] = []
        params = {"Bucket": self.bucket_name, "Prefix": prefix, "MaxKeys": 1000}

        while True:
            try:
                page = self._client.list_objects_v2(**params)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"[R2] Failed to list {self.bucket_name}: {e}")
                raise

            keys.extend(obj["Key"] for obj in page.get("Contents", []))

            token = page.get("NextContinuationToken")
            if not page.get("IsTruncated") or not token:
                break
            params["ContinuationToken"] = token

        logger.debug(f"[R2] Listed {len(keys)} keys in {self.bucket_name}")
        return keys

    def get_presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Generate a presigned GET URL for temporary access.

        Args:
            key: Object key
            expires_in: URL expiration time in seconds (default 1 hour)
        """
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in,
            )
        except ClientError as e:
            logger.error(f"[R2] Failed to generate presigned URL: {e}")
            raise
