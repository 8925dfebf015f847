"""S3FileService provides S3-backed blob storage for uploaded documents."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from fincontrol.core.errors import StorageError
from fincontrol.core.settings import Settings, get_settings


class S3FileService:
    """Service for S3 file operations: upload, download, delete, ensure bucket."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize S3FileService and ensure the bucket exists."""
        settings = settings or get_settings()
        self.s3 = boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
        )
        self.bucket = settings.S3_BUCKET
        self.ensure_bucket()

    def ensure_bucket(self) -> None:
        """Ensure the S3 bucket exists, create if not present."""
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except ClientError:
            try:
                self.s3.create_bucket(Bucket=self.bucket)
            except (BotoCoreError, ClientError) as exc:
                msg = f"Failed to create bucket {self.bucket}: {exc}"
                raise StorageError(msg) from exc
        except BotoCoreError as exc:
            msg = f"S3 endpoint unreachable: {exc}"
            raise StorageError(msg) from exc

    def upload_fileobj(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """Upload bytes to S3 under the given key."""
        try:
            self.s3.put_object(Bucket=self.bucket, Key=str(key), Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            msg = f"Failed to upload {key}: {exc}"
            raise StorageError(msg) from exc

    def download_fileobj(self, key: str) -> bytes:
        """Download an object from S3 by key."""
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=str(key))
            return obj["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            msg = f"Failed to download {key}: {exc}"
            raise StorageError(msg) from exc

    def delete_fileobj(self, key: str) -> None:
        """Delete an object from S3 by key."""
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=str(key))
        except (BotoCoreError, ClientError) as exc:
            msg = f"Failed to delete {key}: {exc}"
            raise StorageError(msg) from exc
