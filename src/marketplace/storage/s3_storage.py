"""S3-compatible file storage (AWS S3, Cloudflare R2, MinIO) via boto3."""

from uuid import uuid4

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from marketplace.errors import DependencyError
from marketplace.storage.port import FileStorage, StoredFile

logger = structlog.get_logger(__name__)


class S3FileStorage(FileStorage):
    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str = "auto",
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(signature_version="s3v4"),
            region_name=region,
        )

    def upload(self, data: bytes, folder: str, filename: str, content_type: str | None = None) -> StoredFile:
        key = f"{folder.strip('/')}/{uuid4().hex[:12]}-{filename}"
        extra_args = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra_args)
        except (ClientError, BotoCoreError) as exc:
            logger.error("File upload failed", bucket=self.bucket, key=key, error=str(exc))
            raise DependencyError("File upload failed") from exc
        return StoredFile(url=f"{self.public_base_url}/{key}", public_id=key)

    def delete(self, public_id: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=public_id)
        except (ClientError, BotoCoreError) as exc:
            logger.error("File delete failed", bucket=self.bucket, key=public_id, error=str(exc))
            raise DependencyError("File delete failed") from exc
