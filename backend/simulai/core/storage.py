import logging
import uuid
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from simulai.core.exceptions import upstream_error

logger = logging.getLogger(__name__)


#SH: Thin pass-through to S3. Credentials come from the (decrypted) settings row.
class S3Storage:
    def __init__(
        self,
        access_key: Optional[str],
        secret_key: Optional[str],
        region: Optional[str],
        bucket: Optional[str],
        bucket_url: Optional[str] = None,
    ):
        if not (access_key and secret_key and bucket):
            raise upstream_error("S3", "AWS credentials are not configured")
        self.bucket = bucket
        self.region = region or "us-east-1"
        self.bucket_url = bucket_url or f"https://{bucket}.s3.{self.region}.amazonaws.com/"
        self.client = boto3.client(
            "s3",
            region_name=self.region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )

    @classmethod
    def from_settings(cls, app_settings: dict) -> "S3Storage":
        return cls(
            access_key=app_settings.get("aws_access_key"),
            secret_key=app_settings.get("aws_secret_key"),
            region=app_settings.get("aws_region"),
            bucket=app_settings.get("aws_bucket"),
            bucket_url=app_settings.get("aws_bucket_url"),
        )

    def build_key(self, filename: str, folder: str = "") -> str:
        extension = Path(filename or "").suffix.lstrip(".").lower() or "bin"
        name = f"{uuid.uuid4().hex}.{extension}"
        return f"{folder.strip('/')}/{name}" if folder else name

    def url_for(self, key: str) -> str:
        return f"{self.bucket_url.rstrip('/')}/{key}"

    async def upload(self, content: bytes, filename: str, content_type: str, folder: str = "") -> str:
        key = self.build_key(filename, folder)
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading {filename} to S3: {str(e)}")
            raise upstream_error("S3", f"Failed to upload file: {str(e)}")
        logger.info(f"Uploaded {filename} to s3://{self.bucket}/{key}")
        return self.url_for(key)
