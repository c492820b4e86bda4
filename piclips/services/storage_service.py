import asyncio
import uuid
from typing import Optional
from urllib.parse import urlparse

import boto3
from loguru import logger

from piclips.core.config import StorageSettings

VIDEO_PREFIX = "videos/"
PLAYBACK_CONTENT_TYPE = "video/mp4"


def build_video_key(filename: Optional[str]) -> str:
    name = (filename or "video").replace("/", "_").replace("\\", "_")
    return f"{VIDEO_PREFIX}{uuid.uuid4()}-{name}"


def object_key_from_url(url: str) -> str:
    if "://" not in url:
        return url
    path = urlparse(url).path
    marker = f"/{VIDEO_PREFIX}"
    if marker in path:
        return VIDEO_PREFIX + path.split(marker, 1)[1]
    return path.lstrip("/")


class ObjectStorage:
    def __init__(self, settings: StorageSettings, client=None):
        self.settings = settings
        self.bucket = settings.bucket_name
        self.client = client or boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.endpoint_url,
        )

    def url_for_key(self, key: str) -> str:
        if self.settings.endpoint_url:
            return f"{self.settings.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.settings.aws_region}.amazonaws.com/{key}"

    async def upload(self, key: str, body: bytes, content_type: Optional[str]) -> str:
        logger.info(f"Uploading object {key} to bucket {self.bucket} ({len(body)} bytes)")
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type or "application/octet-stream",
        )
        return self.url_for_key(key)

    async def delete(self, key: str):
        logger.info(f"Deleting object {key} from bucket {self.bucket}")
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)

    def signed_url(self, key: str, expires_in: Optional[int] = None) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ResponseContentType": PLAYBACK_CONTENT_TYPE,
                "ResponseContentDisposition": "inline",
            },
            ExpiresIn=expires_in or self.settings.signed_url_expires_in,
        )
