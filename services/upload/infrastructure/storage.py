from __future__ import annotations

import logging
from pathlib import Path

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..application.interfaces import ObjectPublisher
from ..config import UploadConfig
from ..domain.errors import StorageFailure

LOGGER = logging.getLogger(__name__)


def create_s3_client(config: UploadConfig):
    s3_options = {"addressing_style": "path"} if config.storage_endpoint_url else {}
    return boto3.client(
        "s3",
        endpoint_url=config.storage_endpoint_url,
        region_name=config.storage_region,
        aws_access_key_id=config.storage_access_key,
        aws_secret_access_key=config.storage_secret_key,
        config=BotoConfig(signature_version="s3v4", s3=s3_options),
    )


class S3ObjectPublisher(ObjectPublisher):
    def __init__(self, client, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    def publish(self, *, source: Path, object_key: str, content_type: str) -> None:
        try:
            self._client.upload_file(
                source.as_posix(),
                self._bucket,
                object_key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            LOGGER.error("Failed to upload %s to s3://%s/%s: %s", source.name, self._bucket, object_key, exc)
            raise StorageFailure(f"Upload to s3://{self._bucket}/{object_key} failed") from exc
        LOGGER.info("Uploaded %s -> s3://%s/%s", source.name, self._bucket, object_key)


def create_object_publisher(config: UploadConfig) -> ObjectPublisher:
    client = create_s3_client(config)
    return S3ObjectPublisher(client, config.storage_bucket)
