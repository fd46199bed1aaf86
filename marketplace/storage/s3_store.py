import boto3
import logging
from typing import Optional

from marketplace.core.config import settings
from .base import BlobStore

logger = logging.getLogger(__name__)


class S3BlobStore(BlobStore):
    """S3 storage for generated files"""

    def __init__(self, bucket_name: Optional[str] = None):
        """Initialize S3 client"""
        self.bucket_name = bucket_name or settings.AWS_S3_BUCKET_NAME
        if not self.bucket_name:
            raise ValueError("AWS_S3_BUCKET_NAME must be set for the s3 storage driver")
        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=settings.AWS_REGION
        )

    def put(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        logger.info(f"Writing to S3: s3://{self.bucket_name}/{path}")
        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=path,
            Body=content,
            ContentType=content_type,
        )
        return path

    def get(self, path: str) -> bytes:
        response = self.s3_client.get_object(Bucket=self.bucket_name, Key=path)
        return response['Body'].read()

    def exists(self, path: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=path)
            return True
        except self.s3_client.exceptions.ClientError:
            return False
