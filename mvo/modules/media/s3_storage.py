import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from mvo.config import settings
import logging

logger = logging.getLogger(__name__)

S3_PATH_SUFFIX = "/storage/v1/s3"


class S3Storage:
    """Supabase Storage through its S3-compatible endpoint"""

    def __init__(self):
        if not settings.storage_configured:
            raise ValueError("Storage endpoint, credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            endpoint_url=settings.storage_endpoint,
            aws_access_key_id=settings.storage_access_key_id,
            aws_secret_access_key=settings.storage_secret_access_key,
            region_name=settings.storage_region,
            config=Config(s3={"addressing_style": "path"})
        )
        self.bucket_name = settings.storage_bucket_name
        self.endpoint = settings.storage_endpoint

    def public_url(self, key: str) -> str:
        base_url = self.endpoint.replace(S3_PATH_SUFFIX, "")
        return f"{base_url}/storage/v1/object/public/{self.bucket_name}/{key}"

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Upload a publicly readable object and return its public URL"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
                ACL="public-read"
            )
            return self.public_url(key)
        except ClientError as e:
            logger.error(f"Failed to upload file to storage: {str(e)}")
            raise

    def delete_file(self, key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete file from storage: {str(e)}")
            return False
