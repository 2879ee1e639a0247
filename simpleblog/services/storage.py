import logging
import os
import uuid
from typing import Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from simpleblog.core.config import settings
from simpleblog.core.errors import ImageValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_LOGO_BYTES = 5 * 1024 * 1024
SIGNED_URL_MINUTES = 60


class ImageStorage(Protocol):
    def upload_image(self, content: bytes, file_name: str, folder: str, content_type: str) -> str: ...

    def delete_image(self, ref: str) -> bool: ...

    def generate_signed_url(self, ref: str, expiration_minutes: int = SIGNED_URL_MINUTES) -> str: ...


class S3ImageStorage:
    def __init__(self, client=None, bucket: Optional[str] = None):
        self.s3_client = client or boto3.client(
            's3',
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION
        )
        self.bucket_name = bucket or settings.S3_BUCKET

    def upload_image(self, content: bytes, file_name: str, folder: str, content_type: str = "image/jpeg") -> str:
        """
        Store the bytes under <root>/<folder>/<uuid><ext> and return that key.

        The key is what gets persisted on the entity; it is never a public URL.
        """
        file_extension = os.path.splitext(file_name)[1].lower()
        s3_key = f"{settings.S3_ROOT_FOLDER}/{folder}/{uuid.uuid4().hex}{file_extension}"

        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=s3_key,
            Body=content,
            ContentType=content_type
        )
        logger.info("Uploaded image to S3: %s", s3_key)
        return s3_key

    def delete_image(self, ref: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=ref)
            return True
        except ClientError as e:
            logger.warning("Error deleting %s from S3: %s", ref, e)
            return False

    def generate_signed_url(self, ref: str, expiration_minutes: int = SIGNED_URL_MINUTES) -> str:
        return self.s3_client.generate_presigned_url(
            'get_object',
            Params={'Bucket': self.bucket_name, 'Key': ref},
            ExpiresIn=expiration_minutes * 60
        )


class NoOpImageStorage:
    """Used when S3 credentials are missing: uploads are accepted and dropped."""

    def upload_image(self, content: bytes, file_name: str, folder: str, content_type: str = "image/jpeg") -> str:
        logger.warning("Image storage is not configured, discarding upload %s", file_name)
        return ""

    def delete_image(self, ref: str) -> bool:
        return False

    def generate_signed_url(self, ref: str, expiration_minutes: int = SIGNED_URL_MINUTES) -> str:
        return ref


_storage: Optional[ImageStorage] = None


def get_image_storage() -> ImageStorage:
    global _storage
    if _storage is None:
        if settings.S3_CONFIGURED:
            _storage = S3ImageStorage()
        else:
            logger.warning("S3 is not configured, image uploads are disabled")
            _storage = NoOpImageStorage()
    return _storage


def sign_url(storage: ImageStorage, ref: Optional[str]) -> Optional[str]:
    """Signed URL for a stored reference; the reference itself when signing fails."""
    if not ref:
        return ref
    try:
        return storage.generate_signed_url(ref, expiration_minutes=SIGNED_URL_MINUTES)
    except (ClientError, BotoCoreError) as e:
        logger.warning("Failed to generate signed URL for %s: %s", ref, e)
        return ref


async def read_image_upload(file: UploadFile, max_bytes: int = MAX_IMAGE_BYTES) -> bytes:
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        logger.info("Rejected upload %s with type %s", file.filename, content_type)
        raise ImageValidationError("Invalid file type. Allowed: JPEG, PNG, GIF, WebP")

    content = await file.read()
    if not content:
        raise ImageValidationError("File is empty")
    if len(content) > max_bytes:
        raise ImageValidationError(f"File size cannot exceed {max_bytes // (1024 * 1024)} MB")
    return content
