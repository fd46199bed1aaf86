from marketplace.core.config import settings
from .base import BlobStore
from .local_store import LocalBlobStore


def get_blob_store() -> BlobStore:
    """Blob store for the configured STORAGE_DRIVER"""
    if settings.STORAGE_DRIVER == "s3":
        from .s3_store import S3BlobStore

        return S3BlobStore()
    if settings.STORAGE_DRIVER == "local":
        return LocalBlobStore()
    raise ValueError(f"Unknown storage driver: {settings.STORAGE_DRIVER}")


__all__ = ["BlobStore", "LocalBlobStore", "get_blob_store"]
