"""Object storage for uploaded product images.

Two interchangeable backends (local filesystem, S3) behind one contract.
"""

from catalog_api.storage.base import StorageBackend, StorageError, build_object_path
from catalog_api.storage.factory import get_storage_backend

__all__ = [
    "StorageBackend",
    "StorageError",
    "build_object_path",
    "get_storage_backend",
]
