"""Storage backend selection.

One backend per process, picked from settings.storage_backend. Endpoints
receive it through the get_storage_backend dependency, which tests
override.
"""

from catalog_api.core.config import settings
from catalog_api.storage.base import StorageBackend
from catalog_api.storage.local import LocalStorageBackend
from catalog_api.storage.s3 import S3StorageBackend

_storage_backend: StorageBackend | None = None


def create_storage_backend(backend: str | None = None) -> StorageBackend:
    """Instantiate a storage backend.

    Args:
        backend: "local" or "s3". Defaults to settings.storage_backend.

    Returns:
        A new backend instance.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = backend or settings.storage_backend
    if backend == "local":
        return LocalStorageBackend(settings.storage_local_root)
    if backend == "s3":
        return S3StorageBackend(settings.s3_bucket_name)
    raise ValueError(f"Unknown storage backend: {backend}")


def get_storage_backend() -> StorageBackend:
    """Dependency returning the process-wide storage backend singleton.

    The first call builds the configured backend; later calls reuse it.
    """
    global _storage_backend

    if _storage_backend is None:
        _storage_backend = create_storage_backend()
    return _storage_backend
