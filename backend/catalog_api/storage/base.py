"""Storage backend contract and object path placement.

Every backend stores bytes under a path produced by build_object_path():

    owner_{owner_id}/resource_{resource_id}/{uuid4 hex}{.ext}

The random segment carries 122 bits of entropy, so two uploads with the
same display name under the same product never collide. Extension
allowlisting happens before a backend is called (core/file_validation).
"""

import uuid
from abc import ABC, abstractmethod

from catalog_api.core.file_validation import get_extension


class StorageError(Exception):
    """A storage backend could not complete an operation."""


def build_object_path(owner_id: int, resource_id: int, display_name: str) -> str:
    """Build a fresh, collision-free object path.

    Args:
        owner_id: Account that owns the resource.
        resource_id: Product the object is attached to.
        display_name: Client-supplied filename; only its extension is used.

    Returns:
        Relative object path. The extension is lower-cased; a display name
        without one yields a path without one.
    """
    extension = get_extension(display_name)
    suffix = f".{extension}" if extension else ""
    return f"owner_{owner_id}/resource_{resource_id}/{uuid.uuid4().hex}{suffix}"


class StorageBackend(ABC):
    """Contract for persisting uploaded objects.

    Exactly one implementation is active per process, chosen from
    configuration at startup (see storage.factory).
    """

    @abstractmethod
    async def store(
        self,
        content: bytes,
        *,
        owner_id: int,
        resource_id: int,
        display_name: str,
    ) -> str:
        """Persist content under a new path and return that path.

        Raises:
            StorageError: If the backend is unavailable or the write fails.
        """

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove the object at ``path``. Missing objects are not an error.

        Raises:
            StorageError: If the backend is unavailable or the delete fails.
        """
