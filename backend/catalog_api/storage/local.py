"""Filesystem storage backend rooted at a configured directory."""

from pathlib import Path

import aiofiles
import aiofiles.os
import structlog

from catalog_api.storage.base import StorageBackend, StorageError, build_object_path

logger = structlog.get_logger()


class LocalStorageBackend(StorageBackend):
    """Store objects as files under ``root``.

    Partition directories are created on demand. Files are opened with
    exclusive create so an existing object is never overwritten.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        """Map an object path to a file under root, refusing escapes."""
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            msg = f"Object path escapes storage root: {path}"
            raise StorageError(msg)
        return target

    async def store(
        self,
        content: bytes,
        *,
        owner_id: int,
        resource_id: int,
        display_name: str,
    ) -> str:
        path = build_object_path(owner_id, resource_id, display_name)
        target = self._resolve(path)
        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
            async with aiofiles.open(target, "xb") as f:
                await f.write(content)
        except OSError as exc:
            logger.error("Local store failed", path=path, error=str(exc))
            msg = f"Failed to store object {path}"
            raise StorageError(msg) from exc

        logger.info("Object stored", backend="local", path=path, size=len(content))
        return path

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            logger.info("Object already absent", backend="local", path=path)
            return
        except OSError as exc:
            logger.error("Local delete failed", path=path, error=str(exc))
            msg = f"Failed to delete object {path}"
            raise StorageError(msg) from exc

        logger.info("Object deleted", backend="local", path=path)
