"""Local filesystem storage backend."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from .exceptions import TransientBackendError
from .interfaces import FileDelivery, StoredObject
from .keys import derive_key, guess_content_type, local_api_url, local_path_from_key

logger = logging.getLogger(__name__)


class LocalStorageBackend:
    """Local filesystem implementation for the storage contract.

    Writes go to ``root`` (the persistent mount). ``legacy_root`` holds files
    written before the move to the persistent mount and is only read.
    """

    kind = 'local'
    _stat = staticmethod(os.stat)

    def __init__(self, root: str, legacy_root: Optional[str] = None):
        self.root = str(Path(root))
        self.legacy_root = str(Path(legacy_root)) if legacy_root else None
        Path(self.root).mkdir(parents=True, exist_ok=True)

    def _roots(self) -> List[str]:
        roots = [self.root]
        if self.legacy_root and self.legacy_root != self.root:
            roots.append(self.legacy_root)
        return roots

    def resolve_path(self, key: str) -> str:
        return local_path_from_key(self.root, key)

    def upload(self, data: bytes, original_name: str, content_type: Optional[str] = None,
               key: Optional[str] = None) -> StoredObject:
        key = key or derive_key(original_name)
        dst = local_path_from_key(self.root, key)
        Path(dst).parent.mkdir(parents=True, exist_ok=True)
        with open(dst, 'wb') as out_f:
            out_f.write(data)
        os.chmod(dst, 0o644)
        logger.info("Saved %s (%d bytes) to local storage", key, len(data))
        return StoredObject(
            key=key,
            url=self.public_url(key),
            backend=self.kind,
            size=os.path.getsize(dst),
            content_type=content_type or guess_content_type(key),
        )

    def locate(self, key: str) -> Optional[str]:
        """Return the path holding ``key`` (persistent root first), or None.

        Raises TransientBackendError when no copy was found and at least one
        directory could not be checked (permission denied, I/O error).
        """
        inconclusive = None
        for root in self._roots():
            try:
                path = local_path_from_key(root, key)
            except ValueError:
                return None
            try:
                self._stat(path)
                return path
            except (FileNotFoundError, NotADirectoryError):
                continue
            except OSError as exc:
                inconclusive = exc
        if inconclusive is not None:
            raise TransientBackendError(
                f"Could not stat local object {key}: {inconclusive}", backend=self.kind, key=key
            ) from inconclusive
        return None

    def exists(self, key: str) -> bool:
        return self.locate(key) is not None

    def delete(self, key: str) -> None:
        for root in self._roots():
            try:
                os.remove(local_path_from_key(root, key))
                logger.info("Deleted %s from %s", key, root)
            except (FileNotFoundError, NotADirectoryError):
                pass
            except (OSError, ValueError) as e:
                logger.warning("Could not delete %s from %s: %s", key, root, e)

    def public_url(self, key: str) -> str:
        return local_api_url(key)

    def read(self, key: str) -> Optional[FileDelivery]:
        path = self.locate(key)
        if path is None:
            return None
        return FileDelivery(mode='local_file', local_path=path, mimetype=guess_content_type(key))
