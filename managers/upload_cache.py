"""Persistent upload cache: asset id -> published IPFS reference, per namespace"""

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from managers.errors import StorageError
from managers.json_store import read_json_document, write_json_atomic

logger = logging.getLogger("CollectionUploader")

IMAGE_NAMESPACE = "image"
METADATA_NAMESPACE = "metadata"
NAMESPACES = (IMAGE_NAMESPACE, METADATA_NAMESPACE)


def validate_cache_document(document, path: Path) -> Dict[str, str]:
    """Check that a cache document is a flat string -> string mapping.

    Raises:
        StorageError: If the document has any other shape
    """
    if not isinstance(document, dict):
        raise StorageError(
            f"Cache document {path} must be a JSON object, got {type(document).__name__}",
            path=path,
        )
    for key, value in document.items():
        if not isinstance(value, str) or not value:
            raise StorageError(
                f"Cache document {path} has a non-string reference for id '{key}': {value!r}",
                path=path,
            )
    return dict(document)


class UploadCache:
    """Two independent append-only namespaces persisted as one JSON document each.

    Every `put` rewrites the namespace document atomically before returning,
    so an entry is durable as soon as `put` returns. A missing document means
    nothing has been uploaded yet.
    """

    def __init__(self, paths: Dict[str, Path]):
        """Initialize the cache store.

        Args:
            paths: Namespace name -> document path
        """
        unknown = set(paths) - set(NAMESPACES)
        if unknown:
            raise ValueError(f"Unknown cache namespaces: {sorted(unknown)}")
        self.paths = {namespace: Path(path) for namespace, path in paths.items()}
        self._entries: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()

    def _path(self, namespace: str) -> Path:
        try:
            return self.paths[namespace]
        except KeyError:
            raise ValueError(f"Unknown cache namespace: {namespace}") from None

    def load(self, namespace: str) -> Dict[str, str]:
        """Load a namespace from disk, replacing any in-memory state.

        Returns:
            Copy of the loaded mapping (empty if no document exists yet)

        Raises:
            StorageError: If the document exists but is unreadable or malformed
        """
        path = self._path(namespace)
        document = read_json_document(path)
        if document is None:
            logger.info(f"No {namespace} cache at {path} yet, starting empty")
            entries: Dict[str, str] = {}
        else:
            entries = validate_cache_document(document, path)
            logger.info(f"Loaded {len(entries)} cached {namespace} reference(s) from {path}")
        with self._lock:
            self._entries[namespace] = entries
        return dict(entries)

    def load_all(self):
        for namespace in self.paths:
            self.load(namespace)

    def _namespace(self, namespace: str) -> Dict[str, str]:
        if namespace not in self._entries:
            self.load(namespace)
        return self._entries[namespace]

    def get(self, namespace: str, asset_id: str) -> Optional[str]:
        return self._namespace(namespace).get(asset_id)

    def put(self, namespace: str, asset_id: str, reference: str):
        """Record a published reference and persist the namespace before returning.

        Args:
            namespace: Cache namespace
            asset_id: Asset identifier
            reference: Published content reference

        Raises:
            ValueError: If the id already maps to a different reference
            StorageError: If the namespace document cannot be written; the
                in-memory entry is rolled back
        """
        if not reference:
            raise ValueError(f"Refusing to cache an empty reference for id '{asset_id}'")
        entries = self._namespace(namespace)
        path = self._path(namespace)

        with self._lock:
            existing = entries.get(asset_id)
            if existing == reference:
                return
            if existing is not None:
                raise ValueError(
                    f"Cache {namespace} already maps id '{asset_id}' to {existing}; "
                    f"refusing to overwrite with {reference}"
                )
            entries[asset_id] = reference
            try:
                write_json_atomic(path, entries)
            except StorageError:
                del entries[asset_id]
                raise
            logger.debug(f"Cached {namespace} reference: {asset_id} -> {reference}")

    def entries(self, namespace: str) -> Dict[str, str]:
        return dict(self._namespace(namespace))
