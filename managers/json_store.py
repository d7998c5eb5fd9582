"""Durable JSON document helpers shared by the cache store and result writer"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from managers.errors import StorageError

logger = logging.getLogger("CollectionUploader")


def read_json_document(path: Path) -> Optional[Any]:
    """Read a JSON document.

    Args:
        path: Document path

    Returns:
        Parsed document, or None if the file does not exist

    Raises:
        StorageError: If the file exists but cannot be read or parsed
    """
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        raise StorageError(f"Failed to read {path}: {e}", path=path) from e


def _temp_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def _write_temp(path: Path, data: Any) -> Path:
    """Write `data` next to `path` in a flushed and fsynced temp file."""
    temp_path = _temp_path_for(path)
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
    except (OSError, TypeError, ValueError):
        _discard(temp_path)
        raise
    return temp_path


def _discard(temp_path: Path):
    if temp_path.exists():
        try:
            temp_path.unlink()
        except OSError:
            pass


def _fsync_directory(directory: Path):
    """Flush a directory entry so a rename into it survives a crash (POSIX only)."""
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def write_json_atomic(path: Path, data: Any):
    """Replace `path` with `data` pretty-printed, atomically.

    Writes to a temp file in the same directory then renames over the target,
    so readers see either the previous document or the new one.

    Raises:
        StorageError: If the document cannot be written
    """
    write_json_documents_atomic([(path, data)])


def write_json_documents_atomic(documents: Iterable[Tuple[Path, Any]]):
    """Write several documents, replacing targets only once every temp file is written.

    Args:
        documents: (path, data) pairs

    Raises:
        StorageError: If any document cannot be written. Targets that were not
            yet replaced keep their previous content.
    """
    staged: Dict[Path, Path] = {}
    current: Optional[Path] = None
    try:
        for path, data in documents:
            current = path
            path.parent.mkdir(parents=True, exist_ok=True)
            staged[path] = _write_temp(path, data)
        for path, temp_path in staged.items():
            current = path
            temp_path.replace(path)
            logger.debug(f"Wrote {path}")
        for directory in {path.parent for path in staged}:
            current = directory
            _fsync_directory(directory)
    except (OSError, TypeError, ValueError) as e:
        for temp_path in staged.values():
            _discard(temp_path)
        raise StorageError(f"Failed to write {current}: {e}", path=current) from e
