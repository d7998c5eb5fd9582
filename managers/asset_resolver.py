"""Asset resolver: pairs payload files with their draft descriptors"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from managers.errors import InputError, SkippableInputError, StorageError
from managers.json_store import read_json_document
from models.asset import DraftDescriptor, Resolution, ResolvedAsset, SkippedAsset

logger = logging.getLogger("CollectionUploader")

# Identifiers are ASCII decimal digits, e.g. "1712345678901"
IDENTIFIER_REGEX = re.compile(r"[0-9]+")

INVALID_IDENTIFIER = "invalid_identifier"
MISSING_DESCRIPTOR = "missing_descriptor"


def parse_identifier(filename: str) -> Optional[str]:
    """Derive the asset identifier from a payload or draft filename.

    Args:
        filename: File name such as "42.png" or "42.json"

    Returns:
        The identifier ("42"), or None if the stem is not all ASCII decimal digits
    """
    stem = Path(filename).stem
    if IDENTIFIER_REGEX.fullmatch(stem):
        return stem
    return None


def load_draft(path: Path, identifier: str) -> DraftDescriptor:
    """Load and validate a draft descriptor.

    Raises:
        StorageError: If the draft is unreadable or malformed
    """
    document = read_json_document(path)
    if document is None:
        raise StorageError(f"Draft disappeared while loading: {path}", path=path)
    try:
        return DraftDescriptor.from_dict(document, identifier)
    except ValueError as e:
        raise StorageError(f"Malformed draft {path}: {e}", path=path) from e


class AssetResolver:
    """Discovers candidate assets in lexicographic filename order."""

    def __init__(
        self,
        images_dir: Path,
        drafts_dir: Path,
        payload_extensions: Iterable[str] = (".png",),
        descriptor_extension: str = ".json",
    ):
        self.images_dir = Path(images_dir)
        self.drafts_dir = Path(drafts_dir)
        self.payload_extensions = tuple(ext.lower() for ext in payload_extensions)
        self.descriptor_extension = descriptor_extension

    def list_payload_files(self) -> List[str]:
        """List payload filenames, sorted lexicographically.

        Raises:
            StorageError: If the payload directory is missing or unreadable
        """
        if not self.images_dir.is_dir():
            raise StorageError(f"Payload directory not found: {self.images_dir}", path=self.images_dir)
        try:
            names = [
                entry.name
                for entry in self.images_dir.iterdir()
                if entry.is_file() and entry.suffix.lower() in self.payload_extensions
            ]
        except OSError as e:
            raise StorageError(f"Failed to list {self.images_dir}: {e}", path=self.images_dir) from e
        return sorted(names)

    def draft_path(self, identifier: str) -> Path:
        return self.drafts_dir / f"{identifier}{self.descriptor_extension}"

    def _check_candidate(self, filename: str) -> str:
        identifier = parse_identifier(filename)
        if identifier is None:
            raise SkippableInputError(
                filename, INVALID_IDENTIFIER, f"Skipping (filename not numeric ID): {filename}"
            )
        draft_path = self.draft_path(identifier)
        if not draft_path.is_file():
            raise SkippableInputError(
                filename, MISSING_DESCRIPTOR, f"Skipping {filename} (no matching draft: {draft_path})"
            )
        return identifier

    def resolve(self) -> Resolution:
        """Resolve every payload file into an asset or a skip record.

        Returns:
            Resolution with assets and skips, both in filename order

        Raises:
            StorageError: If the payload directory or a draft cannot be read
            InputError: If the payload directory holds no payload files
        """
        filenames = self.list_payload_files()
        if not filenames:
            extensions = ", ".join(self.payload_extensions)
            raise InputError(f"No payload files ({extensions}) found in {self.images_dir}")

        resolution = Resolution()
        for filename in filenames:
            try:
                identifier = self._check_candidate(filename)
            except SkippableInputError as e:
                logger.info(str(e))
                resolution.skipped.append(SkippedAsset(filename=e.filename, reason=e.reason, message=str(e)))
                continue

            draft = load_draft(self.draft_path(identifier), identifier)
            resolution.assets.append(
                ResolvedAsset(identifier=identifier, payload_path=self.images_dir / filename, draft=draft)
            )

        logger.info(
            f"Resolved {len(resolution.assets)} asset(s) from {len(filenames)} payload file(s) "
            f"in {self.images_dir} ({len(resolution.skipped)} skipped)"
        )
        return resolution
