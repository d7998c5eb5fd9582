"""Writes the run output documents once every asset is recorded"""

import logging
from pathlib import Path
from typing import Dict, Sequence

from managers.json_store import write_json_documents_atomic
from models.run import AssetResult

logger = logging.getLogger("CollectionUploader")


class ResultWriter:
    """Overwrites `tokenUriMap.json` and `uploadResults.json` in full."""

    def __init__(self, token_uri_map_path: Path, results_path: Path):
        self.token_uri_map_path = Path(token_uri_map_path)
        self.results_path = Path(results_path)

    def write(self, results: Sequence[AssetResult], uri_map: Dict[str, str]):
        """Write both run outputs.

        Both documents are staged before either is replaced, so a failure leaves
        the previous run's outputs in place.

        Raises:
            StorageError: If either document cannot be written
        """
        write_json_documents_atomic([
            (self.token_uri_map_path, dict(uri_map)),
            (self.results_path, [result.to_dict() for result in results]),
        ])
        logger.info(f"Saved {self.token_uri_map_path} (ID -> tokenURI, {len(uri_map)} entries)")
        logger.info(f"Saved {self.results_path} (full details, {len(results)} entries)")
