"""Shared fixtures for uploader tests"""

import json
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from managers.asset_resolver import AssetResolver
from managers.errors import TransportError
from managers.result_writer import ResultWriter
from managers.upload_cache import IMAGE_NAMESPACE, METADATA_NAMESPACE, UploadCache
from managers.upload_pipeline import UploadPipeline
from models.metadata import CollectionProfile


class FakePublisher:
    """In-memory stand-in for PinataClient.

    References are derived from the content, so publishing the same bytes or
    document twice yields the same reference. `fail_on` maps a display name
    to the error raised when it is published.
    """

    def __init__(self, fail_on: Optional[Dict[str, Exception]] = None):
        self.fail_on = dict(fail_on or {})
        self.blob_calls: List[str] = []
        self.document_calls: List[str] = []
        self.documents: Dict[str, dict] = {}

    @property
    def calls(self) -> int:
        return len(self.blob_calls) + len(self.document_calls)

    def publish_blob(self, data, display_name, tags=None):
        self.blob_calls.append(display_name)
        if display_name in self.fail_on:
            raise self.fail_on[display_name]
        return f"ipfs://img-{tags['id']}-{len(data)}"

    def publish_document(self, document, display_name, tags=None):
        self.document_calls.append(display_name)
        if display_name in self.fail_on:
            raise self.fail_on[display_name]
        reference = f"ipfs://meta-{tags['id']}"
        self.documents[reference] = document
        return reference


def write_asset(layout: Dict[str, Path], filename: str, draft: Optional[dict] = None, payload: bytes = b"png-bytes"):
    """Create a payload file and, when `draft` is given, its companion draft."""
    (layout["images"] / filename).write_bytes(payload)
    if draft is not None:
        identifier = Path(filename).stem
        (layout["drafts"] / f"{identifier}.json").write_text(json.dumps(draft), encoding="utf-8")


def make_draft(identifier: str, subject: str = "oracle") -> dict:
    return {
        "tokenId": int(identifier),
        "prompt": f"{subject}, minimalist graphic style",
        "attributes": [{"trait_type": "Subject", "value": subject}],
    }


@pytest.fixture
def layout(tmp_path):
    """Output directory with images/ and drafts/ subdirectories"""
    root = tmp_path / "output"
    (root / "images").mkdir(parents=True)
    (root / "drafts").mkdir(parents=True)
    return {
        "root": root,
        "images": root / "images",
        "drafts": root / "drafts",
        "image_cache": root / "imageUploadCache.json",
        "metadata_cache": root / "metadataUploadCache.json",
        "token_uri_map": root / "tokenUriMap.json",
        "results": root / "uploadResults.json",
    }


@pytest.fixture
def profile():
    return CollectionProfile()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def make_pipeline(layout, profile):
    """Factory building a pipeline over `layout` with a fresh cache store each call"""

    def _make(publisher) -> UploadPipeline:
        return UploadPipeline(
            resolver=AssetResolver(layout["images"], layout["drafts"]),
            cache=UploadCache({
                IMAGE_NAMESPACE: layout["image_cache"],
                METADATA_NAMESPACE: layout["metadata_cache"],
            }),
            publisher=publisher,
            writer=ResultWriter(layout["token_uri_map"], layout["results"]),
            profile=profile,
        )

    return _make


@pytest.fixture
def transport_error():
    return TransportError("Pinata returned 500: upstream unavailable", status_code=500, body="upstream unavailable")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the user's persistent config and credentials"""
    config_file = tmp_path / "user-config" / "upload_config.json"
    monkeypatch.setattr("managers.upload_config.get_upload_config_file", lambda: config_file)
    for env_var in ("PINATA_JWT", "PINATA_API_URL", "COLLECTION_NAME_PREFIX", "COLLECTION_DESCRIPTION",
                    "COLLECTION_NETWORK_LABEL", "COLLECTION_PROJECT_TAG"):
        monkeypatch.delenv(env_var, raising=False)
