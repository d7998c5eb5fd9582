import json
import logging
from typing import Any, Dict, Optional

import requests

from managers.errors import QuotaExhaustedError, TransportError, UnexpectedContentTypeError

logger = logging.getLogger("PinataClient")

IPFS_SCHEME = "ipfs://"
PIN_FILE_ENDPOINT = "/pinning/pinFileToIPFS"
PIN_JSON_ENDPOINT = "/pinning/pinJSONToIPFS"


def to_ipfs_uri(content_id: str) -> str:
    return f"{IPFS_SCHEME}{content_id}"


class PinataClient:
    """Publishes blobs and JSON documents to IPFS through the Pinata pinning API.

    Calls are never retried; every failure surfaces as a TransportError.
    """

    def __init__(self, jwt: str, base_url: str = "https://api.pinata.cloud", timeout: Optional[float] = None):
        if not jwt:
            raise ValueError("Pinata JWT is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth_headers = {"Authorization": f"Bearer {jwt}"}

    def publish_blob(self, data: bytes, display_name: str, tags: Optional[Dict[str, str]] = None) -> str:
        """Pin raw bytes and return their ipfs:// reference."""
        metadata = {"name": display_name, "keyvalues": dict(tags or {})}
        logger.info(f"Pinning file '{display_name}' ({len(data)} bytes)")
        response = self._post(
            PIN_FILE_ENDPOINT,
            files={"file": (display_name, data, "application/octet-stream")},
            data={"pinataMetadata": json.dumps(metadata)},
        )
        return to_ipfs_uri(self._extract_content_id(response))

    def publish_document(self, document: Dict[str, Any], display_name: str, tags: Optional[Dict[str, str]] = None) -> str:
        """Pin a JSON document and return its ipfs:// reference."""
        payload = {
            "pinataMetadata": {"name": display_name, "keyvalues": dict(tags or {})},
            "pinataContent": document,
        }
        logger.info(f"Pinning JSON '{display_name}'")
        response = self._post(PIN_JSON_ENDPOINT, json=payload)
        return to_ipfs_uri(self._extract_content_id(response))

    def _post(self, endpoint: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.post(url, headers=self._auth_headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"Pinata request to {endpoint} failed: {e}") from e

        if response.status_code == 402:
            raise QuotaExhaustedError(
                f"402 Payment Required from Pinata: {response.text}",
                status_code=402,
                body=response.text,
            )
        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Pinata returned {response.status_code} for {endpoint}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def _extract_content_id(self, response: requests.Response) -> str:
        content_type = response.headers.get("Content-Type", "").lower()
        if "application/json" not in content_type:
            raise UnexpectedContentTypeError(
                f"Unexpected content-type '{content_type}' ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Pinata returned invalid JSON: {e}", status_code=response.status_code, body=response.text
            ) from e

        content_id = body.get("IpfsHash") if isinstance(body, dict) else None
        if not isinstance(content_id, str) or not content_id:
            raise TransportError(
                f"Pinata response has no IpfsHash: {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info(f"Pinned as {content_id}")
        return content_id
