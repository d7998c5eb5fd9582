"""Configuration for the collection uploader: paths, credentials and collection profile"""

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from managers.errors import ConfigurationError
from managers.upload_cache import IMAGE_NAMESPACE, METADATA_NAMESPACE
from models.metadata import CollectionProfile

logger = logging.getLogger("CollectionUploader")

DEFAULT_API_URL = "https://api.pinata.cloud"
DEFAULT_PAYLOAD_EXTENSIONS = (".png",)
DESCRIPTOR_EXTENSION = ".json"

IMAGE_CACHE_FILENAME = "imageUploadCache.json"
METADATA_CACHE_FILENAME = "metadataUploadCache.json"
TOKEN_URI_MAP_FILENAME = "tokenUriMap.json"
UPLOAD_RESULTS_FILENAME = "uploadResults.json"

# Collection profile fields that may be set from the environment
PROFILE_ENV_VARS = {
    "name_prefix": "COLLECTION_NAME_PREFIX",
    "description": "COLLECTION_DESCRIPTION",
    "network_label": "COLLECTION_NETWORK_LABEL",
    "project_tag": "COLLECTION_PROJECT_TAG",
}


def get_upload_config_dir() -> Path:
    """Get platform-specific config directory for uploader settings.

    Returns:
        Windows: %APPDATA%/collection-uploader
        Mac: ~/Library/Application Support/collection-uploader
        Linux: ~/.config/collection-uploader
    """
    system = platform.system()
    if system == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata:
            return Path(appdata) / "collection-uploader"
        return Path.home() / "AppData" / "Roaming" / "collection-uploader"
    elif system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "collection-uploader"
    else:
        return Path.home() / ".config" / "collection-uploader"


def get_upload_config_file() -> Path:
    """Get path to the persistent uploader config file."""
    return get_upload_config_dir() / "upload_config.json"


def load_upload_config() -> Dict[str, Any]:
    """Load persistent uploader configuration.

    Returns:
        Config dict (empty if the file is missing or unreadable)
    """
    config_file = get_upload_config_file()
    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
            return config if isinstance(config, dict) else {}
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Failed to load upload config from {config_file}: {e}")
        return {}


def save_upload_config(config: Dict[str, Any]) -> bool:
    """Merge `config` into the persistent uploader configuration.

    Returns:
        True if successful, False otherwise
    """
    config_file = get_upload_config_file()
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        existing = load_upload_config()
        existing.update(config)
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(existing, f, indent=2)
        logger.info(f"Saved upload config to {config_file}")
        return True
    except (IOError, OSError) as e:
        logger.error(f"Failed to save upload config to {config_file}: {e}")
        return False


def resolve_collection_profile(overrides: Optional[Dict[str, Any]] = None) -> CollectionProfile:
    """Build the collection profile with precedence: overrides > config file > env > hardcoded."""
    values = CollectionProfile().to_dict()

    for field_name, env_var in PROFILE_ENV_VARS.items():
        env_value = os.getenv(env_var)
        if env_value:
            values[field_name] = env_value

    file_values = load_upload_config().get("collection", {})
    if isinstance(file_values, dict):
        values.update({k: v for k, v in file_values.items() if k in values})
    else:
        logger.warning("Ignoring 'collection' section of upload config: not an object")

    if overrides:
        unknown = set(overrides) - set(values)
        if unknown:
            raise ConfigurationError(f"Unknown collection profile fields: {sorted(unknown)}")
        values.update(overrides)

    for key in ("name_prefix", "description", "network_label", "project_tag"):
        if not isinstance(values[key], str) or not values[key]:
            raise ConfigurationError(f"Collection profile field '{key}' must be a non-empty string")
    if not isinstance(values["include_prompt_trait"], bool):
        raise ConfigurationError("Collection profile field 'include_prompt_trait' must be a boolean")

    return CollectionProfile(**values)


def save_collection_profile(fields: Dict[str, Any]) -> CollectionProfile:
    """Validate `fields` and merge them into the config file's "collection" section.

    Returns:
        The profile resolved after saving

    Raises:
        ConfigurationError: If a field is unknown or invalid, or the file cannot be written
    """
    resolve_collection_profile(fields)

    section = load_upload_config().get("collection", {})
    if not isinstance(section, dict):
        section = {}
    section.update(fields)
    if not save_upload_config({"collection": section}):
        raise ConfigurationError(f"Failed to save collection profile to {get_upload_config_file()}")
    return resolve_collection_profile()


class UploadConfig:
    """Configuration for a collection upload run."""

    def __init__(
        self,
        output_root: Optional[Union[str, Path]] = None,
        images_dir: Optional[Union[str, Path]] = None,
        drafts_dir: Optional[Union[str, Path]] = None,
        pinata_jwt: Optional[str] = None,
        api_url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        payload_extensions: Tuple[str, ...] = DEFAULT_PAYLOAD_EXTENSIONS,
        profile: Optional[CollectionProfile] = None,
    ):
        """Initialize upload configuration.

        Args:
            output_root: Directory holding inputs, caches and outputs (default: ./output)
            images_dir: Payload directory (default: <output_root>/images)
            drafts_dir: Draft descriptor directory (default: <output_root>/drafts)
            pinata_jwt: Pinata JWT (default: PINATA_JWT environment variable)
            api_url: Pinata API base URL (default: PINATA_API_URL or the public API)
            request_timeout: Per-request timeout in seconds (default: none, block until answered)
            payload_extensions: Payload file extensions, matched case-insensitively
            profile: Collection profile (default: resolved from config file and env)
        """
        self.output_root = Path(output_root or Path.cwd() / "output").resolve()
        self.images_dir = Path(images_dir).resolve() if images_dir else self.output_root / "images"
        self.drafts_dir = Path(drafts_dir).resolve() if drafts_dir else self.output_root / "drafts"

        self.pinata_jwt = pinata_jwt or os.getenv("PINATA_JWT")
        self.api_url = (api_url or os.getenv("PINATA_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.request_timeout = request_timeout
        self.payload_extensions = tuple(ext.lower() for ext in payload_extensions)
        self.profile = profile or resolve_collection_profile()

    @property
    def cache_paths(self) -> Dict[str, Path]:
        return {
            IMAGE_NAMESPACE: self.output_root / IMAGE_CACHE_FILENAME,
            METADATA_NAMESPACE: self.output_root / METADATA_CACHE_FILENAME,
        }

    @property
    def token_uri_map_path(self) -> Path:
        return self.output_root / TOKEN_URI_MAP_FILENAME

    @property
    def results_path(self) -> Path:
        return self.output_root / UPLOAD_RESULTS_FILENAME

    def require_credentials(self) -> str:
        """Return the Pinata JWT.

        Raises:
            ConfigurationError: If no JWT was given and PINATA_JWT is unset
        """
        if not self.pinata_jwt:
            raise ConfigurationError("Missing PINATA_JWT (set it in the environment)")
        return self.pinata_jwt

    def ensure_output_root(self):
        self.output_root.mkdir(parents=True, exist_ok=True)

    def get_info(self) -> Dict[str, Any]:
        """Describe the configuration without exposing the credential."""
        return {
            "output_root": str(self.output_root),
            "images_dir": {"path": str(self.images_dir), "exists": self.images_dir.is_dir()},
            "drafts_dir": {"path": str(self.drafts_dir), "exists": self.drafts_dir.is_dir()},
            "cache_files": {namespace: str(path) for namespace, path in self.cache_paths.items()},
            "token_uri_map": str(self.token_uri_map_path),
            "upload_results": str(self.results_path),
            "api_url": self.api_url,
            "credentials_configured": bool(self.pinata_jwt),
            "payload_extensions": list(self.payload_extensions),
            "profile": self.profile.to_dict(),
            "config_file": str(get_upload_config_file()),
        }
