"""Error taxonomy for the collection upload pipeline"""

from pathlib import Path
from typing import Optional, Union


class UploadError(Exception):
    """Base class for every error raised by the upload pipeline."""

    error_code = "UPLOAD_FAILED"


class SkippableInputError(UploadError):
    """An input asset cannot be processed; the asset is skipped, the run continues."""

    error_code = "SKIPPED_INPUT"

    def __init__(self, filename: str, reason: str, message: str):
        super().__init__(message)
        self.filename = filename
        self.reason = reason


class TransportError(UploadError):
    """The content-addressable store rejected or failed a publish call."""

    error_code = "TRANSPORT_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class QuotaExhaustedError(TransportError):
    """The pinning service reported that payment or quota is exhausted (HTTP 402)."""

    error_code = "QUOTA_EXHAUSTED"


class UnexpectedContentTypeError(TransportError):
    """The pinning service answered with something other than JSON."""

    error_code = "UNEXPECTED_CONTENT_TYPE"


class StorageError(UploadError):
    """A cache, draft or output document could not be read or written."""

    error_code = "STORAGE_ERROR"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class InputError(UploadError):
    """The input side holds nothing to upload."""

    error_code = "NO_PAYLOADS"


class ConfigurationError(UploadError):
    """Required configuration (credentials, paths) is missing or invalid."""

    error_code = "CONFIGURATION_ERROR"
