"""Per-asset progress and run report models"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.asset import SkippedAsset


class AssetState(str, Enum):
    PENDING = "pending"
    IMAGE_PUBLISHED = "image_published"
    METADATA_PUBLISHED = "metadata_published"
    RECORDED = "recorded"


@dataclass(frozen=True)
class AssetResult:
    """Result entry for an asset that completed both publish steps"""
    id: str
    image_uri: str
    token_uri: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "imageURI": self.image_uri, "tokenURI": self.token_uri}


@dataclass(frozen=True)
class StepOutcome:
    """Result of one publish step: a content reference or the error that stopped it"""
    reference: Optional[str] = None
    error: Optional[Exception] = None
    reused: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, reference: str, reused: bool = False) -> "StepOutcome":
        return cls(reference=reference, reused=reused)

    @classmethod
    def failure(cls, error: Exception) -> "StepOutcome":
        return cls(error=error)


@dataclass
class RunReport:
    """Summary of one pipeline run"""
    results: List[AssetResult] = field(default_factory=list)
    token_uri_map: Dict[str, str] = field(default_factory=dict)
    skipped: List[SkippedAsset] = field(default_factory=list)
    images_uploaded: int = 0
    images_reused: int = 0
    metadata_uploaded: int = 0
    metadata_reused: int = 0
    error: Optional[Exception] = None
    failed_id: Optional[str] = None
    failed_state: Optional[AssetState] = None
    outputs_written: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def publish_calls(self) -> int:
        return self.images_uploaded + self.metadata_uploaded

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": "success" if self.ok else "failed",
            "results": [result.to_dict() for result in self.results],
            "token_uri_map": dict(self.token_uri_map),
            "skipped": [skip.to_dict() for skip in self.skipped],
            "images_uploaded": self.images_uploaded,
            "images_reused": self.images_reused,
            "metadata_uploaded": self.metadata_uploaded,
            "metadata_reused": self.metadata_reused,
            "outputs_written": self.outputs_written,
        }
        if self.error is not None:
            data["error"] = str(self.error)
            data["error_code"] = getattr(self.error, "error_code", "UPLOAD_FAILED")
            data["failed_id"] = self.failed_id
            data["failed_state"] = self.failed_state.value if self.failed_state else None
        return data
