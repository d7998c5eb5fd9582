"""Asset data models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Trait:
    """Single `{trait_type, value}` attribute entry"""
    trait_type: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"trait_type": self.trait_type, "value": self.value}

    @classmethod
    def from_dict(cls, data: Any) -> "Trait":
        """Build a trait from a JSON object, rejecting malformed entries.

        Raises:
            ValueError: If `data` is not an object with a string `trait_type`
                and a string or numeric `value`
        """
        if not isinstance(data, dict):
            raise ValueError(f"Trait must be an object, got {type(data).__name__}")
        trait_type = data.get("trait_type")
        value = data.get("value")
        if not isinstance(trait_type, str) or not trait_type:
            raise ValueError(f"Trait is missing a string 'trait_type': {data!r}")
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValueError(f"Trait '{trait_type}' has a non-scalar value: {value!r}")
        return cls(trait_type=trait_type, value=str(value))


@dataclass(frozen=True)
class DraftDescriptor:
    """Draft description written by the generation stage for one asset"""
    id: str
    prompt: Optional[str] = None
    attributes: List[Trait] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, identifier: str) -> "DraftDescriptor":
        """Validate a draft JSON document.

        The generation stage writes the id under `tokenId`; `id` is accepted as
        well. When neither is present the filename identifier is used.

        Args:
            data: Parsed JSON document
            identifier: Identifier derived from the draft's filename

        Returns:
            DraftDescriptor

        Raises:
            ValueError: If the document is not an object or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Draft must be a JSON object, got {type(data).__name__}")

        raw_id = data.get("tokenId", data.get("id"))
        if raw_id is not None and (isinstance(raw_id, bool) or not isinstance(raw_id, (str, int))):
            raise ValueError(f"Draft id must be a string or integer, got {raw_id!r}")
        # 0 and "" fall back to the filename identifier
        draft_id = str(raw_id) if raw_id else identifier

        prompt = data.get("prompt")
        if prompt is not None and not isinstance(prompt, str):
            raise ValueError(f"Draft prompt must be a string, got {type(prompt).__name__}")

        raw_attributes = data.get("attributes")
        if raw_attributes is None:
            raw_attributes = []
        if not isinstance(raw_attributes, list):
            raise ValueError("Draft attributes must be a list")
        attributes = [Trait.from_dict(entry) for entry in raw_attributes]

        return cls(id=draft_id, prompt=prompt or None, attributes=attributes)


@dataclass(frozen=True)
class ResolvedAsset:
    """An asset with a valid identifier and an existing companion draft"""
    identifier: str
    payload_path: Path
    draft: DraftDescriptor

    @property
    def filename(self) -> str:
        return self.payload_path.name


@dataclass(frozen=True)
class SkippedAsset:
    """A payload file excluded from the run"""
    filename: str
    reason: str  # "invalid_identifier" | "missing_descriptor"
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"filename": self.filename, "reason": self.reason, "message": self.message}


@dataclass
class Resolution:
    """Ordered output of the asset resolver"""
    assets: List[ResolvedAsset] = field(default_factory=list)
    skipped: List[SkippedAsset] = field(default_factory=list)
