"""Final token metadata models"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.asset import Trait


@dataclass(frozen=True)
class CollectionProfile:
    """Collection-level fields stamped onto every metadata document"""
    name_prefix: str = "OnyxAI"
    description: str = (
        "AI-generated NFT collection minted on Sepolia. "
        "Generated and uploaded via JavaScript automation."
    )
    network_label: str = "Sepolia Testnet"
    project_tag: str = "onyxai-nft"
    include_prompt_trait: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name_prefix": self.name_prefix,
            "description": self.description,
            "network_label": self.network_label,
            "project_tag": self.project_tag,
            "include_prompt_trait": self.include_prompt_trait,
        }


@dataclass(frozen=True)
class FinalMetadata:
    """Token metadata document pinned for each asset"""
    name: str
    description: str
    image: str
    attributes: List[Trait] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "attributes": [trait.to_dict() for trait in self.attributes],
        }
