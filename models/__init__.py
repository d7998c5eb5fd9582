"""Data models for the collection uploader"""

from models.asset import DraftDescriptor, Resolution, ResolvedAsset, SkippedAsset, Trait
from models.metadata import CollectionProfile, FinalMetadata
from models.run import AssetResult, AssetState, RunReport, StepOutcome

__all__ = [
    "AssetResult",
    "AssetState",
    "CollectionProfile",
    "DraftDescriptor",
    "FinalMetadata",
    "Resolution",
    "ResolvedAsset",
    "RunReport",
    "SkippedAsset",
    "StepOutcome",
    "Trait",
]
