"""Builds the token metadata document for a published image"""

from models.asset import DraftDescriptor, Trait
from models.metadata import CollectionProfile, FinalMetadata

PROMPT_TRAIT = "Prompt"
GENERATION_ID_TRAIT = "Generation ID"
NETWORK_TRAIT = "Network"


def assemble_metadata(
    identifier: str,
    draft: DraftDescriptor,
    image_ref: str,
    profile: CollectionProfile,
) -> FinalMetadata:
    """Assemble the final metadata document for one asset.

    Pure function, recomputed on every run: the draft or the profile wording may
    change between runs while the image reference is reused from the cache.

    Attributes are the draft's own traits in their original order, then the
    prompt (when present and enabled by the profile), then the generation id
    and the network label, always last and in that order.

    Args:
        identifier: Asset identifier
        draft: Draft descriptor for the asset
        image_ref: Published image reference (ipfs://...)
        profile: Collection-level fields

    Returns:
        FinalMetadata
    """
    attributes = list(draft.attributes)
    if draft.prompt and profile.include_prompt_trait:
        attributes.append(Trait(PROMPT_TRAIT, draft.prompt))
    attributes.append(Trait(GENERATION_ID_TRAIT, draft.id or identifier))
    attributes.append(Trait(NETWORK_TRAIT, profile.network_label))

    return FinalMetadata(
        name=f"{profile.name_prefix} #{identifier}",
        description=profile.description,
        image=image_ref,
        attributes=attributes,
    )
