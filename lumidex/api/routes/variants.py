"""
Variant display endpoints.
"""
from fastapi import APIRouter

from lumidex.api.deps import EngineDep
from lumidex.schemas.variants import DisplayVariantsResponse, SetVariantsResponse

router = APIRouter()


@router.get("/variants/{card_id}", response_model=DisplayVariantsResponse)
async def get_display_variants(card_id: str, engine: EngineDep):
    """
    Variants to display for a card.

    Standard variants come from the classifier; custom variants that
    replace one of them hide it.
    """
    variants = await engine.get_display_variants(card_id)
    return DisplayVariantsResponse.model_validate(variants)


@router.get("/sets/{set_id}/variants", response_model=SetVariantsResponse)
async def get_set_variants(set_id: str, engine: EngineDep):
    """
    Display variants for every card in a set.

    Cards that fail are listed under `errors` instead of failing the request.
    An unknown set returns no results.
    """
    batch = await engine.display_variants_for_set(set_id)
    return SetVariantsResponse(
        set_id=set_id,
        results={
            card_id: DisplayVariantsResponse.model_validate(variants)
            for card_id, variants in batch.results.items()
        },
        errors=dict(batch.errors),
        timed_out=list(batch.timed_out),
    )


@router.get("/admin/variants/{card_id}/preview", response_model=DisplayVariantsResponse)
async def preview_variants(card_id: str, engine: EngineDep):
    """Admin preview; same pipeline as the public endpoint."""
    variants = await engine.preview_variants(card_id)
    return DisplayVariantsResponse.model_validate(variants)
