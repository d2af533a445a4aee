"""
Custom variant repository.
"""
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lumidex.core.constants import STANDARD_VARIANT_KINDS, CurrencyCode, CustomVariantType, VariantKind
from lumidex.models.custom_variant import CustomVariant
from lumidex.repositories.base import BaseRepository
from lumidex.services.variants.overrides import CustomVariantData

logger = structlog.get_logger()


def _replaces(row: CustomVariant) -> Optional[VariantKind]:
    if not row.replaces_standard_variant:
        return None
    try:
        kind = VariantKind(row.replaces_standard_variant)
    except ValueError:
        kind = None
    if kind not in STANDARD_VARIANT_KINDS:
        logger.warning(
            "Custom variant replaces an unknown standard variant, ignoring",
            custom_variant_id=row.id,
            replaces=row.replaces_standard_variant,
        )
        return None
    return kind


def to_custom_variant_data(row: CustomVariant) -> CustomVariantData:
    """Convert a stored row to the engine's representation."""
    try:
        variant_type = CustomVariantType(row.variant_type)
    except ValueError:
        variant_type = CustomVariantType.CUSTOM

    prices = {}
    if row.price_usd is not None:
        prices[CurrencyCode.USD] = float(row.price_usd)
    if row.price_eur is not None:
        prices[CurrencyCode.EUR] = float(row.price_eur)

    return CustomVariantData(
        id=row.id,
        card_id=row.card_id,
        variant_name=row.variant_name,
        variant_type=variant_type,
        display_name=row.display_name,
        description=row.description or "",
        source_product=row.source_product,
        prices=prices,
        replaces_standard_variant=_replaces(row),
        is_active=row.is_active,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class CustomVariantRepository(BaseRepository[CustomVariant]):
    """Reads administrator-defined variants."""

    def __init__(self, db: AsyncSession):
        super().__init__(CustomVariant, db)

    async def list_active(self, card_id: str) -> list[CustomVariantData]:
        """Active custom variants of a card, ordered by id."""
        stmt = (
            select(CustomVariant)
            .where(CustomVariant.card_id == card_id, CustomVariant.is_active.is_(True))
            .order_by(CustomVariant.id)
        )
        result = await self._execute(stmt)
        return [to_custom_variant_data(row) for row in result.scalars().all()]
