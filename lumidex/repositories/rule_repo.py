"""
Rule repository: loads stored variant rules and merges them onto defaults.

Stored rows are administrator configuration. A malformed row is a
configuration gap, so it is skipped with a warning rather than failing the
whole load.
"""
from typing import Iterable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lumidex.core.constants import Era, RarePolicy, VariantKind
from lumidex.models.variant_rules import CardExceptionRow, RarityMappingRow, SetPolicyRow
from lumidex.repositories.base import BaseRepository
from lumidex.services.variants.rules import CardException, RarityMapping, RuleTables, SetPolicy

logger = structlog.get_logger()


def _kinds(values: Iterable[str], context: str) -> set[VariantKind]:
    kinds = set()
    for value in values or ():
        try:
            kinds.add(VariantKind(value))
        except ValueError:
            logger.warning("Unknown variant kind in rule row", value=value, row=context)
    return kinds


def _era(value: Optional[str]) -> Optional[Era]:
    if not value:
        return None
    try:
        return Era(value)
    except ValueError:
        logger.warning("Unknown era in rule row", era=value)
        return None


class RuleRepository(BaseRepository[SetPolicyRow]):
    """Loads set policies, rarity mappings and card exceptions."""

    def __init__(self, db: AsyncSession):
        super().__init__(SetPolicyRow, db)

    async def set_policies(self) -> list[SetPolicy]:
        rows = await self.find_by()
        policies = []
        for row in rows:
            try:
                rare_policy = RarePolicy(row.rare_policy)
            except ValueError:
                logger.warning(
                    "Unknown rare policy, using auto",
                    set_id=row.set_id,
                    rare_policy=row.rare_policy,
                )
                rare_policy = RarePolicy.AUTO
            policies.append(
                SetPolicy(
                    set_id=row.set_id,
                    has_standard_reverse=row.has_standard_reverse,
                    has_pokeball_reverse=row.has_pokeball_reverse,
                    has_masterball_reverse=row.has_masterball_reverse,
                    has_first_edition=row.has_first_edition,
                    rare_policy=rare_policy,
                    era=_era(row.era),
                )
            )
        return policies

    async def rarity_mappings(self) -> list[RarityMapping]:
        result = await self._execute(select(RarityMappingRow).order_by(RarityMappingRow.id))
        mappings = []
        for row in result.scalars().all():
            era = _era(row.era)
            if era is None:
                continue
            context = f"{row.rarity}/{row.era}"
            try:
                mappings.append(
                    RarityMapping(
                        rarity=row.rarity,
                        era=era,
                        allowed=_kinds(row.allowed_variants, context),
                        forced=_kinds(row.force_variants, context),
                        excluded=_kinds(row.exclude_variants, context),
                    )
                )
            except ValueError as e:
                logger.warning("Skipping invalid rarity mapping", row=context, error=str(e))
        return mappings

    async def card_exceptions(self) -> list[CardException]:
        result = await self._execute(select(CardExceptionRow).order_by(CardExceptionRow.id))
        exceptions = []
        for row in result.scalars().all():
            variants = {}
            for key, exists in (row.variant_changes or {}).items():
                try:
                    variants[VariantKind(key)] = bool(exists)
                except ValueError:
                    logger.warning(
                        "Unknown variant kind in card exception",
                        set_id=row.set_id,
                        card_number=row.card_number,
                        value=key,
                    )
            exceptions.append(
                CardException(
                    set_id=row.set_id,
                    card_number=row.card_number,
                    variants=variants,
                    reason=row.reason,
                )
            )
        return exceptions

    async def load_tables(self, base: Optional[RuleTables] = None) -> RuleTables:
        """Built-in defaults (or `base`) with every stored row merged on top."""
        tables = base or RuleTables.default()
        return tables.merged_with(
            set_policies=await self.set_policies(),
            rarity_mappings=await self.rarity_mappings(),
            card_exceptions=await self.card_exceptions(),
        )
