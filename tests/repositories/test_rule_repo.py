"""Tests for loading stored variant rules."""
import pytest

from lumidex.core.constants import Era, RarePolicy, VariantKind
from lumidex.models import CardExceptionRow, RarityMappingRow, SetPolicyRow
from lumidex.repositories.rule_repo import RuleRepository


@pytest.mark.asyncio
async def test_stored_rows_merged_onto_defaults(db_session):
    db_session.add_all([
        SetPolicyRow(
            set_id="swsh45",
            has_standard_reverse=True,
            has_pokeball_reverse=False,
            has_masterball_reverse=False,
            has_first_edition=False,
            rare_policy="force_holo",
            era="sword_shield",
        ),
        RarityMappingRow(
            rarity="Radiant Rare",
            era="sword_shield",
            allowed_variants=["holo"],
            force_variants=["holo"],
            exclude_variants=["reverse_holo_standard"],
        ),
        CardExceptionRow(
            set_id="swsh45",
            card_number="SV107",
            variant_changes={"normal": False, "holo": True},
            reason="Shiny vault",
        ),
    ])
    await db_session.commit()

    tables = await RuleRepository(db_session).load_tables()

    policy = tables.set_policy("swsh45")
    assert policy.rare_policy is RarePolicy.FORCE_HOLO
    assert policy.era is Era.SWORD_SHIELD

    mapping = tables.rarity_mapping("Radiant Rare", Era.SWORD_SHIELD)
    assert mapping.excluded == {VariantKind.REVERSE_HOLO_STANDARD}

    exception = tables.card_exception("swsh45", "sv107")
    assert exception.variants == {VariantKind.NORMAL: False, VariantKind.HOLO: True}

    # Defaults survive
    assert tables.set_policy("sv8pt5") is not None
    assert tables.rarity_mapping("Common", Era.SCARLET_VIOLET) is not None


@pytest.mark.asyncio
async def test_stored_mapping_replaces_default(db_session):
    db_session.add(
        RarityMappingRow(
            rarity="Common",
            era="scarlet_violet",
            allowed_variants=["normal"],
            force_variants=[],
            exclude_variants=["reverse_holo_standard"],
        )
    )
    await db_session.commit()

    tables = await RuleRepository(db_session).load_tables()
    mapping = tables.rarity_mapping("Common", Era.SCARLET_VIOLET)

    assert mapping.allowed == {VariantKind.NORMAL}


@pytest.mark.asyncio
async def test_malformed_rows_skipped(db_session):
    db_session.add_all([
        SetPolicyRow(set_id="odd1", rare_policy="sometimes", era="space_age"),
        RarityMappingRow(
            rarity="Rare Holo",
            era="xy",
            allowed_variants=["holo", "sparkly"],
            force_variants=["holo"],
            exclude_variants=["holo"],
        ),
        RarityMappingRow(rarity="Rare", era="stone_age", allowed_variants=["normal"]),
        CardExceptionRow(set_id="odd1", card_number="1", variant_changes={"sparkly": True}),
    ])
    await db_session.commit()

    tables = await RuleRepository(db_session).load_tables()

    policy = tables.set_policy("odd1")
    assert policy.rare_policy is RarePolicy.AUTO
    assert policy.era is None
    # Invalid overlap keeps the default mapping
    assert tables.rarity_mapping("Rare Holo", Era.XY).excluded == frozenset()
    assert tables.card_exception("odd1", "1").variants == {}
