"""Tests for rule tables and era detection."""
from datetime import date

import pytest

from lumidex.core.constants import Era, RarePolicy, VariantKind
from lumidex.services.variants.era import (
    derive_set_policy,
    detect_era,
    has_reverse_holo_default,
)
from lumidex.services.variants.rules import (
    CardException,
    RarityMapping,
    RuleTables,
    SetPolicy,
    card_number_key,
)


@pytest.fixture
def tables() -> RuleTables:
    return RuleTables.default()


class TestRarityMapping:

    def test_forced_and_excluded_overlap_rejected(self):
        with pytest.raises(ValueError, match="both forces and excludes"):
            RarityMapping(
                "Rare Holo",
                Era.XY,
                forced={VariantKind.HOLO},
                excluded={VariantKind.HOLO},
            )

    def test_lookup_ignores_case_and_spacing(self, tables):
        mapping = tables.rarity_mapping("  rare   HOLO ", Era.SWORD_SHIELD)

        assert mapping is not None
        assert VariantKind.HOLO in mapping.forced

    def test_missing_rarity(self, tables):
        assert tables.rarity_mapping(None, Era.XY) is None
        assert tables.rarity_mapping("Shiny Vault", Era.XY) is None


class TestRuleTables:

    def test_default_policies(self, tables):
        policy = tables.set_policy("SV8PT5")

        assert policy is not None
        assert policy.has_pokeball_reverse
        assert policy.has_masterball_reverse
        assert policy.era is Era.SCARLET_VIOLET

    def test_stored_rows_replace_defaults(self, tables):
        override = SetPolicy("sv8pt5", has_masterball_reverse=False, era=Era.SCARLET_VIOLET)
        merged = tables.merged_with(set_policies=[override])

        assert merged.set_policy("sv8pt5") == override
        # Original tables are untouched
        assert tables.set_policy("sv8pt5").has_masterball_reverse

    def test_merge_is_idempotent(self, tables):
        rows = dict(
            set_policies=[SetPolicy("swsh4", has_standard_reverse=False)],
            rarity_mappings=[RarityMapping("Amazing Rare", Era.SWORD_SHIELD, allowed={VariantKind.HOLO})],
            card_exceptions=[CardException("swsh4", "082", {VariantKind.NORMAL: False})],
        )
        once = tables.merged_with(**rows)
        twice = once.merged_with(**rows)

        assert once == twice

    def test_card_exception_number_forms(self, tables):
        merged = tables.merged_with(
            card_exceptions=[CardException("swsh4", "082/185", {VariantKind.NORMAL: True})]
        )

        assert merged.card_exception("SWSH4", "82") is not None
        assert merged.card_exception("swsh4", "082") is not None
        assert merged.card_exception("swsh4", "83") is None

    @pytest.mark.parametrize(
        "day,era",
        [
            (date(2023, 3, 30), Era.SWORD_SHIELD),
            (date(2023, 3, 31), Era.SCARLET_VIOLET),
            (date(2030, 1, 1), Era.SCARLET_VIOLET),
            (date(1998, 10, 20), Era.WOTC),
            (date(1990, 1, 1), None),
        ],
    )
    def test_era_for_date(self, tables, day, era):
        assert tables.era_for_date(day) is era


def test_card_number_key():
    assert card_number_key("082/185") == "82"
    assert card_number_key("TG05") == "tg05"
    assert card_number_key("000") == "0"


class TestDetectEra:

    def test_policy_era_wins(self, tables):
        policy = SetPolicy("odd1", era=Era.XY)
        era = detect_era(tables, "odd1", series="Sun & Moon", release_date=date(2018, 1, 1), policy=policy)

        assert era is Era.XY

    def test_set_id_override_before_series(self, tables):
        # McDonald's promos are not in a main series
        assert detect_era(tables, "mcd19", series="Other") is Era.SUN_MOON

    def test_series_name(self, tables):
        assert detect_era(tables, "neo1", series="neo") is Era.WOTC
        assert detect_era(tables, "pl1", series="Platinum") is Era.DP

    def test_release_date_fallback(self, tables):
        assert detect_era(tables, "xy9", series="Other", release_date=date(2016, 2, 3)) is Era.XY

    def test_unknown(self, tables):
        assert detect_era(tables, "zz1") is Era.UNKNOWN


class TestPolicyDefaults:

    def test_wotc_reverse_holos_start_with_legendary_collection(self):
        assert not has_reverse_holo_default(Era.WOTC, date(1999, 1, 9))
        assert has_reverse_holo_default(Era.WOTC, date(2002, 5, 24))
        assert not has_reverse_holo_default(Era.WOTC, None)

    def test_unknown_era_has_no_reverse(self):
        assert not has_reverse_holo_default(Era.UNKNOWN)

    def test_derived_policy(self):
        policy = derive_set_policy("base1", Era.WOTC, date(1999, 1, 9))

        assert policy.has_first_edition
        assert not policy.has_standard_reverse
        assert not policy.has_pokeball_reverse
        assert policy.rare_policy is RarePolicy.AUTO
