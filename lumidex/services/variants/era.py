"""
Era detection for card sets.

Order of evidence: an explicit era on the set policy, then set-id
overrides for sets whose series name is misleading, then the series
name, then the release date.
"""
from datetime import date
from typing import Optional

from lumidex.core.constants import Era
from lumidex.services.variants.rules import RuleTables, SetPolicy

# Series name -> era
SERIES_ERAS: dict[str, Era] = {
    # WotC
    "Base": Era.WOTC,
    "Gym": Era.WOTC,
    "Neo": Era.WOTC,
    "E-Card": Era.WOTC,
    "Legendary Collection": Era.WOTC,
    # EX
    "EX": Era.EX,
    # Diamond & Pearl
    "Diamond & Pearl": Era.DP,
    "Platinum": Era.DP,
    # HeartGold & SoulSilver
    "HeartGold & SoulSilver": Era.HGSS,
    "Call of Legends": Era.HGSS,
    # Modern
    "Black & White": Era.BLACK_WHITE,
    "XY": Era.XY,
    "Sun & Moon": Era.SUN_MOON,
    "Sword & Shield": Era.SWORD_SHIELD,
    "Scarlet & Violet": Era.SCARLET_VIOLET,
}

# Set ids whose era cannot be read off the series name
SET_ID_ERAS: dict[str, Era] = {
    "cel25": Era.SWORD_SHIELD,
    "mcd19": Era.SUN_MOON,
    "tk1a": Era.XY,
    "tk1b": Era.XY,
    "sv3pt5": Era.SCARLET_VIOLET,
    "sv8pt5": Era.SCARLET_VIOLET,
    "sve": Era.SCARLET_VIOLET,
    "svp": Era.SCARLET_VIOLET,
    "swshp": Era.SWORD_SHIELD,
    "smp": Era.SUN_MOON,
    "xyp": Era.XY,
    "bwp": Era.BLACK_WHITE,
    "hsp": Era.HGSS,
    "dpp": Era.DP,
}

# First WotC set with reverse holos (Legendary Collection)
WOTC_REVERSE_HOLO_START = date(2002, 5, 24)

_SERIES_LOOKUP = {name.casefold(): era for name, era in SERIES_ERAS.items()}


def detect_era(
    tables: RuleTables,
    set_id: str,
    series: Optional[str] = None,
    release_date: Optional[date] = None,
    policy: Optional[SetPolicy] = None,
) -> Era:
    """
    Detect the era of a set.

    Returns:
        The detected Era, or Era.UNKNOWN when no evidence matches
    """
    if policy is not None and policy.era is not None and policy.era is not Era.UNKNOWN:
        return policy.era

    override = SET_ID_ERAS.get(set_id.lower())
    if override is not None:
        return override

    if series:
        era = _SERIES_LOOKUP.get(series.strip().casefold())
        if era is not None:
            return era

    return tables.era_for_date(release_date) or Era.UNKNOWN


def has_reverse_holo_default(era: Era, release_date: Optional[date] = None) -> bool:
    """Whether sets of this era print standard reverse holos unless told otherwise."""
    if era is Era.UNKNOWN:
        return False
    if era is Era.WOTC:
        return release_date is not None and release_date >= WOTC_REVERSE_HOLO_START
    return True


def has_first_edition_default(era: Era) -> bool:
    return era is Era.WOTC


def derive_set_policy(set_id: str, era: Era, release_date: Optional[date] = None) -> SetPolicy:
    """Build the policy used for a set with no configured policy."""
    return SetPolicy(
        set_id=set_id,
        has_standard_reverse=has_reverse_holo_default(era, release_date),
        has_pokeball_reverse=False,
        has_masterball_reverse=False,
        has_first_edition=has_first_edition_default(era),
        era=era,
    )
