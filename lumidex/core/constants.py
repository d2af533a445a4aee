"""
Core constants and enums for the Lumidex card engine.

This module provides standardized enums for variant kinds, eras, currencies
and price sources, along with normalization functions to map external data
sources to our internal representation.
"""
from enum import Enum
from typing import Optional


class VariantKind(str, Enum):
    """
    Physical print styles a card can exist in.

    CUSTOM is reserved for administrator-authored variants and is never
    produced by the classifier.
    """
    NORMAL = "normal"
    HOLO = "holo"
    REVERSE_HOLO_STANDARD = "reverse_holo_standard"
    REVERSE_HOLO_POKEBALL = "reverse_holo_pokeball"
    REVERSE_HOLO_MASTERBALL = "reverse_holo_masterball"
    FIRST_EDITION = "first_edition"
    CUSTOM = "custom"


class VariantSource(str, Enum):
    """Where a variant existence decision came from."""
    API_SIGNAL = "api_signal"
    RULE = "rule"
    OVERRIDE = "override"


class Confidence(str, Enum):
    """Qualitative trust level of a variant decision."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Era(str, Enum):
    """
    Coarse release period of a set.

    UNKNOWN is used when neither the set policy, the series name nor the
    release date identify an era.
    """
    WOTC = "wotc"
    EX = "ex"
    DP = "dp"
    HGSS = "hgss"
    BLACK_WHITE = "black_white"
    XY = "xy"
    SUN_MOON = "sun_moon"
    SWORD_SHIELD = "sword_shield"
    SCARLET_VIOLET = "scarlet_violet"
    UNKNOWN = "unknown"


class RarePolicy(str, Enum):
    """Per-set default for how rares relate to holo prints."""
    AUTO = "auto"
    FORCE_HOLO = "force_holo"
    ALLOW_NORMAL = "allow_normal"


class CustomVariantType(str, Enum):
    """Family tag for administrator-defined variants."""
    REVERSE_HOLO_POKEBALL = "reverse_holo_pokeball"
    REVERSE_HOLO_MASTERBALL = "reverse_holo_masterball"
    SPECIAL_EDITION = "special_edition"
    PROMO = "promo"
    CUSTOM = "custom"


class CurrencyCode(str, Enum):
    """Currencies prices can be displayed in."""
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    NOK = "NOK"


class PriceSource(str, Enum):
    """The two competing price feeds."""
    TCGPLAYER = "tcgplayer"
    CARDMARKET = "cardmarket"


class PriceType(str, Enum):
    """Price fields considered by the cheapest-price search, in tie-break order."""
    LOW = "low"
    MID = "mid"
    MARKET = "market"
    DIRECT_LOW = "direct_low"


class ResolutionTier(str, Enum):
    """Step of the exchange-rate chain that produced a rate."""
    CACHE = "cache"
    IDENTITY = "identity"
    DIRECT = "direct"
    INVERSE = "inverse"
    CROSS = "cross"
    APPROXIMATE = "approximate"


# Fixed display order for variants
VARIANT_ORDER: tuple[VariantKind, ...] = (
    VariantKind.NORMAL,
    VariantKind.HOLO,
    VariantKind.REVERSE_HOLO_STANDARD,
    VariantKind.REVERSE_HOLO_POKEBALL,
    VariantKind.REVERSE_HOLO_MASTERBALL,
    VariantKind.FIRST_EDITION,
    VariantKind.CUSTOM,
)

# Kinds the classifier decides on (everything except CUSTOM)
STANDARD_VARIANT_KINDS: tuple[VariantKind, ...] = tuple(
    kind for kind in VARIANT_ORDER if kind is not VariantKind.CUSTOM
)

VARIANT_DISPLAY_NAMES: dict[VariantKind, str] = {
    VariantKind.NORMAL: "Normal",
    VariantKind.HOLO: "Holo",
    VariantKind.REVERSE_HOLO_STANDARD: "Reverse Holo",
    VariantKind.REVERSE_HOLO_POKEBALL: "Reverse Holo (Poké Ball)",
    VariantKind.REVERSE_HOLO_MASTERBALL: "Reverse Holo (Master Ball)",
    VariantKind.FIRST_EDITION: "1st Edition",
    VariantKind.CUSTOM: "Custom",
}

ERA_DISPLAY_NAMES: dict[Era, str] = {
    Era.WOTC: "WotC",
    Era.EX: "EX",
    Era.DP: "DP",
    Era.HGSS: "HGSS",
    Era.BLACK_WHITE: "Black & White",
    Era.XY: "XY",
    Era.SUN_MOON: "Sun & Moon",
    Era.SWORD_SHIELD: "Sword & Shield",
    Era.SCARLET_VIOLET: "Scarlet & Violet",
    Era.UNKNOWN: "Unknown",
}


# Price bucket normalization mappings from external sources
# Maps the variant keys used by price feeds to our VariantKind enum
VARIANT_BUCKET_ALIASES: dict[str, VariantKind] = {
    # TCGPlayer price buckets
    "normal": VariantKind.NORMAL,
    "unlimited": VariantKind.NORMAL,
    "holofoil": VariantKind.HOLO,
    "unlimitedHolofoil": VariantKind.HOLO,
    "reverseHolofoil": VariantKind.REVERSE_HOLO_STANDARD,
    "1stEditionNormal": VariantKind.FIRST_EDITION,
    "1stEditionHolofoil": VariantKind.FIRST_EDITION,

    # Stored price rows (snake case)
    "holo": VariantKind.HOLO,
    "reverse_holofoil": VariantKind.REVERSE_HOLO_STANDARD,
    "reverse_holo": VariantKind.REVERSE_HOLO_STANDARD,
    "first_edition_normal": VariantKind.FIRST_EDITION,
    "first_edition_holofoil": VariantKind.FIRST_EDITION,
    "first_edition": VariantKind.FIRST_EDITION,

    # Pattern reverse holos
    "pokeball_pattern": VariantKind.REVERSE_HOLO_POKEBALL,
    "masterball_pattern": VariantKind.REVERSE_HOLO_MASTERBALL,
}


# Currency to price source mapping
PRICE_SOURCE_CURRENCIES: dict[PriceSource, CurrencyCode] = {
    PriceSource.TCGPLAYER: CurrencyCode.USD,
    PriceSource.CARDMARKET: CurrencyCode.EUR,
}


def normalize_variant_bucket(bucket: Optional[str]) -> Optional[VariantKind]:
    """
    Normalize a raw price-bucket key to a VariantKind.

    Args:
        bucket: Raw variant key from a price feed

    Returns:
        VariantKind, or None for keys we do not track

    Examples:
        >>> normalize_variant_bucket("reverseHolofoil")
        VariantKind.REVERSE_HOLO_STANDARD
        >>> normalize_variant_bucket("holo")
        VariantKind.HOLO
        >>> normalize_variant_bucket("mystery") is None
        True
    """
    if not bucket:
        return None

    # Try exact match first
    if bucket in VARIANT_BUCKET_ALIASES:
        return VARIANT_BUCKET_ALIASES[bucket]

    # Enum values are accepted as-is
    try:
        return VariantKind(bucket.strip().lower())
    except ValueError:
        pass

    # Try case-insensitive match
    bucket_lower = bucket.lower().strip()
    for key, value in VARIANT_BUCKET_ALIASES.items():
        if key.lower() == bucket_lower:
            return value

    return None


def normalize_currency(currency: Optional[str]) -> Optional[CurrencyCode]:
    """
    Normalize a currency code, ignoring case and surrounding whitespace.

    Returns None for unsupported or empty codes.
    """
    if not currency:
        return None
    try:
        return CurrencyCode(currency.strip().upper())
    except ValueError:
        return None


def normalize_price_source(source: Optional[str]) -> Optional[PriceSource]:
    """
    Normalize a price source identifier.

    Returns None for unsupported or empty identifiers.
    """
    if not source:
        return None
    try:
        return PriceSource(source.strip().lower())
    except ValueError:
        return None


def get_currency_for_price_source(source: PriceSource) -> CurrencyCode:
    """
    Get the currency a price source reports in.

    Args:
        source: Price source

    Returns:
        Currency code (USD for TCGPlayer, EUR for Cardmarket)
    """
    return PRICE_SOURCE_CURRENCIES[source]
