"""
Static rule tables for variant classification.

Holds era definitions, set policies, rarity mappings and card exceptions,
plus the built-in defaults that stored configuration is merged on top of.
Everything here is immutable data with lookups; the decision logic lives
in classifier.py.
"""
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Mapping, Optional

from lumidex.core.constants import Era, RarePolicy, VariantKind


@dataclass(frozen=True)
class EraDefinition:
    """Release-date range of an era. `end` is inclusive; None means ongoing."""

    era: Era
    start: date
    end: Optional[date] = None

    def contains(self, day: date) -> bool:
        if day < self.start:
            return False
        return self.end is None or day <= self.end


@dataclass(frozen=True)
class SetPolicy:
    """Which print styles a set has and how its rares behave."""

    set_id: str
    has_standard_reverse: bool = True
    has_pokeball_reverse: bool = False
    has_masterball_reverse: bool = False
    has_first_edition: bool = False
    rare_policy: RarePolicy = RarePolicy.AUTO
    era: Optional[Era] = None

    def declares(self, kind: VariantKind) -> bool:
        """
        Whether the set prints the given sub-style.

        Normal and holo are not sub-styles and are always declared.
        """
        if kind is VariantKind.REVERSE_HOLO_STANDARD:
            return self.has_standard_reverse
        if kind is VariantKind.REVERSE_HOLO_POKEBALL:
            return self.has_pokeball_reverse
        if kind is VariantKind.REVERSE_HOLO_MASTERBALL:
            return self.has_masterball_reverse
        if kind is VariantKind.FIRST_EDITION:
            return self.has_first_edition
        return kind in (VariantKind.NORMAL, VariantKind.HOLO)


@dataclass(frozen=True)
class RarityMapping:
    """
    Variant expectations for a (rarity, era) pair.

    Raises:
        ValueError: If a kind is both forced and excluded
    """

    rarity: str
    era: Era
    allowed: frozenset[VariantKind] = frozenset()
    forced: frozenset[VariantKind] = frozenset()
    excluded: frozenset[VariantKind] = frozenset()

    def __post_init__(self) -> None:
        # Accept any iterable of kinds
        object.__setattr__(self, "allowed", frozenset(self.allowed))
        object.__setattr__(self, "forced", frozenset(self.forced))
        object.__setattr__(self, "excluded", frozenset(self.excluded))

        overlap = self.forced & self.excluded
        if overlap:
            names = ", ".join(sorted(kind.value for kind in overlap))
            raise ValueError(
                f"Rarity mapping {self.rarity!r}/{self.era.value} both forces and excludes: {names}"
            )

    @property
    def key(self) -> tuple[str, Era]:
        return (rarity_key(self.rarity), self.era)


@dataclass(frozen=True)
class CardException:
    """Explicit variant existence for one unusual card."""

    set_id: str
    card_number: str
    variants: Mapping[VariantKind, bool] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.set_id.lower(), card_number_key(self.card_number))


def rarity_key(rarity: str) -> str:
    return " ".join(rarity.split()).casefold()


def card_number_key(number: str) -> str:
    """
    Normalize a collector number for lookups.

    "082/185" and "82" both become "82"; letter suffixes are kept.
    """
    head = number.split("/")[0].strip().lower()
    return head.lstrip("0") or "0"


DEFAULT_ERA_DEFINITIONS: tuple[EraDefinition, ...] = (
    EraDefinition(Era.WOTC, date(1998, 10, 20), date(2003, 7, 17)),
    EraDefinition(Era.EX, date(2003, 7, 18), date(2007, 4, 30)),
    EraDefinition(Era.DP, date(2007, 5, 1), date(2010, 2, 9)),
    EraDefinition(Era.HGSS, date(2010, 2, 10), date(2011, 4, 24)),
    EraDefinition(Era.BLACK_WHITE, date(2011, 4, 25), date(2014, 2, 4)),
    EraDefinition(Era.XY, date(2014, 2, 5), date(2017, 2, 2)),
    EraDefinition(Era.SUN_MOON, date(2017, 2, 3), date(2020, 2, 6)),
    EraDefinition(Era.SWORD_SHIELD, date(2020, 2, 7), date(2023, 3, 30)),
    EraDefinition(Era.SCARLET_VIOLET, date(2023, 3, 31)),
)

# Sets printed with Poké Ball and Master Ball pattern reverse holos
DEFAULT_SET_POLICIES: tuple[SetPolicy, ...] = tuple(
    SetPolicy(
        set_id=set_id,
        has_standard_reverse=True,
        has_pokeball_reverse=True,
        has_masterball_reverse=True,
        era=Era.SCARLET_VIOLET,
    )
    for set_id in ("sv8pt5", "zsv10pt5", "rsv10pt5")
)

_N = VariantKind.NORMAL
_H = VariantKind.HOLO
_R = VariantKind.REVERSE_HOLO_STANDARD
_F = VariantKind.FIRST_EDITION

_MODERN_ERAS = (
    Era.EX,
    Era.DP,
    Era.HGSS,
    Era.BLACK_WHITE,
    Era.XY,
    Era.SUN_MOON,
    Era.SWORD_SHIELD,
)


def _default_rarity_mappings() -> tuple[RarityMapping, ...]:
    mappings: list[RarityMapping] = []

    sv = Era.SCARLET_VIOLET
    mappings += [
        RarityMapping("Common", sv, allowed={_N, _R}),
        RarityMapping("Uncommon", sv, allowed={_N, _R}),
        RarityMapping("Rare", sv, allowed={_H, _R}, forced={_H}),
        RarityMapping("Double Rare", sv, allowed={_H}, forced={_H}),
        RarityMapping("Ultra Rare", sv, allowed={_H}, forced={_H}),
        RarityMapping("Illustration Rare", sv, allowed={_H}, forced={_H}),
        RarityMapping("Special Illustration Rare", sv, allowed={_H}, forced={_H}),
        RarityMapping("Hyper Rare", sv, allowed={_H}, forced={_H}),
        RarityMapping("ACE SPEC Rare", sv, allowed={_H}, forced={_H}),
    ]

    for era in _MODERN_ERAS:
        mappings += [
            RarityMapping("Common", era, allowed={_N, _R}),
            RarityMapping("Uncommon", era, allowed={_N, _R}),
            RarityMapping("Rare", era, allowed={_N, _H, _R}),
            RarityMapping("Rare Holo", era, allowed={_H, _R}, forced={_H}),
            RarityMapping("Ultra Rare", era, allowed={_H}, forced={_H}),
            RarityMapping("Secret Rare", era, allowed={_H}, forced={_H}),
        ]

    wotc = Era.WOTC
    mappings += [
        RarityMapping("Common", wotc, allowed={_N, _F}),
        RarityMapping("Uncommon", wotc, allowed={_N, _F}),
        RarityMapping("Rare", wotc, allowed={_N, _H, _F}),
        RarityMapping("Rare Holo", wotc, allowed={_H, _F}, forced={_H}),
    ]
    return tuple(mappings)


DEFAULT_RARITY_MAPPINGS: tuple[RarityMapping, ...] = _default_rarity_mappings()


@dataclass(frozen=True)
class RuleTables:
    """
    In-memory rule container used by the classifier.

    Build it with `RuleTables.default()` and layer stored rows on top with
    `merged_with`. Stored rows replace defaults that share their key, so
    merging the same rows twice gives the same tables as merging once.
    """

    eras: tuple[EraDefinition, ...] = ()
    set_policies: Mapping[str, SetPolicy] = field(default_factory=dict)
    rarity_mappings: Mapping[tuple[str, Era], RarityMapping] = field(default_factory=dict)
    card_exceptions: Mapping[tuple[str, str], CardException] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "RuleTables":
        return cls(eras=DEFAULT_ERA_DEFINITIONS).merged_with(
            set_policies=DEFAULT_SET_POLICIES,
            rarity_mappings=DEFAULT_RARITY_MAPPINGS,
        )

    def merged_with(
        self,
        set_policies: Iterable[SetPolicy] = (),
        rarity_mappings: Iterable[RarityMapping] = (),
        card_exceptions: Iterable[CardException] = (),
        eras: Optional[Iterable[EraDefinition]] = None,
    ) -> "RuleTables":
        """Return new tables with the given rows replacing same-key entries."""
        policies = dict(self.set_policies)
        for policy in set_policies:
            policies[policy.set_id.lower()] = policy

        mappings = dict(self.rarity_mappings)
        for mapping in rarity_mappings:
            mappings[mapping.key] = mapping

        exceptions = dict(self.card_exceptions)
        for exception in card_exceptions:
            exceptions[exception.key] = exception

        return replace(
            self,
            eras=tuple(eras) if eras is not None else self.eras,
            set_policies=policies,
            rarity_mappings=mappings,
            card_exceptions=exceptions,
        )

    def era_for_date(self, day: Optional[date]) -> Optional[Era]:
        if day is None:
            return None
        for definition in self.eras:
            if definition.contains(day):
                return definition.era
        return None

    def set_policy(self, set_id: str) -> Optional[SetPolicy]:
        return self.set_policies.get(set_id.lower())

    def rarity_mapping(self, rarity: Optional[str], era: Era) -> Optional[RarityMapping]:
        if not rarity:
            return None
        return self.rarity_mappings.get((rarity_key(rarity), era))

    def card_exception(self, set_id: str, card_number: str) -> Optional[CardException]:
        return self.card_exceptions.get((set_id.lower(), card_number_key(card_number)))
