"""
Variant classifier.

Decides which standard print variants exist for a card by layering, in
strict precedence order:

1. Card exceptions (printing anomalies recorded per set/number)
2. Price-source signals (a feed lists prices for that variant bucket)
3. Rarity mapping for (rarity, era), gated by the set policy
4. Everything untouched is reported as not existing

Each decision carries its source and a confidence level, and appends an
explanation line for auditing.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional

import structlog

from lumidex.core.constants import (
    STANDARD_VARIANT_KINDS,
    Confidence,
    Era,
    RarePolicy,
    VariantKind,
    VariantSource,
    normalize_variant_bucket,
)
from lumidex.services.variants.era import derive_set_policy, detect_era
from lumidex.services.variants.rules import RarityMapping, RuleTables, SetPolicy

logger = structlog.get_logger()

# Kinds that only exist when the set policy declares them
SUB_STYLE_KINDS = frozenset({
    VariantKind.REVERSE_HOLO_STANDARD,
    VariantKind.REVERSE_HOLO_POKEBALL,
    VariantKind.REVERSE_HOLO_MASTERBALL,
    VariantKind.FIRST_EDITION,
})

# Price fields that count as evidence of a listed variant
_SIGNAL_PRICE_FIELDS = ("low", "mid", "high", "market", "directLow", "direct_low")


@dataclass(frozen=True)
class CardInput:
    """Descriptive attributes of a card needed for classification."""

    card_id: str
    set_id: str
    number: str
    rarity: Optional[str] = None
    release_date: Optional[date] = None
    series: Optional[str] = None
    variant_signals: tuple[str, ...] = ()


@dataclass(frozen=True)
class VariantFlag:
    kind: VariantKind
    exists: bool
    source: VariantSource
    confidence: Confidence


@dataclass(frozen=True)
class ClassificationResult:
    """Classifier output. Flags cover every standard kind in display order."""

    card_id: str
    era: Era
    flags: tuple[VariantFlag, ...]
    explanations: tuple[str, ...] = field(default=())

    def flag(self, kind: VariantKind) -> Optional[VariantFlag]:
        for variant_flag in self.flags:
            if variant_flag.kind is kind:
                return variant_flag
        return None

    @property
    def existing(self) -> tuple[VariantKind, ...]:
        return tuple(f.kind for f in self.flags if f.exists)


def signals_from_price_buckets(buckets: Optional[Mapping[str, Any]]) -> tuple[str, ...]:
    """
    Extract variant signals from a raw per-variant price map.

    A bucket only counts when at least one of its prices is positive, so
    empty placeholder buckets do not create variants.
    """
    if not buckets:
        return ()

    signals = []
    for bucket, prices in buckets.items():
        if not isinstance(prices, Mapping):
            continue
        for name in _SIGNAL_PRICE_FIELDS:
            value = prices.get(name)
            if isinstance(value, (int, float)) and value > 0:
                signals.append(bucket)
                break
    return tuple(signals)


# Used when the era or rarity gives no mapping: normal only
def _fallback_mapping(rarity: Optional[str], era: Era) -> RarityMapping:
    return RarityMapping(rarity or "", era, allowed={VariantKind.NORMAL})


class VariantClassifier:
    """
    Classifies cards against a set of rule tables.

    Usage:
        classifier = VariantClassifier(RuleTables.default())
        result = classifier.classify(card_input)
    """

    def __init__(self, tables: RuleTables):
        self.tables = tables

    def classify(self, card: CardInput) -> ClassificationResult:
        explanations: list[str] = []
        decided: dict[VariantKind, VariantFlag] = {}

        policy, era = self._resolve_policy(card, explanations)

        # 1. Card exceptions
        exception = self.tables.card_exception(card.set_id, card.number)
        if exception is not None:
            reason = f" ({exception.reason})" if exception.reason else ""
            for kind in STANDARD_VARIANT_KINDS:
                if kind not in exception.variants:
                    continue
                exists = bool(exception.variants[kind])
                decided[kind] = VariantFlag(kind, exists, VariantSource.OVERRIDE, Confidence.HIGH)
                explanations.append(
                    f"{kind.value}: {'exists' if exists else 'does not exist'} "
                    f"by card exception{reason} [override/high]"
                )

        # 2. Price-source signals
        for bucket in card.variant_signals:
            kind = normalize_variant_bucket(bucket)
            if kind is None or kind is VariantKind.CUSTOM:
                logger.debug(
                    "Ignoring unknown variant signal",
                    card_id=card.card_id,
                    bucket=bucket,
                )
                continue
            if kind in decided:
                continue
            decided[kind] = VariantFlag(kind, True, VariantSource.API_SIGNAL, Confidence.HIGH)
            explanations.append(
                f"{kind.value}: exists, listed under price bucket '{bucket}' [api_signal/high]"
            )

        # 3. Rarity mapping gated by set policy
        self._apply_rarity_rules(card, era, policy, decided, explanations)

        # 4. Untouched kinds
        flags = []
        for kind in STANDARD_VARIANT_KINDS:
            flag = decided.get(kind)
            if flag is None:
                flag = VariantFlag(kind, False, VariantSource.RULE, Confidence.LOW)
                explanations.append(f"{kind.value}: no rule or signal, assumed absent [rule/low]")
            flags.append(flag)

        return ClassificationResult(
            card_id=card.card_id,
            era=era,
            flags=tuple(flags),
            explanations=tuple(explanations),
        )

    def _resolve_policy(
        self,
        card: CardInput,
        explanations: list[str],
    ) -> tuple[SetPolicy, Era]:
        policy = self.tables.set_policy(card.set_id)
        era = detect_era(
            self.tables,
            card.set_id,
            series=card.series,
            release_date=card.release_date,
            policy=policy,
        )
        if era is Era.UNKNOWN:
            logger.warning(
                "Unknown era for set, using normal-only default",
                card_id=card.card_id,
                set_id=card.set_id,
                series=card.series,
                release_date=str(card.release_date) if card.release_date else None,
            )
            explanations.append(f"era: unknown for set '{card.set_id}', normal-only default")
        else:
            explanations.append(f"era: {era.value}")

        if policy is None:
            policy = derive_set_policy(card.set_id, era, card.release_date)
            logger.warning(
                "No set policy configured, derived from era",
                card_id=card.card_id,
                set_id=card.set_id,
                era=era.value,
            )
            explanations.append(f"set policy: none for '{card.set_id}', derived from era {era.value}")

        return policy, era

    def _apply_rarity_rules(
        self,
        card: CardInput,
        era: Era,
        policy: SetPolicy,
        decided: dict[VariantKind, VariantFlag],
        explanations: list[str],
    ) -> None:
        mapping = None
        if era is not Era.UNKNOWN:
            mapping = self.tables.rarity_mapping(card.rarity, era)
            if mapping is None:
                logger.warning(
                    "No rarity mapping, using normal-only default",
                    card_id=card.card_id,
                    rarity=card.rarity,
                    era=era.value,
                )
                explanations.append(
                    f"rarity: no mapping for '{card.rarity}' in {era.value}, normal-only default"
                )
        if mapping is None:
            mapping = _fallback_mapping(card.rarity, era)

        forced = set(mapping.forced)
        allowed = set(mapping.allowed)
        excluded = set(mapping.excluded)

        if policy.rare_policy is RarePolicy.FORCE_HOLO and VariantKind.HOLO not in excluded:
            forced.add(VariantKind.HOLO)
        elif policy.rare_policy is RarePolicy.ALLOW_NORMAL and VariantKind.NORMAL not in excluded:
            allowed.add(VariantKind.NORMAL)

        rule = f"rarity '{mapping.rarity}'/{mapping.era.value}"
        for kind in STANDARD_VARIANT_KINDS:
            if kind in decided:
                continue

            if kind in forced:
                decided[kind] = VariantFlag(kind, True, VariantSource.RULE, Confidence.HIGH)
                explanations.append(f"{kind.value}: exists, forced by {rule} [rule/high]")
            elif kind in excluded:
                decided[kind] = VariantFlag(kind, False, VariantSource.RULE, Confidence.HIGH)
                explanations.append(f"{kind.value}: does not exist, excluded by {rule} [rule/high]")
            elif kind in allowed:
                if kind in SUB_STYLE_KINDS and not policy.declares(kind):
                    explanations.append(
                        f"{kind.value}: allowed by {rule} but set '{card.set_id}' does not print it"
                    )
                    continue
                decided[kind] = VariantFlag(kind, True, VariantSource.RULE, Confidence.MEDIUM)
                explanations.append(f"{kind.value}: exists, allowed by {rule} [rule/medium]")
