"""
Override merger for administrator-defined custom variants.

Combines classifier output with active custom variants. A custom variant
that replaces a standard kind hides that kind from the display list; every
active custom variant is shown. Live display and admin preview both go
through `merge`, so they always agree.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Sequence, Union

import structlog

from lumidex.core.constants import (
    STANDARD_VARIANT_KINDS,
    VARIANT_ORDER,
    CurrencyCode,
    CustomVariantType,
    VariantKind,
)
from lumidex.services.variants.classifier import VariantFlag

logger = structlog.get_logger()


@dataclass(frozen=True)
class CustomVariantData:
    """
    An administrator-authored variant.

    Deactivated variants keep their row (is_active=False) so collection
    entries that point at them stay valid.
    """

    id: int
    card_id: str
    variant_name: str
    variant_type: CustomVariantType
    display_name: str
    description: str = ""
    source_product: Optional[str] = None
    prices: Mapping[CurrencyCode, float] = field(default_factory=dict)
    replaces_standard_variant: Optional[VariantKind] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MergeResult:
    """
    Final variant set for display.

    Attributes:
        display: Standard kinds still shown, in display order
        hidden: Standard kinds hidden by a replacing custom variant
        custom: Active custom variants, in input order
        replaced_by: Hidden kind -> id of the custom variant that last replaced it
        explanations: One line per replacement decision
    """

    display: tuple[VariantKind, ...]
    hidden: tuple[VariantKind, ...]
    custom: tuple[CustomVariantData, ...]
    replaced_by: Mapping[VariantKind, int] = field(default_factory=dict)
    explanations: tuple[str, ...] = ()


def _display_kinds(standard_variants: Sequence[Union[VariantFlag, VariantKind]]) -> list[VariantKind]:
    present = set()
    for item in standard_variants:
        if isinstance(item, VariantFlag):
            if item.exists:
                present.add(item.kind)
        else:
            present.add(VariantKind(item))
    return [kind for kind in VARIANT_ORDER if kind in present and kind in STANDARD_VARIANT_KINDS]


def merge(
    standard_variants: Sequence[Union[VariantFlag, VariantKind]],
    custom_variants: Sequence[CustomVariantData],
) -> MergeResult:
    """
    Apply custom variants to the standard variant list.

    Args:
        standard_variants: Classifier flags (only existing ones count) or kinds
        custom_variants: Custom variants for the card; inactive ones are skipped

    Returns:
        MergeResult with display, hidden and custom lists
    """
    display = _display_kinds(standard_variants)
    hidden: set[VariantKind] = set()
    replaced_by: dict[VariantKind, int] = {}
    custom: list[CustomVariantData] = []
    explanations: list[str] = []

    for variant in custom_variants:
        if not variant.is_active:
            continue
        custom.append(variant)

        target = variant.replaces_standard_variant
        if target is None:
            continue

        if target not in STANDARD_VARIANT_KINDS:
            logger.warning(
                "Custom variant replaces a non-standard kind, ignoring",
                custom_variant_id=variant.id,
                card_id=variant.card_id,
                replaces=str(target),
            )
            continue

        if target in display or target in hidden:
            hidden.add(target)
            replaced_by[target] = variant.id
            explanations.append(
                f"{target.value}: hidden, replaced by custom variant "
                f"'{variant.variant_name}' (id {variant.id})"
            )
        else:
            explanations.append(
                f"{target.value}: not displayed, nothing to replace for custom variant "
                f"'{variant.variant_name}' (id {variant.id})"
            )

    return MergeResult(
        display=tuple(kind for kind in display if kind not in hidden),
        hidden=tuple(kind for kind in VARIANT_ORDER if kind in hidden),
        custom=tuple(custom),
        replaced_by=replaced_by,
        explanations=tuple(explanations),
    )
