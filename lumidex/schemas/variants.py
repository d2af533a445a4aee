"""
Variant Pydantic schemas for API responses.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from lumidex.core.constants import (
    ERA_DISPLAY_NAMES,
    VARIANT_DISPLAY_NAMES,
    Confidence,
    CurrencyCode,
    CustomVariantType,
    Era,
    VariantKind,
    VariantSource,
)


class VariantFlagResponse(BaseModel):
    """Existence decision for one standard variant."""
    kind: VariantKind
    exists: bool
    source: VariantSource
    confidence: Confidence

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def display_name(self) -> str:
        return VARIANT_DISPLAY_NAMES[self.kind]


class CustomVariantResponse(BaseModel):
    """Administrator-defined variant."""
    id: int
    card_id: str
    variant_name: str
    variant_type: CustomVariantType
    display_name: str
    description: str = ""
    source_product: Optional[str] = None
    prices: dict[CurrencyCode, float] = Field(default_factory=dict)
    replaces_standard_variant: Optional[VariantKind] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DisplayVariantsResponse(BaseModel):
    """Variants to display for a card, with the reasoning behind them."""
    card_id: str
    era: Era
    display: list[VariantKind]
    hidden: list[VariantKind]
    custom: list[CustomVariantResponse]
    flags: list[VariantFlagResponse]
    explanations: list[str]
    replaced_by: dict[VariantKind, int] = Field(
        default_factory=dict,
        description="Hidden variant kind -> id of the custom variant replacing it",
    )

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def era_name(self) -> str:
        return ERA_DISPLAY_NAMES[self.era]

    @computed_field
    @property
    def display_names(self) -> dict[VariantKind, str]:
        """Label for every kind in `display`."""
        return {kind: VARIANT_DISPLAY_NAMES[kind] for kind in self.display}


class SetVariantsResponse(BaseModel):
    """Display variants for every card of a set."""
    set_id: str
    results: dict[str, DisplayVariantsResponse]
    errors: dict[str, str] = Field(default_factory=dict)
    timed_out: list[str] = Field(default_factory=list)
