"""
Read interfaces the engine depends on.

The engine only talks to these protocols; the SQLAlchemy repositories in
this package implement them, and tests can pass in-memory fakes.
Implementations raise DataStoreError when the store is unreachable.
"""
from typing import TYPE_CHECKING, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from lumidex.services.pricing.normalizer import PriceRecord
    from lumidex.services.variants.classifier import CardInput
    from lumidex.services.variants.overrides import CustomVariantData
    from lumidex.services.variants.rules import RuleTables


class CardReader(Protocol):
    async def card_exists(self, card_id: str) -> bool:
        ...

    async def get_card_input(self, card_id: str) -> Optional["CardInput"]:
        ...

    async def list_card_ids(self, set_id: str) -> list[str]:
        ...


class RuleReader(Protocol):
    async def load_tables(self) -> "RuleTables":
        ...


class CustomVariantReader(Protocol):
    async def list_active(self, card_id: str) -> list["CustomVariantData"]:
        ...


class ExchangeRateReader(Protocol):
    async def get_latest_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        ...


class PriceReader(Protocol):
    async def records_for_card(self, card_id: str) -> list["PriceRecord"]:
        ...

    async def records_for_cards(self, card_ids: Sequence[str]) -> dict[str, list["PriceRecord"]]:
        ...
