"""
Repository layer for data access.

Repositories provide a clean abstraction over the database, hiding the
details of SQL queries and ORM operations from the engine. Each one
implements a read protocol from `interfaces`.
"""
from lumidex.repositories.base import BaseRepository, DataStoreError
from lumidex.repositories.card_repo import CardRepository
from lumidex.repositories.custom_variant_repo import CustomVariantRepository
from lumidex.repositories.exchange_rate_repo import ExchangeRateRepository
from lumidex.repositories.price_repo import PriceRepository
from lumidex.repositories.rule_repo import RuleRepository

__all__ = [
    "BaseRepository",
    "DataStoreError",
    "CardRepository",
    "CustomVariantRepository",
    "ExchangeRateRepository",
    "PriceRepository",
    "RuleRepository",
]
