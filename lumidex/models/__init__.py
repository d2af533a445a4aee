"""
SQLAlchemy models for the Lumidex card catalog.

Importing this package registers every table on Base.metadata.
"""
from lumidex.models.card import Card, CardSet
from lumidex.models.custom_variant import CustomVariant
from lumidex.models.exchange_rate import ExchangeRate
from lumidex.models.price import CardPrice
from lumidex.models.variant_rules import CardExceptionRow, RarityMappingRow, SetPolicyRow

__all__ = [
    "Card",
    "CardSet",
    "CardPrice",
    "CustomVariant",
    "ExchangeRate",
    "SetPolicyRow",
    "RarityMappingRow",
    "CardExceptionRow",
]
