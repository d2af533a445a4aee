"""
Normalized price endpoints.
"""
from fastapi import APIRouter

from lumidex.api.deps import CurrencyDep, EngineDep, PriceSourceDep
from lumidex.schemas.pricing import NormalizedPriceResponse
from lumidex.services.pricing.currency import format_converted_price, format_price

router = APIRouter()


@router.get("/cards/{card_id}/price", response_model=NormalizedPriceResponse)
async def get_card_price(
    card_id: str,
    engine: EngineDep,
    currency: CurrencyDep,
    source: PriceSourceDep,
):
    """
    Cheapest price of a card in the requested currency.

    `source` only picks which feed fills the per-variant primary fields;
    the cheapest price is searched across both feeds.
    """
    price = await engine.get_normalized_price(card_id, currency, source)
    response = NormalizedPriceResponse.model_validate(price)

    if price.conversion is not None:
        response.formatted_price = format_converted_price(price.conversion)
    elif price.cheapest is not None:
        response.formatted_price = format_price(price.cheapest.price, price.cheapest.currency)
    return response
