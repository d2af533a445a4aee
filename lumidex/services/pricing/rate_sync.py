"""
Daily exchange-rate sync.

Fetches the latest rates for each configured base currency from
exchangerate-api and appends them to the exchange_rates table, so the
resolver's stored-rate tiers have data to work with.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lumidex.core.cache import RateCache
from lumidex.core.config import Settings, settings as default_settings
from lumidex.core.constants import CurrencyCode, normalize_currency
from lumidex.core.exceptions import DataStoreError, ExchangeRateAPIError
from lumidex.repositories.exchange_rate_repo import ExchangeRateRepository

logger = structlog.get_logger()


class ExchangeRateClient:
    """
    Client for the exchangerate-api `latest` endpoint.

    Usage:
        async with ExchangeRateClient() as client:
            data = await client.fetch_rates(CurrencyCode.EUR)
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or default_settings.exchange_rate_api_url).rstrip("/")
        self.timeout = timeout or float(default_settings.external_api_timeout)
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "User-Agent": "Lumidex-Currency-Service/1.0",
                    "Accept": "application/json",
                },
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ExchangeRateClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch_rates(self, base_currency: CurrencyCode) -> dict[str, Any]:
        """
        Fetch the latest rates for one base currency.

        Returns:
            Parsed response with "base", "date" and "rates" keys

        Raises:
            ExchangeRateAPIError: On transport errors, non-200 responses or
                an error payload
        """
        client = await self._get_client()
        url = f"{self.base_url}/{base_currency.value}"
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise ExchangeRateAPIError(f"Failed to fetch exchange rates: {e}") from e

        if response.status_code != 200:
            raise ExchangeRateAPIError(
                f"API request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExchangeRateAPIError(f"Invalid JSON from exchange rate API: {e}") from e

        if data.get("success") is False or not isinstance(data.get("rates"), dict):
            info = (data.get("error") or {}).get("info", "Unknown error")
            raise ExchangeRateAPIError(f"API returned error: {info}")

        return data


def _observed_at(data: dict[str, Any]) -> datetime:
    raw = data.get("date")
    if raw:
        try:
            parsed = datetime.fromisoformat(str(raw))
        except ValueError:
            logger.warning("Unparseable rate date, using now", date=raw)
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def rates_to_rows(base_currency: CurrencyCode, data: dict[str, Any]) -> list[dict[str, Any]]:
    """Keep only supported target currencies with a positive rate."""
    observed_at = _observed_at(data)
    rows = []
    for code, rate in data.get("rates", {}).items():
        target = normalize_currency(code)
        if target is None or target is base_currency:
            continue
        if not isinstance(rate, (int, float)) or rate <= 0:
            continue
        rows.append({
            "from_currency": base_currency.value,
            "to_currency": target.value,
            "rate": float(rate),
            "observed_at": observed_at,
        })
    return rows


async def update_all_rates(
    session_factory: async_sessionmaker[AsyncSession],
    client: Optional[ExchangeRateClient] = None,
    cache: Optional[RateCache] = None,
    settings: Optional[Settings] = None,
    delay_seconds: float = 1.0,
) -> dict[str, Any]:
    """
    Fetch and store rates for every configured base currency.

    A failure for one base currency is recorded and the others continue.
    The shared rate cache is cleared afterwards so new rates are used.

    Returns:
        {"success": bool, "updated_rates": int, "errors": [str, ...]}
    """
    settings = settings or default_settings
    own_client = client is None
    client = client or ExchangeRateClient(
        base_url=settings.exchange_rate_api_url,
        timeout=float(settings.external_api_timeout),
    )

    errors: list[str] = []
    updated = 0
    try:
        for index, code in enumerate(settings.exchange_rate_base_currencies):
            base = normalize_currency(code)
            if base is None:
                logger.warning("Skipping unsupported base currency", currency=code)
                continue

            if index and delay_seconds:
                await asyncio.sleep(delay_seconds)

            try:
                data = await client.fetch_rates(base)
                rows = rates_to_rows(base, data)
                if rows:
                    async with session_factory() as session:
                        repo = ExchangeRateRepository(session)
                        stored = await repo.store_rates(rows)
                        await session.commit()
                    updated += stored
                logger.info("Stored exchange rates", base_currency=base.value, count=len(rows))
            except (ExchangeRateAPIError, DataStoreError) as e:
                message = f"Failed to update rates for {base.value}: {e}"
                errors.append(message)
                logger.error(
                    "Exchange rate update failed",
                    base_currency=base.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
    finally:
        if own_client:
            await client.close()

    if cache is not None and updated:
        cache.clear()

    return {"success": not errors, "updated_rates": updated, "errors": errors}
