"""
Exception types shared across the engine.
"""


class DataStoreError(Exception):
    """The data store could not be read or written."""
    pass


class ConversionUnavailableError(Exception):
    """No tier of the exchange-rate chain produced a rate."""
    pass


class CardNotFoundError(Exception):
    """The requested card id does not exist."""

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class ExchangeRateAPIError(Exception):
    """The exchange-rate API request failed or returned an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
