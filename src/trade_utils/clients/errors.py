from typing import Any


class ExchangeError(Exception):
    """Base class for every error raised by the exchange client layer"""


class TransportError(ExchangeError):
    """Connection failure or a non-2xx response from the exchange"""

    def __init__(self, message: str, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class MalformedResponse(ExchangeError):
    """Response body is not JSON, or a required field is missing or has the wrong type"""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MalformedCandle(MalformedResponse):
    def __init__(self, index: int, raw: Any) -> None:
        super().__init__(f"Invalid type in index {index}, couldn't parse its value from {raw!r}", field=str(index))
        self.index = index
        self.raw = raw


class SigningError(ExchangeError):
    """The API secret cannot be used as an HMAC key"""


class PrecisionError(ExchangeError):
    """A tick/lot size string does not define a usable number of fractional digits"""
