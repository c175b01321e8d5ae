from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from .dto import AccountSnapshot, Candle, InstrumentInfo, Order


class AbstractReadOnlyClient(ABC):
    @abstractmethod
    async def get_candles(
        self,
        symbol: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[Candle]:
        pass

    @abstractmethod
    async def get_account(self) -> AccountSnapshot:
        pass

    @abstractmethod
    async def get_instruments(self, symbols: Iterable[str]) -> dict[str, InstrumentInfo]:
        pass

    @abstractmethod
    async def get_instrument(self, symbol: str) -> InstrumentInfo | None:
        pass

    @abstractmethod
    async def get_ticker_price(self, symbol: str) -> float:
        pass


class AbstractWriteClient(ABC):
    @abstractmethod
    async def place_order(self, order: Order, instrument: InstrumentInfo) -> dict[str, Any]:
        pass
