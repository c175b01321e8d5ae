import json
from typing import Any

import pytest


class FakeResponse:
    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession and records every request"""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._responses: list[FakeResponse] = []
        self.closed = False

    def add_json(self, payload: Any, status: int = 200) -> None:
        self._responses.append(FakeResponse(status, json.dumps(payload)))

    def add_text(self, body: str, status: int = 200) -> None:
        self._responses.append(FakeResponse(status, body))

    def request(self, method: str, url: Any, headers: dict | None = None) -> FakeResponse:
        self.calls.append({"method": method, "url": str(url), "headers": dict(headers or {})})
        return self._responses.pop(0)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


def _kline(open_time: int, close_time: int, open_: str = "100.0", close: str = "101.5") -> list:
    return [
        open_time,
        open_,
        "102.0",
        "99.5",
        close,
        "148976.11427815",
        close_time,
        "2434.19055334",
        308,
        "1756.87402397",
        "28.46694368",
        "0",
    ]


@pytest.fixture
def account_payload() -> dict:
    return {
        "totalWalletBalance": "5.0",
        "assets": [
            {
                "asset": "USDT",
                "walletBalance": "0.00000000",
                "availableBalance": "0",
                "updateTime": 0,
            },
            {
                "asset": "BTC",
                "walletBalance": "5.00000000",
                "availableBalance": "5",
                "updateTime": 1625474304765,
            },
        ],
        "positions": [
            {
                "symbol": "ETHUSDT",
                "unrealizedProfit": "0.00000000",
                "leverage": "20",
                "entryPrice": "0.0",
                "positionSide": "BOTH",
                "positionAmt": "0.000",
            },
            {
                "symbol": "BTCUSDT",
                "unrealizedProfit": "-12.50000000",
                "leverage": "10",
                "entryPrice": "30125.4",
                "positionSide": "BOTH",
                "positionAmt": "-0.500",
            },
        ],
    }


def _symbol(symbol: str, status: str = "TRADING", contract_type: str = "PERPETUAL") -> dict:
    return {
        "symbol": symbol,
        "status": status,
        "contractType": contract_type,
        "filters": [
            {"filterType": "PRICE_FILTER", "minPrice": "556.80", "maxPrice": "4529764", "tickSize": "0.10"},
            {"filterType": "LOT_SIZE", "maxQty": "1000", "minQty": "0.001", "stepSize": "0.001"},
            {"filterType": "MARKET_LOT_SIZE", "maxQty": "120", "minQty": "0.001", "stepSize": "0.001"},
            {"filterType": "PERCENT_PRICE", "multiplierUp": "1.0500", "multiplierDown": "0.9500"},
        ],
    }


@pytest.fixture
def exchange_info_payload() -> dict:
    return {
        "timezone": "UTC",
        "symbols": [
            _symbol("BTCUSDT"),
            _symbol("ETHUSDT", status="BREAK"),
            _symbol("XRPUSDT"),
            _symbol("BTCUSDT_240329", contract_type="CURRENT_QUARTER"),
        ],
    }


@pytest.fixture
def make_kline():
    return _kline
