import json
import logging
from collections.abc import Iterable
from typing import Any

import aiohttp
from yarl import URL

from trade_utils.clients.dto import AccountSnapshot, Candle, InstrumentInfo, Order
from trade_utils.clients.errors import MalformedResponse, TransportError
from trade_utils.clients.interface import AbstractReadOnlyClient, AbstractWriteClient
from trade_utils.clients.parser import (
    parse_account,
    parse_candles,
    parse_instruments,
    parse_ticker_price,
)
from trade_utils.clients.precision import format_price, format_quantity
from trade_utils.clients.signer import Params, ensure_url_safe, sign, to_query_string

logger = logging.getLogger(__name__)

FUTURES_BASE = "https://fapi.binance.com"
FUTURES_TESTNET_BASE = "https://testnet.binancefuture.com"

FUTURES_KLINE = "/fapi/v1/klines"
FUTURES_ACCOUNT = "/fapi/v2/account"
FUTURES_EXCHANGE_INFO = "/fapi/v1/exchangeInfo"
FUTURES_ORDER = "/fapi/v1/order"
FUTURES_TICKER_PRICE = "/fapi/v1/ticker/price"

API_KEY_HEADER = "X-MBX-APIKEY"


class BinanceFuturesClient(AbstractReadOnlyClient, AbstractWriteClient):
    """Binance USD-M futures REST client.

    Public market data goes out unsigned; account and order endpoints are
    signed with the stored secret and carry the API key as a header. Each
    call is a single round trip with no retries, so a client instance can be
    shared between concurrent tasks.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        is_testnet: bool = False,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._base_url = FUTURES_TESTNET_BASE if is_testnet else FUTURES_BASE
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def get_candles(
        self,
        symbol: str,
        interval: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[Candle]:
        params: Params = [("symbol", symbol), ("interval", interval)]
        if start_time is not None:
            params.append(("startTime", str(start_time)))
        if end_time is not None:
            params.append(("endTime", str(end_time)))
        if limit is not None:
            params.append(("limit", str(limit)))

        response = await self._request(method="GET", endpoint=FUTURES_KLINE, params=params)
        return parse_candles(response)

    async def get_account(self) -> AccountSnapshot:
        response = await self._request(method="GET", endpoint=FUTURES_ACCOUNT, signed=True)
        return parse_account(response)

    async def get_instruments(self, symbols: Iterable[str]) -> dict[str, InstrumentInfo]:
        """Fetch tick/lot sizes for the requested symbols that are trading perpetuals"""
        response = await self._request(method="GET", endpoint=FUTURES_EXCHANGE_INFO)
        return parse_instruments(response, symbols)

    async def get_instrument(self, symbol: str) -> InstrumentInfo | None:
        instruments = await self.get_instruments({symbol})
        return instruments.get(symbol)

    async def get_ticker_price(self, symbol: str) -> float:
        response = await self._request(
            method="GET",
            endpoint=FUTURES_TICKER_PRICE,
            params=[("symbol", symbol)],
        )
        return parse_ticker_price(response)

    async def place_order(self, order: Order, instrument: InstrumentInfo) -> dict[str, Any]:
        """Submit ``order`` and return the exchange acknowledgment as-is.

        Quantity is rounded to the lot size precision and price, when given,
        to the tick size precision before the parameters are signed.
        """
        if order.symbol != instrument.symbol:
            raise ValueError(f"Instrument {instrument.symbol} does not match order symbol {order.symbol}")

        params = self._build_order_params(order, instrument)
        logger.info(f"Placing {order.type.value} {order.side.value} order for {order.symbol}: {params}")
        response = await self._request(method="POST", endpoint=FUTURES_ORDER, params=params, signed=True)
        if not isinstance(response, dict):
            raise MalformedResponse(f"Order acknowledgment must be an object, got {type(response).__name__}")
        logger.info(f"Order accepted for {order.symbol}; order id: {response.get('orderId')}")
        return response

    @staticmethod
    def _build_order_params(order: Order, instrument: InstrumentInfo) -> Params:
        params: Params = [
            ("symbol", order.symbol),
            ("side", order.side.value),
            ("type", order.type.value),
            ("reduceOnly", "true" if order.reduce_only else "false"),
            ("quantity", format_quantity(order.quantity, instrument)),
        ]
        if order.time_in_force is not None:
            params.append(("timeInForce", order.time_in_force.value))
        if order.price is not None:
            params.append(("price", format_price(order.price, instrument)))
        return params

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Params | None = None,
        signed: bool = False,
    ) -> Any:
        """Make a request to the futures API and decode the JSON body"""
        params = list(params or [])
        ensure_url_safe(params)
        headers: dict[str, str] = {}
        if signed:
            sign(params, self._api_secret)
            headers[API_KEY_HEADER] = self._api_key

        # The query string must reach the server exactly as it was signed
        query_string = to_query_string(params)
        url = f"{self._base_url}{endpoint}"
        if query_string:
            url = f"{url}?{query_string}"

        logger.debug(f"{method} {endpoint} signed={signed}")
        try:
            async with self._get_session().request(
                method=method,
                url=URL(url, encoded=True),
                headers=headers,
            ) as response:
                status = response.status
                body = await response.text()
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {endpoint} failed: {e}") from e

        return self._decode(method, endpoint, status, body)

    @staticmethod
    def _decode(method: str, endpoint: str, status: int, body: str) -> Any:
        if not 200 <= status < 300:
            detail = body
            try:
                error = json.loads(body)
            except ValueError:
                error = None
            if isinstance(error, dict) and "msg" in error:
                detail = f"code={error.get('code')} msg={error['msg']}"
            logger.warning(f"{method} {endpoint} rejected with HTTP {status}: {detail}")
            raise TransportError(f"{method} {endpoint} returned HTTP {status}: {detail}", status=status, body=body)

        try:
            return json.loads(body)
        except ValueError as e:
            raise MalformedResponse(f"{method} {endpoint} returned a non-JSON body: {body[:200]!r}") from e

    async def close(self) -> None:
        """Close the aiohttp session if we own it"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
