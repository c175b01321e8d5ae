"""
Conversion of raw Binance futures JSON into the client's domain records.

Every function either returns fully parsed records or raises
``MalformedResponse`` naming the offending field; nothing is defaulted.
"""

import math
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, StrictStr, ValidationError

from trade_utils.clients.dto import AccountSnapshot, AssetBalance, Candle, InstrumentInfo, Position
from trade_utils.clients.errors import MalformedCandle, MalformedResponse
from trade_utils.enums import ContractType, FilterType, SymbolStatus

CANDLE_OPEN_TIME = 0
CANDLE_OPEN = 1
CANDLE_HIGH = 2
CANDLE_LOW = 3
CANDLE_CLOSE = 4
CANDLE_CLOSE_TIME = 6


class _RawModel(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False, extra="ignore")


class _RawAsset(_RawModel):
    asset: StrictStr
    wallet_balance: float = Field(alias="walletBalance")
    available_balance: float = Field(alias="availableBalance")
    update_time: int = Field(alias="updateTime")


class _RawPosition(_RawModel):
    symbol: StrictStr
    unrealized_profit: float = Field(alias="unrealizedProfit")
    leverage: NonNegativeInt
    entry_price: float = Field(alias="entryPrice")
    position_side: StrictStr = Field(alias="positionSide")
    position_amt: float = Field(alias="positionAmt")


class _RawAccount(_RawModel):
    assets: list[_RawAsset]
    positions: list[_RawPosition]


class _RawSymbol(_RawModel):
    symbol: StrictStr
    status: StrictStr
    contract_type: StrictStr = Field(alias="contractType")
    filters: list[dict[str, Any]]


class _RawExchangeInfo(_RawModel):
    symbols: list[_RawSymbol]


class _RawPriceFilter(_RawModel):
    tick_size: StrictStr = Field(alias="tickSize")


class _RawLotSizeFilter(_RawModel):
    step_size: StrictStr = Field(alias="stepSize")
    min_qty: float = Field(alias="minQty")


class _RawTickerPrice(_RawModel):
    symbol: StrictStr
    price: float


def _validate(model: type[_RawModel], raw: Any, prefix: str = "") -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in (prefix, *error["loc"]) if part != "")
        raise MalformedResponse(f"{location or 'response'}: {error['msg']}", field=location or None) from e


def _candle_value(row: list, index: int) -> Any:
    if index >= len(row):
        raise MalformedCandle(index, None)
    return row[index]


def _candle_int(row: list, index: int) -> int:
    value = _candle_value(row, index)
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedCandle(index, value)
    return value


def _candle_float(row: list, index: int) -> float:
    value = _candle_value(row, index)
    if not isinstance(value, str):
        raise MalformedCandle(index, value)
    try:
        number = float(value)
    except ValueError as e:
        raise MalformedCandle(index, value) from e
    if not math.isfinite(number):
        raise MalformedCandle(index, value)
    return number


def parse_candle(row: Any) -> Candle:
    """Parse one 12-element kline array; only open/close times and OHLC are kept."""
    if not isinstance(row, list):
        raise MalformedResponse(f"Kline must be an array, got {row!r}")

    candle = Candle(
        open_time=_candle_int(row, CANDLE_OPEN_TIME),
        open=_candle_float(row, CANDLE_OPEN),
        high=_candle_float(row, CANDLE_HIGH),
        low=_candle_float(row, CANDLE_LOW),
        close=_candle_float(row, CANDLE_CLOSE),
        close_time=_candle_int(row, CANDLE_CLOSE_TIME),
    )
    if candle.close_time < candle.open_time:
        raise MalformedCandle(CANDLE_CLOSE_TIME, row[CANDLE_CLOSE_TIME])
    return candle


def parse_candles(raw: Any) -> list[Candle]:
    if not isinstance(raw, list):
        raise MalformedResponse(f"Klines response must be an array, got {type(raw).__name__}")
    candles = [parse_candle(row) for row in raw]
    candles.sort(key=lambda candle: candle.close_time)
    return candles


def parse_account(raw: Any) -> AccountSnapshot:
    """Build a snapshot of the assets and positions that are actually in use."""
    account = _validate(_RawAccount, raw)

    assets = [
        AssetBalance(
            asset=a.asset,
            wallet_balance=a.wallet_balance,
            available_balance=a.available_balance,
            update_time=a.update_time,
        )
        for a in account.assets
        if a.available_balance != 0
    ]
    positions = [
        Position(
            symbol=p.symbol,
            unrealized_profit=p.unrealized_profit,
            leverage=p.leverage,
            entry_price=p.entry_price,
            position_side=p.position_side,
            position_amt=p.position_amt,
        )
        for p in account.positions
        if p.position_amt != 0
    ]
    return AccountSnapshot(assets=assets, positions=positions)


def _parse_instrument(entry: _RawSymbol, index: int) -> InstrumentInfo:
    tick_size: str | None = None
    lot_size: str | None = None
    min_qty: float | None = None

    for position, raw_filter in enumerate(entry.filters):
        prefix = f"symbols.{index}.filters.{position}"
        filter_type = raw_filter.get("filterType")
        if filter_type == FilterType.PRICE_FILTER.value:
            tick_size = _validate(_RawPriceFilter, raw_filter, prefix).tick_size
        elif filter_type == FilterType.LOT_SIZE.value:
            lot = _validate(_RawLotSizeFilter, raw_filter, prefix)
            lot_size, min_qty = lot.step_size, lot.min_qty

    if tick_size is None or lot_size is None or min_qty is None:
        raise MalformedResponse(
            f"{entry.symbol} is missing a {FilterType.PRICE_FILTER.value} or {FilterType.LOT_SIZE.value} filter",
            field=f"symbols.{index}.filters",
        )
    return InstrumentInfo(symbol=entry.symbol, tick_size=tick_size, lot_size=lot_size, min_qty=min_qty)


def parse_instruments(raw: Any, symbols: Iterable[str]) -> dict[str, InstrumentInfo]:
    """Keep tradable perpetual contracts among ``symbols``; unknown symbols are left out."""
    if isinstance(symbols, str):
        raise TypeError(f"symbols must be a collection of symbols, got the string {symbols!r}")
    wanted = set(symbols)
    exchange_info = _validate(_RawExchangeInfo, raw)

    instruments: dict[str, InstrumentInfo] = {}
    for index, entry in enumerate(exchange_info.symbols):
        if (
            entry.status == SymbolStatus.TRADING.value
            and entry.contract_type == ContractType.PERPETUAL.value
            and entry.symbol in wanted
        ):
            instruments[entry.symbol] = _parse_instrument(entry, index)
    return instruments


def parse_ticker_price(raw: Any) -> float:
    return _validate(_RawTickerPrice, raw).price
