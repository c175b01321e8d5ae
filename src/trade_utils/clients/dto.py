from dataclasses import dataclass, field

from pydantic import BaseModel, PositiveFloat

from trade_utils.enums import OrderSide, OrderType, TimeInForce


@dataclass(frozen=True)
class Candle:
    open_time: int
    close_time: int
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class AssetBalance:
    asset: str
    wallet_balance: float
    available_balance: float
    update_time: int


@dataclass(frozen=True)
class Position:
    symbol: str
    unrealized_profit: float
    leverage: int
    entry_price: float
    position_side: str
    position_amt: float  # negative for shorts


@dataclass(frozen=True)
class AccountSnapshot:
    assets: list[AssetBalance] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)


@dataclass(frozen=True)
class InstrumentInfo:
    symbol: str
    # Kept as the exchange's decimal strings: their fractional digits define order precision
    tick_size: str
    lot_size: str
    min_qty: float


class Order(BaseModel):
    symbol: str
    side: OrderSide
    type: OrderType = OrderType.MARKET
    quantity: PositiveFloat
    price: PositiveFloat | None = None
    time_in_force: TimeInForce | None = None
    reduce_only: bool = False

    @classmethod
    def market_order(cls, symbol: str, side: OrderSide, quantity: float) -> "Order":
        return cls(symbol=symbol, side=side, type=OrderType.MARKET, quantity=quantity)
