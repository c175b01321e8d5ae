import enum


class OrderSide(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, enum.Enum):
    MARKET = "MARKET"


class TimeInForce(str, enum.Enum):
    GTC = "GTC"  # Good till cancel
    IOC = "IOC"  # Immediate or cancel
    FOK = "FOK"  # Fill or kill


class SymbolStatus(str, enum.Enum):
    """Subset of exchangeInfo statuses the client filters on"""

    TRADING = "TRADING"


class ContractType(str, enum.Enum):
    PERPETUAL = "PERPETUAL"


class FilterType(str, enum.Enum):
    PRICE_FILTER = "PRICE_FILTER"
    LOT_SIZE = "LOT_SIZE"


class TimeUnit(str, enum.Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
