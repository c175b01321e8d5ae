from typing import Any

import pytest

from trade_utils.clients.dto import Candle
from trade_utils.clients.errors import MalformedResponse
from trade_utils.configs import PostgresSettings
from trade_utils.storage import candles as candles_module
from trade_utils.storage.candles import CandleStorage, build_fetch_query, row_to_candle


def _sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": True}))


class FakeResult:
    def __init__(self, rows: list[dict]) -> None:
        self._rows = rows

    def mappings(self) -> "FakeResult":
        return self

    def all(self) -> list[dict]:
        return self._rows


class FakeConnection:
    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.statements: list[Any] = []

    async def execute(self, stmt) -> FakeResult:
        self.statements.append(stmt)
        return FakeResult(self.rows)

    async def __aenter__(self) -> "FakeConnection":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class FakeEngine:
    def __init__(self, rows: list[dict]) -> None:
        self.connection = FakeConnection(rows)
        self.disposed = False

    def connect(self) -> FakeConnection:
        return self.connection

    async def dispose(self) -> None:
        self.disposed = True


@pytest.fixture
def settings() -> PostgresSettings:
    return PostgresSettings(HOST="localhost", PORT=5432, USER="postgres", PASSWORD="postgres", DB="postgres")


def test_build_fetch_query_uses_closed_range_and_ascending_order() -> None:
    sql = _sql(build_fetch_query("BTCUSDT_15m", 100, 200))

    assert 'FROM "BTCUSDT_15m"' in sql
    assert "close_time >= 100" in sql
    assert "close_time <= 200" in sql
    assert "ORDER BY" in sql and sql.rstrip().endswith("ASC")


def test_row_to_candle_parses_string_prices() -> None:
    row = {"open_time": 1, "close_time": 2, "open": "1.5", "high": "2.0", "low": "1.0", "close": "1.75"}

    assert row_to_candle(row) == Candle(open_time=1, close_time=2, open=1.5, high=2.0, low=1.0, close=1.75)


def test_row_to_candle_missing_column_is_malformed() -> None:
    with pytest.raises(MalformedResponse):
        row_to_candle({"open_time": 1, "close_time": 2, "open": "1.5"})


@pytest.mark.asyncio
async def test_fetch_reads_from_database_engine(settings, monkeypatch: pytest.MonkeyPatch) -> None:
    engine = FakeEngine(
        [
            {"open_time": 0, "close_time": 99, "open": "1", "high": "2", "low": "0.5", "close": "1.5"},
            {"open_time": 100, "close_time": 199, "open": "1.5", "high": "2", "low": "1", "close": "1.8"},
        ]
    )
    storage = CandleStorage(settings)
    requested: list[str] = []

    def fake_engine(database: str) -> FakeEngine:
        requested.append(database)
        return engine

    monkeypatch.setattr(storage, "_engine", fake_engine)

    result = await storage.fetch("klines", "BTCUSDT_15m", 0, 200)

    assert requested == ["klines"]
    assert [candle.close_time for candle in result] == [99, 199]
    assert "close_time <= 200" in _sql(engine.connection.statements[0])


@pytest.mark.asyncio
async def test_fetch_defaults_upper_bound_to_now(settings, monkeypatch: pytest.MonkeyPatch) -> None:
    engine = FakeEngine([])
    storage = CandleStorage(settings)
    monkeypatch.setattr(storage, "_engine", lambda database: engine)
    monkeypatch.setattr(candles_module, "current_timestamp_ms", lambda: 1700000000000)

    assert await storage.fetch("klines", "BTCUSDT_15m", 0) == []
    assert "close_time <= 1700000000000" in _sql(engine.connection.statements[0])


@pytest.mark.asyncio
async def test_close_disposes_engines(settings) -> None:
    storage = CandleStorage(settings)
    engine = FakeEngine([])
    storage._engines["klines"] = engine

    await storage.close()

    assert engine.disposed is True
    assert storage._engines == {}
