from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Select, column, select, table
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from trade_utils.clients.dto import Candle
from trade_utils.clients.errors import MalformedResponse
from trade_utils.clients.signer import current_timestamp_ms
from trade_utils.configs import PostgresSettings

logger = logging.getLogger(__name__)

CANDLE_COLUMNS = ("open_time", "close_time", "open", "high", "low", "close")


def build_fetch_query(collection: str, from_ts: int, to_ts: int) -> Select:
    """Select candles of ``collection`` with close_time in [from_ts, to_ts], oldest first."""
    candles = table(collection, *(column(name) for name in CANDLE_COLUMNS))
    return (
        select(candles)
        .where(candles.c.close_time >= from_ts)
        .where(candles.c.close_time <= to_ts)
        .order_by(candles.c.close_time.asc())
    )


def row_to_candle(row: Mapping[str, Any]) -> Candle:
    # Prices were stored as the exchange's numeric strings
    try:
        return Candle(
            open_time=int(row["open_time"]),
            close_time=int(row["close_time"]),
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponse(f"Stored candle row is invalid: {dict(row)!r}") from e


class CandleStorage:
    """Read access to candles persisted one table per series, e.g. ``BTCUSDT_15m``."""

    def __init__(self, settings: PostgresSettings) -> None:
        self._settings = settings
        self._engines: dict[str, AsyncEngine] = {}

    def _engine(self, database: str) -> AsyncEngine:
        engine = self._engines.get(database)
        if engine is None:
            async_dsn = self._settings.model_copy(update={"DB": database}).async_dsn
            engine = create_async_engine(
                async_dsn,
                pool_pre_ping=True,
                connect_args={"server_settings": {"timezone": "UTC"}},
            )
            self._engines[database] = engine
        return engine

    async def fetch(
        self,
        database: str,
        collection: str,
        from_ts: int,
        to_ts: int | None = None,
    ) -> list[Candle]:
        if to_ts is None:
            to_ts = current_timestamp_ms()
        stmt = build_fetch_query(collection, from_ts, to_ts)

        async with self._engine(database).connect() as conn:
            result = await conn.execute(stmt)
            rows = result.mappings().all()

        logger.debug(f"Loaded {len(rows)} candles from {database}.{collection} in [{from_ts}, {to_ts}]")
        return [row_to_candle(row) for row in rows]

    async def close(self) -> None:
        for engine in self._engines.values():
            await engine.dispose()
        self._engines.clear()
