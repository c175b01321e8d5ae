from collections.abc import AsyncIterator

from dishka import Provider, Scope, provide

from trade_utils.configs import PostgresSettings
from trade_utils.storage.candles import CandleStorage


class StorageProvider(Provider):
    @provide(scope=Scope.APP)
    async def create_candle_storage(self, cfg: PostgresSettings) -> AsyncIterator[CandleStorage]:
        storage = CandleStorage(cfg)
        yield storage
        await storage.close()
