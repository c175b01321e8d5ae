from collections.abc import AsyncIterator

import aiohttp
from dishka import Scope
from dishka.provider import Provider, provide

from trade_utils.clients.binance_futures import BinanceFuturesClient
from trade_utils.clients.interface import AbstractReadOnlyClient, AbstractWriteClient
from trade_utils.configs import BinanceSettings


class HttpClientProvider(Provider):
    @provide(scope=Scope.APP, provides=aiohttp.ClientSession)
    async def create_http_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        session = aiohttp.ClientSession()
        yield session
        if not session.closed:
            await session.close()


class ExchangeProvider(Provider):
    @provide(scope=Scope.APP)
    def create_client(
        self,
        cfg: BinanceSettings,
        session: aiohttp.ClientSession,
    ) -> BinanceFuturesClient:
        return BinanceFuturesClient(
            api_key=cfg.API_KEY,
            api_secret=cfg.API_SECRET,
            is_testnet=cfg.IS_TESTNET,
            session=session,
        )

    @provide(scope=Scope.APP)
    def get_read_client(self, client: BinanceFuturesClient) -> AbstractReadOnlyClient:
        return client

    @provide(scope=Scope.APP)
    def get_write_client(self, client: BinanceFuturesClient) -> AbstractWriteClient:
        return client
