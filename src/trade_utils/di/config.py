from dishka import Provider, Scope, from_context, provide

from trade_utils.configs import BinanceSettings, PostgresSettings, TradeUtilsSettings


class ConfigProvider(Provider):
    scope = Scope.APP
    config = from_context(TradeUtilsSettings)

    @provide(scope=Scope.APP)
    def get_binance_config(self, config: TradeUtilsSettings) -> BinanceSettings:
        return config.binance

    @provide(scope=Scope.APP)
    def get_db_config(self, config: TradeUtilsSettings) -> PostgresSettings:
        return config.postgres
