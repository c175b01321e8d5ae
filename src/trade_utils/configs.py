from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class BinanceSettings(BaseModel):
    API_KEY: str
    API_SECRET: str
    IS_TESTNET: bool = False


class PostgresSettings(BaseModel):
    HOST: str
    PORT: int
    USER: str
    PASSWORD: str
    DB: str

    @property
    def async_dsn(self) -> str:
        return f"postgresql+asyncpg://{self.USER}:{self.PASSWORD}@{self.HOST}:{self.PORT}/{self.DB}"


class TradeUtilsSettings(BaseSettings):
    binance: BinanceSettings
    postgres: PostgresSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
        env_nested_delimiter="__",
    )
