from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Market store
    REDIS_URL: str = "redis://localhost:6379/0"
    STORE_BACKEND: Literal["redis", "memory"] = "redis"
    MARKETS_KEY: str = "markets"
    STORE_MAX_RETRIES: int = 10
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0

    # Oracle feeds
    BLOCK_FEED_URL: str = "https://api.hiro.so"
    PRICE_FEED_URL: str = "https://api.coingecko.com/api/v3/simple/price"
    ORACLE_TIMEOUT_SECONDS: float = 5.0

    # On-chain contract the intents are built for
    CONTRACT_ADDRESS: str = "SP_CONTRACT_ADDRESS"
    CONTRACT_NAME: str = "prediction-market"
    PAYMENT_ADDRESS: str = ""

    # Ledger rules
    CREATE_MARKET_PRICE: int = 10000  # microSTX
    MIN_SETTLEMENT_DELAY_BLOCKS: int = 144  # ~24 hours of Bitcoin blocks
    MIN_BET_SATS: int = 1000
    DEMO_MARKET_BLOCKS: int = 1000  # ~1 week
    ENABLE_DEMO_ENDPOINTS: bool = True

    # App
    APP_NAME: str = "BTC Oracle - Prediction Market"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
