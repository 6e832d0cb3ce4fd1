from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Ledger store backend: "memory" (local dev / tests) or "redis"
    LEDGER_BACKEND: str = "memory"
    LEDGER_KEY_PREFIX: str = "ledger"

    # Redis, used when LEDGER_BACKEND=redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Identity provider shared secret: no default, MUST be set in .env
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 30

    # Account sessions idle longer than this are closed (0 = never)
    SESSION_IDLE_SECONDS: int = 1800

    # App
    APP_NAME: str = "Tourism Ticketing Ledger"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
