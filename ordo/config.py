from pydantic_settings import BaseSettings, SettingsConfigDict
class Settings(BaseSettings):
    APP_ENV: str = "dev"
    DB_URL: str = "sqlite:///./ordo.db"
    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"
    CATALOG_POLL_SECONDS: float = 30.0  # 0 disables the poll fallback
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    ORDER_WEBHOOK_URL: str | None = None
    DISPATCH_TIMEOUT_SECONDS: float = 3.0
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
settings = Settings()
