from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    SUPABASE_ACCESS_TOKEN: str | None = None
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    BACKEND_PROVIDER: str | None = None  # "memory" | "supabase"; inferred when unset
    SHOP_TIMEZONE: str = "Asia/Seoul"

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
