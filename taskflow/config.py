from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "postgresql+psycopg://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"

    # tokens come from the identity provider, shared HS256 secret
    jwt_secret: str = "dev-secret-change-me"
    jwt_audience: str = "authenticated"
    jwt_issuer: str | None = None
    jwt_expires_minutes: int = 60

    default_page_size: int = 50
    max_page_size: int = 200

    # rate limiting (redis)
    rate_limit_enabled: bool = True
    rate_limit_writes_per_min: int = 120

settings = Settings()
