"""Configuration and environment settings for the FinControl ledger API."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the FinControl ledger API."""

    groq_api_key: str
    ai_base_url: str | None = None
    extraction_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    extraction_temperature: float = 0.2
    max_completion_tokens: int = 4096
    ai_timeout_seconds: float = 120.0
    database_url: str = "sqlite:///fincontrol.db"
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY: str | None = None
    S3_SECRET_KEY: str | None = None
    S3_BUCKET: str = "uploads"
    auth_url: str = "http://localhost:54321"
    auth_api_key: str = ""
    identity_timeout_seconds: float = 10.0
    import_max_rows: int = 500
    import_batch_size: int = 50
    upload_max_bytes: int = 10 * 1024 * 1024
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
