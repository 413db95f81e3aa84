from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for cross-user reads like space member counts

    # Supabase Storage (S3-compatible endpoint, e.g. https://<ref>.supabase.co/storage/v1/s3)
    storage_endpoint: Optional[str] = None
    storage_region: str = "us-east-1"
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    storage_bucket_name: Optional[str] = None
    max_upload_bytes: int = 50 * 1024 * 1024

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.4

    # Vote debounce
    vote_debounce_ms: int = 450
    vote_double_click_ms: int = 260

    # App
    app_name: str = "mvo-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def storage_configured(self) -> bool:
        return all([
            self.storage_endpoint,
            self.storage_access_key_id,
            self.storage_secret_access_key,
            self.storage_bucket_name,
        ])

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
