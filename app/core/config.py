from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Square
    square_access_token: str
    square_location_id: str
    square_api_version: str = "2025-04-16"
    square_api_base_url: str = "https://connect.squareup.com/v2"
    square_timeout_seconds: float = 30.0
    square_connect_retries: int = 1

    # Static bearer token expected from the client application
    auth_token: str

    # CORS
    cors_origins: str = "http://localhost:3000,https://your-domain.com"

    # Booking rules
    default_timezone: str = "America/Edmonton"
    # Day boundaries for availability lookups are always taken at this offset,
    # whatever zone the caller asks times to be displayed in
    availability_day_utc_offset: str = "-06:00"
    slot_window_minutes: int = 60
    slot_buffer_minutes: int = 2

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.env == "production"


settings = Settings()
