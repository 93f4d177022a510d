"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from aparajita.core.safety_policies import (
    ALERT_TTL_MINUTES,
    DEFAULT_PROXIMITY_RADIUS_M,
    REFRESH_DISTANCE_M,
    TERMINAL_ALERT_RETENTION_MINUTES,
)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "aparajita"
    debug: bool = False

    # Wall-clock zone used to resolve safe-exit target times
    timezone: str = "UTC"

    # Proximity + debounce
    proximity_radius_m: float = DEFAULT_PROXIMITY_RADIUS_M
    refresh_distance_m: float = REFRESH_DISTANCE_M

    # Alert lifecycle
    alert_ttl_minutes: int = ALERT_TTL_MINUTES
    terminal_alert_retention_minutes: int = TERMINAL_ALERT_RETENTION_MINUTES

    # Background loops
    safe_exit_tick_seconds: float = 30.0
    alert_sweep_seconds: float = 60.0
    alert_feed_poll_seconds: float = 15.0
    scheduler_enabled: bool = True

    # External adapters
    dispatch_workers: int = 4
    lookup_provider: str = "gemini"
    lookup_timeout_seconds: float = 20.0
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"
    notify_webhook_url: str = ""
    notify_timeout_seconds: float = 10.0
    alert_feed_url: str = ""


settings = Settings()
