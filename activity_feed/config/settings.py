from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # GitHub credentials - pool order follows the numbering, empty slots are skipped
    github_token: str = ""
    github_token_2: str = ""
    github_token_3: str = ""
    github_token_4: str = ""
    github_token_5: str = ""
    # Nominal hourly limit per token, only used for usage percentages
    credential_call_limit: int = 5000

    # Shared cache service. Empty string = in-process store (single instance only)
    redis_url: str = ""

    # Member directory (read-only)
    database_url: str = "sqlite+aiosqlite:///./members.db"

    # Application
    debug: bool = False
    # Root log level when debug is off
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Requester tokens (HS256). Empty string = every request is rejected
    jwt_secret: str = ""

    # Operator endpoints - shared secret sent as X-Cron-Secret
    cron_secret: str = ""

    # Scheduler settings
    # Enable/disable the preemptive refresh job (set False for local dev to avoid noise)
    scheduler_enabled: bool = True
    refresh_interval_minutes: int = 60
    freshness_threshold_minutes: int = 60
    credential_reset_interval_minutes: int = 60

    # Fetch policy
    trailing_window_hours: int = 36
    max_events_per_member: int = 30
    member_fetch_timeout_seconds: float = 20.0
    sub_call_timeout_seconds: float = 5.0

    # Manual refresh cooldown per requester
    manual_refresh_cooldown_seconds: int = 600

    # Cache lifetimes
    activity_cache_ttl_seconds: int = 86400
    memory_cache_ttl_seconds: int = 300

    @property
    def github_tokens(self) -> list[str]:
        """Configured credential strings in pool order."""
        candidates = [
            self.github_token,
            self.github_token_2,
            self.github_token_3,
            self.github_token_4,
            self.github_token_5,
        ]
        return [token.strip() for token in candidates if token and token.strip()]

    @property
    def redis_enabled(self) -> bool:
        """Check if a shared cache service is configured."""
        return bool(self.redis_url)


settings = Settings()
