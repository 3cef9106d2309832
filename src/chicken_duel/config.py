"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    bot_token: str
    database_url: str

    debug: bool = False

    # Duel tuning
    attack_duration: float = 0.5  # Seconds one attack lunge lasts
    attack_tick_ms: int = 900  # Interval between alternating attacks (> attack_duration)
    fighter_max_health: int = 100
    damage_min: int = 5
    damage_max: int = 20
    hit_window_start: float = 0.4  # Damage lands while progress is inside this window
    hit_window_end: float = 0.6
    prize_options: str = "3000,5000,8000"  # Comma-separated prizes for backing the winner

    # Presentation
    frame_rate: int = 60  # Engine updates per second
    status_refresh_seconds: float = 1.0  # How often the arena message is redrawn

    # Admin Configuration
    admin_user_ids: str | None = None  # Comma-separated list of Telegram user IDs

    def get_admin_user_ids(self) -> list[int]:
        """Parse admin user IDs from comma-separated string."""
        if not self.admin_user_ids:
            return []
        return [int(uid.strip()) for uid in self.admin_user_ids.split(",") if uid.strip()]

    def get_prize_options(self) -> list[int]:
        """Parse prize options from comma-separated string."""
        return [int(p.strip()) for p in self.prize_options.split(",") if p.strip()]

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.frame_rate


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
