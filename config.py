"""Centralized configuration loaded from environment variables."""

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings – populated from .env file or environment."""

    # AI
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model identifier",
    )
    llm_max_tokens: int = Field(default=4096)
    chat_temperature: float = Field(default=0.3)
    price_temperature: float = Field(default=0.1, description="Low temperature for strict price lines")
    web_search_max_uses: int = Field(default=5, description="Max web searches per request")
    chat_history_turns: int = Field(default=10, description="Recent turns sent with each request")

    # Supabase (schedule marks)
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_key: str = Field(default="", description="Supabase anon/service key")
    mark_store_path: str = Field(
        default=".schedule_marks.json",
        description="Local file for schedule marks when Supabase is not configured",
    )

    # Telegram
    telegram_bot_token: str = Field(default="", description="Telegram Bot token")
    telegram_chat_id: str = Field(default="", description="Telegram chat ID for alerts")

    # Scheduler
    timezone: str = Field(default="Asia/Ho_Chi_Minh")
    scheduler_interval_seconds: float = Field(default=2.0)
    morning_briefing_time: str = Field(default="09:00", description="HH:MM local time")
    evening_briefing_time: str = Field(default="17:00", description="HH:MM local time")
    simulation_volatility: float = Field(
        default=0.001,
        description="Width of the per-tick random walk (0.001 → ±0.05%)",
    )

    # App
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings singleton."""
    return Settings()
