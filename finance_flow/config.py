"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./finance_flow.db"

    # Advice service (OpenAI-compatible chat completions API)
    advice_api_base: str = "https://api.openai.com/v1"
    advice_api_key: str = ""
    advice_model: str = "gpt-4o-mini"

    # Service
    service_name: str = "finance-flow"
    log_level: str = "INFO"

    # Savings goal seeded into a fresh database (percent of monthly income)
    default_savings_goal: int = 10

    # HTTP Client
    http_timeout_seconds: float = 30.0


settings = Settings()
