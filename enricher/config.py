"""Configuration settings for the Company Data Enricher."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    anthropic_api_key: str = ""

    # LLM Settings
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 20000
    thinking_budget_tokens: int = 16000
    web_search_max_uses: int = 5
    llm_max_continuations: int = 3  # resends after a paused server-tool turn

    # Pipeline Settings
    pipeline_concurrency: int = 1  # 1 = strictly sequential

    # Export Settings
    missing_value_placeholder: str = "No data"
    missing_contact_field: str = "Not specified"
    export_sheet_title: str = "Enriched Company Data"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
