"""Configuration settings for the application."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    APP_NAME: str = "booking_planner"
    USER_ID: str = "user1234"
    API_PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # LLM Configuration
    PLANNER: str = "anthropic"  # Options: tgi, openai, anthropic
    API_KEY: str | None = None  # Fallback key for whichever hosted planner is selected
    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    TGI_ENDPOINT: str = "http://tgi:8080/generate"
    MODEL_TIMEOUT: float = 30.0
    MODEL_TEMPERATURE: float = 0.2

    # Agent Configuration
    MAX_TOOL_STEPS: int = 8

    # Session Configuration
    TURN_LOG_PATH: str | None = None  # JSONL audit trail of appended turns; disabled when unset

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
