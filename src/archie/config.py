"""Configuration settings for the application."""

from typing import List

from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Loaded from environment variables or a .env file if not provided
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    API_PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # LLM Configuration
    PLANNER: str = "ollama"  # Options: ollama, openai, anthropic
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.1"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    LLM_TEMPERATURE: float = 0.0
    LLM_TIMEOUT: float = 120.0

    # Agent loop; None means no ceiling
    MAX_ITERATIONS: int | None = None

    # Sandbox
    ARCHIE_BASE_DIR: str = "./sandbox"
    EXTRA_READ_DIR: str | None = None  # read-only, optional

    # Tool limits
    ALLOWED_COMMANDS: List[str] = [
        "dir",
        "ls",
        "type",
        "cat",
        "find",
        "where",
        "echo",
        "curl",
        "wget",
    ]
    COMMAND_TIMEOUT: float = 30.0
    MAX_COMMAND_OUTPUT: int = 3000
    MAX_READ_CHARS: int = 5000
    DOWNLOAD_TIMEOUT: float = 60.0
    MAX_DOWNLOAD_BYTES: int = 50 * 1024 * 1024


settings = Settings()
