from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional

# Get the project root directory (parent of backend folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        extra="ignore",
    )

    database_url: str = f"sqlite:///{PROJECT_ROOT / 'times_tables.db'}"

    # Used when the caller cannot time an answer
    default_elapsed_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

settings = Settings()
