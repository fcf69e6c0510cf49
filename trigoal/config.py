"""Application configuration."""

import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    data_dir: str = os.getenv("DATA_DIR", "data")
    storage_backend: str = os.getenv("STORAGE_BACKEND", "file")  # file, sqlite, memory

    # Diary
    autosave_delay: float = float(os.getenv("AUTOSAVE_DELAY", "1.0"))  # seconds after last edit
    history_days: int = int(os.getenv("HISTORY_DAYS", "14"))

    # Dashboard
    image_dir: str = os.getenv("IMAGE_DIR", "static/images")

    # Server
    server_host: str = os.getenv("SERVER_HOST", "127.0.0.1")
    server_port: int = int(os.getenv("SERVER_PORT", "8000"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False


settings = Settings()
