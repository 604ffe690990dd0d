"""Application configuration via environment variables."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load .env from project root (works regardless of CWD)
_project_root = Path(__file__).resolve().parents[2]
load_dotenv(_project_root / ".env")


class Settings(BaseSettings):
    """galileo-trace configuration."""

    # API
    api_key: str = ""  # Empty = dry run
    api_url: str = "https://api.galileo.ai/v2"
    auth_method: str = "api_key"  # "api_key" | "token"
    timeout: float = 30.0

    # Destination
    project_id: str = ""
    project_name: str = "my-python-project"
    log_stream_id: str = ""
    log_stream: str = "production"
    session_id: str = ""

    # Dry run
    dry_run: bool = False
    dry_run_path: str = ""  # JSON-lines file for dry-run flushes

    # Logging
    log_level: str = "INFO"  # DEBUG | INFO | WARNING | ERROR
    log_format: str = "text"  # "text" | "json"

    model_config = {"env_prefix": "GALILEO_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
