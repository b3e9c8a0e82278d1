"""Configuration management for readclub.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Backend
    api_url: str
    request_timeout: float  # seconds

    # On-device storage
    storage_dir: Path

    # Paging
    page_size: int

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        storage_dir_str = os.environ.get(
            "READCLUB_STORAGE_DIR",
            str(Path.home() / ".readclub"),
        )

        return cls(
            api_url=os.environ.get("READCLUB_API_URL", "http://localhost:3000").rstrip("/"),
            request_timeout=float(os.environ.get("READCLUB_TIMEOUT", "15")),
            storage_dir=Path(storage_dir_str).expanduser(),
            page_size=int(os.environ.get("READCLUB_PAGE_SIZE", "20")),
            log_level=os.environ.get("READCLUB_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        parsed = urlparse(self.api_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"Invalid API URL: {self.api_url}")

        if self.request_timeout <= 0:
            errors.append("Request timeout must be positive")

        if self.page_size <= 0:
            errors.append("Page size must be positive")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
