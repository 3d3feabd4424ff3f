"""
Configuration management for the Deal Pipeline engine.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Configuration settings loaded from environment."""

    # Logging
    LOG_LEVEL: str = os.getenv('DEAL_PIPELINE_LOG_LEVEL', 'INFO')
    LOG_JSON: bool = _env_bool('DEAL_PIPELINE_LOG_JSON')

    # Engine
    CLOSE_WINDOW_DAYS: int = int(os.getenv('DEAL_PIPELINE_CLOSE_WINDOW_DAYS', '30'))

    # In-memory store synthetic latency (milliseconds)
    STORE_LATENCY_MIN_MS: int = int(os.getenv('DEAL_PIPELINE_STORE_LATENCY_MIN_MS', '0'))
    STORE_LATENCY_MAX_MS: int = int(os.getenv('DEAL_PIPELINE_STORE_LATENCY_MAX_MS', '0'))

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate configuration values.

        Returns:
            List of problems found (empty when the configuration is usable)
        """
        problems = []
        if cls.CLOSE_WINDOW_DAYS <= 0:
            problems.append('DEAL_PIPELINE_CLOSE_WINDOW_DAYS must be positive')
        if cls.STORE_LATENCY_MIN_MS < 0 or cls.STORE_LATENCY_MAX_MS < 0:
            problems.append('DEAL_PIPELINE_STORE_LATENCY_*_MS must not be negative')
        if cls.STORE_LATENCY_MIN_MS > cls.STORE_LATENCY_MAX_MS:
            problems.append(
                'DEAL_PIPELINE_STORE_LATENCY_MIN_MS must not exceed DEAL_PIPELINE_STORE_LATENCY_MAX_MS'
            )
        return problems


# Singleton config instance
config = Config()
