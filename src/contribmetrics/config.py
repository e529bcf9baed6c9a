"""Runtime settings read from the environment (and a .env file)."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_TIMEOUT = 15


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from CONTRIB_API_* environment variables.

    Args:
        env_file: Explicit .env path. If None, a .env in the working tree is used when present.

    Raises:
        ValueError: If CONTRIB_API_TIMEOUT is not a positive integer
    """
    load_dotenv(env_file)

    raw_timeout = os.getenv("CONTRIB_API_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = int(raw_timeout)
    except ValueError:
        raise ValueError(f"CONTRIB_API_TIMEOUT must be an integer, got {raw_timeout!r}")
    if timeout <= 0:
        raise ValueError(f"CONTRIB_API_TIMEOUT must be positive, got {timeout}")

    return Settings(
        api_url=os.getenv("CONTRIB_API_URL", DEFAULT_API_URL).rstrip("/"),
        token=os.getenv("CONTRIB_API_TOKEN") or None,
        timeout=timeout,
    )
