"""
Runtime settings, read from the environment.

Call dotenv.load_dotenv() before Settings.from_env() so a local .env is honoured.
"""
import os
from dataclasses import dataclass

from .logging_utils import setup_logger

logger = setup_logger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_BACKEND_URL = "http://localhost:8080"
DEFAULT_LOOKUP_SOURCE = "trulia"
DEFAULT_LOOKUP_DELAY_S = 1.0
DEFAULT_REQUEST_TIMEOUT_S = 30.0


def _first_env(*names: str, default: str) -> str:
    for name in names:
        val = (os.getenv(name) or "").strip()
        if val:
            return val
    return default


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if val < 0:
        logger.warning(f"Ignoring negative {name}={raw!r}, using {default}")
        return default
    return val


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    backend_url: str = DEFAULT_BACKEND_URL
    lookup_source: str = DEFAULT_LOOKUP_SOURCE
    lookup_delay_s: float = DEFAULT_LOOKUP_DELAY_S
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_base_url=_first_env("API_BASE_URL", "NEXT_PUBLIC_API_URL", default=DEFAULT_API_BASE_URL).rstrip("/"),
            backend_url=_first_env("BACKEND_URL", "NEXT_PUBLIC_BACKEND_URL", default=DEFAULT_BACKEND_URL).rstrip("/"),
            lookup_source=_first_env("LOOKUP_SOURCE", default=DEFAULT_LOOKUP_SOURCE),
            lookup_delay_s=_float_env("LOOKUP_DELAY_S", DEFAULT_LOOKUP_DELAY_S),
            request_timeout_s=_float_env("REQUEST_TIMEOUT_S", DEFAULT_REQUEST_TIMEOUT_S) or DEFAULT_REQUEST_TIMEOUT_S,
        )
