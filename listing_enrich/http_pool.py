"""
Shared HTTP session for the lookup and classification calls
"""
import threading

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import __version__

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": f"listing-enrich/{__version__}",
}

# Calls are sequential; a couple of pooled connections per host is plenty.
POOL_SIZE = 4

_session = None
_session_lock = threading.Lock()


def build_session(pool_size: int = POOL_SIZE) -> requests.Session:
    """New session with urllib3 retries switched off: one attempt per call, errors surface to the caller"""
    no_retry = Retry(total=0, status_forcelist=[], allowed_methods=False, raise_on_status=False)
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=no_retry)

    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    for prefix in ("http://", "https://"):
        session.mount(prefix, adapter)
    return session


def get_session() -> requests.Session:
    global _session
    with _session_lock:
        if _session is None:
            _session = build_session()
        return _session
