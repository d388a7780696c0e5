import os
import sys
from unittest.mock import Mock

import pytest
import requests


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    # Ensure project root on sys.path for imports
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    if root not in sys.path:
        sys.path.insert(0, root)
    # Keep tests offline and fast
    for name in ("API_BASE_URL", "NEXT_PUBLIC_API_URL", "BACKEND_URL", "NEXT_PUBLIC_BACKEND_URL", "LOOKUP_SOURCE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOOKUP_DELAY_S", "0")
    monkeypatch.setenv("REQUEST_TIMEOUT_S", "5")


def fake_response(status_code=200, json_body=None, text=None):
    """requests.Response stand-in; json() raises ValueError when no body is given"""
    r = Mock()
    r.status_code = status_code
    r.ok = 200 <= status_code < 400
    r.text = text if text is not None else ("" if json_body is None else str(json_body))
    if json_body is None:
        r.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        r.json.return_value = json_body
    return r


def fake_session(*responses):
    """Session whose get/post return (or raise) the given responses in order"""
    s = Mock(spec=requests.Session)
    s.get.side_effect = list(responses)
    s.post.side_effect = list(responses)
    return s


def write_csv(path, text):
    path.write_text(text, encoding="utf-8")
    return path
