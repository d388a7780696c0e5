"""
Owner lookup client

GET <base>/api/owner-info?address=...&source=...[&listing_link=...]
200 -> {"ownerName": ..., "mailingAddress": ..., "emails": [...], "phones": [...]}
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import requests

from .http_pool import get_session
from .logging_utils import setup_logger

logger = setup_logger(__name__)

DEFAULT_TIMEOUT_S = 30


@dataclass
class OwnerInfo:
    """Fetched owner fields; empty string means "not found", never None"""
    owner_name: str = ""
    mailing_address: str = ""
    emails: str = ""
    phones: str = ""


@dataclass
class Resolved:
    info: OwnerInfo


@dataclass
class Unresolved:
    reason: str
    info: OwnerInfo = field(default_factory=OwnerInfo)


LookupResult = Union[Resolved, Unresolved]


def _as_text(x: Any) -> str:
    if x is None:
        return ""
    if isinstance(x, (list, tuple)):
        return ", ".join(str(v).strip() for v in x if v is not None and str(v).strip())
    return str(x).strip()


def owner_info_from_payload(data: dict) -> OwnerInfo:
    return OwnerInfo(
        owner_name=_as_text(data.get("ownerName")),
        mailing_address=_as_text(data.get("mailingAddress")),
        emails=_as_text(data.get("emails")),
        phones=_as_text(data.get("phones")),
    )


class OwnerLookupClient:
    """Single-attempt client for the owner-info endpoint"""

    def __init__(self, base_url: str, source: str = "trulia",
                 session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT_S):
        self.base_url = base_url.rstrip("/")
        self.source = source
        self.session = session or get_session()
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/owner-info"

    def lookup(self, address: str, listing_link: Optional[str] = None) -> LookupResult:
        params = {"address": address, "source": self.source}
        if listing_link:
            params["listing_link"] = listing_link

        try:
            r = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"   Owner lookup failed: {e!r}")
            return Unresolved(reason=f"transport_error: {e}")

        if r.status_code != 200:
            snippet = (r.text or "")[:100]
            logger.warning(f"   API returned {r.status_code}: {snippet}")
            return Unresolved(reason=f"http_{r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            logger.warning(f"   Owner lookup returned invalid JSON: {e}")
            return Unresolved(reason="invalid_json")

        if not isinstance(data, dict):
            return Unresolved(reason="unexpected_body")

        return Resolved(info=owner_info_from_payload(data))
