"""
URL validation and platform detection against the classification service

validate_url_format() is the local syntax gate; validate_and_detect() adds a
single POST to <backend>/api/validate-url and reconciles the answer with the
platform the caller expected.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from .http_pool import get_session
from .logging_utils import setup_logger
from .platforms import Location

logger = setup_logger(__name__)

DEFAULT_TIMEOUT_S = 30


class UrlFormatError:
    EMPTY_URL = "EmptyUrl"
    BAD_SCHEME = "BadScheme"
    MALFORMED_URL = "MalformedUrl"


# Result codes for PlatformDetectionResult.error_code beyond the format errors
REMOTE_UNAVAILABLE = "RemoteUnavailable"
PLATFORM_MISMATCH = "MismatchError"
UNSUPPORTED_PLATFORM = "UnsupportedPlatform"


class RemoteUnavailableError(Exception):
    """Classification service unreachable, timed out, or answered with undecodable JSON"""


@dataclass
class FormatCheck:
    is_valid: bool
    error: Optional[str] = None
    code: Optional[str] = None


@dataclass
class PlatformDetectionResult:
    platform: Optional[str] = None
    table: Optional[str] = None
    location: Location = field(default_factory=Location)
    is_valid: bool = False
    error: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "platform": self.platform,
            "table": self.table,
            "location": self.location.as_dict(),
            "isValid": self.is_valid,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class RemoteReply:
    ok: bool
    status_code: int
    body: Dict[str, Any]


def validate_url_format(url: Optional[str]) -> FormatCheck:
    if not url or not url.strip():
        return FormatCheck(False, "URL is required", UrlFormatError.EMPTY_URL)

    trimmed = url.strip()
    if not (trimmed.startswith("http://") or trimmed.startswith("https://")):
        return FormatCheck(False, "URL must start with http:// or https://", UrlFormatError.BAD_SCHEME)

    try:
        parsed = urlparse(trimmed)
        parsed.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError:
        return FormatCheck(False, "Invalid URL format", UrlFormatError.MALFORMED_URL)

    host = parsed.hostname or ""
    if not host or any(ch.isspace() for ch in host):
        return FormatCheck(False, "Invalid URL format", UrlFormatError.MALFORMED_URL)

    return FormatCheck(True)


def request_remote_detection(
    url: str,
    expected_platform: Optional[str],
    backend_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> RemoteReply:
    """
    One POST to the classification service. No retry.

    Raises:
        RemoteUnavailableError: transport failure, or a success response that is not JSON
    """
    session = session or get_session()
    endpoint = f"{backend_url.rstrip('/')}/api/validate-url"
    try:
        r = session.post(
            endpoint,
            json={"url": url, "expected_platform": expected_platform},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RemoteUnavailableError(str(e) or "Failed to connect to backend") from e

    try:
        body = r.json()
    except ValueError as e:
        if r.ok:
            raise RemoteUnavailableError(f"Invalid JSON from classification service: {e}") from e
        body = {}

    if not isinstance(body, dict):
        if r.ok:
            raise RemoteUnavailableError("Unexpected response shape from classification service")
        body = {}

    return RemoteReply(ok=r.ok, status_code=r.status_code, body=body)


def _location_from(payload: Any) -> Location:
    if not isinstance(payload, dict):
        return Location()
    return Location(city=payload.get("city") or None, state=payload.get("state") or None)


def validate_and_detect(
    url: str,
    expected_platform: Optional[str] = None,
    backend_url: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> PlatformDetectionResult:
    """
    Validate a listing URL and detect its platform with the classification service

    Args:
        url: Candidate URL
        expected_platform: Platform the caller requires (e.g. the page the URL was pasted on)
        backend_url: Classification service base URL (defaults to Settings.from_env())
        session: requests session (defaults to the shared pool)
        timeout: Request timeout in seconds

    Returns:
        PlatformDetectionResult; never raises for format, HTTP or transport problems
    """
    check = validate_url_format(url)
    if not check.is_valid:
        return PlatformDetectionResult(is_valid=False, error=check.error, error_code=check.code)

    if backend_url is None:
        from .config import Settings
        backend_url = Settings.from_env().backend_url

    try:
        reply = request_remote_detection(url, expected_platform, backend_url, session=session, timeout=timeout)
    except RemoteUnavailableError as e:
        logger.warning(f"Classification service unavailable for {url}: {e}")
        return PlatformDetectionResult(
            is_valid=False,
            error=str(e) or "Failed to connect to backend",
            error_code=REMOTE_UNAVAILABLE,
        )

    if not reply.ok:
        logger.info(f"Classification service returned {reply.status_code} for {url}")
        return PlatformDetectionResult(
            is_valid=False,
            error=reply.body.get("error") or "Failed to validate URL",
            error_code=REMOTE_UNAVAILABLE,
        )

    data = reply.body
    platform = data.get("platform") or None
    table = data.get("table") or None
    location = _location_from(data.get("location"))

    if expected_platform and platform != expected_platform:
        return PlatformDetectionResult(
            platform=platform,
            table=table,
            location=location,
            is_valid=False,
            error=(
                f"URL is for {platform or 'unknown platform'}, but this page is for {expected_platform}. "
                "Please use the correct page or paste the URL on the main page."
            ),
            error_code=PLATFORM_MISMATCH,
        )

    if platform is None:
        return PlatformDetectionResult(
            table=table,
            location=location,
            is_valid=False,
            error="Unknown or unsupported platform",
            error_code=UNSUPPORTED_PLATFORM,
        )

    return PlatformDetectionResult(platform=platform, table=table, location=location, is_valid=True)
