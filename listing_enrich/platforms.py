"""
Platform classification for listing URLs

Fast, local, best-effort. The classification service behind
url_validation.validate_and_detect is authoritative.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlparse

APARTMENTS = "apartments.com"
HOTPADS = "hotpads"
REDFIN = "redfin"
TRULIA = "trulia"
ZILLOW_FSBO = "zillow_fsbo"
ZILLOW_FRBO = "zillow_frbo"
FSBO = "fsbo"

PLATFORMS = (APARTMENTS, HOTPADS, REDFIN, TRULIA, ZILLOW_FSBO, ZILLOW_FRBO, FSBO)

PLATFORM_TABLES: Dict[str, str] = {
    APARTMENTS: "apartments_frbo",
    HOTPADS: "hotpads_listings",
    REDFIN: "redfin_listings",
    TRULIA: "trulia_listings",
    ZILLOW_FSBO: "zillow_fsbo_listings",
    ZILLOW_FRBO: "zillow_frbo_listings",
    FSBO: "listings",
}

DEFAULT_URLS: Dict[str, str] = {
    APARTMENTS: "https://www.apartments.com/chicago-il/for-rent-by-owner/",
    HOTPADS: "https://hotpads.com/chicago-il/apartments-for-rent",
    REDFIN: "https://www.redfin.com/county/733/IL/DuPage-County/for-sale-by-owner",
    TRULIA: "https://www.trulia.com/for_rent/Chicago,IL/",
    ZILLOW_FSBO: "https://www.zillow.com/homes/for_sale/",
    ZILLOW_FRBO: "https://www.zillow.com/homes/for_rent/",
    FSBO: "https://www.forsalebyowner.com/search/list/chicago-illinois",
}

DISPLAY_NAMES: Dict[str, str] = {
    APARTMENTS: "Apartments.com",
    HOTPADS: "Hotpads",
    REDFIN: "Redfin",
    TRULIA: "Trulia",
    ZILLOW_FSBO: "Zillow FSBO",
    ZILLOW_FRBO: "Zillow FRBO",
    FSBO: "ForSaleByOwner.com",
}

_SALE_MARKERS = ("for-sale", "for_sale", "fsbo")
_RENT_MARKERS = ("for-rent", "for_rent", "frbo")


def _contains(needle: str) -> Callable[[str], bool]:
    return lambda url: needle in url


def _zillow_variant(url: str) -> str:
    if any(m in url for m in _SALE_MARKERS):
        return ZILLOW_FSBO
    if any(m in url for m in _RENT_MARKERS):
        return ZILLOW_FRBO
    return ZILLOW_FSBO


# First match wins. Order matters: a URL mentioning two hosts resolves to the earlier rule.
PLATFORM_RULES: List[Tuple[Callable[[str], bool], Callable[[str], str]]] = [
    (_contains("apartments.com"), lambda _: APARTMENTS),
    (_contains("hotpads.com"), lambda _: HOTPADS),
    (_contains("redfin.com"), lambda _: REDFIN),
    (_contains("trulia.com"), lambda _: TRULIA),
    (_contains("zillow.com"), _zillow_variant),
    (_contains("forsalebyowner.com"), lambda _: FSBO),
]


def detect_platform(url: Optional[str]) -> Optional[str]:
    """Return the platform id for a listing URL, or None if no rule matches"""
    url_lower = (url or "").lower()
    for matches, platform_for in PLATFORM_RULES:
        if matches(url_lower):
            return platform_for(url_lower)
    return None


def get_table_for_platform(platform: Optional[str]) -> Optional[str]:
    return PLATFORM_TABLES.get(platform) if platform else None


def get_default_url(platform: Optional[str]) -> str:
    return DEFAULT_URLS.get(platform, "") if platform else ""


def get_display_name(platform: Optional[str]) -> str:
    if not platform:
        return "Unknown"
    return DISPLAY_NAMES.get(platform, platform)


# ---------------------------------------------------------------------------
# Location inference
# ---------------------------------------------------------------------------
US_STATES = {
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID",
    "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO",
    "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA",
    "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
}

_CITY_COMMA_STATE_RE = re.compile(r"^([A-Za-z][A-Za-z .'\-]*?),\s*([A-Za-z]{2})$")
_CITY_SLUG_STATE_RE = re.compile(r"^([a-z][a-z\-]*?)-([a-z]{2})$", re.I)


def _titleize(slug: str) -> str:
    return " ".join(w.capitalize() for w in re.split(r"[-\s]+", slug) if w)


@dataclass
class Location:
    city: Optional[str] = None
    state: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"city": self.city, "state": self.state}


def infer_location(url: Optional[str]) -> Location:
    """
    Best-effort city/state from the URL path.

    Recognises `/chicago-il/`, `/for_rent/Chicago,IL/` and `/county/733/IL/...`.
    """
    try:
        path = unquote(urlparse((url or "").strip()).path or "")
    except ValueError:
        return Location()

    segments = [s for s in path.split("/") if s]
    for i, seg in enumerate(segments):
        m = _CITY_COMMA_STATE_RE.match(seg)
        if m and m.group(2).upper() in US_STATES:
            return Location(city=_titleize(m.group(1)), state=m.group(2).upper())

        m = _CITY_SLUG_STATE_RE.match(seg)
        if m and m.group(2).upper() in US_STATES:
            return Location(city=_titleize(m.group(1)), state=m.group(2).upper())

        if seg.lower() == "county" and i + 2 < len(segments):
            state = segments[i + 2].upper()
            if state in US_STATES:
                return Location(state=state)

    return Location()


@dataclass
class Classification:
    platform: Optional[str]
    table: Optional[str]
    location: Location = field(default_factory=Location)


def classify(url: Optional[str]) -> Classification:
    """Platform, target table and implied location for a URL"""
    platform = detect_platform(url)
    return Classification(
        platform=platform,
        table=get_table_for_platform(platform),
        location=infer_location(url) if platform else Location(),
    )
