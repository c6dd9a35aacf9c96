"""
Visitor Classification Service

Derives the attribution fields of a visit from the raw request headers:
device class, operating system, browser, client IP, referrer and an
approximate location.

Design Decisions:
- Each category is an ordered list of (pattern, label) pairs; the first
  match wins, so the order below is part of the behavior. A typical
  Chrome UA also carries "Safari", and Android UAs carry "Linux".
- Header parsing is pure; only the location step does I/O, through an
  injectable GeolocationProvider
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Optional, Pattern, Sequence, Tuple

from starlette.datastructures import Headers

from linkpulse.services.geolocation import GeolocationProvider, resolve_location

UNKNOWN = "Unknown"
DIRECT = "Direct"
DESKTOP = "Desktop"

Rule = Tuple[Pattern[str], str]

DEVICE_RULES: Sequence[Rule] = (
    (re.compile(r"mobile", re.IGNORECASE), "Mobile"),
    (re.compile(r"tablet", re.IGNORECASE), "Tablet"),
)

OS_RULES: Sequence[Rule] = (
    (re.compile(r"windows", re.IGNORECASE), "Windows"),
    (re.compile(r"mac", re.IGNORECASE), "MacOS"),
    (re.compile(r"linux", re.IGNORECASE), "Linux"),
    (re.compile(r"android", re.IGNORECASE), "Android"),
    (re.compile(r"ios|iphone|ipad", re.IGNORECASE), "iOS"),
)

BROWSER_RULES: Sequence[Rule] = (
    (re.compile(r"chrome|crios", re.IGNORECASE), "Chrome"),
    (re.compile(r"firefox|fxios", re.IGNORECASE), "Firefox"),
    (re.compile(r"safari", re.IGNORECASE), "Safari"),
    (re.compile(r"edg", re.IGNORECASE), "Edge"),
    (re.compile(r"opr/", re.IGNORECASE), "Opera"),
)


@dataclass(frozen=True)
class VisitDescriptor:
    """Attribution fields for a single redirect."""
    device: str
    os: str
    browser: str
    ip: str
    referrer: str
    location: str = UNKNOWN


def first_match(rules: Sequence[Rule], value: str, default: str) -> str:
    """Label of the first rule whose pattern occurs in value."""
    for pattern, label in rules:
        if pattern.search(value):
            return label
    return default


def _as_headers(headers: Mapping) -> Headers:
    if isinstance(headers, Headers):
        return headers
    return Headers(headers={str(k): str(v) for k, v in headers.items()})


def extract_client_ip(headers: Mapping) -> str:
    """
    Client IP as reported by the proxy chain.

    X-Forwarded-For can contain multiple IPs, the first one is the client.
    """
    headers = _as_headers(headers)
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or UNKNOWN


def describe_request(headers: Mapping) -> VisitDescriptor:
    """
    Classify a request from its headers alone.

    The location is left as "Unknown"; VisitorClassifier fills it in.
    """
    headers = _as_headers(headers)
    user_agent = headers.get("user-agent") or UNKNOWN

    return VisitDescriptor(
        device=first_match(DEVICE_RULES, user_agent, DESKTOP),
        os=first_match(OS_RULES, user_agent, UNKNOWN),
        browser=first_match(BROWSER_RULES, user_agent, UNKNOWN),
        ip=extract_client_ip(headers),
        referrer=headers.get("referer") or DIRECT,
    )


class VisitorClassifier:
    """
    Full visitor classification, including the geolocation lookup.

    The lookup is awaited but can only degrade the location to "Unknown";
    classify() does not raise on geolocation failures.
    """

    def __init__(self, geolocator: Optional[GeolocationProvider] = None):
        """
        Args:
            geolocator: Provider used for the location field (None skips the lookup)
        """
        self.geolocator = geolocator

    async def classify(self, headers: Mapping) -> VisitDescriptor:
        descriptor = describe_request(headers)
        location = await resolve_location(self.geolocator, descriptor.ip)
        return replace(descriptor, location=location)
