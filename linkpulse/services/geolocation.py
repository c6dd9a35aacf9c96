"""
IP Geolocation

Turns a visitor IP into an approximate "City, Country" label.

Providers raise GeolocationError (or whatever their transport raises);
resolve_location() is the only entry point the rest of the service uses,
and it never raises.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from linkpulse.core.exceptions import GeolocationError

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown"


@dataclass(frozen=True)
class GeoLocation:
    city: Optional[str] = None
    country: Optional[str] = None

    def label(self) -> str:
        return f"{self.city or UNKNOWN_LOCATION}, {self.country or UNKNOWN_LOCATION}"


class GeolocationProvider(ABC):
    """Looks up where an IP address is."""

    @abstractmethod
    async def lookup(self, ip: str) -> GeoLocation:
        """
        Locate an IP address.

        Raises:
            GeolocationError: If the service cannot locate the address
        """
        pass


class IpApiGeolocationProvider(GeolocationProvider):
    """
    Provider backed by an ipapi.co style JSON endpoint.

    The endpoint answers with city and country_name fields, or with
    {"error": true, "reason": ...} for reserved and unknown addresses.
    """

    def __init__(self, client: httpx.AsyncClient, url_template: str, timeout: Optional[float] = None):
        """
        Args:
            client: Shared HTTP client
            url_template: Endpoint URL with an {ip} placeholder
            timeout: Seconds allowed for one lookup; None keeps the client default
        """
        self.client = client
        self.url_template = url_template
        self.timeout = timeout

    async def lookup(self, ip: str) -> GeoLocation:
        url = self.url_template.format(ip=ip)
        if self.timeout is None:
            response = await self.client.get(url)
        else:
            response = await self.client.get(url, timeout=self.timeout)
        if not response.is_success:
            raise GeolocationError(ip, reason=f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise GeolocationError(ip, reason="response is not JSON")

        if not isinstance(data, dict):
            raise GeolocationError(ip, reason="unexpected response body")
        if data.get("error"):
            raise GeolocationError(ip, reason=str(data.get("reason") or "service reported an error"))

        return GeoLocation(city=data.get("city"), country=data.get("country_name"))


async def resolve_location(provider: Optional[GeolocationProvider], ip: str) -> str:
    """
    Best-effort location label for an IP.

    Any failure, including transport errors and timeouts, degrades to
    "Unknown" and is logged as a warning.

    Args:
        provider: Geolocation provider, or None to skip the lookup
        ip: Visitor IP ("Unknown" when the request carried none)

    Returns:
        "City, Country" or "Unknown"
    """
    if provider is None or not ip or ip == UNKNOWN_LOCATION:
        return UNKNOWN_LOCATION

    try:
        location = await provider.lookup(ip)
    except Exception as e:
        logger.warning(f"Location lookup failed for {ip}: {e!r}")
        return UNKNOWN_LOCATION

    return location.label()
