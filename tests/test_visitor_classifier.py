"""Tests for visitor classification from request headers."""

import pytest

from linkpulse.core.exceptions import GeolocationError
from linkpulse.services.geolocation import GeoLocation
from linkpulse.services.visitor_classifier import (
    VisitorClassifier,
    describe_request,
    extract_client_ip,
)

from conftest import FakeGeolocator

CHROME_MAC_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91"
)
FIREFOX_LINUX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
FIREFOX_IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) FxiOS/121.0 Mobile/15E148 Safari/605.1.15"
)
CHROME_ANDROID_UA = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.6099.144 Mobile Safari/537.36"
)
ANDROID_TABLET_UA = (
    "Mozilla/5.0 (Linux; Android 13; SM-X710 Tablet) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TestDevice:
    def test_mobile(self):
        assert describe_request({"user-agent": SAFARI_IPHONE_UA}).device == "Mobile"

    def test_tablet(self):
        assert describe_request({"user-agent": ANDROID_TABLET_UA}).device == "Tablet"

    def test_mobile_checked_before_tablet(self):
        """A UA matching both patterns is Mobile."""
        ua = "Mozilla/5.0 (Linux; Android 13; Tablet) Mobile Safari/537.36"
        assert describe_request({"user-agent": ua}).device == "Mobile"

    def test_desktop_is_default(self):
        assert describe_request({"user-agent": CHROME_MAC_UA}).device == "Desktop"


class TestOperatingSystem:
    @pytest.mark.parametrize("ua, expected", [
        (EDGE_WINDOWS_UA, "Windows"),
        (CHROME_MAC_UA, "MacOS"),
        (FIREFOX_LINUX_UA, "Linux"),
        ("MyApp/2.0 (iOS 17.1)", "iOS"),
        ("curl/8.4.0", "Unknown"),
    ])
    def test_operating_systems(self, ua, expected):
        assert describe_request({"user-agent": ua}).os == expected

    def test_priority_order(self):
        """Earlier rules win: Android UAs carry Linux, iPhone UAs carry Mac OS X."""
        assert describe_request({"user-agent": CHROME_ANDROID_UA}).os == "Linux"
        assert describe_request({"user-agent": SAFARI_IPHONE_UA}).os == "MacOS"

    def test_android_without_linux_token(self):
        assert describe_request({"user-agent": "Dalvik/2.1.0 (Android 14)"}).os == "Android"


class TestBrowser:
    @pytest.mark.parametrize("ua, expected", [
        (CHROME_MAC_UA, "Chrome"),
        (FIREFOX_LINUX_UA, "Firefox"),
        (FIREFOX_IPHONE_UA, "Firefox"),
        (SAFARI_IPHONE_UA, "Safari"),
        ("Mozilla/5.0 (iPhone) CriOS/120.0 Mobile/15E148 Safari/604.1", "Chrome"),
        ("Mozilla/5.0 (Windows NT 10.0) Edg/120.0", "Edge"),
        ("Mozilla/5.0 (Windows NT 10.0) OPR/105.0", "Opera"),
        ("curl/8.4.0", "Unknown"),
    ])
    def test_browsers(self, ua, expected):
        assert describe_request({"user-agent": ua}).browser == expected

    def test_chrome_wins_over_safari_token(self):
        """Chrome UAs also contain Safari; Chrome is checked first."""
        assert "Safari" in CHROME_MAC_UA
        assert describe_request({"user-agent": CHROME_MAC_UA}).browser == "Chrome"

    def test_edge_with_chrome_token_is_chrome(self):
        assert describe_request({"user-agent": EDGE_WINDOWS_UA}).browser == "Chrome"


class TestHeaders:
    def test_missing_user_agent(self):
        descriptor = describe_request({})
        assert descriptor.device == "Desktop"
        assert descriptor.os == "Unknown"
        assert descriptor.browser == "Unknown"

    def test_header_names_are_case_insensitive(self):
        descriptor = describe_request({"User-Agent": FIREFOX_LINUX_UA, "Referer": "https://news.ycombinator.com/"})
        assert descriptor.browser == "Firefox"
        assert descriptor.referrer == "https://news.ycombinator.com/"

    def test_referrer_defaults_to_direct(self):
        assert describe_request({"user-agent": CHROME_MAC_UA}).referrer == "Direct"

    def test_forwarded_for_takes_first_entry(self):
        headers = {"x-forwarded-for": " 203.0.113.7 , 10.0.0.1", "x-real-ip": "198.51.100.2"}
        assert extract_client_ip(headers) == "203.0.113.7"

    def test_real_ip_fallback(self):
        assert extract_client_ip({"x-real-ip": "198.51.100.2"}) == "198.51.100.2"

    def test_no_ip(self):
        assert extract_client_ip({}) == "Unknown"


class TestClassify:
    @pytest.mark.asyncio
    async def test_location_from_geolocator(self):
        geolocator = FakeGeolocator({"203.0.113.7": GeoLocation(city="Lisbon", country="Portugal")})
        classifier = VisitorClassifier(geolocator)

        descriptor = await classifier.classify({
            "user-agent": CHROME_ANDROID_UA,
            "x-forwarded-for": "203.0.113.7",
        })

        assert descriptor.location == "Lisbon, Portugal"
        assert descriptor.device == "Mobile"
        assert geolocator.calls == ["203.0.113.7"]

    @pytest.mark.asyncio
    async def test_missing_city_is_unknown(self):
        geolocator = FakeGeolocator({"203.0.113.7": GeoLocation(country="Portugal")})
        descriptor = await VisitorClassifier(geolocator).classify({"x-real-ip": "203.0.113.7"})
        assert descriptor.location == "Unknown, Portugal"

    @pytest.mark.asyncio
    async def test_geolocation_failure_degrades_to_unknown(self):
        geolocator = FakeGeolocator(error=GeolocationError("203.0.113.7", "HTTP 503"))
        descriptor = await VisitorClassifier(geolocator).classify({
            "user-agent": CHROME_MAC_UA,
            "x-forwarded-for": "203.0.113.7",
        })
        assert descriptor.location == "Unknown"
        assert descriptor.browser == "Chrome"

    @pytest.mark.asyncio
    async def test_unexpected_geolocation_exception_is_absorbed(self):
        geolocator = FakeGeolocator(error=TimeoutError("read timed out"))
        descriptor = await VisitorClassifier(geolocator).classify({"x-forwarded-for": "203.0.113.7"})
        assert descriptor.location == "Unknown"

    @pytest.mark.asyncio
    async def test_no_lookup_without_ip(self):
        geolocator = FakeGeolocator()
        descriptor = await VisitorClassifier(geolocator).classify({"user-agent": CHROME_MAC_UA})
        assert descriptor.location == "Unknown"
        assert geolocator.calls == []
