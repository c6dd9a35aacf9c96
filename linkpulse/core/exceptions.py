"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Error kinds:
- ShortUrlNotFoundError: the alias has no matching short URL
- VisitValidationError: a visit payload is missing a required field
- DatabaseError: connectivity, timeout or constraint failure in the store
- GeolocationError: the IP geolocation service could not answer
"""

from typing import Optional


class LinkPulseException(Exception):
    """Base exception for the link service."""
    pass


class ShortUrlNotFoundError(LinkPulseException):
    """Raised when an alias is not found in the database."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"Alias '{alias}' not found")


class VisitValidationError(LinkPulseException):
    """Raised when a visit payload lacks a required field."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing field: {field}")


class DatabaseError(LinkPulseException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class GeolocationError(LinkPulseException):
    """Raised by geolocation providers when a lookup cannot produce a location."""

    def __init__(self, ip: str, reason: str = "lookup failed"):
        self.ip = ip
        self.reason = reason
        super().__init__(f"Geolocation for {ip} failed: {reason}")
