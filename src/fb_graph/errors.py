"""
fb-graph error types.
"""

from typing import Any, Optional


class FacebookError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class TransportError(FacebookError):
    """The connection could not be established or broke mid-request."""

    def __init__(self, message: str):
        super().__init__("transport_error", message)


class APIError(FacebookError):
    """The remote endpoint reported a failure or returned an unusable body."""

    def __init__(
        self,
        fb_error_type: str,
        fb_error_message: str,
        status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__("api_error", f"{fb_error_type}: {fb_error_message}", details)
        self.fb_error_type = fb_error_type
        self.fb_error_message = fb_error_message
        self.status = status


class ConfigurationError(FacebookError):
    def __init__(self, message: str):
        super().__init__("configuration_error", message)


class ParseError(FacebookError):
    """A signed payload or cookie could not be decoded."""

    def __init__(self, message: str, code: str = "parse_error"):
        super().__init__(code, message)


class SignatureError(ParseError):
    """A signed payload failed verification."""

    def __init__(self, message: str):
        super().__init__(message, code="signature_error")
