"""Signed request and session cookie verification.

A signed request is ``<b64url HMAC-SHA256 signature>.<b64url JSON payload>``,
with the HMAC computed over the encoded payload segment using the app secret.

The legacy ``fbs_<app_id>`` cookie is a ``k=v&k=v`` string whose ``sig``
component is the MD5 hex digest of the remaining sorted pairs followed by the
app secret.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from typing import Any, Mapping, Optional

from fb_graph.errors import ParseError, SignatureError

SIGNED_REQUEST_ALGORITHM = "HMAC-SHA256"


def _b64url(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _from_b64url(value: str) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ParseError(f"Invalid base64url segment: {e}") from e


def _hmac_sha256(secret: str, message: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), msg=message.encode("ascii"), digestmod=hashlib.sha256).digest()


def parse_signed_request(signed_request: str, app_secret: str) -> dict[str, Any]:
    """Verify and decode a signed request.

    Raises ParseError for malformed input and SignatureError for an
    unsupported algorithm or a signature that doesn't match.
    """
    encoded_sig, sep, payload = signed_request.partition(".")
    if not sep or not encoded_sig or not payload:
        raise ParseError("Signed request must be <signature>.<payload>")

    _from_b64url(encoded_sig)
    try:
        data = json.loads(_from_b64url(payload).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"Signed request payload is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("Signed request payload must be a JSON object")

    algorithm = data.get("algorithm")
    if algorithm != SIGNED_REQUEST_ALGORITHM:
        raise SignatureError(f"Unsupported signed request algorithm: {algorithm!r}")

    # Compared in encoded form: decoding ignores the unused bits of the last character.
    expected = _b64url(_hmac_sha256(app_secret, payload))
    if not hmac.compare_digest(encoded_sig.rstrip("=").encode("ascii"), expected.encode("ascii")):
        raise SignatureError("Signed request signature mismatch")
    return data


def build_signed_request(payload: Mapping[str, Any], app_secret: str) -> str:
    data = dict(payload)
    data.setdefault("algorithm", SIGNED_REQUEST_ALGORITHM)
    encoded_payload = _b64url(json.dumps(data, separators=(",", ":")).encode("utf-8"))
    return f"{_b64url(_hmac_sha256(app_secret, encoded_payload))}.{encoded_payload}"


def _cookie_components(raw: str) -> dict[str, str]:
    components: dict[str, str] = {}
    for part in raw.strip().strip('"').split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        components[key] = value
    return components


def cookie_signature(components: Mapping[str, str], app_secret: str) -> str:
    payload = "".join(f"{key}={components[key]}" for key in sorted(components) if key != "sig")
    return hashlib.md5((payload + app_secret).encode("utf-8")).hexdigest()


def sign_cookie(components: Mapping[str, str], app_secret: str) -> str:
    """Serialize *components* as a cookie value with a valid ``sig``."""
    fields = {key: value for key, value in components.items() if key != "sig"}
    fields["sig"] = cookie_signature(fields, app_secret)
    return "&".join(f"{key}={value}" for key, value in sorted(fields.items()))


def parse_cookie(raw: str, app_secret: str, now: Optional[float] = None) -> Optional[dict[str, str]]:
    """Return the cookie's components, or None if unsigned, forged or expired."""
    components = _cookie_components(raw)
    sig = components.get("sig")
    expected = cookie_signature(components, app_secret)
    if not sig or not hmac.compare_digest(sig.encode("utf-8"), expected.encode("ascii")):
        return None

    expires = components.get("expires")
    if expires not in (None, "", "0"):
        try:
            expires_at = int(expires)
        except ValueError:
            return None
        if (time.time() if now is None else now) >= expires_at:
            return None
    return components
