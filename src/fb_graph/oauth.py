"""
OAuth module.

Authorization URLs, code/app/session-key token exchange, and verification of
the cookies and signed requests Facebook hands to an app.
"""

import json
from typing import Any, Mapping, Optional, Sequence, Union
from urllib.parse import unquote_plus

from fb_graph import signed_request
from fb_graph.errors import APIError, ConfigurationError
from fb_graph.models.connection import RequestOptions
from fb_graph.models.response import ResponseEnvelope
from fb_graph.transport.http import GRAPH_SERVER, RequestDispatcher

Permissions = Union[str, Sequence[str]]


def parse_access_token(text: str) -> dict[str, Any]:
    """Parse ``access_token=...&expires=...`` or a JSON token object."""
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise APIError("ParseError", f"Malformed token response: {e}") from e
        if not isinstance(data, dict):
            raise APIError("ParseError", "Token response must be a JSON object")
        return data

    components: dict[str, Any] = {}
    for part in stripped.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        components[unquote_plus(key)] = unquote_plus(value)
    return components


def _api_error(response: ResponseEnvelope) -> APIError:
    try:
        data = json.loads(response.body)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        error = data["error"]
        return APIError(
            str(error.get("type", f"HTTP {response.status}")),
            str(error.get("message", "")),
            status=response.status,
            details=error,
        )
    return APIError(f"HTTP {response.status}", f"Response body: {response.body}", status=response.status)


class OAuth:
    def __init__(
        self,
        app_id: str,
        app_secret: str,
        callback_url: Optional[str] = None,
        dispatcher: Optional[RequestDispatcher] = None,
    ):
        self._app_id = str(app_id)
        self._app_secret = app_secret
        self._callback_url = callback_url
        self._dispatcher = dispatcher or RequestDispatcher()

    @property
    def app_id(self) -> str:
        return self._app_id

    @property
    def app_secret(self) -> str:
        return self._app_secret

    @property
    def callback_url(self) -> Optional[str]:
        return self._callback_url

    # cookies and signed requests

    def parse_cookies(self, cookies: Mapping[str, str]) -> Optional[dict[str, str]]:
        """Components of the app's ``fbs_<app_id>`` cookie, or None if absent/invalid/expired."""
        raw = cookies.get(f"fbs_{self._app_id}")
        if not raw:
            return None
        return signed_request.parse_cookie(raw, self._app_secret)

    def user_from_cookies(self, cookies: Mapping[str, str]) -> Optional[str]:
        info = self.parse_cookies(cookies)
        return info.get("uid") if info else None

    def parse_signed_request(self, signed: str) -> dict[str, Any]:
        return signed_request.parse_signed_request(signed, self._app_secret)

    # URLs

    def _callback(self, callback: Optional[str]) -> str:
        resolved = callback or self._callback_url
        if not resolved:
            raise ConfigurationError("A callback URL is required, either at construction or per call")
        return resolved

    def authorization_url(
        self,
        callback: Optional[str] = None,
        permissions: Optional[Permissions] = None,
        display: Optional[str] = None,
    ) -> str:
        url = (
            f"https://{GRAPH_SERVER}/oauth/authorize"
            f"?client_id={self._app_id}&redirect_uri={self._callback(callback)}"
        )
        if permissions:
            scope = permissions if isinstance(permissions, str) else ",".join(permissions)
            url += f"&scope={scope}"
        if display:
            url += f"&display={display}"
        return url

    def token_exchange_url(self, code: str, callback: Optional[str] = None) -> str:
        return (
            f"https://{GRAPH_SERVER}/oauth/access_token"
            f"?client_id={self._app_id}&redirect_uri={self._callback(callback)}"
            f"&client_secret={self._app_secret}&code={code}"
        )

    # token exchange

    def _fetch_token_string(
        self,
        args: Mapping[str, Any],
        post: bool = False,
        endpoint: str = "access_token",
        options: Optional[RequestOptions] = None,
    ) -> str:
        options = options or RequestOptions()
        if options.use_ssl is None:
            options = options.model_copy(update={"use_ssl": True})
        params = {"client_id": self._app_id, "client_secret": self._app_secret, **args}
        response = self._dispatcher.execute(f"/oauth/{endpoint}", params, "post" if post else "get", options)
        if response.status != 200:
            raise _api_error(response)
        return response.body

    def _token_info(self, body: str) -> dict[str, Any]:
        if not body.strip():
            raise APIError("EmptyResponse", "Token endpoint returned an empty body")
        info = parse_access_token(body)
        if not info.get("access_token"):
            raise APIError("InvalidResponse", f"No access_token in response: {body}")
        return info

    def fetch_access_token_info(
        self,
        code: str,
        callback: Optional[str] = None,
        options: Optional[RequestOptions] = None,
    ) -> dict[str, Any]:
        """Exchange an authorization code for token info (``access_token``, maybe ``expires``)."""
        body = self._fetch_token_string(
            {"code": code, "redirect_uri": self._callback(callback)}, options=options,
        )
        return self._token_info(body)

    def fetch_access_token(
        self,
        code: str,
        callback: Optional[str] = None,
        options: Optional[RequestOptions] = None,
    ) -> str:
        return self.fetch_access_token_info(code, callback, options)["access_token"]

    def fetch_app_access_token_info(self, options: Optional[RequestOptions] = None) -> dict[str, Any]:
        body = self._fetch_token_string({"grant_type": "client_credentials"}, post=True, options=options)
        return self._token_info(body)

    def fetch_app_access_token(self, options: Optional[RequestOptions] = None) -> str:
        return self.fetch_app_access_token_info(options)["access_token"]

    def exchange_session_keys(
        self,
        keys: Sequence[str],
        options: Optional[RequestOptions] = None,
    ) -> list[Optional[dict[str, Any]]]:
        """Translate legacy session keys to token info, one slot per key.

        Invalid keys come back as None. An empty body is an APIError.
        """
        body = self._fetch_token_string(
            {"sessions": ",".join(keys)}, post=True, endpoint="exchange_sessions", options=options,
        )
        if not body.strip():
            raise APIError(
                "ArgumentError",
                f"Session key exchange returned an empty body for sessions {list(keys)!r}",
            )
        try:
            results = json.loads(body)
        except json.JSONDecodeError as e:
            raise APIError("ParseError", f"Malformed session exchange response: {e}") from e
        if not isinstance(results, list):
            raise APIError("ParseError", f"Session exchange response must be a list: {body}")

        return [
            results[i] if i < len(results) and isinstance(results[i], dict) else None
            for i in range(len(keys))
        ]

    def tokens_from_session_keys(
        self,
        keys: Sequence[str],
        options: Optional[RequestOptions] = None,
    ) -> list[Optional[str]]:
        return [info.get("access_token") if info else None for info in self.exchange_session_keys(keys, options)]

    def token_from_session_key(self, key: str, options: Optional[RequestOptions] = None) -> Optional[str]:
        tokens = self.tokens_from_session_keys([key], options)
        return tokens[0] if tokens else None
