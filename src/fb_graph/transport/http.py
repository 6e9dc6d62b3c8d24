"""
HTTP request dispatcher for the Graph and REST servers.

Every call resolves its connection settings once, opens a fresh httpx client,
performs exactly one request and closes the client before returning.
"""

import os
import ssl
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlencode

import httpx

from fb_graph.config import HttpDefaults
from fb_graph.errors import ConfigurationError, TransportError
from fb_graph.logging import get_logger
from fb_graph.models.connection import (
    ConnectionConfig,
    CustomMethod,
    Get,
    ProxyConfig,
    RequestOptions,
    resolve_verb,
)
from fb_graph.models.response import ResponseEnvelope
from fb_graph.transport.multipart import MultipartEncoder, encode_value

GRAPH_SERVER = "graph.facebook.com"
REST_SERVER = "api.facebook.com"
SECURE_PORT = 443

log = get_logger(__name__)


def encode_params(params: Mapping[str, Any]) -> str:
    """Form/query encoding with sorted keys and JSON for non-string values."""
    return urlencode([(str(key), encode_value(params[key])) for key in sorted(params, key=str)])


def parse_proxy(proxy_url: str) -> ProxyConfig:
    url = httpx.URL(proxy_url if "://" in proxy_url else f"http://{proxy_url}")
    scheme = url.scheme or "http"
    port = url.port or (443 if scheme == "https" else 80)
    return ProxyConfig(
        host=url.host,
        port=port,
        user=url.username or None,
        password=url.password or None,
        scheme=scheme,
    )


def _resolve_trust(
    override: Optional[str],
    default: Optional[str],
    exists: Callable[[str], bool],
) -> Optional[str]:
    # An explicit override is always used; a default only if it is on disk.
    if override:
        return override
    if default and exists(default):
        return default
    if default:
        log.debug("ca_default_missing", path=default)
    return None


class RequestDispatcher:
    def __init__(
        self,
        defaults: Optional[HttpDefaults] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._defaults = defaults or HttpDefaults()
        self._transport = transport
        self._multipart = MultipartEncoder()

    @property
    def defaults(self) -> HttpDefaults:
        return self._defaults

    def resolve_connection(
        self,
        params: Mapping[str, Any],
        options: Optional[RequestOptions] = None,
    ) -> ConnectionConfig:
        options = options or RequestOptions()
        defaults = self._defaults

        use_ssl = bool(params.get("access_token")) or defaults.always_use_ssl or bool(options.use_ssl)
        host = REST_SERVER if options.rest_api else GRAPH_SERVER

        proxy_url = options.proxy or defaults.proxy
        timeout = options.timeout if options.timeout is not None else defaults.timeout

        ca_file = ca_path = None
        if use_ssl:
            ca_file = _resolve_trust(options.ca_file, defaults.ca_file, os.path.isfile)
            ca_path = _resolve_trust(options.ca_path, defaults.ca_path, os.path.isdir)

        return ConnectionConfig(
            host=host,
            port=SECURE_PORT if use_ssl else None,
            use_ssl=use_ssl,
            proxy=parse_proxy(proxy_url) if proxy_url else None,
            open_timeout=timeout,
            read_timeout=timeout,
            ca_file=ca_file,
            ca_path=ca_path,
        )

    def client_options(self, config: ConnectionConfig) -> dict[str, Any]:
        """Translate a ConnectionConfig into httpx.Client keyword arguments."""
        kwargs: dict[str, Any] = {"base_url": config.base_url}
        if config.use_ssl and (config.ca_file or config.ca_path):
            kwargs["verify"] = ssl.create_default_context(cafile=config.ca_file, capath=config.ca_path)
        if config.proxy:
            auth = (config.proxy.user, config.proxy.password or "") if config.proxy.user else None
            kwargs["proxy"] = httpx.Proxy(config.proxy.url, auth=auth)
        if config.open_timeout is not None or config.read_timeout is not None:
            kwargs["timeout"] = httpx.Timeout(None, connect=config.open_timeout, read=config.read_timeout)
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    def execute(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        verb: Optional[str] = "post",
        options: Optional[RequestOptions] = None,
    ) -> ResponseEnvelope:
        """Perform one request and wrap the outcome in a ResponseEnvelope.

        Raises TransportError if the connection fails, including an unusable
        CA file or directory, and ConfigurationError for an upload on a GET
        request. Non-2xx statuses are returned as-is;
        interpreting them is up to the caller.
        """
        options = options or RequestOptions()
        args = dict(params or {})
        method = resolve_verb(verb)
        if isinstance(method, CustomMethod):
            args["method"] = method.name

        config = self.resolve_connection(args, options)
        if not path.startswith("/"):
            path = f"/{path}"

        log.debug(
            "request_dispatched",
            path=path,
            verb=type(method).__name__,
            host=config.host,
            ssl=config.use_ssl,
            proxy=bool(config.proxy),
        )

        # Encode before connecting so unreadable uploads fail as themselves.
        request_kwargs: dict[str, Any]
        if isinstance(method, Get):
            if self._multipart.requires_multipart(args):
                raise ConfigurationError(f"File uploads can't be sent with GET ({path})")
            query = encode_params(args)
            http_method, url = "GET", (f"{path}?{query}" if query else path)
            request_kwargs = {}
        elif self._multipart.requires_multipart(args):
            body = self._multipart.encode(args)
            http_method, url = "POST", path
            request_kwargs = {"data": body.data, "files": body.files}
        else:
            http_method, url = "POST", path
            request_kwargs = {
                "content": encode_params(args),
                "headers": {"Content-Type": "application/x-www-form-urlencoded"},
            }

        try:
            with httpx.Client(**self.client_options(config)) as client:
                response = client.request(http_method, url, **request_kwargs)
        except (httpx.TransportError, OSError) as e:
            log.warning("request_failed", path=path, host=config.host, error=str(e))
            raise TransportError(f"Request to {config.host}{path} failed: {e}") from e

        log.debug("request_completed", path=path, status=response.status_code)
        return ResponseEnvelope(status=response.status_code, body=response.text, headers=response.headers)
