"""
fb-graph — HTTP transport and OAuth helpers for Facebook's Graph and REST APIs.

One-shot request dispatch with SSL/proxy/timeout/CA policy, multipart uploads,
token exchange, and signed request / cookie verification.
"""

from fb_graph.config import AppConfig, HttpDefaults, load_config
from fb_graph.errors import (
    APIError,
    ConfigurationError,
    FacebookError,
    ParseError,
    SignatureError,
    TransportError,
)
from fb_graph.models.connection import ConnectionConfig, RequestOptions
from fb_graph.models.response import ResponseEnvelope
from fb_graph.models.upload import UploadableParameter
from fb_graph.oauth import OAuth
from fb_graph.transport.http import GRAPH_SERVER, REST_SERVER, RequestDispatcher

__version__ = "0.1.0"
__all__ = [
    "APIError",
    "AppConfig",
    "ConfigurationError",
    "ConnectionConfig",
    "FacebookError",
    "GRAPH_SERVER",
    "HttpDefaults",
    "OAuth",
    "ParseError",
    "REST_SERVER",
    "RequestDispatcher",
    "RequestOptions",
    "ResponseEnvelope",
    "SignatureError",
    "TransportError",
    "UploadableParameter",
    "load_config",
]
