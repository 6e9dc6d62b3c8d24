"""OAuth manager: URLs, token exchange, cookies and signed requests."""

import json
import time
from urllib.parse import parse_qs

import httpx
import pytest

from fb_graph import (
    GRAPH_SERVER,
    APIError,
    ConfigurationError,
    OAuth,
    RequestDispatcher,
    RequestOptions,
    ResponseEnvelope,
    SignatureError,
)
from fb_graph.oauth import parse_access_token
from fb_graph.signed_request import build_signed_request, sign_cookie

APP_ID = "123"
SECRET = "abc"
CALLBACK = "https://cb/"


class StubDispatcher:
    """Records execute() calls and replays a canned response."""

    def __init__(self, status: int = 200, body: str = ""):
        self.response = ResponseEnvelope(status=status, body=body)
        self.calls: list[tuple] = []

    def execute(self, path, params=None, verb="post", options=None):
        self.calls.append((path, dict(params or {}), verb, options))
        return self.response


def make_oauth(status: int = 200, body: str = "", callback=CALLBACK):
    stub = StubDispatcher(status, body)
    return OAuth(APP_ID, SECRET, callback, dispatcher=stub), stub


def test_attributes():
    oauth = OAuth(123, SECRET, CALLBACK)
    assert oauth.app_id == "123"
    assert oauth.app_secret == SECRET
    assert oauth.callback_url == CALLBACK
    assert OAuth(APP_ID, SECRET).callback_url is None


# URLs


def test_authorization_url_defaults():
    oauth, _ = make_oauth()
    assert oauth.authorization_url() == f"https://{GRAPH_SERVER}/oauth/authorize?client_id=123&redirect_uri=https://cb/"


def test_authorization_url_with_permission_list_and_string():
    oauth, _ = make_oauth()
    base = f"https://{GRAPH_SERVER}/oauth/authorize?client_id=123&redirect_uri=https://cb/"
    assert oauth.authorization_url(permissions=["a", "b"]) == base + "&scope=a,b"
    assert oauth.authorization_url(permissions="publish_stream,read_stream") == base + "&scope=publish_stream,read_stream"


def test_authorization_url_with_callback_and_display():
    oauth, _ = make_oauth()
    url = oauth.authorization_url(callback="foo.com", permissions="x", display="page")
    assert url == f"https://{GRAPH_SERVER}/oauth/authorize?client_id=123&redirect_uri=foo.com&scope=x&display=page"


def test_authorization_url_requires_a_callback():
    oauth, _ = make_oauth(callback=None)
    with pytest.raises(ConfigurationError):
        oauth.authorization_url()
    assert oauth.authorization_url(callback="foo.com").endswith("redirect_uri=foo.com")


def test_token_exchange_url():
    oauth, _ = make_oauth()
    assert oauth.token_exchange_url("code1") == (
        f"https://{GRAPH_SERVER}/oauth/access_token"
        "?client_id=123&redirect_uri=https://cb/&client_secret=abc&code=code1"
    )
    assert "redirect_uri=foo.com&" in oauth.token_exchange_url("code1", callback="foo.com")


def test_token_exchange_url_requires_a_callback():
    oauth, _ = make_oauth(callback=None)
    with pytest.raises(ConfigurationError):
        oauth.token_exchange_url("code1")


# token parsing


def test_parse_short_lived_token():
    result = parse_access_token("access_token=123%7Cabc&expires=5183999")
    assert result == {"access_token": "123|abc", "expires": "5183999"}


def test_parse_offline_token():
    result = parse_access_token("access_token=123|abc")
    assert result["access_token"] == "123|abc"
    assert "expires" not in result


def test_parse_json_token():
    result = parse_access_token('{"access_token": "tok", "token_type": "bearer", "expires_in": 60}')
    assert result["access_token"] == "tok"
    assert result["expires_in"] == 60


# token exchange


def test_fetch_access_token_info_calls_token_endpoint():
    oauth, stub = make_oauth(body="access_token=tok&expires=3600")
    assert oauth.fetch_access_token_info("code1") == {"access_token": "tok", "expires": "3600"}

    path, params, verb, options = stub.calls[0]
    assert path == "/oauth/access_token"
    assert verb == "get"
    assert params == {"client_id": APP_ID, "client_secret": SECRET, "code": "code1", "redirect_uri": CALLBACK}
    assert options.use_ssl is True


def test_fetch_access_token_returns_string():
    oauth, _ = make_oauth(body="access_token=tok")
    assert oauth.fetch_access_token("code1") == "tok"


def test_options_are_passed_through():
    oauth, stub = make_oauth(body="access_token=tok")
    oauth.fetch_access_token("code1", options=RequestOptions(timeout=5, use_ssl=False))
    options = stub.calls[0][3]
    assert options.timeout == 5
    assert options.use_ssl is False


def test_bad_code_raises_api_error():
    body = json.dumps({"error": {"type": "OAuthException", "message": "Error validating verification code."}})
    oauth, _ = make_oauth(status=400, body=body)
    with pytest.raises(APIError) as excinfo:
        oauth.fetch_access_token_info("foo")
    assert excinfo.value.fb_error_type == "OAuthException"
    assert excinfo.value.status == 400


def test_non_graph_error_body_is_reported_raw():
    oauth, _ = make_oauth(status=502, body="Bad Gateway")
    with pytest.raises(APIError) as excinfo:
        oauth.fetch_app_access_token_info()
    assert excinfo.value.fb_error_type == "HTTP 502"
    assert "Bad Gateway" in excinfo.value.fb_error_message


def test_empty_token_body_raises_api_error():
    oauth, _ = make_oauth(body="")
    with pytest.raises(APIError):
        oauth.fetch_access_token_info("code1")


def test_app_access_token_uses_client_credentials():
    oauth, stub = make_oauth(body="access_token=123|xyz")
    assert oauth.fetch_app_access_token() == "123|xyz"

    path, params, verb, _ = stub.calls[0]
    assert path == "/oauth/access_token"
    assert verb == "post"
    assert params["grant_type"] == "client_credentials"
    assert params["client_id"] == APP_ID


def test_token_exchange_over_the_wire():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen.append(request)
        return httpx.Response(200, text="access_token=tok&expires=60")

    dispatcher = RequestDispatcher(transport=httpx.MockTransport(handler))
    oauth = OAuth(APP_ID, SECRET, CALLBACK, dispatcher=dispatcher)
    assert oauth.fetch_access_token_info("code1")["access_token"] == "tok"

    request = seen[0]
    assert request.url.scheme == "https"
    assert request.url.host == GRAPH_SERVER
    assert request.url.path == "/oauth/access_token"
    assert request.url.params["code"] == "code1"


# session keys


def test_exchange_session_keys_keeps_slots_in_order():
    oauth, stub = make_oauth(body=json.dumps([None, {"access_token": "good", "expires": 100}]))
    result = oauth.exchange_session_keys(["bad", "good"])
    assert result == [None, {"access_token": "good", "expires": 100}]

    path, params, verb, _ = stub.calls[0]
    assert path == "/oauth/exchange_sessions"
    assert verb == "post"
    assert params["sessions"] == "bad,good"


def test_exchange_no_keys():
    oauth, _ = make_oauth(body="[]")
    assert oauth.exchange_session_keys([]) == []


def test_exchange_all_invalid_keys():
    oauth, _ = make_oauth(body="[null, null]")
    assert oauth.exchange_session_keys(["foo", "bar"]) == [None, None]


def test_exchange_empty_body_raises_api_error():
    oauth, _ = make_oauth(body="")
    with pytest.raises(APIError):
        oauth.exchange_session_keys(["a", "b"])


def test_tokens_from_session_keys():
    oauth, _ = make_oauth(body=json.dumps([None, {"access_token": "t1"}]))
    assert oauth.tokens_from_session_keys(["foo", "k"]) == [None, "t1"]


def test_token_from_session_key():
    oauth, _ = make_oauth(body=json.dumps([{"access_token": "t1"}]))
    assert oauth.token_from_session_key("k") == "t1"

    invalid, _ = make_oauth(body="[null]")
    assert invalid.token_from_session_key("foo") is None


# cookies and signed requests


def _cookies(**components):
    return {f"fbs_{APP_ID}": '"' + sign_cookie(components, SECRET) + '"'}


def test_parse_cookies_valid():
    oauth, _ = make_oauth()
    cookies = _cookies(access_token="tok", expires=str(int(time.time()) + 600), uid="42")
    result = oauth.parse_cookies(cookies)
    assert result["uid"] == "42"
    assert len(result) == 4
    assert oauth.user_from_cookies(cookies) == "42"


def test_parse_cookies_missing_entry():
    oauth, _ = make_oauth()
    assert oauth.parse_cookies({"fbs_999": "uid=1"}) is None
    assert oauth.user_from_cookies({}) is None


def test_parse_cookies_tampered_values():
    oauth, _ = make_oauth()
    cookies = _cookies(access_token="tok1", expires="0", uid="42")
    tampered = {key: value.replace("4", "3") for key, value in cookies.items()}
    assert oauth.parse_cookies(tampered) is None
    assert oauth.user_from_cookies(tampered) is None


def test_parse_signed_request_with_app_secret():
    oauth, _ = make_oauth()
    payload = {"algorithm": "HMAC-SHA256", "code": "abc", "user_id": "42"}
    assert oauth.parse_signed_request(build_signed_request(payload, SECRET)) == payload

    with pytest.raises(SignatureError):
        oauth.parse_signed_request(build_signed_request(payload, "not-the-secret"))
