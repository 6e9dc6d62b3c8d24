"""
Request verbs, per-call options and resolved connection settings.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class Get(BaseModel):
    model_config = ConfigDict(frozen=True)


class Post(BaseModel):
    model_config = ConfigDict(frozen=True)


class CustomMethod(BaseModel):
    """A verb the transport can't express; sent as POST with a `method` param."""
    model_config = ConfigDict(frozen=True)

    name: str


Verb = Union[Get, Post, CustomMethod]


def resolve_verb(verb: Optional[str]) -> Verb:
    """Map a verb string to Get, Post or CustomMethod.

    ``get`` and ``post`` match in any case, so ``"GET"`` is a real GET.
    Koala matches only the exact lowercase strings and sends ``"GET"`` as
    ``method=GET`` over POST. Empty or missing verbs mean POST; any other
    name is kept verbatim.
    """
    if not verb:
        return Post()
    lowered = verb.lower()
    if lowered == "get":
        return Get()
    if lowered == "post":
        return Post()
    return CustomMethod(name=verb)


class RequestOptions(BaseModel):
    """Per-call overrides. ``None`` means "not given", so defaults apply."""
    model_config = ConfigDict(frozen=True)

    use_ssl: Optional[bool] = None
    proxy: Optional[str] = None
    timeout: Optional[float] = None
    ca_file: Optional[str] = None
    ca_path: Optional[str] = None
    rest_api: bool = False


class ProxyConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int
    user: Optional[str] = None
    password: Optional[str] = None
    scheme: str = "http"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


class ConnectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: Optional[int] = None
    use_ssl: bool = False
    proxy: Optional[ProxyConfig] = None
    open_timeout: Optional[float] = None
    read_timeout: Optional[float] = None
    ca_file: Optional[str] = None
    ca_path: Optional[str] = None

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        if self.port is None:
            return f"{scheme}://{self.host}"
        return f"{scheme}://{self.host}:{self.port}"
