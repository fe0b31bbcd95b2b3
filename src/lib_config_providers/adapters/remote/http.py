"""Remote HTTP configuration source.

Purpose
-------
Fetch one configuration document per load from an HTTP endpoint, parse it with a
pluggable parser and expose the result as a provider.

Contents
--------
* :class:`AuthenticationType` – none, basic or bearer.
* :class:`RemoteSource` – validated, immutable endpoint description.
* :class:`RemoteProvider` – owns one :class:`httpx.Client` and performs the GET.

System Role
-----------
Registered through ``ConfigurationBuilder.add_remote``. Errors surface as
:class:`~lib_config_providers.domain.errors.HttpError`; optional endpoints
degrade to an empty map.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Final

import httpx

from ...application.ports import ConfigurationParser
from ...application.provider import ConfigurationProvider
from ...domain.errors import ArgumentError, ConfigError, HttpError
from ...domain.flatmap import FlatMap
from ...domain.keys import validate_prefix
from ...observability import log_debug, log_warning
from ..parsers.json_parser import JsonParser

DEFAULT_MEDIA_TYPE: Final[str] = "application/json"
DEFAULT_TIMEOUT: Final[float] = 60.0
MAX_RESPONSE_BYTES: Final[int] = 10 * 1024 * 1024
USER_AGENT: Final[str] = "lib-config-providers"


class AuthenticationType(str, Enum):
    """Authorization scheme attached to every remote request."""

    NONE = "none"
    BASIC = "basic"
    BEARER = "bearer"


@dataclass(frozen=True)
class RemoteSource:
    """Describe a remote configuration endpoint.

    Why
    ----
    All argument checks run here so a misconfigured endpoint fails when it is
    registered, before any request is made.

    Parameters
    ----------
    uri:
        Absolute URL of the document.
    optional:
        Swallow fetch and parse failures, contributing no data.
    media_type:
        Value of the ``Accept`` header.
    parser:
        Turns the response body into flat data; JSON by default.
    prefix:
        Key prefix; surrounding whitespace is stripped and it must not start or
        end with ``:``.
    authentication / username / password / token:
        Basic auth requires both credentials, bearer auth requires a token.
    timeout:
        Seconds before the request is abandoned.
    transport:
        Optional :class:`httpx.BaseTransport` (tests, proxies, custom TLS).
    on_sending_request:
        Called with the :class:`httpx.Request` just before it is sent.
    on_data_parsed:
        Called with the parsed :class:`FlatMap`; its return value is stored.

    Examples
    --------
    >>> RemoteSource("https://config.local/app.json", prefix=" app ").prefix
    'app'
    >>> RemoteSource("https://config.local/app.json", authentication=AuthenticationType.BEARER)
    Traceback (most recent call last):
    ...
    lib_config_providers.domain.errors.ArgumentError: Token can not be empty for bearer authentication
    """

    uri: str | httpx.URL
    optional: bool = False
    media_type: str = DEFAULT_MEDIA_TYPE
    parser: ConfigurationParser = field(default_factory=JsonParser)
    prefix: str | None = None
    authentication: AuthenticationType = AuthenticationType.NONE
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    token: str | None = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT
    transport: httpx.BaseTransport | None = field(default=None, repr=False, compare=False)
    on_sending_request: Callable[[httpx.Request], None] | None = field(default=None, compare=False)
    on_data_parsed: Callable[[FlatMap], FlatMap] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.uri:
            raise ArgumentError("The value for 'uri' must be provided")
        url = httpx.URL(self.uri)
        if not url.scheme or not url.host:
            raise ArgumentError(f"The value for 'uri' must be an absolute URL, got {str(self.uri)!r}")
        object.__setattr__(self, "prefix", validate_prefix(self.prefix))
        if self.authentication is AuthenticationType.BASIC and (not self.username or not self.password):
            raise ArgumentError("Username or password can not be empty for basic authentication")
        if self.authentication is AuthenticationType.BEARER and not self.token:
            raise ArgumentError("Token can not be empty for bearer authentication")
        if self.timeout <= 0:
            raise ArgumentError("The value for 'timeout' must be positive")

    def build(self) -> RemoteProvider:
        return RemoteProvider(self)


class RemoteProvider(ConfigurationProvider):
    """Load configuration with a single blocking GET per :meth:`load`."""

    name = "remote"

    def __init__(
        self,
        source: RemoteSource,
        *,
        max_response_bytes: int = MAX_RESPONSE_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self.source = source
        self._max_response_bytes = max_response_bytes
        self._clock = clock
        self._client = _make_client(source)

    @property
    def location(self) -> str | None:
        return str(self.source.uri)

    def load(self) -> None:
        """Fetch, parse and store the remote document.

        Raises
        ------
        HttpError
            Non-success status, transport failure, timeout or oversized body
            on a required endpoint.
        InvalidFormat
            The body could not be parsed on a required endpoint.
        """

        try:
            self.data = self._fetch()
        except ConfigError as exc:
            if not self.source.optional:
                raise
            log_warning("remote_failed", source=self.name, location=self.location, error=str(exc))
            self.data = FlatMap()

    def close(self) -> None:
        self._client.close()

    def _fetch(self) -> FlatMap:
        request = self._client.build_request("GET", self.source.uri, headers={"Accept": self.source.media_type})
        if self.source.on_sending_request is not None:
            self.source.on_sending_request(request)
        log_debug("remote_request", source=self.name, location=self.location)
        deadline = self._clock() + self.source.timeout
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise HttpError(f"Error calling remote configuration endpoint: {exc}") from exc
        try:
            log_debug("remote_response", source=self.name, location=self.location, status=response.status_code)
            if not response.is_success:
                raise HttpError(
                    f"Error calling remote configuration endpoint: {response.status_code} ({response.reason_phrase})",
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                )
            body = self._read_body(response, deadline)
        finally:
            response.close()
        data = self.source.parser.parse(body, self.source.prefix)
        if self.source.on_data_parsed is not None:
            data = self.source.on_data_parsed(data)
            if not isinstance(data, FlatMap):
                data = FlatMap(data)
        return data

    def _read_body(self, response: httpx.Response, deadline: float) -> bytes:
        """Read the streamed body within the size limit and the request deadline."""

        limit = self._max_response_bytes
        declared = response.headers.get("Content-Length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            raise HttpError(f"Remote configuration response exceeds {limit} bytes", status_code=response.status_code)
        self._check_deadline(deadline)
        body = bytearray()
        try:
            for chunk in response.iter_bytes():
                body.extend(chunk)
                if len(body) > limit:
                    raise HttpError(
                        f"Remote configuration response exceeds {limit} bytes", status_code=response.status_code
                    )
                self._check_deadline(deadline)
        except httpx.HTTPError as exc:
            raise HttpError(f"Error calling remote configuration endpoint: {exc}") from exc
        return bytes(body)

    def _check_deadline(self, deadline: float) -> None:
        # The client timeout bounds each read, the deadline bounds the whole exchange.
        if self._clock() > deadline:
            raise HttpError(
                "Error calling remote configuration endpoint: "
                f"no complete response within {self.source.timeout} seconds"
            )


def _make_client(source: RemoteSource) -> httpx.Client:
    headers = {"User-Agent": USER_AGENT}
    auth: httpx.Auth | None = None
    if source.authentication is AuthenticationType.BASIC:
        auth = httpx.BasicAuth(source.username or "", source.password or "")
    elif source.authentication is AuthenticationType.BEARER:
        headers["Authorization"] = f"Bearer {source.token}"
    return httpx.Client(headers=headers, auth=auth, timeout=source.timeout, transport=source.transport)

