"""Vault clients.

Purpose
-------
Implement the :class:`~lib_config_providers.application.ports.SecretStoreClient`
port over the Vault HTTP API, plus an in-memory store for tests and local runs.

Contents
--------
* :class:`TokenAuth`, :class:`UserPassAuth`, :class:`AppRoleAuth` – login
  methods; each validates its credentials on construction.
* :class:`HttpVaultClient` – logs in lazily, then reads ``GET /v1/<path>``.
* :class:`InMemoryVaultClient` – dictionary-backed store.

System Role
-----------
Used by :class:`~lib_config_providers.adapters.vault.provider.VaultSource`. HTTP
failures surface as :class:`~lib_config_providers.domain.errors.HttpError`;
secret values never reach the logs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from ...domain.errors import ArgumentError, HttpError, NotFound
from ...observability import log_debug
from ..remote.http import DEFAULT_TIMEOUT, USER_AGENT


def _require(value: str | None, name: str) -> None:
    if not value or not value.strip():
        raise ArgumentError(f"{name} must not be null or empty")


@dataclass(frozen=True)
class TokenAuth:
    """Use a pre-issued token as is."""

    token: str = field(repr=False)

    def __post_init__(self) -> None:
        _require(self.token, "token")

    def login(self, client: httpx.Client) -> str:
        return self.token


@dataclass(frozen=True)
class UserPassAuth:
    """Exchange username and password for a token at ``auth/<mount_point>/login/<username>``."""

    username: str
    password: str = field(repr=False)
    mount_point: str = "userpass"

    def __post_init__(self) -> None:
        _require(self.mount_point, "mount_point")
        _require(self.username, "username")
        _require(self.password, "password")

    def login(self, client: httpx.Client) -> str:
        response = client.post(f"/v1/auth/{self.mount_point}/login/{self.username}", json={"password": self.password})
        return _client_token(response)


@dataclass(frozen=True)
class AppRoleAuth:
    """Exchange role and secret ids for a token at ``auth/<mount_point>/login``."""

    role_id: str
    secret_id: str = field(repr=False)
    mount_point: str = "approle"

    def __post_init__(self) -> None:
        _require(self.mount_point, "mount_point")
        _require(self.role_id, "role_id")
        _require(self.secret_id, "secret_id")

    def login(self, client: httpx.Client) -> str:
        response = client.post(
            f"/v1/auth/{self.mount_point}/login", json={"role_id": self.role_id, "secret_id": self.secret_id}
        )
        return _client_token(response)


VaultAuth = TokenAuth | UserPassAuth | AppRoleAuth


class HttpVaultClient:
    """Read secrets over the Vault HTTP API.

    Why
    ----
    Login is deferred to the first read so registering a Vault source never
    touches the network.

    Examples
    --------
    >>> def handler(request):
    ...     assert request.headers["X-Vault-Token"] == "root"
    ...     return httpx.Response(200, json={"data": {"password": "s3cret"}})
    >>> client = HttpVaultClient(
    ...     "http://vault:8200", TokenAuth("root"), transport=httpx.MockTransport(handler)
    ... )
    >>> client.read_secret("secret/app")
    {'password': 's3cret'}
    >>> client.close()
    """

    def __init__(
        self,
        uri: str,
        auth: VaultAuth,
        *,
        namespace: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        _require(uri, "uri")
        if auth is None:
            raise ArgumentError("auth must not be null")
        headers = {"User-Agent": USER_AGENT}
        if namespace:
            headers["X-Vault-Namespace"] = namespace
        self._auth = auth
        self._token: str | None = None
        self._client = httpx.Client(base_url=uri, headers=headers, timeout=timeout, transport=transport)

    def read_secret(self, path: str) -> Mapping[str, Any]:
        """Return the ``data`` member of the secret stored at *path*.

        Raises
        ------
        HttpError
            Login failed, the request failed or returned a non-success status
            (``status_code`` is set), or the response was not a JSON object.
        """

        token = self._login()
        try:
            response = self._client.get(f"/v1/{path.lstrip('/')}", headers={"X-Vault-Token": token})
        except httpx.HTTPError as exc:
            raise HttpError(f"Error reading Vault secret '{path}': {exc}") from exc
        payload = _json_body(response, f"Error reading Vault secret '{path}'")
        log_debug("vault_secret_fetched", source="vault", location=path, status=response.status_code)
        data = payload.get("data")
        if not isinstance(data, Mapping):
            raise HttpError(f"Vault secret '{path}' has no data", status_code=response.status_code)
        return data

    def close(self) -> None:
        self._client.close()

    def _login(self) -> str:
        if self._token is None:
            try:
                self._token = self._auth.login(self._client)
            except httpx.HTTPError as exc:
                raise HttpError(f"Error logging in to Vault: {exc}") from exc
        return self._token


class InMemoryVaultClient:
    """Secret store held in a dictionary.

    >>> client = InMemoryVaultClient({"secret/app": {"password": "s3cret"}})
    >>> client.put_secret("secret/other", {"user": "admin"})
    >>> client.read_secret("secret/other")
    {'user': 'admin'}
    """

    def __init__(self, secrets: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._store: dict[str, Mapping[str, Any]] = dict(secrets or {})

    def put_secret(self, path: str, data: Mapping[str, Any]) -> None:
        self._store[path] = data

    def read_secret(self, path: str) -> Mapping[str, Any]:
        secret = self._store.get(path)
        if secret is None:
            raise NotFound(f"Vault secret '{path}' was not found")
        return secret


def _client_token(response: httpx.Response) -> str:
    payload = _json_body(response, "Error logging in to Vault")
    token = (payload.get("auth") or {}).get("client_token")
    if not token:
        raise HttpError("Vault login response did not contain a client token", status_code=response.status_code)
    return token


def _json_body(response: httpx.Response, context: str) -> dict[str, Any]:
    if not response.is_success:
        raise HttpError(
            f"{context}: {response.status_code} ({response.reason_phrase})",
            status_code=response.status_code,
            reason=response.reason_phrase,
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise HttpError(f"{context}: response is not JSON", status_code=response.status_code) from exc
    if not isinstance(payload, dict):
        raise HttpError(f"{context}: response is not a JSON object", status_code=response.status_code)
    return payload
