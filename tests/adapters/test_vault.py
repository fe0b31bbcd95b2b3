"""Vault source and client tests."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from lib_config_providers.adapters.vault.client import (
    AppRoleAuth,
    HttpVaultClient,
    InMemoryVaultClient,
    TokenAuth,
    UserPassAuth,
)
from lib_config_providers.adapters.vault.manager import VaultSecretManager
from lib_config_providers.adapters.vault.mapping import SecretContext, VaultSecretMapping
from lib_config_providers.adapters.vault.provider import VaultSource, unwrap_versioned
from lib_config_providers.domain.errors import ArgumentError, HttpError, InvalidFormat, NotFound

VAULT = "http://vault.local:8200"


def load(client, *mappings: VaultSecretMapping, **options) -> dict:
    provider = VaultSource(client, mappings, **options).build()
    provider.load()
    return dict(provider.data)


def test_plain_secret_keys() -> None:
    client = InMemoryVaultClient({"secret/app": {"Secret1": "Value1"}})
    assert load(client, VaultSecretMapping(None, "secret/app")) == {"Secret1": "Value1"}


def test_versioned_secret_matches_plain_secret() -> None:
    plain = InMemoryVaultClient({"secret/app": {"Secret1": "Value1"}})
    versioned = InMemoryVaultClient({"secret/app": {"data": {"Secret1": "Value1"}, "metadata": ""}})
    mapping = VaultSecretMapping("app", "secret/app")
    assert load(versioned, mapping) == load(plain, mapping) == {"app:Secret1": "Value1"}


def test_unwrap_requires_metadata_and_mapping_data() -> None:
    assert unwrap_versioned({"data": {"a": "1"}}) == {"data": {"a": "1"}}
    assert unwrap_versioned({"data": {"a": "1"}, "metadata": {}}) == {"a": "1"}


def test_mappings_load_in_order_under_prefixes() -> None:
    client = InMemoryVaultClient({"secret/db": {"user": "admin"}, "secret/cache": {"user": "cache"}})
    data = load(client, VaultSecretMapping("db", "secret/db"), VaultSecretMapping("cache", "secret/cache"))
    assert data == {"cache:user": "cache", "db:user": "admin"}


def test_repeated_prefix_is_rejected() -> None:
    client = InMemoryVaultClient()
    with pytest.raises(ArgumentError, match="'X' is repeated"):
        VaultSource(client, [VaultSecretMapping("x", "secret/a"), VaultSecretMapping("X", "secret/b")])


def test_empty_prefixes_may_repeat() -> None:
    client = InMemoryVaultClient({"secret/a": {"one": "1"}, "secret/b": {"two": "2"}})
    mappings = [VaultSecretMapping(None, "secret/a"), VaultSecretMapping("", "secret/b")]
    assert load(client, *mappings) == {"one": "1", "two": "2"}


def test_duplicate_key_across_mappings_is_rejected() -> None:
    client = InMemoryVaultClient({"secret/a": {"key": "1"}, "secret/b": {"KEY": "2"}})
    with pytest.raises(InvalidFormat, match="duplicate key"):
        load(client, *VaultSecretMapping.from_paths("secret/a", "secret/b"))


def test_as_json_flattens_under_prefix() -> None:
    client = InMemoryVaultClient(
        {
            "secret/one": {"secret1": '{"value": "plain"}'},
            "secret/two": {"secret2": '{"test": {"value": "something"}}'},
        }
    )
    data = load(
        client,
        VaultSecretMapping(None, "secret/one"),
        VaultSecretMapping("prefix", "secret/two"),
        as_json=True,
    )
    assert data == {"prefix:test:value": "something", "value": "plain"}


@pytest.mark.parametrize("value", ["not json", '["a"]', 42])
def test_as_json_rejects_non_objects(value) -> None:
    client = InMemoryVaultClient({"secret/app": {"key": value}})
    with pytest.raises(InvalidFormat):
        load(client, VaultSecretMapping(None, "secret/app"), as_json=True)


def test_nested_values_are_flattened() -> None:
    client = InMemoryVaultClient({"secret/app": {"pool": {"size": 4, "hosts": ["a", "b"]}, "flag": True}})
    assert load(client, VaultSecretMapping("svc", "secret/app")) == {
        "svc:flag": "true",
        "svc:pool:hosts:0": "a",
        "svc:pool:hosts:1": "b",
        "svc:pool:size": "4",
    }


def test_manager_filters_and_renames() -> None:
    def should_load(context: SecretContext, key: str) -> bool:
        return not key.startswith("internal")

    def map_key(context: SecretContext, key: str) -> str:
        return key.replace("__", ":")

    client = InMemoryVaultClient({"secret/app": {"Db__Host": "db", "internal_note": "x"}})
    manager = VaultSecretManager(should_load=should_load, map_key=map_key)
    assert load(client, VaultSecretMapping("app", "secret/app"), manager=manager) == {"app:Db:Host": "db"}


def test_missing_secret_propagates() -> None:
    with pytest.raises(NotFound):
        load(InMemoryVaultClient(), VaultSecretMapping(None, "secret/missing"))


def test_reload_reads_again() -> None:
    client = InMemoryVaultClient({"secret/app": {"token": "v1"}})
    provider = VaultSource(client, [VaultSecretMapping(None, "secret/app")]).build()
    provider.load()
    client.put_secret("secret/app", {"token": "v2"})
    provider.load()
    assert provider.get("token") == "v2"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"client": None, "mappings": [VaultSecretMapping(None, "secret/a")]},
        {"client": InMemoryVaultClient(), "mappings": []},
        {"client": InMemoryVaultClient(), "mappings": [VaultSecretMapping(None, "secret/a")], "manager": None},
    ],
)
def test_invalid_source_arguments(kwargs: dict) -> None:
    with pytest.raises(ArgumentError):
        VaultSource(**kwargs)


@pytest.mark.parametrize("prefix", [":db", "db:", " db: "])
def test_mapping_prefix_validation(prefix: str) -> None:
    with pytest.raises(ArgumentError):
        VaultSecretMapping(prefix, "secret/db")


def test_mapping_requires_path() -> None:
    with pytest.raises(ArgumentError):
        VaultSecretMapping("db", " ")


@pytest.mark.parametrize(
    "factory",
    [
        lambda: TokenAuth(""),
        lambda: UserPassAuth("", "pass"),
        lambda: UserPassAuth("user", " "),
        lambda: AppRoleAuth("role", ""),
        lambda: AppRoleAuth("role", "secret", mount_point=""),
    ],
)
def test_empty_credentials_rejected(factory) -> None:
    with pytest.raises(ArgumentError, match="must not be null or empty"):
        factory()


@respx.mock
def test_http_client_token_and_namespace() -> None:
    route = respx.get(f"{VAULT}/v1/secret/data/app").mock(
        return_value=httpx.Response(200, json={"data": {"data": {"password": "s3cret"}, "metadata": {"version": 1}}})
    )
    client = HttpVaultClient(VAULT, TokenAuth("root"), namespace="team-a")
    try:
        assert load(client, VaultSecretMapping("db", "/secret/data/app")) == {"db:password": "s3cret"}
    finally:
        client.close()
    headers = route.calls.last.request.headers
    assert headers["X-Vault-Token"] == "root"
    assert headers["X-Vault-Namespace"] == "team-a"


@respx.mock
def test_http_client_userpass_login_happens_once() -> None:
    login = respx.post(f"{VAULT}/v1/auth/userpass/login/alice").mock(
        return_value=httpx.Response(200, json={"auth": {"client_token": "t-1"}})
    )
    read = respx.get(f"{VAULT}/v1/secret/app").mock(return_value=httpx.Response(200, json={"data": {"k": "v"}}))
    client = HttpVaultClient(VAULT, UserPassAuth("alice", "pw"))
    client.read_secret("secret/app")
    client.read_secret("secret/app")
    assert login.call_count == 1
    assert json.loads(login.calls.last.request.content) == {"password": "pw"}
    assert read.calls.last.request.headers["X-Vault-Token"] == "t-1"


@respx.mock
def test_http_client_approle_login() -> None:
    login = respx.post(f"{VAULT}/v1/auth/custom/login").mock(
        return_value=httpx.Response(200, json={"auth": {"client_token": "t-2"}})
    )
    respx.get(f"{VAULT}/v1/secret/app").mock(return_value=httpx.Response(200, json={"data": {"k": "v"}}))
    client = HttpVaultClient(VAULT, AppRoleAuth("role", "secret", mount_point="custom"))
    assert client.read_secret("secret/app") == {"k": "v"}
    assert b'"role_id"' in login.calls.last.request.content


@pytest.mark.parametrize("status", [403, 404])
@respx.mock
def test_http_client_error_status(status: int) -> None:
    respx.get(f"{VAULT}/v1/secret/app").mock(return_value=httpx.Response(status))
    client = HttpVaultClient(VAULT, TokenAuth("root"))
    with pytest.raises(HttpError) as excinfo:
        client.read_secret("secret/app")
    assert excinfo.value.status_code == status


@respx.mock
def test_http_client_login_without_token() -> None:
    respx.post(f"{VAULT}/v1/auth/userpass/login/alice").mock(return_value=httpx.Response(200, json={"auth": {}}))
    with pytest.raises(HttpError, match="client token"):
        HttpVaultClient(VAULT, UserPassAuth("alice", "pw")).read_secret("secret/app")


@respx.mock
def test_http_client_transport_failure() -> None:
    respx.get(f"{VAULT}/v1/secret/app").mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(HttpError):
        HttpVaultClient(VAULT, TokenAuth("root")).read_secret("secret/app")


def test_provider_closes_owned_client_only() -> None:
    class ClosingClient(InMemoryVaultClient):
        closed = False

        def close(self) -> None:
            self.closed = True

    borrowed = ClosingClient()
    VaultSource(borrowed, [VaultSecretMapping(None, "s")]).build().close()
    assert borrowed.closed is False
    owned = ClosingClient()
    VaultSource(owned, [VaultSecretMapping(None, "s")], close_client=True).build().close()
    assert owned.closed is True
