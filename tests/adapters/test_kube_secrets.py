"""Kubernetes secret volume tests."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from lib_config_providers import ConfigurationBuilder
from lib_config_providers.adapters.kube_secrets.default import (
    KubeSecretsSource,
    PhysicalFileProvider,
    normalize_secret_name,
)
from lib_config_providers.domain.errors import ArgumentError, DirectoryNotFound, InvalidFormat


@dataclass
class FakeEntry:
    name: str
    content: str = ""
    is_directory: bool = False

    def read_text(self) -> str:
        return self.content


@dataclass
class FakeFileProvider:
    entries: list[FakeEntry] | None

    def get_directory_contents(self):
        return None if self.entries is None else iter(self.entries)


def test_secret_file_becomes_key(tmp_path: Path) -> None:
    (tmp_path / "Secret0__Secret1__Key").write_text("SecretValue", encoding="utf-8")
    provider = KubeSecretsSource(tmp_path).build()
    provider.load()
    assert provider.get("Secret0:Secret1:Key") == "SecretValue"
    assert provider.get_child_keys("secret0") == ["Secret1"]
    assert provider.location == str(tmp_path)


def test_content_is_not_trimmed(tmp_path: Path) -> None:
    (tmp_path / "password").write_bytes(b"  s3cret\r\n")
    provider = KubeSecretsSource(str(tmp_path)).build()
    provider.load()
    assert provider.get("password") == "  s3cret\r\n"


def test_subdirectories_are_skipped(tmp_path: Path) -> None:
    nested = tmp_path / "..data"
    nested.mkdir()
    (nested / "inner").write_text("hidden", encoding="utf-8")
    (tmp_path / "visible").write_text("yes", encoding="utf-8")
    provider = KubeSecretsSource(tmp_path).build()
    provider.load()
    assert dict(provider.data) == {"visible": "yes"}


def test_ignore_condition_filters_names(tmp_path: Path) -> None:
    (tmp_path / "keep").write_text("1", encoding="utf-8")
    (tmp_path / "skip.tmp").write_text("2", encoding="utf-8")
    provider = KubeSecretsSource(tmp_path, ignore_condition=lambda name: name.endswith(".tmp")).build()
    provider.load()
    assert dict(provider.data) == {"keep": "1"}


def test_missing_directory(tmp_path: Path) -> None:
    missing = tmp_path / "absent"
    with pytest.raises(DirectoryNotFound, match="Kube secrets directory doesn't exist and is not optional."):
        KubeSecretsSource(missing).build().load()
    optional = KubeSecretsSource(missing, optional=True).build()
    optional.load()
    assert len(optional.data) == 0


def test_file_provider_port() -> None:
    provider = KubeSecretsSource(
        file_provider=FakeFileProvider([FakeEntry("Db__User", "admin"), FakeEntry("nested", is_directory=True)])
    ).build()
    provider.load()
    assert dict(provider.data) == {"Db:User": "admin"}
    assert provider.location is None


def test_file_provider_without_directory() -> None:
    with pytest.raises(DirectoryNotFound):
        KubeSecretsSource(file_provider=FakeFileProvider(None)).build().load()


def test_reload_reflects_changes(tmp_path: Path) -> None:
    secret = tmp_path / "token"
    secret.write_text("v1", encoding="utf-8")
    provider = KubeSecretsSource(tmp_path).build()
    provider.load()
    secret.write_text("v2", encoding="utf-8")
    (tmp_path / "added").write_text("new", encoding="utf-8")
    provider.load()
    assert dict(provider.data) == {"added": "new", "token": "v2"}


def test_colliding_names_are_rejected() -> None:
    entries = [FakeEntry("a__b", "1"), FakeEntry("A__B", "2")]
    with pytest.raises(InvalidFormat, match="duplicate key"):
        KubeSecretsSource(file_provider=FakeFileProvider(entries)).build().load()


@pytest.mark.parametrize(
    "kwargs",
    [{}, {"secrets_directory": "  "}, {"secrets_directory": "/run/secrets", "file_provider": FakeFileProvider([])}],
)
def test_exactly_one_location_required(kwargs: dict) -> None:
    with pytest.raises(ArgumentError):
        KubeSecretsSource(**kwargs)


def test_physical_provider_lists_sorted_entries(tmp_path: Path) -> None:
    for name in ("b", "a"):
        (tmp_path / name).write_text(name, encoding="utf-8")
    names = [entry.name for entry in PhysicalFileProvider(tmp_path).get_directory_contents()]
    assert names == ["a", "b"]
    assert PhysicalFileProvider(tmp_path / "missing").get_directory_contents() is None


def test_normalize_secret_name() -> None:
    assert normalize_secret_name("plain") == "plain"
    assert normalize_secret_name("a__b__c") == "a:b:c"


def test_binary_secret_is_loaded(tmp_path: Path) -> None:
    (tmp_path / "keystore").write_bytes(b"\xff\xfe\x00binary")
    (tmp_path / "plain").write_text("ok", encoding="utf-8")
    provider = KubeSecretsSource(tmp_path).build()
    provider.load()
    assert provider.get("keystore").endswith("binary")
    assert "\ufffd" in provider.get("keystore")
    assert provider.get("plain") == "ok"


def test_binary_secret_does_not_break_optional_build(tmp_path: Path) -> None:
    (tmp_path / "keystore").write_bytes(b"\xff\xfe\x00binary")
    root = ConfigurationBuilder().add_kube_secrets(tmp_path, optional=True).build()
    assert "keystore" in root


def test_unreadable_secret_file() -> None:
    class UnreadableEntry(FakeEntry):
        def read_text(self) -> str:
            raise PermissionError("denied")

    source = KubeSecretsSource(file_provider=FakeFileProvider([UnreadableEntry("token")]))
    with pytest.raises(InvalidFormat, match="'token'"):
        source.build().load()
