from __future__ import annotations

import io
from pathlib import Path
from types import SimpleNamespace

import pytest

from lib_config_providers.adapters.files.sources import FileConfigurationProvider, FileSource, StaticSource, read_stream
from lib_config_providers.adapters.parsers.json_parser import JsonParser
from lib_config_providers.domain.errors import ArgumentError, FileNotFound, InvalidFormat


def test_yaml_file_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "appsettings.yaml"
    path.write_text("db:\n  host: localhost\n", encoding="utf-8")
    provider = FileSource(path).build()
    provider.load()
    assert provider.get("DB:HOST") == "localhost"
    assert provider.name == "yaml"
    assert provider.location == str(path)


@pytest.mark.parametrize(
    ("name", "content", "expected_name"),
    [
        ("settings.json", '{"a": {"b": 1}}', "json"),
        ("settings.toml", "[a]\nb = 1\n", "toml"),
        ("settings.YML", "a:\n  b: 1\n", "yaml"),
    ],
)
def test_parser_follows_suffix(tmp_path: Path, name: str, content: str, expected_name: str) -> None:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    provider = FileSource(path).build()
    provider.load()
    assert provider.get("a:b") == "1"
    assert provider.name == expected_name


def test_explicit_parser_overrides_suffix(tmp_path: Path) -> None:
    path = tmp_path / "settings.conf"
    path.write_text('{"a": "b"}', encoding="utf-8")
    provider = FileSource(path, parser=JsonParser()).build()
    provider.load()
    assert dict(provider.data) == {"a": "b"}


def test_unknown_suffix_and_empty_path_are_rejected() -> None:
    with pytest.raises(ArgumentError):
        FileSource("settings.ini")
    with pytest.raises(ArgumentError):
        FileSource("")


def test_missing_required_file(tmp_path: Path) -> None:
    provider = FileSource(tmp_path / "missing.yaml").build()
    with pytest.raises(FileNotFound, match="missing.yaml"):
        provider.load()


def test_missing_optional_file_is_empty(tmp_path: Path) -> None:
    provider = FileSource(tmp_path / "missing.yaml", optional=True).build()
    provider.load()
    assert len(provider.data) == 0


def test_invalid_file_names_the_path(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("key: 1\nkey: 2\n", encoding="utf-8")
    provider = FileSource(path, optional=True).build()
    with pytest.raises(InvalidFormat, match="broken.yaml"):
        provider.load()


def test_reload_picks_up_changes(tmp_path: Path) -> None:
    path = tmp_path / "app.json"
    path.write_text('{"level": "info"}', encoding="utf-8")
    provider = FileSource(path).build()
    provider.load()
    path.write_text('{"level": "debug"}', encoding="utf-8")
    provider.load()
    assert provider.get("level") == "debug"


def test_stream_is_read_once() -> None:
    stream = io.StringIO("a: 1\n")
    data = read_stream(stream)
    assert dict(data) == {"a": "1"}
    assert stream.read() == ""


def test_empty_stream_is_invalid() -> None:
    with pytest.raises(InvalidFormat):
        read_stream(io.StringIO(""))


def test_static_source_provider() -> None:
    provider = StaticSource({"Name": "demo"}, name="yaml_stream").build()
    provider.load()
    assert provider.get("name") == "demo"
    assert provider.name == "yaml_stream"


def test_provider_resolves_parser_when_source_has_none(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text("[a]\nb = 1\n", encoding="utf-8")
    provider = FileConfigurationProvider(SimpleNamespace(path=path, optional=False, parser=None))
    provider.load()
    assert provider.name == "toml"
    assert provider.get("A:B") == "1"
