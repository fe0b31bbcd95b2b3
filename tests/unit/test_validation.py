"""Binding flat configuration to typed settings and running their checks."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel, Field

from lib_config_providers.domain.config import Config
from lib_config_providers.domain.errors import ArgumentError, SettingsValidationError
from lib_config_providers.validation import Validatable, bind_settings, validate_settings


class Endpoint(BaseModel):
    url: str
    timeout_seconds: float = 30.0


class ServiceSettings(BaseModel):
    name: str
    port: int
    debug: bool = False
    tags: list[str] = Field(default_factory=list)
    endpoints: dict[str, Endpoint] = Field(default_factory=dict)

    def validate(self) -> None:
        if self.port <= 0:
            raise SettingsValidationError.for_property("ServiceSettings", "port", "must be positive")


class PlainModel(BaseModel):
    name: str


@dataclass
class Pool:
    size: int
    hosts: list[str] = field(default_factory=list)

    def validate(self) -> None:
        if self.size < 1:
            raise SettingsValidationError.for_property("Pool", "size", "must be at least 1")


def make_config(**overrides: str | None) -> Config:
    data: dict[str, str | None] = {
        "Service:Name": "billing",
        "Service:Port": "8080",
        "Service:Debug": "true",
        "Service:Tags:0": "a",
        "Service:Tags:1": "b",
        "Service:Endpoints:Primary:Url": "https://primary",
        "Service:Endpoints:Primary:Timeout_Seconds": "2.5",
        "Pool:Size": "4",
        "Pool:Hosts:0": "h1",
    }
    data.update(overrides)
    return Config(data, {})


def test_bind_pydantic_model_from_section() -> None:
    settings = bind_settings(make_config(), ServiceSettings, "service")
    assert settings.name == "billing"
    assert settings.port == 8080
    assert settings.debug is True
    assert settings.tags == ["a", "b"]
    assert settings.endpoints["Primary"].timeout_seconds == 2.5


def test_bind_dataclass() -> None:
    assert bind_settings(make_config(), Pool, "POOL") == Pool(size=4, hosts=["h1"])


def test_invalid_value_names_class_and_field() -> None:
    with pytest.raises(SettingsValidationError, match=r"Settings were invalid: ServiceSettings\.port "):
        bind_settings(make_config(**{"Service:Port": "eighty"}), ServiceSettings, "service")


def test_missing_required_field() -> None:
    with pytest.raises(SettingsValidationError, match=r"ServiceSettings\.name"):
        bind_settings(make_config(**{"Service:Name": None}), ServiceSettings, "service")


def test_validate_hook_runs_after_binding() -> None:
    config = make_config(**{"Service:Port": "-1"})
    with pytest.raises(SettingsValidationError, match="must be positive"):
        bind_settings(config, ServiceSettings, "service")
    assert bind_settings(config, ServiceSettings, "service", validate=False).port == -1


def test_model_without_hook_binds() -> None:
    config = Config({"name": "x"}, {})
    assert bind_settings(config, PlainModel).name == "x"


def test_validate_settings_runs_each_object() -> None:
    validate_settings(Pool(1), Pool(2))
    with pytest.raises(SettingsValidationError, match="Pool.size must be at least 1"):
        validate_settings(Pool(3), Pool(0))


def test_validate_settings_requires_hook() -> None:
    with pytest.raises(ArgumentError):
        validate_settings(PlainModel(name="x"))


def test_validatable_protocol() -> None:
    assert isinstance(Pool(1), Validatable)
