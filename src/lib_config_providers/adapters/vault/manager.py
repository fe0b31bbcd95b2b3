"""Secret inclusion and key-naming policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .mapping import SecretContext


def load_all(context: SecretContext, key: str) -> bool:
    return True


def keep_key(context: SecretContext, key: str) -> str:
    return key


@dataclass(frozen=True)
class VaultSecretManager:
    """Bundle the two decisions a Vault load makes for every secret key.

    The defaults load every key and keep its name. Replace either callable to
    filter keys or to rename them:

    >>> manager = VaultSecretManager(map_key=lambda context, key: key.replace("__", ":"))
    >>> manager.map_key(SecretContext("secret/app", None, {}), "Db__Host")
    'Db:Host'
    >>> manager.should_load(SecretContext("secret/app", None, {}), "anything")
    True
    """

    should_load: Callable[[SecretContext, str], bool] = load_all
    map_key: Callable[[SecretContext, str], str] = keep_key
