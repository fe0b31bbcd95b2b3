"""Kubernetes secret volume adapter.

Purpose
-------
Expose every file of a mounted secret directory as one configuration key. The
file name is the key (``__`` becomes ``:``) and the full file text is the value.

Contents
--------
* :class:`PhysicalFileEntry` / :class:`PhysicalFileProvider` – :mod:`pathlib`
  implementation of the directory-listing port.
* :class:`KubeSecretsSource` / :class:`KubeSecretsProvider` – source descriptor
  and loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator

from ...application.ports import FileEntry, FileProvider
from ...application.provider import ConfigurationProvider
from ...domain.errors import ArgumentError, DirectoryNotFound, InvalidFormat
from ...domain.flatmap import FlatMap
from ...domain.keys import KEY_DELIMITER
from ...observability import log_debug

_MISSING_DIRECTORY = "Kube secrets directory doesn't exist and is not optional."


@dataclass(frozen=True)
class PhysicalFileEntry:
    """A file or directory below a :class:`PhysicalFileProvider` root."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_directory(self) -> bool:
        return self.path.is_dir()

    def read_text(self) -> str:
        # Bytes are decoded by hand so line endings survive untouched; binary
        # secrets keep their readable parts.
        return self.path.read_bytes().decode("utf-8-sig", errors="replace")


@dataclass(frozen=True)
class PhysicalFileProvider:
    """List the immediate entries of *root* on the local file system."""

    root: Path

    def get_directory_contents(self) -> Iterator[PhysicalFileEntry] | None:
        if not self.root.is_dir():
            return None
        return (PhysicalFileEntry(entry) for entry in sorted(self.root.iterdir()))


@dataclass(frozen=True)
class KubeSecretsSource:
    """Describe a secret mount, either as a directory or a file provider.

    Exactly one of *secrets_directory* and *file_provider* must be given.
    *ignore_condition* receives each file name and returns ``True`` to skip it.

    Examples
    --------
    >>> KubeSecretsSource()
    Traceback (most recent call last):
    ...
    lib_config_providers.domain.errors.ArgumentError: Either 'secrets_directory' or 'file_provider' must be provided
    """

    secrets_directory: str | Path | None = None
    file_provider: FileProvider | None = field(default=None, compare=False)
    optional: bool = False
    ignore_condition: Callable[[str], bool] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        has_directory = self.secrets_directory is not None and str(self.secrets_directory).strip() != ""
        if has_directory == (self.file_provider is not None):
            raise ArgumentError("Either 'secrets_directory' or 'file_provider' must be provided")

    def build(self) -> KubeSecretsProvider:
        return KubeSecretsProvider(self)


class KubeSecretsProvider(ConfigurationProvider):
    """Read every secret file on each :meth:`load`."""

    name = "kube_secrets"

    def __init__(self, source: KubeSecretsSource) -> None:
        super().__init__()
        self.source = source

    @property
    def location(self) -> str | None:
        if self.source.secrets_directory is None:
            return None
        return str(self.source.secrets_directory)

    def load(self) -> None:
        """Replace :attr:`data` with one entry per secret file.

        Raises
        ------
        DirectoryNotFound
            The directory is missing and the source is not optional.
        InvalidFormat
            Two file names normalise to the same key, or a file cannot be read.
        """

        entries = self._entries()
        data = FlatMap()
        if entries is None:
            if not self.source.optional:
                raise DirectoryNotFound(_MISSING_DIRECTORY)
            self.data = data
            return
        ignore = self.source.ignore_condition
        for entry in entries:
            if entry.is_directory:
                continue
            if ignore is not None and ignore(entry.name):
                continue
            try:
                content = entry.read_text()
            except OSError as exc:
                raise InvalidFormat(f"Could not read secret file '{entry.name}': {exc}") from exc
            data.add(normalize_secret_name(entry.name), content)
        log_debug("kube_secrets_loaded", source=self.name, location=self.location, keys=len(data))
        self.data = data

    def _entries(self) -> Iterable[FileEntry] | None:
        provider = self.source.file_provider
        if provider is None:
            provider = PhysicalFileProvider(Path(self.source.secrets_directory or ""))
        return provider.get_directory_contents()


def normalize_secret_name(name: str) -> str:
    """Translate a secret file name into a configuration key.

    >>> normalize_secret_name("Secret0__Secret1__Key")
    'Secret0:Secret1:Key'
    """

    return name.replace("__", KEY_DELIMITER)
