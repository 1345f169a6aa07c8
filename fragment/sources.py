"""Where translation tables come from: local files or a published URL."""

from __future__ import annotations

import logging
import pathlib
from abc import ABC, abstractmethod

import requests

from .errors import InputReadError, RemoteTableError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class TableSource(ABC):
    """Abstract source of translation table bytes."""

    @abstractmethod
    def fetch(self) -> bytes:
        """Return the raw table contents."""

    @property
    @abstractmethod
    def label(self) -> str:
        """Human readable origin for summaries."""


class LocalTableSource(TableSource):
    """Reads a table from the local filesystem."""

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path

    @property
    def label(self) -> str:
        return str(self.path)

    def fetch(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise InputReadError(f"Could not read translation table {self.path}: {exc}") from exc


class RemoteTableSource(TableSource):
    """Downloads a table export, e.g. a spreadsheet published as CSV."""

    def __init__(self, url: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout

    @property
    def label(self) -> str:
        return self.url

    def fetch(self) -> bytes:
        log.info("Downloading translation table from %s", self.url)
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RemoteTableError(
                f"Failed to download translation table from {self.url}: {exc}"
            ) from exc
        return response.content


def build_table_source(location: str, *, timeout: float = DEFAULT_TIMEOUT) -> TableSource:
    """Select a source for ``location`` based on its scheme."""

    lowered = location.strip().lower()
    if lowered.startswith(("http://", "https://")):
        return RemoteTableSource(location.strip(), timeout=timeout)
    return LocalTableSource(pathlib.Path(location).expanduser())
