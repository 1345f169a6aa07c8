"""Resolve logical file names to byte buffers in a file tree or disc image."""

from __future__ import annotations

import logging
import pathlib
import shutil
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, Set, Tuple, Union

import pycdlib
from pycdlib.pycdlibexception import PyCdlibException

from .errors import InputReadError, MissingContainerEntryError, OutputWriteError
from .structures import Extent

log = logging.getLogger(__name__)

Buffer = Union[bytearray, memoryview]


class BaseContainer(ABC):
    """Common base class for patch targets.

    A container hands out one writable buffer per logical file through
    :meth:`checkout`; the buffer is owned by the caller until the ``with``
    block ends, after which it is stored and released.
    """

    def __init__(self, source_path: pathlib.Path, destination_path: pathlib.Path):
        self.source_path = source_path
        self.destination_path = destination_path
        self._extents: Dict[str, Extent] | None = None

    @abstractmethod
    def _scan(self) -> Dict[str, Extent]:
        """Map every logical path in the container to its extent."""

    @abstractmethod
    def _load(self, name: str, extent: Extent) -> Buffer:
        """Return a writable buffer covering exactly one file."""

    def _store(self, name: str, buffer: Buffer) -> None:
        """Persist a patched buffer."""

    def _release(self, buffer: Buffer) -> None:
        """Drop any hold on a checked-out buffer."""

    @abstractmethod
    def finalize(self) -> None:
        """Write the complete output container."""

    def list_files(self) -> Dict[str, Extent]:
        if self._extents is None:
            self._extents = self._scan()
            log.debug("Found %d files in %s", len(self._extents), self.source_path)
        return self._extents

    def resolve(self, name: str) -> Extent:
        extent = self.list_files().get(name)
        if extent is None:
            raise MissingContainerEntryError(
                f"Could not find {name!r} in {self.source_path}. "
                "The translation table does not match this build."
            )
        return extent

    @contextmanager
    def checkout(self, name: str) -> Iterator[Buffer]:
        extent = self.resolve(name)
        buffer = self._load(name, extent)
        try:
            yield buffer
            self._store(name, buffer)
        finally:
            self._release(buffer)


class FileTreeContainer(BaseContainer):
    """A directory of extracted game files, patched into a second directory."""

    def __init__(self, source_path: pathlib.Path, destination_path: pathlib.Path):
        super().__init__(source_path, destination_path)
        self.patched: Set[str] = set()

    def _scan(self) -> Dict[str, Extent]:
        extents: Dict[str, Extent] = {}
        for path in sorted(self.source_path.rglob("*")):
            if path.is_file():
                name = path.relative_to(self.source_path).as_posix()
                extents[name] = Extent(0, path.stat().st_size)
        return extents

    def _load(self, name: str, extent: Extent) -> Buffer:
        path = self.source_path / name
        try:
            return bytearray(path.read_bytes())
        except OSError as exc:
            raise InputReadError(f"Could not read {path}: {exc}") from exc

    def _store(self, name: str, buffer: Buffer) -> None:
        target = self.destination_path / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(bytes(buffer))
        except OSError as exc:
            raise OutputWriteError(f"Could not write {target}: {exc}") from exc
        self.patched.add(name)

    def finalize(self) -> None:
        """Copy every file that was not patched so the output tree is complete."""

        for name in self.list_files():
            if name in self.patched:
                continue
            source = self.source_path / name
            target = self.destination_path / name
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
            except OSError as exc:
                raise OutputWriteError(f"Could not copy {source} to {target}: {exc}") from exc


def _logical_name(iso_path: str) -> str:
    """Strip the leading slash and ISO9660 version suffix from a record path."""

    name = iso_path.lstrip("/")
    if ";" in name:
        name = name.rsplit(";", 1)[0]
    return name.rstrip(".")


class DiscImageContainer(BaseContainer):
    """An ISO9660 image held in memory and patched in place."""

    def __init__(self, source_path: pathlib.Path, destination_path: pathlib.Path):
        super().__init__(source_path, destination_path)
        try:
            self.image = bytearray(source_path.read_bytes())
        except OSError as exc:
            raise InputReadError(f"Could not read disc image {source_path}: {exc}") from exc

    def _scan(self) -> Dict[str, Extent]:
        iso = pycdlib.PyCdlib()
        try:
            with self.source_path.open("rb") as handle:
                iso.open_fp(handle)
                try:
                    block_size = iso.pvd.logical_block_size()
                    extents: Dict[str, Extent] = {}
                    for dirname, _dirs, files in iso.walk(iso_path="/"):
                        for filename in files:
                            iso_path = f"{dirname.rstrip('/')}/{filename}"
                            record = iso.get_record(iso_path=iso_path)
                            extents[_logical_name(iso_path)] = Extent(
                                record.extent_location() * block_size,
                                record.get_data_length(),
                            )
                finally:
                    iso.close()
        except OSError as exc:
            raise InputReadError(f"Could not read disc image {self.source_path}: {exc}") from exc
        except PyCdlibException as exc:
            raise InputReadError(f"Failed to parse disc image {self.source_path}: {exc}") from exc
        return extents

    def _load(self, name: str, extent: Extent) -> Buffer:
        end = extent.start + extent.length
        if end > len(self.image):
            raise MissingContainerEntryError(
                f"Extent of {name!r} ends at {end}, past the end of {self.source_path}."
            )
        return memoryview(self.image)[extent.start:end]

    def _release(self, buffer: Buffer) -> None:
        if isinstance(buffer, memoryview):
            buffer.release()

    def finalize(self) -> None:
        try:
            self.destination_path.write_bytes(self.image)
        except OSError as exc:
            raise OutputWriteError(
                f"Could not write disc image {self.destination_path}: {exc}"
            ) from exc


def open_container(
    source_path: pathlib.Path,
    destination_path: pathlib.Path,
) -> Tuple[str, BaseContainer]:
    """Select a container type for the patch input."""

    if source_path.is_dir():
        container: BaseContainer = FileTreeContainer(source_path, destination_path)
        return "file tree", container
    if source_path.is_file():
        container = DiscImageContainer(source_path, destination_path)
        return "disc image", container
    raise InputReadError(f"Patch input {source_path} does not exist.")
