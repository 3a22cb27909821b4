# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Read-only file stores addressed by slash-separated relative paths.

A store is anything implementing the FileStore protocol: ``stat(name)`` and
``read_bytes(name)``. Names follow one rule set for every backend:

    "."              the store root
    "css/site.css"   relative, slash-separated, no "", "." or ".." elements

Backends:
    DirectoryFileStore: a physical directory tree
    MemoryFileStore: an in-memory archive (path -> bytes)
    PackageFileStore: files shipped inside an installed Python package

sub_store() roots any store at a subdirectory, returning a view that owns no
storage of its own::

    store = DirectoryFileStore("./public")
    assets = sub_store(store, "assets")
    assets.read_bytes("app.js")        # reads ./public/assets/app.js
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from importlib import resources
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .exceptions import FilesystemRootingError, InvalidPathError

__all__ = [
    "DirectoryFileStore",
    "FileInfo",
    "FileStore",
    "MemoryFile",
    "MemoryFileStore",
    "PackageFileStore",
    "SubFileStore",
    "sub_store",
    "valid_path",
]


def valid_path(name: str) -> bool:
    """True if name is a valid store path ("." or clean relative path)."""
    if name == ".":
        return True
    # NUL cannot appear in a filename on any backend
    if not name or "\x00" in name:
        return False
    return all(part not in ("", ".", "..") for part in name.split("/"))


def _base_name(name: str) -> str:
    return "." if name == "." else name.rsplit("/", 1)[-1]


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Metadata for a store entry. mod_time is UTC, or None when unknown."""

    name: str
    size: int
    mod_time: datetime | None
    is_dir: bool


@runtime_checkable
class FileStore(Protocol):
    """Abstract interface for read-only file stores.

    Implementations raise InvalidPathError for names that fail valid_path(),
    FileNotFoundError for missing entries and IsADirectoryError when
    read_bytes() targets a directory.
    """

    def stat(self, name: str) -> FileInfo:
        """Return metadata for name."""
        ...

    def read_bytes(self, name: str) -> bytes:
        """Read the whole file content."""
        ...


class DirectoryFileStore:
    """File store backed by a directory on the local filesystem."""

    __slots__ = ("_directory",)

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).resolve()

    @property
    def directory(self) -> Path:
        """Absolute directory served by this store."""
        return self._directory

    def _path(self, op: str, name: str) -> Path:
        if not valid_path(name):
            raise InvalidPathError(op, name)
        if name == ".":
            return self._directory
        path = (self._directory / name).resolve()
        # Security: symlinks must not escape the directory
        if not path.is_relative_to(self._directory):
            raise FileNotFoundError(f"{op} {name}: file does not exist")
        return path

    def stat(self, name: str) -> FileInfo:
        path = self._path("stat", name)
        try:
            st = path.stat()
        except NotADirectoryError as e:
            # A regular file used as a parent directory
            raise FileNotFoundError(f"stat {name}: file does not exist") from e
        is_dir = path.is_dir()
        return FileInfo(
            name=_base_name(name),
            size=0 if is_dir else st.st_size,
            mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            is_dir=is_dir,
        )

    def read_bytes(self, name: str) -> bytes:
        path = self._path("read", name)
        if path.is_dir():
            raise IsADirectoryError(f"read {name}: is a directory")
        try:
            return path.read_bytes()
        except NotADirectoryError as e:
            raise FileNotFoundError(f"read {name}: file does not exist") from e

    def __repr__(self) -> str:
        return f"DirectoryFileStore({str(self._directory)!r})"


@dataclass(frozen=True, slots=True)
class MemoryFile:
    """File held in a MemoryFileStore."""

    data: bytes
    mod_time: datetime | None = None


class MemoryFileStore:
    """In-memory file store. Directories are implied by the file paths.

    Example:
        store = MemoryFileStore({
            "static/site.css": MemoryFile(b"body {}", mod_time=now),
            "static/app.js": "console.log(1);",
        })
    """

    __slots__ = ("_files",)

    def __init__(self, files: Mapping[str, MemoryFile | bytes | str] | None = None) -> None:
        self._files: dict[str, MemoryFile] = {}
        for name, value in (files or {}).items():
            self._files[name] = self._coerce(value)

    @staticmethod
    def _coerce(value: Any) -> MemoryFile:
        if isinstance(value, MemoryFile):
            return value
        if isinstance(value, str):
            return MemoryFile(value.encode("utf-8"))
        return MemoryFile(bytes(value))

    def _is_dir(self, name: str) -> bool:
        if name == ".":
            return True
        prefix = name + "/"
        return any(key.startswith(prefix) for key in self._files)

    def stat(self, name: str) -> FileInfo:
        if not valid_path(name):
            raise InvalidPathError("stat", name)
        entry = self._files.get(name)
        if entry is not None:
            return FileInfo(_base_name(name), len(entry.data), entry.mod_time, False)
        if self._is_dir(name):
            return FileInfo(_base_name(name), 0, None, True)
        raise FileNotFoundError(f"stat {name}: file does not exist")

    def read_bytes(self, name: str) -> bytes:
        if not valid_path(name):
            raise InvalidPathError("read", name)
        entry = self._files.get(name)
        if entry is not None:
            return entry.data
        if self._is_dir(name):
            raise IsADirectoryError(f"read {name}: is a directory")
        raise FileNotFoundError(f"read {name}: file does not exist")

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"MemoryFileStore({len(self._files)} files)"


class PackageFileStore:
    """File store reading resources embedded in an installed Python package.

    Works for packages installed as directories and for zipped packages,
    through importlib.resources. Modification times are not available.
    """

    __slots__ = ("_package", "_directory", "_base")

    def __init__(self, package: str, directory: str = "") -> None:
        self._package = package
        self._directory = directory.strip("/")
        base = resources.files(package)
        for part in filter(None, self._directory.split("/")):
            base = base / part
        self._base = base

    def _node(self, op: str, name: str) -> Any:
        if not valid_path(name):
            raise InvalidPathError(op, name)
        node = self._base
        if name != ".":
            for part in name.split("/"):
                node = node / part
        if not (node.is_file() or node.is_dir()):
            raise FileNotFoundError(f"{op} {name}: file does not exist")
        return node

    def stat(self, name: str) -> FileInfo:
        node = self._node("stat", name)
        if node.is_dir():
            return FileInfo(_base_name(name), 0, None, True)
        if isinstance(node, Path):
            size = node.stat().st_size
        else:
            # Zipped resources expose no size without reading them
            size = len(node.read_bytes())
        return FileInfo(_base_name(name), size, None, False)

    def read_bytes(self, name: str) -> bytes:
        node = self._node("read", name)
        if node.is_dir():
            raise IsADirectoryError(f"read {name}: is a directory")
        return node.read_bytes()

    def __repr__(self) -> str:
        if self._directory:
            return f"PackageFileStore({self._package!r}, {self._directory!r})"
        return f"PackageFileStore({self._package!r})"


class SubFileStore:
    """View of a store rooted at a subdirectory. Use sub_store() to build one."""

    __slots__ = ("_store", "_root")

    def __init__(self, store: FileStore, root: str) -> None:
        self._store = store
        self._root = root

    @property
    def store(self) -> FileStore:
        """The wrapped store."""
        return self._store

    @property
    def root(self) -> str:
        """Root of this view inside the wrapped store."""
        return self._root

    def _full_name(self, op: str, name: str) -> str:
        if not valid_path(name):
            raise InvalidPathError(op, name)
        if name == ".":
            return self._root
        return f"{self._root}/{name}"

    def stat(self, name: str) -> FileInfo:
        return self._store.stat(self._full_name("stat", name))

    def read_bytes(self, name: str) -> bytes:
        return self._store.read_bytes(self._full_name("read", name))

    def __repr__(self) -> str:
        return f"SubFileStore({self._store!r}, {self._root!r})"


def sub_store(store: FileStore, root: str) -> FileStore:
    """Return store rooted at root.

    Rooting is lazy: a root that does not exist is accepted, lookups below it
    just report FileNotFoundError.

    Raises:
        FilesystemRootingError: if root is not a valid store path.
    """
    if not valid_path(root):
        raise FilesystemRootingError(root)
    if root == ".":
        return store
    return SubFileStore(store, root)


if __name__ == "__main__":
    # Simple test
    store = DirectoryFileStore(os.getcwd())
    info = store.stat(".")
    print(f"directory: {store.directory}")
    print(f"is_dir: {info.is_dir}")
