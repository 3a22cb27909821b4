# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for file stores and rooting."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from pathlib import Path

import pytest

from asgi_staticfs.exceptions import FilesystemRootingError, InvalidPathError
from asgi_staticfs.filestore import (
    DirectoryFileStore,
    FileStore,
    MemoryFile,
    MemoryFileStore,
    PackageFileStore,
    SubFileStore,
    sub_store,
    valid_path,
)

MOD_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

_package_ids = itertools.count()


@pytest.fixture
def directory_store(tmp_path: Path) -> DirectoryFileStore:
    """Create a directory store with some test files."""
    (tmp_path / "file.txt").write_text("hello")
    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "logo.png").write_bytes(b"\x89PNG\r\n")
    (tmp_path / "resources").mkdir()
    (tmp_path / "resources" / "style.css").write_text("body { color: red; }")
    return DirectoryFileStore(tmp_path)


@pytest.fixture
def memory_store() -> MemoryFileStore:
    return MemoryFileStore({
        "static/testfile.css": MemoryFile(b"body {}", mod_time=MOD_TIME),
        "static/js/app.js": "console.log('hello');",
        "robots.txt": b"User-agent: *",
    })


@pytest.fixture
def asset_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Install a throwaway package with embedded assets on sys.path."""
    name = f"staticfs_assets_{next(_package_ids)}"
    package = tmp_path / "site-packages" / name
    (package / "static" / "css").mkdir(parents=True)
    (package / "__init__.py").write_text("")
    (package / "static" / "index.html").write_text("<h1>embedded</h1>")
    (package / "static" / "css" / "site.css").write_text("h1 {}")
    monkeypatch.syspath_prepend(str(tmp_path / "site-packages"))
    return name


class TestValidPath:
    """Store path rules."""

    @pytest.mark.parametrize("name", [".", "static", "static/css", "a/b/c.txt", "x..y", ".hidden"])
    def test_valid(self, name: str) -> None:
        assert valid_path(name) is True

    @pytest.mark.parametrize(
        "name",
        ["", "./static", "/static", "static/", "a//b", "a/../b", "..", "a/.", "/", "a\x00b.css"],
    )
    def test_invalid(self, name: str) -> None:
        assert valid_path(name) is False


class TestDirectoryFileStore:
    """Tests for DirectoryFileStore."""

    def test_is_file_store(self, directory_store: DirectoryFileStore) -> None:
        assert isinstance(directory_store, FileStore)

    def test_stat_file(self, directory_store: DirectoryFileStore) -> None:
        info = directory_store.stat("file.txt")
        assert info.name == "file.txt"
        assert info.size == 5  # "hello" is 5 bytes
        assert info.is_dir is False
        assert info.mod_time is not None
        assert info.mod_time.tzinfo is timezone.utc

    def test_stat_directory(self, directory_store: DirectoryFileStore) -> None:
        info = directory_store.stat("images")
        assert info.is_dir is True
        assert info.size == 0

    def test_stat_root(self, directory_store: DirectoryFileStore) -> None:
        assert directory_store.stat(".").is_dir is True

    def test_read_bytes(self, directory_store: DirectoryFileStore) -> None:
        assert directory_store.read_bytes("images/logo.png").startswith(b"\x89PNG")

    def test_missing(self, directory_store: DirectoryFileStore) -> None:
        with pytest.raises(FileNotFoundError):
            directory_store.stat("nonexistent.txt")
        with pytest.raises(FileNotFoundError):
            directory_store.read_bytes("nonexistent.txt")

    def test_read_directory(self, directory_store: DirectoryFileStore) -> None:
        with pytest.raises(IsADirectoryError):
            directory_store.read_bytes("resources")

    def test_file_as_parent_not_found(self, directory_store: DirectoryFileStore) -> None:
        with pytest.raises(FileNotFoundError):
            directory_store.stat("file.txt/x")
        with pytest.raises(FileNotFoundError):
            directory_store.read_bytes("file.txt/x")

    def test_invalid_name(self, directory_store: DirectoryFileStore) -> None:
        with pytest.raises(InvalidPathError, match="stat ../file.txt: invalid argument"):
            directory_store.stat("../file.txt")

    def test_nul_name_invalid(self, directory_store: DirectoryFileStore) -> None:
        with pytest.raises(InvalidPathError):
            directory_store.stat("a\x00b.css")

    def test_symlink_escape_not_found(self, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("secret")
        served = tmp_path / "served"
        served.mkdir()
        (served / "link.txt").symlink_to(outside)
        store = DirectoryFileStore(served)

        with pytest.raises(FileNotFoundError):
            store.read_bytes("link.txt")

    def test_directory_resolved(self, tmp_path: Path) -> None:
        store = DirectoryFileStore(tmp_path / "a" / "..")
        assert store.directory == tmp_path.resolve()


class TestMemoryFileStore:
    """Tests for MemoryFileStore."""

    def test_is_file_store(self, memory_store: MemoryFileStore) -> None:
        assert isinstance(memory_store, FileStore)

    def test_stat_file(self, memory_store: MemoryFileStore) -> None:
        info = memory_store.stat("static/testfile.css")
        assert info.name == "testfile.css"
        assert info.size == 7
        assert info.mod_time == MOD_TIME
        assert info.is_dir is False

    def test_str_and_bytes_values(self, memory_store: MemoryFileStore) -> None:
        assert memory_store.read_bytes("static/js/app.js") == b"console.log('hello');"
        assert memory_store.read_bytes("robots.txt") == b"User-agent: *"
        assert memory_store.stat("robots.txt").mod_time is None

    def test_implied_directories(self, memory_store: MemoryFileStore) -> None:
        assert memory_store.stat(".").is_dir is True
        assert memory_store.stat("static").is_dir is True
        assert memory_store.stat("static/js").is_dir is True

    def test_partial_name_is_not_directory(self, memory_store: MemoryFileStore) -> None:
        with pytest.raises(FileNotFoundError):
            memory_store.stat("stat")

    def test_read_directory(self, memory_store: MemoryFileStore) -> None:
        with pytest.raises(IsADirectoryError):
            memory_store.read_bytes("static")

    def test_missing(self, memory_store: MemoryFileStore) -> None:
        with pytest.raises(FileNotFoundError):
            memory_store.read_bytes("static/testfile.txt")

    def test_invalid_name(self, memory_store: MemoryFileStore) -> None:
        with pytest.raises(InvalidPathError):
            memory_store.read_bytes("/static/testfile.css")

    def test_len(self, memory_store: MemoryFileStore) -> None:
        assert len(memory_store) == 3
        assert len(MemoryFileStore()) == 0


class TestPackageFileStore:
    """Tests for PackageFileStore."""

    def test_reads_embedded_file(self, asset_package: str) -> None:
        store = PackageFileStore(asset_package, "static")
        assert isinstance(store, FileStore)
        assert store.read_bytes("index.html") == b"<h1>embedded</h1>"
        assert store.read_bytes("css/site.css") == b"h1 {}"

    def test_stat(self, asset_package: str) -> None:
        store = PackageFileStore(asset_package, "static")
        info = store.stat("css/site.css")
        assert info.name == "site.css"
        assert info.size == 5
        assert info.mod_time is None
        assert store.stat("css").is_dir is True
        assert store.stat(".").is_dir is True

    def test_stat_does_not_read_content(
        self, asset_package: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = PackageFileStore(asset_package, "static")

        def fail_read(self: Path) -> bytes:
            raise AssertionError("stat read the file")

        monkeypatch.setattr(Path, "read_bytes", fail_read)
        assert store.stat("index.html").size == 17

    def test_whole_package(self, asset_package: str) -> None:
        store = PackageFileStore(asset_package)
        assert store.read_bytes("static/index.html") == b"<h1>embedded</h1>"

    def test_missing(self, asset_package: str) -> None:
        store = PackageFileStore(asset_package, "static")
        with pytest.raises(FileNotFoundError):
            store.stat("missing.js")

    def test_read_directory(self, asset_package: str) -> None:
        store = PackageFileStore(asset_package, "static")
        with pytest.raises(IsADirectoryError):
            store.read_bytes("css")

    def test_unknown_package(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            PackageFileStore("staticfs_no_such_package")


class TestSubStore:
    """Tests for sub_store rooting."""

    def test_root_view(self, memory_store: MemoryFileStore) -> None:
        view = sub_store(memory_store, "static")
        assert isinstance(view, SubFileStore)
        assert view.root == "static"
        assert view.store is memory_store
        assert view.read_bytes("testfile.css") == b"body {}"
        assert view.stat(".").is_dir is True

    def test_nested_root(self, memory_store: MemoryFileStore) -> None:
        view = sub_store(memory_store, "static/js")
        assert view.read_bytes("app.js") == b"console.log('hello');"

    def test_view_of_view(self, memory_store: MemoryFileStore) -> None:
        view = sub_store(sub_store(memory_store, "static"), "js")
        assert view.read_bytes("app.js") == b"console.log('hello');"

    def test_dot_returns_same_store(self, memory_store: MemoryFileStore) -> None:
        assert sub_store(memory_store, ".") is memory_store

    def test_files_outside_root_hidden(self, memory_store: MemoryFileStore) -> None:
        view = sub_store(memory_store, "static")
        with pytest.raises(FileNotFoundError):
            view.read_bytes("robots.txt")

    def test_missing_root_is_lazy(self, memory_store: MemoryFileStore) -> None:
        view = sub_store(memory_store, "missing")
        with pytest.raises(FileNotFoundError):
            view.stat(".")

    @pytest.mark.parametrize("root", ["./static", "/static", "static/", "", "../static"])
    def test_invalid_root(self, memory_store: MemoryFileStore, root: str) -> None:
        with pytest.raises(FilesystemRootingError) as exc_info:
            sub_store(memory_store, root)
        assert exc_info.value.root == root
        assert str(exc_info.value) == f"sub {root}: invalid argument"

    def test_invalid_name_in_view(self, memory_store: MemoryFileStore) -> None:
        view = sub_store(memory_store, "static")
        with pytest.raises(InvalidPathError, match="read ../robots.txt"):
            view.read_bytes("../robots.txt")

    def test_directory_store_view(self, directory_store: DirectoryFileStore) -> None:
        view = sub_store(directory_store, "resources")
        assert view.read_bytes("style.css") == b"body { color: red; }"
