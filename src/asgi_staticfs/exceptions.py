# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception classes for asgi-staticfs file stores.

Two exception classes, both ValueError subclasses since they signal a bad
path argument rather than an I/O failure:

1. FilesystemRootingError - the configured root cannot root a file store
2. InvalidPathError - a name handed to a file store is not a valid store path

Missing files, permission problems and directory/file mismatches are
reported with the builtin OSError subclasses (FileNotFoundError,
PermissionError, IsADirectoryError), so callers can catch them the same way
for every store.

FilesystemRootingError
----------------------
Raised by filestore.sub_store(). The static middleware catches it and turns
it into a 500 response; it never leaves the middleware.

Attributes:
    root (str): The rejected root.

Example:
    >>> sub_store(store, "./static")
    Traceback (most recent call last):
    ...
    FilesystemRootingError: sub ./static: invalid argument

InvalidPathError
----------------
Raised by FileStore.stat() and FileStore.read_bytes().

Attributes:
    op (str): Operation that rejected the name ("stat", "read").
    name (str): The rejected name.
"""


class FilesystemRootingError(ValueError):
    """
    Configured root is not a valid path inside the file store.

    Attributes:
        root: The root that could not be used.

    Example:
        >>> raise FilesystemRootingError("./static")
    """

    def __init__(self, root: str) -> None:
        """
        Initialize rooting error.

        Args:
            root: The root that was rejected.
        """
        self.root = root
        super().__init__(f"sub {root}: invalid argument")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"FilesystemRootingError(root={self.root!r})"


class InvalidPathError(ValueError):
    """
    Name is not a valid slash-separated relative store path.

    Attributes:
        op: Operation that rejected the name.
        name: The rejected name.
    """

    def __init__(self, op: str, name: str) -> None:
        self.op = op
        self.name = name
        super().__init__(f"{op} {name}: invalid argument")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"InvalidPathError(op={self.op!r}, name={self.name!r})"


__all__ = ["FilesystemRootingError", "InvalidPathError"]
