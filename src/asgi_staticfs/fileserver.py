# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
File-serving ASGI application backed by a FileStore.

FileServer serves the contents of any FileStore (directory, in-memory,
package resources, or a rooted view of one of them). It resolves request
paths, reports missing entries, sets Content-Type from the file extension
and supports the cheap parts of HTTP caching and partial content.

Features:
- GET and HEAD (405 for other methods)
- Path cleaning: "." and ".." segments and duplicate slashes collapse
- index.html served for directory requests, no directory listings
- Relative redirects for directory/file trailing slash mismatches
- Content-Type detection via mimetypes, charset=utf-8 for text types
- Last-Modified and If-Modified-Since (304)
- Single byte ranges (206 / 416)

Constructor:
    FileServer(store, index="index.html")

ASGI interface:
    __call__(scope, receive, send)

    - Only handles HTTP requests (type="http")
    - Store errors map to status codes:
        FileNotFoundError, InvalidPathError -> 404
        PermissionError                     -> 403
        any other OSError                   -> 500

strip_prefix(prefix, app) mounts an app below a URL prefix by removing the
prefix from scope["path"] before delegating.
"""

from __future__ import annotations

import mimetypes
from datetime import datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import TYPE_CHECKING, Any

from smartasync import smartasync

from .exceptions import InvalidPathError
from .filestore import FileInfo, FileStore

if TYPE_CHECKING:
    from .types import ASGIApp, Receive, Scope, Send

__all__ = ["FileServer", "clean_path", "content_type_for", "send_error", "strip_prefix"]

# Ensure common types are registered
mimetypes.add_type("text/javascript", ".js")
mimetypes.add_type("text/javascript", ".mjs")
mimetypes.add_type("text/css", ".css")
mimetypes.add_type("image/svg+xml", ".svg")
mimetypes.add_type("application/json", ".json")
mimetypes.add_type("application/wasm", ".wasm")
mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/avif", ".avif")
mimetypes.add_type("text/html", ".html")
mimetypes.add_type("text/html", ".htm")

INDEX_PAGE = "index.html"


class RangeNotSatisfiable(Exception):
    """Range header cannot be satisfied for the current file size."""


def clean_path(path: str) -> str:
    """Return the shortest absolute path equivalent to path.

    Example:
        >>> clean_path("a//b/./c/../d")
        '/a/b/d'
    """
    parts: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return "/" + "/".join(parts)


def content_type_for(name: str) -> str:
    """Content-Type for a file name, based on its extension."""
    content_type, _ = mimetypes.guess_type(name)
    if content_type is None:
        return "application/octet-stream"

    # Add charset for text types
    if content_type.startswith("text/") or content_type == "application/javascript":
        content_type = f"{content_type}; charset=utf-8"

    return content_type


def parse_range(header: str, size: int) -> tuple[int, int] | None:
    """Parse a single-range Range header into inclusive (start, end).

    Returns None when the header should be ignored (other units, malformed,
    multiple ranges).

    Raises:
        RangeNotSatisfiable: if the range lies outside the file or ends
            before it starts.
    """
    unit, sep, value = header.partition("=")
    if not sep or unit.strip().lower() != "bytes":
        return None
    value = value.strip()
    if "," in value:
        return None

    first, sep, last = value.partition("-")
    first, last = first.strip(), last.strip()
    if not sep:
        return None

    if not first:
        # Suffix range: last N bytes
        if not last.isdigit():
            return None
        length = int(last)
        if length == 0 or size == 0:
            raise RangeNotSatisfiable(header)
        return max(size - length, 0), size - 1

    if not first.isdigit():
        return None
    start = int(first)
    if start >= size:
        raise RangeNotSatisfiable(header)
    if not last:
        return start, size - 1
    if not last.isdigit():
        return None
    end = int(last)
    if end < start:
        raise RangeNotSatisfiable(header)
    return start, min(end, size - 1)


def _request_headers(scope: Scope) -> dict[str, str]:
    """Extract the request headers FileServer looks at."""
    headers: dict[str, str] = {}
    for name, value in scope.get("headers", []):
        name_str = name.decode("latin-1").lower()
        if name_str in ("if-modified-since", "range"):
            headers[name_str] = value.decode("latin-1")
    return headers


def _not_modified(request_headers: dict[str, str], mod_time: datetime | None) -> bool:
    """True if If-Modified-Since shows the client copy is current."""
    if_modified_since = request_headers.get("if-modified-since")
    if not if_modified_since or mod_time is None:
        return False
    try:
        client_time = parsedate_to_datetime(if_modified_since)
    except (ValueError, TypeError):
        return False
    if client_time.tzinfo is None:
        return False
    # HTTP dates have second precision
    return mod_time.replace(microsecond=0) <= client_time


async def send_error(
    send: Send,
    status: int,
    message: str,
    headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    """
    Send a plain-text error response.

    Args:
        send: ASGI send callable.
        status: HTTP status code.
        message: Response body.
        headers: Extra response headers.
    """
    body = message.encode("utf-8")

    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [
            (b"content-type", b"text/plain; charset=utf-8"),
            (b"content-length", str(len(body)).encode()),
            (b"x-content-type-options", b"nosniff"),
            *(headers or []),
        ],
    })

    await send({
        "type": "http.response.body",
        "body": body,
    })


class FileServer:
    """
    ASGI application serving files from a FileStore.

    Example:
        # Serve a directory
        app = FileServer(DirectoryFileStore("./public"))

        # Serve package resources under /assets
        app = strip_prefix("/assets", FileServer(PackageFileStore("mypkg", "assets")))
    """

    __slots__ = ("store", "index")

    def __init__(self, store: FileStore, index: str = INDEX_PAGE) -> None:
        """
        Initialize file server.

        Args:
            store: File store to serve.
            index: File served for directory requests.
        """
        self.store = store
        self.index = index

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """
        Handle ASGI request.

        Args:
            scope: ASGI scope dict.
            receive: ASGI receive callable.
            send: ASGI send callable.
        """
        if scope["type"] != "http":
            return

        method = scope.get("method", "GET")
        if method not in ("GET", "HEAD"):
            await send_error(send, 405, "405 Method Not Allowed", [(b"allow", b"GET, HEAD")])
            return

        url_path = scope.get("path", "/")
        if not url_path.startswith("/"):
            url_path = "/" + url_path
        query = scope.get("query_string", b"")

        if url_path.endswith("/" + self.index):
            await self._redirect(send, "./", query)
            return

        cleaned = clean_path(url_path)
        name = "." if cleaned == "/" else cleaned[1:]

        try:
            info = await smartasync(self.store.stat)(name)
        except (OSError, InvalidPathError) as e:
            await self._send_store_error(send, e)
            return

        if info.is_dir and not url_path.endswith("/"):
            await self._redirect(send, _base(url_path) + "/", query)
            return
        if not info.is_dir and url_path.endswith("/"):
            await self._redirect(send, "../" + _base(url_path), query)
            return

        if info.is_dir:
            name = self.index if name == "." else f"{name}/{self.index}"
            try:
                info = await smartasync(self.store.stat)(name)
            except (OSError, InvalidPathError) as e:
                await self._send_store_error(send, e)
                return
            if info.is_dir:
                await send_error(send, 404, "404 page not found")
                return

        await self._send_file(send, scope, name, info, include_body=(method == "GET"))

    async def _send_file(
        self,
        send: Send,
        scope: Scope,
        name: str,
        info: FileInfo,
        include_body: bool = True,
    ) -> None:
        """
        Send file as HTTP response, honoring If-Modified-Since and Range.

        Args:
            send: ASGI send callable.
            scope: ASGI scope (request headers).
            name: Store name of the file.
            info: File metadata.
            include_body: Include body (False for HEAD requests).
        """
        request_headers = _request_headers(scope)
        headers: list[tuple[bytes, bytes]] = []
        if info.mod_time is not None:
            headers.append((b"last-modified", format_datetime(info.mod_time, usegmt=True).encode()))

        if _not_modified(request_headers, info.mod_time):
            await send({"type": "http.response.start", "status": 304, "headers": headers})
            await send({"type": "http.response.body", "body": b""})
            return

        headers.append((b"content-type", content_type_for(name).encode()))
        headers.append((b"accept-ranges", b"bytes"))

        status = 200
        byte_range: tuple[int, int] | None = None
        range_header = request_headers.get("range")
        if range_header:
            try:
                byte_range = parse_range(range_header, info.size)
            except RangeNotSatisfiable:
                await send_error(
                    send,
                    416,
                    "416 Requested Range Not Satisfiable",
                    [(b"content-range", f"bytes */{info.size}".encode())],
                )
                return

        length = info.size
        if byte_range is not None:
            start, end = byte_range
            status = 206
            length = end - start + 1
            headers.append((b"content-range", f"bytes {start}-{end}/{info.size}".encode()))
        headers.append((b"content-length", str(length).encode()))

        content = b""
        if include_body:
            try:
                content = await smartasync(self.store.read_bytes)(name)
            except (OSError, InvalidPathError) as e:
                await self._send_store_error(send, e)
                return
            if byte_range is not None:
                content = content[byte_range[0] : byte_range[1] + 1]

        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": content})

    async def _send_store_error(self, send: Send, error: OSError | InvalidPathError) -> None:
        """Translate a store exception into an error response."""
        if isinstance(error, (FileNotFoundError, NotADirectoryError, InvalidPathError)):
            await send_error(send, 404, "404 page not found")
        elif isinstance(error, PermissionError):
            await send_error(send, 403, "403 Forbidden")
        else:
            await send_error(send, 500, "500 Internal Server Error")

    async def _redirect(self, send: Send, location: str, query: bytes) -> None:
        """Send a relative 301 redirect, keeping the query string."""
        target = location.encode()
        if query:
            target += b"?" + query
        await send({
            "type": "http.response.start",
            "status": 301,
            "headers": [(b"location", target), (b"content-length", b"0")],
        })
        await send({"type": "http.response.body", "body": b""})

    def __repr__(self) -> str:
        """Return string representation."""
        return f"FileServer(store={self.store!r}, index={self.index!r})"


def _base(url_path: str) -> str:
    """Last element of a URL path, ignoring trailing slashes."""
    stripped = url_path.rstrip("/")
    return stripped.rsplit("/", 1)[-1] if stripped else "/"


def strip_prefix(prefix: str, app: ASGIApp) -> ASGIApp:
    """Mount app below prefix.

    The returned app removes prefix from scope["path"] (and raw_path), moves
    it to scope["root_path"] and calls app with the copied scope. Requests
    whose path lacks the prefix get a 404.
    """
    raw_prefix = prefix.encode("utf-8")

    async def handler(scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "")
        if not path.startswith(prefix):
            await send_error(send, 404, "404 page not found")
            return

        child: dict[str, Any] = dict(scope)
        child["path"] = path[len(prefix) :]
        child["root_path"] = scope.get("root_path", "") + prefix
        raw_path = scope.get("raw_path")
        if raw_path is not None:
            child["raw_path"] = raw_path[len(raw_prefix) :] if raw_path.startswith(raw_prefix) else None
        await app(child, receive, send)

    return handler


if __name__ == "__main__":
    import argparse

    from .filestore import DirectoryFileStore

    parser = argparse.ArgumentParser(description="Serve a directory")
    parser.add_argument("directory", help="Directory to serve")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    args = parser.parse_args()

    app = FileServer(DirectoryFileStore(args.directory))

    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=args.port)
