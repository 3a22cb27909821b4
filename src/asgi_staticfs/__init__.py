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

"""asgi-staticfs - ASGI middleware serving static files below a URL prefix.

Main components:
    StaticFileMiddleware: claims requests under a prefix, passes the rest on
    static_handler: middleware factory, static_handler(config)(next_app)
    StaticConfig: immutable middleware configuration

File stores:
    DirectoryFileStore: files from a directory on disk
    MemoryFileStore: files held in memory
    PackageFileStore: files embedded in an installed Python package
    sub_store: rooted view of any store

Serving:
    FileServer: ASGI app serving a file store (content type, 304, ranges)

Usage:
    from asgi_staticfs import DirectoryFileStore, StaticConfig, static_handler

    config = StaticConfig(store=DirectoryFileStore("."), root="static", prefix="/static")
    app = static_handler(config)(my_app)
"""

__version__ = "0.1.0"

from .config import ConfigError, StaticConfig, config_from_mapping, load_config, parse_duration
from .exceptions import FilesystemRootingError, InvalidPathError
from .fileserver import FileServer, strip_prefix
from .filestore import (
    DirectoryFileStore,
    FileInfo,
    FileStore,
    MemoryFile,
    MemoryFileStore,
    PackageFileStore,
    SubFileStore,
    sub_store,
    valid_path,
)
from .log import DebugLogger, default_logger
from .middleware import BaseMiddleware, StaticFileMiddleware, middleware_chain, static_handler
from .types import ASGIApp, Message, Middleware, Receive, Scope, Send

__all__ = [
    # Middleware
    "BaseMiddleware",
    "StaticFileMiddleware",
    "middleware_chain",
    "static_handler",
    # Configuration
    "ConfigError",
    "StaticConfig",
    "config_from_mapping",
    "load_config",
    "parse_duration",
    # Logging
    "DebugLogger",
    "default_logger",
    # Exceptions
    "FilesystemRootingError",
    "InvalidPathError",
    # File stores
    "DirectoryFileStore",
    "FileInfo",
    "FileStore",
    "MemoryFile",
    "MemoryFileStore",
    "PackageFileStore",
    "SubFileStore",
    "sub_store",
    "valid_path",
    # Serving
    "FileServer",
    "strip_prefix",
    # ASGI types
    "ASGIApp",
    "Message",
    "Middleware",
    "Receive",
    "Scope",
    "Send",
]
