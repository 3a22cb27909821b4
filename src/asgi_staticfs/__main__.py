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
asgi-staticfs CLI entry point - development server.

Usage:
    asgi-staticfs ./public                         # /static/* from ./public
    asgi-staticfs ./site --root assets --prefix /assets --cache 24h
    asgi-staticfs --config asgi-staticfs.toml --port 9000
    python -m asgi_staticfs ./public --debug

Command line options override the [static] table of the config file.
Requests outside the prefix get a plain 404.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError, StaticConfig, config_from_mapping, find_config_file, load_config
from .fileserver import send_error
from .middleware import middleware_chain, static_handler
from .types import ASGIApp, Receive, Scope, Send

__all__ = ["build_app", "build_config", "build_parser", "main"]

logger = logging.getLogger("asgi_staticfs")


async def not_found_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Innermost app: everything outside the static prefix is missing."""
    if scope["type"] != "http":
        return
    await send_error(send, 404, "404 page not found")


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(
        prog="asgi-staticfs",
        description="Serve static files below a URL prefix",
    )
    parser.add_argument("directory", nargs="?", help="Directory holding the files")
    parser.add_argument("--config", help="TOML config file with a [static] table")
    parser.add_argument("--root", help="Subdirectory to expose (default: .)")
    parser.add_argument("--prefix", help="URL prefix (default: /static)")
    parser.add_argument("--cache", help="Cache duration, e.g. 3600, 30m, 24h")
    parser.add_argument("--debug", action="store_true", help="Log every request dispatch")
    parser.add_argument("--host", default="127.0.0.1", help="Host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    return parser


def build_config(args: argparse.Namespace) -> StaticConfig:
    """Merge config file and command line options into a StaticConfig.

    Raises:
        ConfigError: if the merged configuration is invalid.
    """
    section: dict[str, Any] = {}
    base_dir: Path | None = None

    config_path: Path | None
    if args.config:
        config_path = Path(args.config)
    elif args.directory is None:
        config_path = find_config_file()
    else:
        config_path = None

    if config_path is not None:
        section = dict(load_config(config_path).get("static", {}))
        base_dir = config_path.resolve().parent

    if args.directory is not None:
        section.pop("package", None)
        section["directory"] = str(Path(args.directory).resolve())
    elif "directory" not in section and "package" not in section:
        section["directory"] = str(Path.cwd())

    for key in ("root", "prefix", "cache"):
        value = getattr(args, key)
        if value is not None:
            section[key] = value
    if args.debug:
        section["debug"] = True

    return config_from_mapping(section, base_dir)


def build_app(args: argparse.Namespace) -> ASGIApp:
    """Assemble the ASGI app served by the CLI."""
    return middleware_chain(not_found_app, static_handler(build_config(args)))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        app = build_app(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info("asgi-staticfs serving on http://%s:%s", args.host, args.port)

    import uvicorn

    try:
        uvicorn.run(app, host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nShutdown.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
