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
Configuration for the static file middleware.

StaticConfig is the immutable value handed to StaticFileMiddleware. It can be
built directly in code or loaded from a TOML file with a [static] table:

    [static]
    directory = "./public"      # or: package = "myapp:assets"
    root = "static"
    prefix = "/static"
    cache = "24h"
    debug = false

Key constraints:
- [static] keys CANNOT contain underscore (_): they are single words, so
  cache_duration or max_age is reported as a misspelling. Other tables in
  the same file are left alone.
- String values may reference environment variables: ${VAR} or ${VAR:-default}
- Environment variable ASGI_STATICFS_CONFIG points to the config file
"""

from __future__ import annotations

import dataclasses
import os
import re
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

from .filestore import DirectoryFileStore, FileStore, PackageFileStore
from .log import DebugLogger, default_logger

__all__ = [
    "ConfigError",
    "StaticConfig",
    "config_from_mapping",
    "find_config_file",
    "load_config",
    "parse_duration",
    "validate_keys",
]

SECTION_KEYS = ("directory", "package", "root", "prefix", "cache", "debug")

_DURATION = re.compile(r"(?:\d+(?:\.\d+)?(?:ms|s|m|h|d))+")
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, "d": 86400.0}


class ConfigError(Exception):
    """Configuration error."""


@dataclass(frozen=True)
class StaticConfig:
    """Immutable configuration of a StaticFileMiddleware.

    Attributes:
        store: File store holding the static files (directory, package, memory).
        root: Store path of the subtree to expose ("." for the whole store).
        prefix: URL path prefix claimed by the middleware (case-sensitive).
        cache_duration: When positive, responses declare public cacheability
            for this long.
        debug: Log every dispatch decision.
        logger: Receiver of debug lines. Defaults to a stdout logger when
            debug is enabled (see normalized()).
    """

    store: FileStore
    root: str = "."
    prefix: str = "/static"
    cache_duration: timedelta | None = None
    debug: bool = False
    logger: DebugLogger | None = None

    def __post_init__(self) -> None:
        if self.cache_duration is not None and self.cache_duration < timedelta(0):
            raise ValueError(f"cache_duration must not be negative: {self.cache_duration}")

    @property
    def max_age(self) -> int | None:
        """Cache duration in whole seconds, None when caching is off."""
        if self.cache_duration is None or self.cache_duration <= timedelta(0):
            return None
        return int(self.cache_duration.total_seconds())

    def normalized(self) -> StaticConfig:
        """Return a copy with a default logger installed when debugging."""
        if self.debug and self.logger is None:
            return dataclasses.replace(self, logger=default_logger())
        return self


def parse_duration(value: Any) -> timedelta | None:
    """
    Parse a cache duration.

    Accepts a timedelta, a number of seconds, or a string made of
    number+unit parts ("500ms", "1.5s", "30m", "24h", "1h30m", "7d").
    A bare number string is seconds.

    Raises:
        ConfigError: if value is not a valid, non-negative duration.
    """
    if value is None or isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            if not _DURATION.fullmatch(text):
                raise ConfigError(f"Invalid duration: {value!r}") from None
            seconds = sum(
                float(amount) * _UNIT_SECONDS[unit]
                for amount, unit in _DURATION_PART.findall(text)
            )
    else:
        raise ConfigError(f"Invalid duration: {value!r}")

    if seconds < 0:
        raise ConfigError(f"Duration must not be negative: {value!r}")
    return timedelta(seconds=seconds)


def validate_keys(data: Any, path: str = "") -> None:
    """
    Validate that no keys contain underscore.

    Args:
        data: Configuration data (dict, list, or value).
        path: Current path for error messages.

    Raises:
        ConfigError: If a key contains underscore.
    """
    if isinstance(data, dict):
        for key, value in data.items():
            if "_" in key:
                full_path = f"{path}.{key}" if path else key
                raise ConfigError(
                    f"Invalid key '{full_path}': underscore (_) is not allowed in keys. "
                    f"Use camelCase or single words instead."
                )
            child_path = f"{path}.{key}" if path else key
            validate_keys(value, child_path)
    elif isinstance(data, list):
        for i, item in enumerate(data):
            validate_keys(item, f"{path}[{i}]")


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Args:
        path: Path to TOML configuration file.

    Returns:
        Parsed configuration dict.

    Raises:
        ConfigError: If file not found, invalid TOML, or [static] keys contain
            underscore.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse TOML: {e}") from e

    static = config.get("static")
    if static is not None:
        validate_keys(static, "static")

    # Expand environment variables
    config = _expand_env_vars(config)

    return dict(config)


def _expand_env_vars(obj: Any) -> Any:
    """
    Recursively expand environment variables in config values.

    Supports:
    - ${VAR} - required, raises if not set
    - ${VAR:-default} - with default value
    """
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return _expand_string(obj)
    return obj


def _expand_string(s: str) -> str:
    """
    Expand environment variables in a string.

    Raises:
        ConfigError: If required variable is not set.
    """
    pattern = r"\$\{([^}]+)\}"

    def replace(match: re.Match[str]) -> str:
        expr = match.group(1)

        # Check for default value
        if ":-" in expr:
            var_name, default = expr.split(":-", 1)
            return os.environ.get(var_name, default)
        else:
            value = os.environ.get(expr)
            if value is None:
                raise ConfigError(f"Required environment variable not set: {expr}")
            return value

    return re.sub(pattern, replace, s)


def find_config_file() -> Path | None:
    """
    Find configuration file in standard locations.

    Searches:
    1. ASGI_STATICFS_CONFIG environment variable
    2. ./asgi-staticfs.toml
    3. ./config.toml
    4. ./config/asgi-staticfs.toml
    5. ~/.config/asgi-staticfs/config.toml

    Returns:
        Path to config file or None if not found.
    """
    env_config = os.environ.get("ASGI_STATICFS_CONFIG")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return path

    locations = [
        Path.cwd() / "asgi-staticfs.toml",
        Path.cwd() / "config.toml",
        Path.cwd() / "config" / "asgi-staticfs.toml",
        Path.home() / ".config" / "asgi-staticfs" / "config.toml",
    ]

    for path in locations:
        if path.exists():
            return path

    return None


def _store_from_section(section: Mapping[str, Any], base_dir: Path) -> FileStore:
    directory = section.get("directory")
    package = section.get("package")
    if (directory is None) == (package is None):
        raise ConfigError("[static] needs exactly one of 'directory' or 'package'")

    if directory is not None:
        path = Path(directory)
        if not path.is_absolute():
            path = base_dir / path
        if not path.is_dir():
            raise ConfigError(f"Static directory does not exist: {path}")
        return DirectoryFileStore(path)

    package_name, _, subdir = str(package).partition(":")
    try:
        return PackageFileStore(package_name, subdir)
    except ModuleNotFoundError as e:
        raise ConfigError(f"Static package not found: {package_name}") from e


def config_from_mapping(
    section: Mapping[str, Any],
    base_dir: str | Path | None = None,
) -> StaticConfig:
    """
    Build a StaticConfig from a [static] table.

    Args:
        section: Table with keys directory/package, root, prefix, cache, debug.
        base_dir: Base for a relative directory. Defaults to cwd.

    Raises:
        ConfigError: on unknown keys, a missing or doubled store, or bad values.
    """
    unknown = sorted(set(section) - set(SECTION_KEYS))
    if unknown:
        raise ConfigError(f"Unknown [static] keys: {', '.join(unknown)}")

    base = Path(base_dir) if base_dir is not None else Path.cwd()
    store = _store_from_section(section, base)

    debug = section.get("debug", False)
    if not isinstance(debug, bool):
        raise ConfigError(f"Invalid debug flag: {debug!r}")

    return StaticConfig(
        store=store,
        root=str(section.get("root", ".")),
        prefix=str(section.get("prefix", "/static")),
        cache_duration=parse_duration(section.get("cache")),
        debug=debug,
    )


if __name__ == "__main__":
    import argparse
    import json

    parser = argparse.ArgumentParser(description="Load and validate config")
    parser.add_argument("config", nargs="?", help="Config file path")
    parser.add_argument("--show", action="store_true", help="Show parsed config")
    args = parser.parse_args()

    config_path: Path | None
    if args.config:
        config_path = Path(args.config)
    else:
        config_path = find_config_file()

    if config_path is None:
        print("No configuration file found")
        sys.exit(1)

    print(f"Loading: {config_path}")

    try:
        config = load_config(config_path)
        static_config = config_from_mapping(config.get("static", {}), config_path.parent)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.show:
        print(json.dumps(config, indent=2, default=str))
        print(static_config)
