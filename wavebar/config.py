"""Locating, loading and merging bar configuration files."""

from __future__ import annotations

import glob
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Iterable

log = logging.getLogger(__name__)

CONFIG_DIRS = [
    "$XDG_CONFIG_HOME/wavebar/",
    "$HOME/.config/wavebar/",
    "$HOME/wavebar/",
    "/etc/xdg/wavebar/",
    "/usr/local/etc/xdg/wavebar/",
    "./resources/",
]

CONFIG_PATH_ENV = "WAVEBAR_CONFIG_DIR"
MAX_INCLUDE_DEPTH = 100

_VARIABLE = re.compile(r"\$(?:\{(\w+)\}|(\w+))")


class ConfigError(RuntimeError):
    """Raised when configuration cannot be found, read or resolved."""


def _expand(text: str) -> str:
    """Expand variables (unset ones become empty), a leading tilde and globs."""
    text = _VARIABLE.sub(lambda m: os.environ.get(m.group(1) or m.group(2), ""), text)
    text = os.path.expanduser(text)
    if glob.has_magic(text):
        matches = sorted(glob.glob(text))
        if matches:
            text = matches[0]
    return text


def try_expand_path(base: str, filename: str = "") -> str | None:
    """Expand ``base/filename`` and return it if the result exists."""
    path = os.path.join(base, filename) if filename else base
    log.debug("Try expanding: %s", path)
    expanded = _expand(path)
    if expanded and os.path.exists(expanded):
        log.debug("Found config file: %s", path)
        return expanded
    return None


def find_config_path(names: Iterable[str], dirs: Iterable[str] | None = None) -> str | None:
    """Search the override directory, then ``dirs``, for the first existing name."""
    names = list(names)
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        for name in names:
            found = try_expand_path(override, name)
            if found:
                return found
    for directory in CONFIG_DIRS if dirs is None else dirs:
        for name in names:
            found = try_expand_path(directory, name)
            if found:
                return found
    return None


def merge_config(a: Any, b: Any) -> Any:
    """Merge ``b`` into ``a`` without overriding values already set in ``a``.

    Dictionaries are merged in place; the merged value is returned.
    """
    if a is None:
        return b
    if isinstance(a, dict) and isinstance(b, dict):
        for key, value in b.items():
            if isinstance(a.get(key), dict) and isinstance(value, dict):
                a[key] = merge_config(a[key], value)
            elif key not in a:
                a[key] = value
            else:
                log.debug("Option %s is already set; ignoring value %r", key, value)
        return a
    log.error("Cannot merge config, conflicting or invalid JSON types")
    return a


def is_valid_output(config: Any, name: str, identifier: str) -> bool:
    """Tell whether a bar configuration applies to the named output."""
    output = config.get("output") if isinstance(config, dict) else None
    if isinstance(output, list):
        for entry in output:
            if not isinstance(entry, str):
                continue
            if entry.startswith("!"):
                if entry[1:] in (name, identifier):
                    return False
                continue
            if entry in (name, identifier):
                return True
            if entry.startswith("*"):
                return True
        return False
    if isinstance(output, str) and output:
        if output.startswith("!"):
            return output[1:] != name and output[1:] != identifier
        return output in (name, identifier)
    return True


class Config:
    """The loaded configuration, with includes resolved."""

    def __init__(self) -> None:
        self.config: Any = None
        self.config_file: str | None = None

    def load(self, path: str | None = None) -> None:
        """Load ``path``, or the first configuration found in the search path."""
        file = path or find_config_path(["config", "config.jsonc"])
        if not file:
            raise ConfigError("Missing required resource files")
        self.config_file = file
        log.info("Using configuration file %s", file)
        self.config = self.setup_config(self.config, file, 0)

    def setup_config(self, dst: Any, config_file: str, depth: int) -> Any:
        """Read ``config_file``, resolve its includes and merge it into ``dst``."""
        if depth > MAX_INCLUDE_DEPTH:
            raise ConfigError("Aborting due to likely recursive include in config files")
        try:
            text = Path(config_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError("Can't open config file") from exc
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config file {config_file}: {exc}") from exc
        if isinstance(parsed, list):
            for part in parsed:
                self.resolve_config_includes(part, depth)
        else:
            self.resolve_config_includes(parsed, depth)
        return merge_config(dst, parsed)

    def resolve_config_includes(self, config: Any, depth: int) -> None:
        """Merge every file named by the ``include`` key into ``config``."""
        if not isinstance(config, dict):
            return
        includes = config.get("include")
        if isinstance(includes, str):
            includes = [includes]
        elif not isinstance(includes, list):
            return
        for include in includes:
            include = include if isinstance(include, str) else ""
            log.info("Including resource file: %s", include)
            depth += 1
            self.setup_config(config, try_expand_path(include) or "", depth)

    def get_output_configs(self, name: str, identifier: str) -> list[Any]:
        """Return the bar configurations that apply to the given output."""
        if isinstance(self.config, list):
            return [
                config
                for config in self.config
                if isinstance(config, dict) and is_valid_output(config, name, identifier)
            ]
        if is_valid_output(self.config, name, identifier):
            return [self.config]
        return []