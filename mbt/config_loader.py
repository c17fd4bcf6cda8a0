"""Loading of the optional mbt configuration file of a project."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping
import json
import tomllib

import yaml

from .console import Console
from .location import DEFAULT_DESCRIPTOR


ConfigLoader = Callable[[Any], Mapping[str, Any]]

CONFIG_STEM = "mbt"

FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS))
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def find_config_file(directory: Path, *, stem: str = CONFIG_STEM) -> Path | None:
    """Return the configuration file named ``stem`` in ``directory``, if any."""

    found = [
        directory / f"{stem}{suffix}"
        for suffix in FILE_LOADERS
        if (directory / f"{stem}{suffix}").is_file()
    ]
    if len(found) > 1:
        names = "', '".join(path.name for path in found)
        raise ValueError(
            f"Multiple configuration files found for '{stem}': '{names}'. "
            "Only one format per configuration entry is allowed."
        )
    return found[0] if found else None


def merge_mappings(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge two mapping objects."""

    result: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = merge_mappings(existing, value)
        else:
            result[key] = value
    return result


@dataclass(slots=True)
class BuildConfig:
    descriptor: str = DEFAULT_DESCRIPTOR
    target: str | None = None
    log_level: str = "info"
    only_modules: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuildConfig":
        section = data.get(CONFIG_STEM, {})
        if not isinstance(section, Mapping):
            raise TypeError(f"[{CONFIG_STEM}] section must be a mapping")
        log_level = str(section.get("log_level", "info")).lower()
        if log_level not in Console.LEVELS:
            raise ValueError(f"{CONFIG_STEM}.log_level must be one of: {', '.join(Console.LEVELS)}")
        only_modules = section.get("only_modules", False)
        if not isinstance(only_modules, bool):
            raise TypeError(f"{CONFIG_STEM}.only_modules must be a boolean if specified")
        target = section.get("target")
        return cls(
            descriptor=str(section.get("descriptor") or DEFAULT_DESCRIPTOR),
            target=str(target) if target else None,
            log_level=log_level,
            only_modules=only_modules,
        )

    @classmethod
    def from_directory(cls, directory: Path, *, overrides: Mapping[str, Any] | None = None) -> "BuildConfig":
        """Read the configuration of the project in ``directory``.

        Missing files yield the defaults; ``overrides`` are merged on top of the
        ``[mbt]`` section read from disk.
        """

        data: Mapping[str, Any] = {}
        path = find_config_file(directory)
        if path is not None:
            data = load_config_file(path)
        if overrides:
            cleaned = {key: value for key, value in overrides.items() if value is not None}
            data = merge_mappings(data, {CONFIG_STEM: cleaned})
        return cls.from_mapping(data)


__all__ = [
    "BuildConfig",
    "ConfigLoader",
    "FILE_LOADERS",
    "find_config_file",
    "load_config_file",
    "merge_mappings",
]
