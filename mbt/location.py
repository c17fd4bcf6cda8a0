"""Filesystem locations used while building an MTA archive."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


TEMP_FOLDER_SUFFIX = "_mta_build_tmp"
META_INF = "META-INF"
MANIFEST_FILE = "MANIFEST.MF"
DEFAULT_DESCRIPTOR = "mta.yaml"


@runtime_checkable
class TargetPaths(Protocol):
    """Locations consulted while describing the archive content."""

    def get_source(self) -> Path:
        ...

    def get_target_tmp_dir(self) -> Path:
        ...

    def get_manifest_path(self) -> Path:
        ...


def temp_folder_name(source: Path) -> str:
    return f".{source.name}{TEMP_FOLDER_SUFFIX}"


@dataclass(frozen=True, slots=True)
class Location:
    """Project locations derived from the source and target directories.

    ``target`` defaults to ``source``. Build results are staged in the
    temporary directory ``<target>/.<source name>_mta_build_tmp``; the
    manifest is written to ``META-INF/MANIFEST.MF`` inside it.
    """

    source: Path
    target: Path | None = None
    descriptor: str = DEFAULT_DESCRIPTOR

    def get_source(self) -> Path:
        return self.source

    def get_target(self) -> Path:
        return self.target if self.target is not None else self.source

    def get_descriptor_path(self) -> Path:
        return self.source / self.descriptor

    def get_target_tmp_dir(self) -> Path:
        return self.get_target() / temp_folder_name(self.source)

    def get_meta_path(self) -> Path:
        return self.get_target_tmp_dir() / META_INF

    def get_manifest_path(self) -> Path:
        return self.get_meta_path() / MANIFEST_FILE


__all__ = [
    "DEFAULT_DESCRIPTOR",
    "Location",
    "MANIFEST_FILE",
    "META_INF",
    "TargetPaths",
    "temp_folder_name",
]
