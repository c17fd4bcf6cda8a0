"""Version information of the mbt tool."""
from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata

from . import __version__

DISTRIBUTION_NAME = "mta-build-planner"


@dataclass(frozen=True, slots=True)
class VersionInfo:
    cli_version: str


def get_version() -> VersionInfo:
    """Return the version of the installed distribution, or the source tree version."""

    try:
        version = metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        version = __version__
    return VersionInfo(cli_version=version)
