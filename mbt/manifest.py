"""Generation of the archive manifest (META-INF/MANIFEST.MF).

The manifest holds a name section for each module included in the archive,
for each required dependency and for each resource that points to content
in the archive. Every section names the archive-relative path of the entry,
binds it to the MTA element through an ``MTA-Module``, ``MTA-Requires`` or
``MTA-Resource`` attribute and states its content type. The deploy service
relies on this layout to map archive content back to the descriptor.
"""
from __future__ import annotations

from contextlib import contextmanager, suppress
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Callable, Dict, Iterator, List, Protocol, Sequence, TextIO

from .console import BuildConsole, NullConsole
from .descriptor import Module, Resource
from .location import TargetPaths
from .template import SectionTemplate, TemplateError
from .version import VersionInfo, get_version


APPLICATION_ZIP = "application/zip"
DIRECTORY_CONTENT_TYPE = "text/directory"
DATA_ZIP = "data.zip"

MANIFEST_TEMPLATE = SectionTemplate(
    header=(
        "Manifest-Version: 1.0\n"
        "Created-By: SAP Application Archive Builder {{cli_version}}\n"
    ),
    record=(
        "\n"
        "Name: {{entry.path}}\n"
        "{{entry.kind}}: {{entry.name}}\n"
        "Content-Type: {{entry.content_type}}\n"
    ),
    item_name="entry",
)


class ContentTypeError(FileNotFoundError):
    """Raised when the content type of a missing path is requested."""

    def __init__(self, path: Path):
        super().__init__(f"the {path} path does not exist, content type not defined")
        self.path = path


class ManifestError(RuntimeError):
    """Raised when the manifest cannot be generated."""


class ManifestIOError(ManifestError):
    """Raised when the manifest file cannot be created or closed."""


class EntryKind(str, Enum):
    MODULE = "MTA-Module"
    REQUIRED_DEPENDENCY = "MTA-Requires"
    RESOURCE = "MTA-Resource"


@dataclass(frozen=True, slots=True)
class Entry:
    name: str
    kind: EntryKind
    content_type: str
    path: str

    def to_mapping(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "content_type": self.content_type,
            "path": self.path,
        }


class ManifestTarget(Protocol):
    def get_manifest_path(self) -> Path:
        ...


def _join_under(directory: Path, path: str) -> Path:
    # Absolute paths are still looked up inside ``directory``.
    relative = PurePath(path)
    if relative.anchor:
        relative = relative.relative_to(relative.anchor)
    return directory / relative


def get_content_type(target_paths: TargetPaths | None, path: str) -> str:
    """Classify ``path`` relative to the temporary target directory."""

    if target_paths is None:
        return APPLICATION_ZIP
    target_path = _join_under(target_paths.get_target_tmp_dir(), path)
    if not target_path.exists():
        raise ContentTypeError(target_path)
    if target_path.is_dir():
        return DIRECTORY_CONTENT_TYPE
    return APPLICATION_ZIP


def _module_zip(module: Module) -> str:
    return f"{module.name}/{DATA_ZIP}"


def get_module_path(module: Module, target_paths: TargetPaths | None) -> str:
    """Return the archive path of ``module``: its built ``data.zip`` if present, else its source path."""

    if target_paths is None:
        return _module_zip(module)
    directories = (target_paths.get_source(), target_paths.get_target_tmp_dir())
    if any((directory / _module_zip(module)).exists() for directory in directories):
        return _module_zip(module)
    return module.path or ""


def module_defined(name: str, modules: Sequence[str] | None) -> bool:
    return not modules or name in modules


def _required_dependency_entries(target_paths: TargetPaths | None, module: Module) -> List[Entry]:
    entries: List[Entry] = []
    for requirement in module.requires:
        if requirement.path is None:
            continue
        entries.append(
            Entry(
                name=f"{module.name}/{requirement.name}",
                kind=EntryKind.REQUIRED_DEPENDENCY,
                content_type=get_content_type(target_paths, requirement.path),
                path=requirement.path,
            )
        )
    return entries


def build_manifest_entries(
    mta_modules: Sequence[Module],
    mta_resources: Sequence[Resource],
    target_paths: TargetPaths | None,
    modules: Sequence[str] | None = None,
    only_modules: bool = False,
) -> List[Entry]:
    """Describe the archive content as an ordered list of manifest entries.

    Each included module contributes its own entry followed by its required
    dependencies; resources come last. With ``only_modules`` set, dependencies
    and resources are left out.
    """

    entries: List[Entry] = []
    for module in mta_modules:
        if not module_defined(module.name, modules):
            continue
        module_path = get_module_path(module, target_paths)
        try:
            content_type = get_content_type(target_paths, module_path)
        except ContentTypeError as exc:
            raise ManifestError(
                f"generation of the manifest failed when getting the {module.name} module content type"
            ) from exc
        entries.append(Entry(name=module.name, kind=EntryKind.MODULE, content_type=content_type, path=module_path))

        if only_modules:
            continue
        try:
            entries.extend(_required_dependency_entries(target_paths, module))
        except ContentTypeError as exc:
            raise ManifestError(
                f"generation of the manifest failed when building required entries of the {module.name} module"
            ) from exc

    if only_modules:
        return entries

    for resource in mta_resources:
        if resource.path is None:
            continue
        try:
            content_type = get_content_type(target_paths, resource.path)
        except ContentTypeError as exc:
            raise ManifestError(
                f"generation of the manifest failed when getting the {resource.name} resource content type"
            ) from exc
        entries.append(Entry(name=resource.name, kind=EntryKind.RESOURCE, content_type=content_type, path=resource.path))
    return entries


def populate_manifest(stream: TextIO, variables: Dict[str, Any]) -> None:
    entries: Sequence[Entry] = variables["entries"]
    try:
        MANIFEST_TEMPLATE.render(
            stream,
            {"cli_version": variables["cli_version"]},
            (entry.to_mapping() for entry in entries),
        )
    except TemplateError as exc:
        raise ManifestError("failed to generate the manifest file when populating the content") from exc


@contextmanager
def _manifest_file(manifest_path: Path) -> Iterator[TextIO]:
    try:
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        handle = manifest_path.open("w", encoding="utf-8", newline="\n")
    except OSError as exc:
        raise ManifestIOError("failed to generate the manifest file when creating the manifest file") from exc
    try:
        yield handle
    except BaseException:
        # The pending error wins over a failing close.
        with suppress(OSError):
            handle.close()
        raise
    try:
        handle.close()
    except OSError as exc:
        raise ManifestIOError(f"failed to close the manifest file {manifest_path}") from exc


def generate_manifest(
    manifest_path: Path,
    entries: Sequence[Entry],
    *,
    version_provider: Callable[[], VersionInfo] = get_version,
) -> None:
    """Render ``entries`` into the manifest file at ``manifest_path``."""

    try:
        version = version_provider()
    except Exception as exc:
        raise ManifestError("failed to generate the manifest file when getting the CLI version") from exc

    variables: Dict[str, Any] = {
        "entries": list(entries),
        "cli_version": version.cli_version,
    }
    with _manifest_file(manifest_path) as handle:
        populate_manifest(handle, variables)


def set_manifest_desc(
    artifacts: ManifestTarget,
    target_paths: TargetPaths | None,
    mta_modules: Sequence[Module],
    mta_resources: Sequence[Resource],
    modules: Sequence[str] | None = None,
    only_modules: bool = False,
    *,
    console: BuildConsole | None = None,
    version_provider: Callable[[], VersionInfo] = get_version,
) -> Path:
    """Build the manifest entries and write them to ``artifacts.get_manifest_path()``."""

    console = console or NullConsole()
    entries = build_manifest_entries(mta_modules, mta_resources, target_paths, modules, only_modules)
    for entry in entries:
        console.debug(f"{entry.kind.value} {entry.name}: {entry.path} ({entry.content_type})")
    manifest_path = artifacts.get_manifest_path()
    console.info(f"generating the {manifest_path.name} file...")
    generate_manifest(manifest_path, entries, version_provider=version_provider)
    console.info(f"the {manifest_path.name} file generated successfully")
    return manifest_path


__all__ = [
    "APPLICATION_ZIP",
    "ContentTypeError",
    "DIRECTORY_CONTENT_TYPE",
    "Entry",
    "EntryKind",
    "MANIFEST_TEMPLATE",
    "ManifestError",
    "ManifestIOError",
    "ManifestTarget",
    "build_manifest_entries",
    "generate_manifest",
    "get_content_type",
    "get_module_path",
    "module_defined",
    "populate_manifest",
    "set_manifest_desc",
]
