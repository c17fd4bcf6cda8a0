"""MTA descriptor data model and YAML loader."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import yaml


class DescriptorError(ValueError):
    """Raised when the MTA descriptor has an unsupported shape."""


def _optional_path(parameters: Mapping[str, Any], *, owner: str) -> str | None:
    value = parameters.get("path")
    if value is None:
        return None
    if not isinstance(value, str):
        raise DescriptorError(f"The 'path' parameter of {owner} must be a string, got {type(value).__name__}")
    return value


def _parameters_section(data: Mapping[str, Any], key: str, *, owner: str) -> Dict[str, Any]:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise DescriptorError(f"'{key}' of {owner} must be a mapping")
    return {str(name): value for name, value in section.items()}


def _entry_name(data: Any, *, kind: str) -> str:
    if not isinstance(data, Mapping):
        raise DescriptorError(f"Each {kind} entry must be a mapping")
    name = data.get("name")
    if not name or not str(name).strip():
        raise DescriptorError(f"Each {kind} entry must include a non-empty 'name'")
    return str(name).strip()


def _sequence_section(data: Mapping[str, Any], key: str, *, owner: str) -> Sequence[Any]:
    section = data.get(key)
    if section is None:
        return []
    if not isinstance(section, Sequence) or isinstance(section, (str, bytes)):
        raise DescriptorError(f"'{key}' of {owner} must be a list")
    return section


@dataclass(frozen=True, slots=True)
class Requires:
    """A runtime requirement of a module; only ``path`` is interpreted."""

    name: str
    path: str | None = None
    parameters: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Any, *, module: str) -> "Requires":
        name = _entry_name(data, kind=f"module '{module}' requires")
        owner = f"requires '{name}' of module '{module}'"
        parameters = _parameters_section(data, "parameters", owner=owner)
        return cls(name=name, path=_optional_path(parameters, owner=owner), parameters=parameters)


@dataclass(frozen=True, slots=True)
class BuildRequires:
    """A module needed at build time, declared under ``build-parameters``."""

    name: str
    artifacts: List[str] = field(default_factory=list)
    target_path: str | None = None

    @classmethod
    def from_mapping(cls, data: Any, *, module: str) -> "BuildRequires":
        name = _entry_name(data, kind=f"module '{module}' build requires")
        artifacts = [str(item) for item in _sequence_section(data, "artifacts", owner=f"build requires '{name}'")]
        target_path = data.get("target-path")
        return cls(name=name, artifacts=artifacts, target_path=str(target_path) if target_path else None)


@dataclass(frozen=True, slots=True)
class BuildParameters:
    builder: str | None = None
    requires: List[BuildRequires] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, module: str) -> "BuildParameters":
        owner = f"build-parameters of module '{module}'"
        requires = [
            BuildRequires.from_mapping(item, module=module)
            for item in _sequence_section(data, "requires", owner=owner)
        ]
        builder = data.get("builder")
        return cls(builder=str(builder) if builder else None, requires=requires)


@dataclass(frozen=True, slots=True)
class Module:
    name: str
    index: int
    type: str | None = None
    path: str | None = None
    requires: List[Requires] = field(default_factory=list)
    build_parameters: BuildParameters = field(default_factory=BuildParameters)

    @classmethod
    def from_mapping(cls, data: Any, *, index: int) -> "Module":
        name = _entry_name(data, kind="module")
        owner = f"module '{name}'"
        requires = [Requires.from_mapping(item, module=name) for item in _sequence_section(data, "requires", owner=owner)]
        build_section = _parameters_section(data, "build-parameters", owner=owner)
        path = data.get("path")
        if path is not None and not isinstance(path, str):
            raise DescriptorError(f"The 'path' of {owner} must be a string")
        module_type = data.get("type")
        return cls(
            name=name,
            index=index,
            type=str(module_type) if module_type else None,
            path=path,
            requires=requires,
            build_parameters=BuildParameters.from_mapping(build_section, module=name),
        )


@dataclass(frozen=True, slots=True)
class Resource:
    name: str
    type: str | None = None
    path: str | None = None
    parameters: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Any) -> "Resource":
        name = _entry_name(data, kind="resource")
        owner = f"resource '{name}'"
        parameters = _parameters_section(data, "parameters", owner=owner)
        resource_type = data.get("type")
        return cls(
            name=name,
            type=str(resource_type) if resource_type else None,
            path=_optional_path(parameters, owner=owner),
            parameters=parameters,
        )


@dataclass(slots=True)
class MTA:
    id: str
    version: str | None = None
    modules: List[Module] = field(default_factory=list)
    resources: List[Resource] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Any) -> "MTA":
        if not isinstance(data, Mapping):
            raise DescriptorError("The MTA descriptor must contain a mapping at the root")
        mta_id = data.get("ID")
        if not mta_id:
            raise DescriptorError("The MTA descriptor must define an 'ID'")

        modules: List[Module] = []
        seen: set[str] = set()
        for index, item in enumerate(_sequence_section(data, "modules", owner="the MTA descriptor")):
            module = Module.from_mapping(item, index=index)
            if module.name in seen:
                raise DescriptorError(f"Module '{module.name}' is defined more than once")
            seen.add(module.name)
            modules.append(module)

        resources = [Resource.from_mapping(item) for item in _sequence_section(data, "resources", owner="the MTA descriptor")]
        version = data.get("version")
        return cls(
            id=str(mta_id),
            version=str(version) if version is not None else None,
            modules=modules,
            resources=resources,
        )

    def module_names(self) -> List[str]:
        return [module.name for module in self.modules]


def parse_descriptor(text: str) -> MTA:
    """Parse MTA descriptor *text* (YAML) into an :class:`MTA`."""

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DescriptorError(f"Invalid MTA descriptor: {exc}") from exc
    return MTA.from_mapping(data)


def load_descriptor(path: Path) -> MTA:
    """Load the MTA descriptor stored at ``path``."""

    if not path.is_file():
        raise FileNotFoundError(f"MTA descriptor not found: {path}")
    return parse_descriptor(path.read_text(encoding="utf-8"))


__all__ = [
    "BuildParameters",
    "BuildRequires",
    "DescriptorError",
    "MTA",
    "Module",
    "Requires",
    "Resource",
    "load_descriptor",
    "parse_descriptor",
]
