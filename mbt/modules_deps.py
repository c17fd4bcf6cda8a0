"""Build ordering of MTA modules based on their build-parameters requirements."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .console import BuildConsole, NullConsole
from .descriptor import MTA, Module


class ModulesOrderError(ValueError):
    """Raised when a build order cannot be computed."""


class CycleDetectedError(ModulesOrderError):
    def __init__(self, module_a: str, module_b: str):
        super().__init__(f"Circular dependency found. Check modules {module_a} and {module_b}")
        self.module_a = module_a
        self.module_b = module_b


class UnknownDependencyError(ModulesOrderError):
    def __init__(self, module: str, dependency: str):
        super().__init__(f"Module '{module}' requires '{dependency}', which is not defined in the MTA descriptor")
        self.module = module
        self.dependency = dependency


class UnknownModuleError(ModulesOrderError):
    def __init__(self, name: str, available: Iterable[str]):
        listed = ", ".join(available) or "<none>"
        super().__init__(f"Module '{name}' not found. Available modules: {listed}")
        self.name = name


@dataclass(slots=True)
class GraphNode:
    module: str
    index: int
    deps: set[str] = field(default_factory=set)


Graph = Dict[str, GraphNode]


def build_graph(modules: Sequence[Module]) -> Graph:
    """Create one node per module holding the names it requires at build time."""

    graph: Graph = {}
    for index, module in enumerate(modules):
        deps = {requirement.name for requirement in module.build_parameters.requires}
        graph[module.name] = GraphNode(module=module.name, index=index, deps=deps)
    return graph


def _cyclic_modules(remaining: Graph) -> tuple[str, str]:
    # Diagnostic only: any two remaining modules, not necessarily adjacent in the cycle.
    nodes = sorted(remaining.values(), key=lambda node: node.index)
    first = nodes[0].module
    second = nodes[1].module if len(nodes) > 1 else first
    return first, second


def resolve_graph(graph: Graph, *, console: BuildConsole | None = None) -> List[str]:
    """Resolve ``graph`` into a build order using Kahn's algorithm.

    Nodes without dependencies are removed in rounds; every round is emitted in
    declaration order. When nodes remain but none is ready the graph holds a
    cycle and :class:`CycleDetectedError` is raised. ``graph`` is consumed.
    """

    console = console or NullConsole()
    remaining = graph
    resolved: List[str] = []
    while remaining:
        ready = [node for node in remaining.values() if not node.deps]
        if not ready:
            module_a, module_b = _cyclic_modules(remaining)
            raise CycleDetectedError(module_a, module_b)

        ready.sort(key=lambda node: node.index)
        ready_names = {node.module for node in ready}
        console.debug(f"modules ready to build: {', '.join(node.module for node in ready)}")
        for node in ready:
            resolved.append(node.module)
            del remaining[node.module]
        for node in remaining.values():
            node.deps -= ready_names
    return resolved


def _check_dependencies(modules: Sequence[Module]) -> None:
    names = {module.name for module in modules}
    for module in modules:
        for requirement in module.build_parameters.requires:
            if requirement.name not in names:
                raise UnknownDependencyError(module.name, requirement.name)


def _with_dependencies(mta: MTA, selected: Iterable[str]) -> List[Module]:
    by_name = {module.name: module for module in mta.modules}
    pending = list(selected)
    for name in pending:
        if name not in by_name:
            raise UnknownModuleError(name, by_name)

    included: set[str] = set()
    while pending:
        name = pending.pop()
        if name in included:
            continue
        included.add(name)
        pending.extend(requirement.name for requirement in by_name[name].build_parameters.requires)
    return [module for module in mta.modules if module.name in included]


def get_modules_order(
    mta: MTA,
    modules: Sequence[str] | None = None,
    *,
    console: BuildConsole | None = None,
) -> List[str]:
    """Return module names of ``mta`` ordered so that build requirements come first.

    When ``modules`` is given, only those modules and everything they
    transitively require at build time are returned.
    """

    _check_dependencies(mta.modules)
    candidates = _with_dependencies(mta, modules) if modules else list(mta.modules)
    return resolve_graph(build_graph(candidates), console=console)


__all__ = [
    "CycleDetectedError",
    "Graph",
    "GraphNode",
    "ModulesOrderError",
    "UnknownDependencyError",
    "UnknownModuleError",
    "build_graph",
    "get_modules_order",
    "resolve_graph",
]
