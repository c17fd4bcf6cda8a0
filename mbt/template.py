"""Placeholder templates used to render the archive manifest."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, TextIO
import re


_PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


class TemplateError(ValueError):
    """Raised when template resolution fails."""


@dataclass(frozen=True, slots=True)
class TemplateResolver:
    """Resolves ``{{dotted.path}}`` placeholders against a nested mapping context.

    Placeholders are substituted in a single pass: resolved values are written
    as they are, even when they contain ``{{...}}`` themselves.
    """

    context: Mapping[str, Any]

    def resolve(self, text: str) -> str:
        return _PLACEHOLDER_PATTERN.sub(lambda match: self._lookup(match.group(1).strip()), text)

    def _lookup(self, path: str) -> str:
        current: Any = self.context
        for part in path.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
                continue
            raise TemplateError(f"Cannot resolve path '{path}' in template context")
        if current is None:
            raise TemplateError(f"Placeholder '{path}' has no value")
        if isinstance(current, (Mapping, list, tuple)):
            raise TemplateError(f"Placeholder '{path}' does not resolve to a scalar value")
        return str(current)


@dataclass(frozen=True, slots=True)
class SectionTemplate:
    """A header rendered once followed by a record rendered per item.

    The header sees the shared variables; each record additionally sees the
    current item under ``item_name``.
    """

    header: str
    record: str
    item_name: str = "item"

    def render(self, stream: TextIO, variables: Mapping[str, Any], items: Iterable[Mapping[str, Any]]) -> None:
        stream.write(TemplateResolver(variables).resolve(self.header))
        for item in items:
            scoped = {**variables, self.item_name: item}
            stream.write(TemplateResolver(scoped).resolve(self.record))


__all__ = ["SectionTemplate", "TemplateError", "TemplateResolver"]
