"""
Template Compiler - {field} Placeholder Substitution

Templates are tokenized once into literal and placeholder spans and cached.
Rendering replaces a placeholder with the stringified field value. A
placeholder whose field is null or absent is left visible as "{field}" so a
reviewer can see that required data is missing.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping, Union

from alertops.utils.text import stringify

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Placeholder:
    name: str

    @property
    def raw(self) -> str:
        return "{" + self.name + "}"


Span = Union[Literal, Placeholder]


@dataclass(frozen=True)
class CompiledTemplate:
    source: str
    spans: tuple[Span, ...]

    @property
    def placeholders(self) -> tuple[str, ...]:
        return tuple(span.name for span in self.spans if isinstance(span, Placeholder))

    def render(self, values: Mapping[str, Any]) -> str:
        parts = []
        for span in self.spans:
            if isinstance(span, Literal):
                parts.append(span.text)
                continue
            value = values.get(span.name)
            parts.append(span.raw if value is None else stringify(value))
        return "".join(parts)

    def unresolved(self, values: Mapping[str, Any]) -> list[str]:
        """Placeholders that would stay visible for these values."""
        return [name for name in self.placeholders if values.get(name) is None]


@lru_cache(maxsize=512)
def compile_template(source: str) -> CompiledTemplate:
    spans: list[Span] = []
    position = 0
    for match in _PLACEHOLDER.finditer(source):
        if match.start() > position:
            spans.append(Literal(source[position:match.start()]))
        spans.append(Placeholder(match.group(1)))
        position = match.end()
    if position < len(source):
        spans.append(Literal(source[position:]))
    return CompiledTemplate(source=source, spans=tuple(spans))


def render_template(source: str, values: Mapping[str, Any]) -> str:
    return compile_template(source).render(values)
