"""Typed representation of the attributes attached to a C++ source file.

Instances are produced by :mod:`cppAttributes.parser` (or any compatible
parser) and consumed read-only by the build units and exports generators.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterator, Sequence

EXPORT_ATTRIBUTE = "export"
DEPENDS_ATTRIBUTE = "depends"
INTERFACES_ATTRIBUTE = "interfaces"

INTERFACE_NATIVE = "cpp"
INTERFACE_HOST = "r"

# Exported names starting with this marker are host-only.
HIDDEN_MARKER = "."

KNOWN_ATTRIBUTES: frozenset[str] = frozenset(
    {EXPORT_ATTRIBUTE, DEPENDS_ATTRIBUTE, INTERFACES_ATTRIBUTE}
)


@dataclass(frozen=True)
class Argument:
    """Single function argument."""

    name: str
    type: str
    default_value: str = ""

    def __str__(self) -> str:
        return f"{self.type} {self.name}"


@dataclass(frozen=True)
class Function:
    """Signature of a C++ function declaration."""

    name: str = ""
    return_type: str = ""
    arguments: tuple[Argument, ...] = ()

    def is_empty(self) -> bool:
        return not self.name

    def renamed_to(self, name: str) -> "Function":
        """Return the same signature under a different name."""
        return replace(self, name=name)

    def argument_types(self) -> list[str]:
        return [arg.type for arg in self.arguments]

    def argument_names(self) -> list[str]:
        return [arg.name for arg in self.arguments]

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        return f"{self.return_type} {self.name}({args})"


@dataclass(frozen=True)
class Param:
    """Attribute parameter, either ``name`` or ``name=value``."""

    name: str
    value: str = ""


@dataclass(frozen=True)
class Attribute:
    """Parsed ``[[Rcpp::name(params)]]`` annotation."""

    name: str
    params: tuple[Param, ...] = ()
    function: Function = field(default_factory=Function)
    doc_lines: tuple[str, ...] = ()

    def has_parameter(self, name: str) -> bool:
        return any(param.name == name for param in self.params)

    def param_named(self, name: str) -> Param | None:
        for param in self.params:
            if param.name == name:
                return param
        return None

    @property
    def is_exported_function(self) -> bool:
        """True for ``export`` attributes that carry a function signature."""
        return self.name == EXPORT_ATTRIBUTE and not self.function.is_empty()

    @property
    def exported_name(self) -> str:
        """The first parameter name overrides the function's own name."""
        if self.params:
            return self.params[0].name
        return self.function.name


class SourceFileAttributes:
    """Ordered attributes discovered in a single source file."""

    def __init__(self, source_file: str | Path, attributes: Sequence[Attribute] = ()):
        self.source_file = Path(source_file)
        self._attributes: tuple[Attribute, ...] = tuple(attributes)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __getitem__(self, index: int) -> Attribute:
        return self._attributes[index]

    def is_empty(self) -> bool:
        return not self._attributes

    def exported_functions(self) -> list[Attribute]:
        return [attr for attr in self._attributes if attr.is_exported_function]

    @property
    def prototypes(self) -> list[str]:
        """Forward declarations for every exported function."""
        return [str(attr.function) for attr in self.exported_functions()]

    def has_interface(self, tag: str) -> bool:
        """Whether the file declares ``tag`` in its ``interfaces`` attribute.

        Files without an ``interfaces`` attribute only expose the host
        interface.
        """

        for attr in self._attributes:
            if attr.name == INTERFACES_ATTRIBUTE:
                return attr.has_parameter(tag)
        return tag == INTERFACE_HOST

    def __repr__(self) -> str:
        return (
            f"SourceFileAttributes(source_file={str(self.source_file)!r}, "
            f"attributes={len(self._attributes)})"
        )


__all__ = [
    "Argument",
    "Attribute",
    "DEPENDS_ATTRIBUTE",
    "EXPORT_ATTRIBUTE",
    "Function",
    "HIDDEN_MARKER",
    "INTERFACES_ATTRIBUTE",
    "INTERFACE_HOST",
    "INTERFACE_NATIVE",
    "KNOWN_ATTRIBUTES",
    "Param",
    "SourceFileAttributes",
]
