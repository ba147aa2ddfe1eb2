"""Writers that keep the generated export artifacts of a package in sync.

Every generator owns one target file. A batch run drives all generators
through the same phases::

    write_begin() -> write_functions(attrs) x N -> write_end() -> commit()

``commit`` only touches the disk when the freshly rendered content differs
from what is already there, and a generator refuses to be constructed over a
file that does not carry :data:`GENERATOR_TOKEN`.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Sequence

from .config import DEFAULT_LAYOUT, ExportLayout, PlatformInfo
from .exceptions import UnsafeOverwriteError
from .Log import Log
from .model import (
    HIDDEN_MARKER,
    INTERFACE_HOST,
    INTERFACE_NATIVE,
    Attribute,
    SourceFileAttributes,
)
from .paths import FileInfo, create_directory, read_text, remove_file, write_text

if TYPE_CHECKING:
    from loguru import Logger

# Changing this value makes every previously generated file look hand-written.
GENERATOR_TOKEN = "10BE3573-1514-4C36-9D1C-5A225CD40393"

GENERATED_BY = "cppAttributes.compile_attributes"


class GeneratorKind(str, enum.Enum):
    """Closed set of artifacts a generator can produce."""

    MANIFEST = "manifest"
    FORWARDING_HEADER = "forwarding_header"
    WRAPPER_SCRIPT = "wrapper_script"


class GeneratorState(enum.Enum):
    CONSTRUCTED = enum.auto()
    BEGIN_WRITTEN = enum.auto()
    FUNCTIONS_WRITTEN = enum.auto()
    END_WRITTEN = enum.auto()
    COMMITTED = enum.auto()
    REMOVED = enum.auto()


def generate_module_functions(
    out: StringIO,
    attributes: SourceFileAttributes,
    *,
    layout: ExportLayout = DEFAULT_LAYOUT,
    verbose: bool = False,
) -> None:
    """Write one registration line per exported function in ``attributes``."""

    for attribute in attributes:
        if not attribute.is_exported_function:
            continue
        function = attribute.function
        if verbose:
            Log().logger.info(f"  {function}")
        out.write(
            f'    {layout.register_call}("{attribute.exported_name}", '
            f"&{function.name});\n"
        )


def generate_module(
    module_name: str,
    attributes: SourceFileAttributes,
    *,
    layout: ExportLayout = DEFAULT_LAYOUT,
    verbose: bool = False,
) -> str:
    """Render a complete registration block for a single source file."""

    out = StringIO()
    out.write(f"{layout.module_macro}({module_name}) {{\n")
    generate_module_functions(out, attributes, layout=layout, verbose=verbose)
    out.write("}\n")
    return out.getvalue()


def _placeholder_declaration(attribute: Attribute) -> str:
    args = ", ".join(attribute.function.argument_names())
    return f"{attribute.exported_name} <- function({args}) {{}}\n"


class ExportsGenerator(ABC):
    """Lifecycle of one generated file.

    The existing content is read once at construction. Subclasses render into
    the buffer returned by :meth:`ostr` and finish with :meth:`_commit` or
    :meth:`remove`.
    """

    kind: GeneratorKind

    def __init__(self, target_file: str | Path, comment_prefix: str) -> None:
        self.target_file = Path(target_file)
        self.comment_prefix = comment_prefix
        self.existing_code = ""
        self.state = GeneratorState.CONSTRUCTED
        self._code = StringIO()

        if FileInfo.of(self.target_file).exists:
            self.existing_code = read_text(self.target_file)
        if not self.is_safe_to_overwrite():
            raise UnsafeOverwriteError(self.target_file)

    @property
    def logger(self) -> "Logger":
        return Log.current()

    def ostr(self) -> StringIO:
        return self._code

    @property
    def code(self) -> str:
        """Body accumulated so far, without the header."""
        return self._code.getvalue()

    def is_safe_to_overwrite(self) -> bool:
        return not self.existing_code or GENERATOR_TOKEN in self.existing_code

    def _advance(self, allowed: Sequence[GeneratorState], target: GeneratorState) -> None:
        if self.state not in allowed:
            raise RuntimeError(
                f"{type(self).__name__} cannot move from {self.state.name} "
                f"to {target.name}"
            )
        self.state = target

    def write_begin(self) -> None:
        self._advance((GeneratorState.CONSTRUCTED,), GeneratorState.BEGIN_WRITTEN)
        self._write_begin()

    def write_functions(self, attributes: SourceFileAttributes, verbose: bool = False) -> None:
        self._advance(
            (GeneratorState.BEGIN_WRITTEN, GeneratorState.FUNCTIONS_WRITTEN),
            GeneratorState.FUNCTIONS_WRITTEN,
        )
        self._write_functions(attributes, verbose)

    def write_end(self) -> None:
        self._advance(
            (GeneratorState.BEGIN_WRITTEN, GeneratorState.FUNCTIONS_WRITTEN),
            GeneratorState.END_WRITTEN,
        )
        self._write_end()

    def commit(self, includes: Sequence[str] = (), prototypes: Sequence[str] = ()) -> bool:
        """Persist the generated file; returns ``True`` when the disk changed."""
        if self.state is not GeneratorState.END_WRITTEN:
            raise RuntimeError(
                f"{type(self).__name__} cannot commit from {self.state.name}"
            )
        return self._commit_artifact(list(includes), list(prototypes))

    @abstractmethod
    def _write_begin(self) -> None: ...

    @abstractmethod
    def _write_functions(self, attributes: SourceFileAttributes, verbose: bool) -> None: ...

    @abstractmethod
    def _write_end(self) -> None: ...

    @abstractmethod
    def _commit_artifact(self, includes: list[str], prototypes: list[str]) -> bool: ...

    def header(self, preamble: str = "") -> str:
        prefix = self.comment_prefix
        return (
            f"{prefix} This file was generated by {GENERATED_BY}\n"
            f"{prefix} Generator token: {GENERATOR_TOKEN}\n\n"
            f"{preamble}"
        )

    def _commit(self, preamble: str = "") -> bool:
        """Write header, preamble and body unless they match the existing file."""
        code = self.code
        self.state = GeneratorState.COMMITTED
        if not code and not FileInfo.of(self.target_file).exists:
            return False

        generated = self.header(preamble) + code
        if generated == self.existing_code:
            self.logger.debug(f"{self.target_file} is already up to date")
            return False
        write_text(self.target_file, generated)
        self.existing_code = generated
        self.logger.debug(f"Wrote {self.target_file}")
        return True

    def remove(self) -> bool:
        """Delete the generated file; returns ``True`` when a file was removed."""
        self.state = GeneratorState.REMOVED
        removed = remove_file(self.target_file)
        if removed:
            self.existing_code = ""
            self.logger.debug(f"Removed {self.target_file}")
        return removed

    def __repr__(self) -> str:
        return f"{type(self).__name__}(target_file={str(self.target_file)!r})"


def _include_preamble(includes: Sequence[str]) -> str:
    if not includes:
        return ""
    return "".join(f"{line}\n" for line in includes) + "\n"


class ManifestGenerator(ExportsGenerator):
    """Registers every exported function in one aggregate module block."""

    kind = GeneratorKind.MANIFEST

    def __init__(
        self,
        package_dir: str | Path,
        platform: PlatformInfo,
        layout: ExportLayout = DEFAULT_LAYOUT,
    ) -> None:
        super().__init__(layout.manifest_path(str(package_dir), platform), "//")
        self.layout = layout

    def _write_begin(self) -> None:
        self.ostr().write(f"{self.layout.module_macro}({self.layout.exports_name}) {{\n")

    def _write_functions(self, attributes: SourceFileAttributes, verbose: bool) -> None:
        if verbose:
            Log().logger.info(f"Exports from {attributes.source_file}:")
        generate_module_functions(
            self.ostr(), attributes, layout=self.layout, verbose=verbose
        )
        if verbose:
            Log().logger.info("")

    def _write_end(self) -> None:
        self.ostr().write("}\n")

    def _commit_artifact(self, includes: list[str], prototypes: list[str]) -> bool:
        preamble = _include_preamble(includes)
        if prototypes:
            preamble += "".join(f"{line};\n" for line in prototypes) + "\n"
        return self._commit(preamble)


class ForwardingHeaderGenerator(ExportsGenerator):
    """Inline C++ stubs that call exported functions through the registry."""

    kind = GeneratorKind.FORWARDING_HEADER

    def __init__(
        self,
        package_dir: str | Path,
        package_name: str,
        platform: PlatformInfo,
        layout: ExportLayout = DEFAULT_LAYOUT,
    ) -> None:
        super().__init__(
            layout.header_path(str(package_dir), package_name, platform), "//"
        )
        self.layout = layout
        self.scope = package_name
        self.include_dir = Path(layout.include_path(str(package_dir), platform))
        self.has_native_interface = False

    def _write_begin(self) -> None:
        self.ostr().write(f"namespace {self.scope} {{\n")

    def _write_functions(self, attributes: SourceFileAttributes, verbose: bool) -> None:
        if not attributes.has_interface(INTERFACE_NATIVE):
            return

        out = self.ostr()
        lookup = self.layout.callable_lookup
        module = self.layout.exports_name
        for attribute in attributes:
            if not attribute.is_exported_function:
                continue
            self.has_native_interface = True

            function = attribute.function.renamed_to(attribute.exported_name)
            if function.name.startswith(HIDDEN_MARKER):
                continue

            pointer = f"p_{function.name}"
            arg_types = ",".join(function.argument_types())
            arg_names = ",".join(function.argument_names())
            out.write(f"    inline {function} {{\n")
            out.write(
                f"        static {function.return_type}(*{pointer})({arg_types}) = "
                f'{lookup}("{module}", "{function.name}");\n'
            )
            out.write(f"        return {pointer}({arg_names});\n")
            out.write("    }\n")

    def _write_end(self) -> None:
        self.ostr().write("}\n")

    def _commit_artifact(self, includes: list[str], prototypes: list[str]) -> bool:
        if not self.has_native_interface:
            return self.remove()
        create_directory(self.include_dir)
        return self._commit(_include_preamble(includes))


class WrapperScriptGenerator(ExportsGenerator):
    """Host script that documents exports and loads the registered module."""

    kind = GeneratorKind.WRAPPER_SCRIPT

    def __init__(
        self,
        package_dir: str | Path,
        platform: PlatformInfo,
        layout: ExportLayout = DEFAULT_LAYOUT,
    ) -> None:
        super().__init__(layout.wrapper_path(str(package_dir), platform), "#")
        self.layout = layout
        self.host_exports: list[str] = []

    def _write_begin(self) -> None:
        pass

    def _write_functions(self, attributes: SourceFileAttributes, verbose: bool) -> None:
        if not attributes.has_interface(INTERFACE_HOST):
            return

        out = self.ostr()
        for attribute in attributes.exported_functions():
            self.host_exports.append(attribute.exported_name)
            if not attribute.doc_lines:
                continue
            out.write("\n")
            for line in attribute.doc_lines:
                out.write(f"#'{line}\n")
            out.write(_placeholder_declaration(attribute))
            out.write("\n")

    def _write_end(self) -> None:
        out = self.ostr()
        call = f'{self.layout.load_module_call}("{self.layout.exports_name}", '
        if not self.host_exports:
            out.write(f"{call}what = character())\n")
            return
        indent = " " * len(f"{call}what = c(")
        names = f",\n{indent}".join(f'"{name}"' for name in self.host_exports)
        out.write(f"{call}what = c({names}))\n")

    def _commit_artifact(self, includes: list[str], prototypes: list[str]) -> bool:
        return self._commit()


class ExportsGenerators:
    """Fan every phase out to an ordered list of generators."""

    def __init__(self, generators: Sequence[ExportsGenerator] = ()) -> None:
        self._generators: list[ExportsGenerator] = list(generators)

    @classmethod
    def for_package(
        cls,
        package_dir: str | Path,
        package_name: str,
        platform: PlatformInfo,
        layout: ExportLayout = DEFAULT_LAYOUT,
    ) -> "ExportsGenerators":
        """Manifest, wrapper script and forwarding header for one package."""
        generators = cls()
        generators.add(ManifestGenerator(package_dir, platform, layout))
        generators.add(WrapperScriptGenerator(package_dir, platform, layout))
        generators.add(
            ForwardingHeaderGenerator(package_dir, package_name, platform, layout)
        )
        return generators

    def add(self, generator: ExportsGenerator) -> None:
        self._generators.append(generator)

    def __iter__(self) -> Iterator[ExportsGenerator]:
        return iter(self._generators)

    def __len__(self) -> int:
        return len(self._generators)

    def write_begin(self) -> None:
        for generator in self._generators:
            generator.write_begin()

    def write_functions(self, attributes: SourceFileAttributes, verbose: bool = False) -> None:
        for generator in self._generators:
            generator.write_functions(attributes, verbose)

    def write_end(self) -> None:
        for generator in self._generators:
            generator.write_end()

    def commit(self, includes: Sequence[str] = (), prototypes: Sequence[str] = ()) -> bool:
        """Commit every generator; ``True`` if any of them changed the disk."""
        wrote = False
        for generator in self._generators:
            if generator.commit(includes, prototypes):
                wrote = True
        return wrote


__all__ = [
    "ExportsGenerator",
    "ExportsGenerators",
    "ForwardingHeaderGenerator",
    "GENERATOR_TOKEN",
    "GeneratorKind",
    "GeneratorState",
    "ManifestGenerator",
    "WrapperScriptGenerator",
    "generate_module",
    "generate_module_functions",
]
