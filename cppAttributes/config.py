"""Platform and layout configuration for generated exports."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

BUILD_ROOT_ENV = "CPPATTRIBUTES_BUILD_ROOT"


def _ensure_dir(path: Path) -> Path:
    """Create the directory tree if it does not exist."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_build_root() -> Path:
    """Resolve the directory under which build units create their folders.

    ``CPPATTRIBUTES_BUILD_ROOT`` takes precedence; otherwise the system
    temporary directory is used.
    """

    env = os.environ.get(BUILD_ROOT_ENV)
    if env:
        return _ensure_dir(Path(env).expanduser())
    return _ensure_dir(Path(tempfile.gettempdir()))


def _default_dynlib_ext() -> str:
    if os.name == "nt":
        return ".dll"
    return ".so"


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Host platform details needed to derive file names.

    Attributes:
        file_sep (str): Separator used when composing artifact paths.
        dynlib_ext (str): Extension of compiled shared libraries, including
            the leading dot.
    """

    file_sep: str = "/"
    dynlib_ext: str = ".so"

    @classmethod
    def current(cls) -> "PlatformInfo":
        """Describe the interpreter's own platform."""
        return cls(file_sep="/", dynlib_ext=_default_dynlib_ext())

    @classmethod
    def from_mapping(cls, values: dict[str, str]) -> "PlatformInfo":
        """Build from a ``{"file.sep": ..., "dynlib.ext": ...}`` mapping."""
        defaults = cls.current()
        return cls(
            file_sep=values.get("file.sep", values.get("file_sep", defaults.file_sep)),
            dynlib_ext=values.get(
                "dynlib.ext", values.get("dynlib_ext", defaults.dynlib_ext)
            ),
        )

    def join(self, *parts: str | os.PathLike[str]) -> str:
        """Join ``parts`` with the platform separator."""
        return self.file_sep.join(os.fspath(part) for part in parts)


@dataclass(frozen=True, slots=True)
class ExportLayout:
    """Names and locations of the generated export artifacts.

    Attributes:
        exports_name (str): Basename shared by the manifest and wrapper script
            and the module name they register under.
        source_dir (str): Package directory holding native sources.
        host_dir (str): Package directory holding host-language scripts.
        include_dir (tuple[str, ...]): Path segments of the public include
            directory.
        native_ext (str): Extension of the manifest file.
        host_ext (str): Extension of the wrapper script.
        header_ext (str): Extension of the forwarding header.
        module_macro (str): Macro opening a registration block.
        register_call (str): Call binding an exported name to a function.
        callable_lookup (str): Call resolving a registered native symbol.
        load_module_call (str): Host call loading the registered module.
        default_includes (tuple[str, ...]): Include lines used when the caller
            provides none.
        source_extensions (tuple[str, ...]): Extensions scanned for attributes.
    """

    exports_name: str = "RcppExports"
    source_dir: str = "src"
    host_dir: str = "R"
    include_dir: tuple[str, ...] = ("inst", "include")
    native_ext: str = ".cpp"
    host_ext: str = ".R"
    header_ext: str = ".hpp"
    module_macro: str = "RCPP_MODULE"
    register_call: str = "Rcpp::function"
    callable_lookup: str = "Rcpp::GetCppCallable"
    load_module_call: str = "Rcpp::loadModule"
    default_includes: tuple[str, ...] = field(
        default_factory=lambda: ("#include <Rcpp.h>",)
    )
    source_extensions: tuple[str, ...] = (".cpp", ".cc", ".cxx")

    def manifest_path(self, package_dir: str, platform: PlatformInfo) -> str:
        return platform.join(
            package_dir, self.source_dir, self.exports_name + self.native_ext
        )

    def wrapper_path(self, package_dir: str, platform: PlatformInfo) -> str:
        return platform.join(package_dir, self.host_dir, self.exports_name + self.host_ext)

    def include_path(self, package_dir: str, platform: PlatformInfo) -> str:
        return platform.join(package_dir, *self.include_dir)

    def header_path(
        self, package_dir: str, package_name: str, platform: PlatformInfo
    ) -> str:
        return platform.join(
            self.include_path(package_dir, platform), package_name + self.header_ext
        )


DEFAULT_LAYOUT = ExportLayout()


__all__ = [
    "BUILD_ROOT_ENV",
    "DEFAULT_LAYOUT",
    "ExportLayout",
    "PlatformInfo",
    "default_build_root",
]
