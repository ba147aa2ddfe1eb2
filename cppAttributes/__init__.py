"""Export glue generation for C++ attributes."""

__version__ = "0.1.0"

from importlib import import_module

from .api import BuildContext, compile_attributes, discover_source_files, source_cpp_context
from .config import ExportLayout, PlatformInfo
from .dynlib import BuildUnit, BuildUnitCache
from .exceptions import (
    AttributeSyntaxError,
    CppAttributesError,
    FileIOError,
    SourceNotFoundError,
    UnsafeOverwriteError,
)

__all__ = [
    "__version__",
    "AttributeSyntaxError",
    "BuildContext",
    "BuildUnit",
    "BuildUnitCache",
    "CppAttributesError",
    "ExportLayout",
    "FileIOError",
    "PlatformInfo",
    "SourceNotFoundError",
    "UnsafeOverwriteError",
    "cli",
    "compile_attributes",
    "discover_source_files",
    "source_cpp_context",
]


_LAZY_MODULES = {"cli"}


def __getattr__(name: str):
    if name in _LAZY_MODULES:
        module = import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(name)
