"""Exception types raised while generating exports or build units."""

from __future__ import annotations

from pathlib import Path


class CppAttributesError(RuntimeError):
    """Base class for all errors raised by :mod:`cppAttributes`."""


class SourceNotFoundError(CppAttributesError):
    """Raised when a referenced source file does not exist."""

    def __init__(self, path: str | Path):
        super().__init__(f"Source file '{path}' does not exist.")
        self.path = Path(path)


class FileIOError(CppAttributesError):
    """Raised when reading, writing or inspecting a file fails."""

    def __init__(self, path: str | Path, reason: str = ""):
        message = f"I/O error accessing '{path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = Path(path)
        self.reason = reason


class UnsafeOverwriteError(CppAttributesError):
    """Raised when a target file exists but was not produced by the generator."""

    def __init__(self, path: str | Path):
        super().__init__(
            f"Refusing to overwrite '{path}': the file was not generated by "
            "cppAttributes."
        )
        self.path = Path(path)


class AttributeSyntaxError(CppAttributesError):
    """Raised when an attribute line cannot be parsed."""

    def __init__(self, path: str | Path | None, line: int, message: str):
        location = f"{path}:{line}" if path is not None else f"line {line}"
        super().__init__(f"{location}: {message}")
        self.path = Path(path) if path is not None else None
        self.line = line


__all__ = [
    "AttributeSyntaxError",
    "CppAttributesError",
    "FileIOError",
    "SourceNotFoundError",
    "UnsafeOverwriteError",
]
