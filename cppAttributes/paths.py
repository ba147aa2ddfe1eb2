"""Filesystem helpers that translate OS failures into package errors."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .exceptions import FileIOError


@dataclass(frozen=True)
class FileInfo:
    """Existence and modification time of a path at the time of the stat."""

    path: Path
    exists: bool
    last_modified: float = 0.0

    @classmethod
    def of(cls, path: str | os.PathLike[str]) -> "FileInfo":
        """Stat ``path``; a missing file is reported, any other failure raises."""
        target = Path(path)
        try:
            result = target.stat()
        except FileNotFoundError:
            return cls(target, False)
        except OSError as exc:
            raise FileIOError(target, exc.strerror or str(exc)) from exc
        return cls(target, True, result.st_mtime)


def file_exists(path: str | os.PathLike[str]) -> bool:
    return FileInfo.of(path).exists


def read_text(path: str | os.PathLike[str]) -> str:
    """Return the file contents exactly as stored."""
    try:
        with open(path, "r", encoding="utf-8", newline="") as fh:
            return fh.read()
    except OSError as exc:
        raise FileIOError(path, exc.strerror or str(exc)) from exc


def write_text(path: str | os.PathLike[str], text: str, *, append: bool = False) -> None:
    """Write ``text`` without newline translation, truncating unless ``append``."""
    mode = "a" if append else "w"
    try:
        with open(path, mode, encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        raise FileIOError(path, exc.strerror or str(exc)) from exc


def copy_file(source: str | os.PathLike[str], target: str | os.PathLike[str]) -> None:
    """Copy file contents, giving ``target`` a fresh modification time."""
    try:
        shutil.copyfile(source, target)
    except OSError as exc:
        raise FileIOError(exc.filename or target, exc.strerror or str(exc)) from exc


def remove_file(path: str | os.PathLike[str]) -> bool:
    """Delete ``path`` if present and report whether anything was removed."""
    if not file_exists(path):
        return False
    try:
        os.remove(path)
    except OSError as exc:
        raise FileIOError(path, exc.strerror or str(exc)) from exc
    return True


def create_directory(path: str | os.PathLike[str]) -> None:
    """Recursively create ``path`` when it does not exist yet."""
    if file_exists(path):
        return
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileIOError(path, exc.strerror or str(exc)) from exc


__all__ = [
    "FileInfo",
    "copy_file",
    "create_directory",
    "file_exists",
    "read_text",
    "remove_file",
    "write_text",
]
