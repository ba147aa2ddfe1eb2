"""Build units for ad hoc single-file compilation and their cache."""

from __future__ import annotations

import tempfile
import uuid
from pathlib import Path
from typing import Callable

from .config import DEFAULT_LAYOUT, ExportLayout, PlatformInfo, default_build_root
from .exceptions import FileIOError, SourceNotFoundError
from .generators import generate_module
from .model import DEPENDS_ATTRIBUTE
from .parser import AttributeParser, parse_source_file
from .paths import FileInfo, copy_file, create_directory, write_text

ModuleNameGenerator = Callable[[], str]

BUILD_DIR_PREFIX = "sourcecpp_"
MODULE_NAME_PREFIX = "sourceCpp_"


def random_module_name() -> str:
    """Return a fresh module name; every call yields a different suffix."""
    return f"{MODULE_NAME_PREFIX}{uuid.uuid4().hex[:12]}"


def make_build_directory(build_root: str | Path) -> Path:
    """Create a fresh, uniquely named build directory under ``build_root``."""
    build_root = Path(build_root)
    create_directory(build_root)
    try:
        return Path(tempfile.mkdtemp(prefix=BUILD_DIR_PREFIX, dir=build_root))
    except OSError as exc:
        raise FileIOError(build_root, exc.strerror or str(exc)) from exc


class BuildUnit:
    """One ad hoc compiled artifact derived from one source file.

    A unit owns its build directory exclusively. :meth:`regenerate_source`
    copies the source into it and appends a registration block for every
    exported function; the caller compiles the result into
    :attr:`dynlib_path`.

    An instance created without arguments is the empty sentinel returned by
    :class:`BuildUnitCache` lookups that miss.
    """

    def __init__(
        self,
        source_path: str | Path | None = None,
        *,
        platform: PlatformInfo | None = None,
        build_directory: str | Path | None = None,
        module_name: str = "",
        parser: AttributeParser = parse_source_file,
        layout: ExportLayout = DEFAULT_LAYOUT,
    ) -> None:
        self.source_path = Path(source_path) if source_path is not None else None
        self.platform = platform or PlatformInfo.current()
        self.build_directory = Path(build_directory) if build_directory else None
        self.module_name = module_name
        self.parser = parser
        self.layout = layout
        self.source_last_modified = 0.0
        self.generated_code = ""
        self.exported_functions: list[str] = []
        self.depends: list[str] = []

    @classmethod
    def create(
        cls,
        source_path: str | Path,
        platform: PlatformInfo | None = None,
        *,
        build_root: str | Path | None = None,
        name_generator: ModuleNameGenerator = random_module_name,
        parser: AttributeParser = parse_source_file,
        layout: ExportLayout = DEFAULT_LAYOUT,
        build_directory: str | Path | None = None,
    ) -> "BuildUnit":
        """Create a unit for ``source_path`` and generate its source.

        A fresh directory under ``build_root`` is made unless an existing
        ``build_directory`` from :func:`make_build_directory` is passed in.

        Raises:
            SourceNotFoundError: If ``source_path`` does not exist.
            FileIOError: If the build directory or generated file cannot be
                written.
        """

        info = FileInfo.of(source_path)
        if not info.exists:
            raise SourceNotFoundError(source_path)

        if build_directory is None:
            root = Path(build_root) if build_root is not None else default_build_root()
            build_directory = make_build_directory(root)
        unit = cls(
            source_path,
            platform=platform,
            build_directory=build_directory,
            module_name=name_generator(),
            parser=parser,
            layout=layout,
        )
        unit.source_last_modified = info.last_modified
        unit.regenerate_source()
        return unit

    def is_empty(self) -> bool:
        return self.source_path is None

    @property
    def source_filename(self) -> str:
        return self.source_path.name if self.source_path is not None else ""

    @property
    def generated_source_path(self) -> Path:
        return Path(self.platform.join(self.build_directory, self.source_filename))

    @property
    def dynlib_filename(self) -> str:
        return self.module_name + self.platform.dynlib_ext

    @property
    def dynlib_path(self) -> Path:
        return Path(self.platform.join(self.build_directory, self.dynlib_filename))

    def is_built(self) -> bool:
        return FileInfo.of(self.dynlib_path).exists

    def is_source_dirty(self) -> bool:
        """Source newer than its generated copy, or no compiled artifact."""
        source = FileInfo.of(self.source_path)
        generated = FileInfo.of(self.generated_source_path)
        if source.last_modified > generated.last_modified:
            return True
        return not self.is_built()

    def regenerate_source(self) -> None:
        """Copy the source, append a fresh registration block, record exports."""
        generated_path = self.generated_source_path
        copy_file(self.source_path, generated_path)
        self.source_last_modified = FileInfo.of(self.source_path).last_modified

        attributes = self.parser(self.source_path)
        self.generated_code = generate_module(
            self.module_name, attributes, layout=self.layout
        )
        write_text(generated_path, "\n" + self.generated_code, append=True)

        self.exported_functions = []
        self.depends = []
        for attribute in attributes:
            if attribute.is_exported_function:
                self.exported_functions.append(attribute.exported_name)
            elif attribute.name == DEPENDS_ATTRIBUTE:
                self.depends.extend(param.name for param in attribute.params)

    def __repr__(self) -> str:
        if self.is_empty():
            return "BuildUnit(<empty>)"
        return (
            f"BuildUnit(source_path={str(self.source_path)!r}, "
            f"module_name={self.module_name!r})"
        )


class BuildUnitCache:
    """Memo of build units keyed by source path or by raw source text.

    Entries are appended and never evicted or merged: a repeated insert under
    an existing key adds a second entry that lookups never reach, so callers
    look up before inserting. The cache performs no locking; concurrent use
    from several threads must be serialized by the caller.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[Path | None, str | None, BuildUnit]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def insert_file(self, file: str | Path, unit: BuildUnit) -> None:
        self._entries.append((Path(file), None, unit))

    def insert_code(self, code: str, unit: BuildUnit) -> None:
        self._entries.append((None, code, unit))

    def lookup_by_file(self, file: str | Path) -> BuildUnit:
        key = Path(file)
        for path, _, unit in self._entries:
            if path == key:
                return unit
        return BuildUnit()

    def lookup_by_code(self, code: str) -> BuildUnit:
        for _, text, unit in self._entries:
            if text == code:
                return unit
        return BuildUnit()


__all__ = [
    "BuildUnit",
    "BuildUnitCache",
    "ModuleNameGenerator",
    "make_build_directory",
    "random_module_name",
]
