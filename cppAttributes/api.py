"""Entry points for ad hoc builds and package export compilation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .config import DEFAULT_LAYOUT, ExportLayout, PlatformInfo, default_build_root
from .dynlib import (
    BuildUnit,
    BuildUnitCache,
    ModuleNameGenerator,
    make_build_directory,
    random_module_name,
)
from .generators import ExportsGenerators
from .Log import Log
from .parser import AttributeParser, parse_source_file
from .paths import FileInfo, create_directory, write_text

CODE_SOURCE_DIR = "code"
CODE_SOURCE_FILENAME = "sourceCpp.cpp"


@dataclass
class BuildContext:
    """Everything a caller needs to compile and load an ad hoc build unit."""

    module_name: str
    source_path: Path
    build_required: bool
    build_directory: Path
    generated_code: str
    exported_functions: list[str] = field(default_factory=list)
    source_filename: str = ""
    dynlib_filename: str = ""
    dynlib_path: Path | None = None
    depends: list[str] = field(default_factory=list)

    @classmethod
    def from_unit(cls, unit: BuildUnit, build_required: bool) -> "BuildContext":
        return cls(
            module_name=unit.module_name,
            source_path=unit.source_path,
            build_required=build_required,
            build_directory=unit.build_directory,
            generated_code=unit.generated_code,
            exported_functions=list(unit.exported_functions),
            source_filename=unit.source_filename,
            dynlib_filename=unit.dynlib_filename,
            dynlib_path=unit.dynlib_path,
            depends=list(unit.depends),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON friendly representation with paths rendered as strings."""
        data = asdict(self)
        for key in ("source_path", "build_directory", "dynlib_path"):
            if data[key] is not None:
                data[key] = str(data[key])
        return data


def _materialize_code(code: str, build_directory: Path) -> Path:
    """Write ``code`` inside the unit's own build directory."""
    directory = build_directory / CODE_SOURCE_DIR
    create_directory(directory)
    path = directory / CODE_SOURCE_FILENAME
    write_text(path, code)
    return path


def source_cpp_context(
    file: str | Path | None,
    code: str | None,
    platform: PlatformInfo,
    cache: BuildUnitCache,
    *,
    build_root: str | Path | None = None,
    name_generator: ModuleNameGenerator = random_module_name,
    parser: AttributeParser = parse_source_file,
    layout: ExportLayout = DEFAULT_LAYOUT,
) -> BuildContext:
    """Return the build context for a source file or a raw code string.

    A non-empty ``code`` keys the cache by content, otherwise ``file`` is the
    key. A miss creates and caches a new :class:`BuildUnit`; a hit whose
    source is dirty is regenerated. ``build_required`` is set whenever the
    caller has to (re)compile before loading.

    Args:
        file: Path of the source file. May be ``None`` when ``code`` is given.
        code: Raw source text, or ``None``.
        platform: Separator and shared library extension of the host.
        cache: Session cache; not thread safe.
        build_root: Parent of new build directories.
        name_generator: Supplies module names for new units.
        parser: Attribute parser applied to the source.
        layout: Registration call names.

    Raises:
        SourceNotFoundError: If ``file`` does not exist on a cache miss.
        FileIOError: On any other filesystem failure.
    """

    if not code and file is None:
        raise ValueError("Either file or code must be provided")

    if code:
        unit = cache.lookup_by_code(code)
    else:
        unit = cache.lookup_by_file(file)

    build_required = False
    if unit.is_empty():
        build_required = True
        root = Path(build_root) if build_root is not None else default_build_root()
        build_directory = None
        if file is not None:
            source = Path(file)
        else:
            build_directory = make_build_directory(root)
            source = _materialize_code(code, build_directory)
        unit = BuildUnit.create(
            source,
            platform,
            build_root=root,
            build_directory=build_directory,
            name_generator=name_generator,
            parser=parser,
            layout=layout,
        )
        if code:
            cache.insert_code(code, unit)
        else:
            cache.insert_file(file, unit)
    elif unit.is_source_dirty():
        build_required = True
        unit.regenerate_source()
    elif not unit.is_built():
        build_required = True

    return BuildContext.from_unit(unit, build_required)


def discover_source_files(
    package_dir: str | Path, layout: ExportLayout = DEFAULT_LAYOUT
) -> list[Path]:
    """List the package's native sources, excluding the generated manifest."""

    source_dir = Path(package_dir) / layout.source_dir
    if not FileInfo.of(source_dir).exists:
        return []
    manifest = layout.exports_name + layout.native_ext
    return sorted(
        path
        for path in source_dir.iterdir()
        if path.is_file()
        and path.suffix in layout.source_extensions
        and path.name != manifest
    )


def compile_attributes(
    package_dir: str | Path,
    package_name: str,
    source_files: Sequence[str | Path],
    includes: Sequence[str] | None = None,
    verbose: bool = False,
    platform: PlatformInfo | None = None,
    *,
    parser: AttributeParser = parse_source_file,
    layout: ExportLayout = DEFAULT_LAYOUT,
) -> bool:
    """Regenerate the package's export artifacts.

    Args:
        package_dir: Root of the package.
        package_name: Namespace and file name of the forwarding header.
        source_files: Sources scanned for attributes, in order.
        includes: Include lines written at the top of the manifest and
            header. ``None`` selects ``layout.default_includes``.
        verbose: Log each file's exports and the final outcome.
        platform: Path separator used to build the artifact paths.
        parser: Attribute parser applied to each source file.
        layout: Artifact names and locations.

    Returns:
        ``True`` if any artifact was written or removed.

    Raises:
        UnsafeOverwriteError: If a target exists that was not generated here.
        SourceNotFoundError: If a listed source file is missing.
        FileIOError: On any other filesystem failure. Artifacts committed
            before the failure stay on disk.
    """

    platform = platform or PlatformInfo.current()
    include_lines = list(layout.default_includes if includes is None else includes)

    generators = ExportsGenerators.for_package(
        str(package_dir), package_name, platform, layout
    )
    prototypes: list[str] = []

    generators.write_begin()
    for source_file in source_files:
        attributes = parser(Path(source_file))
        if attributes.is_empty():
            continue
        prototypes.extend(attributes.prototypes)
        generators.write_functions(attributes, verbose)
    generators.write_end()

    wrote = generators.commit(include_lines, prototypes)

    if verbose:
        logger = Log().logger
        if wrote:
            logger.info(f"{layout.exports_name} files updated")
        else:
            logger.info(f"{layout.exports_name} files already up to date")
    return wrote


__all__ = [
    "BuildContext",
    "compile_attributes",
    "discover_source_files",
    "source_cpp_context",
]
