from __future__ import annotations

import itertools
import os
import time
from pathlib import Path

import pytest

from cppAttributes.api import source_cpp_context
from cppAttributes.config import PlatformInfo
from cppAttributes.dynlib import BuildUnitCache
from cppAttributes.exceptions import SourceNotFoundError

SOURCE = """// [[Rcpp::export]]
int answer() {
    return 42;
}
"""

PLATFORM = PlatformInfo(file_sep="/", dynlib_ext=".so")


def _write_source(tmp_path: Path) -> Path:
    source = tmp_path / "answer.cpp"
    source.write_text(SOURCE, encoding="utf-8")
    past = time.time() - 100
    os.utime(source, (past, past))
    return source


def _context(file, code, cache, tmp_path, **kwargs):
    return source_cpp_context(
        file, code, PLATFORM, cache, build_root=tmp_path / "build", **kwargs
    )


def test_first_lookup_requires_build_and_populates_cache(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    cache = BuildUnitCache()

    context = _context(source, None, cache, tmp_path)

    assert context.build_required
    assert len(cache) == 1
    assert context.source_path == source
    assert context.source_filename == "answer.cpp"
    assert context.exported_functions == ["answer"]
    assert context.depends == []
    assert context.dynlib_filename == context.module_name + ".so"
    assert context.dynlib_path == context.build_directory / context.dynlib_filename
    assert context.generated_code.startswith(f"RCPP_MODULE({context.module_name}) {{")


def test_repeat_lookup_after_build_is_clean(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    cache = BuildUnitCache()
    first = _context(source, None, cache, tmp_path)
    first.dynlib_path.write_bytes(b"compiled")

    second = _context(source, None, cache, tmp_path)

    assert second.module_name == first.module_name
    assert not second.build_required
    assert len(cache) == 1


def test_unbuilt_unit_still_requires_build(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    cache = BuildUnitCache()
    first = _context(source, None, cache, tmp_path)

    second = _context(source, None, cache, tmp_path)

    assert second.module_name == first.module_name
    assert second.build_required


def test_touched_source_is_regenerated(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    cache = BuildUnitCache()
    first = _context(source, None, cache, tmp_path)
    first.dynlib_path.write_bytes(b"compiled")

    source.write_text(
        SOURCE + "\n// [[Rcpp::export]]\nint more() { return 1; }\n", encoding="utf-8"
    )
    future = time.time() + 100
    os.utime(source, (future, future))

    second = _context(source, None, cache, tmp_path)

    assert second.build_required
    assert second.module_name == first.module_name
    assert second.exported_functions == ["answer", "more"]


def test_code_lookup_uses_content_key(tmp_path: Path) -> None:
    cache = BuildUnitCache()

    first = _context(None, SOURCE, cache, tmp_path)
    first.dynlib_path.write_bytes(b"compiled")
    second = _context(None, SOURCE, cache, tmp_path)

    assert first.source_path.read_text(encoding="utf-8") == SOURCE
    assert first.exported_functions == ["answer"]
    assert second.module_name == first.module_name
    assert not second.build_required
    assert cache.lookup_by_file(first.source_path).is_empty()


def test_code_takes_precedence_over_file(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    cache = BuildUnitCache()

    _context(source, SOURCE, cache, tmp_path)

    assert not cache.lookup_by_code(SOURCE).is_empty()
    assert cache.lookup_by_file(source).is_empty()


def test_separate_caches_produce_distinct_modules(tmp_path: Path) -> None:
    first = _context(None, SOURCE, BuildUnitCache(), tmp_path)
    second = _context(None, SOURCE, BuildUnitCache(), tmp_path)

    assert first.module_name != second.module_name


def test_code_source_lives_in_unit_build_directory(tmp_path: Path) -> None:
    context = _context(None, SOURCE, BuildUnitCache(), tmp_path)

    assert context.source_path.parent.parent == context.build_directory
    assert context.source_path != context.build_directory / context.source_filename
    assert sorted(p.name for p in (tmp_path / "build").iterdir()) == [
        context.build_directory.name
    ]


def test_same_code_in_another_cache_leaves_built_unit_clean(tmp_path: Path) -> None:
    first_cache = BuildUnitCache()
    first = _context(None, SOURCE, first_cache, tmp_path)
    first.dynlib_path.write_bytes(b"compiled")
    assert not _context(None, SOURCE, first_cache, tmp_path).build_required

    time.sleep(0.01)
    _context(None, SOURCE, BuildUnitCache(), tmp_path)
    again = _context(None, SOURCE, first_cache, tmp_path)

    assert again.module_name == first.module_name
    assert not again.build_required


def test_missing_file_creates_no_build_directory(tmp_path: Path) -> None:
    with pytest.raises(SourceNotFoundError):
        _context(tmp_path / "missing.cpp", None, BuildUnitCache(), tmp_path)

    build_root = tmp_path / "build"
    assert not build_root.exists() or not any(build_root.iterdir())


def test_injected_name_generator(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    counter = itertools.count(7)
    context = _context(
        source, None, BuildUnitCache(), tmp_path,
        name_generator=lambda: f"unit_{next(counter)}",
    )
    assert context.module_name == "unit_7"
    assert context.to_dict()["dynlib_filename"] == "unit_7.so"
    assert context.to_dict()["source_path"] == str(source)


def test_file_or_code_is_required(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        _context(None, None, BuildUnitCache(), tmp_path)
