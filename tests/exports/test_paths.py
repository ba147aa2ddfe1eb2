from __future__ import annotations

from pathlib import Path

import pytest

from cppAttributes.exceptions import FileIOError
from cppAttributes.paths import FileInfo, copy_file, remove_file


def test_missing_file_is_reported_not_raised(tmp_path: Path) -> None:
    info = FileInfo.of(tmp_path / "missing.cpp")

    assert not info.exists
    assert info.last_modified == 0.0


def test_path_through_regular_file_raises(tmp_path: Path) -> None:
    regular = tmp_path / "plain.txt"
    regular.write_text("x", encoding="utf-8")

    with pytest.raises(FileIOError) as excinfo:
        FileInfo.of(regular / "child.cpp")

    assert excinfo.value.path == regular / "child.cpp"


def test_copy_failure_on_target_names_target(tmp_path: Path) -> None:
    source = tmp_path / "source.cpp"
    source.write_text("int x;\n", encoding="utf-8")
    target = tmp_path / "absent" / "copy.cpp"

    with pytest.raises(FileIOError) as excinfo:
        copy_file(source, target)

    assert excinfo.value.path == target


def test_copy_failure_on_source_names_source(tmp_path: Path) -> None:
    source = tmp_path / "gone.cpp"

    with pytest.raises(FileIOError) as excinfo:
        copy_file(source, tmp_path / "copy.cpp")

    assert excinfo.value.path == source


def test_remove_missing_file_is_a_no_op(tmp_path: Path) -> None:
    assert remove_file(tmp_path / "missing.hpp") is False
