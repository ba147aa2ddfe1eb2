"""Lightweight parser for ``// [[Rcpp::...]]`` source attributes.

Only the forms consumed by the generators are recognised: attribute comment
lines, ``//'`` documentation lines, and the function signature that follows
an ``export`` attribute. Anything else in the file is ignored.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Sequence

from .exceptions import AttributeSyntaxError, SourceNotFoundError
from .Log import Log
from .model import (
    EXPORT_ATTRIBUTE,
    INTERFACE_HOST,
    INTERFACE_NATIVE,
    INTERFACES_ATTRIBUTE,
    KNOWN_ATTRIBUTES,
    Argument,
    Attribute,
    Function,
    Param,
    SourceFileAttributes,
)
from .paths import FileInfo, read_text

AttributeParser = Callable[[Path], SourceFileAttributes]

DEFAULT_NAMESPACE = "Rcpp"

_DOC_PATTERN = re.compile(r"^\s*//'(.*)$")
_TRAILING_IDENTIFIER = re.compile(r"^(.*?)([A-Za-z_][A-Za-z0-9_]*)\s*$", re.DOTALL)


def _attribute_pattern(namespace: str) -> re.Pattern[str]:
    return re.compile(
        rf"^\s*//\s*\[\[\s*{re.escape(namespace)}::([A-Za-z_][A-Za-z0-9_.]*)"
        r"\s*(?:\((.*)\))?\s*\]\]\s*$"
    )


def _find_matching_paren(text: str, open_idx: int) -> int:
    """Return the index of the parenthesis closing ``open_idx`` or ``-1``."""

    depth = 0
    in_single = False
    in_double = False
    idx = open_idx
    while idx < len(text):
        char = text[idx]
        if char == "\\" and (in_single or in_double) and idx + 1 < len(text):
            idx += 2
            continue
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        elif not in_single and not in_double:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return idx
        idx += 1
    return -1


def _split_args(serialised: str) -> list[str]:
    """Split a comma separated list, respecting brackets, templates and quotes."""

    arguments: list[str] = []
    buffer: list[str] = []
    depth = 0
    in_single = False
    in_double = False
    escape = False
    for char in serialised:
        if escape:
            buffer.append(char)
            escape = False
            continue
        if char == "\\" and (in_single or in_double):
            buffer.append(char)
            escape = True
            continue
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        elif not in_single and not in_double:
            if char == "," and depth == 0:
                token = "".join(buffer).strip()
                if token:
                    arguments.append(token)
                buffer.clear()
                continue
            if char in "(<[{":
                depth += 1
            elif char in ")>]}":
                depth -= 1
        buffer.append(char)
    trailing = "".join(buffer).strip()
    if trailing:
        arguments.append(trailing)
    return arguments


def _strip_line_comment(line: str) -> str:
    """Drop a trailing ``//`` comment that is not inside a string literal."""

    in_single = False
    in_double = False
    idx = 0
    while idx < len(line):
        char = line[idx]
        if char == "\\" and (in_single or in_double):
            idx += 2
            continue
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        elif char == "/" and not in_single and not in_double:
            if line.startswith("//", idx):
                return line[:idx]
        idx += 1
    return line


def _unquote(token: str) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    return token


def _parse_params(serialised: str | None) -> tuple[Param, ...]:
    if not serialised:
        return ()
    params: list[Param] = []
    for token in _split_args(serialised):
        name, sep, value = token.partition("=")
        if sep:
            params.append(Param(_unquote(name), _unquote(value)))
        else:
            params.append(Param(_unquote(token)))
    return tuple(params)


def _parse_argument(
    token: str, source_file: Path | None, line_number: int
) -> Argument:
    declaration, _, default = token.partition("=")
    match = _TRAILING_IDENTIFIER.match(declaration.strip())
    if match is None or not match.group(1).strip():
        raise AttributeSyntaxError(
            source_file, line_number, f"Exported function argument '{token}' has no name"
        )
    return Argument(
        name=match.group(2),
        type=" ".join(match.group(1).split()),
        default_value=default.strip(),
    )


def _parse_signature(
    lines: Sequence[str], start: int, source_file: Path | None
) -> Function:
    """Read the function declared at or after ``lines[start]``."""

    collected: list[str] = []
    line_number = start + 1
    for idx in range(start, len(lines)):
        stripped = lines[idx].strip()
        if not collected and (not stripped or stripped.startswith("//")):
            continue
        if not collected:
            line_number = idx + 1
        code = _strip_line_comment(lines[idx])
        collected.append(code)
        if "{" in code or ";" in code:
            break

    text = " ".join(collected)
    end = min((pos for pos in (text.find("{"), text.find(";")) if pos >= 0), default=-1)
    if end >= 0:
        text = text[:end]
    open_idx = text.find("(")
    if open_idx < 0:
        return Function()
    close_idx = _find_matching_paren(text, open_idx)
    if close_idx < 0:
        return Function()

    match = _TRAILING_IDENTIFIER.match(text[:open_idx].strip())
    if match is None or not match.group(1).strip():
        return Function()
    return_type = " ".join(match.group(1).split())
    if return_type.startswith("inline "):
        return_type = return_type[len("inline "):]

    raw_args = _split_args(text[open_idx + 1 : close_idx])
    if raw_args == ["void"]:
        raw_args = []
    arguments = tuple(
        _parse_argument(token, source_file, line_number) for token in raw_args
    )
    return Function(name=match.group(2), return_type=return_type, arguments=arguments)


def parse_source_text(
    text: str,
    source_file: str | Path | None = None,
    *,
    namespace: str = DEFAULT_NAMESPACE,
) -> list[Attribute]:
    """Extract the attributes declared in ``text``.

    Args:
        text: C++ source code.
        source_file: Origin used in error messages.
        namespace: Attribute namespace, ``Rcpp`` for ``[[Rcpp::export]]``.

    Returns:
        Attributes in source order.

    Raises:
        AttributeSyntaxError: When an ``interfaces`` attribute names an
            unknown interface or an exported argument is unnamed.
    """

    logger = Log.current()
    path = Path(source_file) if source_file is not None else None
    pattern = _attribute_pattern(namespace)
    lines = text.splitlines()
    attributes: list[Attribute] = []
    pending_docs: list[str] = []

    for idx, line in enumerate(lines):
        doc = _DOC_PATTERN.match(line)
        if doc is not None:
            pending_docs.append(doc.group(1))
            continue

        match = pattern.match(line)
        if match is None:
            stripped = line.strip()
            if stripped and not stripped.startswith("//"):
                pending_docs.clear()
            continue

        name, serialised = match.groups()
        if name not in KNOWN_ATTRIBUTES:
            logger.warning(f"{path or '<text>'}:{idx + 1}: unrecognized attribute '{name}'")
            pending_docs.clear()
            continue

        params = _parse_params(serialised)
        function = Function()
        if name == INTERFACES_ATTRIBUTE:
            for param in params:
                if param.name not in (INTERFACE_HOST, INTERFACE_NATIVE):
                    raise AttributeSyntaxError(
                        path, idx + 1, f"Unknown interface '{param.name}'"
                    )
        elif name == EXPORT_ATTRIBUTE:
            function = _parse_signature(lines, idx + 1, path)
            if function.is_empty():
                logger.warning(
                    f"{path or '<text>'}:{idx + 1}: no function found for "
                    f"{namespace}::{name} attribute"
                )

        attributes.append(
            Attribute(
                name=name,
                params=params,
                function=function,
                doc_lines=tuple(pending_docs),
            )
        )
        pending_docs.clear()

    return attributes


def parse_source_file(
    source_file: str | Path, *, namespace: str = DEFAULT_NAMESPACE
) -> SourceFileAttributes:
    """Read ``source_file`` and return its attributes."""

    path = Path(source_file)
    if not FileInfo.of(path).exists:
        raise SourceNotFoundError(path)
    return SourceFileAttributes(
        path, parse_source_text(read_text(path), path, namespace=namespace)
    )


__all__ = [
    "AttributeParser",
    "DEFAULT_NAMESPACE",
    "parse_source_file",
    "parse_source_text",
]
