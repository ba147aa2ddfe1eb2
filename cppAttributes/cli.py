"""Command line interface for compiling package exports and ad hoc builds."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Sequence

from .api import compile_attributes, discover_source_files, source_cpp_context
from .config import PlatformInfo
from .dynlib import BuildUnitCache
from .exceptions import CppAttributesError
from .Log import Log


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser.

    Returns:
        Configured :class:`argparse.ArgumentParser` instance.
    """

    parser = argparse.ArgumentParser(
        prog="cppAttributes",
        description="Generate export glue from // [[Rcpp::export]] attributes",
    )
    parser.add_argument("--log-file", help="Also write log records to this file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_cmd = subparsers.add_parser(
        "compile", help="Regenerate the export artifacts of a package"
    )
    compile_cmd.add_argument("package_dir", help="Root directory of the package")
    compile_cmd.add_argument(
        "--package-name",
        help="Namespace of the forwarding header (defaults to the directory name)",
    )
    compile_cmd.add_argument(
        "--include",
        action="append",
        dest="includes",
        help="Include line for the generated sources (repeatable)",
    )
    compile_cmd.add_argument(
        "-v", "--verbose", action="store_true", help="List exports per file"
    )

    context_cmd = subparsers.add_parser(
        "context", help="Prepare the build directory for a single source file"
    )
    context_cmd.add_argument("file", nargs="?", help="C++ source file")
    context_cmd.add_argument("--code", help="Raw source code instead of a file")
    context_cmd.add_argument(
        "--build-root", help="Directory under which build folders are created"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Optional argument list for testing purposes.

    Returns:
        Exit status code.
    """

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logger = Log(log_file=args.log_file, debug_mode=args.debug).logger
    platform = PlatformInfo.current()

    try:
        if args.command == "compile":
            package_dir = Path(args.package_dir)
            compile_attributes(
                package_dir,
                args.package_name or package_dir.resolve().name,
                discover_source_files(package_dir),
                args.includes,
                args.verbose,
                platform,
            )
            return 0

        if not args.file and not args.code:
            parser.error("context requires a file or --code")
        context = source_cpp_context(
            args.file,
            args.code,
            platform,
            BuildUnitCache(),
            build_root=args.build_root,
        )
        print(json.dumps(context.to_dict(), indent=2))
        return 0
    except CppAttributesError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
