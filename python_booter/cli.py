"""Command line interface for python-booter."""

import argparse
import importlib
import logging
import pathlib
import sys

from python_booter.booter import BooterConfigurationError, BooterOptions, create_booter_archive
from python_booter.host import HostInfo, LaunchClasspath, classpath_argument, detect_host
from python_booter.locator import LocateError, locate_archive_path
from python_booter.manifest import Manifest, ManifestError, read_archive_manifest


def _configure_logging(*, verbose: int, quiet: int) -> logging.Logger:
    """Configure the python-booter logger.

    :param verbose: Verbosity count (0+).
    :param quiet: Quietness count (0+).
    :returns: Configured logger.
    """

    level: int = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("python_booter")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _read_class_path_args(*, entries: list[str] | None, class_path_file: pathlib.Path | None) -> list[str]:
    """Collect classpath entries from ``-c`` flags and an optional list file.

    :param entries: Entries passed with ``-c``.
    :param class_path_file: File with one entry per line (blank lines ignored).
    :returns: Entries in command-line order, file entries last.
    """

    out: list[str] = list(entries or [])
    if class_path_file is not None:
        for line in class_path_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line != "":
                out.append(line)
    return out


def _import_target(target: str) -> object:
    """Import ``module`` or ``module:qualname``.

    :param target: Target spec.
    :returns: Imported module or attribute.
    :raises LocateError: If the target cannot be imported.
    """

    module_name, _, qualname = target.partition(":")
    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as e:
        raise LocateError(f"Cannot import {module_name!r}: {e}") from e
    if qualname == "":
        return obj
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise LocateError(f"{module_name!r} has no attribute {qualname!r}") from e
    return obj


def _add_logging_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable verbose logging.",
    )
    p.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Reduce logging. Pass multiple times to suppress more output.",
    )


def _add_class_path_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-m",
        "--main-class",
        type=str,
        required=True,
        help="Fully qualified name of the class to start (e.g. com.example.Main).",
    )
    p.add_argument(
        "-c",
        "--class-path",
        action="append",
        default=None,
        help="Classpath entry (jar or directory). Repeat for more entries.",
    )
    p.add_argument(
        "--class-path-file",
        type=pathlib.Path,
        default=None,
        help="File listing classpath entries, one per line.",
    )
    p.add_argument(
        "--tmp-dir",
        type=pathlib.Path,
        default=None,
        help="Directory to create the booter archive in (defaults to the system temp dir).",
    )
    p.add_argument(
        "--keep",
        action="store_true",
        help="Keep the booter archive after exit instead of deleting it.",
    )


def main(argv: list[str] | None = None) -> int:
    """Run the python-booter CLI.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="python-booter",
        description="Create manifest-only booter jars and locate the archives modules come from.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_booter = subparsers.add_parser(
        "booter",
        help="Create a booter archive and print its path.",
    )
    _add_class_path_args(p_booter)
    _add_logging_args(p_booter)

    p_classpath = subparsers.add_parser(
        "classpath",
        help="Print the launch classpath for this host (a booter archive on Windows).",
    )
    _add_class_path_args(p_classpath)
    _add_logging_args(p_classpath)

    p_locate = subparsers.add_parser(
        "locate",
        help="Print the archive a module or class was imported from.",
    )
    p_locate.add_argument(
        "target",
        type=str,
        help="Module name or 'module:qualname'.",
    )
    _add_logging_args(p_locate)

    p_show = subparsers.add_parser(
        "show",
        help="Print the main attributes of an archive's manifest.",
    )
    p_show.add_argument(
        "archive",
        type=pathlib.Path,
        help="Path to a jar-style archive.",
    )
    _add_logging_args(p_show)

    ns = parser.parse_args(argv)
    logger: logging.Logger = _configure_logging(verbose=ns.verbose, quiet=ns.quiet)

    if ns.command == "booter" or ns.command == "classpath":
        try:
            entries: list[str] = _read_class_path_args(
                entries=ns.class_path,
                class_path_file=ns.class_path_file,
            )
        except OSError as e:
            logger.error(f"python-booter: cannot read class path file: {e}")
            return 1
        options: BooterOptions = BooterOptions(
            tmp_dir=ns.tmp_dir,
            delete_on_exit=not ns.keep,
        )
        if ns.command == "booter":
            try:
                archive: pathlib.Path = create_booter_archive(
                    entries,
                    ns.main_class,
                    logger=logger,
                    options=options,
                )
            except (BooterConfigurationError, ManifestError) as e:
                logger.error(f"python-booter: {e}")
                return 1
            print(archive)
            return 0

        host: HostInfo = detect_host()
        try:
            launch: LaunchClasspath = classpath_argument(
                entries,
                ns.main_class,
                host=host,
                logger=logger,
                options=options,
            )
        except (BooterConfigurationError, ManifestError) as e:
            logger.error(f"python-booter: {e}")
            return 1
        print(launch.class_path)
        return 0

    if ns.command == "locate":
        try:
            path: pathlib.Path = locate_archive_path(_import_target(ns.target))
        except LocateError as e:
            logger.error(f"python-booter: {e}")
            return 1
        print(path)
        return 0

    if ns.command == "show":
        try:
            manifest: Manifest = read_archive_manifest(ns.archive)
        except (ManifestError, FileNotFoundError) as e:
            logger.error(f"python-booter: {e}")
            return 1
        for name, value in manifest.main_attributes.items():
            print(f"{name}: {value}")
        return 0

    raise AssertionError(f"Unhandled command: {ns.command}")
