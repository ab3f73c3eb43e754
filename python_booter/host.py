"""Host platform helpers.

The host is detected once (by the CLI) and handed to anything that needs
platform-specific behavior, rather than being read from a module global.
"""

from dataclasses import dataclass
import logging
import os
import pathlib
import sys

from python_booter.booter import BooterOptions, create_booter_archive


@dataclass(frozen=True, slots=True)
class HostInfo:
    """Host platform facts.

    :ivar is_windows: Whether the host runs Windows.
    :ivar path_separator: Classpath separator for command lines (``;`` or ``:``).
    """

    is_windows: bool
    path_separator: str


@dataclass(frozen=True, slots=True)
class LaunchClasspath:
    """Classpath to pass on a launch command line.

    :ivar class_path: Joined classpath string.
    :ivar booter_archive: Booter archive standing in for the classpath, if any.
    """

    class_path: str
    booter_archive: pathlib.Path | None


def detect_host() -> HostInfo:
    """Detect the current host.

    :returns: Host info for the running interpreter.
    """

    return HostInfo(
        is_windows=sys.platform.startswith("win"),
        path_separator=os.pathsep,
    )


def classpath_argument(
    class_path: list[str] | None,
    start_class_name: str,
    *,
    host: HostInfo,
    logger: logging.Logger,
    options: BooterOptions | None = None,
) -> LaunchClasspath:
    """Build the classpath argument for launching ``start_class_name``.

    Windows command lines are limited to 32k characters, so there the
    classpath is moved into a booter archive and the archive alone is used.

    :param class_path: Classpath entries (``None`` is treated as empty).
    :param start_class_name: Fully qualified name of the class to start.
    :param host: Host info from :func:`detect_host`.
    :param logger: Logger for diagnostics.
    :param options: Optional booter archive configuration.
    :returns: Launch classpath.
    """

    entries: list[str] = class_path or []
    if host.is_windows is True:
        archive: pathlib.Path = create_booter_archive(
            entries,
            start_class_name,
            logger=logger,
            options=options,
        )
        return LaunchClasspath(class_path=str(archive), booter_archive=archive)

    return LaunchClasspath(class_path=host.path_separator.join(entries), booter_archive=None)
