"""Booter archive builder.

A booter archive is a jar-style archive that contains nothing but a manifest:

- ``Main-Class`` names the class to start.
- ``Class-Path`` lists the real classpath as URIs relative to the archive's
  own directory (the form the jar format requires).
- ``Absolute-Class-Path`` repeats the classpath as absolute ``file:`` URIs for
  tools that cannot resolve relative manifest entries.

Launching ``java -jar booter.jar`` then sidesteps command-line length limits
for long classpaths.
"""

import atexit
import contextlib
from dataclasses import dataclass
import enum
import logging
import os
import pathlib
import tempfile
import urllib.parse
import urllib.request
import zipfile

from python_booter.manifest import (
    ABSOLUTE_CLASS_PATH,
    CLASS_PATH,
    MAIN_CLASS,
    MANIFEST_PATH,
    MANIFEST_VERSION,
    Manifest,
    write_manifest,
)


class BooterConfigurationError(ValueError):
    """Raised when a booter archive cannot be built from the given inputs."""


class ClasspathUriStyle(enum.Enum):
    """How classpath entries are written as URIs."""

    RELATIVE = "relative"
    ABSOLUTE = "absolute"


@dataclass(frozen=True, slots=True)
class BooterOptions:
    """Booter archive configuration.

    :ivar prefix: Temp file name prefix.
    :ivar suffix: Temp file name suffix (archive extension).
    :ivar tmp_dir: Directory for the archive (``None`` uses the system temp dir).
    :ivar delete_on_exit: Delete the archive when the interpreter exits.
    """

    prefix: str = "pybooter"
    suffix: str = ".jar"
    tmp_dir: pathlib.Path | None = None
    delete_on_exit: bool = True


MANIFEST_VERSION_VALUE: str = "1.0"


def create_booter_archive(
    class_path: list[str],
    start_class_name: str,
    *,
    logger: logging.Logger,
    options: BooterOptions | None = None,
) -> pathlib.Path:
    """Create a booter archive for a classpath and main class.

    :param class_path: Classpath entries (files or directories), in order.
    :param start_class_name: Fully qualified name of the class to start.
    :param logger: Logger for diagnostics.
    :param options: Optional archive configuration.
    :returns: Path to the new archive.
    :raises BooterConfigurationError: If the inputs are invalid.
    :raises OSError: If the archive cannot be written.
    """

    opts: BooterOptions = options if options is not None else BooterOptions()
    if start_class_name == "":
        raise BooterConfigurationError("Main class name must not be empty.")
    for entry in class_path:
        if entry == "":
            raise BooterConfigurationError("Classpath entries must not be empty.")

    fd, name = tempfile.mkstemp(
        prefix=opts.prefix,
        suffix=opts.suffix,
        dir=None if opts.tmp_dir is None else str(opts.tmp_dir),
    )
    archive_path: pathlib.Path = pathlib.Path(name)
    if opts.delete_on_exit is True:
        atexit.register(_delete_quietly, archive_path)

    with os.fdopen(fd, "wb") as f:
        manifest: Manifest = build_booter_manifest(
            class_path,
            start_class_name,
            parent=archive_path.parent.resolve(),
            logger=logger,
        )
        with zipfile.ZipFile(f, "w", compression=zipfile.ZIP_STORED) as zf:
            with zf.open(MANIFEST_PATH, "w") as mf:
                write_manifest(manifest, mf)

    logger.info(f"python-booter: wrote booter archive {archive_path} ({len(class_path)} classpath entries)")
    if logger.isEnabledFor(logging.DEBUG) is True:
        logger.debug(f"python-booter: {CLASS_PATH}={manifest.main_attributes[CLASS_PATH]}")
    return archive_path


def build_booter_manifest(
    class_path: list[str],
    start_class_name: str,
    *,
    parent: pathlib.Path,
    logger: logging.Logger,
) -> Manifest:
    """Build the manifest of a booter archive.

    :param class_path: Classpath entries, in order.
    :param start_class_name: Fully qualified name of the class to start.
    :param parent: Canonical directory the archive lives in.
    :param logger: Logger for diagnostics.
    :returns: Booter manifest.
    """

    manifest: Manifest = Manifest()
    attrs = manifest.main_attributes
    attrs[MANIFEST_VERSION] = MANIFEST_VERSION_VALUE
    # The jar format only resolves relative Class-Path URIs.
    attrs[CLASS_PATH] = serialize_class_path(
        class_path,
        style=ClasspathUriStyle.RELATIVE,
        parent=parent,
        logger=logger,
    )
    attrs[ABSOLUTE_CLASS_PATH] = serialize_class_path(
        class_path,
        style=ClasspathUriStyle.ABSOLUTE,
        parent=parent,
        logger=logger,
    )
    attrs[MAIN_CLASS] = start_class_name
    return manifest


def serialize_class_path(
    class_path: list[str],
    *,
    style: ClasspathUriStyle,
    parent: pathlib.Path,
    logger: logging.Logger,
) -> str:
    """Serialize classpath entries into a manifest classpath value.

    Directory entries always end in ``/``; the jar format treats anything else
    as an archive.

    :param class_path: Classpath entries, in order.
    :param style: URI style to write.
    :param parent: Canonical directory of the archive (relative style).
    :param logger: Logger for the relative-to-absolute fallback.
    :returns: Space separated URI tokens.
    """

    tokens: list[str] = []
    for entry in class_path:
        element: pathlib.Path = pathlib.Path(entry)
        uri: str
        if style is ClasspathUriStyle.RELATIVE:
            uri = _relative_uri(parent, element, logger=logger)
        else:
            uri = _absolute_uri(element)
        if element.is_dir() is True and uri.endswith("/") is False:
            uri = uri + "/"
        tokens.append(uri)
    return " ".join(tokens)


def _absolute_uri(element: pathlib.Path) -> str:
    """Return an absolute ``file:`` URI (ASCII, percent-encoded)."""

    return element.absolute().as_uri()


def _relative_uri(parent: pathlib.Path, element: pathlib.Path, *, logger: logging.Logger) -> str:
    """Return a URI for ``element`` relative to ``parent``.

    Falls back to an absolute URI when no relative path exists, e.g. when the
    entry lives on a different drive than the archive.

    :param parent: Canonical archive directory.
    :param element: Classpath entry.
    :param logger: Logger for the fallback.
    :returns: Relative (or, on fallback, absolute) URI.
    :raises BooterConfigurationError: If relativization yields an absolute path.
    """

    try:
        # Only the directory is canonicalized; the entry keeps the name it was given.
        absolute: str = os.path.abspath(element)
        canonical: str = os.path.join(
            os.path.realpath(os.path.dirname(absolute)),
            os.path.basename(absolute),
        )
        rel: str = os.path.relpath(canonical, parent)
    except ValueError:
        logger.error(f"python-booter: booter manifest contains absolute paths in classpath {element}")
        return _absolute_uri(element)

    rel_path: pathlib.PurePath = pathlib.PurePath(rel)
    if rel_path.is_absolute() is True or rel_path.drive != "":
        raise BooterConfigurationError(
            f"Could not create a relative path {element} against {parent} (got {rel!r})."
        )
    return urllib.parse.quote(rel_path.as_posix(), safe="/")


def read_class_path(
    manifest: Manifest,
    *,
    absolute: bool = False,
    base: pathlib.Path | None = None,
) -> list[str]:
    """Decode a booter manifest's classpath back into filesystem paths.

    :param manifest: Booter manifest.
    :param absolute: Read ``Absolute-Class-Path`` instead of ``Class-Path``.
    :param base: Directory that relative entries are resolved against.
    :returns: Filesystem path strings, in manifest order.
    """

    name: str = ABSOLUTE_CLASS_PATH if absolute is True else CLASS_PATH
    value: str = manifest.main_attributes.get(name, "")
    paths: list[str] = []
    for token in value.split(" "):
        if token == "":
            continue
        parsed = urllib.parse.urlsplit(token)
        if parsed.scheme == "file":
            paths.append(urllib.request.url2pathname(parsed.path))
            continue
        rel: str = urllib.request.url2pathname(token)
        if base is not None:
            rel = os.path.normpath(os.path.join(base, rel))
        paths.append(rel)
    return paths


def _delete_quietly(path: pathlib.Path) -> None:
    with contextlib.suppress(OSError):
        path.unlink()
