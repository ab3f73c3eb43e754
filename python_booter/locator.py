"""Archive locator.

Finds the archive a class (or function, or module) was imported from. Modules
imported through :mod:`zipimport` get a nested-archive locator of the form::

    zip:file:///abs/path/app.zip!/pkg/mod.py

while modules loaded from loose files get a plain ``file:`` URI. Only the
former has an archive to report.
"""

from dataclasses import dataclass
import importlib.machinery
import importlib.util
import os
import pathlib
import sys
import types
import urllib.parse
import urllib.request
import zipimport


class LocateError(RuntimeError):
    """Raised when the archive of a type cannot be determined."""


class ResourceNotFoundError(LocateError):
    """Raised when the loader has no resource for a type."""


class LocatorParseError(LocateError):
    """Raised when a resource locator is not a nested-archive locator."""


ARCHIVE_SCHEME: str = "zip"
FILE_SCHEME: str = "file"


@dataclass(frozen=True, slots=True)
class ResourceLocator:
    """Parsed resource locator.

    :ivar scheme: ``zip`` for nested-archive locators, ``file`` for loose files.
    :ivar outer_path: Archive path (``zip``) or file path (``file``), decoded.
    :ivar inner_path: Path inside the archive, or ``None`` for loose files.
    """

    scheme: str
    outer_path: str
    inner_path: str | None


def _file_url_to_path(url: str, *, raw: str) -> str:
    parsed = urllib.parse.urlsplit(url)
    if parsed.scheme != FILE_SCHEME or parsed.path == "":
        raise LocatorParseError(f"Cannot parse location of {raw!r}.")
    return urllib.request.url2pathname(parsed.path)


def parse_resource_locator(raw: str) -> ResourceLocator:
    """Parse a resource locator string.

    :param raw: Locator produced by :func:`resolve_resource_locator`.
    :returns: Parsed locator.
    :raises LocatorParseError: If the string is neither form.
    """

    prefix: str = f"{ARCHIVE_SCHEME}:"
    if raw.startswith(prefix) is True:
        outer, sep, inner = raw[len(prefix) :].partition("!")
        if sep == "":
            raise LocatorParseError(f"Cannot parse location of {raw!r}; missing '!' separator.")
        return ResourceLocator(
            scheme=ARCHIVE_SCHEME,
            outer_path=_file_url_to_path(outer, raw=raw),
            inner_path=inner.lstrip("/"),
        )
    return ResourceLocator(
        scheme=FILE_SCHEME,
        outer_path=_file_url_to_path(raw, raw=raw),
        inner_path=None,
    )


def _type_name(obj: object) -> str:
    if isinstance(obj, types.ModuleType):
        return obj.__name__
    return f"{getattr(obj, '__module__', '?')}.{getattr(obj, '__qualname__', repr(obj))}"


def _module_name(obj: object) -> str | None:
    if isinstance(obj, types.ModuleType):
        return obj.__name__
    name: object = getattr(obj, "__module__", None)
    if isinstance(name, str):
        return name
    return None


def _find_spec(module_name: str) -> importlib.machinery.ModuleSpec | None:
    """Find a module spec, preferring the module's own loader."""

    module: types.ModuleType | None = sys.modules.get(module_name)
    if module is not None:
        spec = getattr(module, "__spec__", None)
        if spec is not None and spec.loader is not None:
            return spec
    try:
        return importlib.util.find_spec(module_name)
    except (ImportError, ValueError):
        # ValueError: module is in sys.modules with __spec__ set to None (e.g. __main__).
        return None


def resolve_resource_locator(obj: object) -> str | None:
    """Resolve the locator of the module that defines ``obj``.

    :param obj: Class, function or module.
    :returns: Locator string, or ``None`` if the loader has no file for it.
    """

    module_name: str | None = _module_name(obj)
    if module_name is None:
        return None
    spec = _find_spec(module_name)
    if spec is None or spec.has_location is False or spec.origin is None:
        return None

    origin: str = spec.origin
    loader: object = spec.loader
    if isinstance(loader, zipimport.zipimporter):
        archive: str = loader.archive
        inner: str = origin[len(archive) :].lstrip(os.sep).replace(os.sep, "/")
        return f"{ARCHIVE_SCHEME}:{pathlib.Path(archive).absolute().as_uri()}!/{inner}"

    if os.path.exists(origin) is False:
        return None
    return pathlib.Path(origin).absolute().as_uri()


def locate_archive_path(obj: object) -> pathlib.Path:
    """Return the path of the archive ``obj`` was imported from.

    :param obj: Class, function or module.
    :returns: Archive path.
    :raises ResourceNotFoundError: If the loader has no resource for ``obj``.
    :raises LocatorParseError: If ``obj`` was not imported from an archive.
    """

    raw: str | None = resolve_resource_locator(obj)
    if raw is None:
        raise ResourceNotFoundError(f"Cannot find {_type_name(obj)!r} using its loader.")

    locator: ResourceLocator = parse_resource_locator(raw)
    if locator.inner_path is None:
        raise LocatorParseError(
            f"Cannot parse location of {raw!r}. Probably not loaded from an archive."
        )
    return pathlib.Path(locator.outer_path)
