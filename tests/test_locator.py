import importlib
import os
import pathlib
import sys
import textwrap
import uuid
import zipfile

import pytest

from python_booter.locator import (
    LocatorParseError,
    ResourceLocator,
    ResourceNotFoundError,
    locate_archive_path,
    parse_resource_locator,
    resolve_resource_locator,
)


class LooseWidget:
    pass


@pytest.fixture
def zipped_package(tmp_path, monkeypatch, request):
    """Import a fresh package from a zip archive on sys.path."""

    name = f"zipped_{uuid.uuid4().hex}"
    archive = tmp_path / "bundle dir" / "bundle.zip"
    archive.parent.mkdir()
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(f"{name}/__init__.py", "class Widget:\n    pass\n")
        zf.writestr(
            f"{name}/tools.py",
            textwrap.dedent(
                """
                def helper():
                    return 1
                """
            ),
        )

    monkeypatch.syspath_prepend(str(archive))

    def _cleanup():
        for mod in [m for m in sys.modules if m == name or m.startswith(name + ".")]:
            del sys.modules[mod]

    request.addfinalizer(_cleanup)
    package = importlib.import_module(name)
    tools = importlib.import_module(f"{name}.tools")
    return archive, package, tools


def test_parse_nested_archive_locator():
    loc = parse_resource_locator("zip:file:///opt/app/lib.zip!/pkg/mod.py")

    assert loc == ResourceLocator(scheme="zip", outer_path=os.path.normpath("/opt/app/lib.zip"), inner_path="pkg/mod.py")


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX path layout")
def test_parse_decodes_percent_escapes():
    loc = parse_resource_locator("zip:file:///opt/my%20app/lib.zip!/mod.py")

    assert loc.outer_path == "/opt/my app/lib.zip"


def test_parse_loose_file_locator():
    loc = parse_resource_locator(pathlib.Path(__file__).as_uri())

    assert loc.scheme == "file"
    assert loc.inner_path is None
    assert pathlib.Path(loc.outer_path) == pathlib.Path(__file__)


@pytest.mark.parametrize(
    "raw",
    [
        "http://example.com/lib.zip!/mod.py",
        "zip:file:///opt/app/lib.zip",
        "zip:http://example.com/lib.zip!/mod.py",
        "not a locator",
    ],
)
def test_parse_rejects_unknown_locators(raw):
    with pytest.raises(LocatorParseError):
        parse_resource_locator(raw)


def test_locate_class_from_zip(zipped_package):
    archive, package, _tools = zipped_package

    assert locate_archive_path(package.Widget) == archive


def test_locate_module_and_function_from_zip(zipped_package):
    archive, package, tools = zipped_package

    assert locate_archive_path(package) == archive
    assert locate_archive_path(tools.helper) == archive


def test_resolve_zip_locator_names_the_inner_path(zipped_package):
    _archive, package, tools = zipped_package

    raw = resolve_resource_locator(tools)
    assert raw is not None
    assert raw.startswith("zip:file:")
    assert raw.endswith(f"!/{package.__name__}/tools.py")


def test_locate_loose_class_is_a_parse_error():
    with pytest.raises(LocatorParseError, match="Probably not loaded from an archive"):
        locate_archive_path(LooseWidget)


def test_locate_builtin_is_not_found():
    with pytest.raises(ResourceNotFoundError, match="builtins.int"):
        locate_archive_path(int)


def test_locate_unresolvable_module_is_not_found():
    class Ghost:
        pass

    Ghost.__module__ = f"ghost_{uuid.uuid4().hex}"

    with pytest.raises(ResourceNotFoundError):
        locate_archive_path(Ghost)


def test_parse_splits_on_the_first_separator():
    loc = parse_resource_locator("zip:file:///opt/app/lib.zip!/we!rd/mod.py")

    assert pathlib.Path(loc.outer_path) == pathlib.Path("/opt/app/lib.zip")
    assert loc.inner_path == "we!rd/mod.py"


def test_locate_module_under_a_bang_directory_in_zip(tmp_path, monkeypatch, request):
    name = f"bang_{uuid.uuid4().hex}"
    archive = tmp_path / "b.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(f"we!rd/{name}.py", "VALUE = 1\n")
    monkeypatch.syspath_prepend(f"{archive}{os.sep}we!rd")
    request.addfinalizer(lambda: sys.modules.pop(name, None))

    module = importlib.import_module(name)

    assert locate_archive_path(module) == archive
    assert resolve_resource_locator(module).endswith(f"!/we!rd/{name}.py")
