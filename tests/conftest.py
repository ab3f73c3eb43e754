import logging
import pathlib
import zipfile

import pytest


@pytest.fixture(autouse=True)
def _reset_cli_logger():
    yield
    logger: logging.Logger = logging.getLogger("python_booter")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def logger() -> logging.Logger:
    log: logging.Logger = logging.getLogger("booter-tests")
    log.setLevel(logging.DEBUG)
    return log


@pytest.fixture
def class_path_layout(tmp_path: pathlib.Path) -> dict[str, pathlib.Path]:
    """A libs/ tree with one jar and one class directory, plus an out/ dir."""

    libs: pathlib.Path = tmp_path / "libs"
    classes: pathlib.Path = libs / "classes"
    classes.mkdir(parents=True)
    jar: pathlib.Path = libs / "a.jar"
    with zipfile.ZipFile(jar, "w") as zf:
        zf.writestr("com/example/Main.class", b"\xca\xfe\xba\xbe")
    out: pathlib.Path = tmp_path / "out"
    out.mkdir()
    return {"libs": libs, "classes": classes, "jar": jar, "out": out}
