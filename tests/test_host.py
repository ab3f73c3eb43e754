import os

from python_booter.booter import BooterOptions
from python_booter.host import HostInfo, classpath_argument, detect_host
from python_booter.manifest import CLASS_PATH, MAIN_CLASS, read_archive_manifest


def test_detect_host_uses_the_platform_path_separator():
    host = detect_host()

    assert host.path_separator == os.pathsep
    assert host.is_windows == (os.name == "nt")


def test_posix_host_joins_the_class_path(class_path_layout, logger):
    host = HostInfo(is_windows=False, path_separator=":")
    entries = [str(class_path_layout["jar"]), str(class_path_layout["classes"])]

    launch = classpath_argument(entries, "com.example.Main", host=host, logger=logger)

    assert launch.booter_archive is None
    assert launch.class_path == ":".join(entries)


def test_windows_host_wraps_the_class_path_in_a_booter_archive(class_path_layout, logger):
    host = HostInfo(is_windows=True, path_separator=";")

    launch = classpath_argument(
        [str(class_path_layout["jar"])],
        "com.example.Main",
        host=host,
        logger=logger,
        options=BooterOptions(tmp_dir=class_path_layout["out"], delete_on_exit=False),
    )

    assert launch.booter_archive is not None
    assert launch.class_path == str(launch.booter_archive)
    attrs = read_archive_manifest(launch.booter_archive).main_attributes
    assert attrs[MAIN_CLASS] == "com.example.Main"
    assert attrs[CLASS_PATH] == "../libs/a.jar"


def test_missing_class_path_is_treated_as_empty(logger):
    host = HostInfo(is_windows=False, path_separator=":")

    assert classpath_argument(None, "com.example.Main", host=host, logger=logger).class_path == ""
