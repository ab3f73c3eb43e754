"""Archive manifest model and codec.

A manifest is the ``META-INF/MANIFEST.MF`` text resource of a jar-style
archive. It is made of sections separated by blank lines:

- The main section holds archive-wide attributes (``Manifest-Version``,
  ``Main-Class``, ``Class-Path``, ...).
- Each following section starts with a ``Name`` header and describes one entry.

Header lines are ``Name: value``, at most 72 bytes long; longer values continue
on following lines that start with a single space.
"""

from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass, field
import pathlib
import re
from typing import BinaryIO
import zipfile


class ManifestError(ValueError):
    """Raised when a manifest cannot be built, rendered or parsed."""


MANIFEST_PATH: str = "META-INF/MANIFEST.MF"

MANIFEST_VERSION: str = "Manifest-Version"
CLASS_PATH: str = "Class-Path"
ABSOLUTE_CLASS_PATH: str = "Absolute-" + CLASS_PATH
MAIN_CLASS: str = "Main-Class"
NAME: str = "Name"

_LINE_LIMIT: int = 72
_NAME_RE: re.Pattern[str] = re.compile(r"^[A-Za-z0-9_-]{1,70}$")


def _check_name(name: str) -> None:
    if _NAME_RE.match(name) is None:
        raise ManifestError(f"Invalid manifest attribute name: {name!r}")


def _check_value(name: str, value: str) -> None:
    for ch in ("\r", "\n", "\0"):
        if ch in value:
            raise ManifestError(f"Manifest attribute {name!r} has a line break or NUL in its value.")


class Attributes(MutableMapping[str, str]):
    """Ordered, case-insensitive attribute mapping.

    Keys keep the casing they were first stored with; replacing a value under
    a differently-cased key does not move or rename the entry.
    """

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self._data: dict[str, tuple[str, str]] = {}
        if items is not None:
            self.update(items)

    def __getitem__(self, name: str) -> str:
        return self._data[name.lower()][1]

    def __setitem__(self, name: str, value: str) -> None:
        _check_name(name)
        _check_value(name, value)
        key: str = name.lower()
        existing: tuple[str, str] | None = self._data.get(key)
        if existing is not None:
            self._data[key] = (existing[0], value)
        else:
            self._data[key] = (name, value)

    def __delitem__(self, name: str) -> None:
        del self._data[name.lower()]

    def __iter__(self) -> Iterator[str]:
        for original, _value in self._data.values():
            yield original

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name.lower() in self._data

    def __repr__(self) -> str:
        return f"Attributes({dict(self.items())!r})"


@dataclass(slots=True)
class Manifest:
    """In-memory manifest.

    :ivar main_attributes: Archive-wide attributes.
    :ivar entries: Per-entry sections keyed by entry name.
    """

    main_attributes: Attributes = field(default_factory=Attributes)
    entries: dict[str, Attributes] = field(default_factory=dict)


def _header_lines(name: str, value: str) -> list[bytes]:
    """Encode one header, wrapped at the manifest line limit.

    :param name: Attribute name.
    :param value: Attribute value.
    :returns: Physical lines (without line terminators).
    """

    lines: list[bytes] = []
    current: bytearray = bytearray(f"{name}: ".encode("utf-8"))
    for ch in value:
        encoded: bytes = ch.encode("utf-8")
        if len(current) + len(encoded) > _LINE_LIMIT:
            lines.append(bytes(current))
            current = bytearray(b" ")
        current.extend(encoded)
    lines.append(bytes(current))
    return lines


def _render_section(attrs: Attributes, *, first: str | None) -> bytes:
    out: bytearray = bytearray()
    names: list[str] = list(attrs)
    if first is not None and first in attrs:
        names = [n for n in names if n.lower() != first.lower()]
        names.insert(0, first)
    for name in names:
        for line in _header_lines(name, attrs[name]):
            out.extend(line)
            out.extend(b"\r\n")
    out.extend(b"\r\n")
    return bytes(out)


def render_manifest(manifest: Manifest) -> bytes:
    """Render a manifest to its on-disk byte form.

    ``Manifest-Version`` is always written first in the main section, and
    ``Name`` first in each entry section.

    :param manifest: Manifest to render.
    :returns: UTF-8 encoded manifest bytes with CRLF line endings.
    """

    out: bytearray = bytearray(_render_section(manifest.main_attributes, first=MANIFEST_VERSION))
    for entry_name, attrs in manifest.entries.items():
        section: Attributes = Attributes({NAME: entry_name})
        for name, value in attrs.items():
            if name.lower() != NAME.lower():
                section[name] = value
        out.extend(_render_section(section, first=NAME))
    return bytes(out)


def write_manifest(manifest: Manifest, fp: BinaryIO) -> None:
    """Write a manifest to a binary stream.

    :param manifest: Manifest to write.
    :param fp: Writable binary stream.
    """

    fp.write(render_manifest(manifest))


def _logical_sections(text: str) -> list[list[str]]:
    """Split manifest text into sections of logical (unwrapped) header lines."""

    sections: list[list[str]] = []
    current: list[str] = []
    for raw in re.split(r"\r\n|\r|\n", text):
        if raw == "":
            if len(current) > 0:
                sections.append(current)
                current = []
            continue
        if raw.startswith(" ") is True:
            if len(current) == 0:
                raise ManifestError(f"Continuation line without a header: {raw!r}")
            current[-1] = current[-1] + raw[1:]
            continue
        current.append(raw)
    if len(current) > 0:
        sections.append(current)
    return sections


def _parse_section(lines: list[str]) -> Attributes:
    attrs: Attributes = Attributes()
    for line in lines:
        name, sep, value = line.partition(": ")
        if sep == "":
            # An empty value may be written without the trailing space.
            if line.endswith(":") is True:
                name, value = line[:-1], ""
            else:
                raise ManifestError(f"Malformed manifest header: {line!r}")
        attrs[name] = value
    return attrs


def parse_manifest(data: bytes) -> Manifest:
    """Parse manifest bytes.

    :param data: Raw ``MANIFEST.MF`` contents.
    :returns: Parsed manifest.
    :raises ManifestError: If the manifest is malformed.
    """

    try:
        text: str = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError("Manifest is not valid UTF-8.") from e

    sections: list[list[str]] = _logical_sections(text)
    manifest: Manifest = Manifest()
    if len(sections) == 0:
        return manifest

    manifest.main_attributes = _parse_section(sections[0])
    for lines in sections[1:]:
        attrs: Attributes = _parse_section(lines)
        entry_name: str | None = attrs.get(NAME)
        if entry_name is None:
            raise ManifestError(f"Manifest entry section has no {NAME!r} header: {lines[0]!r}")
        del attrs[NAME]
        manifest.entries[entry_name] = attrs
    return manifest


def read_archive_manifest(archive_path: pathlib.Path) -> Manifest:
    """Read the manifest of a jar-style archive.

    :param archive_path: Archive on disk.
    :returns: Parsed manifest.
    :raises ManifestError: If the archive has no manifest or it is malformed.
    """

    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            data: bytes = zf.read(MANIFEST_PATH)
    except KeyError as e:
        raise ManifestError(f"No {MANIFEST_PATH} in archive: {archive_path}") from e
    except zipfile.BadZipFile as e:
        raise ManifestError(f"Not a zip archive: {archive_path}") from e
    return parse_manifest(data)
