"""Voice file formats and their on-disk handling.

Formats:
    sysex-32  bulk 32-voice SysEx dump (.syx, .sysx, .dx7)
    xml       XML voice document (.xml)
    xml.gz    gzip-compressed XML voice document (.xml.gz)
"""
from __future__ import annotations
import gzip
import zlib
from enum import Enum
from pathlib import Path
from typing import Iterable

from core.logger import AppLogger
from formats.xml import DEFAULT_SCHEMA, parse_xml, write_xml
from midi.diagnostics import Listener
from midi.sysex import SysExOptions, SysExReader, SysExWriter
from model.voice import NamedVoice


class Format(Enum):
    XML = "xml"
    XML_GZ = "xml.gz"
    SYSEX_32 = "sysex-32"

    @classmethod
    def from_name(cls, name: str) -> Format:
        for fmt in cls:
            if fmt.value == name:
                return fmt
        raise ValueError(
            f"Unknown format {name!r}; expected one of "
            + ", ".join(f.value for f in cls)
        )


_SUFFIXES: list[tuple[str, Format]] = [
    (".xml.gz", Format.XML_GZ),
    (".xml", Format.XML),
    (".syx", Format.SYSEX_32),
    (".sysx", Format.SYSEX_32),
    (".dx7", Format.SYSEX_32),
]


def infer_format(path: Path | str, explicit: Format | str | None = None) -> Format:
    if explicit is not None:
        return explicit if isinstance(explicit, Format) else Format.from_name(explicit)
    name = Path(path).name.lower()
    for suffix, fmt in _SUFFIXES:
        if name.endswith(suffix):
            return fmt
    raise ValueError(
        f"Could not infer file format from file name: {path}. "
        "Specify the format explicitly."
    )


def read_voices(
    path: Path,
    fmt: Format,
    listener: Listener,
    options: SysExOptions | None = None,
    logger: AppLogger | None = None,
    limit: int | None = None,
) -> list[NamedVoice]:
    path = Path(path)
    uri = path.absolute().as_uri()
    if fmt is Format.SYSEX_32:
        with path.open("rb") as stream:
            return SysExReader(listener, uri, stream, options, logger).parse(limit)
    if fmt is Format.XML:
        with path.open("rb") as stream:
            voices = parse_xml(stream, uri, listener, logger)
    else:
        try:
            with gzip.open(path, "rb") as stream:
                voices = parse_xml(stream, uri, listener, logger)
        except (EOFError, zlib.error) as exc:
            raise ValueError(f"Corrupt gzip stream in {path}: {exc}") from exc
    return voices if limit is None else voices[:limit]


def write_voices(
    voices: Iterable[NamedVoice],
    path: Path,
    fmt: Format,
    options: SysExOptions | None = None,
    schema: str = DEFAULT_SCHEMA,
    logger: AppLogger | None = None,
) -> None:
    path = Path(path)
    if fmt is Format.SYSEX_32:
        with path.open("wb") as stream:
            SysExWriter(stream, options, logger).write(voices)
    elif fmt is Format.XML:
        with path.open("wb") as stream:
            write_xml(voices, stream, schema, logger)
    else:
        with gzip.open(path, "wb") as stream:
            write_xml(voices, stream, schema, logger)
