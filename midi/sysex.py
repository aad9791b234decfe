from __future__ import annotations
import io
from dataclasses import dataclass
from typing import BinaryIO, Iterable

import mido

from core.logger import AppLogger
from midi.bitfields import pack_size, unpack_size
from midi.diagnostics import DiagnosticLog, Listener, ParseError, Severity
from midi.layout import RECORD_SIZE
from midi.voice_codec import decode_voice, encode_voice
from model.voice import NamedVoice

YAMAHA_ID = 0x43
HEADER = (0xF0, YAMAHA_ID, 0x00)  # start of SysEx, manufacturer, sub-status/channel 1
SYSEX_END = 0xF7

FORMAT_SINGLE = 0x00
FORMAT_BULK_32 = 0x09

MAX_VOICES = 127  # 127 * 128 is the largest record payload a 14-bit size can hold


class UnexpectedEOF(EOFError):
    def __init__(self, offset: int) -> None:
        super().__init__(f"Unexpected EOF at offset {offset}")
        self.offset = offset


def checksum_add(checksum: int, data: Iterable[int]) -> int:
    for byte in data:
        checksum = (checksum - byte) & 0xFF
    return checksum


def checksum_finish(checksum: int) -> int:
    return checksum & 0x7F


def compute_checksum(payload: bytes) -> int:
    """Two's-complement checksum of the voice records, masked to 7 bits."""
    return checksum_finish(checksum_add(0, payload))


@dataclass(frozen=True)
class SysExOptions:
    strict_checksum: bool = True
    verify_terminator: bool = True
    pad_names: bool = True

    @classmethod
    def from_config(cls, config) -> SysExOptions:
        return cls(
            strict_checksum=bool(config.strict_checksum),
            verify_terminator=bool(config.verify_terminator),
            pad_names=bool(config.pad_names),
        )


class _ByteSource:
    """Forward-only reader that knows the absolute offset of the next byte."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.offset = 0

    def read_byte(self) -> int:
        data = self._stream.read(1)
        if not data:
            raise UnexpectedEOF(self.offset)
        self.offset += 1
        return data[0]

    def read_exact(self, count: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < count:
            data = self._stream.read(count - len(chunks))
            if not data:
                self.offset += len(chunks)
                raise UnexpectedEOF(self.offset)
            chunks += data
        self.offset += count
        return bytes(chunks)


def _unexpected_byte(expected: int, received: int) -> str:
    return (
        "Unexpected byte value.\n"
        f"  Expected: 0x{expected:X}\n"
        f"  Received: 0x{received:X}"
    )


class SysExReader:
    """Decode one SysEx voice dump from a binary stream.

    Structural problems in the header yield an empty result; range problems
    only drop the affected voice.  Every problem is reported to ``listener``.
    """

    def __init__(
        self,
        listener: Listener,
        uri: str,
        stream: BinaryIO,
        options: SysExOptions | None = None,
        logger: AppLogger | None = None,
    ) -> None:
        self._log = DiagnosticLog(listener)
        self._uri = uri
        self._source = _ByteSource(stream)
        self._options = options or SysExOptions()
        self._logger = logger or AppLogger()

    def _report(self, offset: int, severity: Severity, message: str,
                cause: BaseException | None = None) -> None:
        self._log(ParseError(self._uri, offset, severity, message, cause))

    def _eof(self, error: UnexpectedEOF) -> None:
        self._report(error.offset, Severity.ERROR, "Unexpected EOF", error)

    def parse(self, limit: int | None = None) -> list[NamedVoice]:
        """Decode every voice, or at most ``limit`` voices when given."""
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        try:
            fmt = self._read_header()
        except UnexpectedEOF as exc:
            self._eof(exc)
            return []
        if fmt is None:
            return []
        if fmt == FORMAT_SINGLE:
            self._report(
                self._source.offset - 1, Severity.WARNING,
                "Single voice format is not supported.",
            )
            return []
        return self._parse_bulk(limit)

    def _read_header(self) -> int | None:
        mark = self._log.mark()
        for expected in HEADER:
            offset = self._source.offset
            received = self._source.read_byte()
            if received != expected:
                self._report(offset, Severity.ERROR,
                             _unexpected_byte(expected, received))

        offset = self._source.offset
        fmt = self._source.read_byte()
        if self._log.errors_since(mark):
            return None
        if fmt not in (FORMAT_SINGLE, FORMAT_BULK_32):
            self._report(
                offset, Severity.ERROR,
                "Unexpected voice format.\n"
                "  Expected: 0x0 or 0x9\n"
                f"  Received: 0x{fmt:X}",
            )
            return None
        return fmt

    def _parse_bulk(self, limit: int | None) -> list[NamedVoice]:
        try:
            size_offset = self._source.offset
            size = unpack_size(self._source.read_byte(), self._source.read_byte())
        except UnexpectedEOF as exc:
            self._eof(exc)
            return []

        voice_count = size // RECORD_SIZE
        if size % RECORD_SIZE:
            self._report(
                size_offset, Severity.WARNING,
                f"Size {size} is not a multiple of {RECORD_SIZE}; "
                f"reading {voice_count} voices",
            )
        to_read = voice_count if limit is None else min(voice_count, limit)

        voices: list[NamedVoice] = []
        checksum = 0
        for index in range(to_read):
            base_offset = self._source.offset
            try:
                record = self._source.read_exact(RECORD_SIZE)
            except UnexpectedEOF as exc:
                self._eof(exc)
                self._summary(voice_count, voices)
                return voices
            checksum = checksum_add(checksum, record)
            voice = decode_voice(record, index, base_offset, self._log, self._uri)
            if voice is not None:
                voices.append(voice)

        self._summary(voice_count, voices)
        if to_read < voice_count:
            return voices

        try:
            # the checksum covers the whole declared payload, partial tail included
            checksum = checksum_add(checksum, self._source.read_exact(size % RECORD_SIZE))
            self._read_trailer(checksum_finish(checksum))
        except UnexpectedEOF as exc:
            self._eof(exc)
        return voices

    def _read_trailer(self, expected: int) -> None:
        offset = self._source.offset
        received = self._source.read_byte()
        if received == expected:
            self._logger.sysex(f"{self._uri}: checksum 0x{received:02X} ok")
        else:
            severity = Severity.ERROR if self._options.strict_checksum else Severity.WARNING
            self._report(
                offset, severity,
                "Checksum mismatch.\n"
                f"  Expected: 0x{expected:02X}\n"
                f"  Received: 0x{received:02X}",
            )

        if not self._options.verify_terminator:
            return
        offset = self._source.offset
        received = self._source.read_byte()
        if received != SYSEX_END:
            self._report(offset, Severity.ERROR,
                         _unexpected_byte(SYSEX_END, received))

    def _summary(self, expected: int, voices: list[NamedVoice]) -> None:
        self._logger.sysex(
            f"{self._uri}: size field declares {expected} voices, decoded {len(voices)}"
        )


def decode_bulk(
    data: bytes,
    listener: Listener | None = None,
    uri: str = "",
    options: SysExOptions | None = None,
    limit: int | None = None,
    logger: AppLogger | None = None,
) -> list[NamedVoice]:
    reader = SysExReader(listener or DiagnosticLog(), uri, io.BytesIO(data),
                         options, logger)
    return reader.parse(limit)


def encode_bulk(voices: Iterable[NamedVoice], pad_names: bool = True) -> bytes:
    """Encode voices as one bulk dump: header, size, records, checksum, F7."""
    voices = list(voices)
    if len(voices) > MAX_VOICES:
        raise ValueError(
            f"A bulk dump holds at most {MAX_VOICES} voices, got {len(voices)}"
        )
    payload = b"".join(encode_voice(v, pad_names) for v in voices)
    size_hi, size_lo = pack_size(len(payload))
    return (
        bytes([*HEADER, FORMAT_BULK_32, size_hi, size_lo])
        + payload
        + bytes([compute_checksum(payload), SYSEX_END])
    )


class SysExWriter:
    def __init__(
        self,
        stream: BinaryIO,
        options: SysExOptions | None = None,
        logger: AppLogger | None = None,
    ) -> None:
        self._stream = stream
        self._options = options or SysExOptions()
        self._logger = logger or AppLogger()

    def write(self, voices: Iterable[NamedVoice]) -> int:
        """Write the dump and return the number of bytes written."""
        voices = list(voices)
        data = encode_bulk(voices, self._options.pad_names)
        self._stream.write(data)
        self._logger.sysex(f"Wrote {len(voices)} voices ({len(data)} bytes)")
        return len(data)


def to_message(voices: Iterable[NamedVoice], pad_names: bool = True) -> mido.Message:
    """Bulk dump as a mido sysex message (mido keeps F0/F7 implicit)."""
    data = encode_bulk(voices, pad_names)
    return mido.Message("sysex", data=data[1:-1])


def from_message(
    message: mido.Message,
    listener: Listener | None = None,
    uri: str = "",
    options: SysExOptions | None = None,
) -> list[NamedVoice]:
    if message.type != "sysex":
        raise ValueError(f"Expected a sysex message, got {message.type}")
    return decode_bulk(bytes(message.bin()), listener, uri, options)
