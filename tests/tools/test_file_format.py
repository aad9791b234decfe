"""Tests for tools/file_format.py format inference and file round trips."""
import gzip
import pytest
from midi.diagnostics import DiagnosticLog
from midi.sysex import encode_bulk
from model.voice import NamedVoice, Voice
from tools.file_format import Format, infer_format, read_voices, write_voices


def _voices():
    return [NamedVoice(f"VOICE {i}   ", Voice.default().replace(feedback=i))
            for i in range(3)]


@pytest.mark.parametrize("name, expected", [
    ("rom1a.syx", Format.SYSEX_32),
    ("ROM1A.SYX", Format.SYSEX_32),
    ("bank.sysx", Format.SYSEX_32),
    ("bank.dx7", Format.SYSEX_32),
    ("bank.xml", Format.XML),
    ("bank.xml.gz", Format.XML_GZ),
])
def test_infer_format(name, expected):
    assert infer_format(name) is expected


def test_explicit_format_wins():
    assert infer_format("bank.syx", "xml") is Format.XML
    assert infer_format("bank", Format.XML_GZ) is Format.XML_GZ


def test_infer_format_fails():
    with pytest.raises(ValueError, match="Could not infer file format"):
        infer_format("bank.bin")
    with pytest.raises(ValueError):
        infer_format("bank.bin", "midi")


@pytest.mark.parametrize("fmt, filename", [
    (Format.SYSEX_32, "out.syx"),
    (Format.XML, "out.xml"),
    (Format.XML_GZ, "out.xml.gz"),
])
def test_write_then_read(tmp_path, fmt, filename):
    path = tmp_path / filename
    write_voices(_voices(), path, fmt)
    log = DiagnosticLog()
    assert read_voices(path, fmt, log) == _voices()
    assert not log.has_errors


def test_xml_gz_is_compressed(tmp_path):
    path = tmp_path / "out.xml.gz"
    write_voices(_voices(), path, Format.XML_GZ)
    assert gzip.decompress(path.read_bytes()).startswith(b"<?xml")


def test_read_sysex_with_limit(tmp_path):
    path = tmp_path / "bank.syx"
    path.write_bytes(encode_bulk(_voices()))
    assert len(read_voices(path, Format.SYSEX_32, DiagnosticLog(), limit=2)) == 2


def test_diagnostics_carry_file_uri(tmp_path):
    path = tmp_path / "bad.syx"
    path.write_bytes(b"\xF1\x43\x00\x09")
    log = DiagnosticLog()
    assert read_voices(path, Format.SYSEX_32, log) == []
    assert log.errors[0].uri == path.absolute().as_uri()


def test_truncated_gzip_is_value_error(tmp_path):
    path = tmp_path / "cut.xml.gz"
    write_voices(_voices(), path, Format.XML_GZ)
    path.write_bytes(path.read_bytes()[:20])
    with pytest.raises(ValueError, match="Corrupt gzip stream"):
        read_voices(path, Format.XML_GZ, DiagnosticLog())
