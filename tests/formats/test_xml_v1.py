import io
import xml.etree.ElementTree as ET
from formats.xml import parse_xml, provider_for, supported_schemas, write_xml
from formats.xml_v1 import NAMESPACE, escape_name, unescape_name
from midi.diagnostics import DiagnosticLog, Severity
from midi.sysex import decode_bulk, encode_bulk
from model.voice import (
    LevelScalingCurve, LFOWave, NamedVoice, Operator, OperatorID, OscillatorMode,
    Voice, VoiceMetadata,
)

NS = {"dx": NAMESPACE}


def _voices() -> list[NamedVoice]:
    op = Operator(OperatorID(2), mode=OscillatorMode.FIXED, frequency_detune=-3,
                  level_scaling_left_curve=LevelScalingCurve.EXPONENTIAL_POSITIVE,
                  rate_scaling=4, enabled=False)
    voice = Voice.default().with_operator(op).replace(
        algorithm=17, transpose=-5, lfo_wave=LFOWave.SAMPLE_HOLD,
        lfo_speed=40, oscillator_key_sync=False,
    )
    meta = VoiceMetadata("file:///bank.syx", "file:///bank.syx/E.PIANO+1")
    return [NamedVoice("E.PIANO 1", voice, meta), NamedVoice("INIT", Voice.default())]


def _write(voices) -> bytes:
    stream = io.BytesIO()
    write_xml(voices, stream)
    return stream.getvalue()


def _parse(data: bytes, log: DiagnosticLog):
    return parse_xml(io.BytesIO(data), "file:///in.xml", log)


def test_provider_registered():
    assert NAMESPACE in supported_schemas()
    assert provider_for(NAMESPACE).namespace == NAMESPACE


def test_round_trip_keeps_metadata():
    voices = _voices()
    log = DiagnosticLog()
    assert _parse(_write(voices), log) == voices
    assert log.entries == []


def test_document_shape():
    data = _write(_voices())
    assert data.startswith(b"<?xml")
    root = ET.fromstring(data)
    assert root.tag == f"{{{NAMESPACE}}}dx7-voices"
    voice = root.find("dx:dx7-voice", NS)
    assert voice.get("name") == "E.PIANO 1"
    assert voice.get("algorithm") == "17"
    assert voice.get("oscillatorKeySync") == "false"
    assert len(voice.findall("dx:dx7-operator", NS)) == 6
    op2 = voice.findall("dx:dx7-operator", NS)[1]
    assert op2.get("id") == "2"
    assert op2.get("mode") == "fixed"
    assert op2.get("enabled") == "false"
    assert op2.get("levelScalingLeftCurve") == "exponentialPositive"
    assert voice.find("dx:dx7-lfo", NS).get("waveform") == "sampleAndHold"
    assert voice.find("dx:dx7-voice-metadata", NS).get("source") == "file:///bank.syx"


def _document(voice_attrs: str = "", op1_attrs: str = "", operators=range(1, 7)) -> bytes:
    ops = "".join(
        f'<dx:dx7-operator id="{i}" {op1_attrs if i == 1 else ""}/>' for i in operators
    )
    return (
        f'<dx:dx7-voices xmlns:dx="{NAMESPACE}">'
        f'<dx:dx7-voice name="TEST" {voice_attrs}>{ops}<dx:dx7-lfo/></dx:dx7-voice>'
        "</dx:dx7-voices>"
    ).encode()


def test_missing_attributes_take_defaults():
    log = DiagnosticLog()
    [named] = _parse(_document(), log)
    assert named == NamedVoice("TEST", Voice.default())
    assert log.entries == []


def test_unknown_attribute_is_warning():
    log = DiagnosticLog()
    voices = _parse(_document(voice_attrs='colour="red"'), log)
    assert len(voices) == 1
    [warning] = log.entries
    assert warning.severity is Severity.WARNING
    assert "colour" in warning.message


def test_out_of_range_value_empties_result():
    log = DiagnosticLog()
    assert _parse(_document(op1_attrs='envelopeR1Rate="150"'), log) == []
    assert "R1 Rate" in log.errors[0].message


def test_bad_enumeration_value():
    log = DiagnosticLog()
    assert _parse(_document(op1_attrs='mode="wobbly"'), log) == []
    assert "mode" in log.errors[0].message


def test_missing_operator_is_error():
    log = DiagnosticLog()
    assert _parse(_document(operators=range(1, 6)), log) == []
    assert "missing operators 6" in log.errors[0].message


def test_control_bytes_in_name_round_trip():
    voices = [NamedVoice("A\x07B\\ \x1f\x7f   ", Voice.default())]
    data = _write(voices)
    root = ET.fromstring(data)
    assert root.find("dx:dx7-voice", NS).get("name") == "A\\x07B\\x5C \\x1F\\x7F   "
    log = DiagnosticLog()
    assert _parse(data, log) == voices
    assert log.entries == []


def test_escape_and_unescape_name():
    assert escape_name("E.PIANO 1") == "E.PIANO 1"
    assert unescape_name(escape_name("\x00\\x41")) == "\x00\\x41"


def test_sysex_names_survive_xml():
    voices = [NamedVoice("BELL\x01\x02    ", Voice.default())]
    log = DiagnosticLog()
    decoded = decode_bulk(encode_bulk(voices), log)
    assert _parse(_write(decoded), log) == voices
    assert not log.has_errors


def test_malformed_xml():
    log = DiagnosticLog()
    assert _parse(b"<dx7-voices", log) == []
    assert log.errors[0].line is not None


def test_unknown_namespace():
    log = DiagnosticLog()
    assert _parse(b'<voices xmlns="urn:other"/>', log) == []
    assert "urn:other" in log.errors[0].message
