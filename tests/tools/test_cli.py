import json
import pytest
from midi.diagnostics import DiagnosticLog
from midi.sysex import decode_bulk, encode_bulk
from model.voice import NamedVoice, Voice
from tools.cli import main
from tools.file_format import Format, read_voices


def _voices(count=3):
    return [NamedVoice(f"VOICE {i:2d}  ", Voice.default().replace(feedback=i % 8))
            for i in range(count)]


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({}))
    return ["--config", str(path)]


def test_parse_prints_counts(tmp_path, config, capsys):
    path = tmp_path / "bank.syx"
    path.write_bytes(encode_bulk(_voices(4)))
    assert main([*config, "parse", str(path)]) == 0
    assert f"{path}: Parsed 4 voices" in capsys.readouterr().out


def test_parse_limit(tmp_path, config, capsys):
    path = tmp_path / "bank.syx"
    path.write_bytes(encode_bulk(_voices(4)))
    assert main([*config, "parse", str(path), "--limit", "1"]) == 0
    assert "Parsed 1 voices" in capsys.readouterr().out


def test_parse_bad_file_exit_status(tmp_path, config):
    path = tmp_path / "bank.syx"
    path.write_bytes(b"\xF1\x43\x00\x09\x00\x00")
    assert main([*config, "parse", str(path)]) == 1


def test_parse_missing_file(tmp_path, config):
    assert main([*config, "parse", str(tmp_path / "nope.syx")]) == 1


def test_convert_sysex_to_xml(tmp_path, config):
    source = tmp_path / "bank.syx"
    source.write_bytes(encode_bulk(_voices()))
    target = tmp_path / "bank.xml"
    assert main([*config, "convert", "--file-input", str(source),
                 "--file-output", str(target)]) == 0
    voices = read_voices(target, Format.XML, DiagnosticLog())
    assert [v.without_metadata() for v in voices] == _voices()
    assert voices[0].metadata.source == source.absolute().as_uri()


def test_convert_uses_configured_default_output(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"default_output_format": "xml"}))
    source = tmp_path / "bank.syx"
    source.write_bytes(encode_bulk(_voices()))
    target = tmp_path / "bank.out"
    assert main(["--config", str(cfg), "convert", "--file-input", str(source),
                 "--file-output", str(target)]) == 0
    assert target.read_bytes().startswith(b"<?xml")


def test_parse_batch_pick_random(tmp_path, config):
    (tmp_path / "a.syx").write_bytes(encode_bulk(_voices(20)))
    (tmp_path / "b.syx").write_bytes(encode_bulk(_voices(20)))
    init = [NamedVoice("INIT VOICE", Voice.default())]
    (tmp_path / "c.syx").write_bytes(encode_bulk(init))
    batch = tmp_path / "batch.txt"
    batch.write_text("a.syx\nb.syx\nc.syx\n")
    target = tmp_path / "picked.syx"
    assert main([*config, "parse-batch", "--file-batch", str(batch),
                 "--file-output", str(target), "--pick-random-32", "--seed", "3"]) == 0
    picked = decode_bulk(target.read_bytes())
    assert len(picked) == 32
    assert all(v.name != "INIT VOICE" for v in picked)


def test_parse_batch_reports_errors(tmp_path, config):
    batch = tmp_path / "batch.txt"
    batch.write_text("missing.syx\n")
    assert main([*config, "parse-batch", "--file-batch", str(batch)]) == 1


def test_staccato(tmp_path, config):
    source = tmp_path / "bank.syx"
    slow = Voice.default().replace(
        operator1=Voice.default().operator1.replace(envelope_r1_rate=5),
        operator2=Voice.default().operator2.replace(envelope_r1_rate=5),
    )
    source.write_bytes(encode_bulk([NamedVoice("SLOW      ", slow)]))
    target = tmp_path / "fast.syx"
    assert main([*config, "staccato", "--file-input", str(source),
                 "--file-output", str(target), "--no-release"]) == 0
    [result] = decode_bulk(target.read_bytes())
    assert result.voice.operator1.envelope_r1_rate == 99  # carrier in algorithm 1
    assert result.voice.operator2.envelope_r1_rate == 5


def test_unknown_command_exits_via_argparse(config):
    with pytest.raises(SystemExit) as info:
        main([*config, "explode"])
    assert info.value.code == 2


def test_convert_truncated_gzip_exits_cleanly(tmp_path, config):
    source = tmp_path / "cut.xml.gz"
    source.write_bytes(b"\x1f\x8b\x08\x00\x00\x00\x00\x00\x00\x03\x01\x02")
    assert main([*config, "convert", "--file-input", str(source),
                 "--file-output", str(tmp_path / "out.syx")]) == 1
