from pathlib import Path
from core.config import AppConfig, default_config_path

def test_config_defaults(tmp_path):
    cfg = AppConfig(path=tmp_path / "config.json")
    assert cfg.strict_checksum is True
    assert cfg.verify_terminator is True
    assert cfg.pad_names is True
    assert cfg.default_output_format == "sysex-32"
    assert cfg.xml_schema == "schema:com.io7m.jdextrosa:1.0"
    assert cfg.batch_pick_count == 32

def test_config_save_and_load(tmp_path):
    path = tmp_path / "config.json"
    cfg = AppConfig(path=path)
    cfg.strict_checksum = False
    cfg.batch_pick_count = 8
    cfg.save()
    cfg2 = AppConfig(path=path)
    assert cfg2.strict_checksum is False
    assert cfg2.batch_pick_count == 8

def test_config_does_not_crash_on_missing_file(tmp_path):
    cfg = AppConfig(path=tmp_path / "nonexistent" / "config.json")
    assert cfg.pad_names is True

def test_config_ignores_corrupt_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    cfg = AppConfig(path=path)
    assert cfg.strict_checksum is True

def test_config_save_creates_parent_dirs(tmp_path):
    path = tmp_path / "a" / "b" / "config.json"
    AppConfig(path=path).save()
    assert path.exists()

def test_default_config_path():
    assert default_config_path() == Path.home() / ".config" / "dx7voices" / "config.json"
