from __future__ import annotations
import json
from pathlib import Path

_DEFAULTS = {
    "strict_checksum": True,
    "verify_terminator": True,
    "pad_names": True,
    "default_output_format": "sysex-32",
    "xml_schema": "schema:com.io7m.jdextrosa:1.0",
    "batch_pick_count": 32,
}


def default_config_path() -> Path:
    return Path.home() / ".config" / "dx7voices" / "config.json"


class AppConfig:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_path()
        self.strict_checksum: bool = _DEFAULTS["strict_checksum"]
        self.verify_terminator: bool = _DEFAULTS["verify_terminator"]
        self.pad_names: bool = _DEFAULTS["pad_names"]
        self.default_output_format: str = _DEFAULTS["default_output_format"]
        self.xml_schema: str = _DEFAULTS["xml_schema"]
        self.batch_pick_count: int = _DEFAULTS["batch_pick_count"]
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text())
            for key in _DEFAULTS:
                if key in data:
                    setattr(self, key, data[key])
        except (json.JSONDecodeError, OSError):
            pass

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {key: getattr(self, key) for key in _DEFAULTS}
        self._path.write_text(json.dumps(data, indent=2))
