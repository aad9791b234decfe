from __future__ import annotations
from pathlib import Path
from typing import Iterable
from urllib.parse import quote_plus

from core.logger import AppLogger
from midi.diagnostics import DiagnosticLog, Listener, ParseError, Severity
from midi.sysex import SysExOptions
from model.voice import NamedVoice, VoiceMetadata
from tools.file_format import infer_format, read_voices


def make_name_safe(name: str) -> str:
    """URL-encode a voice name so it can be used as a path segment."""
    return quote_plus(name)


def attach_metadata(voices: Iterable[NamedVoice], source: Path) -> list[NamedVoice]:
    uri = Path(source).absolute().as_uri()
    return [
        v.with_metadata(VoiceMetadata(source=uri, id=f"{uri}/{make_name_safe(v.name)}"))
        for v in voices
    ]


def read_batch_file(batch_file: Path) -> list[Path]:
    """One path per line; blank lines are skipped, relative paths resolve
    against the batch file's directory."""
    batch_file = Path(batch_file)
    paths = []
    for line in batch_file.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        path = Path(line)
        if not path.is_absolute():
            path = batch_file.parent / path
        paths.append(path)
    return paths


class Library:
    """Loads voices from many files, tagging each with where it came from."""

    def __init__(
        self,
        listener: Listener | None = None,
        options: SysExOptions | None = None,
        logger: AppLogger | None = None,
    ) -> None:
        self.log = DiagnosticLog(listener)
        self._options = options or SysExOptions()
        self._logger = logger or AppLogger()

    def load_file(self, path: Path, fmt=None) -> list[NamedVoice]:
        path = Path(path)
        voices = read_voices(path, infer_format(path, fmt), self.log,
                             self._options, self._logger)
        return attach_metadata(voices, path)

    def load_batch(self, batch_file: Path) -> list[NamedVoice]:
        result: list[NamedVoice] = []
        for path in read_batch_file(batch_file):
            try:
                voices = self.load_file(path)
            except (OSError, ValueError) as exc:
                self._logger.general(f"Skipping {path}: {exc}")
                self.log(ParseError(path.absolute().as_uri(), 0, Severity.ERROR,
                                    str(exc), exc))
                continue
            self._logger.general(f"{path}: {len(voices)} voices")
            result.extend(voices)
        return result
