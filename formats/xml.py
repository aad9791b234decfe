from __future__ import annotations
import xml.etree.ElementTree as ET
from typing import BinaryIO, Iterable, Protocol

from core.logger import AppLogger
from formats.xml_v1 import XMLv1Provider
from midi.diagnostics import DiagnosticLog, Listener, ParseError, Severity
from model.voice import NamedVoice


class XMLFormatProvider(Protocol):
    namespace: str

    def parse(self, root: ET.Element, uri: str, listener: Listener) -> list[NamedVoice]: ...

    def write(self, voices: Iterable[NamedVoice], stream: BinaryIO) -> None: ...


_PROVIDERS: dict[str, XMLFormatProvider] = {}


def register_provider(provider: XMLFormatProvider) -> None:
    _PROVIDERS[provider.namespace] = provider


def provider_for(namespace: str) -> XMLFormatProvider | None:
    return _PROVIDERS.get(namespace)


def supported_schemas() -> list[str]:
    return sorted(_PROVIDERS)


register_provider(XMLv1Provider())
DEFAULT_SCHEMA = XMLv1Provider.namespace


def _namespace(tag: str) -> str:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""


def parse_xml(
    stream: BinaryIO,
    uri: str = "",
    listener: Listener | None = None,
    logger: AppLogger | None = None,
) -> list[NamedVoice]:
    """Parse an XML voice document.  Any ERROR diagnostic empties the result."""
    log = DiagnosticLog(listener)
    logger = logger or AppLogger()
    try:
        root = ET.parse(stream).getroot()
    except ET.ParseError as exc:
        line, column = exc.position
        log(ParseError(uri, 0, Severity.ERROR, f"Malformed XML: {exc}", exc,
                       line=line, column=column))
        return []

    namespace = _namespace(root.tag)
    provider = provider_for(namespace)
    if provider is None:
        log(ParseError(
            uri, 0, Severity.ERROR,
            f"Unsupported schema {namespace!r}; supported: "
            + ", ".join(supported_schemas()),
        ))
        return []

    voices = provider.parse(root, uri, log)
    if log.has_errors:
        logger.xml(f"{uri}: {len(log.errors)} parse errors, discarding all voices")
        return []
    logger.xml(f"{uri}: parsed {len(voices)} voices ({namespace})")
    return voices


def write_xml(
    voices: Iterable[NamedVoice],
    stream: BinaryIO,
    schema: str = DEFAULT_SCHEMA,
    logger: AppLogger | None = None,
) -> None:
    provider = provider_for(schema)
    if provider is None:
        raise ValueError(f"Unsupported schema: {schema}")
    voices = list(voices)
    provider.write(voices, stream)
    (logger or AppLogger()).xml(f"Wrote {len(voices)} voices ({schema})")
