"""Schema 1.0 of the voice exchange format.

Every voice is a ``dx7-voice`` element carrying its scalar fields as
attributes, with six ``dx7-operator`` children and one ``dx7-lfo`` child.
"""
from __future__ import annotations
import re
import xml.etree.ElementTree as ET
from typing import BinaryIO, Callable, Iterable

from midi.diagnostics import Listener, ParseError, Severity
from model.voice import (
    AlgorithmID,
    LevelScalingCurve,
    LFOWave,
    NamedVoice,
    Operator,
    OperatorID,
    OscillatorMode,
    Voice,
    VoiceMetadata,
)

NAMESPACE = "schema:com.io7m.jdextrosa:1.0"
PREFIX = "dx"

_MODES = {"ratio": OscillatorMode.RATIO, "fixed": OscillatorMode.FIXED}
_CURVES = {
    "linearNegative": LevelScalingCurve.LINEAR_NEGATIVE,
    "exponentialNegative": LevelScalingCurve.EXPONENTIAL_NEGATIVE,
    "exponentialPositive": LevelScalingCurve.EXPONENTIAL_POSITIVE,
    "linearPositive": LevelScalingCurve.LINEAR_POSITIVE,
}
_WAVES = {
    "triangle": LFOWave.TRIANGLE,
    "sawDown": LFOWave.SAW_DOWN,
    "sawUp": LFOWave.SAW_UP,
    "square": LFOWave.SQUARE,
    "sine": LFOWave.SINE,
    "sampleAndHold": LFOWave.SAMPLE_HOLD,
}


def _tag(local: str) -> str:
    return f"{{{NAMESPACE}}}{local}"


def _parse_bool(text: str) -> bool:
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValueError(f"Not a boolean: {text!r}")


def _choice(table: dict) -> Callable[[str], object]:
    def parse(text: str):
        try:
            return table[text]
        except KeyError:
            raise ValueError(
                f"Expected one of {', '.join(table)}; got {text!r}"
            ) from None
    return parse


def _name_of(table: dict) -> Callable[[object], str]:
    reverse = {value: key for key, value in table.items()}
    return lambda value: reverse[value]


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


# Voice names may carry any 7-bit byte; XML attributes cannot hold control
# characters, so those (and the backslash itself) are written as \xNN.
_NAME_ESCAPE = re.compile(r"\\x([0-9A-Fa-f]{2})")


def escape_name(name: str) -> str:
    return "".join(
        c if " " <= c <= "~" and c != "\\" else f"\\x{ord(c):02X}"
        for c in name
    )


def unescape_name(text: str) -> str:
    return _NAME_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), text)


# xml attribute -> (model attribute, parse, format)
_Attr = tuple[str, Callable[[str], object], Callable[[object], str]]


def _int_attr(attribute: str) -> _Attr:
    return attribute, int, str


def _envelope(prefix: str, attr_prefix: str) -> dict[str, _Attr]:
    attrs: dict[str, _Attr] = {}
    for stage in range(1, 5):
        attrs[f"{prefix}R{stage}Level"] = _int_attr(f"{attr_prefix}_r{stage}_level")
        attrs[f"{prefix}R{stage}Rate"] = _int_attr(f"{attr_prefix}_r{stage}_rate")
    return attrs


VOICE_ATTRIBUTES: dict[str, _Attr] = {
    "algorithm": ("algorithm", lambda text: AlgorithmID(int(text)), lambda a: str(a.id)),
    "feedback": _int_attr("feedback"),
    "transpose": _int_attr("transpose"),
    "oscillatorKeySync": ("oscillator_key_sync", _parse_bool, _format_bool),
    **_envelope("pitchEnvelope", "pitch_envelope"),
}

OPERATOR_ATTRIBUTES: dict[str, _Attr] = {
    "enabled": ("enabled", _parse_bool, _format_bool),
    "frequencyCoarse": _int_attr("frequency_coarse"),
    "frequencyFine": _int_attr("frequency_fine"),
    "frequencyDetune": _int_attr("frequency_detune"),
    "mode": ("mode", _choice(_MODES), _name_of(_MODES)),
    "output": _int_attr("output_level"),
    **_envelope("envelope", "envelope"),
    "levelScalingBreakpoint": _int_attr("level_scaling_breakpoint"),
    "levelScalingLeftDepth": _int_attr("level_scaling_left_depth"),
    "levelScalingLeftCurve": ("level_scaling_left_curve", _choice(_CURVES), _name_of(_CURVES)),
    "levelScalingRightDepth": _int_attr("level_scaling_right_depth"),
    "levelScalingRightCurve": ("level_scaling_right_curve", _choice(_CURVES), _name_of(_CURVES)),
    "velocitySensitivity": _int_attr("velocity_sensitivity"),
    "lfoAmplitudeModulationSensitivity": _int_attr("lfo_amplitude_modulation_sensitivity"),
    "rateScaling": _int_attr("rate_scaling"),
}

LFO_ATTRIBUTES: dict[str, _Attr] = {
    "pitchModulationDepth": _int_attr("lfo_pitch_modulation_depth"),
    "pitchModulationSensitivity": _int_attr("lfo_pitch_modulation_sensitivity"),
    "amplitudeModulationDepth": _int_attr("lfo_amplitude_modulation_depth"),
    "rate": _int_attr("lfo_speed"),
    "delay": _int_attr("lfo_delay"),
    "keySynchronize": ("lfo_key_sync", _parse_bool, _format_bool),
    "waveform": ("lfo_wave", _choice(_WAVES), _name_of(_WAVES)),
}


class _VoiceParser:
    def __init__(self, uri: str, listener: Listener) -> None:
        self._uri = uri
        self._listener = listener
        self.failed = False

    def report(self, severity: Severity, message: str,
               cause: BaseException | None = None) -> None:
        if severity is Severity.ERROR:
            self.failed = True
        self._listener(ParseError(self._uri, 0, severity, message, cause))

    def attributes(self, element: ET.Element, table: dict[str, _Attr],
                   skip: tuple[str, ...] = ()) -> dict[str, object]:
        values: dict[str, object] = {}
        where = element.tag.split("}")[-1]
        for name, text in element.attrib.items():
            if name in skip:
                continue
            if name not in table:
                self.report(Severity.WARNING, f"{where}: unrecognized attribute '{name}'")
                continue
            attribute, parse, _ = table[name]
            try:
                values[attribute] = parse(text)
            except ValueError as exc:
                self.report(Severity.ERROR,
                            f"{where}: invalid value for '{name}': {exc}", exc)
        return values

    def operator(self, element: ET.Element) -> Operator | None:
        try:
            op_id = OperatorID(int(element.get("id", "")))
        except ValueError as exc:
            self.report(Severity.ERROR,
                        f"dx7-operator: invalid id {element.get('id')!r}", exc)
            return None
        values = self.attributes(element, OPERATOR_ATTRIBUTES, skip=("id",))
        try:
            return Operator(op_id, **values)
        except (TypeError, ValueError) as exc:
            self.report(Severity.ERROR, f"Operator {op_id.id}: {exc}", exc)
            return None

    def voice(self, element: ET.Element, index: int) -> NamedVoice | None:
        name = unescape_name(element.get("name", ""))
        values = self.attributes(element, VOICE_ATTRIBUTES, skip=("name",))

        metadata = None
        operators: dict[int, Operator] = {}
        for child in element:
            if child.tag == _tag("dx7-voice-metadata"):
                metadata = VoiceMetadata(source=child.get("source", ""),
                                         id=child.get("id", ""))
            elif child.tag == _tag("dx7-operator"):
                op = self.operator(child)
                if op is None:
                    continue
                if op.id.id in operators:
                    self.report(Severity.ERROR,
                                f"Voice {index}: operator {op.id.id} given twice")
                operators[op.id.id] = op
            elif child.tag == _tag("dx7-lfo"):
                values.update(self.attributes(child, LFO_ATTRIBUTES))
            else:
                self.report(Severity.WARNING,
                            f"Voice {index}: unrecognized element {child.tag}")

        missing = [i for i in range(1, 7) if i not in operators]
        if missing:
            self.report(
                Severity.ERROR,
                f"Voice {index} ({name}): missing operators "
                + ", ".join(str(i) for i in missing),
            )
            return None
        try:
            voice = Voice.from_operators(operators.values(), **values)
            return NamedVoice(name, voice, metadata)
        except (TypeError, ValueError) as exc:
            self.report(Severity.ERROR, f"Voice {index} ({name}): {exc}", exc)
            return None


class XMLv1Provider:
    namespace = NAMESPACE

    def parse(self, root: ET.Element, uri: str, listener: Listener) -> list[NamedVoice]:
        """Return every voice under ``root``; the caller discards them on error."""
        parser = _VoiceParser(uri, listener)
        if root.tag != _tag("dx7-voices"):
            parser.report(Severity.ERROR, f"Unexpected root element {root.tag}")
            return []
        voices = []
        for index, element in enumerate(root.findall(_tag("dx7-voice"))):
            voice = parser.voice(element, index)
            if voice is not None:
                voices.append(voice)
        return voices

    def write(self, voices: Iterable[NamedVoice], stream: BinaryIO) -> None:
        ET.register_namespace(PREFIX, NAMESPACE)
        root = ET.Element(_tag("dx7-voices"))
        for named in voices:
            root.append(_voice_element(named))
        tree = ET.ElementTree(root)
        ET.indent(tree)
        tree.write(stream, encoding="UTF-8", xml_declaration=True)


def _set_attributes(element: ET.Element, record, table: dict[str, _Attr]) -> None:
    for name, (attribute, _, fmt) in table.items():
        element.set(name, fmt(getattr(record, attribute)))


def _voice_element(named: NamedVoice) -> ET.Element:
    voice = named.voice
    element = ET.Element(_tag("dx7-voice"), name=escape_name(named.name))
    _set_attributes(element, voice, VOICE_ATTRIBUTES)
    if named.metadata is not None:
        ET.SubElement(element, _tag("dx7-voice-metadata"),
                      id=named.metadata.id, source=named.metadata.source)
    for op in voice.operators:
        op_element = ET.SubElement(element, _tag("dx7-operator"), id=str(op.id.id))
        _set_attributes(op_element, op, OPERATOR_ATTRIBUTES)
    lfo = ET.SubElement(element, _tag("dx7-lfo"))
    _set_attributes(lfo, voice, LFO_ATTRIBUTES)
    return element
