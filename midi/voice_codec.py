"""Decode and encode single 128-byte voice records.

Decoding reads from an in-memory record and never raises for bad data: each
field is range checked, violations are reported to the diagnostics listener
and the value is clamped so the remaining fields can still be examined.  An
operator or voice with any violation is rejected (``None``).
"""
from __future__ import annotations
from dataclasses import dataclass

from midi import bitfields
from midi.diagnostics import Listener, ParseError, Severity, format_range_error
from midi.layout import (
    ALGORITHM_MASK,
    NAME_LENGTH,
    OP_DETUNE_RATE_SCALING,
    OP_OSCILLATOR,
    OP_SCALING_CURVES,
    OP_SENSITIVITY,
    OPERATOR_FIELDS,
    RECORD_SIZE,
    TRANSPOSE_BIAS,
    VOICE_ALGORITHM,
    VOICE_FEEDBACK,
    VOICE_FIELDS,
    VOICE_LFO,
    VOICE_NAME,
    VOICE_TRANSPOSE,
    FieldDef,
    operator_block_offset,
    operator_order,
)
from model.voice import (
    AlgorithmID,
    LevelScalingCurve,
    LFOWave,
    NamedVoice,
    Operator,
    OperatorID,
    OscillatorMode,
    Voice,
)

_FIELDS_BY_OFFSET = {f.offset: f for f in OPERATOR_FIELDS}


@dataclass(frozen=True)
class RecordPosition:
    """Where a record sits in its stream, for diagnostics."""
    uri: str
    base_offset: int
    voice_index: int
    voice_name: str = ""

    def absolute(self, local_offset: int) -> int:
        return self.base_offset + local_offset


class _FieldChecker:
    def __init__(self, listener: Listener, position: RecordPosition,
                 op_index: int | None = None) -> None:
        self._listener = listener
        self._position = position
        self._op_index = op_index
        self.failed = False

    def check(self, local_offset: int, name: str, value: int,
              minimum: int, maximum: int) -> int:
        if minimum <= value <= maximum:
            return value
        self.failed = True
        offset = self._position.absolute(local_offset)
        self._listener(ParseError(
            uri=self._position.uri,
            offset=offset,
            severity=Severity.ERROR,
            message=format_range_error(
                offset,
                self._position.voice_index,
                self._position.voice_name,
                self._op_index,
                name,
                minimum,
                maximum,
                value,
            ),
        ))
        return max(minimum, min(maximum, value))

    def field(self, record: bytes, start: int, field: FieldDef) -> int:
        local = start + field.offset
        return self.check(local, field.name, record[local],
                          field.min_val, field.max_val)


def _require_record(record: bytes) -> None:
    if len(record) != RECORD_SIZE:
        raise ValueError(
            f"Voice record must be {RECORD_SIZE} bytes, got {len(record)}"
        )


def decode_operator(
    record: bytes,
    op_id: OperatorID,
    position: RecordPosition,
    listener: Listener,
) -> Operator | None:
    _require_record(record)
    start = operator_block_offset(op_id)
    checker = _FieldChecker(listener, position, op_id.id)
    values: dict[str, int] = {}

    for offset in range(OP_SCALING_CURVES):
        field = _FIELDS_BY_OFFSET[offset]
        values[field.attribute] = checker.field(record, start, field)

    local = start + OP_SCALING_CURVES
    left, right = bitfields.unpack_scaling_curves(record[local])
    left = checker.check(local, "Level scaling left curve", left, 0, 3)
    right = checker.check(local, "Level scaling right curve", right, 0, 3)

    local = start + OP_DETUNE_RATE_SCALING
    detune, rate_scaling = bitfields.unpack_detune_rate_scaling(record[local])
    values["frequency_detune"] = checker.check(
        local, "Oscillator detune", detune, -7, 7)
    values["rate_scaling"] = checker.check(
        local, "Rate scaling", rate_scaling, 0, 7)

    local = start + OP_SENSITIVITY
    velocity, amp_mod = bitfields.unpack_sensitivity(record[local])
    values["velocity_sensitivity"] = checker.check(
        local, "Velocity sensitivity", velocity, 0, 7)
    values["lfo_amplitude_modulation_sensitivity"] = checker.check(
        local, "Amplitude mod sensitivity", amp_mod, 0, 3)

    values["output_level"] = checker.field(
        record, start, _FIELDS_BY_OFFSET[14])

    local = start + OP_OSCILLATOR
    coarse, mode = bitfields.unpack_oscillator(record[local])
    values["frequency_coarse"] = checker.check(
        local, "Oscillator frequency coarse", coarse, 0, 31)
    mode = checker.check(local, "Oscillator mode", mode, 0, 1)

    values["frequency_fine"] = checker.field(
        record, start, _FIELDS_BY_OFFSET[16])

    if checker.failed:
        return None
    return Operator(
        id=op_id,
        mode=OscillatorMode(mode),
        level_scaling_left_curve=LevelScalingCurve(left),
        level_scaling_right_curve=LevelScalingCurve(right),
        **values,
    )


def decode_name(record: bytes) -> str:
    """Raw name bytes as text; bytes above 0x7F become U+FFFD."""
    return record[VOICE_NAME:VOICE_NAME + NAME_LENGTH].decode("ascii", errors="replace")


def decode_voice(
    record: bytes,
    voice_index: int,
    base_offset: int,
    listener: Listener,
    uri: str = "",
) -> NamedVoice | None:
    _require_record(record)
    position = RecordPosition(uri, base_offset, voice_index, decode_name(record))

    operators = []
    for op_id in operator_order():
        op = decode_operator(record, op_id, position, listener)
        if op is not None:
            operators.append(op)

    checker = _FieldChecker(listener, position)
    values: dict[str, int] = {}
    for field in VOICE_FIELDS[:8]:
        values[field.attribute] = checker.field(record, 0, field)

    algorithm = checker.check(
        VOICE_ALGORITHM, "Algorithm", record[VOICE_ALGORITHM] & ALGORITHM_MASK, 0, 31)

    feedback, osc_key_sync = bitfields.unpack_feedback(record[VOICE_FEEDBACK])
    values["feedback"] = checker.check(VOICE_FEEDBACK, "Feedback", feedback, 0, 7)
    osc_key_sync = checker.check(
        VOICE_FEEDBACK, "Oscillator key sync", osc_key_sync, 0, 1)

    for field in VOICE_FIELDS[8:]:
        values[field.attribute] = checker.field(record, 0, field)

    pms, wave, lfo_sync = bitfields.unpack_lfo(record[VOICE_LFO])
    values["lfo_pitch_modulation_sensitivity"] = checker.check(
        VOICE_LFO, "LFO Pitch Modulation Sensitivity", pms, 0, 7)
    wave = checker.check(VOICE_LFO, "LFO Waveform", wave, 0, 5)
    lfo_sync = checker.check(VOICE_LFO, "LFO key sync", lfo_sync, 0, 1)

    transpose = checker.check(
        VOICE_TRANSPOSE, "Transpose value", record[VOICE_TRANSPOSE], 0, 48)
    values["transpose"] = transpose - TRANSPOSE_BIAS

    for index in range(NAME_LENGTH):
        local = VOICE_NAME + index
        checker.check(local, "Name", record[local], 0, 0x7F)

    if checker.failed or len(operators) != len(operator_order()):
        return None

    voice = Voice.from_operators(
        operators,
        algorithm=AlgorithmID.from_external(algorithm),
        lfo_wave=LFOWave(wave),
        lfo_key_sync=lfo_sync == 1,
        oscillator_key_sync=osc_key_sync == 1,
        **values,
    )
    return NamedVoice(position.voice_name, voice)


def encode_operator(op: Operator, buffer: bytearray, start: int) -> None:
    for field in OPERATOR_FIELDS:
        buffer[start + field.offset] = getattr(op, field.attribute)
    buffer[start + OP_SCALING_CURVES] = bitfields.pack_scaling_curves(
        op.level_scaling_left_curve, op.level_scaling_right_curve)
    buffer[start + OP_DETUNE_RATE_SCALING] = bitfields.pack_detune_rate_scaling(
        op.frequency_detune, op.rate_scaling)
    buffer[start + OP_SENSITIVITY] = bitfields.pack_sensitivity(
        op.velocity_sensitivity, op.lfo_amplitude_modulation_sensitivity)
    buffer[start + OP_OSCILLATOR] = bitfields.pack_oscillator(
        op.frequency_coarse, op.mode)


def encode_name(name: str, pad: bool = True) -> bytes:
    raw = name.encode("ascii")
    if len(raw) == NAME_LENGTH:
        return raw
    if pad and len(raw) < NAME_LENGTH:
        return raw.ljust(NAME_LENGTH, b" ")
    raise ValueError(
        f"Voice name must be exactly {NAME_LENGTH} ASCII characters, got {name!r}"
    )


def encode_voice(named: NamedVoice, pad_names: bool = True) -> bytes:
    """Pack one voice into its 128-byte record.  Values are not re-validated."""
    voice = named.voice
    buffer = bytearray(RECORD_SIZE)
    for op_id in operator_order():
        encode_operator(voice.operator(op_id), buffer, operator_block_offset(op_id))
    for field in VOICE_FIELDS:
        buffer[field.offset] = getattr(voice, field.attribute)
    buffer[VOICE_ALGORITHM] = voice.algorithm.external
    buffer[VOICE_FEEDBACK] = bitfields.pack_feedback(
        voice.feedback, int(voice.oscillator_key_sync))
    buffer[VOICE_LFO] = bitfields.pack_lfo(
        voice.lfo_pitch_modulation_sensitivity, voice.lfo_wave, int(voice.lfo_key_sync))
    buffer[VOICE_TRANSPOSE] = voice.transpose_external
    buffer[VOICE_NAME:VOICE_NAME + NAME_LENGTH] = encode_name(named.name, pad_names)
    return bytes(buffer)
