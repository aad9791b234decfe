"""Immutable value model for DX7 voices.

Every bounded field is validated when a record is constructed; out-of-range
values raise :class:`ValueRangeError`.  Decoders that must tolerate bad input
(see ``midi.voice_codec``) check ranges themselves and only construct records
from values they have already accepted.
"""
from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from enum import IntEnum

NAME_LENGTH = 10


class ValueRangeError(ValueError):
    """A bounded field was given a value outside its closed interval."""

    def __init__(self, field: str, minimum: int, maximum: int, value: int) -> None:
        super().__init__(
            f"{field} must be in [{minimum}, {maximum}], got {value}"
        )
        self.field = field
        self.minimum = minimum
        self.maximum = maximum
        self.value = value


def check_range(field: str, value: int, minimum: int, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field} must be an integer, got {value!r}")
    if not (minimum <= value <= maximum):
        raise ValueRangeError(field, minimum, maximum, value)
    return value


class OscillatorMode(IntEnum):
    RATIO = 0
    FIXED = 1


class LevelScalingCurve(IntEnum):
    LINEAR_NEGATIVE = 0
    EXPONENTIAL_NEGATIVE = 1
    EXPONENTIAL_POSITIVE = 2
    LINEAR_POSITIVE = 3


class LFOWave(IntEnum):
    TRIANGLE = 0
    SAW_DOWN = 1
    SAW_UP = 2
    SQUARE = 3
    SINE = 4
    SAMPLE_HOLD = 5


@dataclass(frozen=True, order=True)
class OperatorID:
    id: int

    def __post_init__(self) -> None:
        check_range("Operator ID", self.id, 1, 6)

    @classmethod
    def all(cls) -> tuple[OperatorID, ...]:
        return tuple(cls(i) for i in range(1, 7))


@dataclass(frozen=True, order=True)
class AlgorithmID:
    id: int

    def __post_init__(self) -> None:
        check_range("Algorithm", self.id, 1, 32)

    @property
    def external(self) -> int:
        """Zero-based form used on the wire."""
        return self.id - 1

    @classmethod
    def from_external(cls, value: int) -> AlgorithmID:
        return cls(value + 1)


# attribute -> (display name, min, max)
OPERATOR_LIMITS: dict[str, tuple[str, int, int]] = {
    "envelope_r1_rate": ("R1 Rate", 0, 99),
    "envelope_r2_rate": ("R2 Rate", 0, 99),
    "envelope_r3_rate": ("R3 Rate", 0, 99),
    "envelope_r4_rate": ("R4 Rate", 0, 99),
    "envelope_r1_level": ("R1 Level", 0, 99),
    "envelope_r2_level": ("R2 Level", 0, 99),
    "envelope_r3_level": ("R3 Level", 0, 99),
    "envelope_r4_level": ("R4 Level", 0, 99),
    "level_scaling_breakpoint": ("Level scaling breakpoint", 0, 99),
    "level_scaling_left_depth": ("Level scaling left depth", 0, 99),
    "level_scaling_right_depth": ("Level scaling right depth", 0, 99),
    "frequency_detune": ("Oscillator detune", -7, 7),
    "rate_scaling": ("Rate scaling", 0, 7),
    "velocity_sensitivity": ("Velocity sensitivity", 0, 7),
    "lfo_amplitude_modulation_sensitivity": ("Amplitude mod sensitivity", 0, 3),
    "output_level": ("Output Level", 0, 99),
    "frequency_coarse": ("Oscillator frequency coarse", 0, 31),
    "frequency_fine": ("Oscillator frequency fine", 0, 99),
}

VOICE_LIMITS: dict[str, tuple[str, int, int]] = {
    "pitch_envelope_r1_rate": ("Pitch Envelope R1 Rate", 0, 99),
    "pitch_envelope_r2_rate": ("Pitch Envelope R2 Rate", 0, 99),
    "pitch_envelope_r3_rate": ("Pitch Envelope R3 Rate", 0, 99),
    "pitch_envelope_r4_rate": ("Pitch Envelope R4 Rate", 0, 99),
    "pitch_envelope_r1_level": ("Pitch Envelope R1 Level", 0, 99),
    "pitch_envelope_r2_level": ("Pitch Envelope R2 Level", 0, 99),
    "pitch_envelope_r3_level": ("Pitch Envelope R3 Level", 0, 99),
    "pitch_envelope_r4_level": ("Pitch Envelope R4 Level", 0, 99),
    "feedback": ("Feedback", 0, 7),
    "lfo_speed": ("LFO Speed", 0, 99),
    "lfo_delay": ("LFO Delay", 0, 99),
    "lfo_pitch_modulation_depth": ("LFO Pitch Modulation Depth", 0, 99),
    "lfo_amplitude_modulation_depth": ("LFO Amplitude Modulation Depth", 0, 99),
    "lfo_pitch_modulation_sensitivity": ("LFO Pitch Modulation Sensitivity", 0, 7),
    "transpose": ("Transpose", -24, 24),
}


def _coerce(record, name: str, kind) -> None:
    value = getattr(record, name)
    if isinstance(value, kind):
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be {kind.__name__}, got {value!r}")
    try:
        object.__setattr__(record, name, kind(value))
    except ValueError as exc:
        if isinstance(exc, ValueRangeError):
            raise
        raise ValueError(f"No {kind.__name__} for value: {value}") from exc


@dataclass(frozen=True)
class Operator:
    id: OperatorID
    enabled: bool = True
    frequency_coarse: int = 1
    frequency_fine: int = 0
    frequency_detune: int = 0
    mode: OscillatorMode = OscillatorMode.RATIO
    output_level: int = 99
    envelope_r1_rate: int = 99
    envelope_r2_rate: int = 99
    envelope_r3_rate: int = 99
    envelope_r4_rate: int = 99
    envelope_r1_level: int = 99
    envelope_r2_level: int = 99
    envelope_r3_level: int = 99
    envelope_r4_level: int = 0
    velocity_sensitivity: int = 0
    lfo_amplitude_modulation_sensitivity: int = 0
    level_scaling_breakpoint: int = 0x27
    level_scaling_left_depth: int = 99
    level_scaling_right_depth: int = 99
    level_scaling_left_curve: LevelScalingCurve = LevelScalingCurve.LINEAR_NEGATIVE
    level_scaling_right_curve: LevelScalingCurve = LevelScalingCurve.LINEAR_NEGATIVE
    rate_scaling: int = 0

    def __post_init__(self) -> None:
        _coerce(self, "id", OperatorID)
        _coerce(self, "mode", OscillatorMode)
        _coerce(self, "level_scaling_left_curve", LevelScalingCurve)
        _coerce(self, "level_scaling_right_curve", LevelScalingCurve)
        if not isinstance(self.enabled, bool):
            raise TypeError(f"enabled must be a bool, got {self.enabled!r}")
        for attr, (label, lo, hi) in OPERATOR_LIMITS.items():
            check_range(label, getattr(self, attr), lo, hi)

    @property
    def frequency_detune_external(self) -> int:
        return self.frequency_detune + 7

    def replace(self, **changes) -> Operator:
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class Voice:
    operator1: Operator
    operator2: Operator
    operator3: Operator
    operator4: Operator
    operator5: Operator
    operator6: Operator
    algorithm: AlgorithmID = AlgorithmID(1)
    feedback: int = 0
    transpose: int = 0
    pitch_envelope_r1_rate: int = 99
    pitch_envelope_r2_rate: int = 99
    pitch_envelope_r3_rate: int = 99
    pitch_envelope_r4_rate: int = 99
    pitch_envelope_r1_level: int = 50
    pitch_envelope_r2_level: int = 50
    pitch_envelope_r3_level: int = 50
    pitch_envelope_r4_level: int = 50
    lfo_pitch_modulation_depth: int = 0
    lfo_pitch_modulation_sensitivity: int = 0
    lfo_amplitude_modulation_depth: int = 0
    lfo_speed: int = 0
    lfo_delay: int = 0
    lfo_wave: LFOWave = LFOWave.TRIANGLE
    lfo_key_sync: bool = True
    oscillator_key_sync: bool = True

    def __post_init__(self) -> None:
        _coerce(self, "algorithm", AlgorithmID)
        _coerce(self, "lfo_wave", LFOWave)
        for index, op in enumerate(self.operators, start=1):
            if not isinstance(op, Operator):
                raise TypeError(f"operator{index} must be an Operator, got {op!r}")
            if op.id.id != index:
                raise ValueError(
                    f"operator{index} carries operator ID {op.id.id}"
                )
        for flag in ("lfo_key_sync", "oscillator_key_sync"):
            if not isinstance(getattr(self, flag), bool):
                raise TypeError(f"{flag} must be a bool")
        for attr, (label, lo, hi) in VOICE_LIMITS.items():
            check_range(label, getattr(self, attr), lo, hi)

    @classmethod
    def default(cls) -> Voice:
        return cls(*(Operator(op_id) for op_id in OperatorID.all()))

    @classmethod
    def from_operators(cls, operators, **fields) -> Voice:
        """Build a voice from six operators given in any order."""
        by_id = {op.id.id: op for op in operators}
        if sorted(by_id) != [1, 2, 3, 4, 5, 6]:
            raise ValueError(
                f"A voice needs exactly operators 1-6, got {sorted(by_id)}"
            )
        return cls(*(by_id[i] for i in range(1, 7)), **fields)

    @property
    def operators(self) -> tuple[Operator, ...]:
        return (self.operator1, self.operator2, self.operator3,
                self.operator4, self.operator5, self.operator6)

    def operator(self, op_id: OperatorID | int) -> Operator:
        index = op_id.id if isinstance(op_id, OperatorID) else op_id
        check_range("Operator ID", index, 1, 6)
        return self.operators[index - 1]

    @property
    def transpose_external(self) -> int:
        return self.transpose + 24

    def replace(self, **changes) -> Voice:
        return dataclasses.replace(self, **changes)

    def with_operator(self, op: Operator) -> Voice:
        return self.replace(**{f"operator{op.id.id}": op})


@dataclass(frozen=True)
class VoiceMetadata:
    """Provenance attached by callers; never part of the SysEx wire format."""
    source: str
    id: str


@dataclass(frozen=True)
class NamedVoice:
    name: str
    voice: Voice
    metadata: VoiceMetadata | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError(f"name must be a str, got {self.name!r}")
        try:
            encoded = self.name.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValueError(f"Voice name must be ASCII: {self.name!r}") from exc
        check_range("Name length", len(encoded), 0, NAME_LENGTH)

    def with_metadata(self, metadata: VoiceMetadata | None) -> NamedVoice:
        return dataclasses.replace(self, metadata=metadata)

    def without_metadata(self) -> NamedVoice:
        return self.with_metadata(None)
