from __future__ import annotations
from dataclasses import dataclass

from model.voice import NAME_LENGTH, OPERATOR_LIMITS, VOICE_LIMITS, OperatorID

RECORD_SIZE = 128
OPERATOR_BLOCK_SIZE = 17
OPERATOR_COUNT = 6
OPERATORS_SIZE = OPERATOR_BLOCK_SIZE * OPERATOR_COUNT  # 102


@dataclass(frozen=True)
class FieldDef:
    """One whole-byte field of the voice record.

    ``offset`` is relative to the start of the operator block for operator
    fields and to the start of the 128-byte record for voice fields.
    """
    attribute: str
    offset: int

    @property
    def name(self) -> str:
        return _limits(self.attribute)[0]

    @property
    def min_val(self) -> int:
        return _limits(self.attribute)[1]

    @property
    def max_val(self) -> int:
        return _limits(self.attribute)[2]


def _limits(attribute: str) -> tuple[str, int, int]:
    if attribute in OPERATOR_LIMITS:
        return OPERATOR_LIMITS[attribute]
    return VOICE_LIMITS[attribute]


# ---------------------------------------------------------------------------
# Operator block (17 bytes)
# ---------------------------------------------------------------------------

OPERATOR_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("envelope_r1_rate", 0),
    FieldDef("envelope_r2_rate", 1),
    FieldDef("envelope_r3_rate", 2),
    FieldDef("envelope_r4_rate", 3),
    FieldDef("envelope_r1_level", 4),
    FieldDef("envelope_r2_level", 5),
    FieldDef("envelope_r3_level", 6),
    FieldDef("envelope_r4_level", 7),
    FieldDef("level_scaling_breakpoint", 8),
    FieldDef("level_scaling_left_depth", 9),
    FieldDef("level_scaling_right_depth", 10),
    FieldDef("output_level", 14),
    FieldDef("frequency_fine", 16),
)

OP_SCALING_CURVES = 11     # left/right curve
OP_DETUNE_RATE_SCALING = 12
OP_SENSITIVITY = 13        # velocity / amplitude mod sensitivity
OP_OSCILLATOR = 15         # frequency coarse / oscillator mode

# ---------------------------------------------------------------------------
# Voice tail (bytes 102-127)
# ---------------------------------------------------------------------------

VOICE_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("pitch_envelope_r1_rate", 102),
    FieldDef("pitch_envelope_r2_rate", 103),
    FieldDef("pitch_envelope_r3_rate", 104),
    FieldDef("pitch_envelope_r4_rate", 105),
    FieldDef("pitch_envelope_r1_level", 106),
    FieldDef("pitch_envelope_r2_level", 107),
    FieldDef("pitch_envelope_r3_level", 108),
    FieldDef("pitch_envelope_r4_level", 109),
    FieldDef("lfo_speed", 112),
    FieldDef("lfo_delay", 113),
    FieldDef("lfo_pitch_modulation_depth", 114),
    FieldDef("lfo_amplitude_modulation_depth", 115),
)

VOICE_ALGORITHM = 110      # low 5 bits, zero-based
VOICE_FEEDBACK = 111       # feedback / oscillator key sync
VOICE_LFO = 116            # pitch mod sensitivity / waveform / key sync
VOICE_TRANSPOSE = 117      # transpose + 24
VOICE_NAME = 118

TRANSPOSE_BIAS = 24
ALGORITHM_MASK = 0b11111


def operator_order() -> tuple[OperatorID, ...]:
    """Operators in wire order: operator 6 first, operator 1 last."""
    return tuple(reversed(OperatorID.all()))


def operator_block_offset(op_id: OperatorID | int) -> int:
    index = op_id.id if isinstance(op_id, OperatorID) else OperatorID(op_id).id
    return (OPERATOR_COUNT - index) * OPERATOR_BLOCK_SIZE
