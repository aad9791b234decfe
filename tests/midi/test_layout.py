from midi.layout import (
    OP_DETUNE_RATE_SCALING, OP_OSCILLATOR, OP_SCALING_CURVES, OP_SENSITIVITY,
    OPERATOR_BLOCK_SIZE, OPERATOR_FIELDS, OPERATORS_SIZE, RECORD_SIZE, VOICE_ALGORITHM,
    VOICE_FEEDBACK, VOICE_FIELDS, VOICE_LFO, VOICE_NAME, VOICE_TRANSPOSE,
    operator_block_offset, operator_order,
)
from model.voice import NAME_LENGTH, OperatorID

def test_record_size_adds_up():
    assert OPERATORS_SIZE == 102
    assert VOICE_NAME + NAME_LENGTH == RECORD_SIZE == 128

def test_operator_order_descending():
    assert [op.id for op in operator_order()] == [6, 5, 4, 3, 2, 1]

def test_operator_block_offsets():
    assert operator_block_offset(OperatorID(6)) == 0
    assert operator_block_offset(OperatorID(1)) == 85
    assert operator_block_offset(3) == 3 * OPERATOR_BLOCK_SIZE

def test_operator_block_covers_every_byte():
    offsets = {f.offset for f in OPERATOR_FIELDS}
    offsets |= {OP_SCALING_CURVES, OP_DETUNE_RATE_SCALING, OP_SENSITIVITY, OP_OSCILLATOR}
    assert offsets == set(range(OPERATOR_BLOCK_SIZE))

def test_voice_tail_covers_every_byte():
    offsets = {f.offset for f in VOICE_FIELDS}
    offsets |= {VOICE_ALGORITHM, VOICE_FEEDBACK, VOICE_LFO, VOICE_TRANSPOSE}
    assert offsets == set(range(OPERATORS_SIZE, VOICE_NAME))

def test_field_names_and_ranges():
    r1 = OPERATOR_FIELDS[0]
    assert (r1.attribute, r1.name, r1.min_val, r1.max_val) == ("envelope_r1_rate", "R1 Rate", 0, 99)
    speed = next(f for f in VOICE_FIELDS if f.offset == 112)
    assert speed.name == "LFO Speed"
