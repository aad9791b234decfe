"""Carrier/modulator roles of the six operators for each of the 32 algorithms.

The routing diagrams have no closed form, so the carriers of every algorithm
are listed explicitly.  Modulators are the remaining operators.
"""
from __future__ import annotations
from model.voice import AlgorithmID, OperatorID

_CARRIERS: dict[int, tuple[int, ...]] = {
    1: (1, 3),
    2: (1, 3),
    3: (1, 4),
    4: (1, 4),
    5: (1, 3, 5),
    6: (1, 3, 5),
    7: (1, 3),
    8: (1, 3),
    9: (1, 3),
    10: (1, 4),
    11: (1, 4),
    12: (1, 3),
    13: (1, 3),
    14: (1, 3),
    15: (1, 3),
    16: (1,),
    17: (1,),
    18: (1,),
    19: (1, 4, 5),
    20: (1, 2, 4),
    21: (1, 2, 4, 5),
    22: (1, 3, 4, 5),
    23: (1, 2, 4, 5),
    24: (1, 2, 3, 4, 5),
    25: (1, 2, 3, 4, 5),
    26: (1, 2, 4),
    27: (1, 2, 4),
    28: (1, 3, 6),
    29: (1, 2, 3, 5),
    30: (1, 2, 3, 6),
    31: (1, 2, 3, 4, 5),
    32: (1, 2, 3, 4, 5, 6),
}


def _algorithm(algorithm: AlgorithmID | int) -> AlgorithmID:
    if isinstance(algorithm, AlgorithmID):
        return algorithm
    return AlgorithmID(algorithm)


def carriers(algorithm: AlgorithmID | int) -> tuple[OperatorID, ...]:
    """Operators whose output is audible, in ascending order."""
    alg = _algorithm(algorithm)
    return tuple(OperatorID(i) for i in _CARRIERS[alg.id])


def modulators(algorithm: AlgorithmID | int) -> tuple[OperatorID, ...]:
    """Operators that only modulate other operators, in ascending order."""
    carrier_ids = set(carriers(algorithm))
    return tuple(op for op in OperatorID.all() if op not in carrier_ids)


def is_carrier(algorithm: AlgorithmID | int, op_id: OperatorID | int) -> bool:
    if not isinstance(op_id, OperatorID):
        op_id = OperatorID(op_id)
    return op_id in carriers(algorithm)
