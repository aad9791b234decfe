"""Make a voice staccato by maxing out the attack and/or release rates of
selected operators."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from model.algorithms import carriers, modulators
from model.voice import NamedVoice, Operator, Voice

MAX_RATE = 99


class Affect(Enum):
    CARRIERS = "carriers"
    MODULATORS = "modulators"
    ALL = "all"


@dataclass(frozen=True)
class StaccatoParameters:
    affect: Affect = Affect.CARRIERS
    modify_attack: bool = True
    modify_release: bool = True


def _affected(voice: Voice, affect: Affect) -> set[int]:
    if affect is Affect.CARRIERS:
        return {op.id for op in carriers(voice.algorithm)}
    if affect is Affect.MODULATORS:
        return {op.id for op in modulators(voice.algorithm)}
    return {1, 2, 3, 4, 5, 6}


def _staccato_operator(op: Operator, params: StaccatoParameters) -> Operator:
    changes = {}
    if params.modify_attack:
        changes["envelope_r1_rate"] = MAX_RATE
    if params.modify_release:
        changes["envelope_r4_rate"] = MAX_RATE
    return op.replace(**changes) if changes else op


def apply_staccato(voice: Voice, params: StaccatoParameters) -> Voice:
    affected = _affected(voice, params.affect)
    ops = [
        _staccato_operator(op, params) if op.id.id in affected else op
        for op in voice.operators
    ]
    return voice.replace(
        operator1=ops[0], operator2=ops[1], operator3=ops[2],
        operator4=ops[3], operator5=ops[4], operator6=ops[5],
    )


def apply_staccato_named(named: NamedVoice, params: StaccatoParameters) -> NamedVoice:
    return NamedVoice(named.name, apply_staccato(named.voice, params), named.metadata)
