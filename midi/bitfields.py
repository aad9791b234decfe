"""Pack/unpack helpers for the bit-packed bytes of a 128-byte voice record.

Unpack functions return raw field values without range checking; callers
validate them.  Pack functions assume in-range inputs and do not mask
overflow from one field into its neighbour.
"""
from __future__ import annotations

DETUNE_BIAS = 7


# Byte 11 of an operator block.  Left curve in bits 1-0, right curve in
# bits 3-2, the layout used by factory DX7 cartridge dumps.
def unpack_scaling_curves(byte: int) -> tuple[int, int]:
    """Return (left_curve, right_curve)."""
    return byte & 0b11, (byte >> 2) & 0b11


def pack_scaling_curves(left: int, right: int) -> int:
    return (right << 2) | left


# Byte 12: detune (biased by +7) in bits 6-3, rate scaling in bits 2-0.
def unpack_detune_rate_scaling(byte: int) -> tuple[int, int]:
    """Return (detune, rate_scaling); detune is already un-biased to -7..8."""
    detune_raw = (byte >> 3) & 0b1111
    return detune_raw - DETUNE_BIAS, byte & 0b111


def pack_detune_rate_scaling(detune: int, rate_scaling: int) -> int:
    return ((detune + DETUNE_BIAS) << 3) | rate_scaling


# Byte 13: velocity sensitivity above bit 2, amplitude mod sensitivity in bits 1-0.
def unpack_sensitivity(byte: int) -> tuple[int, int]:
    """Return (velocity_sensitivity, amplitude_mod_sensitivity)."""
    return byte >> 2, byte & 0b11


def pack_sensitivity(velocity: int, amplitude_mod: int) -> int:
    return (velocity << 2) | amplitude_mod


# Byte 15: frequency coarse above bit 1, oscillator mode in bit 0.
def unpack_oscillator(byte: int) -> tuple[int, int]:
    """Return (frequency_coarse, oscillator_mode)."""
    return byte >> 1, byte & 0b1


def pack_oscillator(coarse: int, mode: int) -> int:
    return (coarse << 1) | mode


# Voice byte 116: pitch mod sensitivity bits 6-4, waveform bits 3-1, key sync bit 0.
def unpack_lfo(byte: int) -> tuple[int, int, int]:
    """Return (pitch_mod_sensitivity, waveform, key_sync)."""
    return (byte >> 4) & 0b111, (byte >> 1) & 0b111, byte & 0b1


def pack_lfo(pitch_mod_sensitivity: int, waveform: int, key_sync: int) -> int:
    return (pitch_mod_sensitivity << 4) | (waveform << 1) | key_sync


# Voice byte 111: oscillator key sync bit 3, feedback bits 2-0.
def unpack_feedback(byte: int) -> tuple[int, int]:
    """Return (feedback, oscillator_key_sync)."""
    return byte & 0b111, (byte >> 3) & 0b1


def pack_feedback(feedback: int, osc_key_sync: int) -> int:
    return (osc_key_sync << 3) | feedback


def unpack_size(high: int, low: int) -> int:
    """Combine two 7-bit bytes into a 14-bit big-endian size."""
    return (high << 7) | low


def pack_size(size: int) -> tuple[int, int]:
    return (size >> 7) & 0x7F, size & 0x7F
