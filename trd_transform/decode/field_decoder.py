"""
Sign decoding of the packed tracklet position and slope fields.

Two encodings exist in the data:
  - DIRECT: the field is a plain two's complement number of nbits bits.
  - LEGACY_XOR: early MCM firmware flipped the sign bit before packing, so the
    sign bit has to be flipped back before the two's complement rule is applied.
"""

from enum import Enum

import numpy as np
from numba import njit


class DecodingMode(Enum):
    DIRECT = "direct"
    LEGACY_XOR = "legacy-xor"


def decode_direct(raw, nbits):
    sign_bit = 1 << (nbits - 1)
    mask = (1 << nbits) - 1
    if raw & sign_bit:
        return -((~(raw - 1)) & mask)
    return raw & mask


def decode_legacy_xor(raw, nbits):
    sign_bit = 1 << (nbits - 1)
    mask = (1 << nbits) - 1
    value = raw ^ sign_bit
    if value & sign_bit:
        value = -((~(value - 1)) & mask)
    return value


DECODERS = {
    DecodingMode.DIRECT: decode_direct,
    DecodingMode.LEGACY_XOR: decode_legacy_xor,
}


def decode_field(raw, nbits, mode):
    return DECODERS[mode](int(raw), nbits)


def encode_direct(value, nbits):
    """Pack a signed value back into nbits of two's complement."""
    return value & ((1 << nbits) - 1)


def decode_field_array(raw, nbits, mode):
    """
    Vectorized decode_field for a numpy array of packed fields.
    Returns an int64 array.
    """
    raw = np.asarray(raw).astype(np.int64)
    return decode_field_array_jit(raw, nbits, mode == DecodingMode.LEGACY_XOR)


@njit
def decode_field_array_jit(raw, nbits, apply_xor):
    sign_bit = np.int64(1) << (nbits - 1)
    mask = (np.int64(1) << nbits) - 1

    result = np.empty(raw.shape[0], dtype=np.int64)
    for i in range(raw.shape[0]):
        value = raw[i]
        if apply_xor:
            value = value ^ sign_bit
        if value & sign_bit:
            result[i] = -((~(value - 1)) & mask)
        elif apply_xor:
            result[i] = value
        else:
            result[i] = value & mask
    return result
