"""Lossy fixed-point storage format for embeddings.

Each component is clamped to [-1, 1], scaled by 32767, rounded to a
little-endian int16 and the packed bytes are base64-encoded. Decoding
divides by 32767 again, so the round-trip error per component is at most
1/32767 (~3.05e-5). Embeddings are only used for relative ranking, so
15 bits per component is plenty, and the result is roughly 4x smaller
than the JSON text of the floats.
"""

import base64
import binascii
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ..domain import Embedding, EncodedEmbedding
from ..domain.exceptions import InvalidEncodingError

QUANTIZE_SCALE = 32767
STORAGE_DTYPE = np.dtype("<i2")

_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]+=*")


@dataclass(frozen=True)
class CompressionStats:
    """Size comparison between JSON text and the encoded form."""

    raw_size: int
    encoded_size: int
    ratio: float


def encode_embedding(embedding: Sequence[float]) -> EncodedEmbedding:
    """Quantize and base64-encode an embedding.

    NaN components are stored as 0.
    """
    values = np.nan_to_num(np.asarray(embedding, dtype=np.float64), nan=0.0)
    clamped = np.clip(values, -1.0, 1.0)
    quantized = np.rint(clamped * QUANTIZE_SCALE).astype(STORAGE_DTYPE)
    return base64.b64encode(quantized.tobytes()).decode("ascii")


def decode_embedding_array(encoded: EncodedEmbedding) -> np.ndarray:
    """Decode to a float64 numpy array.

    Raises:
        InvalidEncodingError: If ``encoded`` is not valid base64 or does not
            hold a whole number of int16 values.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise InvalidEncodingError(
            "Encoded embedding is not valid base64",
            cause=e,
            context={"length": len(encoded) if isinstance(encoded, str) else None},
        ) from e

    if len(raw) % STORAGE_DTYPE.itemsize:
        raise InvalidEncodingError(
            "Encoded embedding has an odd byte count",
            context={"bytes": len(raw)},
        )

    return np.frombuffer(raw, dtype=STORAGE_DTYPE).astype(np.float64) / float(QUANTIZE_SCALE)


def decode_embedding(encoded: EncodedEmbedding) -> Embedding:
    """Decode an encoded embedding back to a list of floats."""
    return decode_embedding_array(encoded).tolist()


def max_quantization_error() -> float:
    """Worst-case absolute error per component after a round trip."""
    return 1 / QUANTIZE_SCALE


def is_encoded_embedding(value: object) -> bool:
    """Cheap check that ``value`` looks like an encoded embedding.

    Advisory only: a string can pass and still fail to decode.
    """
    if not isinstance(value, str):
        return False
    return len(value) >= 4 and _BASE64_PATTERN.fullmatch(value) is not None


def compression_ratio(embedding: Sequence[float]) -> CompressionStats:
    """Compare the JSON text size of ``embedding`` with its encoded size."""
    raw_size = len(json.dumps([float(v) for v in embedding], separators=(",", ":")))
    encoded_size = len(encode_embedding(embedding))
    ratio = raw_size / encoded_size if encoded_size else 0.0
    return CompressionStats(raw_size=raw_size, encoded_size=encoded_size, ratio=ratio)
