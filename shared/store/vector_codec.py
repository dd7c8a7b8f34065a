"""Binary vector codec and similarity math for the vector store.

On disk a vector of n components is exactly 4n bytes: each component a
32-bit IEEE float in little-endian byte order, no header, no padding.
"""

import numpy as np

_FLOAT32_LE = np.dtype("<f4")


def encode_vector(vector: list[float]) -> bytes:
    """Serialize a vector to its little-endian float32 BLOB layout."""
    return np.asarray(vector, dtype=_FLOAT32_LE).tobytes()


def decode_vector(data: bytes) -> list[float]:
    """Deserialize a BLOB produced by encode_vector().

    Raises:
        ValueError: If the byte length is not a multiple of 4.
    """
    if len(data) % _FLOAT32_LE.itemsize:
        raise ValueError(f"Vector blob length {len(data)} is not a multiple of {_FLOAT32_LE.itemsize}")
    return np.frombuffer(data, dtype=_FLOAT32_LE).tolist()


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity dot(a, b) / (|a| * |b|).

    Returns 0.0 when the vectors differ in length or either magnitude is zero,
    so mismatched or degenerate vectors never raise and never rank.
    """
    if len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    magnitude_a = float(np.linalg.norm(va))
    magnitude_b = float(np.linalg.norm(vb))
    if magnitude_a == 0.0 or magnitude_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (magnitude_a * magnitude_b))
