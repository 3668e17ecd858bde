"""Vector similarity scoring."""

import math
from collections.abc import Sequence


def _scaled(vector: Sequence[float], scale: float) -> list[float]:
    return [x / scale for x in vector]


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 instead of failing when the vectors differ in length,
    either one is empty, has zero norm, or holds a non-finite value.
    """
    if not v1 or len(v1) != len(v2):
        return 0.0
    if not all(math.isfinite(x) for x in v1) or not all(math.isfinite(y) for y in v2):
        return 0.0

    max_v1 = max(abs(x) for x in v1)
    max_v2 = max(abs(y) for y in v2)
    if max_v1 == 0.0 or max_v2 == 0.0:
        return 0.0

    # Largest component becomes 1.0 so the squared sums cannot overflow or underflow
    u1 = _scaled(v1, max_v1)
    u2 = _scaled(v2, max_v2)

    dot_product = math.fsum(x * y for x, y in zip(u1, u2, strict=True))
    squared_norm_u1 = math.fsum(x * x for x in u1)
    squared_norm_u2 = math.fsum(y * y for y in u2)

    # One sqrt over the product keeps cosine(v, v) at exactly 1.0
    similarity = dot_product / math.sqrt(squared_norm_u1 * squared_norm_u2)
    return similarity if math.isfinite(similarity) else 0.0
