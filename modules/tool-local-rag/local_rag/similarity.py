"""Vector math for semantic search."""

from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector is empty, the lengths differ, or either
    vector has zero norm.
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)

    denominator = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denominator == 0.0:
        return 0.0

    return float(np.dot(va, vb)) / denominator


def top_k(
    query: Sequence[float],
    items: Sequence[tuple[T, Sequence[float]]],
    k: int,
) -> list[tuple[T, float]]:
    """Score (item, embedding) pairs against query and keep the best k.

    Ties keep their input order.
    """
    scored = [(item, cosine_similarity(query, embedding)) for item, embedding in items]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[: max(k, 0)]
