"""Sensory-profile ranking for similarity matches.

Similarity matching is an exact roast level + bean type match. Among the
matches, coffees whose sensory profile is closest to the reference's come
first.
"""

import logging
from typing import List, Sequence

import numpy as np
from sklearn.metrics.pairwise import euclidean_distances

from src.catalog.coffee import Coffee

# Configure module logger
logger = logging.getLogger(__name__)


def is_similar(reference: Coffee, candidate: Coffee) -> bool:
    """Check whether a candidate matches the reference's roast and bean."""
    return (
        candidate.id != reference.id
        and candidate.roast_level == reference.roast_level
        and candidate.bean_type == reference.bean_type
    )


def sensory_matrix(coffees: Sequence[Coffee]) -> np.ndarray:
    """Stack the sensory vectors of coffees into an (n, 5) matrix."""
    return np.array([coffee.attributes.as_vector() for coffee in coffees], dtype=np.float64)


def rank_by_sensory_profile(
    reference: Coffee,
    candidates: Sequence[Coffee],
    limit: int,
) -> List[Coffee]:
    """Order candidates by sensory distance to the reference.

    Ties keep the candidates' original order.

    Args:
        reference: Coffee the candidates are compared against.
        candidates: Coffees already known to match the reference.
        limit: Maximum number of coffees to return.

    Returns:
        Up to ``limit`` candidates, closest first.
    """
    if limit <= 0 or not candidates:
        return []

    distances = euclidean_distances(
        sensory_matrix([reference]), sensory_matrix(candidates)
    )[0]
    order = np.argsort(distances, kind="stable")[:limit]

    logger.debug(
        "Ranked similarity candidates",
        extra={
            "reference_id": reference.id,
            "num_candidates": len(candidates),
            "limit": limit,
        },
    )

    return [candidates[int(idx)] for idx in order]
