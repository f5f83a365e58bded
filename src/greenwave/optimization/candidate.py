"""
Candidate Codec
A candidate is a read-only boolean phase matrix of shape
(intersections, timesteps); True gives the main road right of way.
"""

import numpy as np
from typing import Sequence, Tuple

from ..exceptions import CandidateShapeError

Candidate = np.ndarray
Population = Tuple[Candidate, ...]


def freeze(matrix: np.ndarray) -> Candidate:
    """Return matrix as an immutable boolean candidate"""
    candidate = np.array(matrix, dtype=bool)
    if candidate.ndim != 2:
        raise CandidateShapeError(
            f"candidate must be a 2-D phase matrix, got {candidate.ndim} dimensions"
        )
    candidate.setflags(write=False)
    return candidate


def make_candidate(bits: Sequence[Sequence[bool]]) -> Candidate:
    """Build a candidate from nested rows of bits"""
    return freeze(np.asarray(bits, dtype=bool))


def generate_candidate(
    intersections: int,
    timesteps: int,
    rng: np.random.Generator
) -> Candidate:
    """Candidate with every bit drawn independently and uniformly"""
    return freeze(rng.integers(0, 2, size=(intersections, timesteps)).astype(bool))


def generate_population(
    size: int,
    intersections: int,
    timesteps: int,
    rng: np.random.Generator
) -> Population:
    """size independent random candidates"""
    return tuple(generate_candidate(intersections, timesteps, rng) for _ in range(size))


def check_shape(candidate: Candidate, shape: Tuple[int, int]):
    """Raise CandidateShapeError unless candidate has the given shape"""
    if candidate.shape != tuple(shape):
        raise CandidateShapeError(
            f"candidate shape {candidate.shape} does not match expected {tuple(shape)}"
        )
