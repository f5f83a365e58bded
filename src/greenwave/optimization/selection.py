"""
Selection and population statistics
"""

import numpy as np
from typing import List, Sequence, Tuple

from ..exceptions import ConfigurationError


def distinct_random(low: int, high: int, count: int, rng: np.random.Generator) -> List[int]:
    """count distinct integers drawn uniformly from [low, high)"""
    if count > high - low:
        raise ConfigurationError(
            f"cannot draw {count} distinct values from [{low}, {high})"
        )
    return [int(value) for value in rng.choice(np.arange(low, high), size=count, replace=False)]


def tournament(
    values: Sequence[float],
    parents_size: int,
    tournament_size: int,
    rng: np.random.Generator
) -> List[int]:
    """
    Tournament selection

    Each round samples tournament_size distinct indices that have not won
    an earlier round and keeps the fittest one (first sampled wins ties).

    Args:
        values: Fitness of every population member
        parents_size: Number of rounds / winners
        tournament_size: Contestants per round
        rng: Random generator

    Returns:
        parents_size distinct winner indices
    """
    values = np.asarray(values, dtype=float)
    population_size = len(values)
    if tournament_size > population_size - (parents_size - 1):
        raise ConfigurationError(
            f"tournament_size {tournament_size} too large for population {population_size} "
            f"with {parents_size} parents"
        )

    winners: List[int] = []
    available = np.ones(population_size, dtype=bool)

    for _ in range(parents_size):
        candidates = np.flatnonzero(available)
        selected = rng.choice(candidates, size=tournament_size, replace=False)

        winner = int(selected[0])
        for index in selected[1:]:
            if values[index] > values[winner]:
                winner = int(index)

        winners.append(winner)
        available[winner] = False

    return winners


def best_and_worst(population: Sequence, values: Sequence[float]) -> Tuple[object, float, float]:
    """Best candidate, its value, and the worst value (first index wins ties)"""
    values = np.asarray(values, dtype=float)
    best_index = int(np.argmax(values))
    worst_index = int(np.argmin(values))
    return population[best_index], float(values[best_index]), float(values[worst_index])


def mean_value(values: Sequence[float]) -> float:
    return float(np.mean(values))
