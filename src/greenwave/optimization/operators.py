"""
Genetic Operators
Mutation and recombination over phase matrices. Every operator returns
new candidates and leaves its inputs untouched.
"""

import numpy as np
from typing import Tuple

from ..exceptions import CandidateShapeError
from ..utils.config import Mutation, Recombination, SearchConfig
from .candidate import Candidate, freeze
from .selection import distinct_random


def no_mutation(candidate: Candidate, rng: np.random.Generator) -> Candidate:
    return candidate


def bitflip(candidate: Candidate, rng: np.random.Generator) -> Candidate:
    """Flip exactly one uniformly chosen bit"""
    modified = candidate.copy()
    index = int(rng.integers(0, modified.shape[0]))
    t = int(rng.integers(0, modified.shape[1]))
    modified[index, t] = not modified[index, t]
    return freeze(modified)


def probability_bitflip(
    candidate: Candidate,
    probability: float,
    rng: np.random.Generator
) -> Candidate:
    """Flip each bit independently with the given probability"""
    mask = rng.random(candidate.shape) < probability
    return freeze(np.logical_xor(candidate, mask))


def mutate(candidate: Candidate, config: SearchConfig, rng: np.random.Generator) -> Candidate:
    """Apply the configured mutation variant"""
    if config.mutation == Mutation.NONE:
        return no_mutation(candidate, rng)
    elif config.mutation == Mutation.BITFLIP:
        return bitflip(candidate, rng)
    elif config.mutation == Mutation.PROB_BITFLIP:
        return probability_bitflip(candidate, config.probability_bitflip, rng)
    raise ValueError(f"Unhandled mutation variant: {config.mutation}")


def _check_pair(first: Candidate, second: Candidate):
    if first.shape != second.shape:
        raise CandidateShapeError(
            f"cannot recombine candidates of shapes {first.shape} and {second.shape}"
        )


def one_point_crossover(
    first: Candidate,
    second: Candidate,
    rng: np.random.Generator
) -> Tuple[Candidate, Candidate]:
    """
    Swap the tails of every intersection row after one shared timestep cut

    The cut lies in [1, timesteps) so both parents contribute to each child.
    """
    _check_pair(first, second)
    cut = int(rng.integers(1, first.shape[1]))

    child1 = np.concatenate([first[:, :cut], second[:, cut:]], axis=1)
    child2 = np.concatenate([second[:, :cut], first[:, cut:]], axis=1)
    return freeze(child1), freeze(child2)


def two_point_crossover(
    first: Candidate,
    second: Candidate,
    rng: np.random.Generator
) -> Tuple[Candidate, Candidate]:
    """
    Swap whole intersection rows lying strictly between two distinct
    random intersection indices
    """
    _check_pair(first, second)
    low, high = sorted(distinct_random(0, first.shape[0], 2, rng))

    child1 = first.copy()
    child2 = second.copy()
    child1[low + 1:high] = second[low + 1:high]
    child2[low + 1:high] = first[low + 1:high]
    return freeze(child1), freeze(child2)


def recombine(
    first: Candidate,
    second: Candidate,
    config: SearchConfig,
    rng: np.random.Generator
) -> Tuple[Candidate, Candidate]:
    """
    Recombine a pair of parents with probability_recombination,
    otherwise pass them through unchanged
    """
    if rng.random() >= config.probability_recombination:
        return first, second

    if config.recombination == Recombination.ONE_POINT:
        return one_point_crossover(first, second, rng)
    elif config.recombination == Recombination.TWO_POINT:
        return two_point_crossover(first, second, rng)
    raise ValueError(f"Unhandled recombination variant: {config.recombination}")
