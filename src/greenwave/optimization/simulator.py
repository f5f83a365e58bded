"""
Traffic Simulator
Replays a phase matrix against a traffic table, moving cars from
intersection to intersection one timestep at a time.

Each step starts from the exogenous arrivals of the next timestep and
adds to them:
- cars that were not allowed through (they stay at their intersection)
- the share of admitted cars that continues along the main road
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..traffic.data import TrafficCell, TrafficTable
from ..utils.config import SimulationConfig, FitnessFormula
from .candidate import Candidate, Population, check_shape
from .fitness import SimulationStats, compute_fitness

PREV, NEXT, SIDE = 0, 1, 2


@dataclass(frozen=True)
class SimulationTrace:
    """Every state vector of a replay, timestep 0 to timesteps inclusive"""
    states: Tuple[Tuple[TrafficCell, ...], ...]
    stats: SimulationStats


def forward(count: int, share: float) -> int:
    """Cars out of count that continue to the neighbor (rounded down)"""
    return int(math.floor(count * share))


def neighbor(index: int, offset: int, count: int) -> Optional[int]:
    """Index of the neighbor at offset, or None past either end of the road"""
    target = index + offset
    if 0 <= target < count:
        return target
    return None


class TrafficSimulator:
    """
    Deterministic traffic propagation over a linear road

    Args:
        traffic_table: Exogenous arrivals, shared read-only
        config: Propagation parameters
        fitness: Formula used by evaluate()
    """

    def __init__(
        self,
        traffic_table: TrafficTable,
        config: Optional[SimulationConfig] = None,
        fitness: FitnessFormula = FitnessFormula.DIFFERENCE
    ):
        self.traffic_table = traffic_table
        self.config = config or SimulationConfig()
        self.fitness = fitness

    @property
    def shape(self) -> Tuple[int, int]:
        return self.traffic_table.shape

    def passthrough_cap(self, candidate: Candidate, index: int, t: int) -> Optional[int]:
        """
        Maximum cars admitted per direction at (index, t), None if uncapped

        A light that keeps its phase from the previous timestep gets the
        increased green-wave cap; timestep 0 never does.
        """
        if self.config.disable_max_passthrough:
            return None
        if (
            not self.config.disable_increasing_passthrough
            and t > 0
            and candidate[index, t] == candidate[index, t - 1]
        ):
            return self.config.green_wave_passthrough
        return self.config.base_passthrough

    def step(
        self,
        current: List[TrafficCell],
        candidate: Candidate,
        t: int
    ) -> Tuple[List[TrafficCell], int, int]:
        """
        Advance the state vector from timestep t to t + 1

        Returns:
            (next state vector, cars admitted, cars left waiting)
        """
        count = len(current)
        pending = [list(cell.as_tuple()) for cell in self.traffic_table.step(t + 1)]
        driving = 0
        waiting = 0

        for index, cell in enumerate(current):
            cap = self.passthrough_cap(candidate, index, t)
            here = pending[index]
            after = neighbor(index, 1, count)
            before = neighbor(index, -1, count)

            if candidate[index, t]:
                from_prev = _admit(cell.main_from_prev, cap)
                from_next = _admit(cell.main_from_next, cap)
                held_prev = cell.main_from_prev - from_prev
                held_next = cell.main_from_next - from_next

                here[PREV] += held_prev
                here[NEXT] += held_next
                here[SIDE] += cell.side

                share = self.config.main_percentage
                if after is not None:
                    pending[after][PREV] += forward(from_prev, share)
                if before is not None:
                    pending[before][NEXT] += forward(from_next, share)

                driving += from_prev + from_next
                waiting += held_prev + held_next + cell.side
            else:
                side = _admit(cell.side, cap)
                held_side = cell.side - side

                here[PREV] += cell.main_from_prev
                here[NEXT] += cell.main_from_next
                here[SIDE] += held_side

                share = self.config.side_percentage / 2.0
                if after is not None:
                    pending[after][PREV] += forward(side, share)
                if before is not None:
                    pending[before][NEXT] += forward(side, share)

                driving += side
                waiting += held_side + cell.main_from_prev + cell.main_from_next

        return [TrafficCell(*values) for values in pending], driving, waiting

    def _replay(self, candidate: Candidate, keep_states: bool):
        check_shape(candidate, self.shape)

        current = self.traffic_table.step(0)
        states = [tuple(current)] if keep_states else None
        driving = 0
        waiting = 0

        for t in range(self.traffic_table.timesteps):
            current, moved, held = self.step(current, candidate, t)
            driving += moved
            waiting += held
            if keep_states:
                states.append(tuple(current))

        return SimulationStats(driving_cars=driving, waiting_cars=waiting), states

    def run(self, candidate: Candidate) -> SimulationStats:
        """Simulate the whole horizon from a fresh timestep 0 state"""
        stats, _ = self._replay(candidate, keep_states=False)
        return stats

    def evaluate(self, candidate: Candidate) -> float:
        """Fitness of candidate under the configured formula"""
        return compute_fitness(self.run(candidate), self.fitness)

    def evaluate_population(self, population: Population, executor=None) -> np.ndarray:
        """
        Fitness of every candidate, in population order

        Args:
            population: Candidates to score
            executor: Optional concurrent.futures executor; candidates are
                independent so they may be scored in any order

        Returns:
            Float array of fitness values
        """
        if executor is None:
            values = [self.evaluate(candidate) for candidate in population]
        else:
            values = list(executor.map(self.evaluate, population))
        return np.asarray(values, dtype=float)

    def trace(self, candidate: Candidate) -> SimulationTrace:
        """Replay candidate and keep every per-timestep state vector"""
        stats, states = self._replay(candidate, keep_states=True)
        return SimulationTrace(states=tuple(states), stats=stats)


def _admit(count: int, cap: Optional[int]) -> int:
    if cap is None:
        return count
    return min(cap, count)
