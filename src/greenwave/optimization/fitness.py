"""
Fitness Evaluator
Reduces simulation statistics to a single score; higher is always better.
"""

from dataclasses import dataclass

from ..utils.config import FitnessFormula, parse_enum


@dataclass(frozen=True)
class SimulationStats:
    """Run-wide car counters of one simulation"""
    driving_cars: int = 0
    waiting_cars: int = 0


def _difference(stats: SimulationStats) -> float:
    return float(stats.driving_cars - stats.waiting_cars)


def _ratio(stats: SimulationStats) -> float:
    # Nobody waited: one more than the best ratio any waiting car allows
    if stats.waiting_cars == 0:
        return float(stats.driving_cars + 1) if stats.driving_cars > 0 else 0.0
    return stats.driving_cars / stats.waiting_cars


def _driving_cars(stats: SimulationStats) -> float:
    return float(stats.driving_cars)


def _waiting_cars(stats: SimulationStats) -> float:
    return -float(stats.waiting_cars)


FITNESS_FUNCTIONS = {
    FitnessFormula.DIFFERENCE: _difference,
    FitnessFormula.RATIO: _ratio,
    FitnessFormula.DRIVING_CARS: _driving_cars,
    FitnessFormula.WAITING_CARS: _waiting_cars,
}


def compute_fitness(stats: SimulationStats, formula=FitnessFormula.DIFFERENCE) -> float:
    """
    Score simulation statistics

    Args:
        stats: Final driving/waiting counters
        formula: FitnessFormula member or its tag

    Returns:
        Fitness value (maximized by every search strategy)
    """
    formula = parse_enum(FitnessFormula, formula, 'fitness')
    return FITNESS_FUNCTIONS[formula](stats)
