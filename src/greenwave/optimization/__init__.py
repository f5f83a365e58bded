"""
Optimization Package
Candidate codec, traffic simulator, genetic operators and search strategies
"""

from .candidate import generate_candidate, generate_population, make_candidate
from .fitness import SimulationStats, compute_fitness
from .simulator import TrafficSimulator, SimulationTrace
from .operators import mutate, recombine, one_point_crossover, two_point_crossover
from .selection import tournament
from .search import (
    SearchResult,
    Improvement,
    BenchmarkResult,
    hillclimb,
    genetic_algorithm,
    optimize,
    run_benchmark,
)

__all__ = [
    "generate_candidate",
    "generate_population",
    "make_candidate",
    "SimulationStats",
    "compute_fitness",
    "TrafficSimulator",
    "SimulationTrace",
    "mutate",
    "recombine",
    "one_point_crossover",
    "two_point_crossover",
    "tournament",
    "SearchResult",
    "Improvement",
    "BenchmarkResult",
    "hillclimb",
    "genetic_algorithm",
    "optimize",
    "run_benchmark",
]
