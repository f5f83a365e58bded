"""
Search Engine
Hill-climbing and genetic algorithm over phase matrices, using the
traffic simulator as fitness oracle.

Both strategies run for a fixed number of iterations and keep the
best-ever candidate; only improvements of the best-ever value are logged.
"""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from ..traffic.data import TrafficTable
from ..utils.config import Optimization, RunConfig, SearchConfig, validate_config
from ..utils.logger import SearchLogger, get_logger
from .candidate import Candidate, Population, generate_candidate, generate_population
from .operators import mutate, recombine
from .selection import best_and_worst, distinct_random, mean_value, tournament
from .simulator import TrafficSimulator

logger = get_logger("greenwave.search")

GenerationCallback = Callable[[int, Population, np.ndarray], None]


@dataclass(frozen=True)
class Improvement:
    """A new best-ever value and when it was found"""
    iteration: int
    score: float
    mean: Optional[float] = None


@dataclass
class SearchResult:
    """Outcome of one search run"""
    best_candidate: Candidate
    best_score: float
    optimization: Optimization
    final_mean: Optional[float] = None
    improvements: List[Improvement] = field(default_factory=list)
    # Best-ever score after each iteration, index 0 = initial candidate/population
    best_scores: List[float] = field(default_factory=list)
    worst_scores: List[float] = field(default_factory=list)


@dataclass(frozen=True)
class BenchmarkResult:
    """Best scores of repeated runs"""
    scores: List[float]

    @property
    def mean_best(self) -> float:
        return float(np.mean(self.scores))


def hillclimb(
    simulator: TrafficSimulator,
    config: SearchConfig,
    rng: np.random.Generator,
    search_logger: Optional[SearchLogger] = None
) -> SearchResult:
    """
    Hill-climbing: keep one candidate and replace it by a mutant
    whenever the mutant scores strictly better
    """
    search_logger = search_logger or SearchLogger()
    intersections, timesteps = simulator.shape

    candidate = generate_candidate(intersections, timesteps, rng)
    candidate_value = simulator.evaluate(candidate)
    search_logger.log_improvement(0, candidate, candidate_value)

    result = SearchResult(
        best_candidate=candidate,
        best_score=candidate_value,
        optimization=Optimization.HILLCLIMB,
        improvements=[Improvement(0, candidate_value)],
        best_scores=[candidate_value],
    )

    for it in range(config.iterations):
        mutated = mutate(candidate, config, rng)
        mutated_value = simulator.evaluate(mutated)

        if mutated_value > candidate_value:
            candidate = mutated
            candidate_value = mutated_value
            result.improvements.append(Improvement(it + 1, candidate_value))
            search_logger.log_improvement(it + 1, candidate, candidate_value)

        result.best_scores.append(candidate_value)

    result.best_candidate = candidate
    result.best_score = candidate_value
    return result


def next_generation(
    population: Population,
    values: np.ndarray,
    config: SearchConfig,
    rng: np.random.Generator
) -> Population:
    """
    Build a new population of the same size

    Each pairing runs its own tournament and recombines two distinct
    winners; both children are mutated.
    """
    children = []
    for _ in range(config.population_size // 2):
        winners = tournament(values, config.parents_size, config.tournament_size, rng)
        first, second = distinct_random(0, len(winners), 2, rng)

        child1, child2 = recombine(
            population[winners[first]],
            population[winners[second]],
            config,
            rng,
        )
        children.append(mutate(child1, config, rng))
        children.append(mutate(child2, config, rng))

    return tuple(children)


def genetic_algorithm(
    simulator: TrafficSimulator,
    config: SearchConfig,
    rng: np.random.Generator,
    search_logger: Optional[SearchLogger] = None,
    callback: Optional[GenerationCallback] = None
) -> SearchResult:
    """
    Genetic algorithm with tournament selection

    The best-ever candidate is tracked across generations but never
    reinserted into the population.

    Args:
        simulator: Fitness oracle
        config: Search parameters
        rng: Random generator for every operator
        search_logger: Improvement reporter
        callback: Called as callback(generation, population, values)
            after each generation is scored
    """
    search_logger = search_logger or SearchLogger()
    intersections, timesteps = simulator.shape

    executor = ProcessPoolExecutor(max_workers=config.workers) if config.workers > 1 else None
    try:
        population = generate_population(config.population_size, intersections, timesteps, rng)
        values = simulator.evaluate_population(population, executor)
        if callback:
            callback(0, population, values)

        best, best_value, worst_value = best_and_worst(population, values)
        mean = mean_value(values)
        search_logger.log_improvement(0, best, best_value, mean)

        result = SearchResult(
            best_candidate=best,
            best_score=best_value,
            optimization=Optimization.GENETIC,
            improvements=[Improvement(0, best_value, mean)],
            best_scores=[best_value],
            worst_scores=[worst_value],
        )

        for it in range(config.iterations):
            population = next_generation(population, values, config, rng)
            values = simulator.evaluate_population(population, executor)
            if callback:
                callback(it + 1, population, values)

            generation_best, generation_best_value, worst_value = best_and_worst(population, values)
            if generation_best_value > best_value:
                best = generation_best
                best_value = generation_best_value
                mean = mean_value(values)
                result.improvements.append(Improvement(it + 1, best_value, mean))
                search_logger.log_improvement(it + 1, best, best_value, mean)

            result.best_scores.append(best_value)
            result.worst_scores.append(worst_value)
    finally:
        if executor is not None:
            executor.shutdown()

    result.best_candidate = best
    result.best_score = best_value
    result.final_mean = mean_value(values)
    return result


STRATEGIES = {
    Optimization.GENETIC: genetic_algorithm,
    Optimization.HILLCLIMB: hillclimb,
}


def optimize(
    config: RunConfig,
    traffic_table: TrafficTable,
    rng: Optional[np.random.Generator] = None
) -> SearchResult:
    """
    Run the configured search strategy on a traffic table

    The configuration is validated first; invalid options raise
    ConfigurationError before any candidate is generated.
    """
    for warning in validate_config(config, traffic_table):
        logger.warning(warning)

    rng = rng if rng is not None else np.random.default_rng(config.seed)
    simulator = TrafficSimulator(traffic_table, config.simulation, config.search.fitness)
    search_logger = SearchLogger(silent=config.silent)

    strategy = STRATEGIES[config.search.optimization]
    result = strategy(simulator, config.search, rng, search_logger)

    search_logger.log_final(result.best_candidate, result.best_score, result.final_mean)
    if config.print_final_simulation:
        search_logger.log_trace(simulator.trace(result.best_candidate).states)

    return result


def run_benchmark(
    config: RunConfig,
    traffic_table: TrafficTable,
    runs: Optional[int] = None,
    rng: Optional[np.random.Generator] = None
) -> BenchmarkResult:
    """Repeat optimize() and collect the best score of every run"""
    runs = runs if runs is not None else config.benchmark_iterations
    rng = rng if rng is not None else np.random.default_rng(config.seed)

    scores = [optimize(config, traffic_table, rng).best_score for _ in range(runs)]
    benchmark = BenchmarkResult(scores=scores)

    SearchLogger().log_benchmark(runs, benchmark.mean_best)
    return benchmark
