"""
Tests for the search strategies
"""

import sys
from dataclasses import replace
from pathlib import Path

import pytest
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from greenwave.exceptions import ConfigurationError
from greenwave.traffic.data import TrafficCell, TrafficTable, fixed_traffic_table
from greenwave.utils.config import (
    FitnessFormula,
    GenerationConfig,
    RunConfig,
    SearchConfig,
    SimulationConfig,
)
from greenwave.utils.logger import SearchLogger
from greenwave.optimization.simulator import TrafficSimulator
from greenwave.optimization.search import (
    genetic_algorithm,
    hillclimb,
    next_generation,
    optimize,
    run_benchmark,
)


GENERATION = GenerationConfig(intersections=4, timesteps=6)


@pytest.fixture
def table():
    return fixed_traffic_table(GENERATION)


@pytest.fixture
def simulator(table):
    return TrafficSimulator(table)


def small_search(**kwargs) -> SearchConfig:
    params = dict(
        iterations=15,
        population_size=10,
        parents_size=4,
        tournament_size=3,
        probability_bitflip=0.1,
    )
    params.update(kwargs)
    return SearchConfig(**params)


def small_run(**kwargs) -> RunConfig:
    return RunConfig(generation=GENERATION, search=small_search(**kwargs), seed=5, silent=True)


class TestHillclimb:
    """Hill-climbing strategy"""
    
    def test_best_scores_non_decreasing(self, simulator):
        config = small_search(optimization="hillclimb", mutation="bitflip", iterations=40)
        
        result = hillclimb(simulator, config, np.random.default_rng(1), SearchLogger(silent=True))
        
        assert len(result.best_scores) == 41
        assert all(b >= a for a, b in zip(result.best_scores, result.best_scores[1:]))
        assert result.best_score == result.best_scores[-1]
    
    def test_best_score_matches_candidate(self, simulator):
        config = small_search(optimization="hillclimb", mutation="bitflip")
        
        result = hillclimb(simulator, config, np.random.default_rng(2), SearchLogger(silent=True))
        
        assert simulator.evaluate(result.best_candidate) == result.best_score
    
    def test_improvements_are_strict(self, simulator):
        config = small_search(optimization="hillclimb", mutation="prob_bitflip", iterations=30)
        
        result = hillclimb(simulator, config, np.random.default_rng(3), SearchLogger(silent=True))
        
        scores = [improvement.score for improvement in result.improvements]
        assert all(b > a for a, b in zip(scores, scores[1:]))
        assert result.improvements[0].iteration == 0


class TestGeneticAlgorithm:
    """Genetic algorithm strategy"""
    
    def test_population_size_constant(self, simulator):
        config = small_search(iterations=8)
        sizes = []
        
        genetic_algorithm(
            simulator,
            config,
            np.random.default_rng(4),
            SearchLogger(silent=True),
            callback=lambda generation, population, values: sizes.append(
                (generation, len(population), len(values))
            ),
        )
        
        assert sizes == [(g, 10, 10) for g in range(9)]
    
    def test_best_ever_tracking(self, simulator):
        config = small_search(iterations=12)
        generation_best = []
        
        result = genetic_algorithm(
            simulator,
            config,
            np.random.default_rng(5),
            SearchLogger(silent=True),
            callback=lambda generation, population, values: generation_best.append(values.max()),
        )
        
        assert result.best_score == max(generation_best)
        assert result.best_scores == list(np.maximum.accumulate(generation_best))
        assert simulator.evaluate(result.best_candidate) == result.best_score
        assert result.final_mean is not None
    
    def test_next_generation_shape(self, simulator):
        config = small_search(recombination="two_point", probability_recombination=1.0)
        rng = np.random.default_rng(6)
        from greenwave.optimization.candidate import generate_population
        population = generate_population(10, 4, 6, rng)
        values = simulator.evaluate_population(population)
        
        children = next_generation(population, values, config, rng)
        
        assert len(children) == 10
        assert all(child.shape == (4, 6) for child in children)
    
    def test_improvement_means_recorded(self, simulator):
        result = genetic_algorithm(
            simulator, small_search(), np.random.default_rng(7), SearchLogger(silent=True)
        )
        
        assert all(improvement.mean is not None for improvement in result.improvements)
    
    def test_ratio_means_stay_finite(self):
        table = TrafficTable([[TrafficCell(0, 0, 5)]])
        simulator = TrafficSimulator(
            table, SimulationConfig(disable_max_passthrough=True), FitnessFormula.RATIO
        )
        config = small_search(
            iterations=2,
            population_size=4,
            parents_size=2,
            tournament_size=2,
            probability_recombination=0.0,
        )
        
        result = genetic_algorithm(
            simulator, config, np.random.default_rng(3), SearchLogger(silent=True)
        )
        
        assert np.isfinite(result.final_mean)
        assert all(np.isfinite(improvement.mean) for improvement in result.improvements)
        assert all(np.isfinite(score) for score in result.best_scores)
    
    def test_worker_processes_match_in_process(self, simulator):
        in_process = genetic_algorithm(
            simulator, small_search(iterations=5, workers=1),
            np.random.default_rng(8), SearchLogger(silent=True)
        )
        pooled = genetic_algorithm(
            simulator, small_search(iterations=5, workers=2),
            np.random.default_rng(8), SearchLogger(silent=True)
        )
        
        assert pooled.best_scores == in_process.best_scores
        assert pooled.best_score == in_process.best_score
        assert np.array_equal(pooled.best_candidate, in_process.best_candidate)


class TestOptimize:
    """Configured entry point"""
    
    def test_genetic_run(self, table):
        result = optimize(small_run(), table)
        
        assert len(result.best_scores) == 16
        assert result.best_candidate.shape == table.shape
    
    def test_seeded_runs_repeat(self, table):
        first = optimize(small_run(), table)
        second = optimize(small_run(), table)
        
        assert first.best_score == second.best_score
        assert np.array_equal(first.best_candidate, second.best_candidate)
    
    def test_hillclimb_run(self, table):
        result = optimize(small_run(optimization="hillclimb", mutation="bitflip"), table)
        
        assert len(result.best_scores) == 16
    
    def test_final_simulation_trace(self, table):
        config = replace(small_run(iterations=2), print_final_simulation=True)
        
        result = optimize(config, table)
        
        assert result.best_candidate.shape == table.shape
    
    @pytest.mark.parametrize("overrides", [
        dict(population_size=9),
        dict(parents_size=10),
        dict(parents_size=1),
        dict(tournament_size=8),
        dict(probability_bitflip=1.5),
    ])
    def test_invalid_configuration_fails_fast(self, table, overrides):
        with pytest.raises(ConfigurationError):
            optimize(small_run(**overrides), table)
    
    def test_table_dimension_mismatch(self):
        table = fixed_traffic_table(GenerationConfig(intersections=3, timesteps=6))
        
        with pytest.raises(ConfigurationError):
            optimize(small_run(), table)
    
    def test_benchmark(self, table):
        benchmark = run_benchmark(small_run(iterations=3), table, runs=3)
        
        assert len(benchmark.scores) == 3
        assert benchmark.mean_best == pytest.approx(np.mean(benchmark.scores))
