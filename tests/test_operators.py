"""
Tests for the candidate codec, genetic operators and selection
"""

import sys
from pathlib import Path

import pytest
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from greenwave.exceptions import CandidateShapeError, ConfigurationError
from greenwave.utils.config import SearchConfig
from greenwave.optimization.candidate import (
    generate_candidate,
    generate_population,
    make_candidate,
)
from greenwave.optimization.operators import (
    bitflip,
    mutate,
    one_point_crossover,
    probability_bitflip,
    recombine,
    two_point_crossover,
)
from greenwave.optimization.selection import (
    best_and_worst,
    distinct_random,
    mean_value,
    tournament,
)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def candidate(rng):
    return generate_candidate(5, 8, rng)


# ============================================
# Candidate Codec
# ============================================

class TestCandidateCodec:
    """Random candidates and populations"""
    
    def test_candidate_shape(self, rng):
        candidate = generate_candidate(3, 7, rng)
        
        assert candidate.shape == (3, 7)
        assert candidate.dtype == bool
    
    def test_candidate_is_read_only(self, candidate):
        with pytest.raises(ValueError):
            candidate[0, 0] = not candidate[0, 0]
    
    def test_population_size(self, rng):
        population = generate_population(12, 4, 6, rng)
        
        assert len(population) == 12
        assert all(member.shape == (4, 6) for member in population)
    
    def test_seeded_generation(self):
        first = generate_candidate(4, 4, np.random.default_rng(9))
        second = generate_candidate(4, 4, np.random.default_rng(9))
        
        assert np.array_equal(first, second)
    
    def test_make_candidate_rejects_vectors(self):
        with pytest.raises(CandidateShapeError):
            make_candidate([True, False])


# ============================================
# Mutation
# ============================================

class TestMutation:
    """Mutation variants"""
    
    def test_none_is_identity(self, candidate, rng):
        mutated = mutate(candidate, SearchConfig(mutation="none"), rng)
        
        assert np.array_equal(mutated, candidate)
    
    def test_bitflip_changes_one_bit(self, candidate, rng):
        original = candidate.copy()
        
        mutated = bitflip(candidate, rng)
        
        assert np.count_nonzero(mutated != candidate) == 1
        assert np.array_equal(candidate, original)
        assert not mutated.flags.writeable
    
    def test_probability_zero(self, candidate, rng):
        mutated = probability_bitflip(candidate, 0.0, rng)
        
        assert np.array_equal(mutated, candidate)
    
    def test_probability_one(self, candidate, rng):
        mutated = probability_bitflip(candidate, 1.0, rng)
        
        assert np.array_equal(mutated, ~candidate)
    
    def test_dispatch_prob_bitflip(self, candidate, rng):
        config = SearchConfig(mutation="prob_bitflip", probability_bitflip=1.0)
        
        assert np.array_equal(mutate(candidate, config, rng), ~candidate)


# ============================================
# Recombination
# ============================================

class TestRecombination:
    """One-point and two-point crossover"""
    
    def test_one_point_shape(self, rng):
        first = generate_candidate(5, 8, rng)
        second = generate_candidate(5, 8, rng)
        
        child1, child2 = one_point_crossover(first, second, rng)
        
        assert child1.shape == first.shape
        assert child2.shape == first.shape
    
    def test_one_point_same_cut_for_every_row(self, rng):
        first = make_candidate(np.ones((4, 10), dtype=bool))
        second = make_candidate(np.zeros((4, 10), dtype=bool))
        
        child1, child2 = one_point_crossover(first, second, rng)
        
        cut = int(child1[0].sum())
        assert 1 <= cut < 10
        for row in child1:
            assert row[:cut].all() and not row[cut:].any()
        assert np.array_equal(child2, ~child1)
    
    def test_two_point_shape(self, rng):
        first = generate_candidate(6, 4, rng)
        second = generate_candidate(6, 4, rng)
        
        child1, child2 = two_point_crossover(first, second, rng)
        
        assert child1.shape == first.shape
        assert child2.shape == first.shape
    
    def test_two_point_swaps_whole_rows(self):
        first = make_candidate(np.ones((6, 5), dtype=bool))
        second = make_candidate(np.zeros((6, 5), dtype=bool))
        
        for seed in range(20):
            child1, child2 = two_point_crossover(first, second, np.random.default_rng(seed))
            
            for row in child1:
                assert row.all() or not row.any()
            # Outer rows are never strictly between two indices
            assert child1[0].all() and child1[-1].all()
            assert np.array_equal(child2, ~child1)
    
    def test_parents_untouched(self, rng):
        first = generate_candidate(5, 8, rng)
        second = generate_candidate(5, 8, rng)
        first_copy, second_copy = first.copy(), second.copy()
        
        one_point_crossover(first, second, rng)
        two_point_crossover(first, second, rng)
        
        assert np.array_equal(first, first_copy)
        assert np.array_equal(second, second_copy)
    
    def test_probability_zero_passes_parents_through(self, rng):
        first = generate_candidate(3, 4, rng)
        second = generate_candidate(3, 4, rng)
        config = SearchConfig(probability_recombination=0.0)
        
        child1, child2 = recombine(first, second, config, rng)
        
        assert child1 is first
        assert child2 is second
    
    def test_shape_mismatch(self, rng):
        with pytest.raises(CandidateShapeError):
            one_point_crossover(
                generate_candidate(3, 4, rng),
                generate_candidate(3, 5, rng),
                rng,
            )


# ============================================
# Selection
# ============================================

class TestTournament:
    """Tournament selection"""
    
    def test_winners_are_distinct_and_in_range(self, rng):
        values = rng.normal(size=50)
        
        winners = tournament(values, parents_size=10, tournament_size=5, rng=rng)
        
        assert len(winners) == 10
        assert len(set(winners)) == 10
        assert all(0 <= winner < 50 for winner in winners)
    
    def test_full_tournament_picks_best(self, rng):
        values = [3.0, 9.0, 1.0, 4.0]
        
        winners = tournament(values, parents_size=1, tournament_size=4, rng=rng)
        
        assert winners == [1]
    
    def test_earlier_winners_excluded(self, rng):
        values = [3.0, 9.0, 1.0, 4.0]

        winners = tournament(values, parents_size=4, tournament_size=1, rng=rng)

        assert sorted(winners) == [0, 1, 2, 3]
    
    def test_tournament_too_large(self, rng):
        with pytest.raises(ConfigurationError):
            tournament([1.0] * 6, parents_size=4, tournament_size=4, rng=rng)
    
    def test_distinct_random(self, rng):
        values = distinct_random(0, 5, 5, rng)
        
        assert sorted(values) == [0, 1, 2, 3, 4]
        with pytest.raises(ConfigurationError):
            distinct_random(0, 2, 3, rng)


class TestPopulationStatistics:
    """Best, worst and mean values"""
    
    def test_best_and_worst(self):
        population = ["a", "b", "c"]
        
        best, best_value, worst_value = best_and_worst(population, [2.0, 5.0, -1.0])
        
        assert best == "b"
        assert best_value == 5.0
        assert worst_value == -1.0
    
    def test_mean(self):
        assert mean_value([1.0, 2.0, 6.0]) == pytest.approx(3.0)
