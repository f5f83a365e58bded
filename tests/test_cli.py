"""
Tests for the command line entry point and plots
"""

import sys
import logging
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from greenwave.cli import build_parser, collect_overrides, main
from greenwave.utils.config import load_config
from greenwave.visualization.plots import plot_best_scores, plot_phase_matrix
from greenwave.optimization.candidate import make_candidate


SMALL_RUN = [
    "--iterations", "3",
    "--population-size", "10",
    "--parents-size", "4",
    "--tournament-size", "3",
    "--intersections", "4",
    "--timesteps", "6",
    "--seed", "1",
    "--silent",
]


@pytest.fixture(autouse=True)
def reset_logger():
    """main() attaches handlers to the package logger; drop them after each test"""
    yield
    logging.getLogger("greenwave").handlers.clear()


class TestCommandLine:
    """greenwave-optimize"""
    
    def test_only_given_options_override(self):
        args = build_parser().parse_args(["--iterations", "7", "--disable-max-passthrough"])
        
        overrides = collect_overrides(args)
        
        assert overrides == {
            'search.iterations': 7,
            'simulation.disable_max_passthrough': True,
        }
    
    def test_main_max_count_sets_passthrough(self):
        args = build_parser().parse_args(["--main-max-count", "30"])
        
        config = load_config(**collect_overrides(args))
        
        assert collect_overrides(args) == {'generation.main_max_count': 30}
        assert config.simulation.max_passthrough == 24
    
    def test_run(self, capsys):
        assert main(SMALL_RUN) == 0
        
        out = capsys.readouterr().out
        assert "\t" in out
    
    def test_generated_data_and_saved_table(self, tmp_path):
        traffic = tmp_path / "traffic.yaml"
        
        assert main(SMALL_RUN + ["--data", "generate", "--save-traffic", str(traffic)]) == 0
        assert traffic.exists()
        
        assert main(SMALL_RUN + ["--traffic-file", str(traffic), "--optimization", "hillclimb"]) == 0
    
    def test_benchmark(self):
        assert main(SMALL_RUN + ["--benchmark", "--benchmark-iterations", "2"]) == 0
    
    def test_invalid_configuration(self):
        assert main(SMALL_RUN + ["--population-size", "9"]) == 2
    
    def test_plot(self, tmp_path):
        plot_path = tmp_path / "best.png"
        
        assert main(SMALL_RUN + ["--plot", "--plot-path", str(plot_path)]) == 0
        assert plot_path.exists()


class TestPlots:
    """Plot helpers"""
    
    def test_phase_matrix(self, tmp_path):
        path = tmp_path / "phases.png"
        
        plot_phase_matrix(make_candidate([[True, False], [False, True]]), save_path=str(path))
        
        assert path.exists()
    
    def test_best_scores(self, tmp_path):
        path = tmp_path / "scores.png"
        
        plot_best_scores([1.0, 2.0, 2.0], save_path=str(path), worst_scores=[0.0, -1.0, 1.0])
        
        assert path.exists()
