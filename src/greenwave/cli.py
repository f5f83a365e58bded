"""
Optimization Script
Evolutionary search for traffic light phases on a linear road with intersections
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Any, Dict, List, Optional

import numpy as np

from .exceptions import GreenwaveError
from .traffic.data import (
    fixed_traffic_table,
    generate_traffic_table,
    load_traffic_table,
    save_traffic_table,
)
from .utils.config import (
    FitnessFormula,
    Mutation,
    Optimization,
    Recombination,
    load_config,
)
from .utils.logger import setup_logger, format_candidate
from .optimization.search import optimize, run_benchmark

# Command line option -> dotted config key
OPTION_KEYS = {
    'seed': 'seed',
    'data': 'data',
    'traffic_file': 'traffic_file',
    'silent': 'silent',
    'print_final_simulation': 'print_final_simulation',
    'plot': 'plot',
    'plot_path': 'plot_path',
    'log_file': 'log_file',
    'benchmark': 'benchmark',
    'benchmark_iterations': 'benchmark_iterations',
    'iterations': 'search.iterations',
    'optimization': 'search.optimization',
    'mutation': 'search.mutation',
    'recombination': 'search.recombination',
    'fitness_value': 'search.fitness',
    'probability_bitflip': 'search.probability_bitflip',
    'probability_recombination': 'search.probability_recombination',
    'population_size': 'search.population_size',
    'parents_size': 'search.parents_size',
    'tournament_size': 'search.tournament_size',
    'workers': 'search.workers',
    'intersections': 'generation.intersections',
    'timesteps': 'generation.timesteps',
    'main_max_count': 'generation.main_max_count',
    'side_max_count': 'generation.side_max_count',
    'main_percentage': 'simulation.main_percentage',
    'side_percentage': 'simulation.side_percentage',
    'max_passthrough': 'simulation.max_passthrough',
    'disable_max_passthrough': 'simulation.disable_max_passthrough',
    'disable_increasing_passthrough': 'simulation.disable_increasing_passthrough',
}


def _choices(enum_type) -> List[str]:
    return [member.value for member in enum_type]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evolutionary algorithm to optimize traffic lights on a linear road with intersections"
    )

    parser.add_argument('--config', '-c', type=str, default=None,
                        help='YAML configuration file')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducible runs')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write log output to this file')

    # Output
    parser.add_argument('--silent', '-s', action='store_true', default=None,
                        help='Hide output on iterations with improvements')
    parser.add_argument('--print-final-simulation', action='store_true', default=None,
                        help='Print the simulation data for the final best candidate')
    parser.add_argument('--plot', action='store_true', default=None,
                        help='Draw plot of best values of each iteration')
    parser.add_argument('--plot-path', type=str, default=None,
                        help='Image file for --plot')

    # Benchmark
    parser.add_argument('--benchmark', '-b', action='store_true', default=None,
                        help='Run optimization several times and show mean of results')
    parser.add_argument('--benchmark-iterations', type=int, default=None,
                        help='Number of times to run optimization in benchmark')

    # Traffic data
    parser.add_argument('--data', '-d', type=str, default=None, choices=['fixed', 'generate'],
                        help='Car traffic data to use for the traffic simulation')
    parser.add_argument('--traffic-file', type=str, default=None,
                        help='YAML traffic table (overrides --data)')
    parser.add_argument('--save-traffic', type=str, default=None,
                        help='Write the traffic table used by this run to a YAML file')
    parser.add_argument('--main-max-count', type=int, default=None,
                        help='Maximum number of cars possible on the main road')
    parser.add_argument('--side-max-count', type=int, default=None,
                        help='Maximum number of cars possible on the side roads')
    parser.add_argument('--intersections', type=int, default=None,
                        help='Number of intersections for the traffic simulation')
    parser.add_argument('--timesteps', type=int, default=None,
                        help='Number of timesteps for the traffic simulation')

    # Search
    parser.add_argument('--iterations', '-i', type=int, default=None,
                        help='Number of iterations to run')
    parser.add_argument('--optimization', '-o', type=str, default=None,
                        choices=_choices(Optimization), help='Optimization variant to use')
    parser.add_argument('--mutation', '-m', type=str, default=None,
                        choices=_choices(Mutation), help='Mutation variant to use')
    parser.add_argument('--recombination', '-r', type=str, default=None,
                        choices=_choices(Recombination), help='Recombination variant to use')
    parser.add_argument('--fitness-value', type=str, default=None,
                        choices=_choices(FitnessFormula),
                        help='Fitness value to use during optimization')
    parser.add_argument('--probability-bitflip', type=float, default=None,
                        help='Probability for bitflip in prob_bitflip mutation')
    parser.add_argument('--probability-recombination', type=float, default=None,
                        help='Probability for recombination of a parent pair')
    parser.add_argument('--population-size', type=int, default=None,
                        help='Population size')
    parser.add_argument('--parents-size', type=int, default=None,
                        help='Parent population size')
    parser.add_argument('--tournament-size', type=int, default=None,
                        help='Tournament size')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker processes used to score each generation')

    # Simulation
    parser.add_argument('--main-percentage', type=float, default=None,
                        help='Amount of cars staying on the main road')
    parser.add_argument('--side-percentage', type=float, default=None,
                        help='Amount of cars coming to main road from side roads')
    parser.add_argument('--max-passthrough', type=int, default=None,
                        help='Cars allowed through an intersection per timestep')
    parser.add_argument('--disable-max-passthrough', action='store_true', default=None,
                        help='Disable the max passthrough value to not limit cars per timestep')
    parser.add_argument('--disable-increasing-passthrough', action='store_true', default=None,
                        help='Disable the higher passthrough for lights that keep their phase')

    return parser


def collect_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Dotted config overrides for every option given on the command line"""
    overrides = {}
    for option, key in OPTION_KEYS.items():
        value = getattr(args, option)
        if value is not None:
            overrides[key] = value
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logger = setup_logger("greenwave", level=level, log_file=args.log_file)

    try:
        config = load_config(args.config, **collect_overrides(args))
        rng = np.random.default_rng(config.seed)

        if config.traffic_file:
            traffic_table = load_traffic_table(config.traffic_file)
            generation = replace(
                config.generation,
                intersections=traffic_table.intersections,
                timesteps=traffic_table.timesteps,
            )
            config = replace(config, generation=generation)
        elif config.data == "generate":
            traffic_table = generate_traffic_table(config.generation, rng)
            logger.info("Generated traffic data")
        else:
            traffic_table = fixed_traffic_table(config.generation)

        if args.save_traffic:
            path = save_traffic_table(traffic_table, args.save_traffic)
            logger.info(f"Traffic table saved to {path}")

        if config.benchmark:
            run_benchmark(config, traffic_table, rng=rng)
            return 0

        result = optimize(config, traffic_table, rng)

    except GreenwaveError as e:
        logger.error(str(e))
        return 2

    if config.plot:
        from .visualization.plots import plot_best_scores
        plot_best_scores(
            result.best_scores,
            save_path=config.plot_path,
            worst_scores=result.worst_scores or None,
        )
        logger.info(f"Plot saved to {config.plot_path}")

    print(f"{format_candidate(result.best_candidate)}\t{result.best_score:.4f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
