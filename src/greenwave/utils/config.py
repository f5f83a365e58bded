"""
Configuration Management Module

Provides:
- Typed, immutable run configuration (simulation, search, generation)
- YAML configuration loading
- Environment variable overrides
- Configuration validation
"""

import os
import math
import yaml
from copy import deepcopy
from enum import Enum
from pathlib import Path
from typing import Dict, Any, List, Optional, Type, TypeVar
from dataclasses import dataclass, field, fields, asdict, is_dataclass, replace

from ..exceptions import ConfigurationError


T = TypeVar('T')

ENV_PREFIX = "GREENWAVE_"

DEFAULT_MAIN_MAX_COUNT = 20


def get_project_root() -> Path:
    """Get the project root directory"""
    current = Path(__file__).resolve()
    # Navigate up from src/greenwave/utils/config.py to project root
    return current.parent.parent.parent.parent


class Optimization(Enum):
    """Search strategies"""
    GENETIC = "genetic"
    HILLCLIMB = "hillclimb"


class Mutation(Enum):
    """Mutation variants"""
    NONE = "none"
    BITFLIP = "bitflip"
    PROB_BITFLIP = "prob_bitflip"


class Recombination(Enum):
    """Recombination (crossover) variants"""
    ONE_POINT = "one_point"
    TWO_POINT = "two_point"


class FitnessFormula(Enum):
    """Formulas reducing simulation statistics to a score"""
    DIFFERENCE = "difference"
    RATIO = "ratio"
    DRIVING_CARS = "driving_cars"
    WAITING_CARS = "waiting_cars"


def parse_enum(enum_type: Type[Enum], value: Any, option: str) -> Enum:
    """
    Convert a tag string to a member of enum_type

    Raises:
        ConfigurationError: if the tag is not a known variant
    """
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"Unknown {option} '{value}' (expected one of: {allowed})"
        ) from None


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def calculate_min_count(max_count: int) -> int:
    """Lower bound for randomly generated car counts"""
    return round_half_away(max_count / 3.0)


def calculate_max_passthrough(max_count: int) -> int:
    """Base passthrough cap derived from the maximum main road count"""
    return round_half_away(max_count * 0.8)


def calculate_increased_max_passthrough(max_passthrough: int) -> int:
    """Green-wave passthrough cap for lights that keep their phase"""
    return round_half_away(max_passthrough * 1.4)


def _coerce_enums(instance, mapping: Dict[str, Type[Enum]]):
    for name, enum_type in mapping.items():
        value = parse_enum(enum_type, getattr(instance, name), name)
        object.__setattr__(instance, name, value)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of the traffic propagation"""
    main_percentage: float = 0.8
    side_percentage: float = 0.6
    # None derives the cap from the main road capacity
    max_passthrough: Optional[int] = None
    increased_max_passthrough: Optional[int] = None
    disable_max_passthrough: bool = False
    disable_increasing_passthrough: bool = False

    @property
    def base_passthrough(self) -> int:
        """Cap used when a light changes its phase"""
        if self.max_passthrough is not None:
            return self.max_passthrough
        return calculate_max_passthrough(DEFAULT_MAIN_MAX_COUNT)

    @property
    def green_wave_passthrough(self) -> int:
        """Cap used when a light keeps its phase from the previous timestep"""
        if self.increased_max_passthrough is not None:
            return self.increased_max_passthrough
        return calculate_increased_max_passthrough(self.base_passthrough)


@dataclass(frozen=True)
class SearchConfig:
    """Search algorithm selection and parameters"""
    optimization: Optimization = Optimization.GENETIC
    mutation: Mutation = Mutation.PROB_BITFLIP
    recombination: Recombination = Recombination.ONE_POINT
    fitness: FitnessFormula = FitnessFormula.DIFFERENCE

    iterations: int = 1000
    population_size: int = 50
    parents_size: int = 10
    tournament_size: int = 5
    probability_bitflip: float = 0.0078125
    probability_recombination: float = 0.75

    # Worker processes used to score a population (1 = in-process)
    workers: int = 1

    def __post_init__(self):
        _coerce_enums(self, {
            'optimization': Optimization,
            'mutation': Mutation,
            'recombination': Recombination,
            'fitness': FitnessFormula,
        })


@dataclass(frozen=True)
class GenerationConfig:
    """Dimensions and value ranges of generated traffic data"""
    intersections: int = 8
    timesteps: int = 16
    main_max_count: int = DEFAULT_MAIN_MAX_COUNT
    side_max_count: int = 10

    @property
    def main_min_count(self) -> int:
        return calculate_min_count(self.main_max_count)

    @property
    def side_min_count(self) -> int:
        return calculate_min_count(self.side_max_count)


@dataclass(frozen=True)
class RunConfig:
    """Complete configuration of one optimization run"""
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    seed: Optional[int] = None
    data: str = "fixed"
    traffic_file: Optional[str] = None

    # Output
    silent: bool = False
    print_final_simulation: bool = False
    plot: bool = False
    plot_path: str = "results/best_scores.png"
    log_file: Optional[str] = None

    # Benchmark
    benchmark: bool = False
    benchmark_iterations: int = 20

    def __post_init__(self):
        if self.simulation.max_passthrough is None:
            simulation = replace(
                self.simulation,
                max_passthrough=calculate_max_passthrough(self.generation.main_max_count),
            )
            object.__setattr__(self, 'simulation', simulation)


class ConfigLoader:
    """
    Configuration loader
    Builds a RunConfig from defaults, a YAML file, environment
    variables and explicit overrides, in that order of precedence
    """

    SECTIONS = ('simulation', 'search', 'generation')

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self.env_prefix = env_prefix

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {path}")
        return data

    def load_from_env(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Override config values from environment variables

        Environment variables should be named like:
        GREENWAVE_SEARCH_ITERATIONS=200
        GREENWAVE_SIMULATION_DISABLE_MAX_PASSTHROUGH=true
        GREENWAVE_SEED=7
        """
        result = deepcopy(config)

        for key, value in os.environ.items():
            if not key.startswith(self.env_prefix):
                continue

            path = key[len(self.env_prefix):].lower()
            target = result
            for section in self.SECTIONS:
                if path.startswith(section + '_'):
                    target = result.setdefault(section, {})
                    path = path[len(section) + 1:]
                    break

            if path in target and not isinstance(target[path], dict):
                target[path] = self._convert_type(value, target[path])

        return result

    def _convert_type(self, value: str, original: Any) -> Any:
        """Convert string value to the type of the value it replaces"""
        if isinstance(original, bool):
            return value.lower() in ('true', '1', 'yes')
        elif isinstance(original, int):
            return int(value)
        elif isinstance(original, float):
            return float(value)
        elif original is None:
            return yaml.safe_load(value)
        else:
            return value

    def merge_configs(
        self,
        base: Dict[str, Any],
        override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Recursively merge two configs

        Args:
            base: Base configuration
            override: Override configuration (takes precedence)

        Returns:
            Merged configuration
        """
        result = deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self.merge_configs(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result

    def dict_to_dataclass(
        self,
        data: Dict[str, Any],
        dataclass_type: Type[T]
    ) -> T:
        """Convert dictionary to dataclass instance, rejecting unknown keys"""
        field_types = {f.name: f.type for f in fields(dataclass_type)}

        kwargs = {}
        for key, value in data.items():
            if key not in field_types:
                raise ConfigurationError(
                    f"Unknown option '{key}' for {dataclass_type.__name__}"
                )

            field_type = field_types[key]

            # Handle nested dataclasses
            if is_dataclass(field_type) and isinstance(value, dict):
                value = self.dict_to_dataclass(value, field_type)
            elif isinstance(field_type, type) and issubclass(field_type, Enum):
                value = parse_enum(field_type, value, key)

            kwargs[key] = value

        return dataclass_type(**kwargs)

    def load_run_config(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> RunConfig:
        """
        Load complete run configuration

        Args:
            config_path: Path to YAML config file
            overrides: Additional overrides

        Returns:
            RunConfig instance
        """
        # Start with defaults, leaving derived options unresolved
        config = _to_plain(asdict(RunConfig()))
        config['simulation'] = _to_plain(asdict(SimulationConfig()))

        if config_path:
            config = self.merge_configs(config, self.load_yaml(config_path))

        config = self.load_from_env(config)

        if overrides:
            config = self.merge_configs(config, overrides)

        return self.dict_to_dataclass(config, RunConfig)


def _to_plain(value: Any) -> Any:
    """Replace enum members by their tags so dicts look like parsed YAML"""
    if isinstance(value, dict):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, Enum):
        return value.value
    return value


def config_to_dict(config: RunConfig) -> Dict[str, Any]:
    """Plain dictionary form of a RunConfig, suitable for YAML"""
    return _to_plain(asdict(config))


def save_config(config: RunConfig, path: str) -> str:
    """Write a RunConfig as YAML"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)
    return str(path)


class ConfigValidator:
    """
    Validates configuration values
    """

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate(self, config: RunConfig, traffic_table=None) -> bool:
        """
        Validate run configuration

        Args:
            config: Configuration to check
            traffic_table: Traffic table the run will use (optional)

        Returns:
            True if valid
        """
        self.errors = []
        self.warnings = []

        self._validate_simulation(config.simulation)
        self._validate_search(config.search)
        self._validate_generation(config.generation, config.search)

        if traffic_table is not None:
            self._validate_table(config.generation, traffic_table)

        if config.benchmark and config.benchmark_iterations <= 0:
            self.errors.append("benchmark_iterations must be positive")

        return len(self.errors) == 0

    def _validate_simulation(self, config: SimulationConfig):
        """Validate simulation configuration"""
        for name in ('main_percentage', 'side_percentage'):
            value = getattr(config, name)
            if not 0.0 <= value <= 1.0:
                self.errors.append(f"{name} must be in [0, 1]")

        if not config.disable_max_passthrough:
            if config.base_passthrough < 0:
                self.errors.append("max_passthrough must be non-negative")
            if config.green_wave_passthrough < 0:
                self.errors.append("increased_max_passthrough must be non-negative")

    def _validate_search(self, config: SearchConfig):
        """Validate search configuration"""
        if config.iterations < 0:
            self.errors.append("iterations must be non-negative")

        for name in ('probability_bitflip', 'probability_recombination'):
            value = getattr(config, name)
            if not 0.0 <= value <= 1.0:
                self.errors.append(f"{name} must be in [0, 1]")

        if config.workers < 1:
            self.errors.append("workers must be at least 1")

        if config.optimization == Optimization.HILLCLIMB:
            if config.mutation == Mutation.NONE:
                self.warnings.append("hillclimb with mutation 'none' never changes the candidate")
            return

        if config.population_size <= 0:
            self.errors.append("population_size must be positive")
        elif config.population_size % 2 != 0:
            self.errors.append("population_size must be even for genetic pairing")

        if config.parents_size < 2:
            self.errors.append("parents_size must be at least 2")
        elif config.parents_size >= config.population_size:
            self.errors.append("parents_size must be smaller than population_size")

        if config.tournament_size < 1:
            self.errors.append("tournament_size must be positive")
        else:
            # The last round excludes parents_size - 1 earlier winners
            available = config.population_size - (config.parents_size - 1)
            if config.tournament_size > available:
                self.errors.append(
                    f"tournament_size must be <= population_size - (parents_size - 1) = {available}"
                )

    def _validate_generation(self, config: GenerationConfig, search: SearchConfig):
        """Validate dimensions against the chosen operators"""
        if config.intersections <= 0:
            self.errors.append("intersections must be positive")
        if config.timesteps <= 0:
            self.errors.append("timesteps must be positive")

        if search.optimization == Optimization.GENETIC:
            if search.recombination == Recombination.ONE_POINT and config.timesteps < 2:
                self.errors.append("one_point recombination needs at least 2 timesteps")
            if search.recombination == Recombination.TWO_POINT:
                if config.intersections < 2:
                    self.errors.append("two_point recombination needs at least 2 intersections")
                elif config.intersections < 3:
                    self.warnings.append(
                        "two_point recombination never swaps rows with fewer than 3 intersections"
                    )

        if config.main_max_count <= config.main_min_count:
            self.errors.append("main_max_count is too small to generate traffic")
        if config.side_max_count <= config.side_min_count:
            self.errors.append("side_max_count is too small to generate traffic")

    def _validate_table(self, config: GenerationConfig, traffic_table):
        """Validate traffic table dimensions"""
        if traffic_table.intersections != config.intersections:
            self.errors.append(
                f"traffic table has {traffic_table.intersections} intersections, "
                f"configured {config.intersections}"
            )
        if traffic_table.timesteps != config.timesteps:
            self.errors.append(
                f"traffic table has {traffic_table.timesteps} timesteps, "
                f"configured {config.timesteps}"
            )

    def get_report(self) -> str:
        """Get validation report"""
        lines = []

        if self.errors:
            lines.append("Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        if not self.errors and not self.warnings:
            lines.append("Configuration is valid")

        return '\n'.join(lines)


def validate_config(config: RunConfig, traffic_table=None) -> List[str]:
    """
    Validate a run configuration, failing fast on errors

    Returns:
        Warnings reported by the validator

    Raises:
        ConfigurationError: with the full report when any check fails
    """
    validator = ConfigValidator()
    if not validator.validate(config, traffic_table):
        raise ConfigurationError(validator.get_report())
    return list(validator.warnings)


def load_config(
    config_path: Optional[str] = None,
    **overrides
) -> RunConfig:
    """
    Convenience function to load configuration

    Args:
        config_path: Path to config file
        **overrides: Override values, nested keys like "search.iterations"

    Returns:
        RunConfig
    """
    loader = ConfigLoader()

    override_dict = {}
    for key, value in overrides.items():
        parts = key.split('.')
        current = override_dict
        for part in parts[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value

    return loader.load_run_config(config_path, override_dict)
