"""
Greenwave - Source Package
Evolutionary optimization of traffic light phases on a linear road
"""

__version__ = "1.0.0"
__author__ = "Greenwave Team"

from .exceptions import GreenwaveError, ConfigurationError, TrafficDataError, CandidateShapeError
from .utils.config import RunConfig, SimulationConfig, SearchConfig, GenerationConfig, load_config
from .utils.logger import setup_logger, SearchLogger

# Traffic data
from .traffic import TrafficCell, TrafficTable, generate_traffic_table, fixed_traffic_table

# Optimization
from .optimization import TrafficSimulator, SearchResult, optimize, run_benchmark

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Errors
    "GreenwaveError",
    "ConfigurationError",
    "TrafficDataError",
    "CandidateShapeError",
    # Utils
    "RunConfig",
    "SimulationConfig",
    "SearchConfig",
    "GenerationConfig",
    "load_config",
    "setup_logger",
    "SearchLogger",
    # Traffic data
    "TrafficCell",
    "TrafficTable",
    "generate_traffic_table",
    "fixed_traffic_table",
    # Optimization
    "TrafficSimulator",
    "SearchResult",
    "optimize",
    "run_benchmark",
]
