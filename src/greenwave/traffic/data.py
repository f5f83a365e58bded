"""
Traffic Input Data
Per-intersection, per-timestep car counts consumed by the simulator
"""

import yaml
import numpy as np
from pathlib import Path
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..exceptions import TrafficDataError
from ..utils.config import GenerationConfig
from ..utils.logger import get_logger

logger = get_logger("greenwave.traffic")

# Seed of the deterministic fixture returned by fixed_traffic_table()
FIXED_SEED = 20220601


@dataclass(frozen=True)
class TrafficCell:
    """Car counts at one intersection for one timestep"""
    main_from_prev: int = 0
    main_from_next: int = 0
    side: int = 0

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.main_from_prev, self.main_from_next, self.side)

    def __str__(self) -> str:
        return (
            f"{{main_from_prev: {self.main_from_prev:02d}, "
            f"main_from_next: {self.main_from_next:02d}, "
            f"side: {self.side:02d}}}"
        )


EMPTY_CELL = TrafficCell()


class TrafficTable:
    """
    Read-only table of exogenous traffic, indexed [intersection][timestep]

    The table is rectangular, counts are non-negative, the first
    intersection never receives main road traffic from a next neighbor
    and the last never receives it from a previous one.
    """

    def __init__(self, rows: Sequence[Sequence[TrafficCell]]):
        self._rows: Tuple[Tuple[TrafficCell, ...], ...] = tuple(tuple(row) for row in rows)
        self._validate()

    def _validate(self):
        if not self._rows:
            raise TrafficDataError("traffic table has no intersections")

        timesteps = len(self._rows[0])
        if timesteps == 0:
            raise TrafficDataError("traffic table has no timesteps")

        for index, row in enumerate(self._rows):
            if len(row) != timesteps:
                raise TrafficDataError(
                    f"intersection {index} has {len(row)} timesteps, expected {timesteps}"
                )
            for t, cell in enumerate(row):
                if not isinstance(cell, TrafficCell):
                    raise TrafficDataError(f"cell ({index}, {t}) is not a TrafficCell")
                if min(cell.as_tuple()) < 0:
                    raise TrafficDataError(f"cell ({index}, {t}) has a negative count")

        for t, cell in enumerate(self._rows[0]):
            if cell.main_from_next != 0:
                raise TrafficDataError(
                    f"first intersection has main_from_next={cell.main_from_next} at timestep {t}"
                )
        for t, cell in enumerate(self._rows[-1]):
            if cell.main_from_prev != 0:
                raise TrafficDataError(
                    f"last intersection has main_from_prev={cell.main_from_prev} at timestep {t}"
                )

    @property
    def intersections(self) -> int:
        return len(self._rows)

    @property
    def timesteps(self) -> int:
        return len(self._rows[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.intersections, self.timesteps)

    def cell(self, intersection: int, t: int) -> TrafficCell:
        return self._rows[intersection][t]

    def step(self, t: int) -> List[TrafficCell]:
        """
        Exogenous cells of every intersection at timestep t

        Timesteps beyond the table yield empty cells.
        """
        if 0 <= t < self.timesteps:
            return [row[t] for row in self._rows]
        return [EMPTY_CELL] * self.intersections

    def to_lists(self) -> List[List[List[int]]]:
        return [[list(cell.as_tuple()) for cell in row] for row in self._rows]

    @classmethod
    def from_lists(cls, data: Sequence[Sequence[Sequence[int]]]) -> 'TrafficTable':
        """Build a table from [main_from_prev, main_from_next, side] triples"""
        rows = []
        for index, row in enumerate(data):
            cells = []
            for t, triple in enumerate(row):
                if len(triple) != 3:
                    raise TrafficDataError(
                        f"cell ({index}, {t}) must have 3 counts, got {len(triple)}"
                    )
                cells.append(TrafficCell(*(int(value) for value in triple)))
            rows.append(cells)
        return cls(rows)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TrafficTable):
            return NotImplemented
        return self._rows == other._rows

    def __iter__(self):
        return iter(self._rows)

    def __len__(self) -> int:
        return self.intersections

    def __repr__(self) -> str:
        return f"TrafficTable(intersections={self.intersections}, timesteps={self.timesteps})"


def _random_count(rng: np.random.Generator, low: int, high: int) -> int:
    return int(rng.integers(low, high))


def generate_traffic_table(
    generation_config: GenerationConfig,
    rng: Optional[np.random.Generator] = None
) -> TrafficTable:
    """
    Generate random traffic data

    Every intersection starts with traffic in all directions; afterwards
    main road traffic only enters at the two ends of the road while side
    roads keep feeding every intersection.

    Args:
        generation_config: Dimensions and count ranges
        rng: Random generator (a fresh unseeded one if omitted)

    Returns:
        Generated TrafficTable
    """
    rng = rng if rng is not None else np.random.default_rng()
    cfg = generation_config
    main_range = (cfg.main_min_count, cfg.main_max_count)
    side_range = (cfg.side_min_count, cfg.side_max_count)

    last = cfg.intersections - 1
    rows = []
    for index in range(cfg.intersections):
        row = []
        for t in range(cfg.timesteps):
            side = _random_count(rng, *side_range)
            if t == 0:
                main_from_prev = _random_count(rng, *main_range)
                main_from_next = _random_count(rng, *main_range)
            else:
                main_from_prev = _random_count(rng, *main_range) if index == 0 else 0
                main_from_next = _random_count(rng, *main_range) if index == last else 0

            # No road segment beyond either end
            if index == 0:
                main_from_next = 0
            if index == last:
                main_from_prev = 0

            row.append(TrafficCell(main_from_prev, main_from_next, side))
        rows.append(row)

    logger.debug(f"Generated traffic table {cfg.intersections}x{cfg.timesteps}")
    return TrafficTable(rows)


def fixed_traffic_table(generation_config: Optional[GenerationConfig] = None) -> TrafficTable:
    """Deterministic traffic fixture, identical on every call"""
    generation_config = generation_config or GenerationConfig()
    return generate_traffic_table(generation_config, np.random.default_rng(FIXED_SEED))


def load_traffic_table(path: str) -> TrafficTable:
    """Load a traffic table from YAML (list of intersections of count triples)"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Traffic file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get('traffic')
    if not isinstance(data, list):
        raise TrafficDataError(f"Traffic file must contain a list of intersections: {path}")

    table = TrafficTable.from_lists(data)
    logger.info(f"Loaded traffic table {table.intersections}x{table.timesteps} from {path}")
    return table


def save_traffic_table(table: TrafficTable, path: str) -> str:
    """Write a traffic table as YAML"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump({'traffic': table.to_lists()}, f, default_flow_style=None, sort_keys=False)
    return str(path)
