"""
Traffic Data Package
Exogenous traffic tables consumed by the simulator
"""

from .data import (
    TrafficCell,
    TrafficTable,
    generate_traffic_table,
    fixed_traffic_table,
    load_traffic_table,
    save_traffic_table,
)

__all__ = [
    "TrafficCell",
    "TrafficTable",
    "generate_traffic_table",
    "fixed_traffic_table",
    "load_traffic_table",
    "save_traffic_table",
]
