"""
Visualization Package
"""

from .plots import plot_best_scores, plot_phase_matrix

__all__ = [
    "plot_best_scores",
    "plot_phase_matrix",
]
