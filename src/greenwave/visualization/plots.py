"""
Plots for search results

- Best-ever score per iteration
- Phase matrix of a candidate
"""

from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def plot_best_scores(
    best_scores: Sequence[float],
    save_path: Optional[str] = None,
    title: str = "Best Fitness per Iteration",
    worst_scores: Optional[Sequence[float]] = None
) -> plt.Figure:
    """
    Line plot of the best-ever score, indexed by iteration

    Args:
        best_scores: Best score after each iteration (index 0 = initial)
        save_path: Image path (optional)
        title: Plot title
        worst_scores: Worst score of each generation (optional)
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    iterations = np.arange(len(best_scores))
    ax.plot(iterations, best_scores, label='Best', color='tab:green')
    if worst_scores:
        ax.plot(np.arange(len(worst_scores)), worst_scores,
                label='Worst of generation', color='tab:red', alpha=0.5)
        ax.legend(loc='lower right')

    ax.set_xlabel('Iteration')
    ax.set_ylabel('Fitness')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    plt.close(fig)
    return fig


def plot_phase_matrix(
    candidate: np.ndarray,
    save_path: Optional[str] = None,
    title: str = "Traffic Light Phases"
) -> plt.Figure:
    """
    Heatmap of a phase matrix: green cells give the main road right of way
    """
    fig, ax = plt.subplots(figsize=(12, 4))

    ax.imshow(np.asarray(candidate, dtype=int), cmap='RdYlGn', aspect='auto', vmin=0, vmax=1)

    intersections, timesteps = candidate.shape
    ax.set_xticks(np.arange(timesteps))
    ax.set_yticks(np.arange(intersections))
    ax.set_xlabel('Timestep')
    ax.set_ylabel('Intersection')
    ax.set_title(title)

    plt.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    plt.close(fig)
    return fig
