"""Plot utilities for persisted break-run metrics."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from data.logger import BreakLogger  # noqa: E402


def plot_run(db_path: str | Path, run_id: str, output_path: str | Path) -> Path:
    """Render best/mean fitness curves for a logged break run."""
    logger = BreakLogger(db_path)
    try:
        rows = logger.fetch_metrics(run_id)
    finally:
        logger.close()
    if not rows:
        raise ValueError(f"No generation metrics logged for run {run_id}")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    generations = [int(row["generation_index"]) for row in rows]
    best_fitness = [float(row["best_fitness"]) for row in rows]
    mean_fitness = [float(row["mean_fitness"]) for row in rows]

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(generations, best_fitness, label="best_fitness")
    ax.plot(generations, mean_fitness, label="mean_fitness", alpha=0.7)
    ax.set_xlabel("generation")
    ax.set_ylabel("fitness (lower is better)")
    ax.set_title(f"Run {run_id}")
    ax.legend()

    fig.tight_layout()
    fig.savefig(output)
    plt.close(fig)
    return output
