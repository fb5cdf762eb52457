"""Chart builders for progress commands."""

from __future__ import annotations

import io
import math
from typing import Sequence

import matplotlib  # noqa: E402

matplotlib.use("Agg")  # noqa: E402
from matplotlib import pyplot as plt  # noqa: E402

from progression_bot.domain.progress import MetricProgress  # noqa: E402

__all__ = ["METRIC_TITLES", "build_progress_chart"]

METRIC_TITLES = {
    "standing_long_jump": "Standing long jump (cm)",
    "single_leg_jump_left": "Single-leg jump, left (cm)",
    "single_leg_jump_right": "Single-leg jump, right (cm)",
    "wall_sit": "Wall sit (s)",
    "high_plank": "High plank (s)",
    "bent_arm_hang": "Bent-arm hang (s)",
}


def _render_figure(fig) -> bytes:
    buffer = io.BytesIO()
    try:
        fig.tight_layout()
        fig.savefig(buffer, format="png", dpi=150)
    finally:
        plt.close(fig)
    buffer.seek(0)
    return buffer.getvalue()


def build_progress_chart(metrics: Sequence[MetricProgress]) -> bytes:
    """Return PNG with one line plot per testing metric."""

    if not metrics:
        raise ValueError("No testing results available for plotting")

    columns = 2 if len(metrics) > 1 else 1
    rows = math.ceil(len(metrics) / columns)
    fig, axes = plt.subplots(
        rows, columns, figsize=(6 * columns, 3.5 * rows), dpi=120, squeeze=False
    )
    for ax, metric in zip(axes.flat, metrics):
        labels = [point.label for point in metric.points]
        values = [point.value for point in metric.points]
        ax.plot(labels, values, color="#059669", marker="o", linewidth=2)
        title = METRIC_TITLES.get(metric.metric, metric.metric)
        change = metric.change_percentage
        if change is not None:
            title = f"{title}  {change:+.1f}%"
        ax.set_title(title)
        ax.grid(True, linestyle="--", linewidth=0.8, alpha=0.4)
        ax.tick_params(axis="x", rotation=30, labelsize=8)
    for ax in list(axes.flat)[len(metrics):]:
        ax.set_visible(False)
    return _render_figure(fig)
