"""Report generation utilities."""

from .charts import METRIC_TITLES, build_progress_chart

__all__ = ["METRIC_TITLES", "build_progress_chart"]
