"""Optional chart rendering for dashboard aggregates.

Chart data is plain :class:`ChartSpec` values built from a
:class:`~homecare.queries.DashboardSummary`. Turning specs into figures is the
job of a :class:`ChartBackend`; the plotly backend is only offered when plotly
is installed, and without a backend charts are skipped.
"""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Protocol, Sequence

from .ops import StructuredLogger
from .queries import DashboardSummary

ChartKind = Literal["bar", "line", "doughnut"]

DEFAULT_TEMPLATE = "plotly_white"
DEFAULT_COLOR_SEQUENCE = ["#2f6feb", "#16a34a", "#f59e0b", "#dc2626", "#9467bd", "#8c564b"]


@dataclass(frozen=True, slots=True)
class ChartSpec:
    kind: ChartKind
    title: str
    labels: Sequence[str] = field(default_factory=tuple)
    values: Sequence[float] = field(default_factory=tuple)


class ChartBackend(Protocol):
    name: str

    def render(self, spec: ChartSpec) -> Any:
        ...


def dashboard_charts(summary: DashboardSummary) -> List[ChartSpec]:
    return [
        ChartSpec(
            kind="doughnut",
            title="Financial Overview",
            labels=("Health Expenses", "Education Fees", "Annual Meals"),
            values=(float(summary.health_bills), float(summary.education_fees), float(summary.annual_meals)),
        ),
        ChartSpec(
            kind="bar",
            title="Children Demographics",
            labels=tuple(summary.age_groups),
            values=tuple(float(count) for count in summary.age_groups.values()),
        ),
        ChartSpec(
            kind="line",
            title="Monthly Donation Trends",
            labels=tuple(bucket.label for bucket in summary.monthly_donations),
            values=tuple(float(bucket.amount) for bucket in summary.monthly_donations),
        ),
    ]


class PlotlyBackend:
    """Render chart specs as plotly figures."""

    name = "plotly"

    def render(self, spec: ChartSpec) -> Any:
        import plotly.graph_objects as go

        labels = list(spec.labels)
        values = list(spec.values)
        if spec.kind == "doughnut":
            trace = go.Pie(labels=labels, values=values, hole=0.5)
        elif spec.kind == "line":
            trace = go.Scatter(x=labels, y=values, mode="lines+markers")
        else:
            trace = go.Bar(x=labels, y=values)
        fig = go.Figure(data=[trace])
        fig.update_layout(
            template=DEFAULT_TEMPLATE,
            colorway=DEFAULT_COLOR_SEQUENCE,
            title=spec.title,
            margin=dict(l=40, r=20, t=60, b=40),
        )
        return fig


def load_backend() -> Optional[ChartBackend]:
    if importlib.util.find_spec("plotly") is None:
        return None
    return PlotlyBackend()


def render_charts(
    specs: Sequence[ChartSpec],
    backend: Optional[ChartBackend],
    *,
    logger: StructuredLogger | None = None,
) -> List[Any]:
    if backend is None:
        if logger is not None:
            logger.log("charts_skipped", count=len(specs))
        return []
    return [backend.render(spec) for spec in specs]


__all__ = [
    "ChartBackend",
    "ChartSpec",
    "PlotlyBackend",
    "dashboard_charts",
    "load_backend",
    "render_charts",
]
