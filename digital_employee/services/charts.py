"""
Chart rendering for statement reports.
"""

import colorsys
import io

import matplotlib

matplotlib.use("Agg")

from matplotlib.figure import Figure  # noqa: E402

from digital_employee.core.logging import get_logger  # noqa: E402
from digital_employee.core.schemas import SpendingCategory  # noqa: E402

log = get_logger(__name__)

BASE_COLORS = [
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF",
    "#FF9F40", "#FF6384", "#C9CBCF", "#4BC0C0", "#FF9F40",
]


def generate_colors(count: int) -> list[str]:
    """Distinct colors for chart segments, extending the palette with HSL hues."""
    if count <= len(BASE_COLORS):
        return BASE_COLORS[:count]

    colors = list(BASE_COLORS)
    for i in range(len(BASE_COLORS), count):
        r, g, b = colorsys.hls_to_rgb(i / count, 0.6, 0.7)
        colors.append(f"#{int(r * 255):02X}{int(g * 255):02X}{int(b * 255):02X}")
    return colors


class ChartRenderer:
    """Renders spending breakdowns as PNG images."""

    def __init__(self, width: int = 800, height: int = 600, dpi: int = 100, currency: str = "AED"):
        self.width = width
        self.height = height
        self.dpi = dpi
        self.currency = currency

    def pie_chart(self, categories: list[SpendingCategory]) -> bytes:
        """
        Render a pie chart with one slice per category.

        Returns:
            PNG image bytes
        """
        log.info("pie_chart_rendering", categories=len(categories))

        labels = [cat.category for cat in categories]
        values = [max(cat.amount, 0.0) for cat in categories]
        total = sum(values)

        # Rendered off-thread, so no pyplot
        fig = Figure(figsize=(self.width / self.dpi, self.height / self.dpi), dpi=self.dpi, facecolor="white")
        ax = fig.add_subplot()
        ax.set_title("Spending by Category", fontsize=20, fontweight="bold", pad=20)

        if total > 0:
            wedges, _ = ax.pie(
                values,
                colors=generate_colors(len(values)),
                startangle=90,
                counterclock=False,
                wedgeprops={"linewidth": 1, "edgecolor": "#fff"},
            )
            legend = [
                f"{label}: {self.currency} {value:.2f} ({value / total * 100:.1f}%)"
                for label, value in zip(labels, values)
            ]
            ax.legend(
                wedges,
                legend,
                loc="upper center",
                bbox_to_anchor=(0.5, -0.02),
                ncol=2,
                fontsize=11,
                frameon=False,
            )
            ax.axis("equal")
        else:
            ax.text(0.5, 0.5, "No spending data", ha="center", va="center", fontsize=14)
            ax.axis("off")

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", bbox_inches="tight")
        log.info("pie_chart_rendered", size_bytes=buffer.tell())
        return buffer.getvalue()
