"""Preview rendering of a laid-out family chart."""

from pathlib import Path

import matplotlib.patches as mpatches
from matplotlib.figure import Figure
from matplotlib.path import Path as MplPath

from chart import Chart
from connectors import ConnectorPath, MarkerStyle, UnionConnector

MARKER_COLORS = {
    MarkerStyle.MARRIED: "#E91E63",
    MarkerStyle.DIVORCED: "#6B7280",
    MarkerStyle.UNMARRIED: "#F59E0B",
}
PATH_CODES = {"M": [MplPath.MOVETO], "L": [MplPath.LINETO], "Q": [MplPath.CURVE3, MplPath.CURVE3]}


def sex_color(sex: str | None) -> str:
    if sex == "M":
        return "lightblue"
    elif sex == "F":
        return "lightpink"
    return "lightgray"


def card_label(person) -> str:
    # Extract years from dates (assume format like "YYYY-MM-DD" or just "YYYY")
    birth_year = person.birth_date[:4] if person.birth_date else ""
    death_year = person.death_date[:4] if person.death_date else ""
    return f"{person.given_name or ''}\n{person.surname or ''}\n{birth_year}-{death_year}"


def to_mpl_path(path: ConnectorPath) -> MplPath | None:
    vertices = []
    codes = []
    for name, *points in path.commands:
        vertices.extend(tuple(p) for p in points)
        codes.extend(PATH_CODES[name])
    if len(vertices) < 2:
        return None
    return MplPath(vertices, codes)


def _connector_paths(connector) -> list[ConnectorPath]:
    paths = []
    if isinstance(connector, UnionConnector):
        paths.extend(connector.stems)
        paths.append(connector.bar)
    for rail in connector.rails:
        paths.append(rail.trunk)
        paths.append(rail.span)
        paths.extend(rail.drops)
    return paths


def draw_chart(chart: Chart) -> Figure:
    """Draw every card and connector of `chart` onto a new matplotlib figure."""
    bounds = chart.layout.bounds
    width = max(bounds.width, 1) / 100
    height = max(bounds.height, 1) / 100
    fig = Figure(figsize=(width, height))
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, max(bounds.width, 1))
    ax.set_ylim(max(bounds.height, 1), 0)  # canvas y grows downward
    ax.set_aspect("equal")
    ax.axis("off")

    for connector in chart.connectors:
        for path in _connector_paths(connector):
            mpl_path = to_mpl_path(path)
            if mpl_path is not None:
                ax.add_patch(
                    mpatches.PathPatch(mpl_path, facecolor="none", edgecolor=connector.color, linewidth=1.5)
                )
        if isinstance(connector, UnionConnector):
            left, right = connector.bar.points[0], connector.bar.points[-1]
            ax.add_patch(
                mpatches.Circle(
                    ((left.x + right.x) / 2, left.y),
                    radius=6,
                    facecolor=MARKER_COLORS[connector.marker],
                    edgecolor="white",
                    zorder=3,
                )
            )

    for pid, rect in chart.layout.rects.items():
        person = chart.graph.people[pid]
        ax.add_patch(
            mpatches.FancyBboxPatch(
                (rect.x, rect.y),
                rect.width,
                rect.height,
                boxstyle="round,pad=0,rounding_size=12",
                facecolor=sex_color(person.sex),
                edgecolor="#1F2328" if pid == chart.layout.focus_id else "#D9D9DF",
                linewidth=2 if pid == chart.layout.focus_id else 1,
                zorder=2,
            )
        )
        ax.text(
            rect.center_x,
            rect.y + rect.height / 2,
            card_label(person),
            ha="center",
            va="center",
            fontsize=8,
            zorder=4,
        )

    return fig


def plot_chart(chart: Chart, output_path: Path | None = None):
    """
    Render the chart as a preview image.

    Args:
        chart: Output of build_chart
        output_path: Path to save the output image (PNG, SVG or PDF). If None,
            displays interactively.
    """
    fig = draw_chart(chart)

    if output_path:
        # Determine format from extension
        ext = output_path.suffix.lower().lstrip(".")
        if ext not in ("png", "svg", "pdf"):
            ext = "png"

        fig.savefig(str(output_path), format=ext, dpi=100)
        print(f"Chart saved to {output_path}")
    else:
        # Save to temporary file and display
        import tempfile

        import matplotlib.image as mpimg
        import matplotlib.pyplot as plt

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            fig.savefig(f.name, format="png", dpi=100)
            img = mpimg.imread(f.name)
            plt.figure(figsize=fig.get_size_inches())
            plt.imshow(img)
            plt.axis("off")
            plt.tight_layout()
            plt.show()
