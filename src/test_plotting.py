import matplotlib

matplotlib.use("Agg")

import matplotlib.patches as mpatches  # noqa: E402
from conftest import person  # noqa: E402
from matplotlib.colors import to_rgba  # noqa: E402
from matplotlib.path import Path as MplPath  # noqa: E402

from chart import build_chart  # noqa: E402
from connectors import rounded_path  # noqa: E402
from models import BRANCH_COLORS  # noqa: E402
from plotting import card_label, draw_chart, plot_chart, sex_color, to_mpl_path  # noqa: E402


def test_sex_color():
    assert sex_color("M") == "lightblue"
    assert sex_color("F") == "lightpink"
    assert sex_color(None) == "lightgray"


def test_card_label():
    p = person("a", "Ann", "Lee", born=1950)
    assert card_label(p) == "Ann\nLee\n1950-"


def test_to_mpl_path_codes():
    mpl_path = to_mpl_path(rounded_path([(0, 0), (0, 100), (100, 100)], 12))

    assert list(mpl_path.codes) == [
        MplPath.MOVETO,
        MplPath.LINETO,
        MplPath.CURVE3,
        MplPath.CURVE3,
        MplPath.LINETO,
    ]
    assert to_mpl_path(rounded_path([(1, 1)], 12)) is None


def test_draw_chart_has_card_per_person(nuclear_family):
    chart = build_chart(*nuclear_family, "f")
    fig = draw_chart(chart)

    ax = fig.axes[0]
    cards = [p for p in ax.patches if isinstance(p, mpatches.FancyBboxPatch)]
    markers = [p for p in ax.patches if isinstance(p, mpatches.Circle)]
    assert len(cards) == 4
    assert len(markers) == 1
    assert len(ax.texts) == 4


def test_plot_chart_writes_png(nuclear_family, tmp_path, capsys):
    chart = build_chart(*nuclear_family, "f")
    output = tmp_path / "chart.png"

    plot_chart(chart, output)

    assert output.exists()
    assert output.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
    assert f"Chart saved to {output}" in capsys.readouterr().out


def test_empty_chart_still_draws(tmp_path):
    chart = build_chart([], [], "f")
    output = tmp_path / "empty.svg"

    plot_chart(chart, output)

    assert output.exists()


def test_connectors_drawn_in_branch_colors(blended_family):
    chart = build_chart(*blended_family, "c1")
    fig = draw_chart(chart)

    strokes = {
        p.get_edgecolor() for p in fig.axes[0].patches if isinstance(p, mpatches.PathPatch)
    }
    assert strokes == {to_rgba(BRANCH_COLORS[0]), to_rgba(BRANCH_COLORS[2])}
