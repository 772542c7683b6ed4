from conftest import divorced, parent, person, spouse

from config import DEFAULT_CONFIG, LayoutConfig
from graph import build_graph
from layout import ClusterKind, cluster_row, layout_graph, order_pair
from models import Bounds, NodeRect


def check_layout(graph, layout, config=DEFAULT_CONFIG):
    """Structural properties every layout must have."""
    assert set(layout.rects) == set(graph.depth)

    rows = {}
    for rect in layout.rects.values():
        assert rect.y == layout.rows[rect.depth]
        rows.setdefault(rect.depth, []).append(rect)
    for rects in rows.values():
        rects.sort(key=lambda r: r.x)
        for left, right in zip(rects, rects[1:]):
            assert left.right <= right.x, f"{left.person_id} overlaps {right.person_id}"

    for union in layout.unions:
        a, b = layout.rects[union.partner_a], layout.rects[union.partner_b]
        assert a.y == b.y
        assert union.bar_y == a.y + config.bar_drop
        for child in union.children:
            assert layout.rects[child].y - a.y == config.row_height

    assert min(r.x for r in layout.rects.values()) == config.margin
    assert min(r.y for r in layout.rects.values()) == config.margin


def test_nuclear_family_coordinates(nuclear_family):
    graph = build_graph(*nuclear_family, "f")
    layout = layout_graph(graph, "f")

    check_layout(graph, layout)
    assert layout.rects["p1"] == NodeRect("p1", 95, 80, 140, 180, 1)
    assert layout.rects["p2"] == NodeRect("p2", 265, 80, 140, 180, 1)
    assert layout.rects["f"] == NodeRect("f", 80, 340, 140, 180, 0)
    assert layout.rects["s"] == NodeRect("s", 280, 340, 140, 180, 0)
    assert layout.rows == {1: 80, 0: 340}
    assert layout.bounds == Bounds(500, 600)
    assert [u.bar_y for u in layout.unions] == [280]


def test_children_centered_under_parents(nuclear_family):
    graph = build_graph(*nuclear_family, "f")
    rects = layout_graph(graph, "f").rects

    parents_mid = (rects["p1"].center_x + rects["p2"].center_x) / 2
    children_mid = (rects["f"].center_x + rects["s"].center_x) / 2
    assert parents_mid == children_mid


def test_ancestors_are_drawn_above_descendants(nuclear_family):
    people, relationships = nuclear_family
    people = people + [person("k", "Kim", born=2010)]
    relationships = relationships + [parent("f", "k")]

    graph = build_graph(people, relationships, "f")
    layout = layout_graph(graph, "f")

    check_layout(graph, layout)
    assert layout.rows[1] < layout.rows[0] < layout.rows[-1]


def test_married_child_keeps_spouse_alongside(nuclear_family):
    people, relationships = nuclear_family
    people = people + [person("g", "Gina", "Hart", 1981, "F")]
    relationships = relationships + [spouse("f", "g")]

    graph = build_graph(people, relationships, "f")
    layout = layout_graph(graph, "f")

    check_layout(graph, layout)
    f, g = layout.rects["f"], layout.rects["g"]
    assert f.y == g.y
    assert g.x - f.right == DEFAULT_CONFIG.spouse_gap


def test_blended_family_has_no_overlaps(blended_family):
    graph = build_graph(*blended_family, "c1")
    layout = layout_graph(graph, "c1")

    check_layout(graph, layout)
    assert len(layout.unions) == 3
    # Each remarried parent sits beside the new spouse, not the ex
    rects = layout.rects
    assert rects["q1"].x - rects["p1"].right == DEFAULT_CONFIG.spouse_gap
    assert rects["p2"].x - rects["q2"].right == DEFAULT_CONFIG.spouse_gap


def test_single_parent_child_sits_under_parent(single_parent_family):
    graph = build_graph(*single_parent_family, "y")
    layout = layout_graph(graph, "y")

    check_layout(graph, layout)
    assert layout.rects["x"].center_x == layout.rects["y"].center_x
    assert layout.unions == []


def test_divorced_pair_orders_by_year_then_reverse_name():
    people = [person("a", "Amy", born=1950), person("z", "Zed", born=1950)]

    graph = build_graph(people, [divorced("a", "z")], "a")
    layout = layout_graph(graph, "a")

    assert order_pair(graph, "a", "z", ClusterKind.DIVORCED) == ("z", "a")
    assert layout.rects["a"].x - layout.rects["z"].right == DEFAULT_CONFIG.divorced_gap


def test_married_pair_orders_by_year_then_name():
    people = [person("z", "Zed", born=1950), person("a", "Amy", born=1950)]

    graph = build_graph(people, [spouse("z", "a")], "z")
    layout = layout_graph(graph, "z")

    assert order_pair(graph, "z", "a", ClusterKind.COUPLE) == ("a", "z")
    assert layout.rects["z"].x - layout.rects["a"].right == DEFAULT_CONFIG.spouse_gap


def test_spouse_preferred_over_ex_when_clustering(blended_family):
    graph = build_graph(*blended_family, "c1")

    clusters = cluster_row(graph, ["q2", "p1", "p2", "q1"])

    assert [(c.members, c.kind) for c in clusters] == [
        (("q2", "p2"), ClusterKind.COUPLE),
        (("p1", "q1"), ClusterKind.COUPLE),
    ]


def test_layout_is_deterministic(blended_family):
    first = layout_graph(build_graph(*blended_family, "c1"), "c1")
    second = layout_graph(build_graph(*blended_family, "c1"), "c1")

    assert first == second
    assert list(first.rects) == list(second.rects)


def test_custom_geometry(nuclear_family):
    config = LayoutConfig(card_width=100, spouse_gap=20, margin=10)
    graph = build_graph(*nuclear_family, "f")
    layout = layout_graph(graph, "f", config)

    check_layout(graph, layout, config)
    assert layout.rects["p2"].x - layout.rects["p1"].right == 20
    assert all(r.width == 100 for r in layout.rects.values())


def test_empty_graph_gives_empty_layout():
    layout = layout_graph(build_graph([], [], "f"), "f")

    assert layout.rects == {}
    assert layout.unions == []
    assert layout.bounds == Bounds(0, 0)


def test_focus_alone():
    graph = build_graph([person("f", "Fay")], [], "f")
    layout = layout_graph(graph, "f")

    assert layout.rects == {"f": NodeRect("f", 80, 80, 140, 180, 0)}
    assert layout.bounds == Bounds(300, 340)


def test_second_pass_recenters_children_under_moved_parents():
    people = [
        person("gf1", "Gus", "Hill", 1920, "M"),
        person("gm1", "Gwen", "Hill", 1922, "F"),
        person("gf2", "Glen", "Ross", 1925, "M"),
        person("gm2", "Gina", "Ross", 1927, "F"),
        person("u", "Ugo", "Hill", 1948, "M"),
        person("f", "Fred", "Hill", 1950, "M"),
        person("m", "Mia", "Ross", 1952, "F"),
        person("k1", "Kai", "Hill", 1980, "M"),
        person("k2", "Kira", "Hill", 1983, "F"),
    ]
    relationships = [
        spouse("gf1", "gm1"),
        spouse("gf2", "gm2"),
        spouse("f", "m"),
        parent("gf1", "u"),
        parent("gm1", "u"),
        parent("gf1", "f"),
        parent("gm1", "f"),
        parent("gf2", "m"),
        parent("gm2", "m"),
        parent("f", "k1"),
        parent("m", "k1"),
        parent("f", "k2"),
        parent("m", "k2"),
    ]

    graph = build_graph(people, relationships, "k1")
    layout = layout_graph(graph, "k1")
    rects = layout.rects

    check_layout(graph, layout)

    def midpoint(*pids):
        return sum(rects[p].center_x for p in pids) / len(pids)

    # The uncle pushes the parents right in the first pass; the second pass
    # moves them under the paternal grandparents and the children with them.
    assert midpoint("u", "f") == midpoint("gf1", "gm1")
    assert midpoint("k1", "k2") == midpoint("f", "m")
    assert rects["f"].x - rects["u"].right == DEFAULT_CONFIG.cluster_gap
