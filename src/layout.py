"""Generational row layout for a family graph."""

import logging
from dataclasses import dataclass, replace
from enum import Enum

from config import DEFAULT_CONFIG, LayoutConfig
from models import (
    Bounds,
    FamilyGraph,
    FamilyUnion,
    NodeRect,
    ParentGroup,
    TreeLayout,
    person_sort_key,
)

logger = logging.getLogger(__name__)


class ClusterKind(str, Enum):
    SINGLE = "single"
    COUPLE = "couple"
    DIVORCED = "divorced"
    PARTNERS = "partners"


@dataclass(frozen=True)
class Cluster:
    """People packed side by side as one unit of a row, left to right."""

    members: tuple
    kind: ClusterKind = ClusterKind.SINGLE

    def gap(self, config: LayoutConfig) -> float:
        if self.kind == ClusterKind.DIVORCED:
            return config.divorced_gap
        return config.spouse_gap

    def width(self, config: LayoutConfig) -> float:
        n = len(self.members)
        return n * config.card_width + (n - 1) * self.gap(config)

    def offset_of(self, pid, config: LayoutConfig) -> float:
        return self.members.index(pid) * (config.card_width + self.gap(config))


def order_pair(graph: FamilyGraph, a, b, kind: ClusterKind) -> tuple:
    """
    Left-to-right order of a couple.

    Married and unmarried pairs go by ascending birth year then ascending name.
    Divorced pairs go by ascending birth year then descending name.
    """
    people = [graph.people[a], graph.people[b]]
    if kind == ClusterKind.DIVORCED:
        by_name = sorted(people, key=lambda p: person_sort_key(p)[1:], reverse=True)
        ordered = sorted(by_name, key=lambda p: person_sort_key(p)[0])
    else:
        ordered = sorted(people, key=person_sort_key)
    return tuple(p.id for p in ordered)


def cluster_row(graph: FamilyGraph, members: list) -> list[Cluster]:
    """
    Pair each person of a row with at most one partner from the same row.

    `members` must already be in person order. A spouse is preferred, then a
    divorced partner, then an unmarried partner; anyone left is a singleton.
    """
    partner_maps = (
        (graph.spouses, ClusterKind.COUPLE),
        (graph.divorced, ClusterKind.DIVORCED),
        (graph.unmarried, ClusterKind.PARTNERS),
    )
    clustered: set = set()
    clusters = []

    for pid in members:
        if pid in clustered:
            continue
        cluster = Cluster((pid,))
        for partners, kind in partner_maps:
            candidates = partners.get(pid, set())
            partner = next((m for m in members if m in candidates and m not in clustered), None)
            if partner is not None:
                cluster = Cluster(order_pair(graph, pid, partner, kind), kind)
                break
        clustered.update(cluster.members)
        clusters.append(cluster)

    return clusters


def _place(cluster: Cluster, left: float, xs: dict, config: LayoutConfig):
    for pid in cluster.members:
        xs[pid] = left + cluster.offset_of(pid, config)


def _first_pass_key(graph: FamilyGraph, cluster: Cluster, xs: dict, config: LayoutConfig):
    # Under the mean of already placed parents; parentless clusters go last
    centers = [
        xs[p] + config.card_width / 2
        for m in cluster.members
        for p in graph.parents_of.get(m, [])
        if p in xs
    ]
    oldest = min(person_sort_key(graph.people[m]) for m in cluster.members)
    if centers:
        return (0, sum(centers) / len(centers), oldest)
    return (1, 0.0, oldest)


def _group_midpoint(group: ParentGroup, xs: dict, config: LayoutConfig) -> float | None:
    if isinstance(group, FamilyUnion):
        if group.partner_a not in xs or group.partner_b not in xs:
            return None
        return (xs[group.partner_a] + xs[group.partner_b]) / 2 + config.card_width / 2
    if group.parent_id not in xs:
        return None
    return xs[group.parent_id] + config.card_width / 2


def _recenter(
    children: list, midpoint: float, cluster_of: dict, moved: set, xs: dict, config: LayoutConfig
):
    """Center the span of `children` under `midpoint`, moving their whole clusters."""
    block: list[Cluster] = []
    for child in children:
        cluster = cluster_of[child]
        if cluster not in moved and cluster not in block:
            block.append(cluster)
    if not block:
        return

    lefts = {}
    cursor = 0.0
    for cluster in block:
        lefts[cluster] = cursor
        cursor += cluster.width(config) + config.cluster_gap

    centers = [
        lefts[cluster_of[c]] + cluster_of[c].offset_of(c, config) + config.card_width / 2
        for c in children
        if cluster_of[c] in lefts
    ]
    shift = midpoint - (min(centers) + max(centers)) / 2
    for cluster in block:
        _place(cluster, lefts[cluster] + shift, xs, config)
        moved.add(cluster)


def _resolve_overlaps(clusters: list[Cluster], xs: dict, config: LayoutConfig):
    """Sweep a row left to right, pushing clusters right until gaps are restored."""
    right = None
    for cluster in sorted(clusters, key=lambda c: xs[c.members[0]]):
        left = xs[cluster.members[0]]
        if right is not None and left < right + config.cluster_gap:
            left = right + config.cluster_gap
            _place(cluster, left, xs, config)
        right = left + cluster.width(config)


def layout_graph(
    graph: FamilyGraph, focus_id, config: LayoutConfig = DEFAULT_CONFIG
) -> TreeLayout:
    """
    Place every person of `graph` on a generational row.

    Rows run from the oldest generation at the top down to the youngest. Each
    row is packed into clusters (couples stay adjacent) and centered; a second
    pass re-centers every union's children under the union's final midpoint
    and then sweeps the row so nothing overlaps.

    Args:
        graph: Output of build_graph
        focus_id: The person the graph was built around
        config: Geometry profile

    Returns:
        A TreeLayout translated so its top-left content sits at config.margin
    """
    if graph.is_empty() or focus_id not in graph.depth:
        return TreeLayout(focus_id=focus_id)

    def sort_key(pid):
        return person_sort_key(graph.people[pid])

    members_by_depth: dict[int, list] = {}
    for pid, depth in graph.depth.items():
        if pid in graph.people:
            members_by_depth.setdefault(depth, []).append(pid)

    depths = sorted(members_by_depth, reverse=True)
    top_depth = depths[0]
    row_top = {d: (top_depth - d) * config.row_height for d in depths}

    xs: dict = {}
    row_clusters: dict[int, list[Cluster]] = {}
    cluster_of: dict = {}

    # First pass: pack each row around the canvas center
    for depth in depths:
        clusters = cluster_row(graph, sorted(members_by_depth[depth], key=sort_key))
        clusters.sort(key=lambda c: _first_pass_key(graph, c, xs, config))

        row_width = sum(c.width(config) for c in clusters)
        row_width += config.cluster_gap * (len(clusters) - 1)
        left = config.center_x - row_width / 2
        for cluster in clusters:
            _place(cluster, left, xs, config)
            left += cluster.width(config) + config.cluster_gap
            for pid in cluster.members:
                cluster_of[pid] = cluster
        row_clusters[depth] = clusters

    groups_by_depth: dict[int, list[ParentGroup]] = {}
    for group in [*graph.unions, *graph.single_parent_groups]:
        groups_by_depth.setdefault(group.depth, []).append(group)

    # Second pass: parents are final once their own row has been swept
    for depth in depths:
        child_depth = depth - 1
        if child_depth not in row_clusters:
            continue

        moved: set = set()
        for group in groups_by_depth.get(depth, []):
            midpoint = _group_midpoint(group, xs, config)
            if midpoint is None:
                continue
            children = [c for c in group.children if graph.depth.get(c) == child_depth and c in xs]
            if children:
                _recenter(children, midpoint, cluster_of, moved, xs, config)

        _resolve_overlaps(row_clusters[child_depth], xs, config)

    dx = config.margin - min(xs.values())
    dy = config.margin

    rects = {}
    for depth in depths:
        for pid in sorted(members_by_depth[depth], key=lambda p: xs[p]):
            rects[pid] = NodeRect(
                person_id=pid,
                x=xs[pid] + dx,
                y=row_top[depth] + dy,
                width=config.card_width,
                height=config.card_height,
                depth=depth,
            )

    rows = {d: row_top[d] + dy for d in depths}
    unions = [
        replace(u, bar_y=rows[u.depth] + config.bar_drop)
        for u in graph.unions
        if u.partner_a in rects and u.partner_b in rects
    ]
    bounds = Bounds(
        width=max(r.right for r in rects.values()) + config.margin,
        height=max(r.bottom for r in rects.values()) + config.margin,
    )
    logger.debug(
        "Laid out %d people in %d rows (%gx%g)", len(rects), len(rows), bounds.width, bounds.height
    )

    return TreeLayout(focus_id=focus_id, rects=rects, unions=unions, rows=rows, bounds=bounds)
