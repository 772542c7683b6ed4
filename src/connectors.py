"""Connector geometry between placed cards: marriage bars, rails and drops."""

import logging
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from config import DEFAULT_CONFIG, LayoutConfig
from models import BRANCH_COLORS, FamilyGraph, NodeRect, TreeLayout

logger = logging.getLogger(__name__)


class Point(NamedTuple):
    x: float
    y: float


class MarkerStyle(str, Enum):
    MARRIED = "married"
    DIVORCED = "divorced"
    UNMARRIED = "unmarried"


def _fmt(value: float) -> str:
    text = f"{round(value, 2) + 0.0:.2f}".rstrip("0").rstrip(".")
    return text or "0"


@dataclass(frozen=True)
class ConnectorPath:
    """
    An orthogonal polyline with rounded corners.

    `commands` holds ("M", point), ("L", point) and ("Q", control, end) steps;
    `radii` holds the radius used at each interior corner.
    """

    points: tuple
    radii: tuple
    commands: tuple

    @property
    def d(self) -> str:
        """SVG path data."""
        parts = []
        for name, *points in self.commands:
            coords = " ".join(f"{_fmt(p.x)} {_fmt(p.y)}" for p in points)
            parts.append(f"{name} {coords}")
        return " ".join(parts)


@dataclass(frozen=True)
class Rail:
    """Shared horizontal line above one row of a group's children."""

    depth: int
    y: float
    span: ConnectorPath
    trunk: ConnectorPath
    drops: tuple


@dataclass(frozen=True)
class UnionConnector:
    union_id: str
    partner_a: object
    partner_b: object
    marker: MarkerStyle
    ports: tuple
    stems: tuple
    bar: ConnectorPath
    rails: tuple
    color: str = BRANCH_COLORS[0]


@dataclass(frozen=True)
class SingleParentConnector:
    group_id: str
    parent_id: object
    port: Point
    rails: tuple
    color: str = BRANCH_COLORS[0]


Connector = UnionConnector | SingleParentConnector


def _simplify(points) -> list[Point]:
    simplified: list[Point] = []
    for x, y in points:
        p = Point(x, y)
        if simplified and simplified[-1] == p:
            continue
        if len(simplified) >= 2:
            a, b = simplified[-2], simplified[-1]
            same_line = (a.x == b.x == p.x and min(a.y, p.y) <= b.y <= max(a.y, p.y)) or (
                a.y == b.y == p.y and min(a.x, p.x) <= b.x <= max(a.x, p.x)
            )
            if same_line:
                simplified[-1] = p
                continue
        simplified.append(p)
    return simplified


def _length(a: Point, b: Point) -> float:
    return abs(b.x - a.x) + abs(b.y - a.y)


def _toward(origin: Point, target: Point, distance: float) -> Point:
    dx = (target.x > origin.x) - (target.x < origin.x)
    dy = (target.y > origin.y) - (target.y < origin.y)
    return Point(origin.x + dx * distance, origin.y + dy * distance)


def rounded_path(points, radius: float) -> ConnectorPath:
    """
    Build an orthogonal path through `points` with rounded corners.

    Repeated and collinear points are dropped. The radius at each corner is
    capped at half of the shorter of its two segments, so neighbouring curves
    never cross.

    Raises:
        ValueError: if there are no points or a segment is not axis-aligned
    """
    pts = _simplify(points)
    if not pts:
        raise ValueError("A connector path needs at least one point")
    for a, b in zip(pts, pts[1:]):
        if a.x != b.x and a.y != b.y:
            raise ValueError(f"Connector segment {tuple(a)} -> {tuple(b)} is not axis-aligned")

    commands: list[tuple] = [("M", pts[0])]
    radii = []
    for prev, corner, nxt in zip(pts, pts[1:], pts[2:]):
        r = min(radius, _length(prev, corner) / 2, _length(corner, nxt) / 2)
        radii.append(r)
        commands.append(("L", _toward(corner, prev, r)))
        commands.append(("Q", corner, _toward(corner, nxt, r)))
    if len(pts) > 1:
        commands.append(("L", pts[-1]))

    return ConnectorPath(points=tuple(pts), radii=tuple(radii), commands=tuple(commands))


def top_port(rect: NodeRect, config: LayoutConfig = DEFAULT_CONFIG) -> Point:
    return Point(rect.center_x, rect.y - config.port_offset)


def bottom_port(rect: NodeRect, config: LayoutConfig = DEFAULT_CONFIG) -> Point:
    return Point(rect.center_x, rect.bottom + config.port_offset)


def rail_shift(group_id: str, config: LayoutConfig = DEFAULT_CONFIG) -> float:
    """Small stable vertical offset so rails of unrelated groups do not merge."""
    digest = zlib.crc32(str(group_id).encode("utf-8"))
    magnitude = config.rail_stagger * (1 + (digest >> 1) % config.rail_stagger_steps)
    return magnitude if digest % 2 == 0 else -magnitude


def _candidate_shifts(base: float, config: LayoutConfig):
    """Stagger slots nearest to `base` first, halving the step once every slot is tried."""
    if config.rail_stagger == 0:
        yield 0
        return
    divisions = 1
    while True:
        step = config.rail_stagger / divisions
        count = config.rail_stagger_steps * divisions
        yield from sorted((step * k for k in range(-count, count + 1)), key=lambda s: (abs(s - base), s))
        divisions *= 2


def assign_rail_shifts(requests: list[tuple], config: LayoutConfig = DEFAULT_CONFIG) -> dict:
    """
    Pick the vertical offset of every rail.

    `requests` holds (group id, child depth, left x, right x) for each rail.
    A rail keeps its own rail_shift unless another rail of the same child row
    already sits at that y with an overlapping span, in which case it takes
    the nearest free slot. Rails are settled in (depth, own shift, id) order.

    Returns:
        (group id, child depth) -> shift
    """
    taken: dict[int, list[tuple]] = {}
    shifts = {}
    ordered = sorted(requests, key=lambda r: (-r[1], rail_shift(r[0], config), str(r[0])))
    for group_id, depth, left, right in ordered:
        row = taken.setdefault(depth, [])
        blocked = {shift for shift, lo, hi in row if lo <= right and left <= hi}
        shift = rail_shift(group_id, config)
        for shift in _candidate_shifts(shift, config):
            if shift not in blocked:
                break
        if shift != rail_shift(group_id, config):
            logger.debug("Moved rail of %s at depth %d to shift %g", group_id, depth, shift)
        row.append((shift, left, right))
        shifts[group_id, depth] = shift
    return shifts


def marker_for(graph: FamilyGraph, a, b) -> MarkerStyle:
    if b in graph.divorced.get(a, set()):
        return MarkerStyle.DIVORCED
    if b in graph.unmarried.get(a, set()):
        return MarkerStyle.UNMARRIED
    return MarkerStyle.MARRIED


def child_rows(children, layout: TreeLayout) -> dict[int, list[NodeRect]]:
    """Placed children grouped by depth, each row left to right."""
    rows: dict[int, list[NodeRect]] = {}
    for child in children:
        rect = layout.rects.get(child)
        if rect is not None:
            rows.setdefault(rect.depth, []).append(rect)
    return {depth: sorted(rects, key=lambda r: r.x) for depth, rects in rows.items()}


def rail_requests(
    group_id: str, origin: Point, children, layout: TreeLayout, config: LayoutConfig
) -> list[tuple]:
    """(group id, depth, left x, right x) for each rail the group will draw."""
    requests = []
    for depth, rects in child_rows(children, layout).items():
        y = layout.rows[depth] - config.rail_offset + rail_shift(group_id, config)
        if y <= origin.y:
            continue
        xs = [origin.x] + [r.center_x for r in rects]
        requests.append((group_id, depth, min(xs), max(xs)))
    return requests


def build_rails(
    group_id: str,
    origin: Point,
    children,
    layout: TreeLayout,
    config: LayoutConfig,
    shifts: dict | None = None,
) -> tuple:
    """
    One rail per child row, fed by a vertical trunk from `origin`.

    `shifts` maps (group id, depth) to the offset chosen by assign_rail_shifts;
    rows missing from it use the group's own rail_shift.
    """
    shifts = shifts or {}
    radius = config.corner_radius
    rails = []
    rows = child_rows(children, layout)
    for depth in sorted(rows, reverse=True):
        shift = shifts.get((group_id, depth), rail_shift(group_id, config))
        y = layout.rows[depth] - config.rail_offset + shift
        if y <= origin.y:
            logger.debug("Skipping rail of %s at depth %d: row is not below its parents", group_id, depth)
            continue

        rects = rows[depth]
        xs = [origin.x] + [r.center_x for r in rects]
        foot = Point(origin.x, y)
        rails.append(
            Rail(
                depth=depth,
                y=y,
                span=rounded_path([Point(min(xs), y), Point(max(xs), y)], radius),
                trunk=rounded_path([origin, foot], radius),
                drops=tuple(
                    rounded_path([foot, Point(r.center_x, y), top_port(r, config)], radius)
                    for r in rects
                ),
            )
        )
    return tuple(rails)


def build_connectors(
    graph: FamilyGraph, layout: TreeLayout, config: LayoutConfig = DEFAULT_CONFIG
) -> list:
    """
    Compute the stroke geometry for every union and single-parent group.

    Rails of different groups that share a child row and overlap on x always
    get different y values.

    Args:
        graph: Output of build_graph
        layout: Output of layout_graph for the same graph and config
        config: Geometry profile used for the layout

    Returns:
        UnionConnector and SingleParentConnector descriptors, unions first
    """
    radius = config.corner_radius

    # Each entry: (group, origin point, extra union fields or None)
    sources = []
    for union in layout.unions:
        rect_a = layout.rects.get(union.partner_a)
        rect_b = layout.rects.get(union.partner_b)
        if rect_a is None or rect_b is None:
            continue
        bar_y = union.bar_y if union.bar_y is not None else rect_a.y + config.bar_drop
        port_a = bottom_port(rect_a, config)
        port_b = bottom_port(rect_b, config)
        left, right = sorted([port_a.x, port_b.x])
        midpoint = Point((left + right) / 2, bar_y)
        sources.append((union, midpoint, (port_a, port_b, left, right, bar_y)))

    for group in graph.single_parent_groups:
        rect = layout.rects.get(group.parent_id)
        if rect is not None:
            sources.append((group, bottom_port(rect, config), None))

    requests = []
    for group, origin, _ in sources:
        requests.extend(rail_requests(group.id, origin, group.children, layout, config))
    shifts = assign_rail_shifts(requests, config)

    connectors: list = []
    for group, origin, union_parts in sources:
        rails = build_rails(group.id, origin, group.children, layout, config, shifts)
        if union_parts is None:
            if rails:
                connectors.append(
                    SingleParentConnector(
                        group_id=group.id,
                        parent_id=group.parent_id,
                        port=origin,
                        rails=rails,
                        color=graph.branch_color(group.parent_id),
                    )
                )
            continue

        port_a, port_b, left, right, bar_y = union_parts
        connectors.append(
            UnionConnector(
                union_id=group.id,
                partner_a=group.partner_a,
                partner_b=group.partner_b,
                marker=marker_for(graph, group.partner_a, group.partner_b),
                ports=(port_a, port_b),
                stems=(
                    rounded_path([port_a, Point(port_a.x, bar_y)], radius),
                    rounded_path([port_b, Point(port_b.x, bar_y)], radius),
                ),
                bar=rounded_path([Point(left, bar_y), Point(right, bar_y)], radius),
                rails=rails,
                color=graph.branch_color(group.partner_a),
            )
        )

    logger.debug("Built %d connectors", len(connectors))
    return connectors
