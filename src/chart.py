"""Run the graph -> layout -> connector pipeline in one call."""

from dataclasses import dataclass, field

from config import DEFAULT_CONFIG, LayoutConfig
from connectors import build_connectors
from graph import build_graph
from layout import layout_graph
from models import FamilyGraph, Person, Relationship, TreeLayout


@dataclass
class Chart:
    graph: FamilyGraph
    layout: TreeLayout
    connectors: list = field(default_factory=list)
    config: LayoutConfig = DEFAULT_CONFIG


def build_chart(
    people: list[Person],
    relationships: list[Relationship],
    focus_id,
    max_depth: int | None = None,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> Chart:
    """Build the graph, lay it out and route its connectors."""
    graph = build_graph(people, relationships, focus_id, max_depth=max_depth)
    layout = layout_graph(graph, focus_id, config)
    return Chart(
        graph=graph,
        layout=layout,
        connectors=build_connectors(graph, layout, config),
        config=config,
    )
