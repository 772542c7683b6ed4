"""
1) Load people and relationship records from a JSON file.
2) Build the family graph around a focus person and report diagnostics.
3) Lay the graph out on generational rows.
4) Route the connectors between the placed cards.
5) Plot a preview and/or dump the geometry as JSON.
"""

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from chart import Chart, build_chart
from config import DEFAULT_CONFIG, LayoutConfig
from connectors import ConnectorPath, Rail, UnionConnector
from models import Person, Relationship, RelationshipType


# ============================================================================
# 1) Load records
# ============================================================================


def load_family(path: Path) -> tuple[list[Person], list[Relationship]]:
    """Read `{"people": [...], "relationships": [...]}` records from a JSON file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))

    try:
        persons = [Person(**record) for record in data.get("people", [])]
        relationships = [
            Relationship(
                person1_id=record["person1_id"],
                person2_id=record["person2_id"],
                relationship_type=RelationshipType(record["relationship_type"]),
            )
            for record in data.get("relationships", [])
        ]
    except (TypeError, KeyError, ValueError) as e:
        raise ValueError(f"Malformed family record in {path}: {e}") from e

    return persons, relationships


def load_config(path: Path | None) -> LayoutConfig:
    if path is None:
        return DEFAULT_CONFIG
    return LayoutConfig.from_mapping(json.loads(Path(path).read_text(encoding="utf-8")))


def resolve_focus(persons: list[Person], focus: str):
    """Match a command-line focus id against person ids of any type."""
    return next((p.id for p in persons if str(p.id) == focus), focus)


# ============================================================================
# 5) Export geometry
# ============================================================================


def _path_dict(path: ConnectorPath) -> dict:
    return {"points": [list(p) for p in path.points], "d": path.d}


def _rail_dict(rail: Rail) -> dict:
    return {
        "depth": rail.depth,
        "y": rail.y,
        "span": _path_dict(rail.span),
        "trunk": _path_dict(rail.trunk),
        "drops": [_path_dict(d) for d in rail.drops],
    }


def _connector_dict(connector) -> dict:
    if isinstance(connector, UnionConnector):
        return {
            "type": "union",
            "id": connector.union_id,
            "partners": [connector.partner_a, connector.partner_b],
            "marker": connector.marker.value,
            "color": connector.color,
            "ports": [list(p) for p in connector.ports],
            "stems": [_path_dict(s) for s in connector.stems],
            "bar": _path_dict(connector.bar),
            "rails": [_rail_dict(r) for r in connector.rails],
        }
    return {
        "type": "single_parent",
        "id": connector.group_id,
        "parent": connector.parent_id,
        "port": list(connector.port),
        "color": connector.color,
        "rails": [_rail_dict(r) for r in connector.rails],
    }


def chart_to_dict(chart: Chart) -> dict:
    layout = chart.layout
    return {
        "focus_id": layout.focus_id,
        "bounds": asdict(layout.bounds),
        "rows": {str(depth): y for depth, y in layout.rows.items()},
        "nodes": [asdict(rect) for rect in layout.rects.values()],
        "connectors": [_connector_dict(c) for c in chart.connectors],
        "diagnostics": [
            {"kind": d.kind.value, "message": d.message, "person_ids": list(d.person_ids)}
            for d in chart.graph.diagnostics
        ],
    }


# ============================================================================
# Main
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Lay out a family chart around one person.")
    parser.add_argument("family", type=Path, help="JSON file with people and relationships")
    parser.add_argument("--focus", required=True, help="ID of the focus person")
    parser.add_argument(
        "--max-depth", type=int, default=None, help="Keep people within this many steps of the focus"
    )
    parser.add_argument("--config", type=Path, help="JSON file with layout geometry overrides")
    parser.add_argument("--plot", type=Path, help="Save a preview image (png, svg or pdf)")
    parser.add_argument("--json", type=Path, dest="json_path", help="Save nodes and connectors as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"Loading family records: {args.family}")
    persons, relationships = load_family(args.family)
    print(f"  Found {len(persons)} persons and {len(relationships)} relationships")

    config = load_config(args.config)
    focus_id = resolve_focus(persons, args.focus)

    print(f"Building chart around {focus_id!r}...")
    chart = build_chart(persons, relationships, focus_id, max_depth=args.max_depth, config=config)
    print(
        f"  Graph has {len(chart.graph.people)} people, {len(chart.graph.unions)} unions "
        f"and {len(chart.graph.single_parent_groups)} single-parent groups"
    )

    warnings = chart.graph.diagnostics
    if warnings:
        print(f"  Found {len(warnings)} diagnostics:")
        for w in warnings[:10]:  # Show first 10 diagnostics
            print(f"    - {w.message}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No data issues found")

    bounds = chart.layout.bounds
    print(
        f"  Layout spans {bounds.width:g} x {bounds.height:g} with {len(chart.connectors)} connectors"
    )

    if args.json_path:
        args.json_path.write_text(json.dumps(chart_to_dict(chart), indent=2), encoding="utf-8")
        print(f"Geometry saved to {args.json_path}")

    if args.plot:
        from plotting import plot_chart

        print(f"Plotting chart to: {args.plot}")
        plot_chart(chart, args.plot)

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
