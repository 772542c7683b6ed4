"""Graph validation for family chart data."""

import networkx as nx

from models import Diagnostic, DiagnosticKind, Relationship, RelationshipType


def _name(people_by_id: dict, pid) -> str:
    person = people_by_id.get(pid)
    return (person.full_name if person else "") or str(pid)


def find_ancestry_cycle(relationships: list[Relationship], keep) -> list | None:
    """Return the people on one parent-child cycle among `keep`, or None."""
    parent_graph = nx.DiGraph(
        (r.person1_id, r.person2_id)
        for r in relationships
        if r.relationship_type == RelationshipType.PARENT_OF
        and r.person1_id in keep
        and r.person2_id in keep
        and r.person1_id != r.person2_id
    )

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
    except nx.NetworkXNoCycle:
        return None
    return [edge[0] for edge in cycle]


def validate_graph(
    people_by_id: dict, relationships: list[Relationship], depth: dict
) -> list[Diagnostic]:
    """
    Check the assigned depths against the recorded relationships:
    - Cycles in parent-child relationships (someone recorded as their own ancestor)
    - Records the breadth-first depths contradict (first assignment won)

    Returns a list of diagnostics. Nothing here is fatal.
    """
    diagnostics: list[Diagnostic] = []

    cycle = find_ancestry_cycle(relationships, depth)
    if cycle:
        names = " -> ".join(_name(people_by_id, pid) for pid in cycle)
        diagnostics.append(
            Diagnostic(
                DiagnosticKind.ANCESTRY_CYCLE,
                f"Cycle detected in parent-child relationships: {names}",
                tuple(cycle),
            )
        )

    seen: set[tuple] = set()
    for rel in relationships:
        a, b = rel.person1_id, rel.person2_id
        if a == b or a not in depth or b not in depth:
            continue

        is_parent = rel.relationship_type == RelationshipType.PARENT_OF
        expected = depth[a] - 1 if is_parent else depth[a]
        if depth[b] == expected:
            continue

        key = (is_parent, a, b) if is_parent else (is_parent, *sorted([a, b], key=str))
        if key in seen:
            continue
        seen.add(key)

        if is_parent:
            message = (
                f"{_name(people_by_id, a)} is recorded as a parent of {_name(people_by_id, b)} "
                f"but they were placed at generations {depth[a]} and {depth[b]}"
            )
        else:
            message = (
                f"Partners {_name(people_by_id, a)} and {_name(people_by_id, b)} were placed "
                f"at generations {depth[a]} and {depth[b]}"
            )
        diagnostics.append(Diagnostic(DiagnosticKind.GENERATION_CONFLICT, message, (a, b)))

    return diagnostics
