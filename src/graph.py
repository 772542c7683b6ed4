"""NetworkX graph building and operations."""

import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace

import networkx as nx

from models import (
    BRANCH_COLORS,
    COUPLE_TYPES,
    Diagnostic,
    DiagnosticKind,
    FamilyGraph,
    FamilyUnion,
    Person,
    Relationship,
    RelationshipType,
    SingleParentGroup,
    person_sort_key,
)
from validation import validate_graph

logger = logging.getLogger(__name__)


@dataclass
class RelationshipIndex:
    """Adjacency maps collected in one pass over the relationship records."""

    children_of: dict = field(default_factory=lambda: defaultdict(list))
    parents_of: dict = field(default_factory=lambda: defaultdict(list))
    partners: dict = field(default_factory=lambda: {t: defaultdict(set) for t in COUPLE_TYPES})
    # Unordered couple pair -> first recorded type, in order of first appearance
    couples: dict = field(default_factory=dict)


def pair_key(a, b) -> tuple:
    """Order an unordered pair the same way every time."""
    return tuple(sorted([a, b], key=str))


def union_id(a, b) -> str:
    a, b = pair_key(a, b)
    return f"FAM_{a}_{b}"


def index_relationships(
    people_by_id: dict, relationships: list[Relationship]
) -> RelationshipIndex:
    index = RelationshipIndex()

    for rel in relationships:
        a, b = rel.person1_id, rel.person2_id
        if a not in people_by_id or b not in people_by_id:
            logger.debug("Skipping %s edge with unknown person: %r, %r", rel.relationship_type, a, b)
            continue
        if a == b:
            logger.debug("Skipping %s edge from %r to itself", rel.relationship_type, a)
            continue

        if rel.relationship_type == RelationshipType.PARENT_OF:
            if b not in index.children_of[a]:
                index.children_of[a].append(b)
                index.parents_of[b].append(a)
        else:
            partners = index.partners[RelationshipType(rel.relationship_type)]
            partners[a].add(b)
            partners[b].add(a)
            index.couples.setdefault(pair_key(a, b), RelationshipType(rel.relationship_type))

    return index


def build_kinship_graph(people_by_id: dict, index: RelationshipIndex) -> nx.DiGraph:
    """
    Build the traversal graph used for generation depths.

    Every edge carries a `delta`: +1 when stepping from a child to a parent, -1
    from a parent to a child, and 0 between partners or between two children
    sharing a recorded parent. When two records link the same pair, the first
    one added wins.
    """
    K = nx.DiGraph()
    K.add_nodes_from(people_by_id)

    def link(u, v, delta: int, kind: str):
        if not K.has_edge(u, v):
            K.add_edge(u, v, delta=delta, kind=kind)

    for parent, children in index.children_of.items():
        for child in children:
            link(child, parent, 1, "parent")
            link(parent, child, -1, "child")

    for a, b in index.couples:
        link(a, b, 0, "partner")
        link(b, a, 0, "partner")

    for children in index.children_of.values():
        for c1, c2 in itertools.combinations(children, 2):
            link(c1, c2, 0, "sibling")
            link(c2, c1, 0, "sibling")

    return K


def assign_depths(K: nx.DiGraph, focus_id) -> dict:
    """
    Breadth-first generation depths from the focus person.

    Ancestors are positive, descendants negative. A node keeps the depth of its
    first visit, so cyclic records cannot loop forever.
    """
    depth = {focus_id: 0}
    for u, v in nx.bfs_edges(K, focus_id):
        depth[v] = depth[u] + K.edges[u, v]["delta"]
    return depth


def nodes_within(K: nx.DiGraph, focus_id, radius: int) -> set:
    """People within `radius` breadth-first steps of the focus on the full graph."""
    return set(nx.ego_graph(K, focus_id, radius=radius).nodes())


def _name(people_by_id: dict, pid) -> str:
    person = people_by_id.get(pid)
    return (person.full_name if person else "") or str(pid)


def synthesize_unions(
    people_by_id: dict, index: RelationshipIndex, depth: dict
) -> tuple[list[FamilyUnion], list[Diagnostic]]:
    """
    Create one union per parent pair that shares a child, plus one per couple
    record without shared children.

    Children recorded with more than two parents, and children whose parents
    or own generation do not line up, are left out of every union.
    """
    diagnostics: list[Diagnostic] = []
    children_by_pair: dict[tuple, list] = {}

    for child in depth:
        parents = index.parents_of.get(child, [])
        if len(parents) > 2:
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.AMBIGUOUS_PARENTAGE,
                    f"{_name(people_by_id, child)} has {len(parents)} recorded parents; "
                    "drawn from each parent separately",
                    (child, *parents),
                )
            )
            continue
        if len(parents) != 2:
            continue

        a, b = pair_key(*parents)
        if a not in depth or b not in depth:
            continue
        if depth[a] != depth[b]:
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.UNMATCHED_PARENT_PAIR,
                    f"Parents {_name(people_by_id, a)} and {_name(people_by_id, b)} of "
                    f"{_name(people_by_id, child)} are in different generations",
                    (child, a, b),
                )
            )
            continue
        if depth[child] != depth[a] - 1:
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.UNMATCHED_PARENT_PAIR,
                    f"{_name(people_by_id, child)} is not one generation below parents "
                    f"{_name(people_by_id, a)} and {_name(people_by_id, b)}",
                    (child, a, b),
                )
            )
            continue
        children_by_pair.setdefault((a, b), []).append(child)

    def sort_key(pid):
        return person_sort_key(people_by_id[pid])

    unions = [
        FamilyUnion(
            id=union_id(a, b),
            partner_a=a,
            partner_b=b,
            children=tuple(sorted(children, key=sort_key)),
            depth=depth[a],
        )
        for (a, b), children in children_by_pair.items()
    ]

    # Childless couples still get a marriage bar
    for a, b in index.couples:
        if (a, b) in children_by_pair or a not in depth or b not in depth:
            continue
        if depth[a] != depth[b]:
            logger.debug("No union for %r and %r: different generations", a, b)
            continue
        unions.append(FamilyUnion(id=union_id(a, b), partner_a=a, partner_b=b, depth=depth[a]))

    return unions, diagnostics


def single_parent_groups(
    people_by_id: dict, children_of: dict, unions: list[FamilyUnion], depth: dict
) -> list[SingleParentGroup]:
    """Group each parent's children that no union of that parent covers."""
    covered = {(p, c) for u in unions for p in u.partners for c in u.children}

    groups = []
    for parent, children in children_of.items():
        rest = [c for c in children if (parent, c) not in covered]
        if not rest:
            continue
        groups.append(
            SingleParentGroup(
                id=f"FAM_{parent}",
                parent_id=parent,
                children=tuple(sorted(rest, key=lambda c: person_sort_key(people_by_id[c]))),
                depth=depth[parent],
            )
        )
    return groups


def dedupe_group_ids(unions: list[FamilyUnion], groups: list[SingleParentGroup]):
    """
    Make every union and single-parent group id distinct.

    Ids are built from person ids, so `("a_b", "c")` and `("a", "b_c")` both
    read `FAM_a_b_c`. Later groups get a `#2`, `#3`, ... suffix.
    """
    used: set[str] = set()

    def claim(group):
        gid = group.id
        n = 1
        while gid in used:
            n += 1
            gid = f"{group.id}#{n}"
        used.add(gid)
        if gid != group.id:
            logger.debug("Renamed duplicate group id %s to %s", group.id, gid)
            return replace(group, id=gid)
        return group

    return [claim(u) for u in unions], [claim(g) for g in groups]


def assign_branch_colors(
    people_by_id: dict, children_of: dict, parents_of: dict, partner_maps: list[dict], depth: dict
) -> dict:
    """
    Color each family line from BRANCH_COLORS.

    Every person without a recorded parent starts a line, oldest generation
    first. Descendants take the color of the first line that reaches them;
    partners met along the way take it too unless already colored.
    """
    roots = sorted(
        (pid for pid in depth if not parents_of.get(pid)),
        key=lambda pid: (-depth[pid], person_sort_key(people_by_id[pid])),
    )
    colors = {root: BRANCH_COLORS[i % len(BRANCH_COLORS)] for i, root in enumerate(roots)}

    for root in roots:
        branch = colors[root]
        stack = [root]
        seen = set()
        while stack:
            pid = stack.pop()
            if pid in seen:
                continue
            seen.add(pid)
            colors.setdefault(pid, branch)
            for partners in partner_maps:
                for partner in sorted(partners.get(pid, ()), key=str):
                    colors.setdefault(partner, branch)
            stack.extend(reversed(children_of.get(pid, [])))

    return colors


def build_graph(
    people: list[Person],
    relationships: list[Relationship],
    focus_id,
    max_depth: int | None = None,
) -> FamilyGraph:
    """
    Build the family graph seen from `focus_id`.

    Args:
        people: All known people
        relationships: Parent and couple records between them
        focus_id: The person whose generation is depth 0
        max_depth: Optional cap on breadth-first distance from the focus. The
            full graph is traversed first and pruned afterward.

    Returns:
        A FamilyGraph holding only people reachable from the focus
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must not be negative, got {max_depth}")

    people_by_id = {p.id: p for p in people}

    if focus_id not in people_by_id:
        graph = FamilyGraph(focus_id=focus_id)
        if people_by_id:
            message = f"Focus person {focus_id!r} not found among {len(people_by_id)} people"
            logger.warning(message)
            graph.diagnostics.append(Diagnostic(DiagnosticKind.MISSING_FOCUS, message, (focus_id,)))
        return graph

    index = index_relationships(people_by_id, relationships)
    K = build_kinship_graph(people_by_id, index)
    full_depth = assign_depths(K, focus_id)

    if max_depth is not None:
        kept = nodes_within(K, focus_id, max_depth)
    else:
        kept = set(full_depth)

    # Input order, so identical input always yields identical maps
    reachable = [pid for pid in people_by_id if pid in kept]
    depth = {pid: full_depth[pid] for pid in reachable}
    logger.debug(
        "Focus %r reaches %d of %d people", focus_id, len(reachable), len(people_by_id)
    )

    def restrict_list(mapping: dict) -> dict:
        restricted = {}
        for pid in reachable:
            values = [v for v in mapping.get(pid, []) if v in kept]
            if values:
                restricted[pid] = values
        return restricted

    def restrict_set(mapping: dict) -> dict:
        restricted = {}
        for pid in reachable:
            values = {v for v in mapping.get(pid, set()) if v in kept}
            if values:
                restricted[pid] = values
        return restricted

    children_of = restrict_list(index.children_of)
    parents_of = restrict_list(index.parents_of)
    spouses = restrict_set(index.partners[RelationshipType.SPOUSE_OF])
    divorced = restrict_set(index.partners[RelationshipType.DIVORCED_FROM])
    unmarried = restrict_set(index.partners[RelationshipType.PARTNER_OF])

    unions, union_diagnostics = synthesize_unions(people_by_id, index, depth)
    groups = single_parent_groups(people_by_id, children_of, unions, depth)
    unions, groups = dedupe_group_ids(unions, groups)

    diagnostics = validate_graph(people_by_id, relationships, depth) + union_diagnostics
    for diagnostic in diagnostics:
        logger.warning(diagnostic.message)

    return FamilyGraph(
        focus_id=focus_id,
        people={pid: people_by_id[pid] for pid in reachable},
        children_of=children_of,
        parents_of=parents_of,
        spouses=spouses,
        divorced=divorced,
        unmarried=unmarried,
        depth=depth,
        unions=unions,
        single_parent_groups=groups,
        diagnostics=diagnostics,
        branch_colors=assign_branch_colors(
            people_by_id, children_of, parents_of, [spouses, divorced, unmarried], depth
        ),
    )
