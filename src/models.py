"""Data classes for family chart entities."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable

PersonId = Hashable

UNKNOWN_BIRTH_YEAR = 9999

# One color per family line, cycled when there are more lines than colors
BRANCH_COLORS = (
    "#3B82F6",
    "#10B981",
    "#F97316",
    "#8B5CF6",
    "#14B8A6",
    "#EF4444",
    "#EAB308",
    "#EC4899",
    "#6366F1",
    "#84CC16",
)


class RelationshipType(str, Enum):
    PARENT_OF = "PARENT_OF"
    SPOUSE_OF = "SPOUSE_OF"
    DIVORCED_FROM = "DIVORCED_FROM"
    PARTNER_OF = "PARTNER_OF"  # unmarried couple


COUPLE_TYPES = (
    RelationshipType.SPOUSE_OF,
    RelationshipType.DIVORCED_FROM,
    RelationshipType.PARTNER_OF,
)


class DiagnosticKind(str, Enum):
    UNMATCHED_PARENT_PAIR = "UNMATCHED_PARENT_PAIR"
    AMBIGUOUS_PARENTAGE = "AMBIGUOUS_PARENTAGE"
    ANCESTRY_CYCLE = "ANCESTRY_CYCLE"
    GENERATION_CONFLICT = "GENERATION_CONFLICT"
    MISSING_FOCUS = "MISSING_FOCUS"


@dataclass(frozen=True)
class Person:
    id: PersonId
    given_name: str | None = None
    surname: str | None = None
    birth_date: str | None = None  # ISO format YYYY-MM-DD, a bare year, or None
    death_date: str | None = None
    sex: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.given_name, self.surname] if p)

    @property
    def birth_year(self) -> int | None:
        if not self.birth_date:
            return None
        match = re.search(r"\d{4}", self.birth_date)
        return int(match.group(0)) if match else None


def person_sort_key(person: Person) -> tuple[int, str, str]:
    """Left-to-right order for siblings and couples: birth year, then name, then id."""
    year = person.birth_year
    return (
        year if year is not None else UNKNOWN_BIRTH_YEAR,
        person.full_name.casefold(),
        str(person.id),
    )


@dataclass(frozen=True)
class Relationship:
    person1_id: PersonId
    person2_id: PersonId
    relationship_type: RelationshipType  # PARENT_OF runs person1 (parent) -> person2 (child)


@dataclass(frozen=True)
class FamilyUnion:
    """A couple synthesized for layout; never persisted."""

    id: str
    partner_a: PersonId
    partner_b: PersonId
    children: tuple = ()
    depth: int = 0
    bar_y: float | None = None

    @property
    def partners(self) -> tuple:
        return (self.partner_a, self.partner_b)


@dataclass(frozen=True)
class SingleParentGroup:
    """Children of one parent that no union of that parent covers."""

    id: str
    parent_id: PersonId
    children: tuple = ()
    depth: int = 0


ParentGroup = FamilyUnion | SingleParentGroup


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    person_ids: tuple = ()


@dataclass
class FamilyGraph:
    focus_id: PersonId
    people: dict = field(default_factory=dict)
    children_of: dict = field(default_factory=dict)
    parents_of: dict = field(default_factory=dict)
    spouses: dict = field(default_factory=dict)
    divorced: dict = field(default_factory=dict)
    unmarried: dict = field(default_factory=dict)
    depth: dict = field(default_factory=dict)
    unions: list[FamilyUnion] = field(default_factory=list)
    single_parent_groups: list[SingleParentGroup] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    branch_colors: dict = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.depth

    def branch_color(self, pid) -> str:
        return self.branch_colors.get(pid, BRANCH_COLORS[0])


@dataclass(frozen=True)
class NodeRect:
    person_id: PersonId
    x: float
    y: float
    width: float
    height: float
    depth: int

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class Bounds:
    width: float
    height: float


@dataclass
class TreeLayout:
    focus_id: PersonId
    rects: dict = field(default_factory=dict)
    unions: list[FamilyUnion] = field(default_factory=list)
    rows: dict = field(default_factory=dict)
    bounds: Bounds = Bounds(0, 0)
