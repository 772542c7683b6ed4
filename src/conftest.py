import pytest

from models import Person, Relationship, RelationshipType


def person(pid, given, surname="Smith", born=None, sex=None) -> Person:
    return Person(
        id=pid,
        given_name=given,
        surname=surname,
        birth_date=str(born) if born else None,
        sex=sex,
    )


def parent(p, c) -> Relationship:
    return Relationship(p, c, RelationshipType.PARENT_OF)


def spouse(a, b) -> Relationship:
    return Relationship(a, b, RelationshipType.SPOUSE_OF)


def divorced(a, b) -> Relationship:
    return Relationship(a, b, RelationshipType.DIVORCED_FROM)


def partner(a, b) -> Relationship:
    return Relationship(a, b, RelationshipType.PARTNER_OF)


@pytest.fixture
def nuclear_family():
    """Focus f with married parents p1/p2 and one sibling s."""
    people = [
        person("p1", "Paul", born=1950, sex="M"),
        person("p2", "Mary", born=1952, sex="F"),
        person("f", "Frank", born=1980, sex="M"),
        person("s", "Sue", born=1983, sex="F"),
    ]
    relationships = [
        spouse("p1", "p2"),
        parent("p1", "f"),
        parent("p2", "f"),
        parent("p1", "s"),
        parent("p2", "s"),
    ]
    return people, relationships


@pytest.fixture
def blended_family():
    """p1/p2 divorced, each remarried, with a child from every relationship."""
    people = [
        person("p1", "Adam", "Gray", 1950, "M"),
        person("p2", "Beth", "Gray", 1952, "F"),
        person("q1", "Cara", "Lane", 1955, "F"),
        person("q2", "Dan", "Moss", 1951, "M"),
        person("c1", "Ella", "Gray", 1975, "F"),
        person("c2", "Finn", "Gray", 1985, "M"),
        person("c3", "Gail", "Moss", 1987, "F"),
    ]
    relationships = [
        divorced("p1", "p2"),
        spouse("p1", "q1"),
        spouse("p2", "q2"),
        parent("p1", "c1"),
        parent("p2", "c1"),
        parent("p1", "c2"),
        parent("q1", "c2"),
        parent("p2", "c3"),
        parent("q2", "c3"),
    ]
    return people, relationships


@pytest.fixture
def single_parent_family():
    """y has one recorded parent x and nobody else."""
    people = [person("x", "Xena", born=1950, sex="F"), person("y", "Yuri", born=1980, sex="M")]
    return people, [parent("x", "y")]


@pytest.fixture
def ten_generation_chain():
    """g0 is the focus; g(i+1) is the parent of g(i)."""
    people = [person(f"g{i}", f"Gen{i}", born=2000 - 25 * i) for i in range(11)]
    relationships = [parent(f"g{i + 1}", f"g{i}") for i in range(10)]
    return people, relationships
