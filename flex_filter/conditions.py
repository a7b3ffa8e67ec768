"""
Flex-Filter Condition Nodes

A closed set of condition nodes the compiler builds before rendering the
ORM's nested dict dialect:

- Equals:   {"status": "active"}
- Contains: {"title": {"contains": "x"}}
- Range:    {"price": {"gte": 10, "lte": 100}}
- Relation: {"author": {<inner condition>}}
- And / Or: {"AND": [...]} / {"OR": [...]}
"""

from dataclasses import dataclass
from typing import Any


def split_field_path(key):
    """
    Split a field path into (relation, column).

    Only the first dot separates the relation; any further dots stay in
    the column name verbatim. A bare field, or a key that is not a string,
    has no relation.

    Examples:
        >>> split_field_path("status")
        (None, 'status')
        >>> split_field_path("author.name")
        ('author', 'name')
        >>> split_field_path("a.b.c")
        ('a', 'b.c')
        >>> split_field_path(".name")
        ('', 'name')
    """
    if not isinstance(key, str) or "." not in key:
        return None, key
    relation, column = key.split(".", 1)
    return relation, column


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def as_dict(self):
        return {self.field: self.value}


@dataclass(frozen=True)
class Contains:
    field: str
    value: Any

    def as_dict(self):
        return {self.field: {"contains": self.value}}


@dataclass(frozen=True)
class Range:
    field: str
    start: Any
    end: Any

    def as_dict(self):
        return {self.field: {"gte": self.start, "lte": self.end}}


@dataclass(frozen=True)
class Relation:
    relation: str
    condition: Any

    def as_dict(self):
        return {self.relation: self.condition.as_dict()}


@dataclass(frozen=True)
class And:
    conditions: tuple = ()

    def as_dict(self):
        return {"AND": [condition.as_dict() for condition in self.conditions]}


@dataclass(frozen=True)
class Or:
    conditions: tuple = ()

    def as_dict(self):
        return {"OR": [condition.as_dict() for condition in self.conditions]}


def field_condition(key, node_class, *args):
    """
    Build a leaf condition for a field path.

    Dotted paths are scoped under their relation.

    Example:
        >>> field_condition("author.name", Contains, "Ann").as_dict()
        {'author': {'name': {'contains': 'Ann'}}}
    """
    relation, column = split_field_path(key)
    leaf = node_class(column, *args)
    if relation is None:
        return leaf
    return Relation(relation, leaf)
