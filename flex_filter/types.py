"""
Flex-Filter Data Model

Request, configuration and result containers shared by the extractor,
compiler, transformer and validator.

Python attributes are snake_case. The wire format (query-string parameters,
JSON configuration) and the ORM dialect keep their camelCase names, so every
configuration-like type can be built from either spelling via ``from_dict()``
and every output type renders the ORM shape via ``as_dict()``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional


# Predicate operators understood by the downstream ORM
OPERATORS = {
    "equals",
    "not",
    "in",
    "notIn",
    "lt",
    "lte",
    "gt",
    "gte",
    "contains",
    "startsWith",
    "endsWith",
    "mode",
    "search",
}

ORDER_RULES = ("asc", "desc")


def _pick(data, camel, snake, default=None):
    """Read a key by its wire (camelCase) name, falling back to snake_case."""
    if camel in data:
        return data[camel]
    return data.get(snake, default)


@dataclass(frozen=True)
class RangedFilter:
    """Inclusive ``start``..``end`` bound on one field path."""

    key: str
    start: Any
    end: Any

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, cls):
            return data
        return cls(key=data["key"], start=data.get("start"), end=data.get("end"))


@dataclass
class FilterRequest:
    """
    Normalized filter request.

    Attributes:
        filters: field path -> scalar, list of scalars (OR) or None (skipped)
        search_filters: field path -> value matched with ``contains``
        ranged_filters: list of RangedFilter, applied in order
        order_key: field path to order by
        order_rule: 'asc' or 'desc' (other values pass through)
        page: 1-based page number, may be NaN when parsed from bad input
        rows: page size, may be NaN when parsed from bad input
    """

    filters: Optional[dict] = None
    search_filters: Optional[dict] = None
    ranged_filters: Optional[list] = None
    order_key: Optional[str] = None
    order_rule: Optional[str] = None
    page: Optional[float] = None
    rows: Optional[float] = None

    @classmethod
    def from_dict(cls, data):
        """
        Build a FilterRequest from a mapping.

        Accepts the wire keys (``searchFilters``, ``rangedFilters``,
        ``orderKey``, ``orderRule``) as well as the attribute names.

        Example:
            >>> FilterRequest.from_dict({"filters": {"status": "active"}, "page": 2})
            FilterRequest(filters={'status': 'active'}, ..., page=2, rows=None)
        """
        ranged = _pick(data, "rangedFilters", "ranged_filters")
        if ranged is not None:
            ranged = [RangedFilter.from_dict(item) for item in ranged]

        return cls(
            filters=data.get("filters"),
            search_filters=_pick(data, "searchFilters", "search_filters"),
            ranged_filters=ranged,
            order_key=_pick(data, "orderKey", "order_key"),
            order_rule=_pick(data, "orderRule", "order_rule"),
            page=data.get("page"),
            rows=data.get("rows"),
        )

    @classmethod
    def coerce(cls, value):
        """Return ``value`` if it is a FilterRequest, else build one from a mapping."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls()
        if not hasattr(value, "get"):
            raise TypeError(f"Expected FilterRequest or mapping, got {type(value).__name__}")
        return cls.from_dict(value)


@dataclass
class QueryOptions:
    """Query options consumed by the ORM's find-many call."""

    where: dict = field(default_factory=dict)
    order_by: Any = field(default_factory=dict)
    take: int = 10
    skip: int = 0
    include: Optional[dict] = None
    select: Optional[dict] = None

    def as_dict(self):
        """Render the ORM argument shape (``orderBy`` etc.)."""
        result = {
            "where": self.where,
            "orderBy": self.order_by,
            "take": self.take,
            "skip": self.skip,
        }
        if self.include is not None:
            result["include"] = self.include
        if self.select is not None:
            result["select"] = self.select
        return result


@dataclass(frozen=True)
class Specification:
    """
    Declarative allow/forbid rules checked by the validator.

    ``None`` means a rule is not configured. An empty list is configured
    and admits nothing.
    """

    allowed_fields: Optional[list] = None
    allowed_operators: Optional[list] = None
    allowed_relations: Optional[list] = None
    max_page_size: Optional[int] = None
    required_fields: Optional[list] = None
    forbidden_fields: Optional[list] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            allowed_fields=_pick(data, "allowedFields", "allowed_fields"),
            allowed_operators=_pick(data, "allowedOperators", "allowed_operators"),
            allowed_relations=_pick(data, "allowedRelations", "allowed_relations"),
            max_page_size=_pick(data, "maxPageSize", "max_page_size"),
            required_fields=_pick(data, "requiredFields", "required_fields"),
            forbidden_fields=_pick(data, "forbiddenFields", "forbidden_fields"),
        )

    @classmethod
    def coerce(cls, value):
        if value is None or isinstance(value, cls):
            return value
        if not hasattr(value, "get"):
            raise TypeError(f"Expected Specification or mapping, got {type(value).__name__}")
        return cls.from_dict(value)


@dataclass(frozen=True)
class FieldTypeHandler:
    """
    Value coercion for one field.

    ``custom_handler(raw_value)`` replaces the built-in coercion entirely;
    returning None drops the field from the condition.
    """

    type: str = "string"
    operator: Optional[str] = None
    custom_handler: Optional[Callable[[Any], Any]] = None

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, cls):
            return data
        return cls(
            type=data.get("type", "string"),
            operator=data.get("operator") or _pick(data, "searchOperator", "search_operator"),
            custom_handler=_pick(data, "customHandler", "custom_handler"),
        )


@dataclass(frozen=True)
class RelationHandler:
    """
    Relation rewrite for one field.

    ``custom_handler(raw_value, actual_field)`` builds the value nested under
    the relation; returning None drops the field.
    """

    type: str = "one-to-many"
    relation_query: str = "some"
    nested_field: Optional[str] = None
    custom_handler: Optional[Callable[[Any, str], Any]] = None

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, cls):
            return data
        return cls(
            type=data.get("type", "one-to-many"),
            relation_query=_pick(data, "relationQuery", "relation_query", "some"),
            nested_field=_pick(data, "nestedField", "nested_field"),
            custom_handler=_pick(data, "customHandler", "custom_handler"),
        )


@dataclass(frozen=True)
class TransformConfig:
    """
    Field rewriting rules, keyed by the field path seen in the compiled query.

    Attributes:
        field_mappings: field path -> relation name to nest the field under
        field_name_mappings: field path -> actual column name
        field_type_handlers: field path -> FieldTypeHandler
        relation_handlers: field path -> RelationHandler
    """

    field_mappings: dict = field(default_factory=dict)
    field_name_mappings: dict = field(default_factory=dict)
    field_type_handlers: dict = field(default_factory=dict)
    relation_handlers: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        type_handlers = _pick(data, "fieldTypeHandlers", "field_type_handlers") or {}
        relation_handlers = _pick(data, "relationHandlers", "relation_handlers") or {}
        return cls(
            field_mappings=dict(_pick(data, "fieldMappings", "field_mappings") or {}),
            field_name_mappings=dict(_pick(data, "fieldNameMappings", "field_name_mappings") or {}),
            field_type_handlers={k: FieldTypeHandler.from_dict(v) for k, v in type_handlers.items()},
            relation_handlers={k: RelationHandler.from_dict(v) for k, v in relation_handlers.items()},
        )

    @classmethod
    def coerce(cls, value):
        if value is None or isinstance(value, cls):
            return value
        if not hasattr(value, "get"):
            raise TypeError(f"Expected TransformConfig or mapping, got {type(value).__name__}")
        return cls.from_dict(value)


@dataclass
class ValidationResult:
    """Errors block usage, warnings are advisory."""

    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.errors

    def as_dict(self):
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class BuildQueryResult:
    query: QueryOptions
    validation: ValidationResult
