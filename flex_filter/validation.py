"""
Flex-Filter Validation

Checks a FilterRequest against a Specification and reports problems
instead of raising:

- errors: the request must not be used (forbidden fields, disallowed
  relations, bad pagination, inverted date ranges)
- warnings: advisory (fields outside the allowed list)

Field-level checks are lenient (warning) while relation checks are
strict (error). All checks run; nothing short-circuits.

Usage:
    from flex_filter import validate_query

    result = validate_query(filter_request, Specification(allowed_fields=["status"]))
    if not result.is_valid:
        return JsonResponse({"errors": result.errors}, status=400)
"""

import math
import re

from django.utils.dateparse import parse_datetime

from flex_filter.conditions import split_field_path
from flex_filter.types import ORDER_RULES, FilterRequest, RangedFilter, Specification, ValidationResult


# Strict ISO-8601 UTC timestamp, e.g. 2023-01-01T00:00:00Z or ...00.123Z
ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?Z$")

# Operators each kind of condition compiles to
FILTER_OPERATORS = ("equals",)
SEARCH_OPERATORS = ("contains",)
RANGE_OPERATORS = ("gte", "lte")

RELATION_LABELS = {
    "Field": "Relation",
    "Search field": "Search relation",
    "Range field": "Range relation",
    "Order field": "Order relation",
}


def is_iso_datetime(value):
    """
    Check if a value is a strict ISO-8601 UTC timestamp string.

    Examples:
        >>> is_iso_datetime("2023-12-31T00:00:00Z")
        True
        >>> is_iso_datetime("2023-12-31")
        False
        >>> is_iso_datetime(1700000000)
        False
    """
    return isinstance(value, str) and bool(ISO_DATETIME_RE.fullmatch(value))


def _is_nan(value):
    return isinstance(value, float) and math.isnan(value)


def check_field(field, label, specification, errors, warnings):
    """
    Check one field path against the allowed/forbidden lists and its
    relation against the allowed relations.

    Args:
        field: Field path (e.g. "status", "author.name")
        label: Message prefix naming the kind of field ("Field", "Search field", ...)
        specification: Specification to check against
        errors: List collecting errors
        warnings: List collecting warnings
    """
    forbidden = specification.forbidden_fields
    allowed = specification.allowed_fields

    if forbidden is not None and field in forbidden:
        errors.append(f"{label} '{field}' is forbidden")
    elif allowed is not None and field not in allowed:
        warnings.append(f"{label} '{field}' is not in allowed fields list")

    relation, _ = split_field_path(field)
    allowed_relations = specification.allowed_relations
    if relation and allowed_relations is not None and relation not in allowed_relations:
        errors.append(f"{RELATION_LABELS[label]} '{relation}' is not allowed")


def check_operators(operators, label, specification, errors):
    """Check that the operators a condition kind compiles to are allowed."""
    allowed = specification.allowed_operators
    if allowed is None:
        return

    for operator in operators:
        if operator not in allowed:
            errors.append(f"Operator '{operator}' used by {label} is not allowed")


def validate_filters(filters, specification, errors, warnings):
    active = [field for field, value in filters.items() if value is not None]
    for field in active:
        check_field(field, "Field", specification, errors, warnings)
    if active:
        check_operators(FILTER_OPERATORS, "filters", specification, errors)


def validate_search_filters(search_filters, specification, errors, warnings):
    active = [field for field, value in search_filters.items() if value is not None]
    for field in active:
        check_field(field, "Search field", specification, errors, warnings)
    if active:
        check_operators(SEARCH_OPERATORS, "search filters", specification, errors)


def validate_ranged_filters(ranged_filters, specification, errors, warnings):
    ranges = [RangedFilter.from_dict(item) for item in ranged_filters]

    for item in ranges:
        if not isinstance(item.key, str):
            errors.append(f"Range filter key must be a string, got {item.key!r}")
            continue

        check_field(item.key, "Range field", specification, errors, warnings)

        # Only ISO timestamps are ordered; numbers and other formats are not
        if is_iso_datetime(item.start) and is_iso_datetime(item.end):
            try:
                start, end = parse_datetime(item.start), parse_datetime(item.end)
            except ValueError:
                continue
            if start and end and start > end:
                errors.append(f"Range start date '{item.start}' is after end date '{item.end}'")

    if ranges:
        check_operators(RANGE_OPERATORS, "range filters", specification, errors)


def validate_order(order_key, order_rule, specification, errors, warnings):
    check_field(order_key, "Order field", specification, errors, warnings)

    if order_rule is not None and order_rule not in ORDER_RULES:
        warnings.append(f"Order rule '{order_rule}' is not one of {', '.join(ORDER_RULES)}")


def validate_required_fields(request, specification, errors):
    required = specification.required_fields
    if not required:
        return

    present = set()
    for mapping in (request.filters or {}, request.search_filters or {}):
        present.update(field for field, value in mapping.items() if value is not None)
    ranges = [RangedFilter.from_dict(item) for item in request.ranged_filters or []]
    present.update(item.key for item in ranges if isinstance(item.key, str))

    for field in required:
        if field not in present:
            errors.append(f"Required field '{field}' is missing")


def validate_pagination(request, specification, errors):
    page = request.page
    if page is not None:
        if _is_nan(page):
            errors.append("Page number must be a valid integer")
        elif page < 1:
            errors.append("Page number must be greater than 0")

    rows = request.rows
    if rows is not None:
        if _is_nan(rows):
            errors.append("Rows per page must be a valid integer")
        elif rows < 1:
            errors.append("Rows per page must be greater than 0")
        elif specification.max_page_size and rows > specification.max_page_size:
            errors.append(f"Rows per page cannot exceed {specification.max_page_size}")


def validate_query(request, specification=None):
    """
    Validate a filter request against a specification.

    Without a specification every request is valid. The request is never
    modified, and every call returns a fresh result.

    Args:
        request: FilterRequest or mapping with the same (wire) keys
        specification: Optional Specification or mapping

    Returns:
        ValidationResult with errors and warnings

    Examples:
        >>> validate_query({"filters": {"b": 1}}, {"allowedFields": ["a"]}).warnings
        ["Field 'b' is not in allowed fields list"]
        >>> validate_query({"filters": {"b": 1}}, {"forbiddenFields": ["b"]}).errors
        ["Field 'b' is forbidden"]
    """
    errors = []
    warnings = []

    specification = Specification.coerce(specification)
    if specification is None:
        return ValidationResult(errors=errors, warnings=warnings)

    request = FilterRequest.coerce(request)

    if request.filters:
        validate_filters(request.filters, specification, errors, warnings)

    if request.search_filters:
        validate_search_filters(request.search_filters, specification, errors, warnings)

    if request.ranged_filters:
        validate_ranged_filters(request.ranged_filters, specification, errors, warnings)

    if request.order_key:
        validate_order(request.order_key, request.order_rule, specification, errors, warnings)

    validate_required_fields(request, specification, errors)
    validate_pagination(request, specification, errors)

    return ValidationResult(errors=errors, warnings=warnings)
