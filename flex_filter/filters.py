"""
Flex-Filter Query Compiler

Builds ORM query options from a FilterRequest.

Supports:
- Exact-match filters, with lists OR-combined
- Search filters (contains), OR-combined across fields
- Inclusive range filters (gte/lte)
- One level of relation scoping via "relation.column" paths
- Single-key ordering and page/rows pagination
"""

import math

from flex_filter.conditions import And, Contains, Equals, Or, Range, field_condition
from flex_filter.conf import filter_settings
from flex_filter.types import FilterRequest, QueryOptions, RangedFilter


def build_where_query(filters):
    """
    Build exact-match conditions from a filters mapping.

    One condition per non-null key, in insertion order. A list value
    becomes an OR of one equality per element.

    Args:
        filters: Dict of field path -> value, list of values or None

    Returns:
        List of condition nodes

    Examples:
        >>> [c.as_dict() for c in build_where_query({"status": "active"})]
        [{'status': 'active'}]
        >>> [c.as_dict() for c in build_where_query({"category": ["a", "b"]})]
        [{'OR': [{'category': 'a'}, {'category': 'b'}]}]
        >>> [c.as_dict() for c in build_where_query({"author.name": "Ann"})]
        [{'author': {'name': 'Ann'}}]
    """
    conditions = []

    for key, value in filters.items():
        if value is None:
            continue

        if isinstance(value, (list, tuple)):
            conditions.append(Or(tuple(field_condition(key, Equals, item) for item in value)))
        else:
            conditions.append(field_condition(key, Equals, value))

    return conditions


def build_search_query(search_filters):
    """
    Build contains conditions from a search filters mapping.

    With more than one key the conditions are wrapped in a single OR so a
    match on any field is enough; a single key is returned unwrapped. The
    key count includes keys whose value is None.

    Examples:
        >>> [c.as_dict() for c in build_search_query({"title": "x"})]
        [{'title': {'contains': 'x'}}]
        >>> [c.as_dict() for c in build_search_query({"title": "x", "desc": "y"})]
        [{'OR': [{'title': {'contains': 'x'}}, {'desc': {'contains': 'y'}}]}]
    """
    is_multi_key = len(search_filters) > 1

    conditions = [
        field_condition(key, Contains, value)
        for key, value in search_filters.items()
        if value is not None
    ]

    if is_multi_key:
        return [Or(tuple(conditions))] if conditions else []
    return conditions


def build_ranged_filter(ranged_filters):
    """
    Build inclusive range conditions, in input order.

    Example:
        >>> from flex_filter.types import RangedFilter
        >>> [c.as_dict() for c in build_ranged_filter([RangedFilter("price", 10, 100)])]
        [{'price': {'gte': 10, 'lte': 100}}]
    """
    ranges = [RangedFilter.from_dict(item) for item in ranged_filters]
    # Entries without a string key cannot name a column
    ranges = [item for item in ranges if isinstance(item.key, str)]
    return [field_condition(item.key, Range, item.start, item.end) for item in ranges]


def _is_set(number):
    # None, 0 and NaN all count as "not given"
    if number is None:
        return False
    if isinstance(number, float) and math.isnan(number):
        return False
    return bool(number)


def build_pagination(page=None, rows=None):
    """
    Compute (take, skip) from page and rows.

    Rules:
    - page and rows: take=rows, skip=(page-1)*rows
    - page only:     take=DEFAULT_PAGE_SIZE, skip=DEFAULT_PAGE_SIZE*(page-1)
    - no page:       take=DEFAULT_PAGE_SIZE, skip=0 (rows alone is ignored)

    Examples:
        >>> build_pagination(2, 25)
        (25, 25)
        >>> build_pagination(1)
        (10, 0)
        >>> build_pagination(None, 50)
        (10, 0)
    """
    page_size = filter_settings.DEFAULT_PAGE_SIZE
    take = page_size
    skip = 0

    if _is_set(page):
        if _is_set(rows):
            take = rows
            skip = (page - 1) * rows
        else:
            skip = page_size * (page - 1)

    return take, skip


def build_filter_query(request):
    """
    Compile a filter request into ORM query options.

    Filter, search and range conditions are collected under one top-level
    AND, in that order. Never raises for malformed field paths.

    Args:
        request: FilterRequest or mapping with the same (wire) keys

    Returns:
        QueryOptions with where, order_by, take and skip set

    Example:
        >>> options = build_filter_query({"filters": {"status": "active"}, "page": 2, "rows": 5})
        >>> options.as_dict()
        {'where': {'AND': [{'status': 'active'}]}, 'orderBy': {}, 'take': 5, 'skip': 5}
    """
    request = FilterRequest.coerce(request)

    conditions = []
    if request.filters:
        conditions.extend(build_where_query(request.filters))
    if request.search_filters:
        conditions.extend(build_search_query(request.search_filters))
    if request.ranged_filters:
        conditions.extend(build_ranged_filter(request.ranged_filters))

    order_by = {}
    if request.order_key:
        order_by = {request.order_key: request.order_rule or filter_settings.DEFAULT_ORDER_RULE}

    take, skip = build_pagination(request.page, request.rows)

    return QueryOptions(
        where=And(tuple(conditions)).as_dict(),
        order_by=order_by,
        take=take,
        skip=skip,
    )
