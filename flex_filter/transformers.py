"""
Flex-Filter Field Transformer

Rewrites compiled where/orderBy structures so frontend field names map onto
the real schema:

- fieldMappings:      nest a field under a relation
- fieldNameMappings:  rename a field to its actual column
- fieldTypeHandlers:  coerce values (number, boolean, date, string, custom)
- relationHandlers:   custom relation conditions and nested order fields

Unmapped fields pass through with their value normalized into a default
predicate ({"contains": ...} for strings, {"equals": ...} otherwise).

Example:
    config = TransformConfig.from_dict({
        'fieldMappings': {'authorName': 'author'},
        'fieldNameMappings': {'authorName': 'name'},
    })
    transform_where_clause({'AND': [{'authorName': {'contains': 'Ann'}}]}, config)
    # {'AND': [{'author': {'name': {'contains': 'Ann'}}}]}
"""

import logging
import math
from datetime import date, datetime, timezone

from django.utils.dateparse import parse_date, parse_datetime

from flex_filter.types import FieldTypeHandler, RelationHandler, TransformConfig


logger = logging.getLogger("flex_filter")

# Combinator keys walked recursively, in precedence order
COMBINATORS = ("AND", "OR")


def extract_raw_value(value):
    """
    Unwrap a compiled predicate to its raw value.

    Recognizes contains and equals (recursing into nested wrappers),
    startsWith and endsWith. Any other dict yields its first value;
    scalars and lists are returned unchanged.

    Examples:
        >>> extract_raw_value({"contains": "x"})
        'x'
        >>> extract_raw_value({"equals": {"contains": 5}})
        5
        >>> extract_raw_value({"gte": 10, "lte": 100})
        10
        >>> extract_raw_value(["a", "b"])
        ['a', 'b']
    """
    if not isinstance(value, dict):
        return value

    for operator in ("contains", "equals"):
        if operator in value:
            inner = value[operator]
            return extract_raw_value(inner) if isinstance(inner, dict) else inner

    for operator in ("startsWith", "endsWith"):
        if operator in value:
            return value[operator]

    if value:
        return next(iter(value.values()))

    return value


def _coerce_number(raw):
    """Coerce to a number, returning NaN when that is not possible."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw
    if not isinstance(raw, str):
        return math.nan

    text = raw.strip()
    if not text:
        return 0
    if "_" in text:
        return math.nan
    try:
        return int(text, 10)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return math.nan


def _coerce_date(raw):
    """Coerce to a date/datetime, returning None when unparseable."""
    if isinstance(raw, (datetime, date)):
        return raw
    if isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        # Milliseconds since the epoch
        try:
            return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(raw, str):
        try:
            return parse_datetime(raw) or parse_date(raw)
        except ValueError:
            # Well formatted but not a valid date (e.g. month 13)
            return None

    return None


def process_field_value(value, type_handler=None):
    """
    Process a field value according to its type handler.

    Returns None when the field must be dropped from the condition.

    Args:
        value: Compiled predicate or raw value
        type_handler: Optional FieldTypeHandler (or dict)

    Returns:
        Predicate dict, custom handler result, or None

    Examples:
        >>> process_field_value("x")
        {'contains': 'x'}
        >>> process_field_value(5)
        {'equals': 5}
        >>> process_field_value({"contains": "42"}, FieldTypeHandler(type="number", operator="gte"))
        {'gte': 42}
        >>> process_field_value("abc", FieldTypeHandler(type="number")) is None
        True
    """
    raw_value = extract_raw_value(value)

    if type_handler is None:
        if isinstance(raw_value, str):
            return {"contains": raw_value}
        if isinstance(raw_value, dict):
            return raw_value
        return {"equals": raw_value}

    type_handler = FieldTypeHandler.from_dict(type_handler)

    if type_handler.custom_handler:
        return type_handler.custom_handler(raw_value)

    if type_handler.type == "number":
        number = _coerce_number(raw_value)
        if isinstance(number, float) and math.isnan(number):
            return None
        return {type_handler.operator or "equals": number}

    if type_handler.type == "boolean":
        if isinstance(raw_value, str):
            flag = raw_value.lower() == "true"
        else:
            flag = bool(raw_value)
        return {"equals": flag}

    if type_handler.type == "date":
        date_value = _coerce_date(raw_value)
        if date_value is None:
            return None
        return {type_handler.operator or "equals": date_value}

    if type_handler.type == "string":
        return {type_handler.operator or "contains": raw_value}

    return {"equals": raw_value}


def transform_condition(condition, config):
    """
    Transform a single (non-combinator) condition.

    Each field is resolved on its own: relation mapping first, then field
    name mapping, then value processing. Fields whose processed value is
    None are left out.
    """
    transformed = {}

    for key, value in condition.items():
        if value is None:
            continue

        relation = config.field_mappings.get(key)
        actual_field = config.field_name_mappings.get(key) or key
        type_handler = config.field_type_handlers.get(key)
        relation_handler = config.relation_handlers.get(key)
        if relation_handler is not None:
            relation_handler = RelationHandler.from_dict(relation_handler)

        if relation:
            if relation_handler and relation_handler.custom_handler:
                result = relation_handler.custom_handler(extract_raw_value(value), actual_field)
                if result is not None:
                    transformed[relation] = result
                continue

            processed_value = process_field_value(value, type_handler)
            if processed_value is None:
                logger.debug("Dropping field '%s': value could not be coerced", key)
                continue

            nested = transformed.get(relation)
            if not isinstance(nested, dict):
                nested = transformed[relation] = {}
            nested[actual_field] = processed_value
        else:
            processed_value = process_field_value(value, type_handler)
            if processed_value is None:
                logger.debug("Dropping field '%s': value could not be coerced", key)
                continue
            transformed[actual_field] = processed_value

    return transformed


def _transform_node(node, config):
    if not isinstance(node, dict):
        return node

    for combinator in COMBINATORS:
        children = node.get(combinator)
        if isinstance(children, list):
            transformed = [_transform_node(child, config) for child in children]
            transformed = [child for child in transformed if child]
            if not transformed:
                return {}
            return {**node, combinator: transformed}

    return transform_condition(node, config)


def transform_where_clause(where_conditions, config):
    """
    Transform where conditions using field mappings and type handlers.

    AND/OR lists are walked recursively at any depth; every other dict is
    treated as a condition. Elements that end up empty are removed, and a
    combinator left with no elements collapses to {}.

    Args:
        where_conditions: Compiled where dict (e.g. {"AND": [...]})
        config: TransformConfig or mapping

    Returns:
        Transformed where dict
    """
    if not where_conditions:
        return where_conditions

    config = TransformConfig.coerce(config)
    return _transform_node(where_conditions, config)


def transform_order_by(order_by, config):
    """
    Transform an orderBy clause using field mappings.

    Only the first key is considered.

    Examples:
        >>> config = TransformConfig.from_dict({"fieldMappings": {"authorName": "author"},
        ...                                     "fieldNameMappings": {"authorName": "name"}})
        >>> transform_order_by({"authorName": "desc"}, config)
        {'author': {'name': 'desc'}}
        >>> transform_order_by({"createdAt": "asc"}, config)
        {'createdAt': 'asc'}
    """
    if not order_by or not isinstance(order_by, dict):
        return order_by

    config = TransformConfig.coerce(config)

    field, direction = next(iter(order_by.items()))
    relation = config.field_mappings.get(field)
    actual_field = config.field_name_mappings.get(field) or field
    relation_handler = config.relation_handlers.get(field)
    if relation_handler is not None:
        relation_handler = RelationHandler.from_dict(relation_handler)

    if relation:
        if relation_handler and relation_handler.custom_handler:
            return relation_handler.custom_handler(direction, actual_field)
        nested_field = (relation_handler and relation_handler.nested_field) or actual_field
        return {relation: {nested_field: direction}}

    if actual_field != field:
        return {actual_field: direction}

    return order_by
