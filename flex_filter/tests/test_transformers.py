"""
Tests for flex_filter.transformers module.
"""

import math
from datetime import date, datetime, timezone

import pytest


def make_config(**kwargs):
    from flex_filter.types import TransformConfig

    return TransformConfig.from_dict(kwargs)


class TestExtractRawValue:
    """Tests for extract_raw_value function."""

    def test_scalar(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value("x") == "x"
        assert extract_raw_value(5) == 5
        assert extract_raw_value(None) is None

    def test_list(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value(["a", "b"]) == ["a", "b"]

    def test_contains(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value({"contains": "x"}) == "x"

    def test_nested_equals(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value({"equals": {"contains": "x"}}) == "x"

    def test_starts_and_ends_with(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value({"startsWith": "a"}) == "a"
        assert extract_raw_value({"endsWith": "z"}) == "z"

    def test_other_operator_takes_first_value(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value({"gte": 10, "lte": 100}) == 10

    def test_empty_dict(self):
        from flex_filter.transformers import extract_raw_value

        assert extract_raw_value({}) == {}


class TestProcessFieldValue:
    """Tests for process_field_value function."""

    def test_default_string_becomes_contains(self):
        from flex_filter.transformers import process_field_value

        assert process_field_value("x") == {"contains": "x"}

    def test_default_number_becomes_equals(self):
        from flex_filter.transformers import process_field_value

        assert process_field_value(5) == {"equals": 5}
        assert process_field_value(True) == {"equals": True}

    def test_default_object_passes_through(self):
        from flex_filter.transformers import process_field_value

        assert process_field_value({"gte": {"a": 1}}) == {"a": 1}

    def test_custom_type_handler(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        handler = FieldTypeHandler(type="custom", custom_handler=lambda raw: {"in": raw.split(",")})
        assert process_field_value({"contains": "a,b"}, handler) == {"in": ["a", "b"]}

    def test_number(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        assert process_field_value("42", FieldTypeHandler(type="number")) == {"equals": 42}
        assert process_field_value("4.5", FieldTypeHandler(type="number")) == {"equals": 4.5}
        assert process_field_value(7, FieldTypeHandler(type="number", operator="gte")) == {"gte": 7}

    def test_number_not_a_number_dropped(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        assert process_field_value("abc", FieldTypeHandler(type="number")) is None
        assert process_field_value(math.nan, FieldTypeHandler(type="number")) is None

    def test_boolean(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        handler = FieldTypeHandler(type="boolean")
        assert process_field_value("TRUE", handler) == {"equals": True}
        assert process_field_value("yes", handler) == {"equals": False}
        assert process_field_value(1, handler) == {"equals": True}
        assert process_field_value(0, handler) == {"equals": False}

    def test_boolean_ignores_operator(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        handler = FieldTypeHandler(type="boolean", operator="not")
        assert process_field_value("true", handler) == {"equals": True}

    def test_date(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        result = process_field_value("2024-03-01T10:00:00Z", FieldTypeHandler(type="date", operator="gte"))
        assert result == {"gte": datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)}

    def test_date_from_timestamp_millis(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        result = process_field_value(0, FieldTypeHandler(type="date"))
        assert result == {"equals": datetime(1970, 1, 1, tzinfo=timezone.utc)}

    def test_date_object_passes_through(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        assert process_field_value(date(2024, 1, 2), FieldTypeHandler(type="date")) == {"equals": date(2024, 1, 2)}

    def test_unparseable_date_dropped(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        assert process_field_value("not a date", FieldTypeHandler(type="date")) is None
        assert process_field_value("2024-13-45T00:00:00Z", FieldTypeHandler(type="date")) is None

    def test_string(self):
        from flex_filter.transformers import process_field_value
        from flex_filter.types import FieldTypeHandler

        assert process_field_value("x", FieldTypeHandler(type="string")) == {"contains": "x"}
        assert process_field_value("x", FieldTypeHandler(type="string", operator="startsWith")) == {"startsWith": "x"}

    def test_handler_from_dict(self):
        from flex_filter.transformers import process_field_value

        assert process_field_value("3", {"type": "number", "searchOperator": "lt"}) == {"lt": 3}


class TestTransformWhereClause:
    """Tests for transform_where_clause function."""

    def test_empty_config_normalizes_values(self):
        """
        An empty config is not a strict identity: scalar values are wrapped
        in their default predicate.
        """
        from flex_filter.transformers import transform_where_clause

        where = {"AND": [
            {"status": "active"},
            {"count": 3},
            {"OR": [{"category": "a"}, {"category": "b"}]},
            {"title": {"contains": "x"}},
        ]}

        assert transform_where_clause(where, make_config()) == {"AND": [
            {"status": {"contains": "active"}},
            {"count": {"equals": 3}},
            {"OR": [{"category": {"contains": "a"}}, {"category": {"contains": "b"}}]},
            {"title": {"contains": "x"}},
        ]}

    def test_falsy_where_returned_as_is(self):
        from flex_filter.transformers import transform_where_clause

        assert transform_where_clause({}, make_config()) == {}
        assert transform_where_clause(None, make_config()) is None

    def test_field_name_mapping(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldNameMappings={"createdBy": "created_by_id"})
        where = {"AND": [{"createdBy": 5}]}

        assert transform_where_clause(where, config) == {"AND": [{"created_by_id": {"equals": 5}}]}

    def test_relation_mapping(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(
            fieldMappings={"authorName": "author"},
            fieldNameMappings={"authorName": "name"},
        )
        where = {"AND": [{"authorName": {"contains": "Ann"}}]}

        assert transform_where_clause(where, config) == {
            "AND": [{"author": {"name": {"contains": "Ann"}}}]
        }

    def test_relation_mapping_without_name_mapping_uses_key(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldMappings={"city": "address"})

        assert transform_where_clause({"AND": [{"city": "Oslo"}]}, config) == {
            "AND": [{"address": {"city": {"contains": "Oslo"}}}]
        }

    def test_relation_custom_handler(self):
        from flex_filter.transformers import transform_where_clause

        calls = []

        def tag_handler(value, actual_field):
            calls.append((value, actual_field))
            return {"some": {actual_field: {"equals": value}}}

        config = make_config(
            fieldMappings={"tag": "tags"},
            fieldNameMappings={"tag": "name"},
            relationHandlers={"tag": {"type": "many-to-many", "customHandler": tag_handler}},
        )
        where = {"AND": [{"tag": {"contains": "python"}}]}

        assert transform_where_clause(where, config) == {
            "AND": [{"tags": {"some": {"name": {"equals": "python"}}}}]
        }
        assert calls == [("python", "name")]

    def test_relation_custom_handler_none_drops_field(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(
            fieldMappings={"tag": "tags"},
            relationHandlers={"tag": {"type": "many-to-many", "customHandler": lambda v, f: None}},
        )
        where = {"AND": [{"tag": "x"}, {"status": "active"}]}

        assert transform_where_clause(where, config) == {"AND": [{"status": {"contains": "active"}}]}

    def test_type_handler_applies_to_mapped_field(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(
            fieldMappings={"authorAge": "author"},
            fieldNameMappings={"authorAge": "age"},
            fieldTypeHandlers={"authorAge": {"type": "number", "operator": "gte"}},
        )

        assert transform_where_clause({"AND": [{"authorAge": "30"}]}, config) == {
            "AND": [{"author": {"age": {"gte": 30}}}]
        }

    def test_dropped_field_removes_empty_condition(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldTypeHandlers={"price": {"type": "number"}})
        where = {"AND": [{"price": "cheap"}, {"status": "active"}]}

        assert transform_where_clause(where, config) == {"AND": [{"status": {"contains": "active"}}]}

    def test_everything_dropped_collapses_to_empty(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldTypeHandlers={"price": {"type": "number"}})
        where = {"AND": [{"price": "cheap"}, {"OR": [{"price": "free"}]}]}

        assert transform_where_clause(where, config) == {}

    def test_empty_and_collapses_to_empty(self):
        from flex_filter.transformers import transform_where_clause

        assert transform_where_clause({"AND": []}, make_config()) == {}

    def test_or_root(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldNameMappings={"a": "alpha"})

        assert transform_where_clause({"OR": [{"a": 1}, {"b": 2}]}, config) == {
            "OR": [{"alpha": {"equals": 1}}, {"b": {"equals": 2}}]
        }

    def test_plain_condition_root(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldNameMappings={"a": "alpha"})

        assert transform_where_clause({"a": 1}, config) == {"alpha": {"equals": 1}}

    def test_nested_or_element_dropped_when_empty(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldTypeHandlers={"n": {"type": "number"}})
        where = {"AND": [{"OR": [{"n": "x"}, {"n": "1"}]}]}

        assert transform_where_clause(where, config) == {"AND": [{"OR": [{"n": {"equals": 1}}]}]}

    def test_deeper_nesting_is_walked(self):
        from flex_filter.transformers import transform_where_clause

        config = make_config(fieldNameMappings={"a": "alpha"})
        where = {"AND": [{"OR": [{"AND": [{"a": 1}]}]}]}

        assert transform_where_clause(where, config) == {
            "AND": [{"OR": [{"AND": [{"alpha": {"equals": 1}}]}]}]
        }

    def test_none_values_skipped(self):
        from flex_filter.transformers import transform_where_clause

        assert transform_where_clause({"AND": [{"a": None, "b": 1}]}, make_config()) == {
            "AND": [{"b": {"equals": 1}}]
        }

    def test_accepts_dict_config(self):
        from flex_filter.transformers import transform_where_clause

        where = {"AND": [{"a": 1}]}
        assert transform_where_clause(where, {"fieldNameMappings": {"a": "alpha"}}) == {
            "AND": [{"alpha": {"equals": 1}}]
        }

    def test_compiled_query_round(self):
        from flex_filter.filters import build_filter_query
        from flex_filter.transformers import transform_where_clause

        options = build_filter_query({
            "filters": {"authorName": "Ann"},
            "rangedFilters": [{"key": "price", "start": 10, "end": 100}],
        })
        config = make_config(
            fieldMappings={"authorName": "author"},
            fieldNameMappings={"authorName": "name", "price": "price_cents"},
        )

        # Ranges unwrap to their first bound
        assert transform_where_clause(options.where, config) == {"AND": [
            {"author": {"name": {"contains": "Ann"}}},
            {"price_cents": {"equals": 10}},
        ]}


class TestTransformOrderBy:
    """Tests for transform_order_by function."""

    def test_empty_order_by(self):
        from flex_filter.transformers import transform_order_by

        assert transform_order_by({}, make_config()) == {}

    def test_unmapped_returns_original(self):
        from flex_filter.transformers import transform_order_by

        order_by = {"createdAt": "asc"}
        assert transform_order_by(order_by, make_config()) is order_by

    def test_renamed(self):
        from flex_filter.transformers import transform_order_by

        config = make_config(fieldNameMappings={"createdAt": "created_at"})
        assert transform_order_by({"createdAt": "desc"}, config) == {"created_at": "desc"}

    def test_relation(self):
        from flex_filter.transformers import transform_order_by

        config = make_config(
            fieldMappings={"authorName": "author"},
            fieldNameMappings={"authorName": "name"},
        )
        assert transform_order_by({"authorName": "asc"}, config) == {"author": {"name": "asc"}}

    def test_relation_nested_field(self):
        from flex_filter.transformers import transform_order_by

        config = make_config(
            fieldMappings={"authorName": "author"},
            fieldNameMappings={"authorName": "name"},
            relationHandlers={"authorName": {"type": "one-to-one", "nestedField": "lastName"}},
        )
        assert transform_order_by({"authorName": "asc"}, config) == {"author": {"lastName": "asc"}}

    def test_relation_custom_handler(self):
        from flex_filter.transformers import transform_order_by

        config = make_config(
            fieldMappings={"tagCount": "tags"},
            relationHandlers={
                "tagCount": {"type": "many-to-many", "customHandler": lambda d, f: {"tags": {"_count": d}}},
            },
        )
        assert transform_order_by({"tagCount": "desc"}, config) == {"tags": {"_count": "desc"}}

    def test_only_first_key_considered(self):
        from flex_filter.transformers import transform_order_by

        config = make_config(fieldNameMappings={"a": "alpha", "b": "beta"})
        assert transform_order_by({"a": "asc", "b": "desc"}, config) == {"alpha": "asc"}
