"""
Flex-Filter: Filter Parameters to ORM Query Options

Translates framework-agnostic filter, search, range, order and pagination
parameters (as sent in a query string) into where/orderBy/take/skip query
options for a Prisma-style ORM, with optional validation against a
specification and optional field/type/relation rewriting.

Example:
    from flex_filter import QueryFilter, extract_query_from_params

    filter_request = extract_query_from_params(request.GET)
    result = QueryFilter(
        specification={'allowedFields': ['status', 'title'], 'maxPageSize': 100},
    ).build(filter_request)

    if result.validation.is_valid:
        options = result.query.as_dict()
"""

__version__ = "1.0.0"

# Facade
from flex_filter.query import QueryFilter, create_query_builder

# Extraction
from flex_filter.extractor import (
    QueryExtractor,
    create_query_extractor,
    extract_query_from_params,
)

# Compilation
from flex_filter.filters import build_filter_query, build_pagination

# Transformation
from flex_filter.transformers import transform_order_by, transform_where_clause

# Validation
from flex_filter.validation import validate_query

# Types
from flex_filter.types import (
    OPERATORS,
    ORDER_RULES,
    BuildQueryResult,
    FieldTypeHandler,
    FilterRequest,
    QueryOptions,
    RangedFilter,
    RelationHandler,
    Specification,
    TransformConfig,
    ValidationResult,
)

# Configuration
from flex_filter.conf import filter_settings

__all__ = [
    # Version
    "__version__",
    # Facade
    "QueryFilter",
    "create_query_builder",
    # Extraction
    "QueryExtractor",
    "create_query_extractor",
    "extract_query_from_params",
    # Compilation
    "build_filter_query",
    "build_pagination",
    # Transformation
    "transform_where_clause",
    "transform_order_by",
    # Validation
    "validate_query",
    # Types
    "OPERATORS",
    "ORDER_RULES",
    "BuildQueryResult",
    "FieldTypeHandler",
    "FilterRequest",
    "QueryOptions",
    "RangedFilter",
    "RelationHandler",
    "Specification",
    "TransformConfig",
    "ValidationResult",
    # Settings
    "filter_settings",
]
