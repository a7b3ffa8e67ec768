"""
Flex-Filter Query Builder

Ties together validation, compilation and field transformation.

Provides:
- QueryFilter class holding a specification and transform config
- create_query_builder function falling back to FLEX_FILTER settings
"""

import logging

from flex_filter.conf import filter_settings
from flex_filter.filters import build_filter_query
from flex_filter.transformers import transform_order_by, transform_where_clause
from flex_filter.types import BuildQueryResult, FilterRequest, Specification, TransformConfig
from flex_filter.validation import validate_query


logger = logging.getLogger("flex_filter")


class QueryFilter:
    """
    Builds and validates ORM query options from filter requests.

    The specification and transform config are replaced as a whole by
    their setters. There is no locking: share an instance across threads
    only if configuration is not changed while builds are running.

    Example:
        # Direct usage
        result = QueryFilter(
            specification={'allowedFields': ['status', 'title']},
        ).build(extract_query_from_params(request.GET))

        if result.validation.is_valid:
            rows = prisma.post.find_many(**result.query.as_dict())

        # Chained configuration
        query_filter = QueryFilter()
        query_filter.set_specification(spec).set_transform_config(config)
        options = query_filter.build_without_validation({...})
    """

    def __init__(self, specification=None, transform_config=None):
        """
        Initialize a QueryFilter.

        Args:
            specification: Optional Specification or mapping (None disables validation)
            transform_config: Optional TransformConfig or mapping (None disables transformation)
        """
        self.specification = Specification.coerce(specification)
        self.transform_config = TransformConfig.coerce(transform_config)

    def _build_query(self, request):
        query = build_filter_query(request)

        # One config per build
        config = self.transform_config
        if config is not None:
            if query.where:
                query.where = transform_where_clause(query.where, config)
            if query.order_by:
                query.order_by = transform_order_by(query.order_by, config)

        return query

    def build(self, request):
        """
        Validate and build query options.

        Args:
            request: FilterRequest or mapping with the same (wire) keys

        Returns:
            BuildQueryResult with query options and validation result
        """
        request = FilterRequest.coerce(request)
        validation = validate_query(request, self.specification)
        query = self._build_query(request)

        if not validation.is_valid:
            logger.debug("Filter request failed validation: %s", "; ".join(validation.errors))

        return BuildQueryResult(query=query, validation=validation)

    def build_without_validation(self, request):
        """Build query options, skipping validation."""
        return self._build_query(FilterRequest.coerce(request))

    def validate(self, request):
        """Validate a request without building it."""
        return validate_query(request, self.specification)

    def set_specification(self, specification):
        """Replace the specification."""
        self.specification = Specification.coerce(specification)
        return self

    def set_transform_config(self, config):
        """Replace the transform configuration."""
        self.transform_config = TransformConfig.coerce(config)
        return self

    def get_specification(self):
        return self.specification

    def get_transform_config(self):
        return self.transform_config


def create_query_builder(specification=None, transform_config=None):
    """
    Create a QueryFilter.

    Omitted arguments fall back to the SPECIFICATION and TRANSFORM_CONFIG
    entries of the FLEX_FILTER setting.

    Args:
        specification: Optional Specification or mapping
        transform_config: Optional TransformConfig or mapping

    Returns:
        QueryFilter

    Raises:
        ImproperlyConfigured: If a setting holds something other than a mapping
            or the matching config object

    Example:
        query_filter = create_query_builder()
        result = query_filter.build({'filters': {'status': 'active'}})
    """
    if specification is None:
        specification = filter_settings.SPECIFICATION
    if transform_config is None:
        transform_config = filter_settings.TRANSFORM_CONFIG
    return QueryFilter(specification, transform_config)
