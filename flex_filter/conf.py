"""
Flex-Filter Settings

Configuration is read from Django settings under the FLEX_FILTER key.
All settings have sensible defaults, and the defaults also apply when the
library runs outside a configured Django project.

Example:
    # settings.py
    FLEX_FILTER = {
        'DEFAULT_PAGE_SIZE': 25,
        'SPECIFICATION': {
            'allowedFields': ['status', 'title', 'author.name'],
            'allowedRelations': ['author'],
            'maxPageSize': 100,
        },
        'TRANSFORM_CONFIG': {
            'fieldMappings': {'authorName': 'author'},
            'fieldNameMappings': {'authorName': 'name'},
        },
    }
"""


from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from flex_filter.types import ORDER_RULES, Specification, TransformConfig

DEFAULTS = {
    # Pagination
    "DEFAULT_PAGE_SIZE": 10,  # take used when no rows are given
    # Ordering
    "DEFAULT_ORDER_RULE": "asc",
    # Facade defaults used by create_query_builder()
    "SPECIFICATION": None,  # dict or Specification, None disables validation
    "TRANSFORM_CONFIG": None,  # dict or TransformConfig, None disables transformation
}


def _page_size(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"expected a positive integer, got {value!r}")
    return value


def _order_rule(value):
    if value not in ORDER_RULES:
        raise ValueError(f"expected one of {', '.join(ORDER_RULES)}, got {value!r}")
    return value


# Checked and converted on first access
COERCERS = {
    "DEFAULT_PAGE_SIZE": _page_size,
    "DEFAULT_ORDER_RULE": _order_rule,
    "SPECIFICATION": Specification.coerce,
    "TRANSFORM_CONFIG": TransformConfig.coerce,
}


class FilterSettings:
    """
    Lazily read, checked view of the FLEX_FILTER setting.

        from flex_filter.conf import filter_settings
        filter_settings.DEFAULT_PAGE_SIZE   # 10
        filter_settings.SPECIFICATION       # Specification or None

    Each value is checked on first access: page size must be a positive
    integer, the order rule one of ORDER_RULES, and SPECIFICATION /
    TRANSFORM_CONFIG mappings are converted to Specification /
    TransformConfig. A bad value raises ImproperlyConfigured naming the key.

    Outside a configured Django project only the defaults are used.
    """

    def __init__(self, defaults=None, coercers=None):
        self.defaults = defaults or DEFAULTS
        self.coercers = COERCERS if coercers is None else coercers
        self._cached_attrs = set()

    @property
    def user_settings(self):
        if not hasattr(self, "_user_settings"):
            if settings.configured:
                self._user_settings = getattr(settings, "FLEX_FILTER", {})
            else:
                self._user_settings = {}
        return self._user_settings

    def __getattr__(self, attr):
        if attr not in self.defaults:
            raise AttributeError(f"Invalid flex-filter setting: '{attr}'")

        val = self.user_settings.get(attr, self.defaults[attr])

        coerce = self.coercers.get(attr)
        if coerce is not None:
            try:
                val = coerce(val)
            except (TypeError, ValueError) as e:
                raise ImproperlyConfigured(f"FLEX_FILTER['{attr}'] is invalid: {e}") from e

        self._cached_attrs.add(attr)
        setattr(self, attr, val)
        return val

    def reload(self):
        """Drop cached values so the next access re-reads Django settings."""
        for attr in self._cached_attrs:
            try:
                delattr(self, attr)
            except AttributeError:
                pass
        self._cached_attrs.clear()
        if hasattr(self, "_user_settings"):
            delattr(self, "_user_settings")


filter_settings = FilterSettings(DEFAULTS)
