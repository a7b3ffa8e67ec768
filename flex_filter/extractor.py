"""
Flex-Filter Parameter Extraction

Turns raw query-string parameters into a FilterRequest.

Framework-agnostic: works with any mapping of name -> string or list of
strings, including Django's QueryDict (request.GET).

Example:
    ?filters={"status":"active"}&searchFilters={"title":"x"}&page=2&rows=5

Becomes:
    FilterRequest(filters={'status': 'active'}, search_filters={'title': 'x'},
                  page=2, rows=5)
"""

import json
import logging
import math
import re

from flex_filter.types import FilterRequest, RangedFilter


logger = logging.getLogger("flex_filter")

# parseInt-style prefix: leading whitespace, optional sign, digits
INTEGER_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


def get_param(params, name):
    """
    Get the first value of a parameter, or None if absent.

    Repeated keys (?page=1&page=2) resolve to the first value; extra
    values are ignored.
    """
    if hasattr(params, "getlist"):
        # QueryDict.__getitem__ returns the *last* value
        values = params.getlist(name)
        return values[0] if values else None

    value = params.get(name)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_int(value):
    """
    Parse a base-10 integer the lenient way query strings need.

    Returns math.nan when no leading digits are found; the caller (or the
    validator) is responsible for noticing it.

    Examples:
        >>> parse_int("25")
        25
        >>> parse_int(" 7rows")
        7
        >>> parse_int("abc")
        nan
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else math.nan

    match = INTEGER_PREFIX_RE.match(str(value))
    if not match:
        return math.nan
    return int(match.group(1))


def _report(diagnostics, message):
    logger.warning(message)
    if diagnostics is not None:
        diagnostics.append(message)


def _decode_json(name, raw, expected_type, diagnostics):
    """Decode a JSON parameter, returning None (and reporting) on failure."""
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except ValueError as e:  # JSONDecodeError or undecodable bytes
            _report(diagnostics, f"Failed to parse {name}: {e}")
            return None
    else:
        # Already decoded (e.g. a JSON body merged into the params)
        value = raw

    if not isinstance(value, expected_type):
        _report(diagnostics, f"Failed to parse {name}: expected a JSON {expected_type.__name__}")
        return None
    return value


def _decode_ranged_filters(raw, diagnostics):
    items = _decode_json("rangedFilters", raw, list, diagnostics)
    if items is None:
        return None

    try:
        ranges = [RangedFilter.from_dict(item) for item in items]
    except (KeyError, TypeError, AttributeError) as e:
        _report(diagnostics, f"Failed to parse rangedFilters: invalid range entry ({e})")
        return None

    if not all(isinstance(item.key, str) for item in ranges):
        _report(diagnostics, "Failed to parse rangedFilters: invalid range entry (key must be a string)")
        return None
    return ranges


def extract_query_from_params(params, diagnostics=None):
    """
    Extract a FilterRequest from query parameters.

    Recognized keys: filters, searchFilters, rangedFilters (JSON),
    orderKey, orderRule (raw strings), page, rows (integers).

    Malformed JSON never fails the extraction: the affected key is left
    out, a warning is logged and, if ``diagnostics`` is a list, the message
    is appended to it.

    Args:
        params: Mapping of name -> str or list of str (dict or QueryDict)
        diagnostics: Optional list collecting parse-failure messages

    Returns:
        FilterRequest with only the present keys populated
    """
    request = FilterRequest()

    filters = get_param(params, "filters")
    if filters:
        request.filters = _decode_json("filters", filters, dict, diagnostics)

    search_filters = get_param(params, "searchFilters")
    if search_filters:
        request.search_filters = _decode_json("searchFilters", search_filters, dict, diagnostics)

    ranged_filters = get_param(params, "rangedFilters")
    if ranged_filters:
        request.ranged_filters = _decode_ranged_filters(ranged_filters, diagnostics)

    order_key = get_param(params, "orderKey")
    if order_key:
        request.order_key = order_key

    # Passed through as-is; invalid rules are not interpreted here
    order_rule = get_param(params, "orderRule")
    if order_rule:
        request.order_rule = order_rule

    page = get_param(params, "page")
    if page:
        request.page = parse_int(page)

    rows = get_param(params, "rows")
    if rows:
        request.rows = parse_int(rows)

    return request


class QueryExtractor:
    """
    Holds a parameter source and extracts FilterRequests from it.

    Example:
        extractor = create_query_extractor(request.GET)
        filter_request = extractor.extract()
    """

    def __init__(self, params):
        self.params = params

    def get_query_params(self):
        return self.params

    def extract(self, diagnostics=None):
        return extract_query_from_params(self.params, diagnostics=diagnostics)


def create_query_extractor(params):
    """Create a QueryExtractor for any mapping of query parameters."""
    return QueryExtractor(params)
