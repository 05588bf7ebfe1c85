"""
Engine Errors

Query validation failures are raised before any aggregation and carry a
stable code surfaced to API callers. Undefined ratios are never errors; they
are represented as None.
"""


class EconomicsError(Exception):
    """Base class for all engine failures"""

    code = "ECONOMICS_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QueryValidationError(EconomicsError):
    """The query cannot be answered as submitted"""

    code = "INVALID_QUERY"


class InvalidRange(QueryValidationError):
    """Date range is too short for its granularity, inverted, or too old"""

    code = "INVALID_RANGE"


class InvalidMarketplace(QueryValidationError):
    """Marketplace list is empty, blank, or entirely unrecognized"""

    code = "INVALID_MARKETPLACE"


class UnsupportedAggregation(QueryValidationError):
    """Unrecognized aggregation or fee type enumeration value"""

    code = "UNSUPPORTED_AGGREGATION"


class QueryCancelled(EconomicsError):
    """The caller cancelled the query or its deadline passed"""

    code = "QUERY_CANCELLED"


class FactLoadError(EconomicsError):
    """Raw fact data could not be converted into facts"""

    code = "FACT_LOAD_ERROR"
