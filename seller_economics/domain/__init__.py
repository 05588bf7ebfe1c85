"""
Domain Module
"""
from .enums import (
    AdType,
    DateGranularity,
    FactKind,
    FeeType,
    FulfillmentChannel,
    ProductIdentifierGranularity,
)
from .errors import (
    EconomicsError,
    FactLoadError,
    InvalidMarketplace,
    InvalidRange,
    QueryCancelled,
    QueryValidationError,
    UnsupportedAggregation,
)
from .facts import CostRecord, Fact
from .models import (
    AggregateBy,
    DateBucket,
    EconomicsQuery,
    EconomicsResult,
    EconomicsRow,
    GroupKey,
    ProductKey,
    RetentionTag,
)

__all__ = [
    "AdType",
    "DateGranularity",
    "FactKind",
    "FeeType",
    "FulfillmentChannel",
    "ProductIdentifierGranularity",
    "EconomicsError",
    "FactLoadError",
    "InvalidMarketplace",
    "InvalidRange",
    "QueryCancelled",
    "QueryValidationError",
    "UnsupportedAggregation",
    "CostRecord",
    "Fact",
    "AggregateBy",
    "DateBucket",
    "EconomicsQuery",
    "EconomicsResult",
    "EconomicsRow",
    "GroupKey",
    "ProductKey",
    "RetentionTag",
]
