"""
Aggregation Engine Module
"""
from .aggregator import DimensionalAggregator, GroupAccumulator
from .components import FeeComponentFilter
from .dates import DateBucketer, normalize_date_range
from .execution import CancellationToken
from .pipeline import EconomicsEngine, build_query
from .product_keys import product_key_for, resolve_identifiers
from .retention import RetentionResolver

__all__ = [
    "DimensionalAggregator",
    "GroupAccumulator",
    "FeeComponentFilter",
    "DateBucketer",
    "normalize_date_range",
    "CancellationToken",
    "EconomicsEngine",
    "build_query",
    "product_key_for",
    "resolve_identifiers",
    "RetentionResolver",
]
