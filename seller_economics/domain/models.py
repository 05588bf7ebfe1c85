"""
Economics Domain Models

Query, bucket, key and output row types. Every output type is frozen: rows
are created once per group after all facts are folded in.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import FrozenSet, List, Optional, Tuple

from .enums import DateGranularity, FeeType, ProductIdentifierGranularity


# =============================================================================
# QUERY
# =============================================================================

@dataclass(frozen=True)
class AggregateBy:
    """Aggregation dimensions; None falls back to configured defaults"""
    date: Optional[DateGranularity] = None
    product_id: Optional[ProductIdentifierGranularity] = None


@dataclass(frozen=True)
class EconomicsQuery:
    """
    A validated economics request.

    selected_fields holds dotted output paths (``fees.charge.totalAmount``)
    touched by the caller; None means the full row shape.
    """
    start_date: date
    end_date: date
    marketplace_ids: Tuple[str, ...]
    aggregate_by: AggregateBy = field(default_factory=AggregateBy)
    include_components_for_fee_types: FrozenSet[FeeType] = frozenset()
    selected_fields: Optional[FrozenSet[str]] = None


# =============================================================================
# GROUP IDENTITY
# =============================================================================

@dataclass(frozen=True, order=True)
class DateBucket:
    """Closed date interval [start, end] produced by one granularity"""
    start: date
    end: date
    granularity: DateGranularity = field(compare=False)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class ProductKey:
    """Product part of a group key: parent ASIN plus the grouped identifier"""
    granularity: ProductIdentifierGranularity
    parent_asin: Optional[str]
    identifier: Optional[str]

    def sort_key(self) -> Tuple:
        return (
            self.parent_asin is not None, self.parent_asin or "",
            self.identifier is not None, self.identifier or "",
        )


@dataclass(frozen=True)
class GroupKey:
    """Accumulation unit identity"""
    marketplace_id: str
    bucket: DateBucket
    product: ProductKey

    def sort_key(self) -> Tuple:
        return (self.marketplace_id, self.bucket.start, self.product.sort_key())


@dataclass(frozen=True)
class ProductIdentifiers:
    """Identifier fields emitted on a row"""
    parent_asin: Optional[str] = None
    child_asin: Optional[str] = None
    fnsku: Optional[str] = None
    msku: Optional[str] = None


# =============================================================================
# OUTPUT
# =============================================================================

@dataclass(frozen=True)
class Money:
    """Monetary leaf; currency code passed through from source facts"""
    amount: Decimal
    currency_code: Optional[str]


@dataclass(frozen=True)
class AggregatedDetail:
    amount: Money
    promotion_amount: Money
    tax_amount: Money
    total_amount: Money
    amount_per_unit: Optional[Money]
    quantity: Optional[Decimal]


@dataclass(frozen=True)
class FeeComponent:
    name: str
    charge: AggregatedDetail


@dataclass(frozen=True)
class Fee:
    fee_type_name: str
    charge: AggregatedDetail
    components: Optional[List[FeeComponent]] = None


@dataclass(frozen=True)
class Ad:
    ad_type_name: str
    charge: AggregatedDetail


@dataclass(frozen=True)
class Sales:
    ordered_product_sales: Money
    net_product_sales: Money
    average_selling_price: Optional[Money]
    units_ordered: int
    units_refunded: int
    net_units_sold: int


@dataclass(frozen=True)
class FbaCost:
    shipping_to_amazon_cost: Optional[Money]


@dataclass(frozen=True)
class MfnCost:
    fulfillment_cost: Optional[Money]
    storage_cost: Optional[Money]


@dataclass(frozen=True)
class Cost:
    cost_of_goods_sold: Optional[Money]
    fba_cost: Optional[FbaCost]
    mfn_cost: Optional[MfnCost]
    miscellaneous_cost: Optional[Money]


@dataclass(frozen=True)
class NetProceeds:
    total: Money
    per_unit: Optional[Money]


@dataclass(frozen=True)
class EconomicsRow:
    """One finalized group"""
    marketplace_id: str
    start_date: date
    end_date: date
    identifiers: ProductIdentifiers
    sales: Sales
    fees: List[Fee]
    ads: Optional[List[Ad]]
    cost: Optional[Cost]
    net_proceeds: NetProceeds

    @property
    def parent_asin(self) -> Optional[str]:
        return self.identifiers.parent_asin

    @property
    def child_asin(self) -> Optional[str]:
        return self.identifiers.child_asin

    @property
    def fnsku(self) -> Optional[str]:
        return self.identifiers.fnsku

    @property
    def msku(self) -> Optional[str]:
        return self.identifiers.msku


@dataclass(frozen=True)
class RetentionTag:
    """Shortest retention across the touched fields"""
    duration: str
    days: int


@dataclass(frozen=True)
class EconomicsResult:
    """Ordered rows plus result-set retention (None when untagged)"""
    rows: List[EconomicsRow]
    retention: Optional[RetentionTag] = None
    excluded_facts: int = 0
