"""
Raw Seller Facts

Immutable event-level records supplied by the fact source. One wide record
type covers every fact kind; attributes that do not apply to a kind keep
their defaults.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from .enums import FactKind, FulfillmentChannel, ProductIdentifierGranularity

ZERO = Decimal("0")


@dataclass(frozen=True)
class Fact:
    """
    A single sale, fee charge, ad charge or cost entry.

    Attributes:
        kind: Fact category
        marketplace_id: Marketplace the event belongs to
        date: Marketplace-local occurrence date (unused for COST)
        parent_asin, child_asin, fnsku, msku: Product identifiers, any may be absent
        type_name: Fee type or ad type name
        component_name: Fee component name, when the fee is decomposed
        amount, promotion_amount, tax_amount: Charge amounts
        quantity: Units charged; None means not charged per unit
        units_ordered, units_refunded: Sale counters
        ordered_product_sales, refunded_product_sales: Sale amounts
        currency_code: Passed through to every monetary output
        cost_of_goods_sold .. mfn_storage_cost: Seller-provided unit costs
        fulfillment_channel: FBA or MFN, for cost entries
    """
    kind: FactKind
    marketplace_id: str
    date: Optional[date] = None
    parent_asin: Optional[str] = None
    child_asin: Optional[str] = None
    fnsku: Optional[str] = None
    msku: Optional[str] = None
    type_name: Optional[str] = None
    component_name: Optional[str] = None
    amount: Decimal = ZERO
    promotion_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    quantity: Optional[Decimal] = None
    units_ordered: int = 0
    units_refunded: int = 0
    ordered_product_sales: Decimal = ZERO
    refunded_product_sales: Decimal = ZERO
    currency_code: Optional[str] = None
    cost_of_goods_sold: Optional[Decimal] = None
    miscellaneous_cost: Optional[Decimal] = None
    shipping_to_amazon_cost: Optional[Decimal] = None
    mfn_fulfillment_cost: Optional[Decimal] = None
    mfn_storage_cost: Optional[Decimal] = None
    fulfillment_channel: Optional[FulfillmentChannel] = None

    def identifier(self, granularity: ProductIdentifierGranularity) -> Optional[str]:
        """Identifier value at the given granularity"""
        if granularity is ProductIdentifierGranularity.PARENT_ASIN:
            return self.resolved_parent_asin
        return getattr(self, granularity.field_name)

    @property
    def resolved_parent_asin(self) -> Optional[str]:
        """A standalone ASIN is its own parent"""
        return self.parent_asin or self.child_asin


@dataclass(frozen=True)
class CostRecord:
    """Seller-provided unit costs for one MSKU"""
    msku: Optional[str]
    cost_of_goods_sold: Optional[Decimal] = None
    miscellaneous_cost: Optional[Decimal] = None
    shipping_to_amazon_cost: Optional[Decimal] = None
    mfn_fulfillment_cost: Optional[Decimal] = None
    mfn_storage_cost: Optional[Decimal] = None
    fulfillment_channel: Optional[FulfillmentChannel] = None
    currency_code: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_fact(cls, fact: Fact) -> "CostRecord":
        return cls(
            msku=fact.msku,
            cost_of_goods_sold=fact.cost_of_goods_sold,
            miscellaneous_cost=fact.miscellaneous_cost,
            shipping_to_amazon_cost=fact.shipping_to_amazon_cost,
            mfn_fulfillment_cost=fact.mfn_fulfillment_cost,
            mfn_storage_cost=fact.mfn_storage_cost,
            fulfillment_channel=fact.fulfillment_channel,
            currency_code=fact.currency_code,
        )

    @property
    def is_fba(self) -> bool:
        """Channel when declared, otherwise inferred from the FBA-only cost"""
        if self.fulfillment_channel is not None:
            return self.fulfillment_channel is FulfillmentChannel.FBA
        return self.shipping_to_amazon_cost is not None
