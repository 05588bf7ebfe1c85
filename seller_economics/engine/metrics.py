"""
Derived Metrics

Computes the dependent monetary fields of a finished group.

Two distinct missing-value rules apply here and are kept apart on purpose:
- ``ratio``: an undefined ratio (missing operand, zero denominator) is None
- ``cost_component``: a missing cost component counts as zero
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Union

import structlog

from seller_economics.domain.facts import ZERO, CostRecord
from seller_economics.domain.models import (
    Ad,
    AggregatedDetail,
    Cost,
    FbaCost,
    Fee,
    MfnCost,
    Money,
    NetProceeds,
    Sales,
)
from .aggregator import CostIndex, DetailSums, GroupAccumulator, SalesCounters

logger = structlog.get_logger(__name__)

Number = Union[Decimal, int]


def ratio(numerator: Optional[Decimal], denominator: Optional[Number]) -> Optional[Decimal]:
    """numerator / denominator, or None when either is missing or the denominator is zero"""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / Decimal(denominator)


def cost_component(value: Optional[Decimal]) -> Decimal:
    """Missing cost components contribute zero"""
    return value if value is not None else ZERO


def money(amount: Decimal, currency_code: Optional[str]) -> Money:
    return Money(amount=amount, currency_code=currency_code)


def optional_money(amount: Optional[Decimal], currency_code: Optional[str]) -> Optional[Money]:
    return None if amount is None else Money(amount=amount, currency_code=currency_code)


def aggregated_detail(sums: DetailSums, currency_code: Optional[str]) -> AggregatedDetail:
    """Finalize one (kind, type) sum: totalAmount and amountPerUnit"""
    total = sums.amount - sums.promotion_amount + sums.tax_amount
    return AggregatedDetail(
        amount=money(sums.amount, currency_code),
        promotion_amount=money(sums.promotion_amount, currency_code),
        tax_amount=money(sums.tax_amount, currency_code),
        total_amount=money(total, currency_code),
        amount_per_unit=optional_money(ratio(total, sums.quantity), currency_code),
        quantity=sums.quantity,
    )


def build_sales(counters: SalesCounters, currency_code: Optional[str]) -> Sales:
    net_sales = counters.ordered_product_sales - counters.refunded_product_sales
    return Sales(
        ordered_product_sales=money(counters.ordered_product_sales, currency_code),
        net_product_sales=money(net_sales, currency_code),
        average_selling_price=optional_money(
            ratio(counters.ordered_product_sales, counters.units_ordered), currency_code
        ),
        units_ordered=counters.units_ordered,
        units_refunded=counters.units_refunded,
        net_units_sold=counters.units_ordered - counters.units_refunded,
    )


def build_ads(group: GroupAccumulator, currency_code: Optional[str]) -> Optional[List[Ad]]:
    """Ad details sorted by type; None when the group has no ad charges"""
    if not group.ads:
        return None
    return [
        Ad(ad_type_name=name, charge=aggregated_detail(group.ads[name], currency_code))
        for name in sorted(group.ads)
    ]


def applicable_unit_cost(record: CostRecord) -> Decimal:
    """COGS + misc + (FBA inbound shipping, or MFN fulfillment + storage)"""
    unit_cost = cost_component(record.cost_of_goods_sold) + cost_component(record.miscellaneous_cost)
    if record.is_fba:
        return unit_cost + cost_component(record.shipping_to_amazon_cost)
    return (
        unit_cost
        + cost_component(record.mfn_fulfillment_cost)
        + cost_component(record.mfn_storage_cost)
    )


def resolve_cost_records(
    group: GroupAccumulator,
    cost_index: CostIndex,
) -> Dict[str, CostRecord]:
    """
    Cost record per MSKU seen in the group.

    An MSKU with conflicting records for the same marketplace gets none.
    """
    resolved: Dict[str, CostRecord] = {}
    for msku in sorted(group.mskus):
        records = cost_index.get((group.key.marketplace_id, msku), [])
        if len(records) == 1:
            resolved[msku] = records[0]
        elif len(records) > 1:
            logger.warning(
                "Conflicting cost records ignored",
                marketplace_id=group.key.marketplace_id,
                msku=msku,
                records=len(records),
            )
    return resolved


def build_cost(records: Iterable[CostRecord], currency_code: Optional[str]) -> Optional[Cost]:
    """Pass-through cost block when exactly one distinct record applies"""
    distinct = set(records)
    if len(distinct) != 1:
        return None
    record = distinct.pop()
    currency = currency_code or record.currency_code

    fba_cost = None
    if record.shipping_to_amazon_cost is not None:
        fba_cost = FbaCost(shipping_to_amazon_cost=money(record.shipping_to_amazon_cost, currency))

    mfn_cost = None
    if record.mfn_fulfillment_cost is not None or record.mfn_storage_cost is not None:
        mfn_cost = MfnCost(
            fulfillment_cost=optional_money(record.mfn_fulfillment_cost, currency),
            storage_cost=optional_money(record.mfn_storage_cost, currency),
        )

    return Cost(
        cost_of_goods_sold=optional_money(record.cost_of_goods_sold, currency),
        fba_cost=fba_cost,
        mfn_cost=mfn_cost,
        miscellaneous_cost=optional_money(record.miscellaneous_cost, currency),
    )


def cost_deduction(group: GroupAccumulator, records: Dict[str, CostRecord]) -> Decimal:
    """Unit cost times net units sold, per MSKU; MSKUs without costs add zero"""
    deduction = ZERO
    for msku, net_units in sorted(group.net_units_by_msku.items(), key=lambda item: item[0] or ""):
        record = records.get(msku) if msku is not None else None
        if record is None:
            continue
        deduction += applicable_unit_cost(record) * net_units
    return deduction


def build_net_proceeds(
    sales: Sales,
    fees: List[Fee],
    ads: Optional[List[Ad]],
    deduction: Decimal,
    currency_code: Optional[str],
) -> NetProceeds:
    """netProductSales minus fee totals, ad totals and unit costs"""
    total = sales.net_product_sales.amount
    total -= sum((fee.charge.total_amount.amount for fee in fees), ZERO)
    total -= sum((ad.charge.total_amount.amount for ad in ads or []), ZERO)
    total -= deduction
    return NetProceeds(
        total=money(total, currency_code),
        per_unit=optional_money(ratio(total, sales.net_units_sold), currency_code),
    )


def group_currency(group: GroupAccumulator, records: Dict[str, CostRecord]) -> Optional[str]:
    """Currency of the group's facts, falling back to its cost records"""
    if group.currency_code:
        return group.currency_code
    codes = sorted({r.currency_code for r in records.values() if r.currency_code})
    return codes[0] if codes else None

