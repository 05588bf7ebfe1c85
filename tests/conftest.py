"""
Test Suite Configuration
"""
from datetime import date
from decimal import Decimal
from typing import Callable, List

import polars as pl
import pytest

from seller_economics.config import EngineSettings, Settings
from seller_economics.domain import DateGranularity, FactKind, FulfillmentChannel, ProductIdentifierGranularity
from seller_economics.domain.facts import Fact
from seller_economics.engine import EconomicsEngine
from seller_economics.engine.aggregator import DimensionalAggregator
from seller_economics.engine.dates import DateBucketer, normalize_date_range

US = "ATVPDKIKX0DER"
UK = "A1F83G8C2ARO7P"
TODAY = date(2024, 6, 1)

_DECIMAL_FIELDS = {
    "amount",
    "promotion_amount",
    "tax_amount",
    "quantity",
    "ordered_product_sales",
    "refunded_product_sales",
    "cost_of_goods_sold",
    "miscellaneous_cost",
    "shipping_to_amazon_cost",
    "mfn_fulfillment_cost",
    "mfn_storage_cost",
}


def build_fact(kind: FactKind = FactKind.SALE, **values) -> Fact:
    """Fact with US defaults; numeric values are converted to Decimal"""
    values.setdefault("marketplace_id", US)
    values.setdefault("currency_code", "USD")
    if kind is not FactKind.COST:
        values.setdefault("date", date(2024, 3, 13))
    for name in _DECIMAL_FIELDS & set(values):
        if values[name] is not None and not isinstance(values[name], Decimal):
            values[name] = Decimal(str(values[name]))
    return Fact(kind=kind, **values)


def week_aggregator(
    granularity: ProductIdentifierGranularity = ProductIdentifierGranularity.MSKU,
    marketplaces=(US,),
    workers: int = 1,
) -> DimensionalAggregator:
    """Aggregator over the two weeks 2024-03-10..2024-03-23"""
    buckets = normalize_date_range(date(2024, 3, 10), date(2024, 3, 23), DateGranularity.WEEK, today=TODAY)
    return DimensionalAggregator(DateBucketer(buckets), granularity, marketplaces, worker_count=workers)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Engine settings with a small thread pool"""
    return EngineSettings(worker_count=2)


@pytest.fixture
def engine(engine_settings) -> EconomicsEngine:
    """Engine pinned to a fixed 'today'"""
    return EconomicsEngine(settings=engine_settings, today=lambda: TODAY)


@pytest.fixture
def make_fact() -> Callable[..., Fact]:
    """Factory for single facts"""
    return build_fact


@pytest.fixture
def sample_facts() -> List[Fact]:
    """
    One week of facts for two MSKUs of the same parent in the US marketplace.

    MSKU-A (FBA): 10 ordered, 2 refunded, referral and fulfillment fees,
    one sponsored products charge and a unit cost of 3.00.
    MSKU-B (MFN): 5 ordered, no refunds, a referral fee and a unit cost of 4.00.
    """
    a = dict(parent_asin="B0PARENT01", child_asin="B0CHILD001", msku="MSKU-A", fnsku="X00FNSKUA1")
    b = dict(parent_asin="B0PARENT01", child_asin="B0CHILD002", msku="MSKU-B", fnsku="X00FNSKUB1")
    return [
        build_fact(FactKind.SALE, date=date(2024, 3, 11), units_ordered=6, units_refunded=2,
                   ordered_product_sales=60, refunded_product_sales=20, **a),
        build_fact(FactKind.SALE, date=date(2024, 3, 14), units_ordered=4,
                   ordered_product_sales=40, **a),
        build_fact(FactKind.FEE, date=date(2024, 3, 11), type_name="REFERRAL_FEE",
                   amount=5, promotion_amount=1, tax_amount="0.5", quantity=None, **a),
        build_fact(FactKind.FEE, date=date(2024, 3, 14), type_name="FBA_FULFILLMENT_FEE",
                   component_name="BASE_FEE", amount=8, quantity=4, **a),
        build_fact(FactKind.FEE, date=date(2024, 3, 14), type_name="FBA_FULFILLMENT_FEE",
                   component_name="FUEL_SURCHARGE", amount=2, quantity=0, **a),
        build_fact(FactKind.AD, date=date(2024, 3, 12), type_name="SPONSORED_PRODUCTS",
                   amount=6, quantity=30, **a),
        build_fact(FactKind.COST, cost_of_goods_sold="2.50", miscellaneous_cost="0.10",
                   shipping_to_amazon_cost="0.40", fulfillment_channel=FulfillmentChannel.FBA, **a),
        build_fact(FactKind.SALE, date=date(2024, 3, 15), units_ordered=5,
                   ordered_product_sales=100, **b),
        build_fact(FactKind.FEE, date=date(2024, 3, 15), type_name="REFERRAL_FEE",
                   amount=15, quantity=5, **b),
        build_fact(FactKind.COST, cost_of_goods_sold=3, mfn_fulfillment_cost="0.75",
                   mfn_storage_cost="0.25", fulfillment_channel=FulfillmentChannel.MFN, **b),
    ]


@pytest.fixture
def sample_facts_df() -> pl.DataFrame:
    """Raw fact table as it arrives from the data lake"""
    return pl.DataFrame({
        "kind": ["sale", "FEE", "AD", "COST"],
        "marketplace_id": [US, US, US, US],
        "date": ["2024-03-11", "2024-03-11", "2024-03-12", None],
        "parent_asin": ["B0PARENT01"] * 4,
        "child_asin": ["B0CHILD001"] * 4,
        "msku": ["MSKU-A"] * 4,
        "type_name": [None, "REFERRAL_FEE", "SPONSORED_PRODUCTS", None],
        "amount": [None, 5.0, 6.0, None],
        "promotion_amount": [None, 1.0, None, None],
        "tax_amount": [None, 0.5, None, None],
        "quantity": [None, None, 30.0, None],
        "units_ordered": [10, None, None, None],
        "units_refunded": [2, None, None, None],
        "ordered_product_sales": [100.0, None, None, None],
        "refunded_product_sales": [20.0, None, None, None],
        "currency_code": ["USD"] * 4,
        "cost_of_goods_sold": [None, None, None, 2.5],
        "fulfillment_channel": [None, None, None, "FBA"],
    })
