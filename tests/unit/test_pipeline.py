"""
Unit Tests - Economics Pipeline
"""
import time
from datetime import date
from decimal import Decimal

import pytest

from seller_economics.config import EngineSettings
from seller_economics.data.generators import SellerFactGenerator
from seller_economics.domain import (
    DateGranularity,
    InvalidMarketplace,
    InvalidRange,
    ProductIdentifierGranularity,
    QueryCancelled,
    UnsupportedAggregation,
)
from seller_economics.engine import CancellationToken, EconomicsEngine, build_query
from seller_economics.ingestion import InMemoryFactSource

from conftest import TODAY, UK, US

D = Decimal


def week_query(**kwargs):
    kwargs.setdefault("date_granularity", "WEEK")
    return build_query(date(2024, 3, 10), date(2024, 3, 16), [US], **kwargs)


class RaisingSource:
    """Fails if the engine loads facts"""

    def load_facts(self, marketplace_ids, start_date, end_date):
        raise AssertionError("facts loaded for an invalid query")


class TestBuildQuery:
    """Wire values to query objects"""

    def test_enum_values_are_parsed(self):
        query = build_query(
            date(2024, 3, 1), date(2024, 3, 31), [US],
            date_granularity="MONTH",
            product_granularity="PARENT_ASIN",
            include_components_for_fee_types=["FBA_FULFILLMENT_FEE"],
        )

        assert query.aggregate_by.date is DateGranularity.MONTH
        assert query.aggregate_by.product_id is ProductIdentifierGranularity.PARENT_ASIN
        assert [t.value for t in query.include_components_for_fee_types] == ["FBA_FULFILLMENT_FEE"]

    @pytest.mark.parametrize("kwargs", [
        {"date_granularity": "YEAR"},
        {"product_granularity": "UPC"},
        {"include_components_for_fee_types": ["NOT_A_FEE"]},
    ])
    def test_unknown_enum_values_are_rejected(self, kwargs):
        with pytest.raises(UnsupportedAggregation):
            build_query(date(2024, 3, 1), date(2024, 3, 31), [US], **kwargs)


class TestValidation:
    """Queries rejected before aggregation"""

    def test_empty_marketplaces(self, engine):
        query = build_query(date(2024, 3, 10), date(2024, 3, 16), [])

        with pytest.raises(InvalidMarketplace):
            engine.execute(query, RaisingSource())

    def test_blank_marketplace(self, engine):
        query = build_query(date(2024, 3, 10), date(2024, 3, 16), [US, "  "])

        with pytest.raises(InvalidMarketplace):
            engine.execute(query, RaisingSource())

    def test_unrecognized_marketplace_with_registry(self):
        engine = EconomicsEngine(settings=EngineSettings(known_marketplace_ids=[US]), today=lambda: TODAY)
        query = build_query(date(2024, 3, 10), date(2024, 3, 16), ["XX"])

        with pytest.raises(InvalidMarketplace):
            engine.execute(query, RaisingSource())

    def test_range_too_short_for_granularity(self, engine):
        query = build_query(date(2024, 3, 13), date(2024, 3, 15), [US], date_granularity="WEEK")

        with pytest.raises(InvalidRange):
            engine.execute(query, RaisingSource())

    def test_missing_dates(self, engine):
        query = build_query(None, date(2024, 3, 15), [US])

        with pytest.raises(InvalidRange):
            engine.plan(query)

    def test_unknown_marketplace_without_registry_is_empty(self, engine, sample_facts):
        query = build_query(date(2024, 3, 10), date(2024, 3, 16), ["XX"])

        result = engine.execute(query, InMemoryFactSource(sample_facts))

        assert result.rows == []


class TestWeeklyMskuRows:
    """Full rows for the sample week at MSKU granularity"""

    @pytest.fixture
    def rows(self, engine, sample_facts):
        return engine.run(week_query(), sample_facts).rows

    def test_one_row_per_msku(self, rows):
        assert [r.msku for r in rows] == ["MSKU-A", "MSKU-B"]
        assert all((r.start_date, r.end_date) == (date(2024, 3, 10), date(2024, 3, 16)) for r in rows)

    def test_identifiers(self, rows):
        row = rows[0]

        assert row.parent_asin == "B0PARENT01"
        assert row.fnsku == "X00FNSKUA1"
        assert row.child_asin is None

    def test_sales(self, rows):
        sales = rows[0].sales

        assert sales.net_product_sales.amount == D("80")
        assert sales.net_units_sold == 8
        assert sales.average_selling_price.amount == D("10")
        assert sales.net_product_sales.currency_code == "USD"

    def test_fees_and_ads(self, rows):
        fees = {f.fee_type_name: f for f in rows[0].fees}

        assert fees["REFERRAL_FEE"].charge.total_amount.amount == D("4.5")
        assert fees["REFERRAL_FEE"].charge.amount_per_unit is None
        assert fees["FBA_FULFILLMENT_FEE"].charge.amount_per_unit.amount == D("2.5")
        assert fees["FBA_FULFILLMENT_FEE"].components is None
        assert rows[0].ads[0].charge.amount_per_unit.amount == D("0.2")
        assert rows[1].ads is None

    def test_cost_blocks(self, rows):
        fba, mfn = rows[0].cost, rows[1].cost

        assert fba.fba_cost.shipping_to_amazon_cost.amount == D("0.40")
        assert fba.mfn_cost is None
        assert mfn.mfn_cost.storage_cost.amount == D("0.25")
        assert mfn.fba_cost is None

    def test_net_proceeds(self, rows):
        # 80 - 10 - 4.5 - 6 - (3.00 x 8)
        assert rows[0].net_proceeds.total.amount == D("35.5")
        assert rows[0].net_proceeds.per_unit.amount == D("4.4375")
        # 100 - 15 - (4.00 x 5)
        assert rows[1].net_proceeds.total.amount == D("65")
        assert rows[1].net_proceeds.per_unit.amount == D("13")


class TestParentRows:
    """Coarser grouping over the same facts"""

    def test_parent_row(self, engine, sample_facts):
        rows = engine.run(week_query(product_granularity="PARENT_ASIN"), sample_facts).rows

        assert len(rows) == 1
        row = rows[0]
        assert row.parent_asin == "B0PARENT01"
        assert (row.child_asin, row.msku, row.fnsku) == (None, None, None)
        assert row.sales.net_units_sold == 13
        # Two MSKUs with different cost records
        assert row.cost is None
        fees = {f.fee_type_name: f for f in row.fees}
        assert fees["REFERRAL_FEE"].charge.quantity is None
        # 180 - 10 - 19.5 - 6 - 24 - 20
        assert row.net_proceeds.total.amount == D("100.5")


class TestQueryOptions:
    """Defaults, components and retention"""

    def test_default_granularity_is_day_by_msku(self, engine, sample_facts):
        rows = engine.run(build_query(date(2024, 3, 10), date(2024, 3, 16), [US]), sample_facts).rows

        assert all(r.start_date == r.end_date for r in rows)
        assert {(r.start_date, r.msku) for r in rows} == {
            (date(2024, 3, 11), "MSKU-A"),
            (date(2024, 3, 12), "MSKU-A"),
            (date(2024, 3, 14), "MSKU-A"),
            (date(2024, 3, 15), "MSKU-B"),
        }

    def test_requested_components(self, engine, sample_facts):
        rows = engine.run(
            week_query(include_components_for_fee_types=["FBA_FULFILLMENT_FEE"]), sample_facts
        ).rows
        fees = {f.fee_type_name: f for f in rows[0].fees}

        assert [c.name for c in fees["FBA_FULFILLMENT_FEE"].components] == ["BASE_FEE", "FUEL_SURCHARGE"]

    def test_retention_of_every_field(self, engine, sample_facts):
        assert engine.run(week_query(), sample_facts).retention.duration == "P30D"

    def test_retention_of_selected_fields(self, engine, sample_facts):
        result = engine.run(week_query(selected_fields=["msku", "sales.unitsOrdered"]), sample_facts)

        assert result.retention.duration == "P18M"

    def test_other_marketplaces_are_excluded(self, engine, sample_facts, make_fact):
        facts = sample_facts + [make_fact(marketplace_id=UK, msku="MSKU-A", units_ordered=50)]

        result = engine.run(week_query(), facts)

        assert result.rows[0].sales.units_ordered == 10
        assert result.excluded_facts == 1


class TestExecution:
    """Determinism and cancellation"""

    def test_identical_input_gives_identical_rows(self, engine, sample_facts):
        first = engine.run(week_query(), sample_facts).rows
        second = engine.run(week_query(), list(reversed(sample_facts))).rows

        assert first == second

    def test_cancelled_query_emits_nothing(self, engine, sample_facts):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(QueryCancelled):
            engine.run(week_query(), sample_facts, token)

    def test_deadline_cancels(self):
        token = CancellationToken(timeout_seconds=0.001)
        time.sleep(0.01)

        with pytest.raises(QueryCancelled):
            token.raise_if_cancelled()


class TestGeneratedFacts:
    """Invariants over seeded synthetic fact sets"""

    START = date(2024, 3, 3)
    END = date(2024, 3, 30)

    @pytest.fixture(params=[1, 7, 42])
    def facts(self, request):
        return SellerFactGenerator(seed=request.param, n_parents=3).generate_facts(self.START, self.END)

    def run(self, engine, facts, granularity):
        query = build_query(self.START, self.END, [US], date_granularity=granularity)
        return engine.run(query, facts).rows

    def test_totals_do_not_depend_on_date_granularity(self, engine, facts):
        totals = []
        for granularity in ("DAY", "WEEK", "RANGE"):
            rows = self.run(engine, facts, granularity)
            totals.append((
                sum(r.sales.net_units_sold for r in rows),
                sum((r.sales.net_product_sales.amount for r in rows), D("0")),
                sum((f.charge.total_amount.amount for r in rows for f in r.fees), D("0")),
                sum((r.net_proceeds.total.amount for r in rows), D("0")),
            ))

        assert totals[0] == totals[1] == totals[2]

    def test_detail_totals_and_per_unit_values(self, engine, facts):
        for row in self.run(engine, facts, "WEEK"):
            details = [f.charge for f in row.fees] + [a.charge for a in row.ads or []]
            for detail in details:
                expected = detail.amount.amount - detail.promotion_amount.amount + detail.tax_amount.amount
                assert detail.total_amount.amount == expected
                assert (detail.amount_per_unit is None) == (not detail.quantity)

            assert (row.net_proceeds.per_unit is None) == (row.sales.net_units_sold == 0)
