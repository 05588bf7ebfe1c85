"""
Unit Tests - Fact Loading
"""
from datetime import date
from decimal import Decimal

import polars as pl
import pytest

from seller_economics.domain import FactKind, FulfillmentChannel
from seller_economics.domain.errors import FactLoadError
from seller_economics.ingestion import DataLakeFactSource, FileFormat, InMemoryFactSource, facts_from_frame, load_fact_file

from conftest import UK, US


class TestFactsFromFrame:
    """Raw table conversion"""

    def test_kinds_are_normalized(self, sample_facts_df):
        facts = facts_from_frame(sample_facts_df)

        assert [f.kind for f in facts] == [FactKind.SALE, FactKind.FEE, FactKind.AD, FactKind.COST]

    def test_values_become_decimals_and_dates(self, sample_facts_df):
        sale, fee, ad, cost = facts_from_frame(sample_facts_df)

        assert sale.date == date(2024, 3, 11)
        assert sale.units_ordered == 10
        assert sale.ordered_product_sales == Decimal("100")
        assert fee.tax_amount == Decimal("0.5")
        assert fee.quantity is None
        assert ad.quantity == Decimal("30")
        assert cost.date is None
        assert cost.cost_of_goods_sold == Decimal("2.5")
        assert cost.fulfillment_channel is FulfillmentChannel.FBA

    def test_missing_amounts_default_to_zero(self, sample_facts_df):
        sale, _, ad, _ = facts_from_frame(sample_facts_df)

        assert sale.amount == Decimal("0")
        assert ad.promotion_amount == Decimal("0")

    def test_missing_required_column(self, sample_facts_df):
        with pytest.raises(FactLoadError):
            facts_from_frame(sample_facts_df.drop("marketplace_id"))

    def test_unknown_kind(self, sample_facts_df):
        df = sample_facts_df.with_columns(pl.lit("REBATE").alias("kind"))

        with pytest.raises(FactLoadError):
            facts_from_frame(df)

    def test_unknown_fulfillment_channel(self, sample_facts_df):
        df = sample_facts_df.with_columns(pl.lit("DROPSHIP").alias("fulfillment_channel"))

        with pytest.raises(FactLoadError):
            facts_from_frame(df)


class TestLoadFactFile:
    """Single file reads"""

    @pytest.mark.parametrize("suffix,writer", [
        ("parquet", "write_parquet"),
        ("csv", "write_csv"),
        ("jsonl", "write_ndjson"),
    ])
    def test_formats_by_suffix(self, tmp_path, sample_facts_df, suffix, writer):
        path = tmp_path / f"facts.{suffix}"
        getattr(sample_facts_df, writer)(path)

        facts = load_fact_file(path)

        assert len(facts) == 4
        assert facts[0].date == date(2024, 3, 11)
        assert facts[1].amount == Decimal("5")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FactLoadError):
            load_fact_file(tmp_path / "missing.parquet")


class TestFactSources:
    """Sources handed to the engine"""

    @pytest.fixture
    def lake(self, tmp_path, sample_facts_df):
        uk = sample_facts_df.with_columns(pl.lit(UK).alias("marketplace_id"))
        pl.concat([sample_facts_df, uk]).write_parquet(tmp_path / "facts_20240301_20240331.parquet")
        return DataLakeFactSource(tmp_path, FileFormat.PARQUET)

    def test_marketplace_filter(self, lake):
        facts = lake.load_facts([US], date(2024, 3, 10), date(2024, 3, 16))

        assert len(facts) == 4
        assert {f.marketplace_id for f in facts} == {US}

    def test_date_filter_keeps_cost_rows(self, lake):
        facts = lake.load_facts([US], date(2024, 3, 12), date(2024, 3, 16))

        assert [f.kind for f in facts] == [FactKind.AD, FactKind.COST]

    def test_empty_directory(self, tmp_path):
        source = DataLakeFactSource(tmp_path, FileFormat.PARQUET)

        assert source.load_facts([US], date(2024, 3, 10), date(2024, 3, 16)) == []

    def test_in_memory_source_filters_marketplaces(self, sample_facts, make_fact):
        source = InMemoryFactSource(sample_facts + [make_fact(marketplace_id=UK, msku="MSKU-A")])

        facts = source.load_facts([US], date(2024, 3, 10), date(2024, 3, 16))

        assert facts == sample_facts
