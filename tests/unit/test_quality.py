"""
Unit Tests - Data Quality
"""
from datetime import date

import pytest
import polars as pl

from seller_economics.data.generators import SellerFactGenerator
from seller_economics.ingestion.fact_loader import normalize_frame
from seller_economics.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    create_facts_validator,
)


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_passes(self):
        """Test not null check with valid data"""
        df = pl.DataFrame({"marketplace_id": ["ATVPDKIKX0DER", "A1F83G8C2ARO7P"]})

        validator = DataValidator()
        validator.add_not_null_check("marketplace_id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fails(self):
        """Test not null check with null values"""
        df = pl.DataFrame({"marketplace_id": ["ATVPDKIKX0DER", None]})

        validator = DataValidator()
        validator.add_not_null_check("marketplace_id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1

    def test_missing_column_fails(self):
        df = pl.DataFrame({"kind": ["SALE"]})

        result = DataValidator().add_not_null_check("marketplace_id").validate(df)

        assert result.status == ValidationStatus.FAILED
        assert "not found" in result.checks[0].message

    def test_range_check(self):
        """Test range check"""
        df = pl.DataFrame({"units_ordered": [1, 5, -2, 40, None]})

        validator = DataValidator()
        validator.add_range_check("units_ordered", min_value=0, max_value=30)

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        # -2 and 40; the null is ignored
        assert result.checks[0].failed_rows == 2

    def test_enum_check(self):
        """Test enum/allowed values check"""
        df = pl.DataFrame({"kind": ["SALE", "FEE", "REBATE"]})

        validator = DataValidator()
        validator.add_enum_check("kind", ["SALE", "FEE", "AD", "COST"])

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED

    def test_pattern_check_warning_is_partial(self):
        """Warnings leave the suite partially passed"""
        df = pl.DataFrame({"currency_code": ["USD", "usd", None]})

        validator = DataValidator()
        validator.add_pattern_check("currency_code", r"^[A-Z]{3}$", severity=ValidationSeverity.WARNING)

        result = validator.validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1

    def test_strict_mode_fails_on_warnings(self):
        df = pl.DataFrame({"currency_code": ["usd"]})

        validator = DataValidator(strict_mode=True)
        validator.add_pattern_check("currency_code", r"^[A-Z]{3}$", severity=ValidationSeverity.WARNING)

        assert validator.validate(df).status == ValidationStatus.FAILED

    def test_row_rule(self):
        df = pl.DataFrame({"kind": ["SALE", "COST"], "msku": ["A", None]})

        validator = DataValidator()
        validator.add_row_rule("cost_msku", (pl.col("kind") == "COST") & pl.col("msku").is_null(), "no msku")

        result = validator.validate(df)

        assert result.checks[0].failed_rows == 1
        assert result.checks[0].message == "no msku (1 rows)"

    def test_custom_check(self):
        """Test custom validation check"""
        df = pl.DataFrame({"amount": [10.0, 20.0, 30.0]})

        validator = DataValidator()
        validator.add_custom_check(
            name="amount_sum",
            check_func=lambda df: df["amount"].sum() < 1000,
            message_on_fail="Sum exceeds 1000",
        )

        result = validator.validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.success_rate == 100.0

    def test_custom_check_error_is_a_failure(self):
        df = pl.DataFrame({"amount": [10.0]})

        validator = DataValidator()
        validator.add_custom_check(
            name="missing_column",
            check_func=lambda df: df.select(pl.col("quantity").sum()).item() > 0,
            message_on_fail="never reached",
        )

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].message.startswith("Check failed with error")


class TestFactsValidator:
    """Tests for the pre-built fact table validator"""

    def test_sample_table_passes(self, sample_facts_df):
        result = create_facts_validator().validate(normalize_frame(sample_facts_df))

        assert result.status == ValidationStatus.PASSED
        assert result.total_checks > 0

    def test_undated_sale_is_an_error(self, sample_facts_df):
        df = normalize_frame(sample_facts_df.with_columns(pl.lit(None, dtype=pl.Utf8).alias("date")))

        result = create_facts_validator().validate(df)
        failed = {c.name for c in result.checks if not c.passed}

        assert result.status == ValidationStatus.FAILED
        assert "dated_non_cost_facts" in failed

    @pytest.mark.parametrize("column,value,check", [
        ("type_name", None, "typed_fees_and_ads"),
        ("msku", None, "cost_facts_have_msku"),
        ("currency_code", "usd", "pattern_currency_code"),
    ])
    def test_warnings(self, sample_facts_df, column, value, check):
        df = normalize_frame(sample_facts_df.with_columns(pl.lit(value, dtype=pl.Utf8).alias(column)))

        result = create_facts_validator().validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert [c.name for c in result.checks if not c.passed] == [check]

    def test_generated_facts_pass(self):
        df = SellerFactGenerator(seed=11, n_parents=2).generate(date(2024, 3, 1), date(2024, 3, 7))

        assert create_facts_validator(strict_mode=True).validate(df).status == ValidationStatus.PASSED

    def test_fact_without_any_asin_is_a_warning(self, sample_facts_df):
        df = normalize_frame(sample_facts_df.with_columns(
            pl.lit(None, dtype=pl.Utf8).alias("parent_asin"),
            pl.lit(None, dtype=pl.Utf8).alias("child_asin"),
        ))

        result = create_facts_validator().validate(df)
        failed = [c for c in result.checks if not c.passed]

        assert result.status == ValidationStatus.PARTIAL
        assert [c.name for c in failed] == ["non_cost_facts_have_asin"]
        assert failed[0].failed_rows == 3

    def test_mixed_currencies_in_one_marketplace_is_a_warning(self, sample_facts_df):
        df = normalize_frame(sample_facts_df.with_columns(
            pl.Series("currency_code", ["USD", "GBP", "USD", "USD"]),
        ))

        result = create_facts_validator().validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert [c.name for c in result.checks if not c.passed] == ["one_currency_per_marketplace"]
        assert result.success_rate < 100.0
