"""
Unit Tests - Result Retention
"""
import pytest

from seller_economics.engine.retention import (
    ALL_FIELD_PATHS,
    RetentionResolver,
    parse_duration_days,
)


class TestParseDuration:
    """ISO-8601 durations to days"""

    @pytest.mark.parametrize("duration,days", [
        ("P30D", 30),
        ("P90D", 90),
        ("P18M", 540),
        ("P1Y", 365),
        ("P2W", 14),
        ("P1Y2M3D", 428),
    ])
    def test_valid_durations(self, duration, days):
        assert parse_duration_days(duration) == days

    @pytest.mark.parametrize("duration", ["", "P", "30D", "PT12H", "P1.5D"])
    def test_invalid_durations(self, duration):
        with pytest.raises(ValueError):
            parse_duration_days(duration)

    def test_invalid_table_rejected_at_build_time(self):
        with pytest.raises(ValueError):
            RetentionResolver({"sales": "forever"})


class TestRetentionResolver:
    """Shortest retention across touched fields"""

    def test_longest_prefix_wins(self):
        resolver = RetentionResolver()

        assert resolver.tag_for("fees.charge.amount.amount").duration == "P18M"
        assert resolver.tag_for("fees.components.name").duration == "P90D"
        assert resolver.tag_for("marketplaceId") is None

    def test_sales_only_selection(self):
        tag = RetentionResolver().resolve(["startDate", "sales.unitsOrdered"])

        assert tag.duration == "P18M"
        assert tag.days == 540

    def test_minimum_over_selection(self):
        tag = RetentionResolver().resolve(["sales.unitsOrdered", "ads.adTypeName", "fees.feeTypeName"])

        assert tag.duration == "P90D"

    def test_untagged_selection(self):
        assert RetentionResolver().resolve(["marketplaceId", "startDate", "msku"]) is None
        assert RetentionResolver().resolve([]) is None

    def test_all_fields_when_unspecified(self):
        assert RetentionResolver().resolve().duration == "P30D"

    def test_all_field_paths_cover_row_blocks(self):
        roots = {path.split(".")[0] for path in ALL_FIELD_PATHS}

        assert {"sales", "fees", "ads", "cost", "netProceeds", "marketplaceId"} <= roots
        assert "fees.components.charge.totalAmount.amount" in ALL_FIELD_PATHS

    def test_custom_table(self):
        resolver = RetentionResolver({"sales": "P1Y", "sales.unitsOrdered": "P1W"})

        assert resolver.resolve(["sales.netUnitsSold"]).duration == "P1Y"
        assert resolver.resolve(["sales.unitsOrdered"]).duration == "P1W"
