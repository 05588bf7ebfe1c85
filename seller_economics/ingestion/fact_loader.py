"""
Fact Loader

Converts raw seller fact tables into immutable Fact records and serves them
to the engine. Supports:
- CSV, JSON Lines and Parquet files read with Polars
- Column normalization (missing optional columns, string dates)
- Rule-based quality checks logged before conversion
- Marketplace pushdown and date filtering for data-lake scans
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Union

import polars as pl
import structlog

from seller_economics.config import get_settings
from seller_economics.domain.enums import FactKind, FulfillmentChannel
from seller_economics.domain.errors import FactLoadError
from seller_economics.domain.facts import ZERO, Fact
from seller_economics.quality.validators import ValidationStatus, create_facts_validator

logger = structlog.get_logger(__name__)


class FileFormat(str, Enum):
    """Supported fact file formats"""
    CSV = "csv"
    JSONL = "jsonl"
    PARQUET = "parquet"


REQUIRED_COLUMNS = ("kind", "marketplace_id")

FACT_SCHEMA: Dict[str, Any] = {
    "kind": pl.Utf8,
    "marketplace_id": pl.Utf8,
    "date": pl.Date,
    "parent_asin": pl.Utf8,
    "child_asin": pl.Utf8,
    "fnsku": pl.Utf8,
    "msku": pl.Utf8,
    "type_name": pl.Utf8,
    "component_name": pl.Utf8,
    "amount": pl.Float64,
    "promotion_amount": pl.Float64,
    "tax_amount": pl.Float64,
    "quantity": pl.Float64,
    "units_ordered": pl.Int64,
    "units_refunded": pl.Int64,
    "ordered_product_sales": pl.Float64,
    "refunded_product_sales": pl.Float64,
    "currency_code": pl.Utf8,
    "cost_of_goods_sold": pl.Float64,
    "miscellaneous_cost": pl.Float64,
    "shipping_to_amazon_cost": pl.Float64,
    "mfn_fulfillment_cost": pl.Float64,
    "mfn_storage_cost": pl.Float64,
    "fulfillment_channel": pl.Utf8,
}

_DEFAULT_ZERO = ("amount", "promotion_amount", "tax_amount", "ordered_product_sales", "refunded_product_sales")
_OPTIONAL_DECIMAL = (
    "quantity",
    "cost_of_goods_sold",
    "miscellaneous_cost",
    "shipping_to_amazon_cost",
    "mfn_fulfillment_cost",
    "mfn_storage_cost",
)
_TEXT = ("parent_asin", "child_asin", "fnsku", "msku", "type_name", "component_name", "currency_code")


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Exact decimal for a raw cell; floats go through their shortest repr"""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    text = str(value).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise FactLoadError(f"Not a number: {value!r}") from e


def _to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise FactLoadError(f"Not a date: {value!r}") from e


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_frame(df: pl.DataFrame) -> pl.DataFrame:
    """
    Bring a raw fact table to the canonical column set.

    Raises:
        FactLoadError: A required column is missing
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise FactLoadError(f"Fact table is missing required columns: {missing}")

    df = df.with_columns([
        pl.lit(None, dtype=dtype).alias(column)
        for column, dtype in FACT_SCHEMA.items()
        if column not in df.columns
    ])

    if df.schema["date"] == pl.Utf8:
        df = df.with_columns(pl.col("date").str.slice(0, 10).str.strptime(pl.Date, "%Y-%m-%d", strict=False))
    elif df.schema["date"] == pl.Datetime:
        df = df.with_columns(pl.col("date").dt.date())
    elif df.schema["date"] != pl.Date:
        df = df.with_columns(pl.col("date").cast(pl.Date, strict=False))

    df = df.with_columns(pl.col("kind").str.strip_chars().str.to_uppercase())
    return df.select(list(FACT_SCHEMA))


def fact_from_row(row: Dict[str, Any]) -> Fact:
    """
    Build one Fact from a normalized row.

    Raises:
        FactLoadError: Unknown kind or fulfillment channel, bad numbers or dates
    """
    try:
        kind = FactKind(str(row["kind"]).upper())
    except ValueError as e:
        raise FactLoadError(f"Unknown fact kind: {row['kind']!r}") from e

    marketplace_id = _to_text(row.get("marketplace_id"))
    if marketplace_id is None:
        raise FactLoadError("Fact without marketplace_id")

    channel = _to_text(row.get("fulfillment_channel"))
    try:
        fulfillment_channel = FulfillmentChannel(channel.upper()) if channel else None
    except ValueError as e:
        raise FactLoadError(f"Unknown fulfillment channel: {channel!r}") from e

    values: Dict[str, Any] = {name: _to_text(row.get(name)) for name in _TEXT}
    values.update({name: _to_decimal(row.get(name)) or ZERO for name in _DEFAULT_ZERO})
    values.update({name: _to_decimal(row.get(name)) for name in _OPTIONAL_DECIMAL})

    return Fact(
        kind=kind,
        marketplace_id=marketplace_id,
        date=_to_date(row.get("date")),
        units_ordered=int(row.get("units_ordered") or 0),
        units_refunded=int(row.get("units_refunded") or 0),
        fulfillment_channel=fulfillment_channel,
        **values,
    )


def facts_from_frame(df: pl.DataFrame, validate: bool = True) -> List[Fact]:
    """Convert a raw fact table into Facts, logging quality check failures"""
    df = normalize_frame(df)

    if validate:
        result = create_facts_validator().validate(df)
        if result.status != ValidationStatus.PASSED:
            logger.warning(
                "Fact quality checks failed",
                failed_checks=[c.name for c in result.checks if not c.passed],
                success_rate=round(result.success_rate, 1),
                rows=len(df),
            )

    return [fact_from_row(row) for row in df.iter_rows(named=True)]


def read_fact_file(path: Union[str, Path], file_format: Optional[FileFormat] = None) -> pl.DataFrame:
    """Read one fact file; the format defaults to the file suffix"""
    path = Path(path)
    file_format = file_format or FileFormat(path.suffix.lstrip(".").lower())
    readers = {
        FileFormat.CSV: lambda p: pl.read_csv(p, try_parse_dates=True),
        FileFormat.JSONL: pl.read_ndjson,
        FileFormat.PARQUET: pl.read_parquet,
    }
    if not path.exists():
        raise FactLoadError(f"Fact file not found: {path}")
    return readers[file_format](path)


def load_fact_file(path: Union[str, Path], file_format: Optional[FileFormat] = None) -> List[Fact]:
    """Read and convert one fact file"""
    df = read_fact_file(path, file_format)
    logger.info("Fact file read", file=str(path), rows=len(df))
    return facts_from_frame(df)


# =============================================================================
# FACT SOURCES
# =============================================================================

class FactSource(Protocol):
    """Supplies materialized facts for one query"""

    def load_facts(
        self,
        marketplace_ids: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> List[Fact]:
        ...


class InMemoryFactSource:
    """Serves a fixed fact list; the engine applies its own period filtering"""

    def __init__(self, facts: Optional[Iterable[Fact]] = None):
        self.facts: List[Fact] = list(facts or [])

    def load_facts(
        self,
        marketplace_ids: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> List[Fact]:
        wanted = set(marketplace_ids)
        return [f for f in self.facts if f.marketplace_id in wanted]


class DataLakeFactSource:
    """
    Scans every fact file under a data-lake directory.

    The marketplace predicate is pushed into the Polars scan; COST rows
    are undated and always kept for the requested marketplaces.

    Example:
        source = DataLakeFactSource("./data/curated/facts")
        facts = source.load_facts(["ATVPDKIKX0DER"], date(2024, 3, 1), date(2024, 3, 31))
    """

    def __init__(
        self,
        facts_path: Optional[Union[str, Path]] = None,
        file_format: Optional[FileFormat] = None,
    ):
        settings = get_settings()
        self.facts_path = Path(facts_path or settings.data_lake.facts_path)
        self.file_format = file_format or FileFormat(settings.data_lake.file_format)

    def _files(self) -> List[Path]:
        return sorted(self.facts_path.glob(f"*.{self.file_format.value}"))

    def _scan(self, files: List[Path]) -> pl.LazyFrame:
        if self.file_format is FileFormat.PARQUET:
            return pl.scan_parquet(files)
        if self.file_format is FileFormat.CSV:
            return pl.concat([pl.scan_csv(f, try_parse_dates=True) for f in files], how="diagonal")
        return pl.concat([pl.scan_ndjson(f) for f in files], how="diagonal")

    def load_facts(
        self,
        marketplace_ids: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> List[Fact]:
        files = self._files()
        if not files:
            logger.warning("No fact files found", path=str(self.facts_path), format=self.file_format.value)
            return []

        scanned = self._scan(files).filter(pl.col("marketplace_id").is_in(list(marketplace_ids)))
        df = normalize_frame(scanned.collect())
        df = df.filter(
            (pl.col("kind") == FactKind.COST.value)
            | pl.col("date").is_between(start_date, end_date)
        )
        logger.info(
            "Facts loaded from data lake",
            files=len(files),
            rows=len(df),
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
        return facts_from_frame(df)
