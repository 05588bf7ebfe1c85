"""
Synthetic Data Generator

Generates realistic seller fact tables for testing and development.
Includes:
- A product catalog (parent ASINs with child ASIN / MSKU / FNSKU variants)
- Daily sales facts
- Fee facts, with component-level rows for fulfillment fees
- Advertising charges
- One unit cost record per MSKU

Every generator takes a seed, so the same arguments always produce the
same table.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import polars as pl
import structlog
from faker import Faker

from seller_economics.config import get_settings
from seller_economics.domain.enums import AdType, FactKind, FeeType, FulfillmentChannel
from seller_economics.domain.facts import Fact
from seller_economics.ingestion.fact_loader import FACT_SCHEMA, facts_from_frame

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

MARKETPLACE_CURRENCIES = {
    "ATVPDKIKX0DER": "USD",
    "A2EUQ1WTGCTBG2": "CAD",
    "A1F83G8C2ARO7P": "GBP",
    "A1PA6795UKMFR9": "EUR",
}

# Fulfillment fee rows are split into these components
FULFILLMENT_COMPONENTS = [
    ("BASE_FEE", 0.85),
    ("FUEL_SURCHARGE", 0.15),
]

REFERRAL_RATE = 0.15
REFUND_RATE = 0.04
MISSING_QUANTITY_RATE = 0.02
ASIN_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"


@dataclass(frozen=True)
class CatalogItem:
    """One sellable variant"""
    parent_asin: str
    child_asin: str
    msku: str
    fnsku: str
    unit_price: float
    fulfillment_channel: FulfillmentChannel


# =============================================================================
# GENERATORS
# =============================================================================

class CatalogGenerator:
    """Generate parent/child product families"""

    def __init__(self, seed: int = 42):
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def _asin(self) -> str:
        return "B0" + self.fake.unique.bothify("??######", letters=ASIN_LETTERS)

    def generate(self, n_parents: int = 10) -> List[CatalogItem]:
        """Generate n_parents families of one to three variants each"""
        items = []
        for _ in range(n_parents):
            parent_asin = self._asin()
            base_price = float(np.round(self.rng.uniform(9.99, 89.99), 2))
            n_variants = int(self.rng.integers(1, 4))
            word = self.fake.word().upper()

            for variant in range(n_variants):
                channel = FulfillmentChannel.FBA if self.rng.random() < 0.8 else FulfillmentChannel.MFN
                items.append(CatalogItem(
                    parent_asin=parent_asin,
                    child_asin=self._asin() if n_variants > 1 else parent_asin,
                    msku=f"{word}-{self.fake.unique.random_number(digits=5, fix_len=True)}-{variant}",
                    fnsku="X00" + self.fake.unique.bothify("???####", letters=ASIN_LETTERS),
                    unit_price=round(base_price * (1 + 0.1 * variant), 2),
                    fulfillment_channel=channel,
                ))
        return items


class SellerFactGenerator:
    """
    Generate a fact table for a catalog over a date range.

    Example:
        generator = SellerFactGenerator(seed=7)
        df = generator.generate(date(2024, 3, 1), date(2024, 3, 31))
    """

    def __init__(
        self,
        seed: int = 42,
        marketplace_ids: Optional[Sequence[str]] = None,
        n_parents: int = 10,
        ad_probability: float = 0.3,
    ):
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.marketplace_ids = list(marketplace_ids or ["ATVPDKIKX0DER"])
        self.catalog = CatalogGenerator(seed).generate(n_parents)
        self.ad_probability = ad_probability

    def _quantity(self, units: int) -> Optional[float]:
        if self.rng.random() < MISSING_QUANTITY_RATE:
            return None
        return float(units)

    def _row(self, kind: FactKind, marketplace_id: str, day: Optional[date], item: CatalogItem, **values) -> Dict:
        row = {column: None for column in FACT_SCHEMA}
        row.update(
            kind=kind.value,
            marketplace_id=marketplace_id,
            date=day,
            parent_asin=item.parent_asin,
            child_asin=item.child_asin,
            fnsku=item.fnsku,
            msku=item.msku,
            currency_code=MARKETPLACE_CURRENCIES.get(marketplace_id, "USD"),
        )
        row.update(values)
        return row

    def _day_rows(self, marketplace_id: str, day: date, item: CatalogItem) -> List[Dict]:
        units = int(self.rng.poisson(3))
        if units == 0:
            return []
        refunded = int(self.rng.binomial(units, REFUND_RATE))
        sales = round(units * item.unit_price, 2)

        rows = [self._row(
            FactKind.SALE, marketplace_id, day, item,
            units_ordered=units,
            units_refunded=refunded,
            ordered_product_sales=sales,
            refunded_product_sales=round(refunded * item.unit_price, 2),
        )]

        promotion = round(sales * 0.01, 2) if self.rng.random() < 0.2 else 0.0
        rows.append(self._row(
            FactKind.FEE, marketplace_id, day, item,
            type_name=FeeType.REFERRAL_FEE.value,
            amount=round(sales * REFERRAL_RATE, 2),
            promotion_amount=promotion,
            tax_amount=0.0,
            quantity=self._quantity(units),
        ))

        if item.fulfillment_channel is FulfillmentChannel.FBA:
            fee = float(np.round(self.rng.uniform(3.0, 7.5) * units, 2))
            for index, (component, share) in enumerate(FULFILLMENT_COMPONENTS):
                rows.append(self._row(
                    FactKind.FEE, marketplace_id, day, item,
                    type_name=FeeType.FBA_FULFILLMENT_FEE.value,
                    component_name=component,
                    amount=round(fee * share, 2),
                    tax_amount=0.0,
                    quantity=self._quantity(units) if index == 0 else 0.0,
                ))

        if self.rng.random() < self.ad_probability:
            ad_type = self.rng.choice([a.value for a in AdType], p=[0.7, 0.15, 0.1, 0.05])
            rows.append(self._row(
                FactKind.AD, marketplace_id, day, item,
                type_name=str(ad_type),
                amount=float(np.round(self.rng.uniform(0.5, 25.0), 2)),
                quantity=float(self.rng.integers(1, 40)),
            ))
        return rows

    def _cost_row(self, marketplace_id: str, item: CatalogItem) -> Dict:
        cogs = round(item.unit_price * float(self.rng.uniform(0.25, 0.45)), 2)
        values = dict(
            cost_of_goods_sold=cogs,
            miscellaneous_cost=float(np.round(self.rng.uniform(0, 0.5), 2)),
            fulfillment_channel=item.fulfillment_channel.value,
        )
        if item.fulfillment_channel is FulfillmentChannel.FBA:
            values["shipping_to_amazon_cost"] = float(np.round(self.rng.uniform(0.2, 1.5), 2))
        else:
            values["mfn_fulfillment_cost"] = float(np.round(self.rng.uniform(2.0, 6.0), 2))
            values["mfn_storage_cost"] = float(np.round(self.rng.uniform(0.05, 0.4), 2))
        return self._row(FactKind.COST, marketplace_id, None, item, **values)

    def generate(self, start_date: date, end_date: date) -> pl.DataFrame:
        """Generate the fact table for every day in [start_date, end_date]"""
        rows: List[Dict] = []
        n_days = (end_date - start_date).days + 1

        for marketplace_id in self.marketplace_ids:
            for item in self.catalog:
                rows.append(self._cost_row(marketplace_id, item))
                for offset in range(n_days):
                    rows.extend(self._day_rows(marketplace_id, start_date + timedelta(days=offset), item))

        df = pl.DataFrame(rows, schema=FACT_SCHEMA)
        logger.debug(
            "Synthetic facts generated",
            rows=len(df),
            products=len(self.catalog),
            marketplaces=len(self.marketplace_ids),
            seed=self.seed,
        )
        return df

    def generate_facts(self, start_date: date, end_date: date) -> List[Fact]:
        """Generate and convert to Fact records"""
        return facts_from_frame(self.generate(start_date, end_date), validate=False)


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class DataGenerator:
    """Writes generated fact tables into the data lake"""

    def __init__(self, output_dir: Optional[str] = None):
        settings = get_settings()
        self.output_dir = Path(output_dir or settings.data_lake.facts_path)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate_all(
        self,
        start_date: date,
        end_date: date,
        marketplace_ids: Optional[Sequence[str]] = None,
        n_parents: int = 25,
        seed: int = 42,
        save: bool = True,
    ) -> pl.DataFrame:
        """Generate one fact table and optionally save it as Parquet"""
        generator = SellerFactGenerator(
            seed=seed,
            marketplace_ids=marketplace_ids or list(MARKETPLACE_CURRENCIES),
            n_parents=n_parents,
        )
        df = generator.generate(start_date, end_date)

        if save:
            path = self.output_dir / f"facts_{start_date:%Y%m%d}_{end_date:%Y%m%d}.parquet"
            df.write_parquet(path)
            logger.info("Fact table saved", path=str(path), rows=len(df))
        return df
