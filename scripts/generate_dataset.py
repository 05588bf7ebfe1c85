"""
Seller Fact Dataset Generator
Writes a seeded synthetic fact table (sales, fees, ads, costs) to the data lake
"""

import sys
from datetime import date, timedelta

from seller_economics.config import get_settings
from seller_economics.config.logging import configure_logging
from seller_economics.data.generators import MARKETPLACE_CURRENCIES, DataGenerator


def main(days: int = 90, n_parents: int = 25, seed: int = 42):
    configure_logging()
    settings = get_settings()

    print("=" * 60)
    print("🛒 Seller Fact Dataset Generator")
    print("=" * 60 + "\n")

    end_date = date.today() - timedelta(days=1)
    start_date = end_date - timedelta(days=days - 1)

    print(f"📊 Generating {n_parents} product families x {len(MARKETPLACE_CURRENCIES)} marketplaces")
    print(f"   {start_date} .. {end_date} (seed {seed})")

    df = DataGenerator(settings.data_lake.facts_path).generate_all(
        start_date,
        end_date,
        n_parents=n_parents,
        seed=seed,
    )

    print("\n" + "=" * 60)
    print("✅ Dataset Generation Complete!")
    print("=" * 60)
    print(f"\n📁 Output: {settings.data_lake.facts_path}\n")

    for row in df.group_by("kind").len().sort("kind").iter_rows(named=True):
        print(f"   📄 {row['kind']}: {row['len']:,} rows")
    print(f"\n📊 Total: {len(df):,} rows")


if __name__ == "__main__":
    main(days=int(sys.argv[1]) if len(sys.argv) > 1 else 90)
