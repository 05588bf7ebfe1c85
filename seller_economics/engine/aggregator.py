"""
Dimensional Aggregation

Groups facts by (marketplace, date bucket, product key) and sums them per
fact kind and type name.

Assignment of a fact to its group is a pure mapping. Folding happens per
partition (one partition per group key), so partitions can be folded on a
thread pool with no shared state; a barrier collects every accumulator before
the derived metrics run.

Features:
- Null-poisoning quantity sums
- Per fee type, per fee component and per ad type detail sums
- COST facts indexed by (marketplace, MSKU) rather than bucketed
- Deterministic group ordering
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from seller_economics.domain.enums import FactKind, ProductIdentifierGranularity
from seller_economics.domain.facts import ZERO, CostRecord, Fact
from seller_economics.domain.models import GroupKey
from .dates import DateBucketer
from .execution import CancellationToken, map_partitions
from .product_keys import IdentifierTally, product_key_for

logger = structlog.get_logger(__name__)

UNKNOWN_TYPE = "UNKNOWN"

CostIndex = Dict[Tuple[str, str], List[CostRecord]]


def _add_quantity(left: Optional[Decimal], right: Optional[Decimal]) -> Optional[Decimal]:
    """A single missing quantity makes the whole sum missing"""
    if left is None or right is None:
        return None
    return left + right


@dataclass
class DetailSums:
    """Running sums for one (fact kind, type name)"""
    amount: Decimal = ZERO
    promotion_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    quantity: Optional[Decimal] = ZERO

    def add(self, fact: Fact) -> None:
        self.amount += fact.amount
        self.promotion_amount += fact.promotion_amount
        self.tax_amount += fact.tax_amount
        self.quantity = _add_quantity(self.quantity, fact.quantity)

    def merge(self, other: "DetailSums") -> "DetailSums":
        return DetailSums(
            amount=self.amount + other.amount,
            promotion_amount=self.promotion_amount + other.promotion_amount,
            tax_amount=self.tax_amount + other.tax_amount,
            quantity=_add_quantity(self.quantity, other.quantity),
        )


@dataclass
class SalesCounters:
    """Raw sales sums"""
    units_ordered: int = 0
    units_refunded: int = 0
    ordered_product_sales: Decimal = ZERO
    refunded_product_sales: Decimal = ZERO

    def add(self, fact: Fact) -> None:
        self.units_ordered += fact.units_ordered
        self.units_refunded += fact.units_refunded
        self.ordered_product_sales += fact.ordered_product_sales
        self.refunded_product_sales += fact.refunded_product_sales

    def merge(self, other: "SalesCounters") -> "SalesCounters":
        return SalesCounters(
            units_ordered=self.units_ordered + other.units_ordered,
            units_refunded=self.units_refunded + other.units_refunded,
            ordered_product_sales=self.ordered_product_sales + other.ordered_product_sales,
            refunded_product_sales=self.refunded_product_sales + other.refunded_product_sales,
        )


def _merge_sums(
    left: Dict[str, DetailSums],
    right: Dict[str, DetailSums],
) -> Dict[str, DetailSums]:
    merged = {name: DetailSums().merge(sums) for name, sums in left.items()}
    for name, sums in right.items():
        merged[name] = merged[name].merge(sums) if name in merged else DetailSums().merge(sums)
    return merged


@dataclass
class GroupAccumulator:
    """
    Running sums for one group.

    ``merge`` is associative and commutative, so a group folded from any
    split of its facts ends up identical.
    """
    key: GroupKey
    fees: Dict[str, DetailSums] = field(default_factory=dict)
    fee_components: Dict[str, Dict[str, DetailSums]] = field(default_factory=dict)
    ads: Dict[str, DetailSums] = field(default_factory=dict)
    sales: SalesCounters = field(default_factory=SalesCounters)
    net_units_by_msku: Dict[Optional[str], int] = field(default_factory=dict)
    mskus: Set[str] = field(default_factory=set)
    identifiers: IdentifierTally = field(default_factory=IdentifierTally)
    currency_codes: Set[str] = field(default_factory=set)
    fact_count: int = 0

    def add(self, fact: Fact) -> None:
        """Fold one fact in"""
        self.fact_count += 1
        self.identifiers.add(fact)
        if fact.msku is not None:
            self.mskus.add(fact.msku)
        if fact.currency_code:
            self.currency_codes.add(fact.currency_code)

        if fact.kind is FactKind.SALE:
            self.sales.add(fact)
            net_units = fact.units_ordered - fact.units_refunded
            self.net_units_by_msku[fact.msku] = self.net_units_by_msku.get(fact.msku, 0) + net_units
        elif fact.kind is FactKind.FEE:
            fee_type = fact.type_name or UNKNOWN_TYPE
            self.fees.setdefault(fee_type, DetailSums()).add(fact)
            if fact.component_name:
                components = self.fee_components.setdefault(fee_type, {})
                components.setdefault(fact.component_name, DetailSums()).add(fact)
        elif fact.kind is FactKind.AD:
            self.ads.setdefault(fact.type_name or UNKNOWN_TYPE, DetailSums()).add(fact)
        else:
            raise ValueError(f"{fact.kind.value} facts are not folded into groups")

    def merge(self, other: "GroupAccumulator") -> "GroupAccumulator":
        if other.key != self.key:
            raise ValueError("Cannot merge accumulators of different groups")

        components: Dict[str, Dict[str, DetailSums]] = {}
        for fee_type in sorted(set(self.fee_components) | set(other.fee_components)):
            components[fee_type] = _merge_sums(
                self.fee_components.get(fee_type, {}),
                other.fee_components.get(fee_type, {}),
            )

        net_units = dict(self.net_units_by_msku)
        for msku, units in other.net_units_by_msku.items():
            net_units[msku] = net_units.get(msku, 0) + units

        return GroupAccumulator(
            key=self.key,
            fees=_merge_sums(self.fees, other.fees),
            fee_components=components,
            ads=_merge_sums(self.ads, other.ads),
            sales=self.sales.merge(other.sales),
            net_units_by_msku=net_units,
            mskus=self.mskus | other.mskus,
            identifiers=self.identifiers.merge(other.identifiers),
            currency_codes=self.currency_codes | other.currency_codes,
            fact_count=self.fact_count + other.fact_count,
        )

    @property
    def currency_code(self) -> Optional[str]:
        """Lowest code seen; a group normally carries exactly one"""
        return min(self.currency_codes) if self.currency_codes else None


def fold_partition(key: GroupKey, facts: Iterable[Fact]) -> GroupAccumulator:
    """Fold every fact of one partition into a fresh accumulator"""
    accumulator = GroupAccumulator(key=key)
    for fact in facts:
        accumulator.add(fact)
    return accumulator


@dataclass
class Partitioning:
    """Facts split by group key, plus the cost index and exclusion counts"""
    partitions: Dict[GroupKey, List[Fact]]
    cost_index: CostIndex
    excluded: Counter

    @property
    def excluded_total(self) -> int:
        return sum(self.excluded.values())


class DimensionalAggregator:
    """
    Groups facts by marketplace, date bucket and product key.

    Example:
        aggregator = DimensionalAggregator(bucketer, ProductIdentifierGranularity.MSKU, ["ATVPDKIKX0DER"])
        groups, partitioning = aggregator.aggregate(facts)
    """

    def __init__(
        self,
        bucketer: DateBucketer,
        granularity: ProductIdentifierGranularity,
        marketplace_ids: Sequence[str],
        worker_count: int = 1,
    ):
        self.bucketer = bucketer
        self.granularity = granularity
        self.marketplace_ids = frozenset(marketplace_ids)
        self.worker_count = max(1, worker_count)

    def assign(self, fact: Fact) -> Optional[GroupKey]:
        """Group key for a non-cost fact, or None when it is outside the query"""
        if fact.marketplace_id not in self.marketplace_ids:
            return None
        bucket = self.bucketer.bucket_for(fact.date)
        if bucket is None:
            return None
        return GroupKey(
            marketplace_id=fact.marketplace_id,
            bucket=bucket,
            product=product_key_for(fact, self.granularity),
        )

    def partition(self, facts: Iterable[Fact]) -> Partitioning:
        partitions: Dict[GroupKey, List[Fact]] = defaultdict(list)
        cost_index: CostIndex = defaultdict(list)
        excluded: Counter = Counter()

        for fact in facts:
            if fact.marketplace_id not in self.marketplace_ids:
                excluded["marketplace"] += 1
                continue

            if fact.kind is FactKind.COST:
                if fact.msku is None:
                    excluded["cost_without_msku"] += 1
                    continue
                record = CostRecord.from_fact(fact)
                records = cost_index[(fact.marketplace_id, fact.msku)]
                if record not in records:
                    records.append(record)
                continue

            key = self.assign(fact)
            if key is None:
                excluded["outside_period"] += 1
                continue
            if key.product.parent_asin is None:
                # Rows always carry a parent ASIN
                excluded["missing_asin"] += 1
                continue
            partitions[key].append(fact)

        if excluded:
            logger.info("Facts excluded from aggregation", **dict(excluded))

        return Partitioning(
            partitions=dict(partitions),
            cost_index=dict(cost_index),
            excluded=excluded,
        )

    def fold(
        self,
        partitions: Dict[GroupKey, List[Fact]],
        token: Optional[CancellationToken] = None,
    ) -> List[GroupAccumulator]:
        """Fold each partition into its accumulator, sorted by group key"""
        keys = sorted(partitions, key=GroupKey.sort_key)
        return map_partitions(
            lambda key: fold_partition(key, partitions[key]),
            keys,
            worker_count=self.worker_count,
            token=token,
        )

    def aggregate(
        self,
        facts: Iterable[Fact],
        token: Optional[CancellationToken] = None,
    ) -> Tuple[List[GroupAccumulator], Partitioning]:
        partitioning = self.partition(facts)
        groups = self.fold(partitioning.partitions, token)
        logger.debug(
            "Facts aggregated",
            groups=len(groups),
            excluded=partitioning.excluded_total,
        )
        return groups, partitioning
