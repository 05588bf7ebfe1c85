"""
Economics Pipeline

Validates a query and runs the single-pass pipeline:

1. Normalize the date range into buckets
2. Assign facts to (marketplace, bucket, product key) partitions
3. Fold partitions into accumulators (thread pool, cancellable)
4. Attach fee component detail where requested
5. Derive totals, per-unit values and net proceeds
6. Resolve the result-set retention
"""

import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence, Tuple, Type, TypeVar

import structlog

from seller_economics.config import EngineSettings, get_settings
from seller_economics.domain.enums import DateGranularity, FeeType, ProductIdentifierGranularity
from seller_economics.domain.errors import InvalidMarketplace, InvalidRange, UnsupportedAggregation
from seller_economics.domain.facts import Fact
from seller_economics.domain.models import (
    AggregateBy,
    DateBucket,
    EconomicsQuery,
    EconomicsResult,
    EconomicsRow,
)
from .aggregator import CostIndex, DimensionalAggregator, GroupAccumulator
from .components import FeeComponentFilter
from .dates import DateBucketer, normalize_date_range, utc_today
from .execution import CancellationToken, map_partitions
from .metrics import (
    build_ads,
    build_cost,
    build_net_proceeds,
    build_sales,
    cost_deduction,
    group_currency,
    resolve_cost_records,
)
from .product_keys import resolve_identifiers
from .retention import RetentionResolver

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value, label: str) -> Optional[E]:
    """Enum member for a wire value; None passes through"""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise UnsupportedAggregation(f"Unsupported {label}: {value!r}") from e


def build_query(
    start_date: date,
    end_date: date,
    marketplace_ids: Sequence[str],
    date_granularity=None,
    product_granularity=None,
    include_components_for_fee_types: Optional[Iterable] = None,
    selected_fields: Optional[Iterable[str]] = None,
) -> EconomicsQuery:
    """
    Build a query from wire values.

    Raises:
        UnsupportedAggregation: An enumeration value is not recognized
    """
    fee_types = frozenset(
        parse_enum(FeeType, value, "fee type")
        for value in include_components_for_fee_types or ()
    )
    return EconomicsQuery(
        start_date=start_date,
        end_date=end_date,
        marketplace_ids=tuple(marketplace_ids or ()),
        aggregate_by=AggregateBy(
            date=parse_enum(DateGranularity, date_granularity, "date granularity"),
            product_id=parse_enum(ProductIdentifierGranularity, product_granularity, "product granularity"),
        ),
        include_components_for_fee_types=fee_types,
        selected_fields=frozenset(selected_fields) if selected_fields is not None else None,
    )


@dataclass(frozen=True)
class QueryPlan:
    """A validated query with defaults applied"""
    query: EconomicsQuery
    marketplace_ids: Tuple[str, ...]
    date_granularity: DateGranularity
    product_granularity: ProductIdentifierGranularity
    buckets: Tuple[DateBucket, ...]

    @property
    def start_date(self) -> date:
        return self.buckets[0].start

    @property
    def end_date(self) -> date:
        return self.buckets[-1].end


def finalize_group(
    group: GroupAccumulator,
    cost_index: CostIndex,
    component_filter: FeeComponentFilter,
) -> EconomicsRow:
    """Derive the output row for one folded group"""
    records = resolve_cost_records(group, cost_index)
    currency = group_currency(group, records)

    fees = component_filter.build_fees(group, currency)
    ads = build_ads(group, currency)
    sales = build_sales(group.sales, currency)

    return EconomicsRow(
        marketplace_id=group.key.marketplace_id,
        start_date=group.key.bucket.start,
        end_date=group.key.bucket.end,
        identifiers=resolve_identifiers(group.key.product, group.identifiers),
        sales=sales,
        fees=fees,
        ads=ads,
        cost=build_cost(records.values(), currency),
        net_proceeds=build_net_proceeds(sales, fees, ads, cost_deduction(group, records), currency),
    )


class EconomicsEngine:
    """
    Seller economics aggregation engine.

    Stateless between queries; one instance can serve concurrent callers.

    Example:
        engine = EconomicsEngine()
        query = build_query(date(2024, 3, 1), date(2024, 3, 31), ["ATVPDKIKX0DER"], "WEEK")
        result = engine.run(query, facts)
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        retention_resolver: Optional[RetentionResolver] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.settings = settings or get_settings().engine
        self.retention_resolver = retention_resolver or RetentionResolver()
        self.today = today or utc_today
        self.default_date_granularity = DateGranularity(self.settings.default_date_granularity)
        self.default_product_granularity = ProductIdentifierGranularity(
            self.settings.default_product_granularity
        )

    def _validate_marketplaces(self, marketplace_ids: Sequence[str]) -> Tuple[str, ...]:
        if not marketplace_ids:
            raise InvalidMarketplace("marketplaceIds must not be empty")

        cleaned = []
        for marketplace_id in marketplace_ids:
            stripped = (marketplace_id or "").strip()
            if not stripped:
                raise InvalidMarketplace("marketplaceIds must not contain blank values")
            if stripped not in cleaned:
                cleaned.append(stripped)

        registry = set(self.settings.known_marketplace_ids)
        if registry and not registry.intersection(cleaned):
            raise InvalidMarketplace(f"No recognized marketplace in {cleaned}")
        return tuple(cleaned)

    def plan(self, query: EconomicsQuery) -> QueryPlan:
        """
        Validate a query before any aggregation.

        Raises:
            InvalidRange: Missing, too old, or too short date range
            InvalidMarketplace: Empty, blank or unrecognized marketplaces
        """
        if query.start_date is None or query.end_date is None:
            raise InvalidRange("startDate and endDate are required")
        marketplace_ids = self._validate_marketplaces(query.marketplace_ids)

        date_granularity = query.aggregate_by.date or self.default_date_granularity
        product_granularity = query.aggregate_by.product_id or self.default_product_granularity

        buckets = normalize_date_range(
            query.start_date,
            query.end_date,
            date_granularity,
            today=self.today(),
            max_lookback_years=self.settings.max_lookback_years,
        )
        return QueryPlan(
            query=query,
            marketplace_ids=marketplace_ids,
            date_granularity=date_granularity,
            product_granularity=product_granularity,
            buckets=buckets,
        )

    def _token(self, token: Optional[CancellationToken]) -> CancellationToken:
        if token is not None:
            return token
        return CancellationToken(self.settings.query_timeout_seconds)

    def run(
        self,
        query: EconomicsQuery,
        facts: Iterable[Fact],
        token: Optional[CancellationToken] = None,
    ) -> EconomicsResult:
        """Aggregate already materialized facts for ``query``"""
        return self.run_plan(self.plan(query), facts, token)

    def run_plan(
        self,
        plan: QueryPlan,
        facts: Iterable[Fact],
        token: Optional[CancellationToken] = None,
    ) -> EconomicsResult:
        token = self._token(token)
        started = time.perf_counter()

        aggregator = DimensionalAggregator(
            DateBucketer(plan.buckets),
            plan.product_granularity,
            plan.marketplace_ids,
            worker_count=self.settings.worker_count,
        )
        groups, partitioning = aggregator.aggregate(facts, token)

        component_filter = FeeComponentFilter(plan.query.include_components_for_fee_types)
        rows = map_partitions(
            lambda group: finalize_group(group, partitioning.cost_index, component_filter),
            groups,
            worker_count=self.settings.worker_count,
            token=token,
        )
        retention = self.retention_resolver.resolve(plan.query.selected_fields)

        logger.info(
            "Economics query completed",
            marketplaces=list(plan.marketplace_ids),
            date_granularity=plan.date_granularity.value,
            product_granularity=plan.product_granularity.value,
            start_date=plan.start_date.isoformat(),
            end_date=plan.end_date.isoformat(),
            rows=len(rows),
            excluded_facts=partitioning.excluded_total,
            retention=retention.duration if retention else None,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return EconomicsResult(
            rows=rows,
            retention=retention,
            excluded_facts=partitioning.excluded_total,
        )

    def execute(
        self,
        query: EconomicsQuery,
        source,
        token: Optional[CancellationToken] = None,
    ) -> EconomicsResult:
        """
        Validate, load facts for the normalized range from ``source``, aggregate.

        ``source`` is any object with a ``load_facts(marketplace_ids,
        start_date, end_date)`` method; validation runs before it is called.
        """
        plan = self.plan(query)
        facts = source.load_facts(plan.marketplace_ids, plan.start_date, plan.end_date)
        return self.run_plan(plan, facts, token)
