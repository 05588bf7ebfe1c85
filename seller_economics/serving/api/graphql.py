"""
GraphQL API

Strawberry GraphQL implementation of the ``economics`` query.

Rows are resolved straight from the engine's frozen output dataclasses, and the
engine runs in the threadpool so the event loop stays free. The
retention of the selected fields is reported in the response
``extensions.resultRetention``.
"""

from datetime import date
from typing import Any, Dict, Iterable, Iterator, List, Optional

import strawberry
import structlog
from fastapi import Depends
from graphql import GraphQLError
from starlette.concurrency import run_in_threadpool
from strawberry.extensions import SchemaExtension
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info
from strawberry.types.nodes import FragmentSpread, InlineFragment

from seller_economics.domain.enums import (
    DateGranularity as DateGranularityEnum,
    FeeType as FeeTypeEnum,
    ProductIdentifierGranularity as ProductIdentifierGranularityEnum,
)
from seller_economics.domain.errors import QueryCancelled, QueryValidationError
from seller_economics.engine import EconomicsEngine, build_query
from seller_economics.ingestion import FactSource
from .dependencies import get_engine, get_fact_source

logger = structlog.get_logger(__name__)

RETENTION_CONTEXT_KEY = "result_retention"


# =============================================================================
# ENUMS
# =============================================================================

DateGranularity = strawberry.enum(DateGranularityEnum, name="DateGranularity")
ProductIdentifierGranularity = strawberry.enum(
    ProductIdentifierGranularityEnum, name="ProductIdentifierGranularity"
)
FeeType = strawberry.enum(FeeTypeEnum, name="FeeType")


# =============================================================================
# TYPES
# =============================================================================

@strawberry.type
class Amount:
    amount: float
    currency_code: Optional[str]


@strawberry.type
class AggregatedDetail:
    amount: Amount
    promotion_amount: Amount
    tax_amount: Amount
    total_amount: Amount
    amount_per_unit: Optional[Amount]
    quantity: Optional[float]


@strawberry.type
class FeeComponent:
    name: str
    charge: AggregatedDetail


@strawberry.type
class Fee:
    fee_type_name: str
    charge: AggregatedDetail
    components: Optional[List[FeeComponent]]


@strawberry.type
class Ad:
    ad_type_name: str
    charge: AggregatedDetail


@strawberry.type
class Sales:
    ordered_product_sales: Amount
    net_product_sales: Amount
    average_selling_price: Optional[Amount]
    units_ordered: int
    units_refunded: int
    net_units_sold: int


@strawberry.type
class FbaCost:
    shipping_to_amazon_cost: Optional[Amount]


@strawberry.type
class MfnCost:
    fulfillment_cost: Optional[Amount]
    storage_cost: Optional[Amount]


@strawberry.type
class Cost:
    cost_of_goods_sold: Optional[Amount]
    fba_cost: Optional[FbaCost]
    mfn_cost: Optional[MfnCost]
    miscellaneous_cost: Optional[Amount]


@strawberry.type
class NetProceeds:
    total: Amount
    per_unit: Optional[Amount]


@strawberry.type
class Economics:
    marketplace_id: str
    start_date: date
    end_date: date
    parent_asin: Optional[str]
    child_asin: Optional[str]
    fnsku: Optional[str]
    msku: Optional[str]
    sales: Sales
    fees: List[Fee]
    ads: Optional[List[Ad]]
    cost: Optional[Cost]
    net_proceeds: NetProceeds


# =============================================================================
# INPUTS
# =============================================================================

@strawberry.input
class AggregateByInput:
    date: Optional[DateGranularity] = None
    product_id: Optional[ProductIdentifierGranularity] = None


# =============================================================================
# SELECTION PATHS
# =============================================================================

def selected_paths(selections: Iterable[Any], prefix: str = "") -> Iterator[str]:
    """Dotted leaf paths of a selection set, fragments flattened"""
    for selection in selections:
        if isinstance(selection, (FragmentSpread, InlineFragment)):
            yield from selected_paths(selection.selections, prefix)
            continue
        if selection.name.startswith("__"):
            continue
        path = f"{prefix}.{selection.name}" if prefix else selection.name
        if selection.selections:
            yield from selected_paths(selection.selections, path)
        else:
            yield path


# =============================================================================
# QUERIES
# =============================================================================

@strawberry.type
class Query:

    @strawberry.field
    async def economics(
        self,
        info: Info,
        start_date: date,
        end_date: date,
        marketplace_ids: List[str],
        aggregate_by: Optional[AggregateByInput] = None,
        include_components_for_fee_types: Optional[List[FeeType]] = None,
    ) -> List[Economics]:
        """Seller economics rows bucketed by date and product identifier"""
        aggregate_by = aggregate_by or AggregateByInput()
        paths = frozenset(
            path
            for field in info.selected_fields
            for path in selected_paths(field.selections)
        )

        engine: EconomicsEngine = info.context["engine"]
        source: FactSource = info.context["fact_source"]

        try:
            query = build_query(
                start_date,
                end_date,
                marketplace_ids,
                date_granularity=aggregate_by.date,
                product_granularity=aggregate_by.product_id,
                include_components_for_fee_types=include_components_for_fee_types,
                selected_fields=paths,
            )
            result = await run_in_threadpool(engine.execute, query, source)
        except (QueryValidationError, QueryCancelled) as e:
            logger.info("Economics query rejected", code=e.code, message=e.message)
            raise GraphQLError(e.message, extensions={"code": e.code}) from e

        info.context[RETENTION_CONTEXT_KEY] = result.retention.duration if result.retention else None
        return result.rows


# =============================================================================
# EXTENSIONS
# =============================================================================

class ResultRetentionExtension(SchemaExtension):
    """Adds ``resultRetention`` to the response extensions"""

    def get_results(self) -> Dict[str, Any]:
        context = self.execution_context.context
        if isinstance(context, dict) and RETENTION_CONTEXT_KEY in context:
            return {"resultRetention": context[RETENTION_CONTEXT_KEY]}
        return {}


# =============================================================================
# SCHEMA & ROUTER
# =============================================================================

schema = strawberry.Schema(query=Query, extensions=[ResultRetentionExtension])


async def get_context(
    engine: EconomicsEngine = Depends(get_engine),
    fact_source: FactSource = Depends(get_fact_source),
) -> Dict[str, Any]:
    return {"engine": engine, "fact_source": fact_source}


def create_graphql_router() -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        graphiql=True,
        context_getter=get_context,
    )
