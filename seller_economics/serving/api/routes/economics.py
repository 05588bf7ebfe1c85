"""
Economics API Endpoints

REST variant of the GraphQL ``economics`` query. Rows are returned with the
same camelCase field names; ``fields`` narrows the retention calculation to
the listed paths (every row field when omitted).
"""

from dataclasses import fields as dataclass_fields, is_dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from seller_economics.domain.models import EconomicsRow
from seller_economics.engine import EconomicsEngine, build_query
from seller_economics.ingestion import FactSource
from seller_economics.serving.api.dependencies import get_engine, get_fact_source

router = APIRouter()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AggregateByRequest(CamelModel):
    """Aggregation dimensions; omitted values use the configured defaults"""
    date: Optional[str] = None
    product_id: Optional[str] = None


class EconomicsRequest(CamelModel):
    """Economics query body"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    marketplace_ids: List[str] = Field(default_factory=list)
    aggregate_by: AggregateByRequest = Field(default_factory=AggregateByRequest)
    include_components_for_fee_types: List[str] = Field(default_factory=list)
    fields: Optional[List[str]] = None


class EconomicsResponse(CamelModel):
    """Economics rows plus the retention of the selected fields"""
    rows: List[Dict[str, Any]]
    result_retention: Optional[str] = None


# =============================================================================
# SERIALIZATION
# =============================================================================

def to_wire(value: Any) -> Any:
    """Dataclasses to camelCase dicts, decimals to floats, dates to ISO strings"""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [to_wire(item) for item in value]
    if is_dataclass(value):
        return {to_camel(f.name): to_wire(getattr(value, f.name)) for f in dataclass_fields(value)}
    return value


def row_to_wire(row: EconomicsRow) -> Dict[str, Any]:
    """One row with its identifiers flattened to the top level"""
    return {
        "marketplaceId": row.marketplace_id,
        "startDate": row.start_date.isoformat(),
        "endDate": row.end_date.isoformat(),
        **to_wire(row.identifiers),
        "sales": to_wire(row.sales),
        "fees": to_wire(row.fees),
        "ads": to_wire(row.ads),
        "cost": to_wire(row.cost),
        "netProceeds": to_wire(row.net_proceeds),
    }


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("", response_model=EconomicsResponse)
def query_economics(
    request: EconomicsRequest,
    engine: EconomicsEngine = Depends(get_engine),
    source: FactSource = Depends(get_fact_source),
) -> EconomicsResponse:
    """
    Aggregate seller economics.

    Validation failures are mapped to HTTP 400 and cancellation to HTTP 504
    by the application's exception handlers.
    """
    query = build_query(
        request.start_date,
        request.end_date,
        request.marketplace_ids,
        date_granularity=request.aggregate_by.date,
        product_granularity=request.aggregate_by.product_id,
        include_components_for_fee_types=request.include_components_for_fee_types,
        selected_fields=request.fields,
    )
    result = engine.execute(query, source)

    return EconomicsResponse(
        rows=[row_to_wire(row) for row in result.rows],
        result_retention=result.retention.duration if result.retention else None,
    )
