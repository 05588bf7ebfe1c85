"""
Result Retention

Each output field carries a fixed retention duration; a result set is
retained for the shortest duration among the fields the caller selected.
"""

import re
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from seller_economics.domain.models import RetentionTag

_DURATION = re.compile(r"^P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)W)?(?:(\d+)D)?$")

# Day lengths used to compare durations
DAYS_PER_UNIT = (365, 30, 7, 1)

DEFAULT_RETENTION_TABLE: Dict[str, str] = {
    "sales": "P18M",
    "fees": "P18M",
    "fees.components": "P90D",
    "ads": "P90D",
    "cost": "P30D",
    "netProceeds": "P30D",
}

_AMOUNT = ("amount", "currencyCode")
_DETAIL = {
    "amount": _AMOUNT,
    "promotionAmount": _AMOUNT,
    "taxAmount": _AMOUNT,
    "totalAmount": _AMOUNT,
    "amountPerUnit": _AMOUNT,
    "quantity": None,
}

ROW_SHAPE = {
    "marketplaceId": None,
    "startDate": None,
    "endDate": None,
    "parentAsin": None,
    "childAsin": None,
    "fnsku": None,
    "msku": None,
    "sales": {
        "orderedProductSales": _AMOUNT,
        "netProductSales": _AMOUNT,
        "averageSellingPrice": _AMOUNT,
        "unitsOrdered": None,
        "unitsRefunded": None,
        "netUnitsSold": None,
    },
    "fees": {
        "feeTypeName": None,
        "charge": _DETAIL,
        "components": {"name": None, "charge": _DETAIL},
    },
    "ads": {"adTypeName": None, "charge": _DETAIL},
    "cost": {
        "costOfGoodsSold": _AMOUNT,
        "fbaCost": {"shippingToAmazonCost": _AMOUNT},
        "mfnCost": {"fulfillmentCost": _AMOUNT, "storageCost": _AMOUNT},
        "miscellaneousCost": _AMOUNT,
    },
    "netProceeds": {"total": _AMOUNT, "perUnit": _AMOUNT},
}


def _leaf_paths(shape, prefix: str = "") -> Iterable[str]:
    if shape is None:
        yield prefix
        return
    if isinstance(shape, tuple):
        shape = {name: None for name in shape}
    for name, child in shape.items():
        yield from _leaf_paths(child, f"{prefix}.{name}" if prefix else name)


ALL_FIELD_PATHS: FrozenSet[str] = frozenset(_leaf_paths(ROW_SHAPE))


def parse_duration_days(duration: str) -> int:
    """
    Length of an ISO-8601 date duration in days.

    Raises:
        ValueError: Not a PnYnMnWnD duration
    """
    match = _DURATION.match(duration or "")
    if not match or not any(match.groups()):
        raise ValueError(f"Invalid ISO-8601 duration: {duration!r}")
    return sum(int(part or 0) * days for part, days in zip(match.groups(), DAYS_PER_UNIT))


class RetentionResolver:
    """
    Folds touched field paths over a fixed path -> duration table.

    A path uses its longest table prefix, so ``fees.components.name`` matches
    ``fees.components`` before ``fees``.
    """

    def __init__(self, table: Optional[Mapping[str, str]] = None):
        table = DEFAULT_RETENTION_TABLE if table is None else table
        self._table: Dict[Tuple[str, ...], RetentionTag] = {
            tuple(path.split(".")): RetentionTag(duration=duration, days=parse_duration_days(duration))
            for path, duration in table.items()
        }

    def tag_for(self, path: str) -> Optional[RetentionTag]:
        parts = tuple(path.split("."))
        for length in range(len(parts), 0, -1):
            tag = self._table.get(parts[:length])
            if tag is not None:
                return tag
        return None

    def resolve(self, paths: Optional[Iterable[str]] = None) -> Optional[RetentionTag]:
        """Shortest retention over ``paths`` (every row field when None); None if untagged"""
        paths = ALL_FIELD_PATHS if paths is None else paths
        tags = [tag for tag in (self.tag_for(p) for p in paths) if tag is not None]
        if not tags:
            return None
        return min(tags, key=lambda tag: (tag.days, tag.duration))
