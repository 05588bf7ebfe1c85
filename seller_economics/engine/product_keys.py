"""
Product Key Resolution

Maps a fact's identifiers onto the requested product granularity and decides
which identifier fields a finished row carries.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from seller_economics.domain.enums import ProductIdentifierGranularity
from seller_economics.domain.facts import Fact
from seller_economics.domain.models import ProductIdentifiers, ProductKey

# Row fields below parent level, coarse to fine
_ROW_GRANULARITIES = (
    ProductIdentifierGranularity.CHILD_ASIN,
    ProductIdentifierGranularity.MSKU,
    ProductIdentifierGranularity.FNSKU,
)


def product_key_for(fact: Fact, granularity: ProductIdentifierGranularity) -> ProductKey:
    """Group key for ``fact`` at ``granularity``; missing identifiers stay None"""
    parent_asin = fact.resolved_parent_asin
    if granularity is ProductIdentifierGranularity.PARENT_ASIN:
        return ProductKey(granularity=granularity, parent_asin=parent_asin, identifier=parent_asin)
    return ProductKey(
        granularity=granularity,
        parent_asin=parent_asin,
        identifier=fact.identifier(granularity),
    )


@dataclass
class IdentifierTally:
    """Distinct non-null identifier values seen across a group's facts"""
    values: Dict[ProductIdentifierGranularity, Set[str]] = field(
        default_factory=lambda: {g: set() for g in _ROW_GRANULARITIES}
    )

    def add(self, fact: Fact) -> None:
        for granularity in _ROW_GRANULARITIES:
            value = fact.identifier(granularity)
            if value is not None:
                self.values[granularity].add(value)

    def merge(self, other: "IdentifierTally") -> "IdentifierTally":
        return IdentifierTally(
            values={g: self.values[g] | other.values[g] for g in _ROW_GRANULARITIES}
        )

    def single(self, granularity: ProductIdentifierGranularity) -> Optional[str]:
        """The value when exactly one distinct value was seen, else None"""
        seen = self.values[granularity]
        if len(seen) == 1:
            return next(iter(seen))
        return None


def resolve_identifiers(key: ProductKey, tally: IdentifierTally) -> ProductIdentifiers:
    """
    Identifier fields for a finished row.

    parentAsin and the grouped identifier come from the key. Identifiers finer
    than the grouping are emitted only when every contributing fact agrees on
    a single value; coarser ones are left empty.
    """
    resolved: Dict[str, Optional[str]] = {}
    for granularity in _ROW_GRANULARITIES:
        if granularity is key.granularity:
            value = key.identifier
        elif granularity.rank > key.granularity.rank:
            value = tally.single(granularity)
        else:
            value = None
        resolved[granularity.field_name] = value

    return ProductIdentifiers(parent_asin=key.parent_asin, **resolved)
