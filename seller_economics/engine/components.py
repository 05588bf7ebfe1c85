"""
Fee Component Filter

Decides, per fee type, whether a row carries the per-component breakdown.
"""

from typing import Iterable, List, Optional

from seller_economics.domain.enums import FeeType
from seller_economics.domain.models import Fee, FeeComponent
from .aggregator import GroupAccumulator
from .metrics import aggregated_detail


class FeeComponentFilter:
    """
    Expands component detail only for the requested fee types.

    A requested fee type whose facts carry no component names has no natural
    decomposition and keeps ``components`` as None.
    """

    def __init__(self, include_fee_types: Optional[Iterable[FeeType]] = None):
        self.include = frozenset(t.value for t in include_fee_types or ())

    def components_for(
        self,
        fee_type: str,
        group: GroupAccumulator,
        currency_code: Optional[str],
    ) -> Optional[List[FeeComponent]]:
        if fee_type not in self.include:
            return None
        components = group.fee_components.get(fee_type)
        if not components:
            return None
        return [
            FeeComponent(name=name, charge=aggregated_detail(components[name], currency_code))
            for name in sorted(components)
        ]

    def build_fees(self, group: GroupAccumulator, currency_code: Optional[str]) -> List[Fee]:
        """Fee details sorted by fee type, components attached where requested"""
        return [
            Fee(
                fee_type_name=fee_type,
                charge=aggregated_detail(group.fees[fee_type], currency_code),
                components=self.components_for(fee_type, group, currency_code),
            )
            for fee_type in sorted(group.fees)
        ]
