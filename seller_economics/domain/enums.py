"""
Contract Enumerations

Enumerated values of the economics query contract. Values are the exact wire
strings.
"""

from enum import Enum


class DateGranularity(str, Enum):
    """Date bucket size for aggregation"""
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    RANGE = "RANGE"


class ProductIdentifierGranularity(str, Enum):
    """Product identifier used to group facts, coarse to fine"""
    PARENT_ASIN = "PARENT_ASIN"
    CHILD_ASIN = "CHILD_ASIN"
    MSKU = "MSKU"
    FNSKU = "FNSKU"

    @property
    def field_name(self) -> str:
        """Fact attribute holding this granularity's identifier"""
        return _IDENTIFIER_FIELDS[self]

    @property
    def rank(self) -> int:
        """Position in the coarse-to-fine ordering"""
        return _GRANULARITY_ORDER.index(self)


_GRANULARITY_ORDER = (
    ProductIdentifierGranularity.PARENT_ASIN,
    ProductIdentifierGranularity.CHILD_ASIN,
    ProductIdentifierGranularity.MSKU,
    ProductIdentifierGranularity.FNSKU,
)

_IDENTIFIER_FIELDS = {
    ProductIdentifierGranularity.PARENT_ASIN: "parent_asin",
    ProductIdentifierGranularity.CHILD_ASIN: "child_asin",
    ProductIdentifierGranularity.MSKU: "msku",
    ProductIdentifierGranularity.FNSKU: "fnsku",
}


class FeeType(str, Enum):
    """Marketplace fee categories"""
    REFERRAL_FEE = "REFERRAL_FEE"
    FBA_FULFILLMENT_FEE = "FBA_FULFILLMENT_FEE"
    FBA_STORAGE_FEE = "FBA_STORAGE_FEE"
    FBA_LONG_TERM_STORAGE_FEE = "FBA_LONG_TERM_STORAGE_FEE"
    INBOUND_PLACEMENT_FEE = "INBOUND_PLACEMENT_FEE"
    INBOUND_TRANSPORTATION_FEE = "INBOUND_TRANSPORTATION_FEE"
    RETURN_PROCESSING_FEE = "RETURN_PROCESSING_FEE"
    REFUND_ADMINISTRATION_FEE = "REFUND_ADMINISTRATION_FEE"
    CLOSING_FEE = "CLOSING_FEE"
    DIGITAL_SERVICES_FEE = "DIGITAL_SERVICES_FEE"
    HIGH_VOLUME_LISTING_FEE = "HIGH_VOLUME_LISTING_FEE"
    OTHER_FEE = "OTHER_FEE"


class AdType(str, Enum):
    """Advertising program categories"""
    SPONSORED_PRODUCTS = "SPONSORED_PRODUCTS"
    SPONSORED_BRANDS = "SPONSORED_BRANDS"
    SPONSORED_DISPLAY = "SPONSORED_DISPLAY"
    SPONSORED_TELEVISION = "SPONSORED_TELEVISION"


class FactKind(str, Enum):
    """Raw fact categories supplied by the fact source"""
    SALE = "SALE"
    FEE = "FEE"
    AD = "AD"
    COST = "COST"


class FulfillmentChannel(str, Enum):
    """How a product is fulfilled"""
    FBA = "FBA"
    MFN = "MFN"
