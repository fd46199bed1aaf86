# marketplace/db/models/enums.py
from enum import Enum


class OfferStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"


class OfferSource(str, Enum):
    WEB = "web"
    IMPORT = "import"


class OfferUnit(str, Enum):
    """Unit used for the minimum order quantity"""

    PIECES = "pieces"
    PALLETS = "pallets"
    CONTAINERS = "containers"


class OfferPriceDisplayUnit(str, Enum):
    """How tier prices are entered and displayed: absolute or per watt-peak"""

    ABSOLUTE = "absolute"
    WP = "wp"


class IncotermName(str, Enum):
    CIF = "CIF"
    EXW = "EXW"
    FCA = "FCA"
    DAP = "DAP"
    DDP = "DDP"


class OwnerKind(str, Enum):
    """Owner of a polymorphic child row (incoterm, country exclusion)"""

    OFFER = "offer"
    WAREHOUSE = "warehouse"


class FileCollection(str, Enum):
    OFFERS = "offers"


class ExportMode(str, Enum):
    FILE = "file"
    STREAM = "stream"
    DOWNLOAD = "download"


class UserPermission(str, Enum):
    ADMIN_OFFERS = "admin_offers"
    CAN_SELL = "can_sell"
    CAN_SELL_LIMITED = "can_sell_limited"
    SEE_OWNER_IN_OFFER = "see_owner_in_offer"
    SEE_PRODUCT_WAREHOUSE = "see_product_warehouse"
    EXPORT_IMPORT_OFFERS = "export_import_offers"
    CHECK_USER_HISTORY = "check_user_history"


def enum_values(enum_cls):
    """Values stored in the database for a str enum column"""
    return [member.value for member in enum_cls]
