from phoneshop.models.inventory import BillProduct, LocationType, Product, StockAdjustment
from phoneshop.models.security import AuditLog, RefreshSession, UserSecurityProfile
from phoneshop.models.user import User, UserRole

__all__ = [
    "AuditLog",
    "BillProduct",
    "LocationType",
    "Product",
    "RefreshSession",
    "StockAdjustment",
    "User",
    "UserRole",
    "UserSecurityProfile",
]
