from .auth import User, UserRole, SessionToken, ROLE_SUPER_ADMIN, ROLE_FRANCHISE, ROLES
from .tenancy import Franchise
from .settings import AdminSettings
from .products import Product
from .sales import Sale
from .expenditures import Expenditure
from .profit_sharing import ProfitSharingPayment
from .security import SecurityEvent

__all__ = [
    'User', 'UserRole', 'SessionToken', 'ROLE_SUPER_ADMIN', 'ROLE_FRANCHISE', 'ROLES',
    'Franchise',
    'AdminSettings',
    'Product',
    'Sale',
    'Expenditure',
    'ProfitSharingPayment',
    'SecurityEvent',
]
