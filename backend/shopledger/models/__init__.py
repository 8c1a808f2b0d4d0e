from .auth import User, SessionToken
from .inventory import Product
from .sales import Sale
from .activity import ActivityLogEntry

__all__ = [
    'User', 'SessionToken',
    'Product',
    'Sale',
    'ActivityLogEntry',
]
