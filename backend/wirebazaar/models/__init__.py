from .identity import AuthIdentity, OtpChallenge, SessionToken, Profile, OwnerAccount
from .catalog import Product
from .orders import Order, OrderItem, ORDER_STATUSES, PAYMENT_STATUSES
from .customers import Address, Inquiry, INQUIRY_STATUSES, INQUIRY_USER_TYPES
from .security import SecurityEvent

__all__ = [
    'AuthIdentity', 'OtpChallenge', 'SessionToken', 'Profile', 'OwnerAccount',
    'Product',
    'Order', 'OrderItem', 'ORDER_STATUSES', 'PAYMENT_STATUSES',
    'Address', 'Inquiry', 'INQUIRY_STATUSES', 'INQUIRY_USER_TYPES',
    'SecurityEvent',
]
