from .catalog import MainCategory, SubCategory, ItemType, Department, Rank, Floor
from .inventory import Item, MovementType, InventoryMovement
from .auth import User, Role, RolePermission, SessionToken
from .security import SecurityEvent

__all__ = [
    'MainCategory', 'SubCategory', 'ItemType',
    'Department', 'Rank', 'Floor',
    'Item', 'MovementType', 'InventoryMovement',
    'User', 'Role', 'RolePermission', 'SessionToken',
    'SecurityEvent',
]
