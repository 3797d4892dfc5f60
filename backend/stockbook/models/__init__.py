from .inventory import InventoryItemRecord
from .sales import SaleRecord, SaleLineRecord

__all__ = [
    'InventoryItemRecord',
    'SaleRecord', 'SaleLineRecord',
]
