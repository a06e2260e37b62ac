#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from bazaar_orders.data.models.order import OrderModel
from bazaar_orders.data.models.order_item import OrderItemModel
from bazaar_orders.data.models.tracking_step import TrackingStepModel

__all__ = ["OrderModel", "OrderItemModel", "TrackingStepModel"]
