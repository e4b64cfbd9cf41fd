"""
Domain constants used across services/routers.
"""

from domain.enums import OrderStatus

# Order numbers look like GG-250114-4F9A2C
ORDER_NUMBER_PREFIX = "GG"

DEFAULT_BUSINESS_TYPE = "restaurant"
DEFAULT_REQUESTED_TIME = "ASAP"

# Statuses after which an order no longer moves
TERMINAL_ORDER_STATUSES = frozenset({
    OrderStatus.DELIVERED.value,
    OrderStatus.COMPLETED.value,
    OrderStatus.DECLINED.value,
    OrderStatus.CANCELLED.value,
})

# Unassigned orders a driver may take, per fulfillment flow
AVAILABLE_PREPARED_STATUSES = (OrderStatus.READY.value, OrderStatus.READY_FOR_PICKUP.value)
AVAILABLE_SHOPPED_STATUSES = (OrderStatus.NEW.value, OrderStatus.ACCEPTED.value)

# Order columns a status update may merge in alongside the status
MERGEABLE_ORDER_FIELDS = frozenset({
    "driver_id",
    "driver_name",
    "estimated_delivery_time",
    "delivered_time",
})
