"""
Domain enums for users, catalog, orders and payments.
"""

from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "customer"
    BUSINESS = "business"
    DELIVERY = "delivery"


class BusinessType(str, Enum):
    RESTAURANT = "restaurant"
    GROCERY = "grocery"
    PHARMACY = "pharmacy"
    OTHER = "other"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    OUT_OF_STOCK = "out_of_stock"
    HIDDEN = "hidden"


class OrderStatus(str, Enum):
    NEW = "new"
    ACCEPTED = "accepted"
    SHOPPING = "shopping"
    READY = "ready"
    READY_FOR_PICKUP = "ready_for_pickup"
    ITEMS_COLLECTED = "items_collected"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on-the-way"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class FulfillmentFlow(str, Enum):
    """Who gathers the items: the business (restaurant) or the driver (grocery/pharmacy)."""
    PREPARED_BY_BUSINESS = "prepared_by_business"
    SHOPPED_BY_DRIVER = "shopped_by_driver"


class PaymentMethod(str, Enum):
    CASH = "cash"
    QPAY = "qpay"
    CARD = "card"


class PaymentProvider(str, Enum):
    QPAY = "qpay"
    STRIPE = "stripe"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
