"""
SQLAlchemy ORM models for the GobiGo delivery API.

Tables:
    users        — customers, businesses and drivers (keyed by identity-provider uid)
    products     — business catalog entries
    orders       — customer orders and their fulfillment state
    order_items  — line items priced at order time
    payments     — QPay invoices / Stripe payment intents
"""
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, Index,
)

from database import Base
from utils.timeutil import utcnow


class User(Base):
    """Any account. Business and delivery columns stay null for other roles."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), unique=True, nullable=False, index=True)  # identity-provider uid
    username = Column(String(100), unique=True, nullable=True)
    email = Column(String(255), nullable=False)
    name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default="customer")  # customer | business | delivery
    profile_image = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Business
    business_name = Column(String(200), nullable=True)
    business_type = Column(String(20), nullable=True, index=True)  # restaurant | grocery | pharmacy | other
    business_address = Column(Text, nullable=True)
    business_phone = Column(String(40), nullable=True)
    business_description = Column(Text, nullable=True)
    business_lat = Column(Float, nullable=True)  # map pin
    business_lng = Column(Float, nullable=True)

    # Delivery
    vehicle_type = Column(String(20), nullable=True)  # car | motorcycle | bicycle | scooter
    license_number = Column(String(60), nullable=True)
    is_online = Column(Boolean, nullable=False, default=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(100), nullable=True)
    image_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active | out_of_stock | hidden
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Order(Base):
    """
    A customer order.

    needs_preparation is fixed at creation from the business type:
    restaurants prepare the food, drivers shop grocery/pharmacy orders.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(40), unique=True, nullable=False)
    customer_id = Column(String(128), nullable=False, index=True)
    business_id = Column(String(128), nullable=False, index=True)
    business_type = Column(String(20), nullable=False, default="restaurant")
    needs_preparation = Column(Boolean, nullable=True)  # null on legacy rows => inferred from business_type
    driver_id = Column(String(128), nullable=True, index=True)
    driver_name = Column(String(200), nullable=True)
    status = Column(String(30), nullable=False, default="new", index=True)

    subtotal = Column(Float, nullable=False, default=0.0)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    driver_tip = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)
    payment_method = Column(String(20), nullable=False, default="cash")  # cash | qpay | card

    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(40), nullable=True)
    delivery_address = Column(Text, nullable=True)
    pickup_address = Column(Text, nullable=True)
    requested_time = Column(String(40), nullable=False, default="ASAP")

    estimated_delivery_time = Column(DateTime, nullable=True)
    delivered_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # Driver pool query: unassigned orders filtered by status
        Index("ix_orders_driver_status", "driver_id", "status"),
        Index("ix_orders_business_created", "business_id", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False)  # unit price when ordered
    notes = Column(Text, nullable=True)


class Payment(Base):
    """
    Provider-side payment attempts.

    QPay: invoice_id is the QPay invoice id, polled via /api/check-payment.
    Stripe: invoice_id is the PaymentIntent id.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider = Column(String(20), nullable=False)  # qpay | stripe
    invoice_id = Column(String(128), unique=True, nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(10), nullable=False, default="MNT")
    status = Column(String(20), nullable=False, default="PENDING")  # PENDING | PAID | FAILED
    qr_image = Column(Text, nullable=True)
    qr_text = Column(Text, nullable=True)
    deep_links = Column(Text, nullable=True)  # JSON list of bank app links
    customer_email = Column(String(255), nullable=True)
    customer_name = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    paid_at = Column(DateTime, nullable=True)
