"""
Pydantic models for request/response validation.

JSON uses camelCase (the web client's field names); Python code uses
snake_case. Every model accepts either.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import BusinessType, PaymentMethod, ProductStatus, UserRole


class ApiModel(BaseModel):
    """Shared base — construct by Python name or alias, read from ORM rows."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    def to_api(self) -> dict:
        """Serialize with camelCase keys and JSON-safe values."""
        return self.model_dump(by_alias=True, mode="json")


class StrictApiModel(ApiModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True, extra="forbid")


# ── Users ───────────────────────────────────────────────────────────

class UserCreateRequest(ApiModel):
    uid: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    username: Optional[str] = Field(default=None, min_length=2, max_length=100)
    name: Optional[str] = Field(default=None, max_length=200)
    role: UserRole = UserRole.CUSTOMER
    profile_image: Optional[str] = Field(default=None, alias="profileImage")

    business_name: Optional[str] = Field(default=None, alias="businessName", max_length=200)
    business_type: Optional[BusinessType] = Field(default=None, alias="businessType")
    business_address: Optional[str] = Field(default=None, alias="businessAddress")
    business_phone: Optional[str] = Field(default=None, alias="businessPhone", max_length=40)
    business_description: Optional[str] = Field(default=None, alias="businessDescription")
    business_lat: Optional[float] = Field(default=None, alias="businessLat", ge=-90, le=90)
    business_lng: Optional[float] = Field(default=None, alias="businessLng", ge=-180, le=180)

    vehicle_type: Optional[str] = Field(default=None, alias="vehicleType", max_length=20)
    license_number: Optional[str] = Field(default=None, alias="licenseNumber", max_length=60)


class UserUpdateRequest(ApiModel):
    """Partial update; uid and role are immutable through this endpoint."""
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    username: Optional[str] = Field(default=None, min_length=2, max_length=100)
    name: Optional[str] = Field(default=None, max_length=200)
    profile_image: Optional[str] = Field(default=None, alias="profileImage")

    business_name: Optional[str] = Field(default=None, alias="businessName", max_length=200)
    business_type: Optional[BusinessType] = Field(default=None, alias="businessType")
    business_address: Optional[str] = Field(default=None, alias="businessAddress")
    business_phone: Optional[str] = Field(default=None, alias="businessPhone", max_length=40)
    business_description: Optional[str] = Field(default=None, alias="businessDescription")
    business_lat: Optional[float] = Field(default=None, alias="businessLat", ge=-90, le=90)
    business_lng: Optional[float] = Field(default=None, alias="businessLng", ge=-180, le=180)

    vehicle_type: Optional[str] = Field(default=None, alias="vehicleType", max_length=20)
    license_number: Optional[str] = Field(default=None, alias="licenseNumber", max_length=60)


class OnlineStatusRequest(ApiModel):
    is_online: bool = Field(..., alias="isOnline")


class BusinessLocationRequest(ApiModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class UserResponse(ApiModel):
    id: int
    uid: str
    username: Optional[str] = None
    email: str
    name: Optional[str] = None
    role: str
    profile_image: Optional[str] = Field(default=None, alias="profileImage")
    business_name: Optional[str] = Field(default=None, alias="businessName")
    business_type: Optional[str] = Field(default=None, alias="businessType")
    business_address: Optional[str] = Field(default=None, alias="businessAddress")
    business_phone: Optional[str] = Field(default=None, alias="businessPhone")
    business_description: Optional[str] = Field(default=None, alias="businessDescription")
    business_lat: Optional[float] = Field(default=None, alias="businessLat")
    business_lng: Optional[float] = Field(default=None, alias="businessLng")
    vehicle_type: Optional[str] = Field(default=None, alias="vehicleType")
    license_number: Optional[str] = Field(default=None, alias="licenseNumber")
    is_online: bool = Field(False, alias="isOnline")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


# ── Products ────────────────────────────────────────────────────────

class ProductCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: float = Field(..., gt=0)
    category: Optional[str] = Field(default=None, max_length=100)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    status: ProductStatus = ProductStatus.ACTIVE


class ProductUpdateRequest(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, max_length=100)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    status: Optional[ProductStatus] = None


class ProductResponse(ApiModel):
    id: int
    business_id: str = Field(..., alias="businessId")
    name: str
    description: Optional[str] = None
    price: float
    category: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    status: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


# ── Orders ──────────────────────────────────────────────────────────

class OrderItemRequest(ApiModel):
    product_id: int = Field(..., gt=0, alias="productId")
    quantity: int = Field(1, ge=1, le=50)
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderCreateRequest(ApiModel):
    business_id: str = Field(..., alias="businessId", min_length=1)
    items: List[OrderItemRequest] = Field(..., min_length=1)
    delivery_fee: Optional[float] = Field(default=None, alias="deliveryFee", ge=0)
    driver_tip: float = Field(0.0, alias="driverTip", ge=0)
    customer_name: Optional[str] = Field(default=None, alias="customerName", max_length=200)
    customer_phone: Optional[str] = Field(default=None, alias="customerPhone", max_length=40)
    delivery_address: str = Field(..., alias="deliveryAddress", min_length=1)
    pickup_address: Optional[str] = Field(default=None, alias="pickupAddress")
    requested_time: str = Field("ASAP", alias="requestedTime", max_length=40)
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, alias="paymentMethod")


class OrderStatusUpdateRequest(StrictApiModel):
    """
    Requested status plus the fields that may ride along with it.
    Unknown fields are rejected.
    """
    status: str = Field(..., min_length=1, max_length=30)
    driver_id: Optional[str] = Field(default=None, alias="driverId")
    driver_name: Optional[str] = Field(default=None, alias="driverName", max_length=200)
    estimated_delivery_time: Optional[datetime] = Field(default=None, alias="estimatedDeliveryTime")
    delivered_time: Optional[datetime] = Field(default=None, alias="deliveredTime")

    def extra_fields(self) -> dict:
        return self.model_dump(exclude={"status"}, exclude_none=True)


class OrderItemResponse(ApiModel):
    id: int
    order_id: int = Field(..., alias="orderId")
    product_id: int = Field(..., alias="productId")
    quantity: int
    price: float
    notes: Optional[str] = None


class OrderResponse(ApiModel):
    id: int
    order_number: str = Field(..., alias="orderNumber")
    customer_id: str = Field(..., alias="customerId")
    business_id: str = Field(..., alias="businessId")
    business_type: str = Field(..., alias="businessType")
    needs_preparation: Optional[bool] = Field(default=None, alias="needsPreparation")
    driver_id: Optional[str] = Field(default=None, alias="driverId")
    driver_name: Optional[str] = Field(default=None, alias="driverName")
    status: str
    subtotal: float
    delivery_fee: float = Field(..., alias="deliveryFee")
    driver_tip: float = Field(..., alias="driverTip")
    total: float
    payment_method: str = Field(..., alias="paymentMethod")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    customer_phone: Optional[str] = Field(default=None, alias="customerPhone")
    delivery_address: Optional[str] = Field(default=None, alias="deliveryAddress")
    pickup_address: Optional[str] = Field(default=None, alias="pickupAddress")
    requested_time: str = Field("ASAP", alias="requestedTime")
    estimated_delivery_time: Optional[datetime] = Field(default=None, alias="estimatedDeliveryTime")
    delivered_time: Optional[datetime] = Field(default=None, alias="deliveredTime")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")


class OrderWithItemsResponse(ApiModel):
    order: OrderResponse
    items: List[OrderItemResponse]


# ── Payments ────────────────────────────────────────────────────────

class QPayPaymentRequest(ApiModel):
    amount: float = Field(..., gt=0)
    order_id: Optional[int] = Field(default=None, alias="orderId")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    description: Optional[str] = Field(default=None, max_length=255)


class BankLink(ApiModel):
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None
    link: str


class QPayPaymentResponse(ApiModel):
    invoice_id: str = Field(..., alias="invoiceId")
    qr_image: Optional[str] = Field(default=None, alias="qrImage")
    qr_text: Optional[str] = Field(default=None, alias="qrText")
    urls: List[BankLink] = Field(default_factory=list)


class PaymentCheckResponse(ApiModel):
    invoice_id: str = Field(..., alias="invoiceId")
    paid: bool
    status: str


class PaymentIntentRequest(ApiModel):
    amount: float = Field(..., gt=0)
    order_id: Optional[int] = Field(default=None, alias="orderId")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class PaymentIntentResponse(ApiModel):
    payment_intent_id: str = Field(..., alias="paymentIntentId")
    client_secret: str = Field(..., alias="clientSecret")


# ── Auth ────────────────────────────────────────────────────────────

class SessionRequest(ApiModel):
    """Exchange an identity-provider ID token (or, in simulation, a bare uid)."""
    id_token: Optional[str] = Field(default=None, alias="idToken")
    uid: Optional[str] = Field(default=None, max_length=128)


class SessionResponse(ApiModel):
    uid: str
    role: str
    access_token: str = Field(..., alias="accessToken")
    token_type: str = Field("Bearer", alias="tokenType")
    expires_in_seconds: int = Field(..., alias="expiresInSeconds")
