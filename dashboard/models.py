"""
Wire models for the remote order and inventory stores.
The stores speak camelCase JSON; attributes here are snake_case and the
camelCase names are accepted (and emitted with by_alias=True).
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderStatus(str, Enum):
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class StockStatus(str, Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderItem(WireModel):
    id: str
    order_id: str | None = None
    product_id: str
    name: str = ""
    image: str | None = None
    price: float = 0
    quantity: int = 1
    selected_color: str | None = None
    selected_size: str | None = None
    is_returned: bool = False
    return_reason: str | None = None
    returned_at: datetime | None = None


class ShippingAddress(WireModel):
    id: str | None = None
    user_id: str | None = None
    name: str = ""
    type: str | None = None
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    mobile: str = ""
    is_default: bool = False


class OrderUser(WireModel):
    id: str
    name: str = ""
    phone: str = ""


class StatusHistoryEntry(WireModel):
    """One accepted status change. Never edited once recorded."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str | None = None
    order_id: str | None = None
    previous_status: OrderStatus
    new_status: OrderStatus
    comment: str = ""
    created_at: datetime


class Order(WireModel):
    id: str
    order_number: str = ""
    user_id: str | None = None
    status: OrderStatus
    subtotal: float = 0
    discount: float = 0
    shipping: float = 0
    tax: float = 0
    total: float = 0
    currency: str = "INR"
    is_paid: bool = False
    paid_at: datetime | None = None
    address_id: str | None = None
    tracking: str | None = None
    carrier: str | None = None
    estimated_delivery: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cancelled_at: datetime | None = None
    items: list[OrderItem] = Field(default_factory=list)
    shipping_address: ShippingAddress | None = None
    user: OrderUser | None = None
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)


class OrdersPage(WireModel):
    orders: list[Order] = Field(default_factory=list)
    page: int = 1
    limit: int = 10
    total_pages: int = 0
    total_items: int = 0


class StockRecord(BaseModel):
    """Stock fields of a product. stored_status is the label as last saved by the server."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="id")
    name: str = ""
    quantity: int = Field(default=0, ge=0, alias="stockQuantity")
    low_stock_threshold: int = Field(default=0, ge=0, alias="lowStockThreshold")
    stored_status: StockStatus = Field(default=StockStatus.IN_STOCK, alias="stockStatus")


class StockPage(BaseModel):
    products: list[StockRecord] = Field(default_factory=list)
    page: int = 1
    limit: int = 10
    total_pages: int = 0
    total_items: int = 0
