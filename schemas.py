"""
Database Schemas for the ASH store

Each Pydantic model describes the documents of one MongoDB collection.
Text fields are trimmed before their constraints are checked, and numbers
sent for a text field are kept as text.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

OrderStatus = Literal["pending", "processing", "completed", "cancelled"]
ORDER_STATUSES = get_args(OrderStatus)

# Legal moves when strict transitions are enabled; the last two are terminal
STATUS_TRANSITIONS = {
    "pending": ("processing", "cancelled"),
    "processing": ("completed", "cancelled"),
    "completed": (),
    "cancelled": (),
}


class Product(BaseModel):
    """
    Product-like collections schema
    Collections: "bestproducts", "allproducts", "collections", "bestsellers"
    """
    model_config = ConfigDict(
        str_strip_whitespace=True, coerce_numbers_to_str=True, allow_inf_nan=False)

    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(..., ge=0, description="Price")
    imageUrl: str = Field(..., min_length=1, description="Image path or URL")
    category: str = Field(..., min_length=1, description="Product category")


class CartItem(BaseModel):
    """Line item embedded in an order. ``price`` is stored as text."""
    model_config = ConfigDict(coerce_numbers_to_str=True, allow_inf_nan=False)

    id: Union[int, float]
    title: str = Field(..., min_length=1)
    price: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class Customer(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    notes: Optional[str] = None


class Order(BaseModel):
    """
    Orders collection schema
    Collection: "orders"
    """
    model_config = ConfigDict(allow_inf_nan=False)

    customer: Customer
    cart: List[CartItem] = Field(..., min_length=1)
    total: float = Field(..., ge=0, description="Order total as sent by the client")
    status: OrderStatus = "pending"
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
