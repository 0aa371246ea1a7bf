"""
Database Schemas

MongoDB collection schemas as Pydantic models. Each model represents a
collection in the database; the model name lowercased is the collection name
(Product -> "product", Order -> "order", SiteSettings -> "settings").
Documents are stored with camelCase keys, the shape the storefront consumes.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

PHONE_PATTERN = re.compile(r"^01[0125][0-9]{8}$")
IMAGE_URL_PATTERN = re.compile(r"^https?://.+")


class PaymentMethod(str, Enum):
    WALLET_TRANSFER = "wallet-transfer"
    CASH_ON_DELIVERY = "cash-on-delivery"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class AdminRole(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
    )


class Collection(Document):
    name: str = Field(..., min_length=1, max_length=100, description="Unique, case-insensitive")
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True


class Product(Document):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    images: List[str] = Field(default_factory=list, description="Image URLs")
    collection: ObjectId = Field(..., description="Owning collection")
    price: float = Field(..., ge=0, le=1_000_000)
    original_price: Optional[float] = Field(None, ge=0)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_on_sale: bool = False
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    stock: int = Field(999, ge=0)
    is_active: bool = True
    sales_count: int = Field(0, ge=0)

    @field_validator("images")
    @classmethod
    def images_are_urls(cls, images: List[str]) -> List[str]:
        for url in images:
            if not IMAGE_URL_PATTERN.match(url):
                raise ValueError("Please provide a valid URL for the image")
        return images

    @field_validator("sizes")
    @classmethod
    def normalize_sizes(cls, sizes: List[str]) -> List[str]:
        return [s.strip().upper() for s in sizes]

    @field_validator("colors")
    @classmethod
    def normalize_colors(cls, colors: List[str]) -> List[str]:
        return [c.strip() for c in colors]

    @model_validator(mode="after")
    def original_price_above_price(self) -> "Product":
        if self.original_price and self.original_price <= self.price:
            raise ValueError("Original price must be greater than current price")
        return self


class OrderItem(Document):
    product: ObjectId
    quantity: int = Field(..., ge=1, le=100)
    size: Optional[str] = None
    color: Optional[str] = None
    price_at_purchase: float = Field(..., ge=0)


class Order(Document):
    customer_name: str
    phone: str
    address: str
    governorate: str
    items: List[OrderItem]
    payment_method: PaymentMethod
    shipping_cost: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    status: OrderStatus = Field(OrderStatus.PENDING, validate_default=True)
    notes: Optional[str] = Field(None, max_length=500)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class DailyBucket(Document):
    """
    Analytics collection schema, one document per UTC day
    Collection: "analytics"
    """
    date: datetime
    visits: int = 0
    orders_count: int = 0
    revenue: float = 0.0


class SiteSettings(Document):
    """
    Settings collection schema, a single document
    Collection: "settings"
    """
    # Theme colors
    primary_gold: str = "#C9A961"
    secondary_gold: str = "#B8935E"
    accent_gold: str = "#D4AF37"
    bg_primary: str = "#FFFFFF"
    bg_secondary: str = "#F8F7F4"
    bg_tertiary: str = "#F5F3EF"
    text_primary: str = "#1A1A1A"
    text_secondary: str = "#4A4A4A"
    text_muted: str = "#8B8B8B"
    border_light: str = "#E8E6E1"
    border_medium: str = "#D4D2CD"
    font_family: str = "-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif"

    # Branding
    site_name: str = "RAHHALAH"
    site_description: str = "Premium Streetwear Collection"

    # Contact
    phone: str = ""
    email: str = ""
    address: str = ""

    # Social media
    facebook: str = ""
    instagram: str = ""
    twitter: str = ""


THEME_FIELDS = [
    "primary_gold", "secondary_gold", "accent_gold",
    "bg_primary", "bg_secondary", "bg_tertiary",
    "text_primary", "text_secondary", "text_muted",
    "border_light", "border_medium", "font_family",
]


class Admin(Document):
    email: EmailStr
    password_hash: str
    role: AdminRole = Field(AdminRole.ADMIN, validate_default=True)
    is_active: bool = True
    last_login: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, email: str) -> str:
        return email.lower()


# Checkout payload. Prices never come from the client: any price field sent
# along with an item is ignored.

class CheckoutItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    product_id: str = Field(..., validation_alias=AliasChoices("productId", "product", "product_id"))
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None

    @field_validator("product_id")
    @classmethod
    def product_id_is_object_id(cls, value: str) -> str:
        if not ObjectId.is_valid(value):
            raise ValueError("Invalid product ID")
        return value

    @field_validator("quantity")
    @classmethod
    def quantity_in_range(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("Quantity must be between 1 and 100")
        return value


class OrderIn(Document):
    customer_name: str = Field(..., min_length=2, max_length=100)
    phone: str
    address: str = Field(..., min_length=10, max_length=500)
    governorate: Optional[str] = None
    items: List[CheckoutItem] = Field(default_factory=list)
    payment_method: PaymentMethod
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def phone_is_local_mobile(cls, value: str) -> str:
        if not PHONE_PATTERN.match(value):
            raise ValueError("Please provide a valid Egyptian phone number")
        return value


def not_null(value: Any) -> Any:
    """Partial-update validator: a field may be omitted but not set to null."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


def field_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to ``[{"field", "message"}]``."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc), "message": message})
    return errors
