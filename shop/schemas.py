"""
Request schemas

Each endpoint that takes input declares its body or query shape here. Routes
never read ``request.json`` / ``request.args`` directly; the ``validate``
decorator in ``shop.utils.decorators`` parses them against these models.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

SortField = Literal["created_at", "updated_at", "title", "vendor"]
SortOrder = Literal["asc", "desc"]

_SORT_ALIASES = {"created": "created_at", "updated": "updated_at"}


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# ---------- auth ----------

class RegisterBody(_Schema):
    email: EmailStr
    password: str = Field(..., min_length=6, description="At least 6 characters")
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


class LoginBody(_Schema):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


# ---------- catalog ----------

class PageQuery(_Schema):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)
    sort_by: SortField = Field("created_at", alias="sortBy")
    order: SortOrder = "desc"

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort_alias(cls, v):
        if isinstance(v, str):
            return _SORT_ALIASES.get(v, v)
        return v


class ProductListQuery(PageQuery):
    q: Optional[str] = None


# ---------- checkout ----------

class CheckoutItem(_Schema):
    product_id: int = Field(..., gt=0, alias="productId")
    variant_id: Optional[int] = Field(None, gt=0, alias="variantId")
    product_title: str = Field(..., min_length=1, alias="productTitle")
    variant_title: Optional[str] = Field(None, alias="variantTitle")
    quantity: int = Field(..., gt=0)
    price: float = Field(..., gt=0)


class CheckoutSessionBody(_Schema):
    items: List[CheckoutItem] = Field(..., min_length=1)
    currency: str = Field("usd", min_length=3, max_length=3)
    shipping_address: Optional[dict] = Field(None, alias="shippingAddress")
    billing_address: Optional[dict] = Field(None, alias="billingAddress")

    @field_validator("currency")
    @classmethod
    def _lower_currency(cls, v):
        return v.lower()
