# marketstore/models.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

# Stored record shapes. Records live in the collections as plain dicts
# (model_dump()), these models only guard their construction.

USER_SCHEMA_VERSION = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    id: str
    name: str
    category: str
    quantity: int = Field(..., ge=0)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    image: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class User(BaseModel):
    id: str
    name: str
    email: str
    role: Literal["producer", "official", "buyer", "administrator"]
    age: Optional[str] = None
    region: Optional[str] = None
    farm_size: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None
    schema_version: int = USER_SCHEMA_VERSION
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CommentEntry(BaseModel):
    user: str
    comment: str
    date: datetime = Field(default_factory=utcnow)


class CommentThread(BaseModel):
    id: str
    product_id: str
    comments: List[CommentEntry] = []
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class OrderLine(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)  # unit price when the order was placed
    line_total: Decimal = Field(..., ge=0)


class Order(BaseModel):
    id: str
    email: str
    items: List[OrderLine]
    total_price: Decimal = Field(..., ge=0)
    status: Literal["pending"] = "pending"
    created_at: datetime = Field(default_factory=utcnow)


class BlogPost(BaseModel):
    id: str
    title: str
    author: str
    full_desc: str
    thumbnail: str
    likes: int = Field(0, ge=0)
    dislikes: int = Field(0, ge=0)
    votes: Dict[str, Literal["like", "dislike"]] = {}
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
