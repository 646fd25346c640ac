from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

# Request bodies. Required fields stay Optional here; the service layer
# raises MissingField naming whichever one is absent.

ROLES = ("producer", "official", "buyer", "administrator")
PROFILE_ATTRIBUTES = ("age", "region", "farm_size", "phone", "organization")
VOTE_DIRECTIONS = ("like", "dislike")


class CartLineIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[str] = Field(None, alias="productId")
    quantity: Optional[int] = None


class CheckoutIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cart_items: List[CartLineIn] = Field(default_factory=list, alias="cartItems")
    user_email: Optional[str] = Field(None, alias="userEmail")


class CommentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[str] = Field(None, alias="productId")
    user: Optional[str] = None
    comment: Optional[str] = None


class VerifyUserIn(BaseModel):
    email: Optional[str] = None


class UserCreateIn(BaseModel):
    # unknown attributes are rejected instead of merged into the record
    model_config = ConfigDict(extra="forbid", populate_by_name=True, coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    age: Optional[str] = None
    region: Optional[str] = None
    farm_size: Optional[str] = Field(None, alias="farmSize")
    phone: Optional[str] = None
    organization: Optional[str] = None

    def profile(self):
        return {k: getattr(self, k) for k in PROFILE_ATTRIBUTES if getattr(self, k) is not None}


class BlogIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    author: Optional[str] = None
    full_desc: Optional[str] = Field(None, alias="fullDesc")
    thumbnail: Optional[str] = None
