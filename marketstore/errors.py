from typing import Any, Dict, Optional

from fastapi import HTTPException

# Every failure a service operation can raise. Routes let these propagate;
# the handlers in main.py log them and render the JSON body.


class StoreError(HTTPException):
    status_code = 500
    error = "store_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(StoreError):
    status_code = 400
    error = "validation_error"


class MissingField(ValidationError):
    error = "missing_field"

    def __init__(self, field: str):
        super().__init__(f"{field} is required", field=field)


class InvalidRole(ValidationError):
    error = "invalid_role"

    def __init__(self, role: str, allowed):
        super().__init__(
            f"role '{role}' is not one of: {', '.join(allowed)}", field="role"
        )


class EmptyCart(ValidationError):
    error = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty", field="cartItems")


class MissingSearchTerm(ValidationError):
    error = "missing_search_term"

    def __init__(self):
        super().__init__("Search term is required", field="name")


class InsufficientStock(StoreError):
    status_code = 400
    error = "insufficient_stock"

    def __init__(self, product_id: str, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}",
            field="quantity",
        )
        self.product_id = product_id
        self.product_name = product_name

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["productId"] = self.product_id
        body["productName"] = self.product_name
        return body


class NotFound(StoreError):
    status_code = 404
    error = "not_found"


class Conflict(StoreError):
    status_code = 409
    error = "conflict"


class UpstreamFailure(StoreError):
    status_code = 500
    error = "upstream_failure"


class UploadTimeout(UpstreamFailure):
    status_code = 504
    error = "upload_timeout"
