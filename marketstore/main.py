# marketstore/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Header, Request, UploadFile, File, Form
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .core import CheckoutIn, CommentIn, VerifyUserIn, UserCreateIn, BlogIn
from .errors import StoreError
from .logic import (
    create_product_logic, list_products_logic, search_products_logic, get_product_logic,
    duplicate_products_logic, add_comment_logic, get_comments_logic, place_order_logic,
    list_orders_logic, verify_user_logic, create_user_logic, get_user_logic,
    create_blog_logic, list_blogs_logic, vote_logic, reset_all_logic
)

config.setup_logging()
log = logging.getLogger(__name__)

app = FastAPI(title="market-store")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------
# Error rendering
# ---------------------------
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    log.log(level, "%s %s -> %s %s: %s", request.method, request.url.path,
            exc.status_code, exc.error, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path", "header")]
    field = ".".join(loc) or None
    message = f"{field}: {first.get('msg', 'invalid input')}" if field else first.get("msg", "invalid input")
    log.warning("%s %s -> 400 validation_error: %s", request.method, request.url.path, message)
    body = {"error": "validation_error", "message": message}
    if field:
        body["field"] = field
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("%s %s -> 500 unhandled %s", request.method, request.url.path, type(exc).__name__)
    return JSONResponse(status_code=500, content={
        "error": "upstream_failure",
        "message": f"Internal server error: {type(exc).__name__}",
    })


@app.get("/")
async def root():
    return {"message": "API is running..."}


# ---------------------------
# Product endpoints
# ---------------------------
@app.post("/upload/products", status_code=201)
async def upload_product(
    name: Optional[str] = Form(None, alias="productName"),
    category: Optional[str] = Form(None, alias="productCategory"),
    quantity: Optional[int] = Form(None, alias="productQuantity"),
    price: Optional[float] = Form(None, alias="productPrice"),
    description: Optional[str] = Form(None, alias="productDescription"),
    image: Optional[UploadFile] = File(None, alias="productImg"),
):
    upload = None
    if image is not None and image.filename:
        upload = (image.filename, await image.read(), image.content_type)
    return await create_product_logic(name, category, quantity, price, description, upload)


@app.get("/get/products")
async def list_products(page: Optional[str] = None, limit: Optional[str] = None):
    return await list_products_logic(page, limit)


@app.get("/product_search")
async def search_products(name: Optional[str] = None, page: Optional[str] = None, limit: Optional[str] = None):
    return await search_products_logic(name, page, limit)


@app.get("/get/product/{product_id}")
async def get_product(product_id: str):
    return await get_product_logic(product_id)


@app.post("/admin/duplicate_products", status_code=201)
async def duplicate_products(times: int = 2):
    return await duplicate_products_logic(times)


# ---------------------------
# Comment endpoints
# ---------------------------
@app.post("/comments", status_code=201)
async def add_comment(payload: CommentIn):
    return await add_comment_logic(payload.product_id, payload.user, payload.comment)


@app.get("/comments/{product_id}")
async def get_comments(product_id: str, limit: Optional[str] = None):
    return await get_comments_logic(product_id, limit)


# ---------------------------
# Checkout + orders
# ---------------------------
@app.post("/checkout")
async def checkout(payload: CheckoutIn, idempotency_key: Optional[str] = Header(None)):
    lines = [(line.product_id, line.quantity) for line in payload.cart_items]
    return await place_order_logic(payload.user_email, lines, idempotency_key)


@app.get("/orders/{user_email}")
async def list_orders(user_email: str):
    return await list_orders_logic(user_email)


# ---------------------------
# User endpoints
# ---------------------------
@app.post("/user_verification")
async def user_verification(payload: VerifyUserIn):
    return await verify_user_logic(payload.email)


@app.post("/create_user", status_code=201)
async def create_user(payload: UserCreateIn):
    return await create_user_logic(payload.name, payload.email, payload.role, **payload.profile())


@app.get("/api/user/{email}")
async def get_user(email: str):
    return await get_user_logic(email)


# ---------------------------
# Blog endpoints
# ---------------------------
@app.post("/api/blogs", status_code=201)
async def create_blog(payload: BlogIn):
    return await create_blog_logic(payload.title, payload.author, payload.full_desc, payload.thumbnail)


@app.get("/api/blogs")
async def list_blogs(limit: Optional[str] = None):
    return await list_blogs_logic(limit)


@app.post("/api/blogs/{post_id}/vote/{direction}")
async def vote(post_id: str, direction: str, request: Request, x_voter_id: Optional[str] = Header(None)):
    voter = x_voter_id or (request.client.host if request.client else None)
    return await vote_logic(post_id, direction, voter)


# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/reset")
async def reset_all():
    return await reset_all_logic()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
