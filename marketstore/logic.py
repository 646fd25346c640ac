import logging
import math
import uuid
from decimal import Decimal
from typing import Optional, Dict, Any, List, Tuple

from . import config, images
from .core import ROLES, PROFILE_ATTRIBUTES, VOTE_DIRECTIONS
from .database import (
    PRODUCTS, USERS, COMMENTS, ORDERS, BLOGS,
    IDEMPOTENCY, _get_lock, acquire_all, release_all, clear_all
)
from .errors import (
    ValidationError, MissingField, InvalidRole, EmptyCart, MissingSearchTerm,
    InsufficientStock, NotFound, Conflict
)
from .models import Product, User, CommentEntry, CommentThread, OrderLine, Order, BlogPost, utcnow

# This file contains the core logic for all API endpoints.

log = logging.getLogger(__name__)


# Helpers
def _new_id() -> str:
    return uuid.uuid4().hex


def _required(value: Any, field: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingField(field)
    return value.strip() if isinstance(value, str) else value


def _coerce_positive(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 1 else default


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _available_only(override: Optional[bool]) -> bool:
    return config.LISTING_AVAILABLE_ONLY if override is None else override


def _paginate(products: List[Dict[str, Any]], page: Any, limit: Any) -> Dict[str, Any]:
    page = _coerce_positive(page, config.DEFAULT_PAGE)
    limit = min(_coerce_positive(limit, config.DEFAULT_PAGE_SIZE), config.MAX_PAGE_SIZE)
    total = len(products)
    skip = (page - 1) * limit
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit),
        "products": [dict(p) for p in products[skip:skip + limit]],
    }


# Product endpoints
async def create_product_logic(
    name: Optional[str],
    category: Optional[str],
    quantity: Optional[int],
    price: Optional[float],
    description: Optional[str] = None,
    image: Optional[Tuple[str, bytes, Optional[str]]] = None,
):
    name = _required(name, "productName")
    category = _required(category, "productCategory")
    quantity = _required(quantity, "productQuantity")
    price = _required(price, "productPrice")
    if quantity < 0:
        raise ValidationError("quantity must be >= 0", field="productQuantity")
    if not math.isfinite(price) or price < 0:
        raise ValidationError("price must be a finite number >= 0", field="productPrice")

    # the upload finishes (or fails) before anything is written
    image_url = None
    if image is not None:
        filename, content, content_type = image
        image_url = await images.upload_image(filename, content, content_type)

    pid = _new_id()
    product = Product(
        id=pid, name=name, category=category, quantity=quantity, price=price,
        image=image_url, description=description or None,
    )
    PRODUCTS[pid] = product.model_dump()
    log.info("product %s created: %s (%s) qty=%s price=%s", pid, name, category, quantity, price)
    return {"message": "Product added!", "product": dict(PRODUCTS[pid])}


async def list_products_logic(page: Any = None, limit: Any = None, available_only: Optional[bool] = None):
    only = _available_only(available_only)
    products = [p for p in PRODUCTS.values() if not only or p["quantity"] > 0]
    return _paginate(products, page, limit)


async def search_products_logic(name: Optional[str], page: Any = None, limit: Any = None,
                                available_only: Optional[bool] = None):
    if name is None or not name.strip():
        raise MissingSearchTerm()
    term = name.strip().lower()
    only = _available_only(available_only)
    results = []
    for p in PRODUCTS.values():
        if only and p["quantity"] <= 0:
            continue
        if term in p["name"].lower() or term in p["category"].lower():
            results.append(p)
    return _paginate(results, page, limit)


async def get_product_logic(product_id: str):
    p = PRODUCTS.get(product_id)
    if not p:
        raise NotFound(f"Product {product_id} not found", field="productId")
    return dict(p)


async def duplicate_products_logic(times: Any = 2):
    try:
        times = int(times)
    except (TypeError, ValueError):
        raise ValidationError("times must be an integer >= 1", field="times")
    if times < 1:
        raise ValidationError("times must be an integer >= 1", field="times")

    originals = list(PRODUCTS.values())
    inserted = 0
    for _ in range(times):
        for p in originals:
            pid = _new_id()
            now = utcnow()
            PRODUCTS[pid] = {**p, "id": pid, "created_at": now, "updated_at": now}
            inserted += 1
    log.info("duplicated %s products %s times (%s new records)", len(originals), times, inserted)
    return {"inserted": inserted, "total": len(PRODUCTS)}


# Comment endpoints
def _thread_view(product_id: str, thread: Optional[Dict[str, Any]], limit: Optional[int] = None):
    if thread is None:
        return {"product_id": product_id, "comments": []}
    # newest first; ties keep the later append first
    ordered = [c for _, c in sorted(
        enumerate(thread["comments"]), key=lambda ic: (ic[1]["date"], ic[0]), reverse=True
    )]
    if limit is not None:
        ordered = ordered[:limit]
    return {**thread, "comments": [dict(c) for c in ordered]}


async def add_comment_logic(product_id: Optional[str], user: Optional[str], comment: Optional[str]):
    product_id = _required(product_id, "productId")
    user = _required(user, "user")
    comment = _required(comment, "comment")

    entry = CommentEntry(user=user, comment=comment).model_dump()
    thread = COMMENTS.get(product_id)
    if thread is None:
        thread = CommentThread(id=_new_id(), product_id=product_id).model_dump()
        COMMENTS[product_id] = thread
    thread["comments"].append(entry)
    thread["updated_at"] = entry["date"]
    log.debug("comment added to product %s by %s", product_id, user)
    return _thread_view(product_id, thread)


async def get_comments_logic(product_id: str, limit: Any = None):
    limit = _coerce_positive(limit, config.DEFAULT_COMMENT_LIMIT)
    return _thread_view(product_id, COMMENTS.get(product_id), limit)


# Checkout (atomic multi-sku)
def _remember(idem_key: str, fingerprint, result: Dict[str, Any]):
    IDEMPOTENCY[idem_key] = {"cart": fingerprint, "response": result}
    while len(IDEMPOTENCY) > config.IDEMPOTENCY_MAX_KEYS:
        IDEMPOTENCY.pop(next(iter(IDEMPOTENCY)))


def _replay(idem_key: str, fingerprint) -> Optional[Dict[str, Any]]:
    prev = IDEMPOTENCY.get(idem_key)
    if prev is None:
        return None
    if prev["cart"] != fingerprint:
        raise Conflict("Idempotency-Key was already used for a different cart", field="Idempotency-Key")
    return prev["response"]


async def place_order_logic(user_email: Optional[str], cart_lines: List[Tuple[Optional[str], Optional[int]]],
                            idempotency_key: Optional[str] = None):
    email = _normalize_email(_required(user_email, "userEmail"))
    if not cart_lines:
        raise EmptyCart()

    wanted: Dict[str, int] = {}
    for pid, qty in cart_lines:
        pid = _required(pid, "productId")
        if qty is None or qty <= 0:
            raise ValidationError(f"quantity for product {pid} must be > 0", field="quantity")
        wanted[pid] = wanted.get(pid, 0) + qty

    # replays are scoped to the buyer and must carry the same cart
    idem_key = f"{email}:{idempotency_key}" if idempotency_key else None
    fingerprint = sorted(wanted.items())
    if idem_key:
        prev = _replay(idem_key, fingerprint)
        if prev is not None:
            return prev

    keys = [f"product:{pid}" for pid in wanted]
    if idem_key:
        keys.append(f"idempotency:{idem_key}")
    locks = await acquire_all(keys)

    try:
        if idem_key:
            prev = _replay(idem_key, fingerprint)
            if prev is not None:
                return prev

        # validate every line before touching stock
        total = Decimal(0)
        items = []
        for pid, qty in wanted.items():
            prod = PRODUCTS.get(pid)
            if not prod:
                raise NotFound(f"Product {pid} not found", field="productId")
            if prod["quantity"] < qty:
                raise InsufficientStock(pid, prod["name"], qty, prod["quantity"])
            unit = Decimal(str(prod["price"]))
            total += unit * qty
            items.append(OrderLine(product_id=pid, name=prod["name"], quantity=qty,
                                   price=unit, line_total=unit * qty))

        # Commit
        now = utcnow()
        for pid, qty in wanted.items():
            PRODUCTS[pid]["quantity"] -= qty
            PRODUCTS[pid]["updated_at"] = now

        order_id = _new_id()
        order = Order(id=order_id, email=email, items=items, total_price=total, created_at=now)
        ORDERS[order_id] = order.model_dump()

        result = {"message": "Order placed successfully", "order": ORDERS[order_id]}
        if idem_key:
            _remember(idem_key, fingerprint, result)
        log.info("order %s placed by %s: %s lines, total=%s", order_id, email, len(items), order.total_price)
        return result
    finally:
        release_all(locks)


# Orders
async def list_orders_logic(user_email: str):
    email = _normalize_email(user_email)
    return [o for o in reversed(list(ORDERS.values())) if o["email"] == email]


# User endpoints
async def verify_user_logic(email: Optional[str]):
    email = _normalize_email(_required(email, "email"))
    user = USERS.get(email)
    if user is None:
        return {"exists": False}
    return {"exists": True, "user": dict(user)}


async def create_user_logic(name: Optional[str], email: Optional[str], role: Optional[str], **profile):
    name = _required(name, "name")
    email = _normalize_email(_required(email, "email"))
    role = _required(role, "role").lower()
    if "@" not in email:
        raise ValidationError(f"'{email}' is not a valid email address", field="email")
    if role not in ROLES:
        raise InvalidRole(role, ROLES)
    for attr in profile:
        if attr not in PROFILE_ATTRIBUTES:
            raise ValidationError(f"unknown profile attribute '{attr}'", field=attr)

    lock = _get_lock(f"user:{email}")
    await lock.acquire()
    try:
        if email in USERS:
            raise Conflict(f"User with email {email} already exists", field="email")
        user = User(id=_new_id(), name=name, email=email, role=role,
                    **{k: v for k, v in profile.items() if v is not None})
        USERS[email] = user.model_dump()
        log.info("user %s created with role %s", email, role)
        return dict(USERS[email])
    finally:
        lock.release()


async def get_user_logic(email: str):
    user = USERS.get(_normalize_email(email))
    if not user:
        raise NotFound(f"User {email} not found", field="email")
    return dict(user)


# Blog endpoints
def _blog_view(post: Dict[str, Any], voter_id: Optional[str] = None) -> Dict[str, Any]:
    out = {k: v for k, v in post.items() if k != "votes"}
    if voter_id is not None:
        out["user_vote"] = post["votes"].get(voter_id)
    return out


async def create_blog_logic(title: Optional[str], author: Optional[str],
                            full_desc: Optional[str], thumbnail: Optional[str]):
    post = BlogPost(
        id=_new_id(),
        title=_required(title, "title"),
        author=_required(author, "author"),
        full_desc=_required(full_desc, "fullDesc"),
        thumbnail=_required(thumbnail, "thumbnail"),
    )
    BLOGS[post.id] = post.model_dump()
    log.info("blog post %s created by %s", post.id, post.author)
    return _blog_view(BLOGS[post.id])


async def list_blogs_logic(limit: Any = None):
    posts = [_blog_view(p) for p in reversed(list(BLOGS.values()))]
    if limit is not None:
        posts = posts[:_coerce_positive(limit, len(posts) or 1)]
    return posts


async def vote_logic(post_id: str, direction: str, voter_id: Optional[str]):
    if direction not in VOTE_DIRECTIONS:
        raise ValidationError(f"vote must be one of: {', '.join(VOTE_DIRECTIONS)}", field="direction")
    voter = (voter_id or "").strip() or "anonymous"
    post = BLOGS.get(post_id)
    if not post:
        raise NotFound(f"Blog post {post_id} not found", field="postId")

    counter = {"like": "likes", "dislike": "dislikes"}
    lock = _get_lock(f"blog:{post_id}")
    await lock.acquire()
    try:
        votes = post["votes"]
        previous = votes.get(voter)
        if previous == direction:
            # same vote again toggles it off
            del votes[voter]
            post[counter[direction]] = max(0, post[counter[direction]] - 1)
        else:
            if previous is not None:
                post[counter[previous]] = max(0, post[counter[previous]] - 1)
            votes[voter] = direction
            post[counter[direction]] += 1
        post["updated_at"] = utcnow()
        log.info("vote on blog %s by %s: %s -> %s", post_id, voter, previous, votes.get(voter))
        return _blog_view(post, voter)
    finally:
        lock.release()


# Utility: reset (for tests/demo)
async def reset_all_logic():
    clear_all()
    return {"status": "reset"}
