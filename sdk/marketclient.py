# sdk/marketclient.py
import os
import uuid
import httpx
import requests
from typing import Optional, List, Dict, Any, Tuple

DEFAULT_BASE_URL = os.getenv("MARKET_API_URL", "http://127.0.0.1:8085")


class MarketClient:
    """
    Thin wrapper over the market-store HTTP API.

    ``session`` may be any requests-compatible session (a FastAPI TestClient
    works too); a fresh ``requests.Session`` is used otherwise.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, api_key: Optional[str] = None,
                 timeout: int = 10, session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def reset(self):
        return self.session.post(self._url("/reset"), timeout=self.timeout).json()

    def _make_idempotency_key(self, provided: Optional[str]) -> str:
        return provided if provided else uuid.uuid4().hex

    # Products
    def register_product(self, name: str, category: str, quantity: int, price: float,
                         description: Optional[str] = None, image_path: Optional[str] = None):
        data = {"productName": name, "productCategory": category,
                "productQuantity": str(quantity), "productPrice": str(price)}
        if description:
            data["productDescription"] = description
        if image_path:
            with open(image_path, "rb") as fh:
                files = {"productImg": (os.path.basename(image_path), fh.read())}
            r = self.session.post(self._url("/upload/products"), data=data, files=files, timeout=self.timeout)
        else:
            r = self.session.post(self._url("/upload/products"), data=data, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def list_products(self, page: int = 1, limit: int = 10):
        r = self.session.get(self._url("/get/products"), params={"page": page, "limit": limit}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def search_products(self, name: str, page: int = 1, limit: int = 10):
        r = self.session.get(self._url("/product_search"), params={"name": name, "page": page, "limit": limit},
                             timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_product(self, product_id: str):
        r = self.session.get(self._url(f"/get/product/{product_id}"), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def duplicate_products(self, times: int = 2):
        r = self.session.post(self._url("/admin/duplicate_products"), params={"times": times}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Comments
    def add_comment(self, product_id: str, user: str, comment: str):
        r = self.session.post(self._url("/comments"), json={"productId": product_id, "user": user, "comment": comment},
                              timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_comments(self, product_id: str, limit: int = 5):
        r = self.session.get(self._url(f"/comments/{product_id}"), params={"limit": limit}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Checkout / orders
    @staticmethod
    def _checkout_body(user_email: str, cart: List[Tuple[str, int]]) -> Dict[str, Any]:
        return {
            "userEmail": user_email,
            "cartItems": [{"productId": pid, "quantity": qty} for pid, qty in cart],
        }

    def checkout(self, user_email: str, cart: List[Tuple[str, int]], idempotency_key: Optional[str] = None):
        headers = {"Idempotency-Key": self._make_idempotency_key(idempotency_key)}
        r = self.session.post(self._url("/checkout"), json=self._checkout_body(user_email, cart),
                              headers=headers, timeout=self.timeout)
        # do not raise_for_status() - callers inspect 400/404 bodies
        return r

    async def checkout_async(self, user_email: str, cart: List[Tuple[str, int]],
                             idempotency_key: Optional[str] = None):
        headers = {"Idempotency-Key": self._make_idempotency_key(idempotency_key)}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(self._url("/checkout"), json=self._checkout_body(user_email, cart), headers=headers)
            return r

    def list_orders(self, user_email: str):
        r = self.session.get(self._url(f"/orders/{user_email}"), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Users
    def verify_user(self, email: str):
        r = self.session.post(self._url("/user_verification"), json={"email": email}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def create_user(self, name: str, email: str, role: str, **profile):
        r = self.session.post(self._url("/create_user"), json={"name": name, "email": email, "role": role, **profile},
                              timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_user(self, email: str):
        r = self.session.get(self._url(f"/api/user/{email}"), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Blogs
    def create_blog(self, title: str, author: str, full_desc: str, thumbnail: str):
        r = self.session.post(self._url("/api/blogs"), json={
            "title": title, "author": author, "fullDesc": full_desc, "thumbnail": thumbnail
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def list_blogs(self, limit: Optional[int] = None):
        params = {"limit": limit} if limit else {}
        r = self.session.get(self._url("/api/blogs"), params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def vote(self, post_id: str, direction: str, voter_id: Optional[str] = None):
        headers = {"X-Voter-Id": voter_id} if voter_id else {}
        r = self.session.post(self._url(f"/api/blogs/{post_id}/vote/{direction}"), headers=headers,
                              timeout=self.timeout)
        r.raise_for_status()
        return r.json()


if __name__ == "__main__":
    import argparse
    from rich import print

    parser = argparse.ArgumentParser(description="market-store client")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="API base URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---------------------------
    # Product commands
    # ---------------------------
    lp = subparsers.add_parser("list-products", help="List products page by page")
    lp.add_argument("--page", type=int, default=1)
    lp.add_argument("--limit", type=int, default=10)

    sp = subparsers.add_parser("search", help="Search products by name or category")
    sp.add_argument("--name", required=True, help="Search term")
    sp.add_argument("--page", type=int, default=1)

    gp = subparsers.add_parser("get-product", help="Get a product by its ID")
    gp.add_argument("--product-id", required=True)

    rp = subparsers.add_parser("register-product", help="Register a new product")
    rp.add_argument("--name", required=True)
    rp.add_argument("--category", required=True)
    rp.add_argument("--quantity", type=int, required=True)
    rp.add_argument("--price", type=float, required=True)
    rp.add_argument("--description")
    rp.add_argument("--image", help="Path to an image file")

    dp = subparsers.add_parser("duplicate-products", help="Copy every product N times")
    dp.add_argument("--times", type=int, default=2)

    # ---------------------------
    # Comments
    # ---------------------------
    ac = subparsers.add_parser("add-comment")
    ac.add_argument("--product-id", required=True)
    ac.add_argument("--user", required=True)
    ac.add_argument("--comment", required=True)

    gc = subparsers.add_parser("comments")
    gc.add_argument("--product-id", required=True)
    gc.add_argument("--limit", type=int, default=5)

    # ---------------------------
    # Orders
    # ---------------------------
    co = subparsers.add_parser("checkout", help="Place an order")
    co.add_argument("--email", required=True)
    co.add_argument("--item", action="append", required=True, metavar="PRODUCT_ID:QTY")

    lo = subparsers.add_parser("list-orders")
    lo.add_argument("--email", required=True)

    # ---------------------------
    # Users
    # ---------------------------
    vu = subparsers.add_parser("verify-user")
    vu.add_argument("--email", required=True)

    cu = subparsers.add_parser("create-user")
    cu.add_argument("--name", required=True)
    cu.add_argument("--email", required=True)
    cu.add_argument("--role", required=True, choices=["producer", "official", "buyer", "administrator"])
    cu.add_argument("--region")

    # ---------------------------
    # Blogs
    # ---------------------------
    lb = subparsers.add_parser("list-blogs")
    lb.add_argument("--limit", type=int)

    vb = subparsers.add_parser("vote")
    vb.add_argument("--post-id", required=True)
    vb.add_argument("--direction", required=True, choices=["like", "dislike"])
    vb.add_argument("--voter")

    args = parser.parse_args()
    c = MarketClient(base_url=args.base_url)

    if args.command == "list-products":
        print(c.list_products(args.page, args.limit))
    elif args.command == "search":
        print(c.search_products(args.name, args.page))
    elif args.command == "get-product":
        print(c.get_product(args.product_id))
    elif args.command == "register-product":
        print(c.register_product(args.name, args.category, args.quantity, args.price,
                                 args.description, args.image))
    elif args.command == "duplicate-products":
        print(c.duplicate_products(args.times))
    elif args.command == "add-comment":
        print(c.add_comment(args.product_id, args.user, args.comment))
    elif args.command == "comments":
        print(c.get_comments(args.product_id, args.limit))
    elif args.command == "checkout":
        cart = []
        for item in args.item:
            pid, _, qty = item.partition(":")
            cart.append((pid, int(qty or 1)))
        print(c.checkout(args.email, cart).json())
    elif args.command == "list-orders":
        print(c.list_orders(args.email))
    elif args.command == "verify-user":
        print(c.verify_user(args.email))
    elif args.command == "create-user":
        profile = {"region": args.region} if args.region else {}
        print(c.create_user(args.name, args.email, args.role, **profile))
    elif args.command == "list-blogs":
        print(c.list_blogs(args.limit))
    elif args.command == "vote":
        print(c.vote(args.post_id, args.direction, args.voter))
