#!/usr/bin/env python
from sdk.marketclient import MarketClient, DEFAULT_BASE_URL


def main():
    c = MarketClient(base_url=DEFAULT_BASE_URL)

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    c.reset()

    # -----------------------------
    # Register products
    # -----------------------------
    print("\nRegistering products...")
    tomatoes = c.register_product("Tomatoes", "vegetables", 5, 10.0, "Vine ripened")["product"]
    rice = c.register_product("Basmati Rice", "grains", 20, 4.5)["product"]
    print(tomatoes)
    print(rice)

    print("\nListing products (page 1, 10 per page)...")
    print(c.list_products())

    print("\nSearching for 'grain'...")
    print(c.search_products("grain"))

    # -----------------------------
    # Users
    # -----------------------------
    email = "asha@farmers.coop"
    print(f"\nCreating user {email}...")
    print(c.create_user("Asha", email, "buyer", region="Kerala"))
    print(c.verify_user(email.upper()))

    # -----------------------------
    # Comments
    # -----------------------------
    print("\nCommenting on tomatoes...")
    c.add_comment(tomatoes["id"], "Asha", "Very fresh!")
    c.add_comment(tomatoes["id"], "Ravi", "Arrived quickly")
    print(c.get_comments(tomatoes["id"]))

    # -----------------------------
    # Checkout
    # -----------------------------
    print("\nChecking out 2 tomatoes + 3 rice...")
    r = c.checkout(email, [(tomatoes["id"], 2), (rice["id"], 3)])
    print(r.status_code, r.json())

    print("\nTrying to buy 10 tomatoes (only 3 left)...")
    r = c.checkout(email, [(tomatoes["id"], 10)])
    print(r.status_code, r.json())
    print("Tomato stock:", c.get_product(tomatoes["id"])["quantity"])

    print("\nOrders:")
    print(c.list_orders(email))

    # -----------------------------
    # Blog voting
    # -----------------------------
    post = c.create_blog("Monsoon sowing tips", "Ravi", "Sow after the first heavy rain.", "https://img.example/monsoon.jpg")
    print("\nVoting...")
    print(c.vote(post["id"], "like", voter_id="asha"))
    print(c.vote(post["id"], "like", voter_id="ravi"))
    print(c.vote(post["id"], "dislike", voter_id="asha"))
    print(c.list_blogs())


if __name__ == "__main__":
    main()
