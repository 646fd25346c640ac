import asyncio
from sdk.marketclient import MarketClient, DEFAULT_BASE_URL


async def simulate_purchase(client, email, product_id, qty):
    try:
        r = await client.checkout_async(email, [(product_id, qty)])
        body = r.json()
        if r.status_code == 200:
            order = body["order"]
            print(f"✅ {email} purchased {qty} units "
                  f"(Order ID: {order['id']}, Total: {order['total_price']})")
        elif r.status_code == 400:
            print(f"❌ {email} order failed: {body.get('message')}")
        elif r.status_code == 404:
            print(f"❌ {email} order failed: product not found.")
        else:
            print(f"⚠️  {email} unexpected response {r.status_code}: {body}")
    except Exception as e:
        print(f"❌ {email} unexpected failure: {e}")


async def main():
    c = MarketClient(base_url=DEFAULT_BASE_URL)
    c.reset()

    product = c.register_product("Organic Mangoes", "fruit", 2, 12.5)["product"]
    product_id = product["id"]
    print(f"\n🥭 Registered product: {product}")

    print("\n⚡ Simulating concurrent checkouts for the last 2 units...")
    await asyncio.gather(
        simulate_purchase(c, "alice@market.io", product_id, 2),
        simulate_purchase(c, "bob@market.io", product_id, 2),
    )

    print("\n📦 Final product state:", c.get_product(product_id))
    print("🧾 Alice orders:", c.list_orders("alice@market.io"))
    print("🧾 Bob orders:", c.list_orders("bob@market.io"))


if __name__ == "__main__":
    asyncio.run(main())
