"""
Example 02: Read/Write Pools

This example shows how a Database routes statements between a write
(primary) pool and a read (replica) pool, and how to load both from
POOL_QUERY_* environment variables:

    POOL_QUERY_WRITE__HOST=db-primary
    POOL_QUERY_WRITE__DATABASE=shop
    POOL_QUERY_WRITE__USER=app
    POOL_QUERY_WRITE__PASSWORD=secret
    POOL_QUERY_READ__HOST=db-replica
    POOL_QUERY_READ__DATABASE=shop
    POOL_QUERY_READ__MAX_CONNECTIONS=20
"""

import asyncio

from pool_query import Database, configure_logging


async def main():
    configure_logging(level="info")

    # Reads go to the replica, writes to the primary
    async with Database.from_settings() as db:
        products = await (
            db.table("products p")
            .select("p.id", "p.name", "c.name AS category")
            .left_join("categories c", "c.id", "p.category_id")
            .where("p.price", "<", 50)
            .where("p.status", "IN", ["active", "promo"])
            .order_by("p.price")
            .limit(20)
            .total()
            .get()
        )
        print(f"{len(products)} products")

        # Upsert: insert, or bump the counter on duplicate key
        await db.table("product_views").increase("views").upsert(
            {"product_id": 7, "views": 1, "last_seen": "NOW()"},
            {"last_seen": "NOW()"},
        )

        # An explicit 'write' hint reads from the primary (read-your-writes)
        fresh = await db.table("product_views", "write").where("product_id", 7).first()
        print(f"views: {fresh}")

        # Raw statements use the same '?' placeholders
        rows = await db.read("SELECT COUNT(*) AS n FROM orders WHERE created_at > ?", "2024-01-01")
        print(f"orders: {rows[0]['n']}")


if __name__ == "__main__":
    asyncio.run(main())
