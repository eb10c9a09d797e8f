"""
Example 01: Basic Query Building

This example demonstrates the fluent query builder against a local SQLite
database: inserts, filtered selects, paging with a total count, updates
with increments, and deletes.
"""

import asyncio
import tempfile
from pathlib import Path

from pool_query import Database, PoolConfig


async def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = PoolConfig(driver="sqlite", database=db_path, max_connections=2)

    async with Database(write=config) as db:
        await db.write("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                logins INTEGER NOT NULL DEFAULT 0
            )
        """)

        print("=== Basic Query Building ===\n")

        # insert: returns the generated id
        for name in ["Alice", "Bob", "Charlie"]:
            user_id = await db.table("users").insert(
                {"name": name, "email": f"{name.lower()}@example.com"}
            )
            print(f"insert -> id {user_id}")
        print()

        # get: where() infers '=', LIKE wraps the value in wildcards
        users = await db.table("users").select("id", "name").where("name", "LIKE", "li").get()
        print(f"LIKE 'li' -> {users}\n")

        # total(): every row of the page carries the unpaged count
        page = await db.table("users").select("name").total().order_by("name").limit(2).get()
        print(f"first page of {page[0]['total']}: {[row['name'] for row in page]}\n")

        # update: literal values and increments in one statement
        result = await db.table("users").where("id", 1).increase("logins").update({"name": "Alicia"})
        print(f"update -> {result}")
        print(f"first() -> {await db.table('users').where('id', 1).first()}\n")

        # delete: a where() condition is required
        result = await db.table("users").where("id", "IN", [2, 3]).delete()
        print(f"delete -> {result.affected_rows} rows")

    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
