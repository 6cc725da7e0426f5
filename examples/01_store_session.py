"""
Example 01: Store Session over SQLite

This example demonstrates binding discovery, order aggregation, the customer
index and a status update against a store whose tables use alternate names.
"""

import asyncio
import logging
import sqlite3
import tempfile
from pathlib import Path

from order_resolver import BackendConfig, StoreSession, open_backend
from order_resolver.mapping import filter_orders, status_counts, weekly_buckets


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE orders_grocery (
            id INTEGER PRIMARY KEY,
            order_id TEXT,
            grocery_store_id TEXT,
            status TEXT,
            created_at TEXT,
            total REAL,
            customer_phone TEXT,
            customer_name TEXT,
            delivery_address TEXT
        )
    """)
    conn.execute("""
        CREATE TABLE grocery_order_items (
            id INTEGER PRIMARY KEY,
            order_id INTEGER,
            grocery_item_id INTEGER,
            qty INTEGER
        )
    """)
    conn.execute("CREATE TABLE grocery_items (id INTEGER PRIMARY KEY, name TEXT)")
    conn.executemany(
        "INSERT INTO orders_grocery VALUES (?, ?, 'store-1', ?, ?, ?, ?, ?, ?)",
        [
            (1, "GR-1001", "delivered", "2026-10-14T09:30:00Z", 240.0, "9990001111", "Asha", "12 MG Road"),
            (2, "GR-1002", "pending", "2026-10-15T18:05:00Z", 95.5, "9990001111", "", "12 MG Road"),
            (3, "GR-1003", "cancelled", "2026-10-16T11:00:00Z", 60.0, "8880002222", "Ravi", "4 Lake View"),
        ],
    )
    conn.executemany(
        "INSERT INTO grocery_order_items (order_id, grocery_item_id, qty) VALUES (?, ?, ?)",
        [(1, 501, 2), (1, 502, 1), (2, 503, 6)],
    )
    conn.executemany(
        "INSERT INTO grocery_items VALUES (?, ?)",
        [(501, "Milk 1L"), (502, "Brown Bread"), (503, "Eggs")],
    )
    conn.commit()
    conn.close()

    backend = await open_backend(BackendConfig(driver="sqlite", database=db_path))
    session = StoreSession(backend)

    print("=== Store Session ===\n")

    # Resolve bindings and load the store
    print("1. Select store:")
    snapshot = await session.select_store("store-1")
    print(f"   Orders table: {snapshot.orders_binding.table}")
    print(f"   Items table:  {snapshot.items_binding.table}\n")

    # Orders with their line items
    print("2. Orders:")
    for order in snapshot.orders:
        items = ", ".join(f"{i.quantity:g} x {i.display_name}" for i in order.items) or "-"
        print(f"   {order.external_order_number} [{order.status}] {order.total_amount:.2f}: {items}")
    print()

    # Customer index
    print("3. Customers:")
    for customer in snapshot.customers:
        print(
            f"   {customer.label}: {customer.orders_count} orders, "
            f"revenue {customer.revenue_total:.2f}, rejected {customer.rejected_count}"
        )
    print()

    # Status update through the discovered binding
    print("4. Update status:")
    result = await session.set_status("GR-1002", "preparing")
    print(f"   ok={result.ok} matched on {result.matched_column}")
    print(f"   Counts: {status_counts(session.snapshot.orders)}\n")

    # Dashboard helpers
    print("5. Search and weekly chart:")
    print(f"   'mg road' -> {[o.external_order_number for o in filter_orders(session.snapshot.orders, search='mg road')]}")
    for bucket in weekly_buckets(session.snapshot.orders):
        print(f"   {bucket.day}: {bucket.orders} orders, {bucket.revenue:.2f}")

    # Clean up
    await session.close()
    await backend.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    asyncio.run(main())
