"""
Example 02: Coalesced Change Signals

This example demonstrates how a burst of change notifications collapses
into a single refresh, using the in-memory backend.
"""

import asyncio

from order_resolver import BackendConfig, Eq, ResolverConfig, StoreSession, open_backend


async def main():
    config = BackendConfig(
        driver="memory",
        extra={
            "tables": {
                "grocery_orders": {
                    "columns": ["id", "store_id", "status", "created_at", "total"],
                    "rows": [
                        {"id": 1, "store_id": "s1", "status": "pending", "total": 50},
                        {"id": 2, "store_id": "s1", "status": "pending", "total": 70},
                    ],
                },
            }
        },
    )
    backend = await open_backend(config)
    session = StoreSession(backend, config=ResolverConfig(coalesce_window=0.1))
    await session.select_store("s1")

    print("=== Change Signals ===\n")

    # Simulate an upstream change and a burst of notifications
    await backend.update("grocery_orders", {"status": "ready"}, [Eq("id", 1)])
    for _ in range(10):
        session.notify_change()

    await asyncio.sleep(0.3)
    await session.coalescer.drain()

    print(f"Refreshes run: {session.coalescer.runs}")
    for order in session.snapshot.orders:
        print(f"   order {order.id}: {order.status}")

    await session.close()


if __name__ == "__main__":
    asyncio.run(main())
