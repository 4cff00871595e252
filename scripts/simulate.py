"""
Checkout Simulation Script

Fires concurrent random carts at a running server, then checks that the store
holds exactly the lines of the accepted carts (rejected carts must leave
nothing behind).
Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from typing import Any

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tapgo.client.api import TapGoClient
from tapgo.core.exceptions import TapGoError, ValidationError

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

FIRST_NAMES = ["Wang", "Li", "Chen", "Lin", "Huang", "Chang", "Liu", "Tsai", "Yang", "Wu"]
MENU_ITEMS = [
    {"name": "Tea", "price": 50},
    {"name": "Milk Tea", "price": 65},
    {"name": "Lemon Soda", "price": 60},
    {"name": "Rice", "price": 80},
    {"name": "Braised Pork Rice", "price": 120},
    {"name": "Beef Noodles", "price": 180},
    {"name": "Fried Tofu", "price": 45},
]


def generate_cart(invalid_rate: float = 0.1) -> dict[str, Any]:
    """Random cart; a share of them is deliberately invalid or over the ceiling."""
    items = []
    for item in random.sample(MENU_ITEMS, random.randint(1, 4)):
        items.append({**item, "quantity": random.randint(1, 3)})

    roll = random.random()
    if roll < invalid_rate / 2:
        items[-1]["quantity"] = 10
    elif roll < invalid_rate:
        items = [{"name": "Beef Noodles", "price": 180, "quantity": 9}]

    return {
        "customerName": random.choice(FIRST_NAMES),
        "tableNumber": random.choice([None, str(random.randint(1, 20))]),
        "items": items,
    }


async def send_cart(api: TapGoClient, order_num: int, invalid_rate: float) -> dict[str, Any]:
    payload = generate_cart(invalid_rate)
    start_time = time.time()

    try:
        response = await api.submit_order(payload)
        return {
            "order_num": order_num,
            "success": True,
            "order_id": response.order_id,
            "total": response.total_amount,
            "lines": response.item_count,
            "time": round(time.time() - start_time, 3),
        }
    except ValidationError as e:
        outcome = "rejected"
        error = e.message
    except TapGoError as e:
        outcome = "failed"
        error = e.message

    return {
        "order_num": order_num,
        "success": False,
        "outcome": outcome,
        "error": error[:100],
        "time": round(time.time() - start_time, 3),
    }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS, invalid_rate: float = 0.1) -> bool:
    print("=" * 70)
    print("🔥 CHECKOUT SIMULATION - CONCURRENT CARTS")
    print("=" * 70)
    print(f"📋 Carts: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with TapGoClient(API_BASE_URL) as api:
        before = await api.get_statistics()

        start_time = time.time()
        results = await asyncio.gather(
            *[send_cart(api, i + 1, invalid_rate) for i in range(num_orders)]
        )
        total_time = round(time.time() - start_time, 2)

        after = await api.get_statistics()

    successful = [r for r in results if r["success"]]
    rejected = [r for r in results if r.get("outcome") == "rejected"]
    failed = [r for r in results if r.get("outcome") == "failed"]

    print(f"\n✅ Accepted: {len(successful)}/{num_orders}")
    print(f"🚫 Rejected (validation): {len(rejected)}/{num_orders}")
    print(f"❌ Failed (server): {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Average Response: {avg_time}s")

    for f in (rejected + failed)[:5]:
        print(f"   Cart #{f['order_num']}: {f['error']}")

    expected_lines = sum(r["lines"] for r in successful)
    expected_revenue = sum(r["total"] for r in successful)
    stored_lines = after.total_orders - before.total_orders
    stored_revenue = after.total_revenue - before.total_revenue

    print("\n" + "=" * 70)
    print("🔍 CONSISTENCY CHECK")
    print("=" * 70)
    print(f"   Lines:   expected {expected_lines}, stored {stored_lines}")
    print(f"   Revenue: expected {expected_revenue}, stored {stored_revenue}")

    consistent = stored_lines == expected_lines and stored_revenue == expected_revenue
    print("✅ Store matches accepted carts" if consistent else "❌ Store does not match accepted carts")
    print("   (other clients writing at the same time will skew these numbers)")
    return consistent


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Checkout Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of carts")
    parser.add_argument("--invalid-rate", type=float, default=0.1, help="Share of invalid carts")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    ok = asyncio.run(run_simulation(args.orders, args.invalid_rate))
    sys.exit(0 if ok else 1)
