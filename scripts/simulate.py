"""
Guest Traffic Simulation Script

Seeds an owner account with a published menu, then fires concurrent
guest traffic (public menu reads + view tracking) to exercise the cache
and analytics paths.
Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8000"
TOTAL_GUESTS = 100
OWNER_PASSWORD = "Simulate123"

USER_AGENTS = [
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/120.0.0.0 Mobile Safari/537.36",
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Mobile Safari/604.1",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0.0.0 Safari/537.36 Edg/120.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0; rv:121.0) Gecko/20100101 Firefox/121.0",
]

SAMPLE_MENU = {
    "ცხელი კერძები": [
        {"nameKa": "ხაჭაპური", "nameEn": "Khachapuri", "price": 14.5},
        {"nameKa": "ხინკალი", "nameEn": "Khinkali", "price": 1.2},
        {"nameKa": "მწვადი", "nameEn": "Mtsvadi", "price": 22.0},
    ],
    "სალათები": [
        {"nameKa": "ქართული სალათი", "nameEn": "Georgian salad", "price": 9.0},
        {"nameKa": "ბადრიჯანი ნიგვზით", "nameEn": "Eggplant with walnuts", "price": 12.0},
    ],
    "სასმელები": [
        {"nameKa": "ლიმონათი", "nameEn": "Lemonade", "price": 4.5},
        {"nameKa": "ყავა", "nameEn": "Coffee", "price": 5.0},
    ],
}


# =============================================================================
# SEEDING
# =============================================================================

async def seed_menu(client: httpx.AsyncClient) -> dict[str, Any]:
    """Register an owner, build a small menu and publish it."""
    suffix = uuid.uuid4().hex[:8]
    email = f"simulate-{suffix}@example.com"

    response = await client.post(
        f"{API_BASE_URL}/api/auth/register",
        json={"name": "Simulation Owner", "email": email, "password": OWNER_PASSWORD},
    )
    response.raise_for_status()

    response = await client.post(
        f"{API_BASE_URL}/api/auth/login",
        json={"email": email, "password": OWNER_PASSWORD},
    )
    response.raise_for_status()
    headers = {"Authorization": f"Bearer {response.json()['data']['accessToken']}"}

    response = await client.post(
        f"{API_BASE_URL}/api/menus",
        json={"name": "Simulation Bistro", "slug": f"sim-{suffix}"},
        headers=headers,
    )
    response.raise_for_status()
    menu = response.json()["data"]

    for category_name, products in SAMPLE_MENU.items():
        response = await client.post(
            f"{API_BASE_URL}/api/menus/{menu['id']}/categories",
            json={"nameKa": category_name},
            headers=headers,
        )
        response.raise_for_status()
        category_id = response.json()["data"]["id"]

        for product in products:
            response = await client.post(
                f"{API_BASE_URL}/api/menus/{menu['id']}/products",
                json={"categoryId": category_id, **product},
                headers=headers,
            )
            response.raise_for_status()

    response = await client.post(
        f"{API_BASE_URL}/api/menus/{menu['id']}/publish",
        json={"publish": True},
        headers=headers,
    )
    response.raise_for_status()

    return {"menu": menu, "headers": headers}


# =============================================================================
# GUEST TRAFFIC
# =============================================================================

async def simulate_guest(
    client: httpx.AsyncClient,
    guest_num: int,
    menu: dict[str, Any],
) -> dict[str, Any]:
    """One guest scans the QR code: read the menu, then record the view."""
    agent = random.choice(USER_AGENTS)
    ip = f"203.0.113.{random.randint(1, 254)}"
    start_time = time.time()

    try:
        response = await client.get(
            f"{API_BASE_URL}/api/menus/public/{menu['slug']}",
            headers={"User-Agent": agent},
            timeout=30.0,
        )
        read_time = round(time.time() - start_time, 3)
        if response.status_code != 200:
            return {
                "guest_num": guest_num,
                "success": False,
                "error": response.text[:100],
                "time": read_time,
            }

        response = await client.post(
            f"{API_BASE_URL}/api/menus/{menu['id']}/views",
            headers={"User-Agent": agent, "X-Forwarded-For": ip},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)
        return {
            "guest_num": guest_num,
            "success": response.status_code == 201,
            "error": None if response.status_code == 201 else response.text[:100],
            "read_time": read_time,
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "guest_num": guest_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(num_guests: int = TOTAL_GUESTS, burst: bool = True) -> dict[str, Any]:
    """
    Seed a menu and send ``num_guests`` concurrent guests at it.

    Args:
        num_guests: Number of simulated guests
        burst: Fire every guest at once instead of in waves of 10
    """
    print("=" * 70)
    print("🍽️  GUEST TRAFFIC SIMULATION")
    print("=" * 70)
    print(f"👥 Guests: {num_guests}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"🔧 Mode: {'burst' if burst else 'waves'}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n🌱 Seeding menu...")
        seeded = await seed_menu(client)
        menu = seeded["menu"]
        print(f"   ✅ Published /m/{menu['slug']} ({menu['id']})")

        print("\n🚀 Sending guests...\n")
        start_time = time.time()
        results = []
        if burst:
            tasks = [simulate_guest(client, i + 1, menu) for i in range(num_guests)]
            results = await asyncio.gather(*tasks)
        else:
            for wave_start in range(0, num_guests, 10):
                wave = range(wave_start, min(wave_start + 10, num_guests))
                results.extend(await asyncio.gather(*[simulate_guest(client, i + 1, menu) for i in wave]))
        total_time = round(time.time() - start_time, 2)

        response = await client.get(
            f"{API_BASE_URL}/api/menus/{menu['id']}/analytics",
            params={"period": "7d"},
            headers=seeded["headers"],
        )
        analytics = response.json().get("data", {}) if response.status_code == 200 else {}

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Guests: {len(successful)}/{num_guests}")
    print(f"❌ Failed Guests: {len(failed)}/{num_guests}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        reads = sorted(r["read_time"] for r in successful)
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print("\n📈 Performance Metrics:")
        print(f"   Average Guest Round Trip: {avg_time}s")
        print(f"   Fastest Menu Read: {reads[0]}s")
        print(f"   Median Menu Read: {reads[len(reads) // 2]}s")
        print(f"   Slowest Menu Read: {reads[-1]}s")

    if analytics:
        overview = analytics.get("overview", {})
        print("\n🔍 Analytics Snapshot:")
        print(f"   Views Today: {overview.get('viewsToday')}")
        for share in analytics.get("deviceBreakdown", []):
            print(f"   📱 {share['device']}: {share['count']} ({share['percentage']}%)")
        for share in analytics.get("browserBreakdown", []):
            print(f"   🌐 {share['browser']}: {share['count']} ({share['percentage']}%)")

    if failed:
        print("\n⚠️  Failed Guest Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Guest #{f['guest_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)

    return {
        "total": num_guests,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight_checks() -> bool:
    """Check the API is up before sending traffic."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        try:
            response = await client.get(f"{API_BASE_URL}/api/health")
        except httpx.HTTPError as e:
            print(f"   ❌ API unreachable: {e}")
            return False

        data = response.json()
        print(f"   Status: {data.get('status')}")
        for name, state in data.get("checks", {}).get("services", {}).items():
            print(f"   {name}: {state}")
        if data.get("status") == "unhealthy":
            print("   ❌ Database is not reachable")
            return False

        print("\n2️⃣ Unknown slug returns 404...")
        response = await client.get(f"{API_BASE_URL}/api/menus/public/no-such-menu-{uuid.uuid4().hex[:6]}")
        if response.status_code != 404:
            print(f"   ❌ Expected 404, got {response.status_code}")
            return False
        print("   ✅ OK")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Guest Traffic Simulation Script")
    parser.add_argument("--guests", type=int, default=TOTAL_GUESTS, help="Number of guests")
    parser.add_argument("--waves", action="store_true", help="Send guests in waves of 10")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_checks:
        if not asyncio.run(preflight_checks()):
            print("\n❌ Pre-flight checks failed. Fix issues before running simulation.")
            sys.exit(1)
        print("\n✅ Pre-flight checks passed!")

    asyncio.run(run_simulation(args.guests, burst=not args.waves))
