#!/usr/bin/env python
"""Walk a player through plant -> wait -> harvest against a running backend.

Sends the same HTTP requests the game client would, so the planting queue,
the consumer and the maturity scanner can be watched end to end.

Usage:
    # Plant seed 7 on slot 2 as user 1 and poll until it can be harvested
    python scripts/simulate_plant.py --user 1 --slot 2 --inventory-id 7

    # Only queue the planting
    python scripts/simulate_plant.py --user 1 --slot 2 --inventory-id 7 --no-wait

    # Also pull queued maturity emails while waiting
    python scripts/simulate_plant.py --user 1 --slot 2 --inventory-id 7 --drain-email
"""

import argparse
import asyncio
import json
import sys

import httpx


async def check_health(client: httpx.AsyncClient) -> bool:
    """Check if the backend is running and ready."""
    try:
        response = await client.get("/health/ready")
    except httpx.HTTPError as e:
        print(f"Health check failed: {e}")
        return False
    print(f"Readiness: {response.json().get('status')} {response.json().get('checks')}")
    return response.status_code == 200


async def find_plot(client: httpx.AsyncClient, headers: dict[str, str], slot: int) -> dict | None:
    response = await client.get("/garden/plots", headers=headers)
    response.raise_for_status()
    for plot in response.json()["plots"]:
        if plot["slot"] == slot:
            return plot
    return None


async def run(args: argparse.Namespace) -> int:
    headers = {"X-User-Id": str(args.user)}

    async with httpx.AsyncClient(base_url=args.url, timeout=30.0) as client:
        if not args.skip_health and not await check_health(client):
            print("Error: backend is not ready")
            print("Make sure the server is running: uvicorn ferm.main:app --port 8080")
            return 1

        print(f"\n{'='*60}")
        print(f"Planting: user={args.user} slot={args.slot} inventory_id={args.inventory_id}")
        print(f"{'='*60}\n")

        response = await client.post(
            "/garden/plant",
            json={"slot": args.slot, "inventoryId": args.inventory_id},
            headers=headers,
        )
        print(f"Status: {response.status_code}")
        print(json.dumps(response.json(), indent=2))
        if response.status_code != 202:
            return 1

        if args.no_wait:
            return 0

        # The consumer applies the command asynchronously
        plot = None
        for _ in range(args.poll_attempts):
            plot = await find_plot(client, headers, args.slot)
            if plot and plot["cropType"] and plot["plantedAt"]:
                break
            await asyncio.sleep(1.0)
        else:
            print("Planting was not applied, check the consumer logs")
            return 1

        print(f"Planted {plot['cropType']} at {plot['plantedAt']}, waiting for maturity...")

        while not plot["matured"]:
            if args.drain_email:
                drained = await client.post("/email")
                print(f"Email pull: {drained.json()}")
            await asyncio.sleep(args.poll_seconds)
            plot = await find_plot(client, headers, args.slot)

        if args.drain_email:
            drained = await client.post("/email")
            print(f"Email pull: {drained.json()}")

        response = await client.post("/garden/harvest", json={"slot": args.slot}, headers=headers)
        print(f"Harvest status: {response.status_code}")
        print(json.dumps(response.json(), indent=2))
        return 0 if response.status_code == 200 else 1


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Simulate a player planting and harvesting a crop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--url", default="http://localhost:8080", help="Backend base URL")
    parser.add_argument("--user", type=int, default=1, help="User id sent as X-User-Id")
    parser.add_argument("--slot", type=int, required=True, help="Plot slot (1-6)")
    parser.add_argument("--inventory-id", type=int, required=True, help="Seed inventory item id")
    parser.add_argument("--no-wait", action="store_true", help="Exit once the planting is queued")
    parser.add_argument("--drain-email", action="store_true", help="Pull queued maturity emails while waiting")
    parser.add_argument("--poll-seconds", type=float, default=15.0, help="Delay between maturity polls")
    parser.add_argument("--poll-attempts", type=int, default=30, help="Polls while waiting for the consumer")
    parser.add_argument("--skip-health", action="store_true", help="Skip readiness check")
    return parser.parse_args()


def main() -> int:
    return asyncio.run(run(parse_args()))


if __name__ == "__main__":
    sys.exit(main())
