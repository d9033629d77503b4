#!/usr/bin/env python3
"""Smoke test for a running Stock Contest API."""

import asyncio
import json
import sys

import httpx

BASE_URL = "http://localhost:8000"


async def smoke(ticker: str = "AAPL"):
    """Hit the read-only endpoints and print what comes back."""
    async with httpx.AsyncClient() as client:
        print("Testing Stock Contest API...\n")

        # 1. Health check
        print("1. Testing /api/health")
        try:
            response = await client.get(f"{BASE_URL}/api/health")
            print(f"   Status: {response.status_code}")
            print(f"   Response: {json.dumps(response.json(), indent=2)}\n")
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        # 2. Ticker search
        print(f"2. Testing /api/stocks/search?ticker={ticker}")
        try:
            response = await client.get(f"{BASE_URL}/api/stocks/search", params={"ticker": ticker})
            print(f"   Status: {response.status_code}")
            print(f"   Response: {response.json()}\n")
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        # 3. Contests and their leaderboards
        print("3. Testing /api/contests")
        try:
            response = await client.get(f"{BASE_URL}/api/contests")
            print(f"   Status: {response.status_code}")
            contests = response.json()["contests"]
            print(f"   Found {len(contests)} contests")
            for contest in contests[:3]:
                print(f"   - {contest['name']} [{contest['status']}]: "
                      f"{contest['participantCount']} participants")
                detail = (await client.get(f"{BASE_URL}/api/contests/{contest['id']}")).json()
                for entry in detail["leaderboard"][:3]:
                    print(f"       #{entry['rank']} {entry['userName']} {entry['ticker']} "
                          f"${entry['currentValue']:.2f}")
            print()
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")


if __name__ == "__main__":
    asyncio.run(smoke(*sys.argv[1:2]))
