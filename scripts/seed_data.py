#!/usr/bin/env python3
"""
Seed script: creates a small dataset for exercising feeds and favorites.

Creates:
  • 8 users
  • A follow graph (each user follows 3 others)
  • 3 published posts per user, tagged
  • A moment per user, with a few likes
  • Some favorites across posts

Run against a live API:
  python scripts/seed_data.py --api-url http://localhost:8000
"""
import argparse
import json
import random
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional


BASE_USERS = [
    "alice_ai",
    "bob_builder",
    "carol_codes",
    "dave_designs",
    "eve_engineer",
    "frank_feeds",
    "grace_graphs",
    "henry_hpc",
]

SAMPLE_POSTS = [
    ("Zero downtime deploys", ["devops", "kubernetes"]),
    ("Unique indexes as the last line of defence", ["mongodb", "databases"]),
    ("Soft deletes and the reactivation trick", ["mysql", "databases"]),
    ("Paging a feed over followed users", ["feeds", "architecture"]),
    ("Atomic counters with $inc", ["mongodb"]),
    ("Why slugs collide", ["web", "mongodb"]),
    ("Tracing a request across two stores", ["observability"]),
    ("Prometheus histograms for feed latency", ["observability", "feeds"]),
    ("Embedded comments: when they fit", ["mongodb", "architecture"]),
    ("Follower counts without drift", ["mysql", "feeds"]),
]

SAMPLE_MOMENTS = [
    "Coffee, then code.",
    "Finally fixed that flaky test.",
    "Whiteboarding the follow graph today.",
    "Shipping on a Friday. Wish me luck.",
]


@dataclass
class ApiClient:
    base_url: str

    def request(self, method: str, path: str, data: Optional[dict] = None, user_id: Optional[int] = None) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if user_id is not None:
            headers["X-User-Id"] = str(user_id)
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                return json.loads(resp.read() or b"{}")
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on {method} {path}: {e.read().decode()}")
            return {}

    def post(self, path: str, data: Optional[dict] = None, user_id: Optional[int] = None) -> dict:
        return self.request("POST", path, data, user_id)

    def get(self, path: str, user_id: Optional[int] = None) -> dict:
        return self.request("GET", path, user_id=user_id)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for _ in range(retries):
        try:
            if client.get("/health").get("status") == "ok":
                print("  API is ready!\n")
                return
        except urllib.error.URLError:
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


def main(api_url: str) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Users ────────────────────────────────────────────────────────────
    print("Creating users...")
    user_ids: list[int] = []
    for username in BASE_USERS:
        uid = client.post("/users/", {"username": username}).get("id")
        if uid:
            user_ids.append(uid)
            print(f"  ✓ {username} ({uid})")
        else:
            print(f"  ✗ Failed to create {username}")

    if len(user_ids) < 2:
        print("Not enough users created, aborting")
        return

    # ── Follow graph ─────────────────────────────────────────────────────
    print("\nCreating follow relationships...")
    for follower_id in user_ids:
        others = [u for u in user_ids if u != follower_id]
        for followee_id in random.sample(others, k=min(3, len(others))):
            client.post(f"/users/{followee_id}/follow", user_id=follower_id)
    print("  ✓ Follow graph created")

    # ── Posts ────────────────────────────────────────────────────────────
    print("\nCreating posts...")
    post_ids: list[str] = []
    for user_id in user_ids:
        for title, tags in random.sample(SAMPLE_POSTS, k=3):
            result = client.post(
                "/posts/",
                {"title": title, "content": f"{title}. Notes to follow.", "tags": tags, "status": "published"},
                user_id=user_id,
            )
            if result.get("id"):
                post_ids.append(result["id"])
    print(f"  ✓ {len(post_ids)} posts created")

    # ── Moments ──────────────────────────────────────────────────────────
    print("\nCreating moments...")
    for user_id in user_ids:
        moment = client.post("/moments/", {"content": random.choice(SAMPLE_MOMENTS)}, user_id=user_id)
        for liker in random.sample(user_ids, k=random.randint(0, 4)):
            if moment.get("id"):
                client.post(f"/moments/{moment['id']}/like", user_id=liker)
    print("  ✓ Moments created")

    # ── Favorites ────────────────────────────────────────────────────────
    print("\nAdding favorites...")
    favorites = 0
    for user_id in user_ids:
        for post_id in random.sample(post_ids, k=min(3, len(post_ids))):
            if client.post("/favorites/", {"post_id": post_id}, user_id=user_id):
                favorites += 1
    print(f"  ✓ {favorites} favorites added")

    # ── Summary ──────────────────────────────────────────────────────────
    u = user_ids[0]
    print("\n" + "=" * 60)
    print("Seed complete! Some commands to try:\n")
    print(f"# Following feed for '{BASE_USERS[0]}':")
    print(f"  curl -s -H 'X-User-Id: {u}' '{api_url}/feed/following' | python3 -m json.tool\n")
    print("# Favorites:")
    print(f"  curl -s -H 'X-User-Id: {u}' '{api_url}/favorites/' | python3 -m json.tool\n")
    print("# Search:")
    print(f"  curl -s '{api_url}/posts/search?keyword=mongodb' | python3 -m json.tool\n")
    print("# Check Jaeger traces: http://localhost:16686")
    print("# Check Prometheus: http://localhost:9090")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the content platform")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()
    main(args.api_url)
