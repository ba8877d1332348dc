# scripts/smoke.py
"""
Smoke Test Script for a running timeledger API.

Posts one text-only entry to `/api/update-csv` with Basic credentials and
prints the response.

Usage
-----
    $ python scripts/smoke.py
    $ python scripts/smoke.py --url http://localhost:8000 --endpoint submit-entry
"""

import argparse
import json
import os
from pathlib import Path

import httpx
from dotenv import load_dotenv

env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")
else:
    print("⚠️  Warning: No .env file found! Using AUTH_USERNAME/AUTH_PASSWORD from the shell.")

TEST_ENTRY = {
    "date": "Mar 30",
    "description": "This is a test entry",
    "description2": "Additional details",
    "link": "https://example.com",
}


def main() -> None:
    """Submit the test entry and print status and body."""
    parser = argparse.ArgumentParser(description="Run timeledger smoke test")
    parser.add_argument("--url", default="http://localhost:8000", help="API base URL")
    parser.add_argument("--endpoint", default="update-csv", choices=["update-csv", "submit-entry"])
    args = parser.parse_args()

    username = os.getenv("AUTH_USERNAME", "")
    password = os.getenv("AUTH_PASSWORD", "")

    print(f"Submitting data: {json.dumps(TEST_ENTRY)}")
    try:
        response = httpx.post(
            f"{args.url.rstrip('/')}/api/{args.endpoint}",
            json={"entry": TEST_ENTRY},
            auth=(username, password),
            timeout=30.0,
        )
    except httpx.HTTPError as exc:
        print(f"\n❌ Request failed: {exc}")
        return

    print(f"Status: {response.status_code}")
    try:
        print(f"Response: {json.dumps(response.json(), indent=2)}")
    except ValueError:
        print(f"Could not parse JSON response: {response.text[:300]}")


if __name__ == "__main__":
    main()
