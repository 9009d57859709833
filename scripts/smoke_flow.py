#!/usr/bin/env python3
"""Exercise signup, login, gym creation and rating against a running server.

    python scripts/smoke_flow.py [--base-url http://localhost:8000]
"""
import argparse
import sys
import uuid

import requests


def step(title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)


def run_flow(base_url: str) -> int:
    session = requests.Session()
    username = f"smoke-{uuid.uuid4().hex[:8]}"
    password = "smoke-password"

    step("1. Healthcheck")
    resp = session.get(f"{base_url}/healthcheck", timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")
    if resp.status_code != 200:
        return 1

    step(f"2. Signing up as {username}")
    resp = session.post(f"{base_url}/accounts",
                        json={"userName": username, "password": password}, timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")
    if resp.status_code != 201:
        return 1

    step("3. Logging in")
    resp = session.get(f"{base_url}/login",
                       json={"username": username, "password": password}, timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")
    if resp.status_code != 200:
        return 1
    token = resp.json()["token"]

    step("4. Creating a gym")
    resp = session.post(f"{base_url}/gyms",
                        json={"name": "Smoke Gym", "description": "created by smoke_flow"},
                        timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")
    if resp.status_code != 201:
        return 1
    gym_id = resp.json()["id"]

    step("5. Rating without a token (expect 401)")
    resp = session.post(f"{base_url}/gyms/{gym_id}/ratings", json={"rating": 5}, timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")

    step("6. Rating with the token")
    for value in (3, 5):
        resp = session.post(f"{base_url}/gyms/{gym_id}/ratings",
                            json={"rating": value, "review": "smoke"},
                            headers={"x-jwt-token": token}, timeout=10)
        print(f"Status: {resp.status_code}  Response: {resp.text}")
    print()

    step("7. Fetching the gym (expect rating 4.0)")
    resp = session.get(f"{base_url}/gyms/{gym_id}", timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")
    ok = resp.status_code == 200 and resp.json().get("rating") == 4.0

    step("8. Deleting the gym")
    resp = session.delete(f"{base_url}/gyms/{gym_id}", timeout=10)
    print(f"Status: {resp.status_code}  Response: {resp.text}\n")

    print("✅ Flow completed" if ok else "❌ Unexpected average rating")
    return 0 if ok else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--base-url', default='http://localhost:8000')
    sys.exit(run_flow(parser.parse_args().base_url.rstrip('/')))
