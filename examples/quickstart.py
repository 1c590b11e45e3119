#!/usr/bin/env python3
"""
SentryCircle Quickstart — one family, end to end.

Registers a guardian and a child account → creates a family → adds the
child → the child enrolls a phone → the phone reports a location → the
guardian sends a command → the phone acknowledges it.

Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"


def register(client: httpx.Client, role: str, run_id: str) -> tuple[dict, str]:
    resp = client.post("/auth/register", json={
        "email": f"{role}-{run_id}@example.com",
        "name": f"Demo {role.title()} {run_id}",
        "password": "demo-password-123",
        "role": role,
    })
    assert resp.status_code == 201, f"Registration failed: {resp.text}"
    data = resp.json()
    return data["user"], data["token"]


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  uvicorn sentrycircle.main:app --reload --port 8000")
        sys.exit(1)
    health = resp.json()
    print(f"  Store: {health['store']} ({health['store_backend']})")

    # ── Accounts ──────────────────────────────────────────────────
    print("\n1. Registering guardian and child accounts...")
    guardian, guardian_token = register(client, "guardian", run_id)
    kid, kid_token = register(client, "child", run_id)
    as_guardian = {"Authorization": f"Bearer {guardian_token}"}
    as_kid = {"Authorization": f"Bearer {kid_token}"}
    print(f"   Guardian: {guardian['email']}")
    print(f"   Child:    {kid['email']}")

    # ── Family + child ────────────────────────────────────────────
    print("\n2. Creating family...")
    resp = client.post("/families", json={"name": f"Demo Family {run_id}"}, headers=as_guardian)
    assert resp.status_code == 201, f"Failed: {resp.text}"
    family = resp.json()["family"]
    print(f"   Family: {family['name']} ({family['id'][:8]}...)")

    print("\n3. Adding child (linked to the child account)...")
    resp = client.post("/children", json={
        "name": "Sam",
        "familyId": family["id"],
        "userId": kid["id"],
    }, headers=as_guardian)
    assert resp.status_code == 201, f"Failed: {resp.text}"
    child = resp.json()["child"]
    print(f"   Child: {child['name']} ({child['id'][:8]}...)")

    # ── Device ────────────────────────────────────────────────────
    print("\n4. Child enrolls their phone...")
    resp = client.post("/devices", json={
        "name": "Sam's phone",
        "type": "android",
        "childId": child["id"],
    }, headers=as_kid)
    assert resp.status_code == 201, f"Failed: {resp.text}"
    device = resp.json()["device"]
    print(f"   Device: {device['name']} ({device['id'][:8]}...)")

    print("\n5. Phone reports its location...")
    resp = client.post("/locations", json={
        "deviceId": device["id"],
        "location": {"latitude": 51.5007, "longitude": -0.1246, "accuracy": 12.0},
        "batteryLevel": 83,
    }, headers=as_kid)
    assert resp.status_code == 200, f"Failed: {resp.text}"

    resp = client.get(f"/locations/{device['id']}", headers=as_guardian)
    fix = resp.json()
    print(f"   Guardian sees: {fix['location']['latitude']}, {fix['location']['longitude']}"
          f" (battery {fix['batteryLevel']}%)")

    # ── Commands ──────────────────────────────────────────────────
    print("\n6. Phone tries to command itself (should be refused)...")
    resp = client.post("/commands", json={"deviceId": device["id"], "type": "ring"}, headers=as_kid)
    print(f"   → {resp.status_code} {resp.json()['detail']}")

    print("\n7. Guardian sends a ring command...")
    resp = client.post("/commands", json={
        "deviceId": device["id"],
        "type": "ring",
        "data": {"durationSeconds": 30},
    }, headers=as_guardian)
    assert resp.status_code == 201, f"Failed: {resp.text}"
    command = resp.json()["command"]
    print(f"   Command: {command['type']} [{command['status']}]")

    print("\n8. Phone polls and acknowledges...")
    resp = client.get(f"/commands/{device['id']}", params={"status": "pending"}, headers=as_kid)
    pending = resp.json()["commands"]
    print(f"   Pending commands: {len(pending)}")
    resp = client.put(f"/commands/{device['id']}/{command['id']}", json={
        "status": "completed",
        "result": {"rang": True},
    }, headers=as_kid)
    print(f"   Command now: {resp.json()['command']['status']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
