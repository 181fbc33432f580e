"""
Persistence check against a real database.

Starts the API, registers and approves a truck owner, adds a truck, restarts
the API and checks the account and truck are still there.
Requires the seeded super admin (python haulhub/seed_users.py).
"""

import os
import signal
import subprocess
import sys
import time
import httpx

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/api"
SERVER_CMD = [sys.executable, "-m", "uvicorn", "haulhub.app.main:app", "--host", "127.0.0.1", "--port", "8000"]

ADMIN = {"username": "admin", "password": "admin123"}
OWNER = {"username": "persist_owner", "password": "securePassword123"}
TRUCK_NO = "TN99ZZ0001"


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for _ in range(retries):
        try:
            if httpx.get(url).status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def start_server():
    return subprocess.Popen(
        SERVER_CMD,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, "DB_ECHO": "False"}
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def login(credentials):
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/login", json=credentials)
    if resp.status_code != 200:
        raise RuntimeError(f"Login failed for {credentials['username']}: {resp.status_code} {resp.text}")
    return {"Authorization": f"Bearer {resp.json()['data']['accessToken']}"}


def first_run():
    print("\n--- [Step 1] Register, approve, add truck ---")
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/register", json={
        **OWNER,
        "email": "persist_owner@haulhub.dev",
        "roles": ["TRUCK_OWNER"],
    })
    if resp.status_code == 409:
        print("⚠️ User already exists (persistence working from previous run?)")
        return
    if resp.status_code != 201:
        raise RuntimeError(f"Registration failed: {resp.status_code} {resp.text}")
    user_id = resp.json()["data"]["id"]
    print(f"✅ Registered user {user_id} (PENDING)")

    admin_headers = login(ADMIN)
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/admin/users/{user_id}/approve", headers=admin_headers)
    if resp.status_code != 200:
        raise RuntimeError(f"Approval failed: {resp.status_code} {resp.text}")
    print(f"✅ Approved, provisioned {resp.json()['data']['provisioned']}")

    resp = httpx.post(
        f"{BASE_URL}{API_PREFIX}/truck-owners/trucks",
        json={"truckNo": TRUCK_NO, "capacity": "10 Tons"},
        headers=login(OWNER)
    )
    if resp.status_code != 201:
        raise RuntimeError(f"Truck creation failed: {resp.status_code} {resp.text}")
    print(f"✅ Truck {TRUCK_NO} created")


def second_run():
    print("\n--- [Step 2] Verify after restart ---")
    headers = login(OWNER)
    print("✅ Login Successful (User Persisted!)")

    resp = httpx.get(f"{BASE_URL}{API_PREFIX}/truck-owners/trucks", headers=headers)
    truck_nos = [truck["truckNo"] for truck in resp.json()["data"]]
    if TRUCK_NO not in truck_nos:
        raise RuntimeError(f"Truck {TRUCK_NO} missing after restart: {truck_nos}")
    print(f"✅ Truck {TRUCK_NO} persisted")


def run_verification():
    proc = start_server()
    try:
        if not wait_for_server():
            stdout, stderr = proc.communicate(timeout=2)
            print("Server Stdout:", stdout.decode())
            print("Server Stderr:", stderr.decode())
            raise RuntimeError("Server start failed")
        first_run()
    finally:
        stop_server(proc)

    time.sleep(2)  # Wait for port release

    proc = start_server()
    try:
        if not wait_for_server():
            raise RuntimeError("Server restart failed")
        second_run()
    finally:
        stop_server(proc)


if __name__ == "__main__":
    run_verification()
