"""
Persistence check against a running database.

Starts the API, records a ledger entry, restarts the API and verifies
the entry and the recomputed summary survived the restart.
"""

import os
import signal
import subprocess
import sys
import time

import httpx

from sales_ledger.app.core.jwt import create_access_token

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
OWNER = "persist-check-owner"


def start_server(echo: bool = False):
    env = {**os.environ, "DB_ECHO": "True"} if echo else None
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "sales_ledger.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for _ in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("Server is up")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("Server failed to start")
    return False


def run_verification():
    token = create_access_token(data={"sub": OWNER, "username": OWNER, "groups": []})
    headers = {"Authorization": f"Bearer {token}"}

    print("\n--- [Step 1] Starting Server ---")
    proc = start_server(echo=True)
    try:
        if not wait_for_server():
            stdout, stderr = proc.communicate(timeout=2)
            print("Server Stdout:", stdout.decode())
            print("Server Stderr:", stderr.decode())
            raise RuntimeError("Server start failed")

        print("\n--- [Step 2] Recording Ledger Entry ---")
        resp = httpx.post(
            f"{BASE_URL}{API_PREFIX}/ledger-entries",
            json={"type": "INVOICE", "amount": "100.00", "description": "Persistence check"},
            headers=headers,
        )
        if resp.status_code != 201:
            raise RuntimeError(f"Ledger entry failed: {resp.status_code} {resp.text}")
        entry_id = resp.json()["id"]
        print(f"Recorded entry {entry_id}")

        before = httpx.get(f"{BASE_URL}{API_PREFIX}/ledger/summary", headers=headers).json()
    finally:
        print("\n--- [Step 3] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # port release

    print("\n--- [Step 4] Restarting Server ---")
    proc = start_server()
    try:
        if not wait_for_server():
            raise RuntimeError("Server restart failed")

        print("\n--- [Step 5] Verifying Entry and Summary ---")
        ids = []
        page_token = None
        while True:
            params = {"page_token": page_token} if page_token else {}
            page = httpx.get(f"{BASE_URL}{API_PREFIX}/ledger-entries", params=params, headers=headers).json()
            ids.extend(item["id"] for item in page["items"])
            page_token = page["next_token"]
            if not page_token:
                break

        if entry_id not in ids:
            raise RuntimeError(f"Entry {entry_id} missing after restart")

        after = httpx.get(f"{BASE_URL}{API_PREFIX}/ledger/summary", headers=headers).json()
        if after["sales_ledger_balance"] != before["sales_ledger_balance"]:
            raise RuntimeError(f"Summary changed across restart: {before} -> {after}")
        print(f"Entry persisted; balance {after['sales_ledger_balance']}")
    finally:
        print("\n--- [Step 6] Stopping Server ---")
        stop_server(proc)


if __name__ == "__main__":
    run_verification()
