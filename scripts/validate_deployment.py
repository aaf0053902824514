"""
Pre-Deploy Smoke Test Script.

Runs against a live server seeded with cogniflow/seed_users.py:
1. Health Check
2. Login as the seeded accountant
3. Transaction -> Ledger posting -> Reports
4. Insight analysis run
"""

import sys
import uuid
import httpx

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"


def check(response: httpx.Response, expected: int, label: str) -> dict:
    if response.status_code != expected:
        print(f"❌ {label}: {response.status_code} {response.text}")
        sys.exit(1)
    print(f"✅ {label}")
    return response.json()


def run_smoke_test(base_url: str = BASE_URL) -> None:
    with httpx.Client(base_url=base_url, timeout=10) as client:
        health = check(client.get("/health"), 200, "Health check")
        if health.get("redis") != "up":
            print("⚠️  Redis is down: logout will not revoke tokens")

        token = check(
            client.post(f"{API_PREFIX}/auth/login", json={"username": "accountant", "password": "accountant123"}),
            200, "Accountant login"
        )["access_token"]
        client.headers["Authorization"] = f"Bearer {token}"

        suffix = uuid.uuid4().hex[:6]
        tx = check(client.post(f"{API_PREFIX}/transactions", json={
            "description": f"Smoke test sale {suffix}",
            "amount": "125.00",
            "type": "income",
            "category": "Sales",
            "status": "completed",
        }), 201, "Record transaction")

        before = check(client.get(f"{API_PREFIX}/accounts/by-name/Cash"), 200, "Read Cash account")["balance"]
        posting = check(client.post(f"{API_PREFIX}/ledger", json={
            "description": f"Smoke test receipt {suffix}",
            "debit": "125.00",
            "account_name": "Cash",
            "transaction_id": tx["id"],
        }), 201, "Post ledger entry")
        if round(posting["account_balance"] - before, 2) != 125.0:
            print(f"❌ Cash balance moved from {before} to {posting['account_balance']}")
            sys.exit(1)
        print("✅ Cash balance updated")

        check(client.get(f"{API_PREFIX}/reports/cash-flow"), 200, "Cash flow report")
        check(client.get(f"{API_PREFIX}/reports/income-statement"), 200, "Income statement")
        check(client.get(f"{API_PREFIX}/reports/balance-sheet"), 200, "Balance sheet")
        run = check(client.post(f"{API_PREFIX}/dashboard/ai-insights/run"), 200, "Insight analysis")
        print(f"   {run['created']} new insight(s)")

    print("\n🎉 Smoke test passed")


if __name__ == "__main__":
    run_smoke_test(sys.argv[1] if len(sys.argv) > 1 else BASE_URL)
