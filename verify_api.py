import json
import os
import sys

import requests

BASE_URL = os.getenv("SIMPLEBLOG_API_URL", "http://localhost:8000")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin123!")
EMAIL = "verify_test@example.com"


def print_response(name, response):
    print(f"--- {name} ---")
    print(f"Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)
    print("\n")


def run_verification():
    # 1. Login
    print("1. Logging in...")
    resp = requests.post(f"{BASE_URL}/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    print_response("Login", resp)
    if resp.status_code != 200:
        print("Login failed, aborting.")
        return 1
    tokens = resp.json()

    # 2. Refresh rotation: the old refresh token must stop working
    print("2. Rotating refresh token...")
    resp = requests.post(f"{BASE_URL}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    print_response("Refresh", resp)
    replay = requests.post(f"{BASE_URL}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    print_response("Refresh replay (expected 401)", replay)
    if resp.status_code == 200:
        tokens = resp.json()
    headers = {"Authorization": f"Bearer {tokens['token']}"}

    # 3. List products
    print("3. Listing products...")
    resp = requests.get(f"{BASE_URL}/products", params={"page": 1, "pageSize": 5})
    print_response("Products", resp)
    items = resp.json().get("items", []) if resp.status_code == 200 else []

    # 4. Create order
    if items:
        print("4. Creating order...")
        resp = requests.post(f"{BASE_URL}/orders", json={
            "customerName": "Verify Script",
            "customerEmail": EMAIL,
            "customerPhone": "+48 600 000 000",
            "shippingAddress": "ul. Testowa 1",
            "shippingCity": "Warszawa",
            "shippingPostalCode": "00-001",
            "items": [{"productId": items[0]["id"], "quantity": 2}],
        })
        print_response("Create Order", resp)

        resp = requests.get(f"{BASE_URL}/orders/analytics/summary", headers=headers)
        print_response("Orders Summary", resp)
    else:
        print("4. No products to order, skipping. Run seed_data.py first.")

    # 5. Password reset request answers the same whether or not the address exists
    print("5. Requesting Password Reset...")
    resp = requests.post(f"{BASE_URL}/auth/request-password-reset", json={"email": EMAIL})
    print_response("Password Reset Request", resp)

    # 6. Reset with a made-up token must fail
    print("6. Confirming Password Reset (Expected Failure)...")
    resp = requests.post(f"{BASE_URL}/auth/reset-password", json={
        "userId": "00000000-0000-0000-0000-000000000000",
        "token": "invalid_token",
        "newPassword": "NewPassword123!",
    })
    print_response("Password Reset Confirm (Invalid)", resp)
    return 0


if __name__ == "__main__":
    sys.exit(run_verification())
