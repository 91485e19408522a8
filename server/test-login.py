"""Smoke test the POST /api/login endpoint against a running server."""

import requests
import sys

import os
BASE = os.environ.get("TEST_BASE", "http://localhost:5000")
# Set TEST_MFA=SMS and TEST_PASSCODE=123456 to answer a passcode factor

print("=== Testing GET /api/health ===")
resp = requests.get(f"{BASE}/api/health", timeout=10)
print(f"Status: {resp.status_code}")
print(f"Response: {resp.json()}")

print("\n=== Testing POST /api/login ===")
print("Push factors will need approving on your phone!\n")

body = {}
if os.environ.get("TEST_MFA"):
    body["mfa"] = os.environ["TEST_MFA"]
if os.environ.get("TEST_PASSCODE"):
    body["passcode"] = os.environ["TEST_PASSCODE"]

resp = requests.post(f"{BASE}/api/login", json=body, timeout=180)
print(f"Status: {resp.status_code}")
data = resp.json()

if resp.status_code != 200:
    print(f"Response: {data}")
    print("\nLogin failed.")
    sys.exit(1)

print(f"SAML response: {data['saml_response'][:60]}... ({len(data['saml_response'])} chars)")
