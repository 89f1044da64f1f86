"""Send a signed activation request to a running server.

Run: python dev_check.py ABCD-1234-EFGH example.com
Uses ACTIVATION_SECRET and API_BASE_URL from the environment or .env.
"""

import os
import sys
import time

import httpx
from dotenv import load_dotenv

from licensegate.services.signature import SignatureVerifier
from licensegate.services.validation import validate_domain

load_dotenv()

API_BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")


def main() -> None:
    if len(sys.argv) != 3:
        raise SystemExit("usage: python dev_check.py KEY DOMAIN")
    key, raw_domain = sys.argv[1], sys.argv[2]

    verifier = SignatureVerifier(os.getenv("ACTIVATION_SECRET"))
    timestamp = int(time.time() * 1000)
    payload = {"key": key, "domain": raw_domain}
    if verifier.configured:
        payload["timestamp"] = timestamp
        payload["signature"] = verifier.sign(key, validate_domain(raw_domain), timestamp)

    response = httpx.post(f"{API_BASE}/activate", json=payload, timeout=10)
    print(response.status_code, response.json())


if __name__ == "__main__":
    main()
