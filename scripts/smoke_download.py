import os
import sys
import requests

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")


def main():
    r = requests.get(f"{BASE_URL}/v0/exports", params={"ready": "true", "limit": 1}, timeout=10)
    r.raise_for_status()
    items = r.json()["exports"]
    if not items:
        print("No ready exports; run scripts/bootstrap_dev.py --upload first")
        sys.exit(1)
    export_id = items[0]["id"]

    r = requests.get(f"{BASE_URL}/v0/exports/{export_id}/download", timeout=10)
    r.raise_for_status()
    data = r.json()["data"]
    print(f"Signed URL issued for export {export_id}: name={data['name']}")

    r = requests.get(data["url"], timeout=30)
    if r.status_code != 200:
        print(f"GET failed: {r.status_code} {r.text[:200]}")
        sys.exit(3)
    print(f"Downloaded {len(r.content)} bytes via signed URL. OK")


if __name__ == "__main__":
    main()
