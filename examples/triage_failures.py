#!/usr/bin/env python3
"""
Failure triage — walk every failed run and retry the retryable ones.

Pages through /processes?status=Failed, groups failures by error type
and trading partner, then retries every run marked retryable.
Run with: python examples/triage_failures.py [--dry-run]

Requires: pip install httpx
"""

import sys
from collections import Counter

from _common import create_client


def fetch_failed(client) -> list[dict]:
    """Collect every failed run, one page at a time."""
    runs, page = [], 1
    while True:
        resp = client.get("/processes", params={"status": "Failed", "page": page, "limit": 100})
        assert resp.status_code == 200, f"Failed: {resp.text}"
        body = resp.json()
        runs.extend(body["data"])
        if not body["pagination"]["hasNextPage"]:
            return runs
        page += 1


def main():
    dry_run = "--dry-run" in sys.argv
    client = create_client()

    failed = fetch_failed(client)
    print(f"\n{len(failed)} failed runs")

    print("\nBy error type:")
    for error_type, n in Counter(p["errorDetails"]["errorType"] for p in failed).most_common():
        print(f"  {n:>4}  {error_type}")

    print("\nBy trading partner:")
    for partner, n in Counter(p["tradingPartner"] for p in failed).most_common(5):
        print(f"  {n:>4}  {partner}")

    retryable = [p for p in failed if p["errorDetails"]["retryable"]]
    print(f"\n{len(retryable)} retryable")
    if dry_run:
        return

    for p in retryable:
        resp = client.post(f"/processes/{p['id']}/retry")
        if resp.status_code != 200:
            print(f"  #{p['id']}: {resp.status_code} {resp.json().get('message')}")
            continue
        new = resp.json()["newProcess"]
        print(f"  #{p['id']} → #{new['id']} {new['processId']}")


if __name__ == "__main__":
    main()
