#!/usr/bin/env python3
"""
procmon Quickstart — one pass over the whole API.

Health → login → dashboard summary → failed runs → logs → retry.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:5000
"""

from _common import create_client


def main():
    client = create_client()

    # ── Dashboard summary ─────────────────────────────────────────
    print("\n1. Dashboard summary...")
    summary = client.get("/processes/dashboard").json()
    today = summary["todayStats"]
    print(f"   Total: {summary['totalProcesses']}")
    print(f"   Today: {today['total']} runs, {today['failed']} failed, {today['inProgress']} running")
    for env, stats in summary["environmentBreakdown"].items():
        print(f"   {env:<5} {stats['total']} runs, {stats['failed']} failed")

    # ── Filter options ────────────────────────────────────────────
    print("\n2. Filter options...")
    options = client.get("/processes/metadata/filters").json()
    print(f"   Partners: {', '.join(options['tradingPartners'])}")

    # ── Failed runs in Prod ───────────────────────────────────────
    print("\n3. Latest failed runs in Prod...")
    resp = client.get("/processes", params={"status": "Failed", "environment": "Prod", "limit": 5})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    page = resp.json()
    for p in page["data"]:
        print(f"   #{p['id']:<4} {p['processId']}  {p['processName']:<26} {p['errorDetails']['errorType']}")
    print(f"   ({page['pagination']['totalItems']} failed in Prod)")

    if not page["data"]:
        print("\nNothing failed in Prod. Done.")
        return
    failed = page["data"][0]

    # ── Logs ──────────────────────────────────────────────────────
    print(f"\n4. Logs for #{failed['id']}...")
    logs = client.get(f"/processes/{failed['id']}/logs").json()["logs"]
    for entry in logs[-3:]:
        print(f"   {entry['timestamp'][:19]}  {entry['level']:<5} {entry['message'][:60]}")

    # ── Retry ─────────────────────────────────────────────────────
    print(f"\n5. Retrying #{failed['id']}...")
    resp = client.post(f"/processes/{failed['id']}/retry")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    new = resp.json()["newProcess"]
    print(f"   New run #{new['id']} {new['processId']} is {new['status']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
