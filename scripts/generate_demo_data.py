"""
Demo driver for the SOC Ops Simulator.
Runs a short analyst session against a live server so you can demo the
workflow without clicking through a UI.

Usage:
    python scripts/generate_demo_data.py

Env vars (optional, also read from .env):
    SOCSIM_URL    = http://localhost:8000
    SOCSIM_KEY    = socsim_dev_key_change_later
    SOCSIM_TICKS  = 8   (how many forced generator ticks to run)
"""

from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

BASE_URL = os.getenv("SOCSIM_URL", "http://localhost:8000").rstrip("/")
API_KEY = os.getenv("SOCSIM_KEY", "").strip()
TICKS = int(os.getenv("SOCSIM_TICKS", "8"))

HEADERS = {
    "x-api-key": API_KEY,
    "Content-Type": "application/json",
}

# Default RATE_LIMIT is 200/minute; 0.4s keeps well under it.
REQUEST_DELAY_SECONDS = 0.4


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def call(method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Optional[Any]:
    try:
        resp = requests.request(
            method,
            f"{BASE_URL}/api/v1{path}",
            json=payload,
            headers=HEADERS,
            timeout=10,
        )

        # Helpful error body on failures
        if resp.status_code >= 400:
            try:
                err = resp.json()
            except ValueError:
                err = resp.text
            raise requests.HTTPError(f"{resp.status_code} {resp.reason} - {err}", response=resp)

        return resp.json() if resp.content else None

    except requests.RequestException as exc:
        print(f"    Request failed: {exc}")
        return None


def print_banner() -> None:
    print("\n" + "=" * 70)
    print("SOC Ops Simulator - Demo Session")
    print("=" * 70)
    print(f"Target: {BASE_URL}")
    print(f"Forced ticks: {TICKS}")
    print("=" * 70 + "\n")


def run_ticks() -> List[Dict[str, Any]]:
    alerts: List[Dict[str, Any]] = []
    for i in range(1, TICKS + 1):
        print(f"[{i:02d}/{TICKS}] Generator tick ...", end=" ", flush=True)
        result = call("POST", "/snapshot/generator/tick")
        if result and result.get("generated"):
            alert = result["alert"]
            alerts.append(alert)
            print(f"OK  {alert['severity']:<6} {alert['source']:<10} {alert['title']}")
        else:
            print("FAILED")
        time.sleep(REQUEST_DELAY_SECONDS)
    print()
    return alerts


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    print_banner()

    # Fail fast (prevents guaranteed 401 mistakes)
    if not API_KEY:
        print("ERROR: SOCSIM_KEY is not set.")
        print("Fix:")
        print('  export SOCSIM_KEY="socsim_dev_key_change_later"   # or your .env API_KEY')
        print("  python scripts/generate_demo_data.py")
        return

    # Connectivity check
    try:
        health = requests.get(f"{BASE_URL}/health", timeout=5)
        health.raise_for_status()
        print("OK: simulator is reachable (/health)\n")
    except requests.RequestException as exc:
        print(f"ERROR: Cannot reach the simulator at {BASE_URL}: {exc}")
        print("Fix: Start the server in another terminal:")
        print("  uvicorn socsim.main:app --reload --port 8000")
        return

    generated = run_ticks()

    # Work the highest-severity alert through a case
    high = [a for a in generated if a["severity"] == "high"]
    target = (high or generated or [None])[0]
    if target is None:
        print("No alerts generated; nothing to investigate.")
        return

    print(f"--- Investigating {target['id']} ---")
    call("POST", f"/alerts/{target['id']}/notes", {"body": "Demo: reviewing sign-in context."})
    opened = call("POST", f"/alerts/{target['id']}/case")
    case_id = opened["case"]["id"] if opened else None
    if case_id:
        print(f"Case opened: {case_id} ({opened['case']['title']})")
        call("POST", f"/cases/{case_id}/timeline", {"msg": "Demo: user contacted by phone."})
        call("PATCH", f"/cases/{case_id}", {"status": "in-progress"})

    # Pivot from the newest log of the same user
    user_logs = call("GET", f"/logs?q=user:{target['user']}&limit=1") or []
    if user_logs:
        pivot = call("POST", f"/logs/{user_logs[0]['id']}/pivot")
        if pivot:
            print(f"Pivot alert created: {pivot['id']} ({pivot['title']})")

    stats = call("GET", "/stats") or {}

    print("-" * 70)
    print(f"Generated alerts: {len(generated)} (high: {len(high)})")
    for key, value in stats.items():
        print(f"  {key}: {value}")
    print("\nTry these endpoints:")
    print(f"GET {BASE_URL}/api/v1/alerts?q=severity:high")
    print(f"GET {BASE_URL}/api/v1/alerts/{target['id']}")
    if case_id:
        print(f"GET {BASE_URL}/api/v1/cases/{case_id}")
    print(f"GET {BASE_URL}/api/v1/snapshot")
    print(f"\nSwagger: {BASE_URL}/docs")
    print("-" * 70 + "\n")


if __name__ == "__main__":
    main()
