#!/usr/bin/env python3
"""
End-to-end demo script for the Contract Drafting Service.

Prerequisites:
    1. API, worker, Postgres, MinIO and Temporal running
    2. OPENAI_API_KEY set in .env (grounding vector stores populated)

Usage:
    python scripts/e2e_demo.py

    # Async path (Temporal job) instead of the blocking endpoint:
    python scripts/e2e_demo.py --async

    # Word output, raw JSON:
    python scripts/e2e_demo.py --format word --json
"""

import argparse
import json
import sys
import time

import httpx

# Configuration
API_BASE = "http://localhost:8000"
USER_ID = "demo-user"
POLL_INTERVAL = 3  # seconds
MAX_WAIT = 300  # seconds

SAMPLE_NDA = {
    "disclosingParty": "Alpine Robotics AG",
    "disclosingPartyAddress": "Bahnhofstrasse 1, 8001 Zürich",
    "receivingParty": "Lakeside Consulting GmbH",
    "purpose": "Evaluation of a joint development project",
    "duration": 3,
    "mutualNDA": True,
    "effectiveDate": "2024-03-01",
}


def check_health(client: httpx.Client) -> bool:
    """Check if API is healthy."""
    try:
        resp = client.get(f"{API_BASE}/health")
        return resp.status_code == 200
    except httpx.RequestError:
        return False


def check_readiness(client: httpx.Client) -> dict:
    """Check readiness of all dependencies."""
    try:
        resp = client.get(f"{API_BASE}/health/ready")
        return resp.json()
    except httpx.RequestError as e:
        return {"error": str(e)}


def generate(client: httpx.Client, output_format: str) -> dict:
    """Generate an NDA and wait for the stored document."""
    body = {"contractType": "nda", "parameters": SAMPLE_NDA, "format": output_format}
    resp = client.post(f"{API_BASE}/api/contracts/generate", json=body)
    resp.raise_for_status()
    return resp.json()


def generate_async(client: httpx.Client, output_format: str) -> str:
    """Queue an NDA generation and return the job id."""
    body = {"contractType": "nda", "parameters": SAMPLE_NDA, "format": output_format}
    resp = client.post(f"{API_BASE}/api/contracts/generate-async", json=body)
    resp.raise_for_status()
    return resp.json()["jobId"]


def poll_until_complete(client: httpx.Client, job_id: str, max_wait: int = MAX_WAIT) -> dict:
    """Poll the job until it completes or fails."""
    start = time.time()
    while time.time() - start < max_wait:
        resp = client.get(f"{API_BASE}/api/contracts/jobs/{job_id}")
        resp.raise_for_status()
        job = resp.json()

        if job["status"] in ("completed", "failed"):
            return job

        elapsed = int(time.time() - start)
        print(f"  {job['progress']:3d}% {job.get('progressMessage') or job['status']} ({elapsed}s)", end="\r")
        time.sleep(POLL_INTERVAL)

    return {"status": "timeout", "error": f"Exceeded {max_wait}s wait time"}


def list_generations(client: httpx.Client, limit: int = 5) -> list:
    resp = client.get(f"{API_BASE}/api/contracts/generations", params={"limit": limit})
    resp.raise_for_status()
    return resp.json()


def main():
    parser = argparse.ArgumentParser(description="E2E demo for the Contract Drafting Service")
    parser.add_argument("--async", dest="use_async", action="store_true", help="Use the async job endpoint")
    parser.add_argument("--format", choices=["pdf", "word"], default="pdf", help="Output format")
    parser.add_argument("--json", action="store_true", help="Output raw JSON")
    args = parser.parse_args()

    print("=" * 60)
    print("CONTRACT DRAFTING SERVICE - E2E DEMO")
    print("=" * 60)

    headers = {"X-User-Id": USER_ID}
    with httpx.Client(timeout=MAX_WAIT, headers=headers) as client:
        print("\n[1/4] Checking API health...")
        if not check_health(client):
            print("  Error: API is not responding.")
            sys.exit(1)
        print("  API is healthy")

        print("\n[2/4] Checking service readiness...")
        readiness = check_readiness(client)
        if "error" in readiness:
            print(f"  Error: {readiness['error']}")
            sys.exit(1)
        for service, status in readiness.get("checks", {}).items():
            print(f"  {service}: {'OK' if status == 'ok' else status}")

        print(f"\n[3/4] Generating NDA ({args.format}, {'async' if args.use_async else 'sync'})...")
        try:
            if args.use_async:
                job_id = generate_async(client, args.format)
                print(f"  Job ID: {job_id}")
                result = poll_until_complete(client, job_id)
                if result["status"] != "completed":
                    print(f"\n  Generation {result['status']}: {result.get('error', 'Unknown error')}")
                    sys.exit(1)
                result = result["result"]
            else:
                result = generate(client, args.format)
        except httpx.HTTPStatusError as e:
            print(f"  Error: {e.response.text}")
            sys.exit(1)
        print("\n  Generation completed!")

        print("\n[4/4] Listing recent generations...")
        generations = list_generations(client)
        ours = next((g for g in generations if g["id"] == result["documentId"]), None)
        print(f"  {len(generations)} generation(s), ours: {ours['status'] if ours else 'not found'}")

    if args.json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print("\n" + "=" * 60)
        print(f"Document ID:  {result['documentId']}")
        print(f"Download URL: {result['downloadUrl']}")
        print("=" * 60)

    sys.exit(0)


if __name__ == "__main__":
    main()
