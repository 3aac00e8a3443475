"""
Example: Using LocalGSM as a local Secret Manager

Walks through the secret lifecycle over the REST API.

Run LocalGSM first:
    localgsm start

Then run this script:
    python examples/secretmanager_example.py
"""

import base64
import os

import httpx

EMULATOR_HOST = os.getenv("SECRET_MANAGER_EMULATOR_HOST", "127.0.0.1:8085")
PROJECT_ID = os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("GSM_PROJECT_ID") or "my-test-project"
SECRET_ID = "example-secret"

BASE_URL = f"http://{EMULATOR_HOST}/v1/projects/{PROJECT_ID}/secrets"


def print_section(title):
    """Print a section header."""
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


def create_secret(client: httpx.Client):
    """Create the example secret (ignored if it already exists)."""
    print_section("Creating Secret")
    response = client.post(
        BASE_URL,
        params={"secretId": SECRET_ID},
        json={"secret": {"labels": {"env": "dev", "team": "backend"}}},
    )
    if response.status_code == 409:
        print(f"   Secret already exists: {SECRET_ID}")
        return
    response.raise_for_status()
    print(f"   Created: {response.json()['name']}")


def add_versions(client: httpx.Client):
    """Add two versions."""
    print_section("Adding Versions")
    for value in ["first-value", "rotated-value"]:
        payload = base64.b64encode(value.encode()).decode()
        response = client.post(f"{BASE_URL}/{SECRET_ID}:addVersion", json={"payload": {"data": payload}})
        response.raise_for_status()
        body = response.json()
        print(f"   Added {body['name']} (sha256 {body['checksum']['sha256'][:12]}...)")


def access_latest(client: httpx.Client):
    """Access the latest version."""
    print_section("Accessing Latest Version")
    response = client.get(f"{BASE_URL}/{SECRET_ID}/versions/latest:access")
    response.raise_for_status()
    body = response.json()
    print(f"   {body['name']}: {base64.b64decode(body['payload']['data']).decode()}")


def list_everything(client: httpx.Client):
    """List secrets and versions."""
    print_section("Listing")
    secrets = client.get(BASE_URL).json().get("secrets", [])
    for secret in secrets:
        print(f"   Secret: {secret['name']}")

    versions = client.get(f"{BASE_URL}/{SECRET_ID}/versions").json().get("versions", [])
    for version in versions:
        print(f"   Version: {version['name']} [{version['state']}]")


def main():
    """Run the example."""
    with httpx.Client(timeout=10.0) as client:
        create_secret(client)
        add_versions(client)
        access_latest(client)
        list_everything(client)


if __name__ == "__main__":
    main()
