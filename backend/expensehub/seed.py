"""Seed script for development data.

Run with:  python -m expensehub.seed
Expects the API to be listening on BASE_URL.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta

import httpx

BASE_URL = "http://localhost:8000"
BOOTSTRAP_ADMIN_ID = "00000000-0000-0000-0000-000000000001"

USERS = [
    {"name": "Ada Admin", "email": "admin@expensehub.example", "role": "admin", "department": "Finance"},
    {"name": "Mona Manager", "email": "manager@expensehub.example", "role": "manager", "department": "Finance"},
    {"name": "Eli Employee", "email": "eli@expensehub.example", "role": "employee", "department": "Engineering"},
    {"name": "Erin Employee", "email": "erin@expensehub.example", "role": "employee", "department": "Sales"},
    {"name": "Vic Vendor", "email": "billing@acme-supplies.example", "role": "vendor", "department": None},
]


def _headers(user_id: str, role: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "X-User-Id": user_id, "X-Role": role}


ADMIN_HEADERS = _headers(BOOTSTRAP_ADMIN_ID, "admin")


async def _safe_post(
    client: httpx.AsyncClient, url: str, json: dict | None, headers: dict[str, str], label: str
) -> dict | None:
    """POST with 409-conflict tolerance so the script can be re-run."""
    resp = await client.post(url, json=json, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (conflict)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _find_user(client: httpx.AsyncClient, email: str) -> dict | None:
    resp = await client.get(f"{BASE_URL}/users", headers=ADMIN_HEADERS, params={"search": email, "size": 1})
    if resp.status_code != 200:
        return None
    items = resp.json().get("items", [])
    return items[0] if items else None


async def seed_users(client: httpx.AsyncClient) -> dict[str, str]:
    """Create users and return a role -> user id mapping (first user per role)."""
    print("\n--- Seeding users ---")
    ids: dict[str, str] = {}
    for user in USERS:
        result = await _safe_post(client, f"{BASE_URL}/users", user, ADMIN_HEADERS, f"User: {user['email']}")
        if result is None:
            result = await _find_user(client, user["email"])
        if result:
            ids.setdefault(user["email"], result["id"])
    return ids


async def seed_requests(client: httpx.AsyncClient, ids: dict[str, str]) -> None:
    """Seed requests in a mix of statuses."""
    print("\n--- Seeding requests ---")
    eli = _headers(ids["eli@expensehub.example"], "employee")
    erin = _headers(ids["erin@expensehub.example"], "employee")
    manager = _headers(ids["manager@expensehub.example"], "manager")
    today = date.today()

    await _safe_post(
        client,
        f"{BASE_URL}/requests",
        {
            "title": "Conference travel",
            "description": "Flights and hotel for PyCon",
            "type": "travel",
            "amount": "1250.00",
            "priority": "high",
            "start_date": (today + timedelta(days=30)).isoformat(),
            "end_date": (today + timedelta(days=34)).isoformat(),
        },
        eli,
        "Request: Eli conference travel (pending)",
    )

    laptop = await _safe_post(
        client,
        f"{BASE_URL}/requests",
        {
            "title": "Replacement laptop",
            "description": "Current laptop battery no longer holds charge",
            "type": "equipment",
            "amount": "1899.99",
        },
        erin,
        "Request: Erin laptop",
    )
    if laptop:
        await _safe_post(
            client, f"{BASE_URL}/requests/{laptop['id']}/approve", None, manager, "Approve Erin laptop"
        )

    lunch = await _safe_post(
        client,
        f"{BASE_URL}/requests",
        {
            "title": "Team lunch",
            "description": "Quarterly team lunch",
            "type": "expense",
            "amount": "340.50",
            "priority": "low",
        },
        eli,
        "Request: Eli team lunch",
    )
    if lunch:
        await _safe_post(
            client,
            f"{BASE_URL}/requests/{lunch['id']}/reject",
            {"rejection_reason": "Over the per-head budget"},
            manager,
            "Reject Eli team lunch",
        )


async def seed_invoices(client: httpx.AsyncClient, ids: dict[str, str]) -> None:
    """Seed vendor invoices: one pending, one paid, one draft."""
    print("\n--- Seeding invoices ---")
    vendor = _headers(ids["billing@acme-supplies.example"], "vendor")
    manager = _headers(ids["manager@expensehub.example"], "manager")
    today = date.today()
    vendor_details = {"company_name": "Acme Supplies", "email": "billing@acme-supplies.example"}

    await _safe_post(
        client,
        f"{BASE_URL}/invoices",
        {
            "title": "Office supplies, October",
            "vendor_details": vendor_details,
            "items": [
                {"description": "Printer paper (box)", "quantity": 10, "unit_price": "24.50"},
                {"description": "Toner cartridge", "quantity": 2, "unit_price": "89.00"},
            ],
            "tax_rate": "8.25",
            "due_date": (today + timedelta(days=30)).isoformat(),
        },
        vendor,
        "Invoice: office supplies (pending)",
    )

    chairs = await _safe_post(
        client,
        f"{BASE_URL}/invoices",
        {
            "title": "Ergonomic chairs",
            "vendor_details": vendor_details,
            "items": [{"description": "Chair", "quantity": 4, "unit_price": "310.00"}],
            "tax_rate": "10",
            "discount": "100.00",
            "due_date": (today + timedelta(days=14)).isoformat(),
        },
        vendor,
        "Invoice: chairs",
    )
    if chairs:
        approved = await _safe_post(
            client, f"{BASE_URL}/invoices/{chairs['id']}/approve", None, manager, "Approve chairs invoice"
        )
        if approved:
            await _safe_post(
                client,
                f"{BASE_URL}/invoices/{chairs['id']}/pay",
                {"payment_reference": "TRX-0001", "payment_method": "bank_transfer"},
                manager,
                "Pay chairs invoice",
            )

    await _safe_post(
        client,
        f"{BASE_URL}/invoices",
        {
            "title": "Consulting hours (draft)",
            "items": [{"description": "Consulting", "quantity": 12, "unit_price": "150.00"}],
            "due_date": (today + timedelta(days=45)).isoformat(),
            "save_as_draft": True,
        },
        vendor,
        "Invoice: consulting (draft)",
    )


async def main() -> None:
    print("=" * 60)
    print("  ExpenseHub: Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            sys.exit(1)

        ids = await seed_users(client)
        if len(ids) < len(USERS):
            print("ERROR: could not resolve all seed users")
            sys.exit(1)
        await seed_requests(client, ids)
        await seed_invoices(client, ids)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
