"""
Shared fixtures: an in-memory stand-in for the qr_codes/verifications
tables, an authenticated test user, and a TestClient over the app.

The app lifespan (DB pool) is never started; every repository function
the routes touch is monkeypatched onto `FakeStore`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

import main
from auth import repository as auth_repository
from auth import security
from certificates import repository as certificates_repository
from dashboard import repository as dashboard_repository
from verification import repository as verification_repository

TEST_USER = {
    "id": 1,
    "email": "admin@example.com",
    "password_hash": "",
    "is_active": True,
    "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
}


class FakeStore:
    def __init__(self) -> None:
        self.qr_codes: dict[UUID, dict] = {}
        self.verifications: list[dict] = []
        self.clock = datetime(2026, 10, 18, 1, 0, tzinfo=timezone.utc)
        self.fail_verification_insert = False

    def tick(self) -> datetime:
        self.clock += timedelta(minutes=1)
        return self.clock

    def add_qr_code(self, *, title: str = "Certificate", client_name: str = "PT Example", is_active: bool = True) -> dict:
        row = {
            "id": uuid4(),
            "title": title,
            "client_name": client_name,
            "data": {"title": title, "client_name": client_name},
            "is_active": is_active,
            "created_at": self.tick(),
            "qr_code_image": None,
        }
        self.qr_codes[row["id"]] = row
        return dict(row)

    def add_verification(self, qr_id: UUID, *, scanned_at: datetime | None = None, ip_address: str = "10.0.0.1") -> dict:
        row = {
            "id": uuid4(),
            "qr_id": qr_id,
            "scanned_at": scanned_at or self.tick(),
            "ip_address": ip_address,
            "user_agent": "pytest",
            "status": "verified",
        }
        self.verifications.append(row)
        return dict(row)

    # certificates.repository

    async def insert_qr_code(self, *, title: str, client_name: str, data: dict) -> dict:
        row = self.add_qr_code(title=title, client_name=client_name)
        self.qr_codes[row["id"]]["data"] = dict(data)
        return dict(self.qr_codes[row["id"]])

    async def set_qr_code_image(self, qr_id: UUID, *, image: str) -> dict | None:
        row = self.qr_codes.get(qr_id)
        if row is None:
            return None
        row["qr_code_image"] = image
        return dict(row)

    async def delete_qr_code(self, qr_id: UUID) -> None:
        self.qr_codes.pop(qr_id, None)

    async def get_qr_code(self, qr_id: UUID) -> dict | None:
        row = self.qr_codes.get(qr_id)
        return dict(row) if row is not None else None

    async def list_qr_codes(self) -> list[dict]:
        rows = sorted(self.qr_codes.values(), key=lambda r: r["created_at"], reverse=True)
        return [
            {
                "id": r["id"],
                "title": r["title"],
                "client_name": r["client_name"],
                "created_at": r["created_at"],
                "is_active": r["is_active"],
                "verification_count": sum(1 for v in self.verifications if v["qr_id"] == r["id"]),
            }
            for r in rows
        ]

    async def toggle_qr_code_active(self, qr_id: UUID) -> dict | None:
        row = self.qr_codes.get(qr_id)
        if row is None:
            return None
        row["is_active"] = not row["is_active"]
        return dict(row)

    # verification.repository

    async def get_active_qr_code(self, qr_id: UUID) -> dict | None:
        row = self.qr_codes.get(qr_id)
        if row is None or not row["is_active"]:
            return None
        return {k: v for k, v in row.items() if k != "qr_code_image"}

    async def insert_verification(
        self,
        qr_id: UUID,
        *,
        ip_address: str,
        user_agent: str,
        status: str = "verified",
    ) -> dict:
        if self.fail_verification_insert:
            raise RuntimeError("insert failed")
        row = self.add_verification(qr_id, ip_address=ip_address)
        self.verifications[-1]["user_agent"] = user_agent
        self.verifications[-1]["status"] = status
        return dict(self.verifications[-1])

    # dashboard.repository

    async def list_verifications(self, *, limit: int | None = None) -> list[dict]:
        rows = sorted(self.verifications, key=lambda r: r["scanned_at"], reverse=True)
        if limit is not None:
            rows = rows[:limit]
        out = []
        for v in rows:
            qr = self.qr_codes.get(v["qr_id"]) or {}
            out.append({**v, "qr_title": qr.get("title"), "qr_client_name": qr.get("client_name")})
        return out

    async def count_qr_codes(self, *, active_only: bool = False) -> int:
        return sum(1 for r in self.qr_codes.values() if r["is_active"] or not active_only)

    async def count_verifications(self, *, since: datetime | None = None, until: datetime | None = None) -> int:
        return sum(
            1
            for v in self.verifications
            if (since is None or v["scanned_at"] >= since) and (until is None or v["scanned_at"] < until)
        )

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "insert_qr_code",
            "set_qr_code_image",
            "delete_qr_code",
            "get_qr_code",
            "list_qr_codes",
            "toggle_qr_code_active",
        ):
            monkeypatch.setattr(certificates_repository, name, getattr(self, name))
        for name in ("get_active_qr_code", "insert_verification"):
            monkeypatch.setattr(verification_repository, name, getattr(self, name))
        for name in ("list_verifications", "count_qr_codes", "count_verifications"):
            monkeypatch.setattr(dashboard_repository, name, getattr(self, name))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PUBLIC_BASE_URL", "DISPLAY_TIMEZONE", "MAILER_URL", "JWT_SECRET", "JWT_ALG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    fake = FakeStore()
    fake.install(monkeypatch)
    return fake


@pytest.fixture
def auth_headers(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    async def get_user_by_id(user_id: int) -> dict | None:
        return dict(TEST_USER) if user_id == TEST_USER["id"] else None

    monkeypatch.setattr(auth_repository, "get_user_by_id", get_user_by_id)
    token = security.build_access_token(user_id=TEST_USER["id"], email=TEST_USER["email"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client() -> TestClient:
    # Not entered as a context manager, so the DB lifespan never runs.
    return TestClient(main.app)
