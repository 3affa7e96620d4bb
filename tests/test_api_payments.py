"""
Payment endpoints, end to end through the FastAPI app.
"""
from decimal import Decimal

import pytest

from conftest import assign, make_group, make_member, make_payment
from models import Payment, PaymentArchive, PaymentTrashbox


@pytest.fixture
def setup(db):
    group = make_group(db)
    alice = make_member(db, "Alice", "Kromo", email="alice@example.com")
    bram = make_member(db, "Bram", "Pinas")
    assign(db, group, alice, "2025-03")
    assign(db, group, bram, "2025-04")
    return group, alice, bram


def _payload(group, member, slot, **overrides):
    body = {
        "group_id": group.id,
        "member_id": member.id,
        "amount": "500.00",
        "payment_date": "2025-03-05",
        "payment_month": "2025-03",
        "slot": slot,
        "payment_type": "cash",
    }
    body.update(overrides)
    return body


class TestCreateAndRead:
    """POST /api/payments and the listing."""

    def test_create_returns_201_and_notifies(self, client, setup, staff_headers, notifier):
        group, alice, _ = setup
        response = client.post(
            "/api/payments", json=_payload(group, alice, "2025-03", status="received"), headers=staff_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "received"
        assert Decimal(data["amount"]) == Decimal("500")
        assert len(notifier.sent) == 1
        assert notifier.sent[0].email == "alice@example.com"

    def test_invalid_slot_error_shape(self, client, setup, staff_headers, db):
        group, alice, _ = setup
        response = client.post("/api/payments", json=_payload(group, alice, "2025-04"), headers=staff_headers)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Invalid slot for this member in this group",
            "code": "INVALID_ASSIGNMENT",
        }
        assert db.query(Payment).count() == 0

    def test_malformed_period_rejected(self, client, setup, staff_headers):
        group, alice, _ = setup
        response = client.post(
            "/api/payments", json=_payload(group, alice, "2025-3"), headers=staff_headers
        )
        assert response.status_code == 422

    def test_list_filters_by_status(self, client, setup, staff_headers, db):
        group, alice, bram = setup
        make_payment(db, group, alice, "2025-03", status="received")
        make_payment(db, group, bram, "2025-04", status="pending")

        response = client.get("/api/payments", params={"status": "pending"}, headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["payments"][0]["member_id"] == bram.id

    def test_get_missing_payment(self, client, setup, staff_headers):
        response = client.get("/api/payments/999", headers=staff_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Payment not found"

    def test_status_patch(self, client, setup, staff_headers, db):
        group, alice, _ = setup
        payment = make_payment(db, group, alice, "2025-03", status="pending")

        response = client.patch(
            f"/api/payments/{payment.id}/status", json={"status": "settled"}, headers=staff_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "settled"


class TestBulkEndpoints:
    """Bulk validation and entry."""

    def _batch(self, group, *rows):
        return {
            "group_id": group.id,
            "payment_month": "2025-03",
            "payments": [
                {
                    "member_id": member.id,
                    "amount": "500.00",
                    "payment_date": "2025-03-06",
                    "slot": slot,
                    "payment_type": "cash",
                    "status": "received",
                }
                for member, slot in rows
            ],
        }

    def test_bulk_create(self, client, setup, staff_headers, notifier):
        group, alice, bram = setup
        response = client.post(
            "/api/payments/bulk", json=self._batch(group, (alice, "2025-03"), (bram, "2025-04")), headers=staff_headers
        )

        assert response.status_code == 201
        assert len(response.json()) == 2
        assert len(notifier.sent) == 2

    def test_bulk_failure_lists_indexes(self, client, setup, staff_headers, db, notifier):
        group, alice, bram = setup
        response = client.post(
            "/api/payments/bulk", json=self._batch(group, (alice, "2025-03"), (bram, "2025-03")), headers=staff_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "BULK_OPERATION_FAILED"
        assert [f["index"] for f in body["failures"]] == [1]
        assert db.query(Payment).count() == 0
        assert notifier.sent == []

    def test_bulk_validate_writes_nothing(self, client, setup, staff_headers, db):
        group, alice, bram = setup
        response = client.post(
            "/api/payments/bulk/validate",
            json=self._batch(group, (alice, "2025-03"), (bram, "2025-03")),
            headers=staff_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["data"][1]["errors"] == ["Invalid slot for this member in this group"]
        assert db.query(Payment).count() == 0


class TestTrashboxAndArchive:
    """Moving payments out of the live table and back."""

    def test_delete_then_restore(self, client, setup, staff_headers, db):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id

        deleted = client.delete(f"/api/payments/{payment_id}", params={"reason": "typo"}, headers=staff_headers)
        assert deleted.status_code == 200
        assert deleted.json()["deletion_reason"] == "typo"
        assert deleted.json()["deleted_by_username"] == "clerk"

        trashbox = client.get("/api/payments/trashbox", headers=staff_headers).json()
        assert [entry["original_id"] for entry in trashbox] == [payment_id]

        restored = client.post(f"/api/payments/trashbox/{trashbox[0]['id']}/restore", headers=staff_headers)
        assert restored.status_code == 200
        assert restored.json()["id"] == payment_id

    def test_permanent_delete(self, client, setup, staff_headers, db):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id
        entry_id = client.delete(f"/api/payments/{payment_id}", headers=staff_headers).json()["id"]

        response = client.delete(f"/api/payments/trashbox/{entry_id}", headers=staff_headers)

        assert response.status_code == 204
        assert db.query(PaymentTrashbox).count() == 0

    def test_archive_twice_conflicts(self, client, setup, staff_headers, db):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id

        first = client.post(
            f"/api/payments/{payment_id}/archive", json={"archive_reason": "Season closed"}, headers=staff_headers
        )
        second = client.post(f"/api/payments/{payment_id}/archive", headers=staff_headers)

        assert first.status_code == 200
        assert first.json()["archive_reason"] == "Season closed"
        assert second.status_code == 409
        assert db.query(PaymentArchive).count() == 1

    def test_bulk_archive_and_restore(self, client, setup, staff_headers, db):
        group, alice, bram = setup
        ids = [make_payment(db, group, alice, "2025-03").id, make_payment(db, group, bram, "2025-04").id]

        archived = client.post("/api/payments/bulk-archive", json={"payment_ids": ids}, headers=staff_headers)
        assert archived.status_code == 200
        archive_ids = [entry["id"] for entry in archived.json()]

        restored = client.post(
            "/api/payments/archive/bulk-restore", json={"archive_ids": archive_ids}, headers=staff_headers
        )
        assert restored.status_code == 200
        assert len(restored.json()) == 2
        assert db.query(PaymentArchive).count() == 0


class TestReadModels:
    """Overdue list and slot views."""

    def test_group_slots(self, client, setup, staff_headers, db):
        group, alice, _ = setup
        make_payment(db, group, alice, "2025-03", status="received")

        response = client.get(f"/api/payments/group-slots/{group.id}", headers=staff_headers)

        assert response.status_code == 200
        rows = {row["first_name"]: row for row in response.json()}
        assert rows["Alice"]["has_paid"] is True
        assert rows["Bram"]["has_paid"] is False
