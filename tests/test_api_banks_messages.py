"""
Bank registry and message inbox endpoints.
"""
import pytest

from conftest import assign, make_group, make_member, member_headers
from models import Message


@pytest.fixture
def alice(db):
    return make_member(db, "Alice", "Kromo", email="alice@example.com")


BANK = {"bank_name": "Finabank", "short_name": "FINA", "bank_address": "Paramaribo"}


class TestBanksApi:
    """Everyone signed in reads; administrators write."""

    def test_admin_creates_and_anyone_lists(self, client, admin_headers, alice):
        response = client.post("/api/banks", json=BANK, headers=admin_headers)
        assert response.status_code == 201
        bank_id = response.json()["id"]

        listed = client.get("/api/banks", headers=member_headers(alice.id))
        assert listed.status_code == 200
        assert [b["short_name"] for b in listed.json()] == ["FINA"]
        assert client.get(f"/api/banks/{bank_id}", headers=member_headers(alice.id)).status_code == 200

    def test_staff_cannot_create(self, client, staff_headers):
        assert client.post("/api/banks", json=BANK, headers=staff_headers).status_code == 403

    def test_duplicate_is_conflict(self, client, admin_headers):
        client.post("/api/banks", json=BANK, headers=admin_headers)
        response = client.post("/api/banks", json={**BANK, "bank_name": "Finabank N.V."}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_update_and_delete(self, client, admin_headers):
        bank_id = client.post("/api/banks", json=BANK, headers=admin_headers).json()["id"]

        updated = client.put(f"/api/banks/{bank_id}", json={**BANK, "bank_address": "Kernkampweg"}, headers=admin_headers)
        assert updated.json()["bank_address"] == "Kernkampweg"

        assert client.delete(f"/api/banks/{bank_id}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/banks/{bank_id}", headers=admin_headers).status_code == 404


class TestMessagesApi:
    """Members send and read; administrators decide."""

    def test_member_sends_and_admin_decides(self, client, alice, admin_headers):
        response = client.post(
            "/api/messages",
            json={"request_type": "change_info", "request_details": "New address"},
            headers=member_headers(alice.id),
        )
        assert response.status_code == 201
        message_id = response.json()["id"]
        assert response.json()["member_name"] == "Alice Kromo"

        assert client.get("/api/messages/unread-count", headers=admin_headers).json() == {"count": 1}

        decided = client.put(
            f"/api/messages/{message_id}/status",
            json={"status": "approved", "admin_notes": "Updated"},
            headers=admin_headers,
        )
        assert decided.status_code == 200
        assert decided.json()["status"] == "approved"
        assert client.get("/api/messages/unread-count", headers=admin_headers).json() == {"count": 0}

    def test_invalid_type_rejected(self, client, alice):
        response = client.post(
            "/api/messages",
            json={"request_type": "lottery", "request_details": "x"},
            headers=member_headers(alice.id),
        )
        assert response.status_code == 422

    def test_member_sees_only_own(self, client, alice, db):
        bram = make_member(db, "Bram", "Pinas")
        assert client.get(f"/api/messages/member/{alice.id}", headers=member_headers(alice.id)).status_code == 200
        assert client.get(f"/api/messages/member/{bram.id}", headers=member_headers(alice.id)).status_code == 403

    def test_mark_read_twice_conflicts(self, client, alice):
        headers = member_headers(alice.id)
        message_id = client.post(
            "/api/messages", json={"request_type": "delete_account", "request_details": "Bye"}, headers=headers
        ).json()["id"]

        assert client.put(f"/api/messages/{message_id}/read", headers=headers).json()["status"] == "read"
        again = client.put(f"/api/messages/{message_id}/read", headers=headers)
        assert again.status_code == 409
        assert again.json()["error"] == "Only pending messages can be marked as read"

    def test_listing_is_admin_only(self, client, staff_headers, admin_headers):
        assert client.get("/api/messages", headers=staff_headers).status_code == 403
        assert client.get("/api/messages", headers=admin_headers).status_code == 200


class TestNotificationsInInbox:
    """Payments and requests leave messages behind."""

    def test_recorded_payment_leaves_member_message(self, client, alice, staff_headers, db):
        group = make_group(db)
        assign(db, group, alice, "2025-03")
        response = client.post("/api/payments", json={
            "group_id": group.id,
            "member_id": alice.id,
            "amount": "500.00",
            "payment_date": "2025-03-05",
            "payment_month": "2025-03",
            "slot": "2025-03",
            "payment_type": "cash",
        }, headers=staff_headers)
        assert response.status_code == 201

        messages = client.get(f"/api/messages/member/{alice.id}", headers=member_headers(alice.id)).json()
        assert len(messages) == 1
        assert messages[0]["request_type"] == "payment_notification"
        assert messages[0]["status"] == "approved"

    def test_submitted_request_leaves_admin_message(self, client, alice, admin_headers, db):
        group = make_group(db)
        assign(db, group, alice, "2025-05")
        response = client.post("/api/payment-requests", json={
            "group_id": group.id,
            "amount": "500.00",
            "payment_date": "2025-03-09",
            "slot": "2025-05",
            "payment_type": "cash",
        }, headers=member_headers(alice.id))
        assert response.status_code == 201
        request_id = response.json()["id"]

        message = db.query(Message).one()
        assert message.status == "pending"
        assert message.request_details == (
            f"New payment request submitted by Alice Kromo for group Kasmoni A. Request ID: {request_id}"
        )
        assert client.get("/api/messages/unread-count", headers=admin_headers).json() == {"count": 1}
