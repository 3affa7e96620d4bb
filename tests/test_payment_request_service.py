"""
Member payment requests: submission and the one-time review.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import update

from conftest import assign, make_group, make_member
from models import Payment, PaymentLog, PaymentRequest
from schemas.payment_request import PaymentRequestCreate, PaymentRequestReview
from services import payment_request_service
from services.exceptions import ConflictError, InvalidAssignmentError, NotFoundError

NOW = datetime(2025, 3, 10, 9, 30)


@pytest.fixture
def slot_holder(db):
    group = make_group(db)
    member = make_member(db, "Alice", "Kromo", email="alice@example.com")
    assign(db, group, member, "2025-05")
    return group, member


def _request_data(group, slot="2025-05", **overrides):
    values = dict(
        group_id=group.id,
        amount=Decimal("500.00"),
        payment_date=date(2025, 3, 9),
        slot=slot,
        payment_type="bank_transfer",
        sender_bank="Hakrinbank",
        receiver_bank="Finabank",
        request_notes="Paid via mobile banking",
    )
    values.update(overrides)
    return PaymentRequestCreate(**values)


class TestSubmitRequest:
    """Members filing requests for their own slots."""

    def test_billed_to_current_month(self, db, slot_holder):
        group, member = slot_holder
        request = payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)

        assert request.payment_month == "2025-03"
        assert request.status == "pending_approval"
        assert request.member_id == member.id
        assert payment_request_service.pending_count(db) == 1

    def test_slot_not_held_is_rejected(self, db, slot_holder):
        group, member = slot_holder
        with pytest.raises(InvalidAssignmentError) as exc_info:
            payment_request_service.submit_request(db, member.id, _request_data(group, slot="2025-06"), now=NOW)
        assert exc_info.value.message == "Invalid group/slot combination for this member"
        assert db.query(PaymentRequest).count() == 0

    def test_second_pending_request_conflicts(self, db, slot_holder):
        group, member = slot_holder
        payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)
        with pytest.raises(ConflictError):
            payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)

    def test_new_month_allows_new_request(self, db, slot_holder):
        group, member = slot_holder
        payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)
        payment_request_service.submit_request(db, member.id, _request_data(group), now=datetime(2025, 4, 2))
        assert db.query(PaymentRequest).count() == 2

    def test_eligible_slots(self, db, slot_holder):
        group, member = slot_holder
        slots = payment_request_service.eligible_slots(db, member.id)
        assert slots == [{
            "group_id": group.id,
            "slot": "2025-05",
            "group_name": "Kasmoni A",
            "monthly_amount": Decimal("500.00"),
        }]


class TestReviewRequest:
    """Approval books exactly one pending payment; rejection books nothing."""

    def test_approval_with_corrected_amount(self, db, slot_holder, admin):
        group, member = slot_holder
        request = payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)

        reviewed, payment = payment_request_service.review_request(
            db, request.id, PaymentRequestReview(status="approved", amount=Decimal("600.00")), admin
        )

        assert reviewed.status == "approved"
        assert reviewed.reviewed_by == admin.id
        assert reviewed.reviewed_by_username == "admin"
        assert reviewed.reviewed_at is not None
        assert payment.status == "pending"
        assert payment.amount == Decimal("600.00")
        assert payment.payment_month == "2025-03"
        assert payment.slot == "2025-05"
        assert db.query(Payment).count() == 1
        assert db.query(PaymentLog).filter(PaymentLog.action == "created").count() == 1

    def test_rejection_books_nothing(self, db, slot_holder, admin):
        group, member = slot_holder
        request = payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)

        reviewed, payment = payment_request_service.review_request(
            db, request.id, PaymentRequestReview(status="rejected", admin_notes="No transfer found"), admin
        )

        assert payment is None
        assert reviewed.status == "rejected"
        assert reviewed.admin_notes == "No transfer found"
        assert db.query(Payment).count() == 0
        assert payment_request_service.pending_count(db) == 0

    def test_reviewed_only_once(self, db, slot_holder, admin):
        group, member = slot_holder
        request = payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)
        payment_request_service.review_request(db, request.id, PaymentRequestReview(status="approved"), admin)

        with pytest.raises(ConflictError) as exc_info:
            payment_request_service.review_request(db, request.id, PaymentRequestReview(status="rejected"), admin)

        assert exc_info.value.message == "Payment request has already been reviewed"
        assert db.query(Payment).count() == 1

    def test_review_after_concurrent_decision_conflicts(self, db, slot_holder, admin):
        """The session still holds the request as pending when another reviewer commits."""
        group, member = slot_holder
        request = payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)
        db.execute(
            update(PaymentRequest.__table__)
            .where(PaymentRequest.__table__.c.id == request.id)
            .values(status="rejected", reviewed_by_username="other-admin")
        )
        db.commit()
        assert request.status == "pending_approval"

        with pytest.raises(ConflictError):
            payment_request_service.review_request(db, request.id, PaymentRequestReview(status="approved"), admin)

        assert db.query(Payment).count() == 0
        stored = db.get(PaymentRequest, request.id)
        assert stored.status == "rejected"
        assert stored.reviewed_by_username == "other-admin"

    def test_unknown_request(self, db, admin):
        with pytest.raises(NotFoundError):
            payment_request_service.review_request(db, 5, PaymentRequestReview(status="approved"), admin)

    def test_list_filters_by_status(self, db, slot_holder, admin):
        group, member = slot_holder
        first = payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)
        payment_request_service.review_request(db, first.id, PaymentRequestReview(status="rejected"), admin)
        payment_request_service.submit_request(db, member.id, _request_data(group), now=NOW)

        pending = payment_request_service.list_requests(db, status="pending_approval")
        assert len(pending) == 1
        assert len(payment_request_service.list_requests(db, member_id=member.id)) == 2
