"""
Payment lifecycle tests: creation, edits, bulk entry, trashbox and archive.
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import assign, make_group, make_member, make_payment
from models import Payment, PaymentArchive, PaymentLog, PaymentTrashbox
from schemas.payment import BulkPaymentItem, PaymentCreate, PaymentUpdate
from services.audit_service import ClientInfo, PaymentLogWriter
from services.exceptions import (
    BulkOperationError,
    ConflictError,
    InvalidAssignmentError,
    NotFoundError,
    TransactionFailedError,
)
from services.payment_service import PaymentService

CLIENT = ClientInfo(ip_address="10.0.0.7", user_agent="pytest")


@pytest.fixture
def setup(db):
    group = make_group(db)
    alice = make_member(db, "Alice", "Kromo")
    bram = make_member(db, "Bram", "Pinas")
    assign(db, group, alice, "2025-03")
    assign(db, group, bram, "2025-04")
    return group, alice, bram


def _create_data(group, member, slot, **overrides):
    values = dict(
        group_id=group.id,
        member_id=member.id,
        amount=Decimal("500.00"),
        payment_date=date(2025, 3, 5),
        payment_month="2025-03",
        slot=slot,
        payment_type="bank_transfer",
        sender_bank="Hakrinbank",
        receiver_bank="Finabank",
    )
    values.update(overrides)
    return values


def _logs(db, action):
    return db.query(PaymentLog).filter(PaymentLog.action == action).all()


class TestCreatePayment:
    """Single payment creation and its preconditions."""

    def test_creates_payment_with_default_status(self, db, setup, staff):
        group, alice, _ = setup
        payment = PaymentService.create_payment(db, PaymentCreate(**_create_data(group, alice, "2025-03")), staff, CLIENT)

        assert payment.id is not None
        assert payment.status == "not_paid"
        log = _logs(db, "created")[0]
        assert log.payment_id == payment.id
        assert log.performed_by_username == "clerk"
        assert log.ip_address == "10.0.0.7"
        assert log.new_amount == Decimal("500.00")

    def test_unassigned_slot_rejected_and_nothing_inserted(self, db, setup, staff):
        group, alice, _ = setup
        with pytest.raises(InvalidAssignmentError) as exc_info:
            PaymentService.create_payment(db, PaymentCreate(**_create_data(group, alice, "2025-04")), staff)
        assert exc_info.value.message == "Invalid slot for this member in this group"
        assert db.query(Payment).count() == 0
        assert db.query(PaymentLog).count() == 0

    def test_member_outside_group_rejected(self, db, setup, staff):
        group, _, _ = setup
        outsider = make_member(db, "Carla", "Vos")
        with pytest.raises(InvalidAssignmentError) as exc_info:
            PaymentService.create_payment(db, PaymentCreate(**_create_data(group, outsider, "2025-03")), staff)
        assert exc_info.value.message == "Member is not part of this group"

    def test_unknown_group_is_not_found(self, db, setup, staff):
        group, alice, _ = setup
        data = _create_data(group, alice, "2025-03", group_id=999)
        with pytest.raises(NotFoundError):
            PaymentService.create_payment(db, PaymentCreate(**data), staff)


class TestEditPayment:
    """Full edits and status changes."""

    def test_update_logs_old_and_new_values(self, db, setup, staff):
        group, alice, _ = setup
        payment = make_payment(db, group, alice, "2025-03", amount="500.00")
        data = PaymentUpdate(**_create_data(group, alice, "2025-03", amount=Decimal("650.00"), status="received"))

        updated = PaymentService.update_payment(db, payment.id, data, staff, CLIENT)

        assert updated.amount == Decimal("650.00")
        assert updated.status == "received"
        log = _logs(db, "updated")[0]
        assert log.old_amount == Decimal("500.00")
        assert log.new_amount == Decimal("650.00")
        assert log.old_status == "not_paid"
        assert log.new_status == "received"

    def test_reassignment_logs_slot_member_and_group(self, db, setup, staff):
        group, alice, bram = setup
        payment = make_payment(db, group, alice, "2025-03")
        data = PaymentUpdate(**_create_data(group, bram, "2025-04"))

        PaymentService.update_payment(db, payment.id, data, staff, CLIENT)

        log = _logs(db, "updated")[0]
        assert (log.old_slot, log.new_slot) == ("2025-03", "2025-04")
        assert (log.old_member_id, log.new_member_id) == (alice.id, bram.id)
        assert (log.old_group_id, log.new_group_id) == (group.id, group.id)
        assert log.member_id == bram.id

    def test_update_rechecks_assignment(self, db, setup, staff):
        group, alice, _ = setup
        payment = make_payment(db, group, alice, "2025-03")
        data = PaymentUpdate(**_create_data(group, alice, "2025-04"))
        with pytest.raises(InvalidAssignmentError):
            PaymentService.update_payment(db, payment.id, data, staff)
        assert db.get(Payment, payment.id).slot == "2025-03"

    def test_status_change_records_transition(self, db, setup, staff):
        group, alice, _ = setup
        payment = make_payment(db, group, alice, "2025-03", status="pending")

        PaymentService.set_payment_status(db, payment.id, "settled", staff, CLIENT)

        assert db.get(Payment, payment.id).status == "settled"
        log = _logs(db, "status_changed")[0]
        assert (log.old_status, log.new_status) == ("pending", "settled")

    def test_status_change_of_missing_payment(self, db, setup, staff):
        with pytest.raises(NotFoundError):
            PaymentService.set_payment_status(db, 12345, "settled", staff)


class TestBulkPayments:
    """Bulk entry is all or nothing."""

    def _item(self, member, slot, **overrides):
        values = dict(
            member_id=member.id,
            amount=Decimal("500.00"),
            payment_date=date(2025, 3, 6),
            slot=slot,
            payment_type="cash",
        )
        values.update(overrides)
        return BulkPaymentItem(**values)

    def test_creates_every_item_and_logs_once(self, db, setup, staff):
        group, alice, bram = setup
        items = [self._item(alice, "2025-03", status="received"), self._item(bram, "2025-04")]

        saved = PaymentService.create_bulk_payments(db, group.id, "2025-03", items, staff, CLIENT)

        assert len(saved) == 2
        assert {p.status for p in saved} == {"received", "not_paid"}
        logs = _logs(db, "bulk_created")
        assert len(logs) == 1
        assert logs[0].bulk_payment_count == 2

    def test_existing_slot_payment_is_updated_in_place(self, db, setup, staff):
        group, alice, _ = setup
        existing = make_payment(db, group, alice, "2025-03", status="not_paid")

        PaymentService.create_bulk_payments(
            db, group.id, "2025-03", [self._item(alice, "2025-03", status="received")], staff
        )

        assert db.query(Payment).count() == 1
        assert db.get(Payment, existing.id).status == "received"

    def test_one_invalid_item_rolls_back_whole_batch(self, db, setup, staff):
        group, alice, bram = setup
        items = [
            self._item(alice, "2025-03"),
            self._item(bram, "2025-09"),
            self._item(alice, "2025-03"),
        ]
        with pytest.raises(BulkOperationError) as exc_info:
            PaymentService.create_bulk_payments(db, group.id, "2025-03", items, staff)

        assert db.query(Payment).count() == 0
        failures = exc_info.value.failures
        assert [f["index"] for f in failures] == [1]
        assert failures[0]["member_id"] == bram.id
        assert failures[0]["error"] == "Invalid slot for this member in this group"

    def test_validation_reports_errors_per_index(self, db, setup):
        group, alice, bram = setup
        results = PaymentService.validate_bulk_payments(
            db, group.id, [self._item(alice, "2025-03"), self._item(bram, "2025-03")]
        )
        assert results[0]["errors"] == []
        assert results[1]["errors"] == ["Invalid slot for this member in this group"]
        assert db.query(Payment).count() == 0


class TestTrashbox:
    """Soft delete, restore and permanent delete."""

    def test_soft_delete_moves_row_and_logs(self, db, setup, staff):
        group, alice, _ = setup
        payment = make_payment(db, group, alice, "2025-03", status="received")
        payment_id = payment.id

        entry = PaymentService.soft_delete_payment(db, payment_id, staff, CLIENT, reason="Duplicate entry")

        assert db.get(Payment, payment_id) is None
        assert db.query(PaymentTrashbox).count() == 1
        assert entry.original_id == payment_id
        assert entry.deleted_by_username == "clerk"
        assert entry.deletion_reason == "Duplicate entry"
        assert entry.status == "received"
        logs = _logs(db, "deleted")
        assert len(logs) == 1
        assert logs[0].payment_id == payment_id
        assert logs[0].old_status == "received"

    def test_soft_delete_rolls_back_when_log_write_fails(self, db, setup, staff, monkeypatch):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03", status="received").id

        def failing_log(self, *args, **kwargs):
            raise SQLAlchemyError("payment_logs unavailable")

        monkeypatch.setattr(PaymentLogWriter, "payment_deleted", failing_log)

        with pytest.raises(TransactionFailedError):
            PaymentService.soft_delete_payment(db, payment_id, staff, CLIENT)

        assert db.get(Payment, payment_id) is not None
        assert db.query(PaymentTrashbox).count() == 0
        assert db.query(PaymentLog).count() == 0

    def test_soft_delete_missing_payment(self, db, setup, staff):
        with pytest.raises(NotFoundError):
            PaymentService.soft_delete_payment(db, 999, staff)
        assert db.query(PaymentTrashbox).count() == 0

    def test_restore_reuses_original_id(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id
        entry = PaymentService.soft_delete_payment(db, payment_id, staff)

        restored = PaymentService.restore_from_trashbox(db, entry.id, staff)

        assert restored.id == payment_id
        assert db.query(PaymentTrashbox).count() == 0
        assert len(_logs(db, "restored")) == 1

    def test_restore_conflicts_with_live_id(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id
        entry = PaymentService.soft_delete_payment(db, payment_id, staff)
        db.add(Payment(id=payment_id, **entry.snapshot()))
        db.commit()

        with pytest.raises(ConflictError):
            PaymentService.restore_from_trashbox(db, entry.id, staff)
        assert db.query(PaymentTrashbox).count() == 1

    def test_bulk_restore_reports_failures(self, db, setup, staff):
        group, alice, _ = setup
        entry = PaymentService.soft_delete_payment(db, make_payment(db, group, alice, "2025-03").id, staff)

        result = PaymentService.bulk_restore_from_trashbox(db, [entry.id, 777], staff)

        assert result["restored"] == 1
        assert result["errors"] == [{"id": 777, "error": "Payment not found in trashbox"}]

    def test_permanent_delete(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id
        entry = PaymentService.soft_delete_payment(db, payment_id, staff)

        PaymentService.permanently_delete_from_trashbox(db, entry.id, staff)

        assert db.query(PaymentTrashbox).count() == 0
        log = _logs(db, "permanently_deleted")[0]
        assert log.payment_id == payment_id

    def test_bulk_permanent_delete_counts_existing_entries(self, db, setup, staff):
        group, alice, bram = setup
        first = PaymentService.soft_delete_payment(db, make_payment(db, group, alice, "2025-03").id, staff)
        second = PaymentService.soft_delete_payment(db, make_payment(db, group, bram, "2025-04").id, staff)

        deleted = PaymentService.bulk_permanently_delete_from_trashbox(db, [first.id, second.id, 999], staff)

        assert deleted == 2
        assert db.query(PaymentTrashbox).count() == 0


class TestArchive:
    """Archiving and leaving the archive."""

    def test_archive_moves_payment(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id

        entry = PaymentService.archive_payment(db, payment_id, staff, CLIENT, reason="Season closed")

        assert db.get(Payment, payment_id) is None
        assert entry.original_id == payment_id
        assert entry.archived_by_username == "clerk"
        log = _logs(db, "archived")[0]
        assert log.details == "Payment archived: Season closed"

    def test_archiving_twice_conflicts(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id
        PaymentService.archive_payment(db, payment_id, staff)

        with pytest.raises(ConflictError) as exc_info:
            PaymentService.archive_payment(db, payment_id, staff)

        assert exc_info.value.message == "Payment is already archived"
        assert db.query(PaymentArchive).count() == 1

    def test_archive_missing_payment(self, db, setup, staff):
        with pytest.raises(NotFoundError):
            PaymentService.archive_payment(db, 4242, staff)

    def test_archive_rolls_back_when_log_write_fails(self, db, setup, staff, monkeypatch):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id

        def failing_log(self, *args, **kwargs):
            raise SQLAlchemyError("payment_logs unavailable")

        monkeypatch.setattr(PaymentLogWriter, "payment_archived", failing_log)

        with pytest.raises(TransactionFailedError):
            PaymentService.archive_payment(db, payment_id, staff, CLIENT)

        assert db.get(Payment, payment_id) is not None
        assert db.query(PaymentArchive).count() == 0
        assert db.query(PaymentLog).count() == 0

    def test_bulk_archive_aborts_on_already_archived_row(self, db, setup, staff):
        group, alice, bram = setup
        archived_id = make_payment(db, group, alice, "2025-03").id
        PaymentService.archive_payment(db, archived_id, staff)
        live_id = make_payment(db, group, bram, "2025-04").id

        with pytest.raises(BulkOperationError) as exc_info:
            PaymentService.bulk_archive_payments(db, [live_id, archived_id], staff)

        failure = exc_info.value.failures[0]
        assert failure["index"] == 1
        assert failure["error"] == "Payment is already archived"
        assert db.get(Payment, live_id) is not None
        assert db.query(PaymentArchive).count() == 1

    def test_bulk_archive_aborts_on_missing_row(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id

        with pytest.raises(BulkOperationError) as exc_info:
            PaymentService.bulk_archive_payments(db, [payment_id, 999], staff)

        assert exc_info.value.failures[0]["index"] == 1
        assert db.query(PaymentArchive).count() == 0
        assert db.get(Payment, payment_id) is not None

    def test_bulk_archive(self, db, setup, staff):
        group, alice, bram = setup
        ids = [make_payment(db, group, alice, "2025-03").id, make_payment(db, group, bram, "2025-04").id]
        entries = PaymentService.bulk_archive_payments(db, ids, staff, reason="Year end")
        assert len(entries) == 2
        assert db.query(Payment).count() == 0

    def test_restore_from_archive_gets_new_id(self, db, setup, staff):
        group, alice, _ = setup
        first = make_payment(db, group, alice, "2025-03")
        first_id = first.id
        entry = PaymentService.archive_payment(db, first_id, staff)
        make_payment(db, group, alice, "2025-03")

        restored = PaymentService.restore_from_archive(db, entry.id, staff)

        assert restored.id != first_id
        assert db.query(PaymentArchive).count() == 0
        log = _logs(db, "restored")[0]
        assert log.details == f"Restored from archive (original archive ID: {entry.id})"

    def test_move_archive_to_trashbox(self, db, setup, staff):
        group, alice, _ = setup
        payment_id = make_payment(db, group, alice, "2025-03").id
        entry = PaymentService.archive_payment(db, payment_id, staff, reason="Old")

        trashed = PaymentService.move_archive_to_trashbox(db, entry.id, staff)

        assert trashed.original_id == payment_id
        assert trashed.deletion_reason == "Moved from archive: Old"
        assert db.query(PaymentArchive).count() == 0
        assert len(_logs(db, "deleted")) == 1

    def test_bulk_archive_restore_is_all_or_nothing(self, db, setup, staff):
        group, alice, _ = setup
        entry = PaymentService.archive_payment(db, make_payment(db, group, alice, "2025-03").id, staff)

        with pytest.raises(BulkOperationError):
            PaymentService.bulk_restore_from_archive(db, [entry.id, 31337], staff)

        assert db.query(PaymentArchive).count() == 1
        assert db.query(Payment).count() == 0

    def test_bulk_move_archive_to_trashbox(self, db, setup, staff):
        group, alice, bram = setup
        first = PaymentService.archive_payment(db, make_payment(db, group, alice, "2025-03").id, staff)
        second = PaymentService.archive_payment(db, make_payment(db, group, bram, "2025-04").id, staff)

        moved = PaymentService.bulk_move_archive_to_trashbox(db, [first.id, second.id], staff, reason="Cleanup")

        assert moved == 2
        assert {t.deletion_reason for t in db.query(PaymentTrashbox).all()} == {"Cleanup"}
