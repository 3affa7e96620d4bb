# services/payment_service.py
"""
Payment Service - business logic for the payment lifecycle.

Handles payment creation, edits, status changes and bulk entry, and moves
payments between the live table, the trashbox and the archive. Every
mutation leaves a PaymentLog entry:

- create / update / status change / bulk create: the change commits first,
  then the log is written best effort.
- trashbox and archive moves: copy, log and delete run in one transaction.
"""
import logging
from typing import Any, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import atomic
from models import Group, GroupMember, Member, Payment, PaymentArchive, PaymentTrashbox
from models.payment import PaymentStatus
from schemas.payment import BulkPaymentItem, PaymentCreate, PaymentUpdate
from utils.auth import Principal
from .audit_service import ClientInfo, PaymentLogWriter, record_best_effort
from .exceptions import (
     BulkOperationError,
     ConflictError,
     InvalidAssignmentError,
     NotFoundError,
     TransactionFailedError,
)

logger = logging.getLogger(__name__)

# Columns a bulk upsert overwrites on an existing payment
_BULK_UPDATE_FIELDS = (
     "amount",
     "payment_date",
     "payment_month",
     "payment_type",
     "sender_bank",
     "receiver_bank",
     "status",
)


class PaymentService:
     """Service class for payment-related business logic."""

     # ------------------------------------------------------------------
     # Assignment checks
     # ------------------------------------------------------------------

     @staticmethod
     def check_assignment(db: Session, group_id: int, member_id: int, slot: str) -> None:
          """
          Verify a payment may be booked against (group, member, slot).

          Checked in order, first failure wins:
          group exists, member exists, member holds a slot in the group,
          ``slot`` is one of that member's receive months.

          Raises:
               NotFoundError: group or member missing
               InvalidAssignmentError: member or slot not assigned
          """
          if db.get(Group, group_id) is None:
               raise NotFoundError("Group", group_id)
          if db.get(Member, member_id) is None:
               raise NotFoundError("Member", member_id)

          months = [
               month for (month,) in db.query(GroupMember.receive_month).filter(
                    GroupMember.group_id == group_id,
                    GroupMember.member_id == member_id,
               ).all()
          ]
          if not months:
               raise InvalidAssignmentError("Member is not part of this group")
          if slot not in months:
               raise InvalidAssignmentError("Invalid slot for this member in this group")

     @staticmethod
     def assignment_errors(db: Session, group_id: int, member_id: int, slot: str) -> list[str]:
          """Every failing check for (group, member, slot), for dry runs."""
          errors = []
          if db.get(Group, group_id) is None:
               errors.append("Group not found")
          if db.get(Member, member_id) is None:
               errors.append("Member not found")
          slots = db.query(GroupMember).filter(
               GroupMember.group_id == group_id,
               GroupMember.member_id == member_id,
          )
          if slots.first() is None:
               errors.append("Member is not part of this group")
          if slots.filter(GroupMember.receive_month == slot).first() is None:
               errors.append("Invalid slot for this member in this group")
          return errors

     @staticmethod
     def get_payment(db: Session, payment_id: int) -> Payment:
          payment = db.get(Payment, payment_id)
          if payment is None:
               raise NotFoundError("Payment", payment_id)
          return payment

     # ------------------------------------------------------------------
     # Live payments
     # ------------------------------------------------------------------

     @staticmethod
     def create_payment(
          db: Session,
          data: PaymentCreate,
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> Payment:
          """
          Create a payment after checking the slot assignment.

          Returns:
               The created Payment (status defaults to not_paid)

          Raises:
               NotFoundError, InvalidAssignmentError: see check_assignment
          """
          with atomic(db):
               PaymentService.check_assignment(db, data.group_id, data.member_id, data.slot)
               payment = Payment(**data.model_dump())
               db.add(payment)
               db.flush()

          logger.info(
               "payment %s created: group=%s member=%s slot=%s status=%s",
               payment.id, payment.group_id, payment.member_id, payment.slot, payment.status,
          )
          record_best_effort(db, PaymentLogWriter(db, actor, client).payment_created, payment)
          return payment

     @staticmethod
     def update_payment(
          db: Session,
          payment_id: int,
          data: PaymentUpdate,
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> Payment:
          """Replace every editable field of a payment, re-checking the assignment."""
          payment = PaymentService.get_payment(db, payment_id)
          with atomic(db):
               PaymentService.check_assignment(db, data.group_id, data.member_id, data.slot)
               old_values = payment.snapshot()
               for field, value in data.model_dump().items():
                    setattr(payment, field, value)

          logger.info("payment %s updated", payment.id)
          record_best_effort(db, PaymentLogWriter(db, actor, client).payment_updated, old_values, payment)
          return payment

     @staticmethod
     def set_payment_status(
          db: Session,
          payment_id: int,
          status: str,
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> Payment:
          """
          Change only the status. The slot assignment is not re-checked;
          the previous status is read first so the log records old -> new.
          """
          payment = PaymentService.get_payment(db, payment_id)
          old_status = payment.status
          with atomic(db):
               payment.status = status

          logger.info("payment %s status %s -> %s", payment.id, old_status, status)
          record_best_effort(
               db, PaymentLogWriter(db, actor, client).status_changed, payment, old_status, status
          )
          return payment

     # ------------------------------------------------------------------
     # Bulk entry
     # ------------------------------------------------------------------

     @staticmethod
     def validate_bulk_payments(
          db: Session,
          group_id: int,
          items: Sequence[BulkPaymentItem],
     ) -> list[dict[str, Any]]:
          """Dry run: the errors each item would hit, by index. Nothing is written."""
          return [
               {
                    "index": index,
                    "member_id": item.member_id,
                    "errors": PaymentService.assignment_errors(db, group_id, item.member_id, item.slot),
               }
               for index, item in enumerate(items)
          ]

     @staticmethod
     def create_bulk_payments(
          db: Session,
          group_id: int,
          payment_month: str,
          items: Sequence[BulkPaymentItem],
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> list[Payment]:
          """
          Create or update one payment per item in a single transaction.

          An existing payment with the same (group_id, member_id, slot) is
          updated in place instead of duplicated. If any item fails, nothing
          is kept and BulkOperationError lists every failing index.
          """
          saved: list[Payment] = []
          failures: list[dict[str, Any]] = []

          with atomic(db):
               for index, item in enumerate(items):
                    try:
                         PaymentService.check_assignment(db, group_id, item.member_id, item.slot)
                    except (NotFoundError, InvalidAssignmentError) as exc:
                         failures.append({"index": index, "member_id": item.member_id, "error": exc.message})
                         continue

                    values = {
                         "amount": item.amount,
                         "payment_date": item.payment_date,
                         "payment_month": payment_month,
                         "payment_type": item.payment_type,
                         "sender_bank": item.sender_bank,
                         "receiver_bank": item.receiver_bank,
                         "status": item.status or PaymentStatus.NOT_PAID.value,
                    }
                    existing = (
                         db.query(Payment)
                         .filter(
                              Payment.group_id == group_id,
                              Payment.member_id == item.member_id,
                              Payment.slot == item.slot,
                         )
                         .order_by(Payment.id.desc())
                         .first()
                    )
                    if existing is not None:
                         for field in _BULK_UPDATE_FIELDS:
                              setattr(existing, field, values[field])
                         if item.proof_of_payment is not None:
                              existing.proof_of_payment = item.proof_of_payment
                         payment = existing
                    else:
                         payment = Payment(
                              group_id=group_id,
                              member_id=item.member_id,
                              slot=item.slot,
                              proof_of_payment=item.proof_of_payment,
                              **values,
                         )
                         db.add(payment)
                    db.flush()
                    saved.append(payment)

               if failures:
                    raise BulkOperationError("Some payments failed to create", failures)

          logger.info("bulk payment entry: %d payments saved for group %s", len(saved), group_id)
          record_best_effort(db, PaymentLogWriter(db, actor, client).bulk_created, len(saved), group_id)
          return saved

     # ------------------------------------------------------------------
     # Trashbox
     # ------------------------------------------------------------------

     @staticmethod
     def soft_delete_payment(
          db: Session,
          payment_id: int,
          actor: Principal,
          client: Optional[ClientInfo] = None,
          reason: Optional[str] = None,
     ) -> PaymentTrashbox:
          """Copy the payment to the trashbox, log it and remove the live row, atomically."""
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               payment = PaymentService.get_payment(db, payment_id)
               values = payment.snapshot()
               entry = PaymentTrashbox(
                    original_id=payment.id,
                    deleted_by_user_id=actor.id,
                    deleted_by_username=actor.username,
                    deletion_reason=reason,
                    **values,
               )
               db.add(entry)
               writer.payment_deleted(payment.id, values)
               db.delete(payment)
               db.flush()

          logger.info("payment %s moved to trashbox by %s", payment_id, actor.username)
          return entry

     @staticmethod
     def list_trashbox(db: Session) -> list[PaymentTrashbox]:
          return (
               db.query(PaymentTrashbox)
               .order_by(PaymentTrashbox.deleted_at.desc(), PaymentTrashbox.id.desc())
               .all()
          )

     @staticmethod
     def _restore_trashbox_entry(db: Session, trashbox_id: int, writer: PaymentLogWriter) -> Payment:
          entry = db.get(PaymentTrashbox, trashbox_id)
          if entry is None:
               raise NotFoundError("Trashbox payment", trashbox_id, "Payment not found in trashbox")
          if db.get(Payment, entry.original_id) is not None:
               raise ConflictError("A payment with this ID already exists. Cannot restore.")

          payment = Payment(id=entry.original_id, **entry.snapshot())
          db.add(payment)
          db.delete(entry)
          db.flush()
          writer.payment_restored(payment)
          return payment

     @staticmethod
     def restore_from_trashbox(
          db: Session,
          trashbox_id: int,
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> Payment:
          """Put a trashed payment back under its original id."""
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               payment = PaymentService._restore_trashbox_entry(db, trashbox_id, writer)
          logger.info("payment %s restored from trashbox", payment.id)
          return payment

     @staticmethod
     def bulk_restore_from_trashbox(
          db: Session,
          trashbox_ids: Sequence[int],
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> dict[str, Any]:
          """
          Restore each entry in its own transaction. Entries that cannot be
          restored are reported and skipped.
          """
          writer = PaymentLogWriter(db, actor, client)
          restored = 0
          errors = []
          for trashbox_id in trashbox_ids:
               try:
                    with atomic(db):
                         PaymentService._restore_trashbox_entry(db, trashbox_id, writer)
                    restored += 1
               except (NotFoundError, ConflictError, TransactionFailedError) as exc:
                    errors.append({"id": trashbox_id, "error": exc.message})
          logger.info("bulk trashbox restore: %d restored, %d failed", restored, len(errors))
          return {"restored": restored, "errors": errors}

     @staticmethod
     def permanently_delete_from_trashbox(
          db: Session,
          trashbox_id: int,
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> None:
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entry = db.get(PaymentTrashbox, trashbox_id)
               if entry is None:
                    raise NotFoundError("Trashbox payment", trashbox_id, "Payment not found in trashbox")
               writer.permanently_deleted(entry.original_id, entry.snapshot())
               db.delete(entry)
          logger.info("trashbox entry %s permanently deleted", trashbox_id)

     @staticmethod
     def bulk_permanently_delete_from_trashbox(
          db: Session,
          trashbox_ids: Sequence[int],
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> int:
          """Permanently delete every listed entry that exists; returns how many went."""
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entries = db.query(PaymentTrashbox).filter(PaymentTrashbox.id.in_(list(trashbox_ids))).all()
               for entry in entries:
                    writer.permanently_deleted(entry.original_id, entry.snapshot())
                    db.delete(entry)
          logger.info("bulk permanent delete: %d trashbox entries removed", len(entries))
          return len(entries)

     # ------------------------------------------------------------------
     # Archive
     # ------------------------------------------------------------------

     @staticmethod
     def _archive_one(
          db: Session,
          payment_id: int,
          actor: Principal,
          writer: PaymentLogWriter,
          reason: Optional[str],
     ) -> PaymentArchive:
          existing = db.query(PaymentArchive.id).filter(PaymentArchive.original_id == payment_id).first()
          if existing is not None:
               raise ConflictError("Payment is already archived")
          payment = PaymentService.get_payment(db, payment_id)

          entry = PaymentArchive(
               original_id=payment.id,
               archived_by_user_id=actor.id,
               archived_by_username=actor.username,
               archive_reason=reason,
               **payment.snapshot(),
          )
          db.add(entry)
          try:
               db.flush()
          except IntegrityError as exc:
               # Lost a race with a concurrent archive of the same payment
               raise ConflictError("Payment is already archived") from exc

          writer.payment_archived(payment, reason)
          db.delete(payment)
          db.flush()
          return entry

     @staticmethod
     def archive_payment(
          db: Session,
          payment_id: int,
          actor: Principal,
          client: Optional[ClientInfo] = None,
          reason: Optional[str] = None,
     ) -> PaymentArchive:
          """
          Move a payment to the archive.

          Raises:
               ConflictError: an archive entry already references this payment
               NotFoundError: no live payment with this id
          """
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entry = PaymentService._archive_one(db, payment_id, actor, writer, reason)
          logger.info("payment %s archived by %s", payment_id, actor.username)
          return entry

     @staticmethod
     def bulk_archive_payments(
          db: Session,
          payment_ids: Sequence[int],
          actor: Principal,
          client: Optional[ClientInfo] = None,
          reason: Optional[str] = None,
     ) -> list[PaymentArchive]:
          """Archive all payments or none; the first failing row aborts the batch."""
          writer = PaymentLogWriter(db, actor, client)
          entries = []
          with atomic(db):
               for index, payment_id in enumerate(payment_ids):
                    try:
                         entries.append(PaymentService._archive_one(db, payment_id, actor, writer, reason))
                    except (NotFoundError, ConflictError) as exc:
                         raise BulkOperationError(
                              f"Failed to archive payment {payment_id}",
                              [{"index": index, "payment_id": payment_id, "error": exc.message}],
                         ) from exc
          logger.info("bulk archive: %d payments archived", len(entries))
          return entries

     @staticmethod
     def list_archive(db: Session) -> list[PaymentArchive]:
          return (
               db.query(PaymentArchive)
               .order_by(PaymentArchive.archived_at.desc(), PaymentArchive.id.desc())
               .all()
          )

     @staticmethod
     def _get_archive_entry(db: Session, archive_id: int) -> PaymentArchive:
          entry = db.get(PaymentArchive, archive_id)
          if entry is None:
               raise NotFoundError("Archived payment", archive_id)
          return entry

     @staticmethod
     def _restore_archive_entry(db: Session, entry: PaymentArchive, writer: PaymentLogWriter, details: str) -> Payment:
          payment = Payment(**entry.snapshot())
          db.add(payment)
          db.flush()
          writer.payment_restored(payment, details)
          db.delete(entry)
          db.flush()
          return payment

     @staticmethod
     def _trash_archive_entry(
          db: Session,
          entry: PaymentArchive,
          actor: Principal,
          writer: PaymentLogWriter,
          reason: Optional[str],
          details: str,
     ) -> PaymentTrashbox:
          values = entry.snapshot()
          trashed = PaymentTrashbox(
               original_id=entry.original_id,
               deleted_by_user_id=actor.id,
               deleted_by_username=actor.username,
               deletion_reason=reason or f"Moved from archive: {entry.archive_reason or 'No reason provided'}",
               **values,
          )
          db.add(trashed)
          writer.payment_deleted(entry.original_id, values, details)
          db.delete(entry)
          db.flush()
          return trashed

     @staticmethod
     def restore_from_archive(
          db: Session,
          archive_id: int,
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> Payment:
          """Move an archived payment back to the live table under a new id."""
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entry = PaymentService._get_archive_entry(db, archive_id)
               payment = PaymentService._restore_archive_entry(
                    db, entry, writer, f"Restored from archive (original archive ID: {archive_id})"
               )
          logger.info("archive entry %s restored as payment %s", archive_id, payment.id)
          return payment

     @staticmethod
     def move_archive_to_trashbox(
          db: Session,
          archive_id: int,
          actor: Principal,
          client: Optional[ClientInfo] = None,
          reason: Optional[str] = None,
     ) -> PaymentTrashbox:
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entry = PaymentService._get_archive_entry(db, archive_id)
               trashed = PaymentService._trash_archive_entry(
                    db, entry, actor, writer, reason,
                    f"Moved to trashbox from archive (original archive ID: {archive_id})",
               )
          logger.info("archive entry %s moved to trashbox", archive_id)
          return trashed

     @staticmethod
     def _archive_entries_or_fail(db: Session, archive_ids: Sequence[int]) -> list[PaymentArchive]:
          entries = []
          for index, archive_id in enumerate(archive_ids):
               entry = db.get(PaymentArchive, archive_id)
               if entry is None:
                    raise BulkOperationError(
                         f"Archived payment {archive_id} not found",
                         [{"index": index, "archive_id": archive_id, "error": "Archived payment not found"}],
                    )
               entries.append(entry)
          return entries

     @staticmethod
     def bulk_restore_from_archive(
          db: Session,
          archive_ids: Sequence[int],
          actor: Principal,
          client: Optional[ClientInfo] = None,
     ) -> list[Payment]:
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entries = PaymentService._archive_entries_or_fail(db, archive_ids)
               payments = [
                    PaymentService._restore_archive_entry(
                         db, entry, writer, f"Bulk restored from archive (original archive ID: {entry.id})"
                    )
                    for entry in entries
               ]
          logger.info("bulk archive restore: %d payments restored", len(payments))
          return payments

     @staticmethod
     def bulk_move_archive_to_trashbox(
          db: Session,
          archive_ids: Sequence[int],
          actor: Principal,
          client: Optional[ClientInfo] = None,
          reason: Optional[str] = None,
     ) -> int:
          writer = PaymentLogWriter(db, actor, client)
          with atomic(db):
               entries = PaymentService._archive_entries_or_fail(db, archive_ids)
               for entry in entries:
                    PaymentService._trash_archive_entry(
                         db, entry, actor, writer, reason,
                         f"Bulk moved to trashbox from archive (original archive ID: {entry.id})",
                    )
          logger.info("bulk archive to trashbox: %d entries moved", len(entries))
          return len(entries)
