# routers/payments.py
"""
Payment API routes for the Kasmoni backend.

Live payments, bulk entry, trashbox and archive. Every route is for
back-office users; member logins go through /api/payment-requests instead.
Mutations are written by PaymentService and audited in payment_logs;
payment notifications are sent after the response as background tasks.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from models import Payment
from models.payment import PaymentStatus
from schemas.payment import (
     ArchiveIdsRequest,
     ArchiveRequest,
     ArchivedPaymentResponse,
     BulkArchiveRequest,
     BulkPaymentCreate,
     BulkRestoreResult,
     BulkValidationResponse,
     GroupMemberSlotResponse,
     MoveToTrashboxRequest,
     OverduePaymentResponse,
     PaymentCreate,
     PaymentListResponse,
     PaymentResponse,
     PaymentStatusUpdate,
     PaymentUpdate,
     SlotOptionResponse,
     TrashboxIdsRequest,
     TrashboxPaymentResponse,
)
from services import message_service, status_service
from services.periods import PERIOD_PATTERN
from services.audit_service import ClientInfo
from services.notification_service import (
     Notifier,
     build_payment_notifications,
     dispatch_notifications,
     get_notifier,
)
from services.payment_service import PaymentService
from utils.auth import Principal, require_staff
from .dependencies import get_client_info

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get(
     "",
     response_model=PaymentListResponse,
     summary="List payments with filters"
)
def list_payments(
     group_id: Optional[int] = Query(None, description="Filter by group ID"),
     member_id: Optional[int] = Query(None, description="Filter by member ID"),
     payment_status: Optional[PaymentStatus] = Query(None, alias="status", description="Filter by status"),
     payment_month: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Filter by billing month (YYYY-MM)"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=200, description="Items per page"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """Newest payments first."""
     query = db.query(Payment)
     if group_id is not None:
          query = query.filter(Payment.group_id == group_id)
     if member_id is not None:
          query = query.filter(Payment.member_id == member_id)
     if payment_status is not None:
          query = query.filter(Payment.status == PaymentStatus(payment_status).value)
     if payment_month:
          query = query.filter(Payment.payment_month == payment_month)

     total = query.count()
     payments = (
          query.order_by(Payment.created_at.desc(), Payment.id.desc())
          .offset((page - 1) * page_size)
          .limit(page_size)
          .all()
     )
     return PaymentListResponse(
          payments=[PaymentResponse.model_validate(p) for p in payments],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.post(
     "",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def create_payment(
     payment_data: PaymentCreate,
     background_tasks: BackgroundTasks,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
     notifier: Notifier = Depends(get_notifier),
):
     """
     Record a payment for a member's slot in a group.

     - **slot**: must be one of the member's receive months in the group
     - **payment_month**: billing period the payment counts towards
     - **status**: defaults to not_paid
     """
     payment = PaymentService.create_payment(db, payment_data, principal, client)
     notifications = build_payment_notifications(db, [payment])
     message_service.record_payment_notifications(db, notifications)
     background_tasks.add_task(dispatch_notifications, notifier, notifications)
     return payment


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

@router.get(
     "/overdue",
     response_model=List[OverduePaymentResponse],
     summary="Payments past this month's deadline"
)
def list_overdue(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """Open payments dated on or before the 28th, once the 28th has passed."""
     return [
          OverduePaymentResponse.model_validate(item, from_attributes=True)
          for item in status_service.list_overdue_payments(db, datetime.now())
     ]


@router.get(
     "/slots",
     response_model=List[SlotOptionResponse],
     summary="Slots a member can still pay for"
)
def list_available_slots(
     group_id: int = Query(..., gt=0),
     member_id: int = Query(..., gt=0),
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return [
          SlotOptionResponse.model_validate(option, from_attributes=True)
          for option in status_service.available_slots(db, group_id, member_id, period)
     ]


@router.get(
     "/group-slots/{group_id}",
     response_model=List[GroupMemberSlotResponse],
     summary="Every slot of a group with its latest payment"
)
def list_group_member_slots(
     group_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return [
          GroupMemberSlotResponse.model_validate(slot, from_attributes=True)
          for slot in status_service.group_member_slots(db, group_id)
     ]


# ---------------------------------------------------------------------------
# Bulk entry
# ---------------------------------------------------------------------------

@router.post(
     "/bulk/validate",
     response_model=BulkValidationResponse,
     summary="Check a bulk batch without saving it"
)
def validate_bulk(
     batch: BulkPaymentCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     results = PaymentService.validate_bulk_payments(db, batch.group_id, batch.payments)
     invalid = [r for r in results if r["errors"]]
     return BulkValidationResponse(
          success=not invalid,
          message="All payments are valid" if not invalid else f"{len(invalid)} payment(s) have errors",
          data=results,
     )


@router.post(
     "/bulk",
     response_model=List[PaymentResponse],
     status_code=status.HTTP_201_CREATED,
     summary="Create or update a batch of payments"
)
def create_bulk(
     batch: BulkPaymentCreate,
     background_tasks: BackgroundTasks,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
     notifier: Notifier = Depends(get_notifier),
):
     """
     All rows are saved in one transaction. If any row fails, nothing is
     saved and the error lists every failing row.
     """
     payments = PaymentService.create_bulk_payments(
          db, batch.group_id, batch.payment_month, batch.payments, principal, client
     )
     notifications = build_payment_notifications(db, payments)
     message_service.record_payment_notifications(db, notifications)
     background_tasks.add_task(dispatch_notifications, notifier, notifications)
     return payments


@router.post(
     "/bulk-archive",
     response_model=List[ArchivedPaymentResponse],
     summary="Archive several payments"
)
def bulk_archive(
     body: BulkArchiveRequest,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     return PaymentService.bulk_archive_payments(db, body.payment_ids, principal, client, body.archive_reason)


# ---------------------------------------------------------------------------
# Trashbox
# ---------------------------------------------------------------------------

@router.get(
     "/trashbox",
     response_model=List[TrashboxPaymentResponse],
     summary="List deleted payments"
)
def list_trashbox(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return PaymentService.list_trashbox(db)


@router.post(
     "/trashbox/bulk-restore",
     response_model=BulkRestoreResult,
     summary="Restore several deleted payments"
)
def bulk_restore_trashbox(
     body: TrashboxIdsRequest,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     """Each entry is restored on its own; failures are reported, not raised."""
     return PaymentService.bulk_restore_from_trashbox(db, body.trashbox_ids, principal, client)


@router.post(
     "/trashbox/bulk-delete",
     summary="Permanently delete several trashbox entries"
)
def bulk_delete_trashbox(
     body: TrashboxIdsRequest,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     deleted = PaymentService.bulk_permanently_delete_from_trashbox(db, body.trashbox_ids, principal, client)
     return {
          "success": True,
          "message": f"{deleted} payment(s) permanently deleted",
          "deleted": deleted,
     }


@router.post(
     "/trashbox/{trashbox_id}/restore",
     response_model=PaymentResponse,
     summary="Restore a deleted payment"
)
def restore_trashbox(
     trashbox_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     return PaymentService.restore_from_trashbox(db, trashbox_id, principal, client)


@router.delete(
     "/trashbox/{trashbox_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Permanently delete a trashbox entry"
)
def delete_trashbox(
     trashbox_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     PaymentService.permanently_delete_from_trashbox(db, trashbox_id, principal, client)


# ---------------------------------------------------------------------------
# Archive
# ---------------------------------------------------------------------------

@router.get(
     "/archive",
     response_model=List[ArchivedPaymentResponse],
     summary="List archived payments"
)
def list_archive(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return PaymentService.list_archive(db)


@router.post(
     "/archive/bulk-restore",
     response_model=List[PaymentResponse],
     summary="Restore several archived payments"
)
def bulk_restore_archive(
     body: ArchiveIdsRequest,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     return PaymentService.bulk_restore_from_archive(db, body.archive_ids, principal, client)


@router.post(
     "/archive/bulk-trashbox",
     summary="Move several archived payments to the trashbox"
)
def bulk_archive_to_trashbox(
     body: ArchiveIdsRequest,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     moved = PaymentService.bulk_move_archive_to_trashbox(
          db, body.archive_ids, principal, client, body.deletion_reason
     )
     return {
          "success": True,
          "message": f"{moved} payment(s) moved to trashbox",
          "moved": moved,
     }


@router.post(
     "/archive/{archive_id}/restore",
     response_model=PaymentResponse,
     summary="Restore an archived payment"
)
def restore_archive(
     archive_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     """The restored payment gets a new ID."""
     return PaymentService.restore_from_archive(db, archive_id, principal, client)


@router.post(
     "/archive/{archive_id}/trashbox",
     response_model=TrashboxPaymentResponse,
     summary="Move an archived payment to the trashbox"
)
def archive_to_trashbox(
     archive_id: int,
     body: Optional[MoveToTrashboxRequest] = None,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     reason = body.deletion_reason if body else None
     return PaymentService.move_archive_to_trashbox(db, archive_id, principal, client, reason)


# ---------------------------------------------------------------------------
# Single payment
# ---------------------------------------------------------------------------

@router.get(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Get payment by ID"
)
def get_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return PaymentService.get_payment(db, payment_id)


@router.put(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Edit a payment"
)
def update_payment(
     payment_id: int,
     payment_data: PaymentUpdate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     return PaymentService.update_payment(db, payment_id, payment_data, principal, client)


@router.patch(
     "/{payment_id}/status",
     response_model=PaymentResponse,
     summary="Change payment status"
)
def update_payment_status(
     payment_id: int,
     body: PaymentStatusUpdate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     return PaymentService.set_payment_status(db, payment_id, body.status, principal, client)


@router.delete(
     "/{payment_id}",
     response_model=TrashboxPaymentResponse,
     summary="Move a payment to the trashbox"
)
def delete_payment(
     payment_id: int,
     reason: Optional[str] = Query(None, max_length=500, description="Why the payment was deleted"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     """Soft delete: the payment can be restored from the trashbox."""
     return PaymentService.soft_delete_payment(db, payment_id, principal, client, reason)


@router.post(
     "/{payment_id}/archive",
     response_model=ArchivedPaymentResponse,
     summary="Archive a payment"
)
def archive_payment(
     payment_id: int,
     body: Optional[ArchiveRequest] = None,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
     client: ClientInfo = Depends(get_client_info),
):
     reason = body.archive_reason if body else None
     return PaymentService.archive_payment(db, payment_id, principal, client, reason)
