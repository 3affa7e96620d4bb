# services/payment_request_service.py
"""
Payment Request Service - member-submitted payments awaiting review.

A request starts in pending_approval and is reviewed exactly once. Approval
books one Payment with status pending from the (possibly corrected) request
values; rejection books nothing.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from database import atomic
from models import Group, GroupMember, Payment, PaymentRequest, PaymentRequestStatus
from models.payment import PaymentStatus
from schemas.payment_request import PaymentRequestCreate, PaymentRequestReview
from utils.auth import Principal
from .audit_service import ClientInfo, PaymentLogWriter, record_best_effort
from .exceptions import ConflictError, InvalidAssignmentError, NotFoundError
from .periods import current_period

logger = logging.getLogger(__name__)

# Request fields a reviewer may overwrite before deciding
REVIEWABLE_FIELDS = (
     "group_id",
     "amount",
     "payment_date",
     "payment_month",
     "slot",
     "payment_type",
     "sender_bank",
     "receiver_bank",
     "proof_of_payment",
)


def submit_request(
     db: Session,
     member_id: int,
     data: PaymentRequestCreate,
     now: Optional[datetime] = None,
) -> PaymentRequest:
     """
     File a request for the caller's own slot, billed to the current period.

     Raises:
          InvalidAssignmentError: the slot is not one of the member's in that group
          ConflictError: a request for this slot and period is already waiting
     """
     payment_month = current_period(now)

     slot = db.query(GroupMember).filter(
          GroupMember.group_id == data.group_id,
          GroupMember.member_id == member_id,
          GroupMember.receive_month == data.slot,
     ).first()
     if slot is None:
          raise InvalidAssignmentError("Invalid group/slot combination for this member")

     duplicate = db.query(PaymentRequest.id).filter(
          PaymentRequest.member_id == member_id,
          PaymentRequest.group_id == data.group_id,
          PaymentRequest.slot == data.slot,
          PaymentRequest.payment_month == payment_month,
          PaymentRequest.status == PaymentRequestStatus.PENDING_APPROVAL.value,
     ).first()
     if duplicate is not None:
          raise ConflictError("You already have a pending request for this slot this month")

     with atomic(db):
          request = PaymentRequest(
               member_id=member_id,
               payment_month=payment_month,
               status=PaymentRequestStatus.PENDING_APPROVAL.value,
               **data.model_dump(),
          )
          db.add(request)
          db.flush()

     logger.info("payment request %s submitted by member %s for slot %s", request.id, member_id, data.slot)
     return request


def get_request(db: Session, request_id: int) -> PaymentRequest:
     request = (
          db.query(PaymentRequest)
          .options(joinedload(PaymentRequest.member), joinedload(PaymentRequest.group))
          .filter(PaymentRequest.id == request_id)
          .first()
     )
     if request is None:
          raise NotFoundError("Payment request", request_id)
     return request


def list_requests(
     db: Session,
     status: Optional[str] = None,
     member_id: Optional[int] = None,
     group_id: Optional[int] = None,
) -> list[PaymentRequest]:
     query = db.query(PaymentRequest).options(
          joinedload(PaymentRequest.member), joinedload(PaymentRequest.group)
     )
     if status:
          query = query.filter(PaymentRequest.status == status)
     if member_id is not None:
          query = query.filter(PaymentRequest.member_id == member_id)
     if group_id is not None:
          query = query.filter(PaymentRequest.group_id == group_id)
     return query.order_by(PaymentRequest.created_at.desc(), PaymentRequest.id.desc()).all()


def eligible_slots(db: Session, member_id: int) -> list[dict]:
     """Groups and slots a member can file requests for."""
     rows = (
          db.query(GroupMember.group_id, GroupMember.receive_month, Group.name, Group.monthly_amount)
          .join(Group, GroupMember.group_id == Group.id)
          .filter(GroupMember.member_id == member_id)
          .order_by(Group.name, GroupMember.receive_month)
          .all()
     )
     return [
          {"group_id": group_id, "slot": slot, "group_name": name, "monthly_amount": amount}
          for group_id, slot, name, amount in rows
     ]


def pending_count(db: Session) -> int:
     return db.query(func.count(PaymentRequest.id)).filter(
          PaymentRequest.status == PaymentRequestStatus.PENDING_APPROVAL.value
     ).scalar() or 0


def review_request(
     db: Session,
     request_id: int,
     review: PaymentRequestReview,
     actor: Principal,
     client: Optional[ClientInfo] = None,
) -> tuple[PaymentRequest, Optional[Payment]]:
     """
     Approve or reject a pending request.

     Only fields present in ``review`` overwrite the stored request. Approval
     inserts exactly one payment with status pending.

     Returns:
          (request, payment) - payment is None on rejection

     Raises:
          NotFoundError: unknown request
          ConflictError: the request was already reviewed
     """
     request = db.get(PaymentRequest, request_id)
     if request is None:
          raise NotFoundError("Payment request", request_id)
     if request.status != PaymentRequestStatus.PENDING_APPROVAL.value:
          raise ConflictError("Payment request has already been reviewed")

     overrides = review.model_dump(include=set(REVIEWABLE_FIELDS), exclude_unset=True)
     values = dict(overrides)
     if "admin_notes" in review.model_fields_set:
          values["admin_notes"] = review.admin_notes
     values.update(
          status=review.status,
          reviewed_by=actor.id,
          reviewed_by_username=actor.username,
          reviewed_at=datetime.now(),
     )
     payment = None

     with atomic(db):
          # Matches only while still pending; a concurrent review leaves zero rows
          updated = (
               db.query(PaymentRequest)
               .filter(
                    PaymentRequest.id == request_id,
                    PaymentRequest.status == PaymentRequestStatus.PENDING_APPROVAL.value,
               )
               .update(values, synchronize_session="fetch")
          )
          if updated == 0:
               raise ConflictError("Payment request has already been reviewed")
          db.refresh(request)

          if review.status == PaymentRequestStatus.APPROVED.value:
               payment = Payment(
                    group_id=request.group_id,
                    member_id=request.member_id,
                    amount=request.amount,
                    payment_date=request.payment_date,
                    payment_month=request.payment_month,
                    slot=request.slot,
                    payment_type=request.payment_type,
                    sender_bank=request.sender_bank,
                    receiver_bank=request.receiver_bank,
                    proof_of_payment=request.proof_of_payment,
                    status=PaymentStatus.PENDING.value,
               )
               db.add(payment)
          db.flush()

     logger.info("payment request %s %s by %s", request.id, request.status, actor.username)
     if payment is not None:
          record_best_effort(db, PaymentLogWriter(db, actor, client).payment_created, payment)
     return request, payment
