# services/message_service.py
"""
Message Service - the member/administrator inbox.

Members send account requests; administrators decide on them. Payment
notifications are stored here as well: members get an approved message
for every recorded payment, administrators get a pending one for every
submitted payment request. pending is what the unread count counts.

Storing a notification is best effort: the payment or request it belongs
to has already committed, so a failure is logged and swallowed.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from database import atomic
from models import Group, Member, Message, MessageStatus, MessageType, PaymentRequest
from schemas.message import MessageCreate, MessageStatusUpdate
from utils.auth import Principal
from .exceptions import ConflictError, ForbiddenError, NotFoundError, TransactionFailedError
from .notification_service import Notification

logger = logging.getLogger(__name__)


def _from_member(member: Member, request_type: str, details: str, status: str) -> Message:
     return Message(
          member_id=member.id,
          member_name=member.full_name,
          member_email=member.email,
          member_phone=member.phone_number,
          request_type=request_type,
          request_details=details,
          status=status,
     )


def get_message(db: Session, message_id: int) -> Message:
     message = db.get(Message, message_id)
     if message is None:
          raise NotFoundError("Message", message_id)
     return message


def list_messages(db: Session, status: Optional[str] = None, request_type: Optional[str] = None) -> list[Message]:
     """Every message, newest first."""
     query = db.query(Message)
     if status:
          query = query.filter(Message.status == status)
     if request_type:
          query = query.filter(Message.request_type == request_type)
     return query.order_by(Message.created_at.desc(), Message.id.desc()).all()


def list_member_messages(db: Session, member_id: int) -> list[Message]:
     return (
          db.query(Message)
          .filter(Message.member_id == member_id)
          .order_by(Message.created_at.desc(), Message.id.desc())
          .all()
     )


def create_message(db: Session, member_id: int, data: MessageCreate) -> Message:
     member = db.get(Member, member_id)
     if member is None:
          raise NotFoundError("Member", member_id)
     with atomic(db):
          message = _from_member(member, data.request_type, data.request_details, MessageStatus.PENDING.value)
          db.add(message)
          db.flush()
     logger.info("message %s (%s) from member %s", message.id, message.request_type, member_id)
     return message


def update_status(db: Session, message_id: int, data: MessageStatusUpdate) -> Message:
     """Administrators may set any status; admin_notes is replaced, cleared when omitted."""
     message = get_message(db, message_id)
     with atomic(db):
          message.status = data.status
          message.admin_notes = data.admin_notes
     logger.info("message %s set to %s", message_id, data.status)
     return message


def mark_read(db: Session, message_id: int, principal: Principal) -> Message:
     """
     Raises:
          NotFoundError: unknown message
          ForbiddenError: a member marking someone else's message
          ConflictError: the message is no longer pending
     """
     message = get_message(db, message_id)
     if principal.is_member and not principal.owns_member(message.member_id):
          raise ForbiddenError("You can only mark your own messages as read")
     if message.status != MessageStatus.PENDING.value:
          raise ConflictError("Only pending messages can be marked as read")
     with atomic(db):
          message.status = MessageStatus.READ.value
     return message


def unread_count(db: Session) -> int:
     return db.query(Message).filter(Message.status == MessageStatus.PENDING.value).count()


# ---------------------------------------------------------------------------
# Notifications kept in the inbox
# ---------------------------------------------------------------------------

def record_payment_notifications(db: Session, notifications: Iterable[Notification]) -> int:
     """Store each member notification as an approved payment_notification message."""
     try:
          with atomic(db):
               stored = 0
               for notification in notifications:
                    member = db.get(Member, notification.member_id)
                    if member is None:
                         continue
                    db.add(_from_member(
                         member,
                         MessageType.PAYMENT_NOTIFICATION.value,
                         notification.message,
                         MessageStatus.APPROVED.value,
                    ))
                    stored += 1
     except TransactionFailedError:
          logger.exception("Failed to store payment notifications")
          return 0
     return stored


def record_request_submitted(db: Session, request: PaymentRequest) -> Optional[Message]:
     """Leave a pending message for the administrators about a new payment request."""
     member = db.get(Member, request.member_id)
     group = db.get(Group, request.group_id)
     if member is None:
          return None
     group_name = group.name if group is not None else f"group {request.group_id}"
     details = (
          f"New payment request submitted by {member.full_name} for group "
          f"{group_name}. Request ID: {request.id}"
     )
     try:
          with atomic(db):
               message = _from_member(member, MessageType.PAYMENT_NOTIFICATION.value, details, MessageStatus.PENDING.value)
               db.add(message)
               db.flush()
     except TransactionFailedError:
          logger.exception("Failed to store notification for payment request %s", request.id)
          return None
     return message
