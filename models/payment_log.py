# models/payment_log.py
"""
PaymentLog model - append-only audit trail of payment lifecycle events.

Rows keep old/new images of every payment field so history can be read back
without replaying business logic. Log rows outlive the payments they describe,
so there are no foreign keys. Updates and deletes are rejected at the ORM layer.
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, Text, DateTime, event, func
from .base import Base


class PaymentLogAction(str, enum.Enum):
     """Canonical action tag, one per mutation type."""
     CREATED = "created"
     STATUS_CHANGED = "status_changed"
     UPDATED = "updated"
     DELETED = "deleted"
     BULK_CREATED = "bulk_created"
     RESTORED = "restored"
     PERMANENTLY_DELETED = "permanently_deleted"
     ARCHIVED = "archived"


class AuditLogImmutableError(RuntimeError):
     """Raised when code tries to modify or remove a payment log row."""


class PaymentLog(Base):
     __tablename__ = "payment_logs"

     id = Column(Integer, primary_key=True, autoincrement=True)
     payment_id = Column(Integer, nullable=True, index=True)
     action = Column(String(30), nullable=False, index=True)

     # Before / after images
     old_status = Column(String(20), nullable=True)
     new_status = Column(String(20), nullable=True)
     old_amount = Column(Numeric(12, 2), nullable=True)
     new_amount = Column(Numeric(12, 2), nullable=True)
     old_payment_date = Column(Date, nullable=True)
     new_payment_date = Column(Date, nullable=True)
     old_payment_month = Column(String(7), nullable=True)
     new_payment_month = Column(String(7), nullable=True)
     old_payment_type = Column(String(20), nullable=True)
     new_payment_type = Column(String(20), nullable=True)
     old_sender_bank = Column(String(100), nullable=True)
     new_sender_bank = Column(String(100), nullable=True)
     old_receiver_bank = Column(String(100), nullable=True)
     new_receiver_bank = Column(String(100), nullable=True)
     old_proof_of_payment = Column(Text, nullable=True)
     new_proof_of_payment = Column(Text, nullable=True)
     old_slot = Column(String(7), nullable=True)
     new_slot = Column(String(7), nullable=True)
     old_member_id = Column(Integer, nullable=True)
     new_member_id = Column(Integer, nullable=True)
     old_group_id = Column(Integer, nullable=True)
     new_group_id = Column(Integer, nullable=True)

     member_id = Column(Integer, nullable=True, index=True)
     group_id = Column(Integer, nullable=True, index=True)
     bulk_payment_count = Column(Integer, nullable=True)
     details = Column(String(500), nullable=True)

     # Who and from where
     performed_by_user_id = Column(Integer, nullable=True)
     performed_by_username = Column(String(100), nullable=True)
     timestamp = Column(DateTime, server_default=func.now(), nullable=False, index=True)
     ip_address = Column(String(64), nullable=True)
     user_agent = Column(String(500), nullable=True)

     def __repr__(self):
          return f"<PaymentLog(id={self.id}, action='{self.action}', payment_id={self.payment_id})>"


@event.listens_for(PaymentLog, "before_update")
def _reject_log_update(mapper, connection, target):
     raise AuditLogImmutableError(f"Payment log {target.id} is append-only and cannot be updated")


@event.listens_for(PaymentLog, "before_delete")
def _reject_log_delete(mapper, connection, target):
     raise AuditLogImmutableError(f"Payment log {target.id} is append-only and cannot be deleted")
