# models/payment.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, Text, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class PaymentStatus(str, enum.Enum):
     """Enumeration for payment lifecycle status."""
     NOT_PAID = "not_paid"
     PENDING = "pending"
     RECEIVED = "received"
     SETTLED = "settled"


class PaymentType(str, enum.Enum):
     """How the money moved."""
     CASH = "cash"
     BANK_TRANSFER = "bank_transfer"


# Statuses that count a slot as paid for the period
PAID_STATUSES = (PaymentStatus.RECEIVED.value, PaymentStatus.SETTLED.value)
# Statuses that are still outstanding
OPEN_STATUSES = (PaymentStatus.NOT_PAID.value, PaymentStatus.PENDING.value)

# Columns copied verbatim when a payment moves to the trashbox or the archive
PAYMENT_FIELDS = (
     "group_id",
     "member_id",
     "amount",
     "payment_date",
     "payment_month",
     "slot",
     "payment_type",
     "sender_bank",
     "receiver_bank",
     "status",
     "proof_of_payment",
)


class PaymentFieldsMixin:
     """Payment columns shared by the live table and its trashbox/archive copies."""
     amount = Column(Numeric(12, 2), nullable=False)
     payment_date = Column(Date, nullable=False)
     payment_month = Column(String(7), nullable=False, index=True)  # billing period, YYYY-MM
     slot = Column(String(7), nullable=False)  # payout month being funded, YYYY-MM
     payment_type = Column(String(20), nullable=False)
     sender_bank = Column(String(100), nullable=True)
     receiver_bank = Column(String(100), nullable=True)
     # Stored as text; legacy rows may carry mixed-case statuses
     status = Column(String(20), nullable=False, default=PaymentStatus.NOT_PAID.value, index=True)
     proof_of_payment = Column(Text, nullable=True)

     def snapshot(self) -> dict:
          """Return the payment fields as a plain dict."""
          return {field: getattr(self, field) for field in PAYMENT_FIELDS}


class Payment(PaymentFieldsMixin, TimestampMixin, Base):
     """
     Payment model - money moved by a member towards one slot of a group.

     (group_id, member_id, slot) is the natural key used by bulk upserts;
     payment_month is the billing period and is independent of slot.
     """
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
     member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)

     # Relationships
     group = relationship("Group", back_populates="payments")
     member = relationship("Member", back_populates="payments")

     def __repr__(self):
          return f"<Payment(id={self.id}, amount={self.amount}, status='{self.status}', slot='{self.slot}')>"

     @property
     def is_paid(self) -> bool:
          return (self.status or "").lower() in PAID_STATUSES
