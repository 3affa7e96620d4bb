# models/payment_request.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class PaymentRequestStatus(str, enum.Enum):
     """Review state of a member-submitted payment request."""
     PENDING_APPROVAL = "pending_approval"
     APPROVED = "approved"
     REJECTED = "rejected"


class PaymentRequest(TimestampMixin, Base):
     """
     PaymentRequest model - a member's proposal to record a payment.

     Its status is independent of Payment.status. Once reviewed a request is
     never reviewed again; approval creates exactly one pending Payment.
     """
     __tablename__ = "payment_requests"

     id = Column(Integer, primary_key=True, autoincrement=True)
     member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
     group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)

     # Proposed payment
     amount = Column(Numeric(12, 2), nullable=False)
     payment_date = Column(Date, nullable=False)
     payment_month = Column(String(7), nullable=False)
     slot = Column(String(7), nullable=False)
     payment_type = Column(String(20), nullable=False)
     sender_bank = Column(String(100), nullable=True)
     receiver_bank = Column(String(100), nullable=True)
     proof_of_payment = Column(Text, nullable=True)

     # Review
     status = Column(
          String(20),
          default=PaymentRequestStatus.PENDING_APPROVAL.value,
          nullable=False,
          index=True
     )
     request_notes = Column(String(500), nullable=True)
     admin_notes = Column(String(500), nullable=True)
     reviewed_by = Column(Integer, nullable=True)
     reviewed_by_username = Column(String(100), nullable=True)
     reviewed_at = Column(DateTime, nullable=True)

     # Relationships
     member = relationship("Member")
     group = relationship("Group")

     @property
     def is_reviewed(self) -> bool:
          return self.status != PaymentRequestStatus.PENDING_APPROVAL.value

     def __repr__(self):
          return f"<PaymentRequest(id={self.id}, member_id={self.member_id}, status='{self.status}')>"
