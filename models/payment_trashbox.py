# models/payment_trashbox.py
from sqlalchemy import Column, Integer, String, DateTime, func
from .base import Base
from .payment import PaymentFieldsMixin


class PaymentTrashbox(PaymentFieldsMixin, Base):
     """
     Soft-deleted payment. Holds a full copy of the live row; original_id is
     the id the payment had, and gets back, when restored.
     """
     __tablename__ = "payments_trashbox"

     id = Column(Integer, primary_key=True, autoincrement=True)
     original_id = Column(Integer, nullable=False, index=True)
     group_id = Column(Integer, nullable=False, index=True)
     member_id = Column(Integer, nullable=False, index=True)

     deleted_at = Column(DateTime, server_default=func.now(), nullable=False)
     deleted_by_user_id = Column(Integer, nullable=True)
     deleted_by_username = Column(String(100), nullable=True)
     deletion_reason = Column(String(500), nullable=True)

     def __repr__(self):
          return f"<PaymentTrashbox(id={self.id}, original_id={self.original_id})>"
