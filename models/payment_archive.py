# models/payment_archive.py
from sqlalchemy import Column, Integer, String, DateTime, func
from .base import Base
from .payment import PaymentFieldsMixin


class PaymentArchive(PaymentFieldsMixin, Base):
     """
     Archived payment. A payment id can be archived only once; the unique
     constraint on original_id is what enforces it.
     """
     __tablename__ = "payments_archive"

     id = Column(Integer, primary_key=True, autoincrement=True)
     original_id = Column(Integer, nullable=False, unique=True, index=True)
     group_id = Column(Integer, nullable=False, index=True)
     member_id = Column(Integer, nullable=False, index=True)

     archived_at = Column(DateTime, server_default=func.now(), nullable=False)
     archived_by_user_id = Column(Integer, nullable=True)
     archived_by_username = Column(String(100), nullable=True)
     archive_reason = Column(String(500), nullable=True)

     def __repr__(self):
          return f"<PaymentArchive(id={self.id}, original_id={self.original_id})>"
