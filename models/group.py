# models/group.py
from sqlalchemy import Column, Integer, String, Numeric
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Group(TimestampMixin, Base):
     """
     Group model - a rotating savings pool.

     end_month is derived from start_month and duration when the group is
     created or updated and stored; it is never recomputed on read.
     """
     __tablename__ = "groups"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(100), nullable=False)
     monthly_amount = Column(Numeric(12, 2), nullable=False)
     max_members = Column(Integer, nullable=False, default=12)
     duration = Column(Integer, nullable=False)

     # Periods are stored as YYYY-MM strings
     start_month = Column(String(7), nullable=False)
     end_month = Column(String(7), nullable=True, index=True)

     # Relationships
     slots = relationship("GroupMember", back_populates="group", order_by="GroupMember.receive_month")
     payments = relationship("Payment", back_populates="group")

     def __repr__(self):
          return f"<Group(id={self.id}, name='{self.name}', {self.start_month}..{self.end_month})>"
