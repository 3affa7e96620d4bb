# models/member.py
from sqlalchemy import Column, Integer, String, Date
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Member(TimestampMixin, Base):
     """
     Member model - a participant in one or more rotating savings groups.

     Members are never removed implicitly: slots, payments and payment
     requests must be cleared before a member can be deleted.
     """
     __tablename__ = "members"

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Personal info
     first_name = Column(String(50), nullable=False)
     last_name = Column(String(50), nullable=False)
     birth_date = Column(Date, nullable=True)
     birthplace = Column(String(100), nullable=True)
     address = Column(String(200), nullable=True)
     city = Column(String(100), nullable=True)
     nationality = Column(String(50), nullable=True)
     occupation = Column(String(100), nullable=True)
     national_id = Column(String(20), nullable=False, unique=True)

     # Contact
     phone_number = Column(String(20), nullable=False)
     email = Column(String(255), nullable=True, unique=True)

     # Banking
     bank_name = Column(String(100), nullable=True)
     account_number = Column(String(50), nullable=True)

     registration_date = Column(Date, nullable=True)

     # Relationships
     slots = relationship("GroupMember", back_populates="member")
     payments = relationship("Payment", back_populates="member")

     @property
     def full_name(self) -> str:
          return f"{self.first_name} {self.last_name}"

     def __repr__(self):
          return f"<Member(id={self.id}, name='{self.first_name} {self.last_name}')>"
