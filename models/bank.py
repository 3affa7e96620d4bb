# models/bank.py
from sqlalchemy import Column, Integer, String
from .base import Base, TimestampMixin


class Bank(TimestampMixin, Base):
     """
     Bank model - registry of banks members and payments can name.

     Members and payments store the bank name as text, so a bank that is
     still named anywhere cannot be deleted.
     """
     __tablename__ = "banks"

     id = Column(Integer, primary_key=True, autoincrement=True)
     bank_name = Column(String(100), nullable=False, unique=True)
     short_name = Column(String(20), nullable=False, unique=True)
     bank_address = Column(String(200), nullable=True)

     def __repr__(self):
          return f"<Bank(id={self.id}, short_name='{self.short_name}')>"
