# services/bank_service.py
"""
Bank Service - the registry of banks used by members and payments.

Bank name and short name are both unique. Members and payments refer to a
bank by its name, not by id, so deletion checks those text columns.
"""
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import atomic
from models import Bank, Member, Payment
from schemas.bank import BankCreate, BankUpdate
from .exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def list_banks(db: Session) -> list[Bank]:
     return db.query(Bank).order_by(Bank.bank_name).all()


def get_bank(db: Session, bank_id: int) -> Bank:
     bank = db.get(Bank, bank_id)
     if bank is None:
          raise NotFoundError("Bank", bank_id)
     return bank


def _check_unique(db: Session, bank_name: str, short_name: str, exclude_id: Optional[int] = None) -> None:
     query = db.query(Bank.id).filter(or_(Bank.bank_name == bank_name, Bank.short_name == short_name))
     if exclude_id is not None:
          query = query.filter(Bank.id != exclude_id)
     if query.first() is not None:
          raise ConflictError("Bank with this name or short name already exists")


def create_bank(db: Session, data: BankCreate) -> Bank:
     _check_unique(db, data.bank_name, data.short_name)
     with atomic(db):
          bank = Bank(**data.model_dump())
          db.add(bank)
          db.flush()
     logger.info("bank %s created: %s", bank.id, bank.short_name)
     return bank


def update_bank(db: Session, bank_id: int, data: BankUpdate) -> Bank:
     bank = get_bank(db, bank_id)
     _check_unique(db, data.bank_name, data.short_name, exclude_id=bank_id)
     with atomic(db):
          for field, value in data.model_dump().items():
               setattr(bank, field, value)
     logger.info("bank %s updated", bank_id)
     return bank


def delete_bank(db: Session, bank_id: int) -> None:
     """
     Raises:
          NotFoundError: unknown bank
          ConflictError: a member or payment still names the bank
     """
     bank = get_bank(db, bank_id)
     in_use = (
          db.query(Member.id).filter(Member.bank_name == bank.bank_name).first()
          or db.query(Payment.id).filter(or_(
               Payment.sender_bank == bank.bank_name,
               Payment.receiver_bank == bank.bank_name,
          )).first()
     )
     if in_use is not None:
          raise ConflictError("Cannot delete bank as it is being used by members or payments")
     with atomic(db):
          db.delete(bank)
     logger.info("bank %s deleted", bank_id)
