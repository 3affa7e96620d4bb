# services/audit_service.py
"""
Audit Log Service - append-only payment history.

PaymentLogWriter adds exactly one PaymentLog row per lifecycle event and
never commits on its own: callers either include the write in their
transaction (trashbox and archive moves) or run it after commit through
record_best_effort(), where a failure is logged and swallowed.

Old/new images cover every payment field so history can be read back
without replaying business logic.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, Query

from database import atomic
from models import Group, Member, PaymentLog, PaymentLogAction
from utils.auth import Principal
from .exceptions import TransactionFailedError

logger = logging.getLogger(__name__)

# Payment fields mirrored in the old_/new_ log columns
_IMAGE_FIELDS = (
     "status",
     "amount",
     "payment_date",
     "payment_month",
     "payment_type",
     "sender_bank",
     "receiver_bank",
     "proof_of_payment",
     "slot",
     "member_id",
     "group_id",
)


@dataclass
class ClientInfo:
     """Where a request came from."""
     ip_address: Optional[str] = None
     user_agent: Optional[str] = None


def _image(prefix: str, values: dict[str, Any]) -> dict[str, Any]:
     return {f"{prefix}_{name}": values.get(name) for name in _IMAGE_FIELDS}


class PaymentLogWriter:
     """Builds PaymentLog rows for one actor and client."""

     def __init__(self, db: Session, actor: Optional[Principal], client: Optional[ClientInfo] = None):
          self.db = db
          self.actor = actor
          self.client = client or ClientInfo()

     def _append(self, action: PaymentLogAction, **values) -> PaymentLog:
          entry = PaymentLog(
               action=action.value,
               performed_by_user_id=self.actor.id if self.actor else None,
               performed_by_username=self.actor.username if self.actor else None,
               ip_address=self.client.ip_address,
               user_agent=self.client.user_agent,
               timestamp=datetime.now(),
               **values,
          )
          self.db.add(entry)
          self.db.flush()
          logger.info(
               "payment log %s payment_id=%s by %s",
               action.value, values.get("payment_id"), entry.performed_by_username,
          )
          return entry

     def payment_created(self, payment) -> PaymentLog:
          return self._append(
               PaymentLogAction.CREATED,
               payment_id=payment.id,
               member_id=payment.member_id,
               group_id=payment.group_id,
               details=f"Payment created for member {payment.member_id} in group {payment.group_id}",
               **_image("new", payment.snapshot()),
          )

     def status_changed(self, payment, old_status: str, new_status: str) -> PaymentLog:
          return self._append(
               PaymentLogAction.STATUS_CHANGED,
               payment_id=payment.id,
               member_id=payment.member_id,
               group_id=payment.group_id,
               old_status=old_status,
               new_status=new_status,
               details=f"Payment status changed from {old_status} to {new_status}",
          )

     def payment_updated(self, old_values: dict[str, Any], payment) -> PaymentLog:
          return self._append(
               PaymentLogAction.UPDATED,
               payment_id=payment.id,
               member_id=payment.member_id,
               group_id=payment.group_id,
               details="Payment details updated",
               **_image("old", old_values),
               **_image("new", payment.snapshot()),
          )

     def payment_deleted(self, payment_id: int, values: dict[str, Any], details: Optional[str] = None) -> PaymentLog:
          return self._append(
               PaymentLogAction.DELETED,
               payment_id=payment_id,
               member_id=values.get("member_id"),
               group_id=values.get("group_id"),
               details=details or "Payment moved to trashbox",
               **_image("old", values),
          )

     def bulk_created(self, count: int, group_id: Optional[int] = None) -> PaymentLog:
          return self._append(
               PaymentLogAction.BULK_CREATED,
               group_id=group_id,
               bulk_payment_count=count,
               details=f"Bulk payment creation: {count} payments created",
          )

     def payment_restored(self, payment, details: Optional[str] = None) -> PaymentLog:
          return self._append(
               PaymentLogAction.RESTORED,
               payment_id=payment.id,
               member_id=payment.member_id,
               group_id=payment.group_id,
               details=details or "Payment restored from trashbox",
               **_image("new", payment.snapshot()),
          )

     def permanently_deleted(self, payment_id: int, values: dict[str, Any]) -> PaymentLog:
          return self._append(
               PaymentLogAction.PERMANENTLY_DELETED,
               payment_id=payment_id,
               member_id=values.get("member_id"),
               group_id=values.get("group_id"),
               details="Payment permanently deleted from trashbox",
               **_image("old", values),
          )

     def payment_archived(self, payment, reason: Optional[str] = None) -> PaymentLog:
          return self._append(
               PaymentLogAction.ARCHIVED,
               payment_id=payment.id,
               member_id=payment.member_id,
               group_id=payment.group_id,
               details=f"Payment archived: {reason}" if reason else "Payment archived",
               **_image("old", payment.snapshot()),
          )


def record_best_effort(db: Session, write: Callable[..., PaymentLog], *args, **kwargs) -> Optional[PaymentLog]:
     """
     Run one writer call in its own transaction after the primary change
     has committed. Failures are logged and never reach the caller.
     """
     try:
          with atomic(db):
               return write(*args, **kwargs)
     except (TransactionFailedError, SQLAlchemyError):
          logger.exception("Failed to write payment log via %s", getattr(write, "__name__", write))
          return None


# ---------------------------------------------------------------------------
# Reading the log
# ---------------------------------------------------------------------------

@dataclass
class PaymentLogFilter:
     """Optional predicates for the log listing; unset fields are ignored."""
     action: Optional[str] = None
     member_id: Optional[int] = None
     group_id: Optional[int] = None
     performed_by: Optional[str] = None
     start_date: Optional[datetime] = None
     end_date: Optional[datetime] = None


@dataclass
class PaymentLogEntry:
     log: PaymentLog
     member_first_name: Optional[str] = None
     member_last_name: Optional[str] = None
     group_name: Optional[str] = None


def _escape_like(value: str) -> str:
     return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def log_filter_query(db: Session, filters: Optional[PaymentLogFilter] = None) -> Query:
     """Compose the filter predicates as bound expressions on a PaymentLog query."""
     filters = filters or PaymentLogFilter()
     query = db.query(PaymentLog)
     if filters.action:
          query = query.filter(PaymentLog.action == filters.action)
     if filters.member_id is not None:
          query = query.filter(PaymentLog.member_id == filters.member_id)
     if filters.group_id is not None:
          query = query.filter(PaymentLog.group_id == filters.group_id)
     if filters.performed_by:
          pattern = f"%{_escape_like(filters.performed_by)}%"
          query = query.filter(PaymentLog.performed_by_username.like(pattern, escape="\\"))
     if filters.start_date is not None:
          query = query.filter(PaymentLog.timestamp >= filters.start_date)
     if filters.end_date is not None:
          query = query.filter(PaymentLog.timestamp <= filters.end_date)
     return query


def list_logs(
     db: Session,
     filters: Optional[PaymentLogFilter] = None,
     limit: int = 100,
     offset: int = 0,
) -> tuple[list[PaymentLogEntry], int]:
     """Newest entries first, with member and group names when they still exist."""
     base = log_filter_query(db, filters)
     total = base.count()
     rows = (
          base.outerjoin(Member, PaymentLog.member_id == Member.id)
          .outerjoin(Group, PaymentLog.group_id == Group.id)
          .add_columns(Member.first_name, Member.last_name, Group.name)
          .order_by(PaymentLog.timestamp.desc(), PaymentLog.id.desc())
          .limit(limit)
          .offset(offset)
          .all()
     )
     entries = [
          PaymentLogEntry(log=log, member_first_name=first, member_last_name=last, group_name=group_name)
          for log, first, last, group_name in rows
     ]
     return entries, total


def log_stats(db: Session, days: int = 30, now: Optional[datetime] = None) -> dict[str, dict[str, int]]:
     """Counts per day and action over the last ``days`` days, newest day first."""
     now = now or datetime.now()
     since = now - timedelta(days=days)
     rows = (
          db.query(PaymentLog.timestamp, PaymentLog.action)
          .filter(PaymentLog.timestamp >= since)
          .all()
     )
     stats: dict[str, dict[str, int]] = {}
     for timestamp, action in rows:
          day = stats.setdefault(timestamp.date().isoformat(), {})
          day[action] = day.get(action, 0) + 1
     return {key: stats[key] for key in sorted(stats, reverse=True)}
