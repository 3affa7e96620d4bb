# services/notification_service.py
"""
Payment notifications.

Routers build notifications while the session is open and hand them to
dispatch_notifications() as a background task, so delivery happens after
the transaction has committed and never holds one open. Delivery is
fire-and-forget: failures are logged, not raised.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

import requests
from sqlalchemy.orm import Session

from models import Member, Payment
from utils.email import EmailDeliveryError, send_email
from .periods import format_period_label

logger = logging.getLogger(__name__)


@dataclass
class Notification:
     member_id: int
     email: Optional[str]
     subject: str
     message: str


class Notifier(Protocol):
     def send(self, notification: Notification) -> None:
          ...


class EmailNotifier:
     """Delivers notifications through the Brevo transactional e-mail API."""

     def __init__(self, timeout: float = 10):
          self.timeout = timeout

     def send(self, notification: Notification) -> None:
          if not notification.email:
               logger.info("member %s has no e-mail address; notification skipped", notification.member_id)
               return
          send_email(
               notification.email,
               notification.subject,
               f"<p>{notification.message}</p>",
               timeout=self.timeout,
          )


def payment_notification(payment: Payment, member: Member, group_name: str) -> Notification:
     label = format_period_label(payment.slot)
     return Notification(
          member_id=member.id,
          email=member.email,
          subject=f"Payment recorded for {group_name}",
          message=(
               f"Dear {member.full_name}, a payment of {payment.amount} for your "
               f"{label} slot in {group_name} was recorded with status "
               f"'{payment.status}'."
          ),
     )


def build_payment_notifications(db: Session, payments: Iterable[Payment]) -> list[Notification]:
     """One notification per member, for the first of their payments in the batch."""
     notifications = []
     seen = set()
     for payment in payments:
          if payment.member_id in seen:
               continue
          seen.add(payment.member_id)
          member = db.get(Member, payment.member_id)
          if member is None:
               continue
          group_name = payment.group.name if payment.group is not None else f"group {payment.group_id}"
          notifications.append(payment_notification(payment, member, group_name))
     return notifications


def dispatch_notifications(notifier: Notifier, notifications: Iterable[Notification]) -> int:
     """Send each notification; returns how many went out."""
     sent = 0
     for notification in notifications:
          try:
               notifier.send(notification)
               sent += 1
          except (EmailDeliveryError, requests.RequestException):
               logger.exception("Failed to notify member %s", notification.member_id)
     return sent


_default_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
     """FastAPI dependency; tests override it with a recorder."""
     global _default_notifier
     if _default_notifier is None:
          _default_notifier = EmailNotifier()
     return _default_notifier
