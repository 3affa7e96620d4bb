# services/status_service.py
"""
Status Derivation Service - read-only views over groups and payments.

Everything here is recomputed from the database on every call; nothing is
cached or stored. For a billing period P (``YYYY-MM``) a slot's state is the
status of the most recent payment (highest id) for that slot with
``payment_month == P``; a slot with no such payment is ``not_paid``.

Unknown group or member ids produce empty results, never errors.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session, joinedload

from models import Group, GroupMember, Member, Payment
from models.payment import PAID_STATUSES, OPEN_STATUSES, PaymentStatus
from .periods import current_period, format_period_label, overdue_deadline


class GroupPaymentStatus:
     NOT_PAID = "not_paid"
     PENDING = "pending"
     FULLY_PAID = "fully_paid"


@dataclass
class GroupStatus:
     id: int
     name: str
     monthly_amount: Decimal
     max_members: int
     duration: int
     start_month: str
     end_month: Optional[str]
     created_at: Optional[datetime]
     status: str
     member_count: int
     pending_count: int
     member_names: list[str] = field(default_factory=list)


@dataclass
class GroupWithRecipient:
     id: int
     name: str
     monthly_amount: Decimal
     end_month: Optional[str]
     status: str
     member_count: int
     pending_count: int
     receive_month: Optional[str] = None
     recipient: Optional[Member] = None


@dataclass
class OverduePayment:
     payment: Payment
     first_name: str
     last_name: str
     group_name: str
     monthly_amount: Decimal
     days_late: int


@dataclass
class DashboardStats:
     total_members: int
     total_groups: int
     total_payments: int
     total_amount_paid: Decimal
     total_amount_received: Decimal
     total_amount_settled: Decimal
     total_amount_expected: Decimal
     overdue_payments: int
     pending_payments: int
     pending_amount: Decimal


@dataclass
class AnalyticsStats:
     total_expected_amount: Decimal
     total_paid: Decimal
     total_received: Decimal
     total_pending: Decimal
     cash_members: int
     bank_members: dict[str, int] = field(default_factory=dict)


@dataclass
class MonthlyTrend:
     month: str
     payment_count: int = 0
     total_amount: Decimal = Decimal("0")
     completed_payments: int = 0
     pending_payments: int = 0


@dataclass
class MemberSlotStatus:
     group_id: int
     group_name: str
     monthly_amount: Decimal
     duration: int
     receive_month: str
     total_amount: Decimal
     payment_status: str


@dataclass
class GroupPerformance:
     id: int
     name: str
     monthly_amount: Decimal
     member_count: int
     total_payments: int
     total_paid: Decimal
     total_pending: Decimal
     created_at: Optional[datetime] = None


@dataclass
class RecentActivity:
     """A recorded payment or a newly registered member."""
     type: str
     id: int
     created_at: Optional[datetime]
     status: str
     member_name: str
     group_name: Optional[str] = None
     amount: Optional[Decimal] = None


@dataclass
class SlotOption:
     value: str
     label: str


@dataclass
class GroupMemberSlot:
     member_id: int
     first_name: str
     last_name: str
     slot: str
     slot_label: str
     has_paid: bool
     payment: Optional[Payment] = None


def _decimal(value) -> Decimal:
     if value is None:
          return Decimal("0")
     return value if isinstance(value, Decimal) else Decimal(str(value))


def _normalize_status(status: Optional[str]) -> str:
     return (status or PaymentStatus.NOT_PAID.value).lower()


# Legacy rows may carry mixed-case statuses; every status filter compares lowercased
_STATUS = func.lower(Payment.status)


def _status_in(*statuses: str):
     return _STATUS.in_(statuses)


def classify_group(slot_statuses: list[str]) -> str:
     """
     Fold per-slot statuses into the group status.

     fully_paid when every slot is received or settled; pending when at
     least one slot is pending and none is still not_paid; not_paid otherwise,
     including a group without slots.
     """
     if not slot_statuses:
          return GroupPaymentStatus.NOT_PAID
     if all(s in PAID_STATUSES for s in slot_statuses):
          return GroupPaymentStatus.FULLY_PAID
     if PaymentStatus.NOT_PAID.value in slot_statuses:
          return GroupPaymentStatus.NOT_PAID
     if PaymentStatus.PENDING.value in slot_statuses:
          return GroupPaymentStatus.PENDING
     return GroupPaymentStatus.NOT_PAID


def _active_group_filter(period: str):
     return or_(Group.end_month >= period, Group.end_month.is_(None))


def latest_payments_for_period(
     db: Session,
     period: str,
     group_ids: Optional[list[int]] = None,
) -> dict[tuple[int, int, str], Payment]:
     """Most recent payment per (group_id, member_id, slot) billed to ``period``."""
     latest_ids = (
          select(func.max(Payment.id))
          .where(Payment.payment_month == period)
          .group_by(Payment.group_id, Payment.member_id, Payment.slot)
     )
     if group_ids is not None:
          if not group_ids:
               return {}
          latest_ids = latest_ids.where(Payment.group_id.in_(group_ids))

     payments = db.query(Payment).filter(Payment.id.in_(latest_ids)).all()
     return {(p.group_id, p.member_id, p.slot): p for p in payments}


def _slots_by_group(db: Session, group_ids: list[int]) -> dict[int, list[GroupMember]]:
     slots: dict[int, list[GroupMember]] = {gid: [] for gid in group_ids}
     if not group_ids:
          return slots
     rows = (
          db.query(GroupMember)
          .options(joinedload(GroupMember.member))
          .filter(GroupMember.group_id.in_(group_ids))
          .order_by(GroupMember.receive_month, GroupMember.id)
          .all()
     )
     for gm in rows:
          slots[gm.group_id].append(gm)
     return slots


def _slot_statuses(
     slots: list[GroupMember],
     latest: dict[tuple[int, int, str], Payment],
) -> list[str]:
     statuses = []
     for gm in slots:
          payment = latest.get((gm.group_id, gm.member_id, gm.receive_month))
          statuses.append(_normalize_status(payment.status) if payment else PaymentStatus.NOT_PAID.value)
     return statuses


def _summarize(slots: list[GroupMember], latest) -> tuple[str, int, int]:
     statuses = _slot_statuses(slots, latest)
     member_count = len({gm.receive_month for gm in slots})
     pending_count = sum(1 for s in statuses if s not in PAID_STATUSES)
     return classify_group(statuses), member_count, pending_count


def derive_group_status(db: Session, period: str) -> list[GroupStatus]:
     """Status of every group for ``period``, newest group first."""
     groups = db.query(Group).order_by(Group.created_at.desc(), Group.id.desc()).all()
     group_ids = [g.id for g in groups]
     slots = _slots_by_group(db, group_ids)
     latest = latest_payments_for_period(db, period, group_ids)

     result = []
     for group in groups:
          group_slots = slots[group.id]
          status, member_count, pending_count = _summarize(group_slots, latest)
          names = list(OrderedDict.fromkeys(gm.member.full_name for gm in group_slots))
          result.append(GroupStatus(
               id=group.id,
               name=group.name,
               monthly_amount=group.monthly_amount,
               max_members=group.max_members,
               duration=group.duration,
               start_month=group.start_month,
               end_month=group.end_month,
               created_at=group.created_at,
               status=status,
               member_count=member_count,
               pending_count=pending_count,
               member_names=names,
          ))
     return result


def derive_recipient_for_period(db: Session, group_id: int, period: str) -> Optional[Member]:
     """The member holding the payout slot for ``period``, or None."""
     slot = (
          db.query(GroupMember)
          .options(joinedload(GroupMember.member))
          .filter(GroupMember.group_id == group_id, GroupMember.receive_month == period)
          .first()
     )
     return slot.member if slot else None


def derive_groups_with_recipients(db: Session, period: str) -> list[GroupWithRecipient]:
     """Active groups with their status and this period's recipient, by name."""
     groups = (
          db.query(Group)
          .filter(_active_group_filter(period))
          .order_by(Group.name, Group.id)
          .all()
     )
     group_ids = [g.id for g in groups]
     slots = _slots_by_group(db, group_ids)
     latest = latest_payments_for_period(db, period, group_ids)

     result = []
     for group in groups:
          group_slots = slots[group.id]
          status, member_count, pending_count = _summarize(group_slots, latest)
          holder = next((gm for gm in group_slots if gm.receive_month == period), None)
          result.append(GroupWithRecipient(
               id=group.id,
               name=group.name,
               monthly_amount=group.monthly_amount,
               end_month=group.end_month,
               status=status,
               member_count=member_count,
               pending_count=pending_count,
               receive_month=holder.receive_month if holder else None,
               recipient=holder.member if holder else None,
          ))
     return result


def count_overdue_payments(db: Session, period: str, now: Optional[datetime] = None) -> int:
     """
     Unpaid or pending payments billed to ``period`` and dated on or before
     the deadline. Always 0 until the deadline of ``now``'s month has passed.
     """
     now = now or datetime.now()
     deadline = overdue_deadline(now)
     if now <= deadline:
          return 0
     return db.query(func.count(Payment.id)).filter(
          _status_in(*OPEN_STATUSES),
          Payment.payment_month == period,
          Payment.payment_date <= deadline.date(),
     ).scalar() or 0


def list_overdue_payments(db: Session, now: Optional[datetime] = None) -> list[OverduePayment]:
     """Open payments dated on or before the deadline, oldest first."""
     now = now or datetime.now()
     deadline = overdue_deadline(now)
     if now <= deadline:
          return []

     rows = (
          db.query(Payment, Member, Group)
          .join(Member, Payment.member_id == Member.id)
          .join(Group, Payment.group_id == Group.id)
          .filter(
               _status_in(*OPEN_STATUSES),
               Payment.payment_date <= deadline.date(),
          )
          .order_by(Payment.payment_date, Payment.id)
          .all()
     )
     return [
          OverduePayment(
               payment=payment,
               first_name=member.first_name,
               last_name=member.last_name,
               group_name=group.name,
               monthly_amount=group.monthly_amount,
               days_late=(now.date() - payment.payment_date).days,
          )
          for payment, member, group in rows
     ]


def _sum_amount(db: Session, *criteria) -> Decimal:
     total = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(*criteria).scalar()
     return _decimal(total)


def total_expected_amount(db: Session, period: str) -> Decimal:
     """Sum of monthly_amount * duration over groups still active in ``period``."""
     total = (
          db.query(func.coalesce(func.sum(Group.monthly_amount * Group.duration), 0))
          .filter(_active_group_filter(period))
          .scalar()
     )
     return _decimal(total)


def dashboard_stats(db: Session, period: Optional[str] = None, now: Optional[datetime] = None) -> DashboardStats:
     """
     Headline figures for ``period`` (defaults to the current one).

     total_amount_paid adds received, pending and settled amounts together;
     pending money is counted as paid here.
     """
     now = now or datetime.now()
     period = period or current_period(now)
     in_period = Payment.payment_month == period
     is_pending = _STATUS == PaymentStatus.PENDING.value

     received = _sum_amount(db, in_period, _STATUS == PaymentStatus.RECEIVED.value)
     settled = _sum_amount(db, in_period, _STATUS == PaymentStatus.SETTLED.value)
     pending_count, pending_amount = db.query(
          func.count(Payment.id),
          func.coalesce(func.sum(Payment.amount), 0),
     ).filter(in_period, is_pending).one()
     pending_amount = _decimal(pending_amount)

     return DashboardStats(
          total_members=db.query(func.count(Member.id)).scalar() or 0,
          total_groups=db.query(func.count(Group.id)).scalar() or 0,
          total_payments=db.query(func.count(Payment.id)).filter(in_period).scalar() or 0,
          total_amount_paid=received + pending_amount + settled,
          total_amount_received=received,
          total_amount_settled=settled,
          total_amount_expected=total_expected_amount(db, period),
          overdue_payments=count_overdue_payments(db, period, now),
          pending_payments=pending_count or 0,
          pending_amount=pending_amount,
     )


def analytics_stats(db: Session, period: Optional[str] = None) -> AnalyticsStats:
     """Expected vs collected money for ``period`` and how members paid."""
     period = period or current_period()
     in_period = Payment.payment_month == period
     paid = _status_in(*PAID_STATUSES)

     bank_rows = (
          db.query(Payment.receiver_bank, func.count(func.distinct(Payment.member_id)))
          .filter(in_period, paid, Payment.receiver_bank.isnot(None))
          .group_by(Payment.receiver_bank)
          .all()
     )
     cash_members = (
          db.query(func.count(func.distinct(Payment.member_id)))
          .filter(in_period, paid, Payment.payment_type == "cash")
          .scalar()
     ) or 0

     return AnalyticsStats(
          total_expected_amount=total_expected_amount(db, period),
          total_paid=_sum_amount(db, in_period, _STATUS == PaymentStatus.SETTLED.value),
          total_received=_sum_amount(db, in_period, _STATUS == PaymentStatus.RECEIVED.value),
          total_pending=_sum_amount(db, in_period, _STATUS == PaymentStatus.PENDING.value),
          cash_members=cash_members,
          bank_members={bank: count for bank, count in bank_rows},
     )


def payments_by_status(db: Session) -> list[dict]:
     rows = (
          db.query(
               _STATUS.label("status"),
               func.count(Payment.id).label("count"),
               func.coalesce(func.sum(Payment.amount), 0).label("total_amount"),
          )
          .group_by(_STATUS)
          .order_by(func.count(Payment.id).desc())
          .all()
     )
     return [
          {"status": status, "count": count, "total_amount": _decimal(total)}
          for status, count, total in rows
     ]


def monthly_trends(db: Session, months: int = 12) -> list[MonthlyTrend]:
     """Payment counts and totals per calendar month of payment_date, newest first."""
     # Bucketed in Python; date formatting differs between SQL Server and SQLite
     rows = db.query(Payment.payment_date, Payment.amount, Payment.status).all()
     buckets: dict[str, MonthlyTrend] = {}
     for payment_date, amount, raw_status in rows:
          status = _normalize_status(raw_status)
          key = payment_date.strftime("%Y-%m")
          trend = buckets.setdefault(key, MonthlyTrend(month=key))
          trend.payment_count += 1
          trend.total_amount += _decimal(amount)
          if status in PAID_STATUSES:
               trend.completed_payments += 1
          elif status in OPEN_STATUSES:
               trend.pending_payments += 1
     return [buckets[key] for key in sorted(buckets, reverse=True)[:months]]


def group_performance(db: Session) -> list[GroupPerformance]:
     """Slot count, payment count and paid/open money per group, newest group first."""
     slot_counts = dict(
          db.query(GroupMember.group_id, func.count(GroupMember.id))
          .group_by(GroupMember.group_id)
          .all()
     )
     # Slots and payments are counted separately; one joined query would multiply rows
     paid_amount = case((_status_in(*PAID_STATUSES), Payment.amount), else_=0)
     open_amount = case((_status_in(*OPEN_STATUSES), Payment.amount), else_=0)
     payment_rows = (
          db.query(
               Payment.group_id,
               func.count(Payment.id),
               func.coalesce(func.sum(paid_amount), 0),
               func.coalesce(func.sum(open_amount), 0),
          )
          .group_by(Payment.group_id)
          .all()
     )
     payment_totals = {group_id: (count, paid, pending) for group_id, count, paid, pending in payment_rows}

     performance = []
     for group in db.query(Group).order_by(Group.created_at.desc(), Group.id.desc()).all():
          count, paid, pending = payment_totals.get(group.id, (0, 0, 0))
          performance.append(GroupPerformance(
               id=group.id,
               name=group.name,
               monthly_amount=_decimal(group.monthly_amount),
               member_count=slot_counts.get(group.id, 0),
               total_payments=count,
               total_paid=_decimal(paid),
               total_pending=_decimal(pending),
               created_at=group.created_at,
          ))
     return performance


def recent_activities(db: Session, limit: int = 20) -> list[RecentActivity]:
     """Newest payments and member registrations, merged by creation time."""
     payments = (
          db.query(Payment)
          .options(joinedload(Payment.member), joinedload(Payment.group))
          .order_by(Payment.created_at.desc(), Payment.id.desc())
          .limit(limit)
          .all()
     )
     members = db.query(Member).order_by(Member.created_at.desc(), Member.id.desc()).limit(limit).all()

     activities = [
          RecentActivity(
               type="payment",
               id=payment.id,
               created_at=payment.created_at,
               status=payment.status,
               member_name=payment.member.full_name if payment.member else "",
               group_name=payment.group.name if payment.group else None,
               amount=_decimal(payment.amount),
          )
          for payment in payments
     ]
     activities.extend(
          RecentActivity(
               type="member",
               id=member.id,
               created_at=member.created_at,
               status="registered",
               member_name=member.full_name,
          )
          for member in members
     )
     activities.sort(key=lambda activity: activity.created_at or datetime.min, reverse=True)
     return activities[:limit]


def member_slot_statuses(db: Session, member_id: int, period: Optional[str] = None) -> list[MemberSlotStatus]:
     """Each of a member's slots with its latest status for ``period``."""
     period = period or current_period()
     slots = (
          db.query(GroupMember, Group)
          .join(Group, GroupMember.group_id == Group.id)
          .filter(GroupMember.member_id == member_id)
          .order_by(Group.name, GroupMember.receive_month)
          .all()
     )
     latest = latest_payments_for_period(db, period, list({g.id for _, g in slots}))
     result = []
     for gm, group in slots:
          payment = latest.get((gm.group_id, gm.member_id, gm.receive_month))
          result.append(MemberSlotStatus(
               group_id=group.id,
               group_name=group.name,
               monthly_amount=group.monthly_amount,
               duration=group.duration,
               receive_month=gm.receive_month,
               total_amount=_decimal(group.monthly_amount) * group.duration,
               payment_status=payment.status if payment else PaymentStatus.NOT_PAID.value,
          ))
     return result


def available_slots(db: Session, group_id: int, member_id: int, period: Optional[str] = None) -> list[SlotOption]:
     """The member's slots in a group that are not yet received or settled for ``period``."""
     period = period or current_period()
     paid = (
          select(Payment.id)
          .where(
               Payment.group_id == GroupMember.group_id,
               Payment.member_id == GroupMember.member_id,
               Payment.slot == GroupMember.receive_month,
               Payment.payment_month == period,
               _status_in(*PAID_STATUSES),
          )
          .exists()
     )
     months = (
          db.query(GroupMember.receive_month)
          .filter(
               GroupMember.group_id == group_id,
               GroupMember.member_id == member_id,
               ~paid,
          )
          .order_by(GroupMember.receive_month)
          .all()
     )
     return [SlotOption(value=m, label=format_period_label(m)) for (m,) in months]


def group_member_slots(db: Session, group_id: int) -> list[GroupMemberSlot]:
     """
     Every slot of a group with the latest payment that is pending, received
     or settled in any period. Feeds the bulk payment entry screen.
     """
     rows = (
          db.query(GroupMember, Member)
          .join(Member, GroupMember.member_id == Member.id)
          .filter(GroupMember.group_id == group_id)
          .order_by(Member.first_name, Member.last_name, GroupMember.receive_month)
          .all()
     )
     latest_ids = (
          select(func.max(Payment.id))
          .where(
               Payment.group_id == group_id,
               _status_in(PaymentStatus.PENDING.value, *PAID_STATUSES),
          )
          .group_by(Payment.member_id, Payment.slot)
     )
     payments = {
          (p.member_id, p.slot): p
          for p in db.query(Payment).filter(Payment.id.in_(latest_ids)).all()
     }

     result = []
     for gm, member in rows:
          payment = payments.get((gm.member_id, gm.receive_month))
          result.append(GroupMemberSlot(
               member_id=member.id,
               first_name=member.first_name,
               last_name=member.last_name,
               slot=gm.receive_month,
               slot_label=format_period_label(gm.receive_month),
               has_paid=payment is not None,
               payment=payment,
          ))
     return result
