# services/group_service.py
"""
Group Service - groups and their payout slot assignments.

A group's end_month is derived from start_month and duration whenever
either is written. Slots are (group, receive_month) pairs; the unique
constraint on group_members is the final guard against double-booking a
month, the checks in add_member_to_group only give a precise message.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from database import atomic
from models import Group, GroupMember, Member, Payment, PaymentRequest
from schemas.group import GroupCreate, GroupUpdate
from .exceptions import ConflictError, InvalidAssignmentError, NotFoundError
from .periods import compute_end_month

logger = logging.getLogger(__name__)


def get_group(db: Session, group_id: int) -> Group:
     group = (
          db.query(Group)
          .options(joinedload(Group.slots).joinedload(GroupMember.member))
          .filter(Group.id == group_id)
          .first()
     )
     if group is None:
          raise NotFoundError("Group", group_id)
     return group


def create_group(db: Session, data: GroupCreate) -> Group:
     with atomic(db):
          group = Group(
               end_month=compute_end_month(data.start_month, data.duration),
               **data.model_dump(),
          )
          db.add(group)
          db.flush()
     logger.info("group %s created: %s..%s", group.id, group.start_month, group.end_month)
     return group


def update_group(db: Session, group_id: int, data: GroupUpdate) -> Group:
     group = db.get(Group, group_id)
     if group is None:
          raise NotFoundError("Group", group_id)
     with atomic(db):
          for field, value in data.model_dump(exclude_unset=True).items():
               setattr(group, field, value)
          group.end_month = compute_end_month(group.start_month, group.duration)
     logger.info("group %s updated", group.id)
     return group


def delete_group(db: Session, group_id: int) -> None:
     """Delete a group that nothing references any more."""
     group = db.get(Group, group_id)
     if group is None:
          raise NotFoundError("Group", group_id)

     in_use = (
          db.query(GroupMember.id).filter(GroupMember.group_id == group_id).first()
          or db.query(Payment.id).filter(Payment.group_id == group_id).first()
          or db.query(PaymentRequest.id).filter(PaymentRequest.group_id == group_id).first()
     )
     if in_use is not None:
          raise ConflictError("Group still has members or payments and cannot be deleted")

     with atomic(db):
          db.delete(group)
     logger.info("group %s deleted", group_id)


def add_member_to_group(db: Session, group_id: int, member_id: int, receive_month: str) -> GroupMember:
     """
     Assign ``receive_month`` of a group to a member.

     Raises:
          NotFoundError: group or member missing
          InvalidAssignmentError: member already holds the month, month held by
               someone else, or every month of the group is taken
     """
     group = db.get(Group, group_id)
     if group is None:
          raise NotFoundError("Group", group_id)
     if db.get(Member, member_id) is None:
          raise NotFoundError("Member", member_id)

     holder = (
          db.query(GroupMember)
          .options(joinedload(GroupMember.member))
          .filter(GroupMember.group_id == group_id, GroupMember.receive_month == receive_month)
          .first()
     )
     if holder is not None:
          if holder.member_id == member_id:
               raise InvalidAssignmentError("Member is already assigned to this month in this group")
          raise InvalidAssignmentError(
               f"This month is already assigned to {holder.member.first_name} {holder.member.last_name}"
          )

     taken = db.query(func.count(func.distinct(GroupMember.receive_month))).filter(
          GroupMember.group_id == group_id
     ).scalar() or 0
     if taken >= group.max_members:
          raise InvalidAssignmentError("Group is already full (all months are assigned)")

     slot = GroupMember(group_id=group_id, member_id=member_id, receive_month=receive_month)
     with atomic(db):
          db.add(slot)
          try:
               db.flush()
          except IntegrityError as exc:
               raise InvalidAssignmentError("This month is already assigned in this group") from exc

     logger.info("member %s assigned %s in group %s", member_id, receive_month, group_id)
     return slot


def remove_member_from_group(
     db: Session,
     group_id: int,
     member_id: int,
     receive_month: Optional[str] = None,
) -> int:
     """Remove one month, or every month, a member holds in a group."""
     query = db.query(GroupMember).filter(
          GroupMember.group_id == group_id,
          GroupMember.member_id == member_id,
     )
     if receive_month:
          query = query.filter(GroupMember.receive_month == receive_month)
     slots = query.all()
     if not slots:
          raise NotFoundError("Group member", member_id)

     with atomic(db):
          for slot in slots:
               db.delete(slot)
     logger.info("member %s removed from group %s (%d slots)", member_id, group_id, len(slots))
     return len(slots)
