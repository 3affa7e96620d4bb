# routers/groups.py
"""
Group API routes for the Kasmoni backend.

Groups, their payout slot assignments and the derived per-period status.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from models import Group
from schemas.group import (
     GroupCreate,
     GroupDetailResponse,
     GroupMemberCreate,
     GroupMemberResponse,
     GroupResponse,
     GroupStatusResponse,
     GroupUpdate,
     GroupWithRecipientResponse,
)
from schemas.member import MemberResponse
from services import group_service, status_service
from services.periods import PERIOD_PATTERN, current_period
from utils.auth import Principal, require_staff

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post(
     "",
     response_model=GroupResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new group"
)
def create_group(
     group_data: GroupCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """
     Create a savings group.

     - **duration**: number of months the group runs
     - **start_month**: first month (YYYY-MM); end_month is derived
     """
     return group_service.create_group(db, group_data)


@router.get(
     "",
     response_model=List[GroupResponse],
     summary="List groups"
)
def list_groups(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return db.query(Group).order_by(Group.created_at.desc(), Group.id.desc()).all()


@router.get(
     "/status",
     response_model=List[GroupStatusResponse],
     summary="Payment status of every group for a month"
)
def list_group_status(
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """fully_paid, pending or not_paid per group, newest group first."""
     return [
          GroupStatusResponse.model_validate(item, from_attributes=True)
          for item in status_service.derive_group_status(db, period or current_period())
     ]


@router.get(
     "/current",
     response_model=List[GroupWithRecipientResponse],
     summary="Active groups with this month's recipient"
)
def list_current_groups(
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return [
          GroupWithRecipientResponse.model_validate(item, from_attributes=True)
          for item in status_service.derive_groups_with_recipients(db, period or current_period())
     ]


@router.get(
     "/{group_id}",
     response_model=GroupDetailResponse,
     summary="Get group by ID with its slots"
)
def get_group(
     group_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return group_service.get_group(db, group_id)


@router.get(
     "/{group_id}/recipient",
     response_model=Optional[MemberResponse],
     summary="Member receiving the payout in a month"
)
def get_recipient(
     group_id: int,
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """Returns null when nobody holds the month."""
     return status_service.derive_recipient_for_period(db, group_id, period or current_period())


@router.put(
     "/{group_id}",
     response_model=GroupResponse,
     summary="Update a group"
)
def update_group(
     group_id: int,
     group_data: GroupUpdate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """Only the fields sent are changed; end_month is recomputed."""
     return group_service.update_group(db, group_id, group_data)


@router.delete(
     "/{group_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a group"
)
def delete_group(
     group_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     group_service.delete_group(db, group_id)


# ---------------------------------------------------------------------------
# Slot assignments
# ---------------------------------------------------------------------------

@router.post(
     "/{group_id}/members",
     response_model=GroupMemberResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Assign a payout month to a member"
)
def add_group_member(
     group_id: int,
     body: GroupMemberCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     return group_service.add_member_to_group(db, group_id, body.member_id, body.receive_month)


@router.delete(
     "/{group_id}/members/{member_id}",
     summary="Remove a member's slot(s) from a group"
)
def remove_group_member(
     group_id: int,
     member_id: int,
     receive_month: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Only this month; all of the member's months when omitted"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     removed = group_service.remove_member_from_group(db, group_id, member_id, receive_month)
     return {
          "success": True,
          "message": f"{removed} slot(s) removed",
          "removed": removed,
     }
