# routers/members.py
"""
Member API routes for the Kasmoni backend.

CRUD for members plus the per-member slot overview. Members are never
removed implicitly: a member that still holds slots, payments or payment
requests cannot be deleted.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import atomic, get_session
from models import GroupMember, Member, Payment, PaymentRequest
from schemas.member import MemberCreate, MemberListResponse, MemberResponse, MemberUpdate
from schemas.dashboard import MemberSlotStatusResponse
from services import ConflictError, ForbiddenError, NotFoundError
from services import status_service
from services.periods import PERIOD_PATTERN
from utils.auth import Principal, require_staff, verify_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", tags=["members"])


def _get_member_or_404(db: Session, member_id: int) -> Member:
     member = db.get(Member, member_id)
     if member is None:
          raise NotFoundError("Member", member_id)
     return member


def _check_unique(db: Session, national_id: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
     """National ID and e-mail are unique across members."""
     if national_id:
          query = db.query(Member.id).filter(Member.national_id == national_id)
          if exclude_id is not None:
               query = query.filter(Member.id != exclude_id)
          if query.first() is not None:
               raise ConflictError("A member with this national ID already exists")
     if email:
          query = db.query(Member.id).filter(Member.email == email)
          if exclude_id is not None:
               query = query.filter(Member.id != exclude_id)
          if query.first() is not None:
               raise ConflictError("A member with this e-mail address already exists")


@router.post(
     "",
     response_model=MemberResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Register a new member"
)
def create_member(
     member_data: MemberCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     _check_unique(db, member_data.national_id, member_data.email)
     with atomic(db):
          member = Member(**member_data.model_dump())
          db.add(member)
          db.flush()
     logger.info("member %s registered by %s", member.id, principal.username)
     return member


@router.get(
     "",
     response_model=MemberListResponse,
     summary="List members"
)
def list_members(
     search: Optional[str] = Query(None, max_length=100, description="Match on name, national ID or phone"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=200, description="Items per page"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     query = db.query(Member)
     if search:
          pattern = f"%{search}%"
          query = query.filter(or_(
               Member.first_name.ilike(pattern),
               Member.last_name.ilike(pattern),
               Member.national_id.ilike(pattern),
               Member.phone_number.ilike(pattern),
          ))

     total = query.count()
     members = (
          query.order_by(Member.last_name, Member.first_name, Member.id)
          .offset((page - 1) * page_size)
          .limit(page_size)
          .all()
     )
     return MemberListResponse(
          members=[MemberResponse.model_validate(m) for m in members],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.get(
     "/{member_id}",
     response_model=MemberResponse,
     summary="Get member by ID"
)
def get_member(
     member_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     """Back-office users can read any member; a member can read only their own record."""
     if principal.is_member and not principal.owns_member(member_id):
          raise ForbiddenError("You can only access your own member record")
     return _get_member_or_404(db, member_id)


@router.get(
     "/{member_id}/slots",
     response_model=List[MemberSlotStatusResponse],
     summary="A member's slots with their payment status"
)
def get_member_slots(
     member_id: int,
     period: Optional[str] = Query(None, pattern=PERIOD_PATTERN, description="Billing month, defaults to the current one"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     if principal.is_member and not principal.owns_member(member_id):
          raise ForbiddenError("You can only access your own member record")
     return [
          MemberSlotStatusResponse.model_validate(slot, from_attributes=True)
          for slot in status_service.member_slot_statuses(db, member_id, period)
     ]


@router.put(
     "/{member_id}",
     response_model=MemberResponse,
     summary="Update a member"
)
def update_member(
     member_id: int,
     member_data: MemberUpdate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     """Only the fields sent are changed."""
     member = _get_member_or_404(db, member_id)
     changes = member_data.model_dump(exclude_unset=True)
     _check_unique(db, changes.get("national_id"), changes.get("email"), exclude_id=member_id)
     with atomic(db):
          for field, value in changes.items():
               setattr(member, field, value)
     logger.info("member %s updated by %s", member_id, principal.username)
     return member


@router.delete(
     "/{member_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a member"
)
def delete_member(
     member_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_staff),
):
     member = _get_member_or_404(db, member_id)
     in_use = (
          db.query(GroupMember.id).filter(GroupMember.member_id == member_id).first()
          or db.query(Payment.id).filter(Payment.member_id == member_id).first()
          or db.query(PaymentRequest.id).filter(PaymentRequest.member_id == member_id).first()
     )
     if in_use is not None:
          raise ConflictError("Member still has group slots, payments or requests and cannot be deleted")
     with atomic(db):
          db.delete(member)
     logger.info("member %s deleted by %s", member_id, principal.username)
