# routers/messages.py
"""
Message inbox API routes.

Role-based access:
- Member: send a message, read and mark own messages
- Administrator / super user: list all messages, set their status, unread count
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from models.message import MessageStatus, MessageType
from schemas.message import MessageCreate, MessageResponse, MessageStatusUpdate, UnreadCountResponse
from services import ForbiddenError
from services import message_service
from utils.auth import Principal, require_admin, require_member, verify_token

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("", response_model=List[MessageResponse], summary="All messages, newest first")
def list_messages(
     message_status: Optional[MessageStatus] = Query(None, alias="status", description="Filter by status"),
     request_type: Optional[MessageType] = Query(None, description="Filter by message type"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return message_service.list_messages(
          db,
          status=message_status.value if message_status else None,
          request_type=request_type.value if request_type else None,
     )


@router.post(
     "",
     response_model=MessageResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Send a message to the administrators"
)
def create_message(
     message_data: MessageCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_member),
):
     return message_service.create_message(db, principal.member_id, message_data)


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Number of pending messages")
def unread_count(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return UnreadCountResponse(count=message_service.unread_count(db))


@router.get("/member/{member_id}", response_model=List[MessageResponse], summary="A member's messages")
def list_member_messages(
     member_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     if principal.is_member and not principal.owns_member(member_id):
          raise ForbiddenError("You can only access your own messages")
     return message_service.list_member_messages(db, member_id)


@router.put("/{message_id}/status", response_model=MessageResponse, summary="Decide on a message")
def update_message_status(
     message_id: int,
     update: MessageStatusUpdate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return message_service.update_status(db, message_id, update)


@router.put("/{message_id}/read", response_model=MessageResponse, summary="Mark a pending message as read")
def mark_message_read(
     message_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     return message_service.mark_read(db, message_id, principal)
