# schemas/message.py
"""
Pydantic schemas for the member/administrator inbox.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models.message import MessageStatus, MessageType


class MessageCreate(BaseModel):
     """Sent by a member; name and contact details come from the member record."""
     request_type: MessageType
     request_details: str = Field(..., min_length=1, max_length=2000)

     model_config = ConfigDict(
          use_enum_values=True,
          json_schema_extra={
               "example": {
                    "request_type": "change_info",
                    "request_details": "Please update my phone number to +597 8123456"
               }
          }
     )


class MessageStatusUpdate(BaseModel):
     status: MessageStatus
     admin_notes: Optional[str] = Field(None, max_length=2000)

     model_config = ConfigDict(use_enum_values=True)


class MessageResponse(BaseModel):
     id: int
     member_id: int
     member_name: str
     member_email: Optional[str] = None
     member_phone: Optional[str] = None
     request_type: str
     request_details: str
     status: str
     admin_notes: Optional[str] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
     count: int
