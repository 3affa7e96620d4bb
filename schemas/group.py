# schemas/group.py
"""
Pydantic schemas for Group and slot assignment API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .member import MemberResponse
from .payment import Period


class GroupCreate(BaseModel):
     """Schema for creating a group. end_month is derived, never sent."""
     name: str = Field(..., min_length=1, max_length=100)
     monthly_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     max_members: int = Field(default=12, ge=1, description="Number of payout months")
     duration: int = Field(..., ge=1, description="Length of the group in months")
     start_month: Period

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "name": "Kasmoni Maart",
                    "monthly_amount": 500.00,
                    "max_members": 6,
                    "duration": 6,
                    "start_month": "2025-01"
               }
          }
     )


class GroupUpdate(BaseModel):
     name: Optional[str] = Field(None, min_length=1, max_length=100)
     monthly_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     max_members: Optional[int] = Field(None, ge=1)
     duration: Optional[int] = Field(None, ge=1)
     start_month: Optional[Period] = None


class GroupResponse(BaseModel):
     """Schema for group response."""
     id: int
     name: str
     monthly_amount: Decimal
     max_members: int
     duration: int
     start_month: str
     end_month: Optional[str] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class GroupMemberCreate(BaseModel):
     member_id: int = Field(..., gt=0)
     receive_month: Period

     model_config = ConfigDict(
          json_schema_extra={"example": {"member_id": 4, "receive_month": "2025-03"}}
     )


class GroupMemberResponse(BaseModel):
     id: int
     group_id: int
     member_id: int
     receive_month: str
     joined_at: Optional[datetime] = None
     member: Optional[MemberResponse] = None

     model_config = ConfigDict(from_attributes=True)


class GroupDetailResponse(GroupResponse):
     slots: List[GroupMemberResponse] = []


class GroupStatusResponse(BaseModel):
     """A group with its derived payment status for one period."""
     id: int
     name: str
     monthly_amount: Decimal
     max_members: int
     duration: int
     start_month: str
     end_month: Optional[str] = None
     created_at: Optional[datetime] = None
     status: str
     member_count: int
     pending_count: int
     member_names: List[str] = []

     model_config = ConfigDict(from_attributes=True)


class GroupWithRecipientResponse(BaseModel):
     id: int
     name: str
     monthly_amount: Decimal
     end_month: Optional[str] = None
     status: str
     member_count: int
     pending_count: int
     receive_month: Optional[str] = None
     recipient: Optional[MemberResponse] = None

     model_config = ConfigDict(from_attributes=True)
