# schemas/member.py
"""
Pydantic schemas for Member API request/response validation.
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class MemberBase(BaseModel):
     first_name: str = Field(..., min_length=1, max_length=50)
     last_name: str = Field(..., min_length=1, max_length=50)
     birth_date: Optional[date] = None
     birthplace: Optional[str] = Field(None, max_length=100)
     address: Optional[str] = Field(None, max_length=200)
     city: Optional[str] = Field(None, max_length=100)
     nationality: Optional[str] = Field(None, max_length=50)
     occupation: Optional[str] = Field(None, max_length=100)
     national_id: str = Field(..., min_length=1, max_length=20, description="National ID number (unique)")
     phone_number: str = Field(..., min_length=1, max_length=20)
     email: Optional[str] = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
     bank_name: Optional[str] = Field(None, max_length=100)
     account_number: Optional[str] = Field(None, max_length=50)
     registration_date: Optional[date] = None


class MemberCreate(MemberBase):
     """Schema for registering a new member."""

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "first_name": "Sharita",
                    "last_name": "Jagessar",
                    "birth_date": "1988-04-12",
                    "city": "Paramaribo",
                    "national_id": "FZ001234",
                    "phone_number": "+597 8812345",
                    "email": "sharita@example.com",
                    "bank_name": "Finabank",
                    "account_number": "1023456789",
                    "registration_date": "2025-01-02"
               }
          }
     )


class MemberUpdate(BaseModel):
     """Schema for updating a member; only the fields sent are changed."""
     first_name: Optional[str] = Field(None, min_length=1, max_length=50)
     last_name: Optional[str] = Field(None, min_length=1, max_length=50)
     birth_date: Optional[date] = None
     birthplace: Optional[str] = Field(None, max_length=100)
     address: Optional[str] = Field(None, max_length=200)
     city: Optional[str] = Field(None, max_length=100)
     nationality: Optional[str] = Field(None, max_length=50)
     occupation: Optional[str] = Field(None, max_length=100)
     national_id: Optional[str] = Field(None, min_length=1, max_length=20)
     phone_number: Optional[str] = Field(None, min_length=1, max_length=20)
     email: Optional[str] = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
     bank_name: Optional[str] = Field(None, max_length=100)
     account_number: Optional[str] = Field(None, max_length=50)
     registration_date: Optional[date] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "phone_number": "+597 8890000",
                    "bank_name": "De Surinaamsche Bank"
               }
          }
     )


class MemberResponse(MemberBase):
     """Schema for member response."""
     id: int
     email: Optional[str] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class MemberListResponse(BaseModel):
     members: List[MemberResponse]
     total: int
     page: int = 1
     page_size: int = 50
