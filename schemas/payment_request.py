# schemas/payment_request.py
"""
Pydantic schemas for member payment requests and their review.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict

from models.payment import PaymentType
from .payment import Period


class PaymentRequestCreate(BaseModel):
     """
     Submitted by a member for one of their own slots. The member and the
     billing month come from the session and the clock, not the body.
     """
     group_id: int = Field(..., gt=0)
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     payment_date: date
     slot: Period
     payment_type: PaymentType
     sender_bank: Optional[str] = Field(None, max_length=100)
     receiver_bank: Optional[str] = Field(None, max_length=100)
     proof_of_payment: Optional[str] = None
     request_notes: Optional[str] = Field(None, max_length=500)

     model_config = ConfigDict(
          use_enum_values=True,
          json_schema_extra={
               "example": {
                    "group_id": 1,
                    "amount": 500.00,
                    "payment_date": "2025-03-04",
                    "slot": "2025-06",
                    "payment_type": "bank_transfer",
                    "sender_bank": "Hakrinbank",
                    "receiver_bank": "Finabank",
                    "request_notes": "Paid via mobile banking"
               }
          }
     )


class PaymentRequestReview(BaseModel):
     """
     Approve or reject a request. Any of the optional payment fields that are
     present replace the member's values before the decision is applied.
     """
     status: Literal["approved", "rejected"]
     admin_notes: Optional[str] = Field(None, max_length=500)

     group_id: Optional[int] = Field(None, gt=0)
     amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     payment_date: Optional[date] = None
     payment_month: Optional[Period] = None
     slot: Optional[Period] = None
     payment_type: Optional[PaymentType] = None
     sender_bank: Optional[str] = Field(None, max_length=100)
     receiver_bank: Optional[str] = Field(None, max_length=100)
     proof_of_payment: Optional[str] = None

     model_config = ConfigDict(
          use_enum_values=True,
          json_schema_extra={
               "example": {
                    "status": "approved",
                    "amount": 600.00,
                    "admin_notes": "Amount corrected after bank check"
               }
          }
     )


class PaymentRequestResponse(BaseModel):
     id: int
     member_id: int
     group_id: int
     amount: Decimal
     payment_date: date
     payment_month: str
     slot: str
     payment_type: str
     sender_bank: Optional[str] = None
     receiver_bank: Optional[str] = None
     proof_of_payment: Optional[str] = None
     status: str
     request_notes: Optional[str] = None
     admin_notes: Optional[str] = None
     reviewed_by: Optional[int] = None
     reviewed_by_username: Optional[str] = None
     reviewed_at: Optional[datetime] = None
     created_at: Optional[datetime] = None

     # Optional related data
     member_name: Optional[str] = None
     group_name: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class PaymentRequestReviewResponse(BaseModel):
     request: PaymentRequestResponse
     payment_id: Optional[int] = None


class PendingCountResponse(BaseModel):
     count: int


class EligibleSlotResponse(BaseModel):
     group_id: int
     slot: str
     group_name: str
     monthly_amount: Decimal


class ProofUploadResponse(BaseModel):
     url: str


class PaymentRequestListResponse(BaseModel):
     requests: List[PaymentRequestResponse]
     total: int
