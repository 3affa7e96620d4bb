# schemas/payment.py
"""
Pydantic schemas for Payment API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from models.payment import PaymentStatus, PaymentType
from services.periods import PERIOD_PATTERN

Period = Annotated[str, Field(pattern=PERIOD_PATTERN, description="Month in YYYY-MM format")]


class PaymentBase(BaseModel):
     group_id: int = Field(..., gt=0, description="Group ID (must exist)")
     member_id: int = Field(..., gt=0, description="Member ID (must hold a slot in the group)")
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Payment amount")
     payment_date: date = Field(..., description="Date the money moved")
     payment_month: Period
     slot: Period
     payment_type: PaymentType
     sender_bank: Optional[str] = Field(None, max_length=100)
     receiver_bank: Optional[str] = Field(None, max_length=100)
     status: PaymentStatus = Field(default=PaymentStatus.NOT_PAID.value, description="Payment status")
     proof_of_payment: Optional[str] = None

     model_config = ConfigDict(use_enum_values=True)


class PaymentCreate(PaymentBase):
     """Schema for creating a new payment."""

     model_config = ConfigDict(
          use_enum_values=True,
          json_schema_extra={
               "example": {
                    "group_id": 1,
                    "member_id": 4,
                    "amount": 500.00,
                    "payment_date": "2025-03-05",
                    "payment_month": "2025-03",
                    "slot": "2025-06",
                    "payment_type": "bank_transfer",
                    "sender_bank": "Finabank",
                    "receiver_bank": "De Surinaamsche Bank",
                    "status": "received"
               }
          }
     )


class PaymentUpdate(PaymentBase):
     """Full edit of an existing payment; every field is replaced."""


class PaymentStatusUpdate(BaseModel):
     status: PaymentStatus

     model_config = ConfigDict(
          use_enum_values=True,
          json_schema_extra={"example": {"status": "settled"}},
     )


class PaymentResponse(BaseModel):
     """Schema for payment response."""
     id: int
     group_id: int
     member_id: int
     amount: Decimal
     payment_date: date
     payment_month: str
     slot: str
     payment_type: str
     sender_bank: Optional[str] = None
     receiver_bank: Optional[str] = None
     status: str
     proof_of_payment: Optional[str] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
     payments: List[PaymentResponse]
     total: int
     page: int = 1
     page_size: int = 50


# ---------------------------------------------------------------------------
# Bulk entry
# ---------------------------------------------------------------------------

class BulkPaymentItem(BaseModel):
     """One row of the bulk entry screen; group and period come from the batch."""
     member_id: int = Field(..., gt=0)
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     payment_date: date
     slot: Period
     payment_type: PaymentType
     sender_bank: Optional[str] = Field(None, max_length=100)
     receiver_bank: Optional[str] = Field(None, max_length=100)
     status: Optional[PaymentStatus] = None
     proof_of_payment: Optional[str] = None

     model_config = ConfigDict(use_enum_values=True)


class BulkPaymentCreate(BaseModel):
     group_id: int = Field(..., gt=0)
     payment_month: Period
     payments: List[BulkPaymentItem] = Field(..., min_length=1)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "group_id": 1,
                    "payment_month": "2025-03",
                    "payments": [
                         {
                              "member_id": 4,
                              "amount": 500.00,
                              "payment_date": "2025-03-05",
                              "slot": "2025-06",
                              "payment_type": "cash",
                              "status": "received"
                         }
                    ]
               }
          }
     )


class BulkValidationResult(BaseModel):
     index: int
     member_id: int
     errors: List[str]


class BulkValidationResponse(BaseModel):
     success: bool
     message: str
     data: List[BulkValidationResult]


# ---------------------------------------------------------------------------
# Trashbox / archive
# ---------------------------------------------------------------------------

class ArchiveRequest(BaseModel):
     archive_reason: Optional[str] = Field(None, max_length=500)


class BulkArchiveRequest(BaseModel):
     payment_ids: List[int] = Field(..., min_length=1)
     archive_reason: Optional[str] = Field(None, max_length=500)


class TrashboxIdsRequest(BaseModel):
     trashbox_ids: List[int] = Field(..., min_length=1)


class ArchiveIdsRequest(BaseModel):
     archive_ids: List[int] = Field(..., min_length=1)
     deletion_reason: Optional[str] = Field(None, max_length=500)


class MoveToTrashboxRequest(BaseModel):
     deletion_reason: Optional[str] = Field(None, max_length=500)


class StoredPaymentBase(BaseModel):
     id: int
     original_id: int
     group_id: int
     member_id: int
     amount: Decimal
     payment_date: date
     payment_month: str
     slot: str
     payment_type: str
     sender_bank: Optional[str] = None
     receiver_bank: Optional[str] = None
     status: str
     proof_of_payment: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class TrashboxPaymentResponse(StoredPaymentBase):
     deleted_at: Optional[datetime] = None
     deleted_by_user_id: Optional[int] = None
     deleted_by_username: Optional[str] = None
     deletion_reason: Optional[str] = None


class ArchivedPaymentResponse(StoredPaymentBase):
     archived_at: Optional[datetime] = None
     archived_by_user_id: Optional[int] = None
     archived_by_username: Optional[str] = None
     archive_reason: Optional[str] = None


class BulkRestoreResult(BaseModel):
     restored: int
     errors: List[dict[str, Any]] = []


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

class OverduePaymentResponse(BaseModel):
     payment: PaymentResponse
     first_name: str
     last_name: str
     group_name: str
     monthly_amount: Decimal
     days_late: int

     model_config = ConfigDict(from_attributes=True)


class SlotOptionResponse(BaseModel):
     value: str
     label: str

     model_config = ConfigDict(from_attributes=True)


class GroupMemberSlotResponse(BaseModel):
     member_id: int
     first_name: str
     last_name: str
     slot: str
     slot_label: str
     has_paid: bool
     payment: Optional[PaymentResponse] = None

     model_config = ConfigDict(from_attributes=True)
