# schemas/payment_log.py
"""
Pydantic schemas for the payment audit log.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class PaymentLogResponse(BaseModel):
     id: int
     payment_id: Optional[int] = None
     action: str

     old_status: Optional[str] = None
     new_status: Optional[str] = None
     old_amount: Optional[Decimal] = None
     new_amount: Optional[Decimal] = None
     old_payment_date: Optional[date] = None
     new_payment_date: Optional[date] = None
     old_payment_month: Optional[str] = None
     new_payment_month: Optional[str] = None
     old_payment_type: Optional[str] = None
     new_payment_type: Optional[str] = None
     old_sender_bank: Optional[str] = None
     new_sender_bank: Optional[str] = None
     old_receiver_bank: Optional[str] = None
     new_receiver_bank: Optional[str] = None
     old_proof_of_payment: Optional[str] = None
     new_proof_of_payment: Optional[str] = None
     old_slot: Optional[str] = None
     new_slot: Optional[str] = None
     old_member_id: Optional[int] = None
     new_member_id: Optional[int] = None
     old_group_id: Optional[int] = None
     new_group_id: Optional[int] = None

     member_id: Optional[int] = None
     group_id: Optional[int] = None
     bulk_payment_count: Optional[int] = None
     details: Optional[str] = None
     performed_by_user_id: Optional[int] = None
     performed_by_username: Optional[str] = None
     timestamp: Optional[datetime] = None
     ip_address: Optional[str] = None
     user_agent: Optional[str] = None

     # Names of the member and group when they still exist
     member_first_name: Optional[str] = None
     member_last_name: Optional[str] = None
     group_name: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class PaymentLogListResponse(BaseModel):
     logs: List[PaymentLogResponse]
     total: int
     limit: int
     offset: int


class PaymentLogStatsResponse(BaseModel):
     days: int
     stats: Dict[str, Dict[str, int]]
