# schemas/dashboard.py
"""
Response schemas for the dashboard and analytics read models.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class DashboardStatsResponse(BaseModel):
     period: str
     total_members: int
     total_groups: int
     total_payments: int
     total_amount_paid: Decimal
     total_amount_received: Decimal
     total_amount_settled: Decimal
     total_amount_expected: Decimal
     overdue_payments: int
     pending_payments: int
     pending_amount: Decimal

     model_config = ConfigDict(from_attributes=True)


class AnalyticsStatsResponse(BaseModel):
     period: str
     total_expected_amount: Decimal
     total_paid: Decimal
     total_received: Decimal
     total_pending: Decimal
     cash_members: int
     bank_members: Dict[str, int] = {}

     model_config = ConfigDict(from_attributes=True)


class PaymentsByStatusResponse(BaseModel):
     status: str
     count: int
     total_amount: Decimal


class MonthlyTrendResponse(BaseModel):
     month: str
     payment_count: int
     total_amount: Decimal
     completed_payments: int
     pending_payments: int

     model_config = ConfigDict(from_attributes=True)


class MemberSlotStatusResponse(BaseModel):
     group_id: int
     group_name: str
     monthly_amount: Decimal
     duration: int
     receive_month: str
     total_amount: Decimal
     payment_status: str

     model_config = ConfigDict(from_attributes=True)


class OverdueCountResponse(BaseModel):
     period: str
     overdue_payments: int


class AnalyticsOverviewResponse(BaseModel):
     stats: AnalyticsStatsResponse
     payments_by_status: List[PaymentsByStatusResponse]
     monthly_trends: List[MonthlyTrendResponse]


class GroupPerformanceResponse(BaseModel):
     id: int
     name: str
     monthly_amount: Decimal
     member_count: int
     total_payments: int
     total_paid: Decimal
     total_pending: Decimal
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class RecentActivityResponse(BaseModel):
     type: str
     id: int
     created_at: Optional[datetime] = None
     status: str
     member_name: str
     group_name: Optional[str] = None
     amount: Optional[Decimal] = None

     model_config = ConfigDict(from_attributes=True)
