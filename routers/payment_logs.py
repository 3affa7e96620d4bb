# routers/payment_logs.py
"""
Payment audit log API routes. Read-only and restricted to administrators.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from models.payment_log import PaymentLogAction
from schemas.payment_log import PaymentLogListResponse, PaymentLogResponse, PaymentLogStatsResponse
from services.audit_service import PaymentLogFilter, list_logs, log_stats
from utils.auth import Principal, require_admin

router = APIRouter(prefix="/api/payment-logs", tags=["payment-logs"])


@router.get(
     "",
     response_model=PaymentLogListResponse,
     summary="Search the payment audit log"
)
def get_payment_logs(
     action: Optional[PaymentLogAction] = Query(None, description="Filter by action"),
     member_id: Optional[int] = Query(None, description="Filter by member ID"),
     group_id: Optional[int] = Query(None, description="Filter by group ID"),
     performed_by: Optional[str] = Query(None, max_length=100, description="Username contains"),
     start_date: Optional[datetime] = Query(None, description="Entries at or after this time"),
     end_date: Optional[datetime] = Query(None, description="Entries at or before this time"),
     limit: int = Query(100, ge=1, le=500),
     offset: int = Query(0, ge=0),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     """Newest entries first."""
     filters = PaymentLogFilter(
          action=PaymentLogAction(action).value if action else None,
          member_id=member_id,
          group_id=group_id,
          performed_by=performed_by,
          start_date=start_date,
          end_date=end_date,
     )
     entries, total = list_logs(db, filters, limit=limit, offset=offset)

     logs = []
     for entry in entries:
          item = PaymentLogResponse.model_validate(entry.log)
          item.member_first_name = entry.member_first_name
          item.member_last_name = entry.member_last_name
          item.group_name = entry.group_name
          logs.append(item)
     return PaymentLogListResponse(logs=logs, total=total, limit=limit, offset=offset)


@router.get(
     "/stats",
     response_model=PaymentLogStatsResponse,
     summary="Log entries per day and action"
)
def get_payment_log_stats(
     days: int = Query(30, ge=1, le=365),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return PaymentLogStatsResponse(days=days, stats=log_stats(db, days))
